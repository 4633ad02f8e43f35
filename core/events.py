"""
core/events.py

Per-orchestrator publish/subscribe feed.

Each orchestrator owns one `EventBus`; there is no process-wide emitter. The
presentation layer and extensions subscribe to the closed set of `Event` names
below. Listeners are plain callables invoked synchronously, in subscription
order, with the single payload object published for that event:

- Event.MESSAGE            -> shared.models.Message
- Event.APPROVAL_REQUEST   -> shared.models.ApprovalRequest
- Event.APPROVAL_DECISION  -> shared.models.ApprovalDecision
- Event.EXTENSION_INSTALLED -> the installed extension (has .name and .version)
- Event.ERROR              -> the exception that ended the round
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Union

logger = logging.getLogger(__name__)


class Event(Enum):
    MESSAGE = "message"
    APPROVAL_REQUEST = "icerc-request"
    APPROVAL_DECISION = "icerc-decision"
    EXTENSION_INSTALLED = "extension-installed"
    ERROR = "error"


Listener = Callable[[Any], None]
EventName = Union[Event, str]


class EventBus:
    """Typed event feed with subscribe/unsubscribe/publish."""

    def __init__(self) -> None:
        self._listeners: Dict[Event, List[Listener]] = {event: [] for event in Event}

    @staticmethod
    def _resolve(event: EventName) -> Event:
        # Accepts either the enum member or its wire name ("icerc-request", ...)
        return event if isinstance(event, Event) else Event(event)

    def subscribe(self, event: EventName, listener: Listener) -> None:
        self._listeners[self._resolve(event)].append(listener)

    def unsubscribe(self, event: EventName, listener: Listener) -> bool:
        """Remove one registration of `listener`. Returns False if it was not subscribed."""
        listeners = self._listeners[self._resolve(event)]
        try:
            listeners.remove(listener)
        except ValueError:
            return False
        return True

    def publish(self, event: EventName, payload: Any) -> int:
        """
        Deliver `payload` to every listener of `event`.

        The listener list is snapshotted first, so listeners that subscribe or
        unsubscribe during delivery affect the next publish only. An exception
        raised by a listener propagates to the publisher.

        Returns:
            int: The number of listeners invoked.
        """
        resolved = self._resolve(event)
        listeners = list(self._listeners[resolved])
        logger.debug("[EventBus] Publishing %s to %d listener(s)", resolved.value, len(listeners))
        for listener in listeners:
            listener(payload)
        return len(listeners)

    def listener_count(self, event: EventName) -> int:
        return len(self._listeners[self._resolve(event)])

    def clear(self) -> None:
        for listeners in self._listeners.values():
            listeners.clear()
