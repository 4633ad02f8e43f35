"""
core/conversation.py

Append-only, in-memory record of the messages exchanged in a conversation.

The log is owned by a single orchestrator instance and lives for the lifetime of
the process (or until `clear` is called). Entries are kept in insertion order and
are never reordered or individually deleted. The one in-place change the log
supports is `rewrite`, which swaps an entry for a copy with new content at the
same position; the orchestrator uses it to replace a denied command proposal
with a denial notice.
"""

import logging
from typing import List, Optional

from shared.models import Direction, Lane, Message

logger = logging.getLogger(__name__)


class ConversationLog:
    """Ordered store of `Message` objects."""

    def __init__(self) -> None:
        self._messages: List[Message] = []

    def append(self, message: Message) -> Message:
        self._messages.append(message)
        logger.debug(
            "[ConversationLog] Appended %s message %s (%d total)",
            message.direction.value, message.id, len(self._messages)
        )
        return message

    def rewrite(self, message_id: str, content: str) -> Message:
        """
        Replace the content of a stored message, keeping its id and position.

        Args:
            message_id (str): Identifier of the entry to rewrite.
            content (str): The new content.

        Returns:
            Message: The replacement message now held by the log.

        Raises:
            KeyError: If no entry with `message_id` is in the log (for example
                because the log was cleared while the round was in flight).
        """
        for index, existing in enumerate(self._messages):
            if existing.id == message_id:
                updated = existing.with_content(content)
                self._messages[index] = updated
                logger.debug("[ConversationLog] Rewrote message %s at position %d", message_id, index)
                return updated
        raise KeyError(message_id)

    def history(self) -> List[Message]:
        """Return a copy of the full history in insertion order."""
        return list(self._messages)

    def recent(self, count: int = 10) -> List[Message]:
        if count <= 0:
            return []
        return self._messages[-count:]

    def last(self) -> Optional[Message]:
        return self._messages[-1] if self._messages else None

    def by_direction(self, direction: Direction) -> List[Message]:
        return [m for m in self._messages if m.direction is direction]

    def by_lane(self, lane: Lane) -> List[Message]:
        return [m for m in self._messages if m.lane is lane]

    def clear(self) -> None:
        logger.info("[ConversationLog] Clearing %d messages", len(self._messages))
        self._messages = []

    def __len__(self) -> int:
        return len(self._messages)
