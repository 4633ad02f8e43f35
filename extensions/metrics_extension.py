"""
In-memory usage counters for one orchestrator.

Unlike the process-wide Prometheus series in `monitoring.metrics`, these counters
belong to a single orchestrator and reset when the extension is reinstalled.
Registers a `metrics` action that logs a summary.
"""

import logging
from typing import Any, Dict

from core.events import Event
from shared.models import ApprovalDecision, Lane, Message
from .base import Extension

logger = logging.getLogger(__name__)


class MetricsExtension(Extension):
    name = "metrics"
    version = "1.0.0"

    def __init__(self) -> None:
        self._metrics = self._empty()

    @staticmethod
    def _empty() -> Dict[str, int]:
        return {
            'messages_total': 0,
            'messages_strategic': 0,
            'messages_implementation': 0,
            'approval_requests': 0,
            'approval_approved': 0,
            'approval_denied': 0,
        }

    def install(self, handle: Any) -> None:
        logger.info("[%s] Installing metrics extension v%s", self.name, self.version)
        self._metrics = self._empty()
        handle.subscribe(Event.MESSAGE, self.on_message)
        handle.subscribe(Event.APPROVAL_REQUEST, self.on_approval_request)
        handle.subscribe(Event.APPROVAL_DECISION, self.on_approval_decision)
        handle.add_action("metrics", self.log_summary)

    def uninstall(self, handle: Any) -> None:
        handle.unsubscribe(Event.MESSAGE, self.on_message)
        handle.unsubscribe(Event.APPROVAL_REQUEST, self.on_approval_request)
        handle.unsubscribe(Event.APPROVAL_DECISION, self.on_approval_decision)
        handle.remove_action("metrics")

    def on_message(self, message: Message) -> None:
        self._metrics['messages_total'] += 1
        if message.lane is Lane.STRATEGIC:
            self._metrics['messages_strategic'] += 1
        elif message.lane is Lane.IMPLEMENTATION:
            self._metrics['messages_implementation'] += 1

    def on_approval_request(self, request: Any) -> None:
        self._metrics['approval_requests'] += 1

    def on_approval_decision(self, decision: ApprovalDecision) -> None:
        if decision.approved:
            self._metrics['approval_approved'] += 1
        else:
            self._metrics['approval_denied'] += 1

    def get_metrics(self) -> Dict[str, int]:
        """Return a copy of the current counters."""
        return dict(self._metrics)

    def log_summary(self) -> None:
        m = self._metrics
        logger.info(
            "[%s] Messages: %d (strategic: %d, implementation: %d) | "
            "Approval requests: %d (approved: %d, denied: %d)",
            self.name,
            m['messages_total'], m['messages_strategic'], m['messages_implementation'],
            m['approval_requests'], m['approval_approved'], m['approval_denied'],
        )
