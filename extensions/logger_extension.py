"""
Conversation logger extension.

Writes every finalized message, approval request and approval decision to the
`extensions.logger_extension` logger. When `log_file` is given, a file handler is
attached to that logger on install and detached (and closed) on uninstall, so the
conversation transcript can be kept apart from the application log.
"""

import logging
from typing import Any, Optional

from core.events import Event
from shared.models import ApprovalDecision, ApprovalRequest, Message
from .base import Extension

logger = logging.getLogger(__name__)

TRANSCRIPT_FORMAT = '%(asctime)s - %(message)s'


class LoggerExtension(Extension):
    """
    Logs the orchestrator's event feed.

    Args:
        log_file (Optional[str]): Path of an additional transcript file.
    """

    name = "logger"
    version = "1.0.0"

    def __init__(self, log_file: Optional[str] = None) -> None:
        self.log_file = log_file
        self._file_handler: Optional[logging.FileHandler] = None

    def install(self, handle: Any) -> None:
        logger.info("[%s] Installing logger extension v%s", self.name, self.version)

        if self.log_file:
            # Installing again (e.g. into another orchestrator) reopens the transcript
            self._close_file_handler()
            self._file_handler = logging.FileHandler(self.log_file, encoding='utf-8')
            self._file_handler.setFormatter(logging.Formatter(TRANSCRIPT_FORMAT))
            logger.addHandler(self._file_handler)

        handle.subscribe(Event.MESSAGE, self.on_message)
        handle.subscribe(Event.APPROVAL_REQUEST, self.on_approval_request)
        handle.subscribe(Event.APPROVAL_DECISION, self.on_approval_decision)

    def uninstall(self, handle: Any) -> None:
        handle.unsubscribe(Event.MESSAGE, self.on_message)
        handle.unsubscribe(Event.APPROVAL_REQUEST, self.on_approval_request)
        handle.unsubscribe(Event.APPROVAL_DECISION, self.on_approval_decision)
        self._close_file_handler()

    def _close_file_handler(self) -> None:
        if self._file_handler is not None:
            logger.removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None

    def on_message(self, message: Message) -> None:
        lane = message.lane.value if message.lane else "-"
        logger.info("[%s] %s (%s): %s", self.name, message.direction.value, lane, message.content)

    def on_approval_request(self, request: ApprovalRequest) -> None:
        logger.info("[%s] Approval request: %s (Risk: %s)", self.name, request.command, request.risk.value)

    def on_approval_decision(self, decision: ApprovalDecision) -> None:
        logger.info("[%s] Approval decision: %s", self.name, "APPROVED" if decision.approved else "DENIED")
