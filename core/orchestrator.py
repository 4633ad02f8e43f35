"""
core/orchestrator.py

Central orchestrator for the request/response cycle.

This module contains the coordination logic that:
1. Records the inbound message and classifies it into a lane
2. Asks the active completion backend for a reply
3. Scans the reply for an embedded command and, if one is found, runs it
   through the command gate's approval step
4. Records the (possibly rewritten) reply and publishes lifecycle events

State machine per `chat()` call:
    RECEIVED -> CLASSIFIED -> COMPLETED -> SCANNED
      -> FINALIZED                                   (no command)
      -> AWAITING_APPROVAL -> DECIDED -> FINALIZED   (command found)

The orchestrator instance is also the handle passed to extensions at install time.
"""

import asyncio
import logging
import uuid
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from config import CONFIG
from config.logging_config import get_logger
from extensions.registry import ExtensionRegistry
from llm_cloud.base import CompletionBackend
from llm_cloud.factory import build_backend
from monitoring.metrics import (
    APPROVAL_DECISIONS_TOTAL,
    APPROVAL_REQUESTS_TOTAL,
    APPROVAL_WAIT_TIME,
    COMPLETION_REQUEST_TIME,
    ROUNDS_TOTAL,
    track_errors,
)
from services.approval import build_approver
from shared.models import Direction, LaneAnalysis, Message

from .classifier import LaneClassifier
from .command_gate import Approver, CommandGate
from .conversation import ConversationLog
from .events import Event, EventBus, EventName, Listener

logger = get_logger(__name__)

DENIAL_TEMPLATE = (
    "Command execution denied: {command}\n\n"
    "The command was not executed. You can run it manually if needed."
)


class ConcurrencyMode(Enum):
    """
    How overlapping `chat()` calls on one orchestrator are handled.

    - SERIALIZE: rounds queue on a lock and run one at a time
    - REJECT: a call made while a round is in flight raises ConcurrentChatError
    - INTERLEAVE: rounds run concurrently; log appends interleave in completion
      order, approval prompts are still issued one at a time
    """
    SERIALIZE = "serialize"
    REJECT = "reject"
    INTERLEAVE = "interleave"


class ConcurrentChatError(RuntimeError):
    """Raised in REJECT mode when `chat()` is called while another round is running."""
    pass


class Orchestrator:
    """
    Composes the conversation log, lane classifier, command gate, completion
    backend and extension registry into one chat round.

    Responsibilities:
    - Sequencing a round and publishing `message`, `icerc-request`,
      `icerc-decision` and `error` events on its own event bus
    - Holding the single active completion backend (swappable at any time;
      a swap takes effect from the next round)
    - Serving as the handle extensions install against: events, backend swap,
      named actions and access to the classifier's pattern tables

    Args:
        backend (Optional[CompletionBackend]): Starting backend. Built from
            configuration when omitted.
        approver (Optional[Approver]): Approval actor for the command gate. Built
            from configuration when omitted.
        extensions (Optional[list]): Extensions to install at construction, in order.
        concurrency (Optional[str]): "serialize", "reject" or "interleave".
        enable_approval (Optional[bool]): When False the command gate is skipped.
        config (Optional[Dict[str, Any]]): Global configuration; defaults to CONFIG.
    """

    def __init__(
        self,
        backend: Optional[CompletionBackend] = None,
        approver: Optional[Approver] = None,
        extensions: Optional[list] = None,
        concurrency: Optional[str] = None,
        enable_approval: Optional[bool] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        self.config = config if config is not None else CONFIG
        orchestrator_cfg = self.config.get('orchestrator', {})

        self.conversation = ConversationLog()
        self.classifier = LaneClassifier()
        self.gate = CommandGate(approver if approver is not None else build_approver(self.config))
        self.events = EventBus()
        self.extensions = ExtensionRegistry()
        self._backend = backend if backend is not None else build_backend(self.config)
        self._actions: Dict[str, Callable[[], Any]] = {}

        self.concurrency = ConcurrencyMode(
            (concurrency or orchestrator_cfg.get('concurrency', 'serialize')).strip().lower()
        )
        self.enable_approval = (
            enable_approval if enable_approval is not None
            else bool(orchestrator_cfg.get('enable_approval', True))
        )
        self._round_lock = asyncio.Lock()
        self._approval_lock = asyncio.Lock()

        logger.info(
            "Initialized with backend %s (concurrency=%s, approval=%s)",
            self._backend.name, self.concurrency.value, "on" if self.enable_approval else "off"
        )

        for extension in extensions or []:
            self.install_extension(extension)

    # ------------------------------------------------------------------
    # Chat round
    # ------------------------------------------------------------------

    async def chat(self, content: str) -> Message:
        """
        Run one full orchestration round for a piece of inbound text.

        Args:
            content (str): Free-text input.

        Returns:
            Message: The outbound message as stored in the log. If an embedded
            command was denied its content is the denial notice.

        Raises:
            ConcurrentChatError: In REJECT mode, if another round is in flight.
            Exception: A backend or approval-actor failure, re-raised after an
                `error` event has been published.
        """
        if self.concurrency is ConcurrencyMode.INTERLEAVE:
            return await self._run_round(content)

        if self.concurrency is ConcurrencyMode.REJECT and self._round_lock.locked():
            raise ConcurrentChatError("A chat round is already in progress")

        async with self._round_lock:
            return await self._run_round(content)

    @track_errors('round', 'orchestrator')
    async def _run_round(self, content: str) -> Message:
        # Rounds may interleave, so each one logs through its own adapter
        round_logger = logging.LoggerAdapter(logger.logger, {'round_id': str(uuid.uuid4()), 'lane': 'no_lane'})

        # Replacing the backend mid-round only affects later rounds
        backend = self._backend

        try:
            # RECEIVED -> CLASSIFIED
            self.conversation.append(Message(direction=Direction.INBOUND, content=content))
            lane = self.classifier.classify(content)
            round_logger.extra['lane'] = lane.value
            round_logger.info("Message classified as %s", lane.value)

            # CLASSIFIED -> COMPLETED
            completion = await self._complete(backend, lane, round_logger)

            # COMPLETED -> SCANNED
            outbound = self.conversation.append(
                Message(direction=Direction.OUTBOUND, content=completion, lane=lane)
            )
            command = None
            if self.enable_approval and self.gate.detect(completion):
                command = self.gate.extract(completion)

            if command is not None:
                # AWAITING_APPROVAL -> DECIDED
                request = self.gate.create_request(command, f"Execute command suggested by the {lane.value} lane")
                APPROVAL_REQUESTS_TOTAL.labels(risk=request.risk.value).inc()
                self.events.publish(Event.APPROVAL_REQUEST, request)

                decision = await self._request_approval(request, round_logger)
                APPROVAL_DECISIONS_TOTAL.labels(outcome="approved" if decision.approved else "denied").inc()
                self.events.publish(Event.APPROVAL_DECISION, decision)

                if not decision.approved:
                    denial = DENIAL_TEMPLATE.format(command=command)
                    try:
                        outbound = self.conversation.rewrite(outbound.id, denial)
                    except KeyError:
                        # The log was cleared while the round waited for a decision
                        round_logger.warning("Message %s left the log before the denial rewrite", outbound.id)
                        outbound = outbound.with_content(denial)

            # FINALIZED
            ROUNDS_TOTAL.labels(lane=lane.value).inc()
            self.events.publish(Event.MESSAGE, outbound)
            round_logger.info("Round finalized (%d characters)", len(outbound.content))
            return outbound

        except Exception as e:
            # Counted and logged by track_errors once the error event is out
            self.events.publish(Event.ERROR, e)
            raise

    async def _complete(self, backend: CompletionBackend, lane, round_logger: logging.LoggerAdapter) -> str:
        history = self.conversation.history()
        round_logger.info("Requesting completion from %s with %d messages", backend.name, len(history))
        with COMPLETION_REQUEST_TIME.labels(backend=backend.name).time():
            return await backend.complete(history, lane)

    async def _request_approval(self, request, round_logger: logging.LoggerAdapter):
        # The approval channel is single-flight even when rounds interleave
        async with self._approval_lock:
            round_logger.info("Awaiting approval for %s (%s risk)", request.id, request.risk.value)
            with APPROVAL_WAIT_TIME.labels(risk=request.risk.value).time():
                return await self.gate.request_approval(request)

    # ------------------------------------------------------------------
    # Backend
    # ------------------------------------------------------------------

    @property
    def backend(self) -> CompletionBackend:
        return self._backend

    def set_backend(self, backend: CompletionBackend) -> None:
        logger.info("Completion backend switched from %s to %s", self._backend.name, backend.name)
        self._backend = backend

    # ------------------------------------------------------------------
    # Event feed
    # ------------------------------------------------------------------

    def subscribe(self, event: EventName, listener: Listener) -> None:
        self.events.subscribe(event, listener)

    def unsubscribe(self, event: EventName, listener: Listener) -> bool:
        return self.events.unsubscribe(event, listener)

    def publish(self, event: EventName, payload: Any) -> int:
        return self.events.publish(event, payload)

    # ------------------------------------------------------------------
    # Named actions
    # ------------------------------------------------------------------

    def add_action(self, name: str, handler: Callable[[], Any]) -> None:
        """Register (or replace) a zero-argument action invocable later by name."""
        self._actions[name] = handler

    def execute_action(self, name: str) -> bool:
        """
        Run a named action.

        Returns:
            bool: True if an action with that name existed and ran, False otherwise.
        """
        handler = self._actions.get(name)
        if handler is None:
            logger.warning("Unknown action requested: %s", name)
            return False
        handler()
        return True

    def remove_action(self, name: str) -> bool:
        return self._actions.pop(name, None) is not None

    def list_actions(self) -> List[str]:
        return list(self._actions)

    # ------------------------------------------------------------------
    # Extensions
    # ------------------------------------------------------------------

    def install_extension(self, extension: Any) -> None:
        """
        Register an extension and announce it on the event feed.

        Raises:
            DuplicateExtensionError: If an extension with the same name is installed.
        """
        self.extensions.register(extension, self)
        self.events.publish(Event.EXTENSION_INSTALLED, extension)

    def uninstall_extension(self, name: str) -> bool:
        return self.extensions.unregister(name, self)

    def list_extensions(self) -> List[Any]:
        return self.extensions.list()

    # ------------------------------------------------------------------
    # History and diagnostics
    # ------------------------------------------------------------------

    def history(self) -> List[Message]:
        return self.conversation.history()

    def clear_history(self) -> None:
        self.conversation.clear()

    def analyze_routing(self, content: str) -> LaneAnalysis:
        return self.classifier.analyze(content)

    def close(self) -> None:
        """Uninstall every extension (newest first) and drop all event subscriptions."""
        for extension in reversed(self.extensions.list()):
            self.extensions.unregister(extension.name, self)
        self.events.clear()
        self._actions.clear()
