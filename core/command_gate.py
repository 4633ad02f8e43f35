"""
core/command_gate.py

Detection, risk assessment and approval of commands embedded in completion text.

A completion backend may answer with text that proposes shell-like commands. The
gate finds them, pulls out the literal command, assigns a risk tier and hands a
request to an external approval actor (a human prompt or a policy callback).
Approval is advisory: the gate records a decision, it does not sandbox or execute
anything.

Pattern tables are plain ordered lists. Risk is decided by the first table that
matches, in the order dangerous -> medium -> low; tables are not scored.
"""

import logging
import re
import uuid
from typing import Awaitable, Callable, Iterator, List, Optional, Pattern

from shared.models import ApprovalDecision, ApprovalRequest, RiskLevel

logger = logging.getLogger(__name__)

DEFAULT_INTENT = "Execute system command"

# High risk: destructive, privileged, package-installing or network-fetching commands.
DANGEROUS_PATTERNS: List[Pattern] = [
    re.compile(r"^rm\s"),
    re.compile(r"^sudo\s"),
    re.compile(r"^chmod\s"),
    re.compile(r"^chown\s"),
    re.compile(r"^kill\s"),
    re.compile(r"^pkill\s"),
    re.compile(r"^systemctl\s"),
    re.compile(r"^service\s"),
    re.compile(r"^apt\s"),
    re.compile(r"^yum\s"),
    re.compile(r"^brew\s"),
    re.compile(r"^npm\s+i"),
    re.compile(r"^npm\s+install"),
    re.compile(r"^pip\s+install"),
    re.compile(r"^curl\s"),
    re.compile(r"^wget\s"),
    re.compile(r">.*/"),        # redirect into a path
    re.compile(r"\|\s*sudo"),   # piping to sudo
]

# Everything that looks like a command at all; the dangerous table is a subset.
COMMAND_PATTERNS: List[Pattern] = DANGEROUS_PATTERNS + [
    re.compile(r"^ls\s"),
    re.compile(r"^cd\s"),
    re.compile(r"^pwd$"),
    re.compile(r"^echo\s"),
    re.compile(r"^cat\s"),
    re.compile(r"^grep\s"),
    re.compile(r"^find\s"),
    re.compile(r"^mkdir\s"),
    re.compile(r"^touch\s"),
    re.compile(r"^cp\s"),
    re.compile(r"^mv\s"),
]

MEDIUM_RISK_PATTERNS: List[Pattern] = [
    re.compile(r"npm\s+run"),
    re.compile(r"node\s"),
    re.compile(r"python\s"),
    re.compile(r"git\s+push"),
    re.compile(r"git\s+commit"),
]

FENCED_BLOCK = re.compile(r"```(?:bash|sh|shell)?\n([\s\S]*?)```")
INLINE_SPAN = re.compile(r"`([^`]+)`")
# Any fence, whatever its label; removed before inline spans are scanned so fence
# backticks never pair with a span's.
ANY_FENCE = re.compile(r"```[^\n`]*\n[\s\S]*?```")

# An approval actor receives the request and resolves to True (approve) or False (deny).
Approver = Callable[[ApprovalRequest], Awaitable[bool]]


def _matches_command(text: str) -> bool:
    cleaned = text.strip()
    return any(pattern.search(cleaned) for pattern in COMMAND_PATTERNS)


class CommandGate:
    """
    Guards command text proposed by a completion backend.

    `detect`, `extract`, `assess_risk` and `create_request` are pure. The only
    suspension point is `request_approval`, which awaits the injected approval
    actor. The gate does not serialize overlapping `request_approval` calls; the
    orchestrator does that when concurrent rounds are allowed.

    Args:
        approver (Approver): Async callable deciding a request. Its `label`
            attribute (if any) names the decider in decision reasons; it defaults
            to "User".
    """

    def __init__(self, approver: Approver) -> None:
        self.approver = approver

    @staticmethod
    def _inline_spans(text: str) -> Iterator[str]:
        for match in INLINE_SPAN.finditer(ANY_FENCE.sub("", text)):
            yield match.group(1)

    @staticmethod
    def _candidates(text: str) -> Iterator[str]:
        yield text
        for match in FENCED_BLOCK.finditer(text):
            yield match.group(1)
        yield from CommandGate._inline_spans(text)

    @staticmethod
    def detect(text: str) -> bool:
        """
        Check whether text contains something that looks like a system command.

        The whole trimmed text is tested first, then the content of every shell
        code fence and every inline code span outside a fence, so a command
        quoted inside prose ("run `rm -rf /tmp` first") is still detected.

        Args:
            text (str): Completion text to scan.

        Returns:
            bool: True if any candidate matches the command pattern set.
        """
        return any(_matches_command(candidate) for candidate in CommandGate._candidates(text))

    @staticmethod
    def extract(text: str) -> Optional[str]:
        """
        Extract the literal command from text.

        Rules, first match wins:
        1. the first non-empty fenced code block (unlabelled or labelled
           bash/sh/shell), trimmed;
        2. the first inline code span outside any fence whose content matches
           the command patterns;
        3. the whole trimmed text, if it matches the command patterns.

        Args:
            text (str): Completion text to scan.

        Returns:
            Optional[str]: The command, or None when no rule applies.
        """
        for block in FENCED_BLOCK.finditer(text):
            body = block.group(1).strip()
            if body:
                return body

        for span in CommandGate._inline_spans(text):
            if _matches_command(span):
                return span.strip()

        if _matches_command(text):
            return text.strip()

        return None

    @staticmethod
    def assess_risk(command: str) -> RiskLevel:
        """
        Assign a risk tier to a command.

        The dangerous table is checked first (first match -> HIGH), then the
        medium table (first match -> MEDIUM); anything else is LOW.
        """
        cleaned = command.strip()

        for pattern in DANGEROUS_PATTERNS:
            if pattern.search(cleaned):
                logger.debug("[CommandGate] '%s' matched dangerous pattern %s", cleaned, pattern.pattern)
                return RiskLevel.HIGH

        for pattern in MEDIUM_RISK_PATTERNS:
            if pattern.search(cleaned):
                logger.debug("[CommandGate] '%s' matched medium-risk pattern %s", cleaned, pattern.pattern)
                return RiskLevel.MEDIUM

        return RiskLevel.LOW

    @staticmethod
    def create_request(command: str, intent: Optional[str] = None) -> ApprovalRequest:
        return ApprovalRequest(
            id=f"icerc-{uuid.uuid4()}",
            intent=intent or DEFAULT_INTENT,
            command=command,
            risk=CommandGate.assess_risk(command),
        )

    async def request_approval(self, request: ApprovalRequest) -> ApprovalDecision:
        """
        Submit a request to the approval actor and record its decision.

        Args:
            request (ApprovalRequest): The request to decide.

        Returns:
            ApprovalDecision: Exactly one decision for `request`, stamped now.

        Raises:
            Exception: Whatever the approval actor raises is propagated unchanged.
        """
        logger.info(
            "[CommandGate] Requesting approval for %s (risk=%s): %s",
            request.id, request.risk.value, request.command
        )
        approved = bool(await self.approver(request))
        label = getattr(self.approver, "label", "User")
        decision = ApprovalDecision(
            request_id=request.id,
            approved=approved,
            reason=f"{label} approved" if approved else f"{label} denied",
        )
        if approved:
            logger.info("[CommandGate] Request %s approved", request.id)
        else:
            logger.warning("[CommandGate] Request %s denied: %s", request.id, request.command)
        return decision
