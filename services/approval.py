"""
Approval actors for the command gate.

An approval actor is any async callable that takes an `ApprovalRequest` and
resolves to True (approve) or False (deny). Its optional `label` attribute names
the decider in the recorded decision reason. Two actors ship with the repository:

- ConsoleApprover: shows the request on the terminal and asks a human.
- PolicyApprover: decides automatically by comparing the request's risk tier
  against a configured threshold; used by the HTTP surface and in tests.

`build_approver(config)` picks one from the `approval` section of CONFIG.
"""

import asyncio
import logging
import sys
from typing import Any, Callable, Dict, Optional, TextIO

from shared.models import ApprovalRequest, RiskLevel

logger = logging.getLogger(__name__)

RISK_MARKERS = {
    RiskLevel.LOW: "LOW",
    RiskLevel.MEDIUM: "MEDIUM (!)",
    RiskLevel.HIGH: "HIGH (!!)",
}


class ConsoleApprover:
    """
    Interactive approval prompt on a text console.

    The blocking `input()` call runs in a worker thread so the event loop keeps
    running while the human decides. The prompt channel is single-flight: callers
    must not issue a second request before the first resolves (the orchestrator
    serializes approval calls).

    Args:
        input_func (Callable[[str], str]): Line reader, `input` by default.
        output (TextIO): Stream the request block is written to, stdout by default.
    """

    label = "User"

    def __init__(self, input_func: Callable[[str], str] = input, output: Optional[TextIO] = None) -> None:
        self.input_func = input_func
        self.output = output if output is not None else sys.stdout

    def render(self, request: ApprovalRequest) -> str:
        rule = "=" * 60
        return "\n".join([
            "",
            rule,
            "SECURITY APPROVAL REQUIRED",
            rule,
            f"Intent:  {request.intent}",
            f"Command: {request.command}",
            f"Risk:    {RISK_MARKERS[request.risk]}",
            rule,
        ])

    async def __call__(self, request: ApprovalRequest) -> bool:
        print(self.render(request), file=self.output)
        answer = await asyncio.to_thread(self.input_func, "Approve command execution? [y/N]: ")
        return answer.strip().lower() in ("y", "yes")


class PolicyApprover:
    """
    Non-interactive approval policy.

    Approves a request when its risk is at or below `max_auto_approve_risk` and
    denies it otherwise. A threshold of "none" denies everything.

    Args:
        max_auto_approve_risk (str): One of "none", "low", "medium", "high".
    """

    label = "Policy"

    def __init__(self, max_auto_approve_risk: str = "low") -> None:
        threshold = max_auto_approve_risk.strip().lower()
        if threshold == "none":
            self.threshold: Optional[RiskLevel] = None
        else:
            self.threshold = RiskLevel(threshold)

    async def __call__(self, request: ApprovalRequest) -> bool:
        approved = self.threshold is not None and request.risk.rank <= self.threshold.rank
        logger.info(
            "[PolicyApprover] %s %s (risk=%s, threshold=%s)",
            "Approving" if approved else "Denying",
            request.id,
            request.risk.value,
            self.threshold.value if self.threshold else "none",
        )
        return approved


def build_approver(config: Dict[str, Any]) -> Callable:
    """
    Build the approval actor selected by configuration.

    Args:
        config (Dict[str, Any]): The global CONFIG mapping.

    Returns:
        Callable: A `ConsoleApprover` for mode "console", otherwise a `PolicyApprover`.

    Raises:
        ValueError: If the configured mode is unsupported.
    """
    approval_cfg = config.get("approval", {}) or {}
    mode = str(approval_cfg.get("mode", "policy")).strip().lower()
    if mode == "console":
        return ConsoleApprover()
    if mode == "policy":
        return PolicyApprover(str(approval_cfg.get("max_auto_approve_risk", "low")))
    raise ValueError(f"Unsupported approval mode: {mode}")
