"""
shared/models.py

Common data models and type definitions used across the orchestration core.

This module contains the value objects that flow between the conversation log,
the lane classifier, the command gate, the orchestrator and its observers:
- Lane / Direction / RiskLevel: small enums that name the closed sets of values
- Message: one immutable entry of the conversation log
- ApprovalRequest / ApprovalDecision: the 1:1 pair produced for every embedded
  command detected in a completion
- LaneAnalysis: diagnostic breakdown of a classification

Pydantic models at the bottom describe the HTTP payloads served by `api/chat.py`.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def generate_message_id() -> str:
    """
    Generates a unique message ID using UUID4.

    Returns:
        str: A UUID4 string (e.g., "a1b2c3d4-e5f6-7890-abcd-ef1234567890")
    """
    return str(uuid.uuid4())


class Lane(Enum):
    """
    Handling lanes an inbound message can be routed to.

    - STRATEGIC: planning, design and advice; the non-executing default lane
    - IMPLEMENTATION: action-oriented work that may produce command proposals
    """
    STRATEGIC = "strategic"
    IMPLEMENTATION = "implementation"


class Direction(Enum):
    """Which side of the conversation produced a message."""
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class RiskLevel(Enum):
    """
    Risk tier assigned to an extracted command.

    Members are ordered: LOW < MEDIUM < HIGH, which approval policies use to
    compare a request against an auto-approve threshold.
    """
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]


_RISK_RANK = {RiskLevel.LOW: 1, RiskLevel.MEDIUM: 2, RiskLevel.HIGH: 3}


@dataclass(frozen=True)
class Message:
    """
    A single entry of the conversation log.

    Messages are frozen: once appended they never change. The only sanctioned
    rewrite (replacing a denied command proposal) swaps the entry for a copy made
    with `with_content`, keeping the same id, position and timestamp.
    """
    direction: Direction
    content: str
    lane: Optional[Lane] = None
    id: str = field(default_factory=generate_message_id)
    timestamp: datetime = field(default_factory=utc_now)

    def with_content(self, content: str) -> "Message":
        return replace(self, content=content)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the message into a plain dictionary for event payloads and logging.

        Returns:
            Dict[str, Any]: Keys 'id', 'direction', 'content', 'lane' (None when the
            message carries no lane tag) and 'timestamp' as an ISO-8601 string.
        """
        return {
            'id': self.id,
            'direction': self.direction.value,
            'content': self.content,
            'lane': self.lane.value if self.lane else None,
            'timestamp': self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class ApprovalRequest:
    """
    A request to accept one embedded command, created once per detected command
    per orchestration round.
    """
    id: str
    intent: str
    command: str
    risk: RiskLevel
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'intent': self.intent,
            'command': self.command,
            'risk': self.risk.value,
            'timestamp': self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class ApprovalDecision:
    """The single outcome recorded for an `ApprovalRequest`."""
    request_id: str
    approved: bool
    reason: str
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'request_id': self.request_id,
            'approved': self.approved,
            'reason': self.reason,
            'timestamp': self.timestamp.isoformat(),
        }


@dataclass
class LaneAnalysis:
    """
    Diagnostic breakdown of a classification.

    `matches` lists every pattern that fired as (lane, pattern source) pairs in
    evaluation order. `tag` is the lane named by an explicit tag, if any; when it
    is set it decides `lane` regardless of the scores.
    """
    lane: Lane
    matches: List[Tuple[Lane, str]]
    scores: Dict[Lane, int]
    tag: Optional[Lane] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'lane': self.lane.value,
            'tag': self.tag.value if self.tag else None,
            'matches': [{'lane': lane.value, 'pattern': source} for lane, source in self.matches],
            'scores': {lane.value: score for lane, score in self.scores.items()},
        }


class ChatRequest(BaseModel):
    """Body of `POST /api/chat`."""
    message: str = Field(..., min_length=1, description="Free-text input for one orchestration round")


class MessagePayload(BaseModel):
    """
    Wire form of a `Message` returned by the HTTP surface.

    Mirrors the `message` event payload so a frontend can render either source
    with the same code.
    """
    id: str = Field(..., description="Unique message identifier")
    direction: str = Field(..., description="'inbound' or 'outbound'")
    content: str = Field(..., description="Message text (denial notice if a command was denied)")
    lane: Optional[str] = Field(None, description="Lane tag, absent on inbound messages")
    timestamp: str = Field(..., description="ISO-8601 creation time")

    @classmethod
    def from_message(cls, message: Message) -> "MessagePayload":
        return cls(**message.to_dict())


class ExtensionPayload(BaseModel):
    name: str
    version: str
