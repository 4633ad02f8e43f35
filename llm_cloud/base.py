"""
Backend-agnostic completion interface.

This module defines the contract any text-completion capability must fulfil to be
used by the orchestrator. Application logic speaks only to this small surface,
while backend-specific concerns (authentication, HTTP transport, retries,
response normalization) stay inside the concrete implementation.

Concrete backends shipped with the repository:
- `llm_cloud.mock_backend.MockCompletionBackend`: deterministic canned replies for
  local runs and tests, no credentials or network needed.
- `llm_cloud.provider.OpenAICompletionBackend`: any OpenAI-compatible chat
  completion endpoint (OpenAI or Nebius).

The orchestrator does not require subclassing: any object with a `name` attribute
and an async `complete(history, lane)` method is accepted. The ABC below exists to
document the shape and to give implementers a checked starting point.
"""

from abc import ABC, abstractmethod
from typing import List

from shared.models import Lane, Message


class CompletionBackendError(Exception):
    """
    Raised when a backend cannot produce a completion.

    Backends translate their transport or SDK errors into this exception after any
    internal retries are exhausted, so the orchestrator can treat every backend
    failure the same way.
    """

    def __init__(self, backend: str, message: str):
        super().__init__(f"[{backend}] {message}")
        self.backend = backend


class CompletionBackend(ABC):
    """
    Abstract completion backend.

    Attributes:
        name (str): Short identifier used in logs, metrics labels and errors.
    """

    name: str = "backend"

    @abstractmethod
    async def complete(self, history: List[Message], lane: Lane) -> str:
        """
        Produce completion text for a conversation.

        Args:
            history (List[Message]): The full ordered conversation, oldest first,
                ending with the inbound message being answered.
            lane (Lane): The lane chosen for the inbound message; backends use it to
                select a system prompt or response style.

        Returns:
            str: The completion text.

        Raises:
            CompletionBackendError: If no completion could be produced.
        """
        raise NotImplementedError
