"""
llm_cloud package: swappable text-completion backends.

Included modules:
- base: the `CompletionBackend` interface and `CompletionBackendError`
- mock_backend: deterministic in-memory backend used by default, in tests and demos
- provider: OpenAI-compatible network backend (OpenAI or Nebius endpoints)
- factory: selects the starting backend from configuration

The network backend is deliberately not imported here so that importing the
package never requires API credentials.
"""

from .base import CompletionBackend, CompletionBackendError
from .mock_backend import MockCompletionBackend

__all__ = [
    "CompletionBackend",
    "CompletionBackendError",
    "MockCompletionBackend",
]
