"""
Extension that switches an orchestrator onto an OpenAI-compatible backend.

On install the active backend is remembered and replaced with an
`OpenAICompletionBackend`; on uninstall the remembered backend is put back.
The API key is validated when the backend is built, so a missing key fails the
install and the orchestrator keeps its previous backend.
"""

import logging
from typing import Any, Dict, Optional

from llm_cloud.base import CompletionBackend
from llm_cloud.provider import OpenAICompletionBackend
from .base import Extension

logger = logging.getLogger(__name__)


class OpenAIBackendExtension(Extension):
    """
    Args:
        provider (str): "openai" or "nebius".
        client: Optional pre-built `AsyncOpenAI` client (tests inject a mock here).
        config (Optional[Dict[str, Any]]): Global configuration; defaults to CONFIG.
    """

    name = "openai-backend"
    version = "1.0.0"

    def __init__(self, provider: str = "openai", client: Any = None,
                 config: Optional[Dict[str, Any]] = None) -> None:
        self.provider = provider
        self.client = client
        self.config = config
        self._previous: Optional[CompletionBackend] = None

    def install(self, handle: Any) -> None:
        backend = OpenAICompletionBackend(provider=self.provider, client=self.client, config=self.config)
        self._previous = handle.backend
        handle.set_backend(backend)
        logger.info("[%s] v%s installed, completions now served by %s", self.name, self.version, backend.name)

    def uninstall(self, handle: Any) -> None:
        if self._previous is not None:
            handle.set_backend(self._previous)
            self._previous = None
        logger.info("[%s] v%s uninstalled", self.name, self.version)
