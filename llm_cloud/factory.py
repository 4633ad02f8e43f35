"""
Backend factory (mock / OpenAI / Nebius switch).

Centralizes which `CompletionBackend` the orchestrator starts with, based on
`config["backend"]["provider"]`. The network-backed module is imported lazily so
that running on the mock backend never touches the OpenAI SDK configuration or
requires API keys.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from .base import CompletionBackend
from .mock_backend import MockCompletionBackend

logger = logging.getLogger(__name__)


def build_backend(config: Dict[str, Any]) -> CompletionBackend:
    """
    Build the completion backend selected by configuration.

    Args:
        config (Dict[str, Any]): The global CONFIG mapping (not just the backend section).

    Returns:
        CompletionBackend: A mock backend or an OpenAI-compatible network backend.

    Raises:
        ValueError: If the provider value is unsupported.
        RuntimeError: If the network backend's API key is missing.
    """
    backend_cfg = config.get("backend", {}) or {}
    provider = str(backend_cfg.get("provider", "mock")).strip().lower()
    logger.info("Provider selection (completion backend): %s", provider)

    if provider == "mock":
        mock_cfg = backend_cfg.get("mock", {}) or {}
        return MockCompletionBackend(response_delay=float(mock_cfg.get("response_delay", 0.1)))
    if provider in ("openai", "nebius"):
        from .provider import OpenAICompletionBackend  # local import to avoid hard dep on keys

        return OpenAICompletionBackend(provider=provider, config=config)

    raise ValueError(f"Unsupported completion backend: {provider}")
