"""
Extension factory (configured built-in extensions).

Turns `config["extensions"]["enabled"]` into extension instances, in the listed
order, for the orchestrator to install at construction. The network-backed
extension is imported lazily so that deployments not enabling it never touch the
OpenAI SDK configuration or require API keys.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from .base import Extension
from .logger_extension import LoggerExtension
from .metrics_extension import MetricsExtension

logger = logging.getLogger(__name__)


def build_extensions(config: Dict[str, Any]) -> List[Extension]:
    """
    Build the extensions enabled by configuration.

    Args:
        config (Dict[str, Any]): The global CONFIG mapping (not just the extensions section).

    Returns:
        List[Extension]: Fresh, not yet installed extensions in configuration order.

    Raises:
        ValueError: If an enabled name is not a built-in extension.
    """
    ext_cfg = config.get("extensions", {}) or {}
    enabled = ext_cfg.get("enabled", []) or []
    logger.info("Configured extensions: %s", ", ".join(enabled) or "none")

    extensions: List[Extension] = []
    for name in enabled:
        if name == "logger":
            log_file = (ext_cfg.get("logger", {}) or {}).get("log_file") or None
            extensions.append(LoggerExtension(log_file=log_file))
        elif name == "metrics":
            extensions.append(MetricsExtension())
        elif name == "openai-backend":
            from .openai_extension import OpenAIBackendExtension  # local import to avoid hard dep on keys

            provider = (ext_cfg.get("openai_backend", {}) or {}).get("provider", "openai")
            extensions.append(OpenAIBackendExtension(provider=provider, config=config))
        else:
            raise ValueError(f"Unsupported extension: {name}")
    return extensions
