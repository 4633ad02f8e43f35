"""
Extension mechanism and the extensions shipped with the orchestrator.

Network-backed extensions live in their own modules and are imported directly
(`from extensions.openai_extension import OpenAIBackendExtension`) or through
`build_extensions` when enabled in configuration.
"""

from .base import Extension
from .factory import build_extensions
from .logger_extension import LoggerExtension
from .metrics_extension import MetricsExtension
from .registry import DuplicateExtensionError, ExtensionError, ExtensionRegistry

__all__ = [
    "Extension",
    "ExtensionError",
    "DuplicateExtensionError",
    "ExtensionRegistry",
    "LoggerExtension",
    "MetricsExtension",
    "build_extensions",
]
