"""
Base class for orchestrator extensions.

An extension is an externally supplied unit of behavior. At install time it
receives the orchestrator handle and may:
- subscribe to the event feed (`handle.subscribe(Event.MESSAGE, listener)`),
- register named zero-argument actions (`handle.add_action("metrics", fn)`),
- replace the active completion backend (`handle.set_backend(backend)`),
- augment the lane classifier's pattern tables (`handle.classifier.add_pattern(...)`).

Subclassing is optional: the registry accepts any object with `name`, `version`
and `install(handle)`, and calls `uninstall(handle)` only when it is defined.
"""

from abc import ABC, abstractmethod
from typing import Any


class Extension(ABC):
    """
    Abstract base class for orchestrator extensions.

    Attributes:
        name (str): Unique key within a registry.
        version (str): Free-form version string reported on installation.
    """

    name: str = ""
    version: str = "0.0.0"

    @abstractmethod
    def install(self, handle: Any) -> None:
        """
        Install the extension into an orchestrator.

        Args:
            handle: The orchestrator instance the extension is being registered with.
        """
        pass

    def uninstall(self, handle: Any) -> None:
        """Undo whatever `install` set up. The default does nothing."""
        pass
