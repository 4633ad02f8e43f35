"""
Registry tracking installed extensions by name.

Names are unique within a registry. A second registration under a taken name is
rejected with `DuplicateExtensionError` before the newcomer's install hook runs,
so the extension already registered stays installed and untouched.
"""

import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class ExtensionError(Exception):
    """Base class for extension registry errors."""
    pass


class DuplicateExtensionError(ExtensionError):
    """Raised when an extension name is already registered."""

    def __init__(self, name: str):
        super().__init__(f'Extension "{name}" is already registered')
        self.name = name


class ExtensionRegistry:
    """Insertion-ordered map of extension name -> extension."""

    def __init__(self) -> None:
        self._extensions: Dict[str, Any] = {}

    def register(self, extension: Any, handle: Any) -> None:
        """
        Install an extension and record it under its name.

        Args:
            extension: Object with `name`, `version` and `install(handle)`.
            handle: The orchestrator handle passed to `install`.

        Raises:
            DuplicateExtensionError: If `extension.name` is already registered.
            Exception: Anything raised by `install`; the extension is then not recorded.
        """
        if extension.name in self._extensions:
            logger.error("[ExtensionRegistry] Rejected duplicate extension \"%s\"", extension.name)
            raise DuplicateExtensionError(extension.name)

        extension.install(handle)
        self._extensions[extension.name] = extension
        logger.info("[ExtensionRegistry] Extension \"%s\" v%s registered successfully",
                    extension.name, extension.version)

    def unregister(self, name: str, handle: Any) -> bool:
        """
        Run an extension's teardown hook (if it has one) and forget it.

        Args:
            name (str): Name of the extension to remove.
            handle: The orchestrator handle passed to `uninstall`.

        Returns:
            bool: True if the extension was removed, False if no extension had that name.
        """
        extension = self._extensions.get(name)
        if extension is None:
            logger.warning("[ExtensionRegistry] Extension \"%s\" not found", name)
            return False

        uninstall = getattr(extension, "uninstall", None)
        if callable(uninstall):
            uninstall(handle)

        del self._extensions[name]
        logger.info("[ExtensionRegistry] Extension \"%s\" unregistered successfully", name)
        return True

    def list(self) -> List[Any]:
        return list(self._extensions.values())

    def get(self, name: str) -> Optional[Any]:
        return self._extensions.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._extensions

    def __len__(self) -> int:
        return len(self._extensions)
