"""
Registry holder for hot reload.

The holder owns the reference to the live Registry. Readers take
`holder.current` once per operation and work on that instance; reloading
builds a complete new Registry and swaps the reference, so no reader can
observe a partially updated tree.

The host application creates one holder at startup and injects it where
needed; there is no module-level instance.
"""

import logging
import threading
from pathlib import Path

from module_access.registry.loader import load_registry_file
from module_access.registry.registry import Registry

logger = logging.getLogger(__name__)


class RegistryHolder:
    """Atomic reference to the live Registry."""

    def __init__(self, registry: Registry):
        self._registry = registry
        self._swap_lock = threading.Lock()

    @property
    def current(self) -> Registry:
        """The live registry. Safe to read without locking."""
        return self._registry

    def swap(self, registry: Registry) -> Registry:
        """
        Replace the live registry.

        Args:
            registry: Fully loaded replacement

        Returns:
            The registry that was live before the swap
        """
        with self._swap_lock:
            previous = self._registry
            self._registry = registry

        if previous.fingerprint == registry.fingerprint:
            logger.info("[ACCESS:REGISTRY] Swapped in registry with unchanged content")
        else:
            logger.info(
                f"[ACCESS:REGISTRY] Swapped registry {previous.fingerprint[:12]} -> "
                f"{registry.fingerprint[:12]}"
            )
        return previous

    def reload_from(self, path: str | Path) -> Registry:
        """
        Load a registry from disk and make it live.

        If loading fails the RegistryError propagates and the live
        registry is left untouched.

        Returns:
            The newly live registry
        """
        registry = load_registry_file(path)
        self.swap(registry)
        return registry
