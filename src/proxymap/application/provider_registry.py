import threading
from typing import Dict, Optional

from proxymap.domain import IProvider, IProviderRegistry


class ProviderRegistry(IProviderRegistry):
    """Holds the providers registered from code for one resolver.

    Registered providers take precedence over the variables declared in the
    mapping document. A later registration for the same name replaces the
    earlier one.

    Attributes:
        _providers: Dictionary mapping variable names to providers.
    """

    def __init__(self, providers: Optional[Dict[str, IProvider]] = None) -> None:
        """Initialize the registry.

        Args:
            providers: Optional initial registrations.
        """
        self._providers: Dict[str, IProvider] = dict(providers or {})
        self._lock = threading.Lock()

    def register_provider(self, name: str, provider: IProvider) -> None:
        """Register ``provider`` for the variable ``name``.

        Example:
            >>> registry.register_provider("version", Provider.lazy(lambda: detect_version()))
        """
        with self._lock:
            self._providers[name] = provider

    def get_registered_provider(self, name: str) -> Optional[IProvider]:
        return self._providers.get(name)

    def unregister_provider(self, name: str) -> Optional[IProvider]:
        """Remove and return the provider registered for ``name``."""
        with self._lock:
            return self._providers.pop(name, None)

    def copy(self) -> "ProviderRegistry":
        """Return a registry holding the same registrations."""
        with self._lock:
            return ProviderRegistry(self._providers)

    def clear(self) -> None:
        with self._lock:
            self._providers.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._providers

    def __len__(self) -> int:
        return len(self._providers)
