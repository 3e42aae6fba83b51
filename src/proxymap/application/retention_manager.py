from typing import Dict, Optional

from proxymap.domain import IProvider, IRetentionManager, ProviderError, ProxyMapException, RetentionType


class RetentionManager(IRetentionManager):
    """Applies LAZY and CACHED retention to provider values.

    CACHED values are stored per provider the first time a non-None value is
    produced. Threads racing on the first computation may both call the
    provider, but every caller receives the value that was stored first.

    Attributes:
        _cache: Values of CACHED providers keyed by provider.
    """

    def __init__(self) -> None:
        """Initialize the retention manager with an empty cache."""
        self._cache: Dict[IProvider, str] = {}

    def get_or_compute(self, variable: str, provider: IProvider) -> Optional[str]:
        """Return the value of ``provider`` according to its retention.

        Args:
            variable: The variable being substituted, used for error reporting.
            provider: The provider to read.

        Returns:
            The provided value, or None when the provider has no value.
            - LAZY: Always calls the provider.
            - CACHED: Returns the stored value or computes and stores it.

        Raises:
            ProviderError: If the provider raises an unexpected exception.
        """
        if provider.retention == RetentionType.CACHED:
            cached = self._cache.get(provider)
            if cached is not None:
                return cached
            value = self._compute(variable, provider)
            if value is None:
                # Nothing to freeze yet, the next resolution asks again
                return None
            return self._cache.setdefault(provider, value)

        return self._compute(variable, provider)

    def _compute(self, variable: str, provider: IProvider) -> Optional[str]:
        try:
            value = provider.get()
        except ProxyMapException:
            raise
        except Exception as e:
            raise ProviderError(variable, f"{type(e).__name__}: {e}") from e
        return None if value is None else str(value)

    def clear_cache(self) -> None:
        """Forget every cached value.

        Useful for testing or after reconfiguring providers.
        """
        self._cache.clear()
