from types import TracebackType
from typing import Any, Dict, Mapping, Optional, Set, Type

from proxymap.application import TYPE_NAMES, MappingResolver, NamespaceLoadingScope, Provider
from proxymap.domain import IProvider, RetentionType


class TestResolver(MappingResolver):
    """Mapping resolver for testing with variable override capabilities.

    Shares the mapping document of a parent resolver and starts from a copy
    of its registered providers, so overrides never leak into the parent.
    Overridden variables take precedence over both the copied registrations
    and the declared variables.

    This is useful for:
    - Pinning version variables to the version under test
    - Simulating providers that yield no value
    - Isolating tests from cached variable values

    Attributes:
        _parent_resolver: The resolver the mapping is inherited from.
        _overrides: Names of the variables overridden in this resolver.

    Example:
        >>> resolver = MappingResolver.from_file("mapping.json")
        >>>
        >>> def test_player_health():
        ...     with TestResolver(resolver) as test_resolver:
        ...         test_resolver.override_variable("version", "v1_20")
        ...         view = ProxyMapper(test_resolver).wrap(PlayerView, FakePlayer())
        ...         assert view.health() == 20.0
    """

    __test__ = False  # Tell pytest not to collect this class as a test

    def __init__(self, parent_resolver: Optional[MappingResolver] = None) -> None:
        """Initialize the test resolver.

        Args:
            parent_resolver: Optional resolver to inherit the mapping and
                registrations from. If None, starts from an empty mapping.
        """
        if parent_resolver is None:
            super().__init__()
        else:
            super().__init__(document=parent_resolver.document, registry=parent_resolver.registry.copy())
        self._parent_resolver = parent_resolver
        self._overrides: Set[str] = set()

    def override_variable(
        self,
        name: str,
        value: Any,
        retention: RetentionType = RetentionType.CACHED,
    ) -> None:
        """Replace the value of a variable for this resolver only.

        Args:
            name: The variable name, without the surrounding ``@``.
            value: The value, a supplier callable or an ``IProvider``.
            retention: Retention used when ``value`` is not a provider.

        Example:
            >>> test_resolver.override_variable("version", "v1_19")
            >>> test_resolver.resolve("game.@version@.Player")
            'game.v1_19.Player'
        """
        provider = value if isinstance(value, IProvider) else Provider(value, retention)
        self._overrides.add(name)
        self._retention_manager.clear_cache()
        self.register_provider(name, provider)

    def reset_overrides(self) -> None:
        """Remove all overrides and restore the parent registrations.

        Useful for cleaning up between test cases.
        """
        self._overrides.clear()
        self._retention_manager.clear_cache()
        if self._parent_resolver is not None:
            self._registry = self._parent_resolver.registry.copy()
        else:
            self._registry.clear()

    @property
    def overrides(self) -> Set[str]:
        return set(self._overrides)

    def __enter__(self) -> "TestResolver":
        """Context manager entry - returns self."""
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> bool:
        """Context manager exit - automatically clean up overrides."""
        self.reset_overrides()
        return False


def create_test_resolver(
    document: Optional[Mapping[str, Any]] = None,
    **variables: Any,
) -> TestResolver:
    """Create a test resolver with pre-configured variable overrides.

    Convenience function for quickly setting up a resolver for a test.

    Args:
        document: Optional mapping document to start from.
        **variables: Variable values, suppliers or providers to override.

    Returns:
        TestResolver with the given overrides.

    Example:
        >>> resolver = create_test_resolver(base="tests.fakes", version="v2")
        >>> resolver.resolve("@base@.@version@.Player")
        'tests.fakes.v2.Player'
    """
    parent = MappingResolver.from_dict(document) if document is not None else None
    resolver = TestResolver(parent)

    for name, value in variables.items():
        resolver.override_variable(name, value)

    return resolver


class IsolatedTypeScope:
    """Context manager exposing fake types under the names a mapping expects.

    Yields a ``NamespaceLoadingScope`` and drops its entries from the global
    type-name cache on exit, so types registered by one test are never seen
    by another.

    Example:
        >>> with IsolatedTypeScope({"game.v1.Player": FakePlayer}) as scope:
        ...     view = mapper.wrap(PlayerView, FakePlayer(), loading_scope=scope)
        ...     assert view.health() == 20.0
    """

    def __init__(self, types: Optional[Mapping[str, Type]] = None) -> None:
        """Initialize the isolated scope.

        Args:
            types: Name to type table exposed by the scope.
        """
        self._types: Dict[str, Type] = dict(types or {})
        self._scope: Optional[NamespaceLoadingScope] = None

    def __enter__(self) -> NamespaceLoadingScope:
        """Enter the context and create the loading scope.

        Returns:
            The loading scope holding the registered types.
        """
        self._scope = NamespaceLoadingScope(self._types)
        return self._scope

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> bool:
        """Exit the context and forget every type loaded through the scope."""
        if self._scope is not None:
            TYPE_NAMES.forget(self._scope)
            self._scope = None
        return False
