"""Application layer - Variable value providers."""

import logging
from typing import Any, Callable, List, Optional, Tuple, Type, Union

from proxymap.domain import (
    IProvider,
    IResolver,
    MemberDescriptor,
    ProviderDescriptor,
    ProviderKind,
    RetentionType,
)

logger = logging.getLogger(__name__)


class Provider(IProvider):
    """Provider built from a fixed value or a supplier function.

    Example:
        >>> Provider.of("v1_20")                   # fixed, cached
        >>> Provider.lazy(lambda: state.version)   # recomputed every use
        >>> Provider.cached(detect_version)        # computed once
    """

    def __init__(
        self,
        value: Union[Any, Callable[[], Any]],
        retention: RetentionType = RetentionType.CACHED,
    ) -> None:
        """Initialize the provider.

        Args:
            value: The value, or a callable producing it. Non-string results
                are converted with ``str``; None means "no value".
            retention: Retention policy of the value.
        """
        self._supplier: Callable[[], Any] = value if callable(value) else (lambda: value)
        self._retention = RetentionType(retention)

    @classmethod
    def of(cls, value: Any) -> "Provider":
        """Create a cached provider of a fixed value."""
        return cls(lambda: value, RetentionType.CACHED)

    @classmethod
    def lazy(cls, supplier: Callable[[], Any]) -> "Provider":
        """Create a provider calling ``supplier`` on every resolution."""
        return cls(supplier, RetentionType.LAZY)

    @classmethod
    def cached(cls, supplier: Callable[[], Any]) -> "Provider":
        """Create a provider calling ``supplier`` until it yields a value."""
        return cls(supplier, RetentionType.CACHED)

    def get(self) -> Optional[str]:
        value = self._supplier()
        return None if value is None else str(value)

    @property
    def retention(self) -> RetentionType:
        return self._retention

    def __repr__(self) -> str:
        return f"Provider(retention={self._retention})"


class ConstantProvider(IProvider):
    """Provider of a literal value declared in a mapping document."""

    def __init__(self, value: str, retention: RetentionType = RetentionType.CACHED) -> None:
        self.value = value
        self._retention = retention

    def get(self) -> Optional[str]:
        return self.value

    @property
    def retention(self) -> RetentionType:
        return self._retention

    def __repr__(self) -> str:
        return f"ConstantProvider({self.value!r})"


class RegisteredProvider(IProvider):
    """Delegates to a provider registered from code under another name.

    The registration is looked up on every call, so it may happen after the
    mapping document was loaded. Yields no value while nothing is registered.
    """

    def __init__(self, resolver: IResolver, name: str, retention: RetentionType) -> None:
        self._resolver = resolver
        self.name = name
        self._retention = retention

    def get(self) -> Optional[str]:
        provider = self._resolver.registry.get_registered_provider(self.name)
        if provider is None:
            logger.debug("No provider registered under '%s'", self.name)
            return None
        try:
            return provider.get()
        except Exception:
            logger.warning("Registered provider '%s' failed", self.name, exc_info=True)
            return None

    @property
    def retention(self) -> RetentionType:
        return self._retention

    def __repr__(self) -> str:
        return f"RegisteredProvider({self.name!r})"


class StaticCallProvider(IProvider):
    """Calls a static member of a named type and provides its result.

    The type and the parameter types are templates resolved through the
    resolver. Any failure is logged and yields no value.
    """

    def __init__(
        self,
        resolver: IResolver,
        target: str,
        member: str,
        params: List[str],
        arguments: List[Any],
        retention: RetentionType,
    ) -> None:
        self._resolver = resolver
        self.target = target
        self.member = member
        self.params = list(params)
        self.arguments = list(arguments)
        self._retention = retention
        self._parameter_types: Optional[Tuple[Type, ...]] = None

    def _resolve_parameter_types(self) -> Tuple[Type, ...]:
        if self._parameter_types is None:
            self._parameter_types = tuple(self._resolver.resolve_class(param).cls for param in self.params)
        return self._parameter_types

    def get(self) -> Optional[str]:
        try:
            entry = self._resolver.resolve_class(self.target)
            descriptor = MemberDescriptor(
                name=self._resolver.resolve(self.member),
                parameter_types=self._resolve_parameter_types(),
            )
            member = entry.method(descriptor)
            if member is None:
                logger.warning("Static provider member %s not found on %s", descriptor, entry.name)
                return None
            value = member.invoke(None, *self.arguments)
        except Exception:
            logger.warning("Static provider %s.%s failed", self.target, self.member, exc_info=True)
            return None
        return None if value is None else str(value)

    @property
    def retention(self) -> RetentionType:
        return self._retention

    def __repr__(self) -> str:
        return f"StaticCallProvider({self.target!r}, {self.member!r})"


class FactoryProvider(IProvider):
    """Instantiates a named provider class and provides its value.

    The class is created with no arguments every time a value is computed.
    Any failure is logged and yields no value.
    """

    def __init__(self, resolver: IResolver, target: str, retention: RetentionType) -> None:
        self._resolver = resolver
        self.target = target
        self._retention = retention

    def get(self) -> Optional[str]:
        try:
            entry = self._resolver.resolve_class(self.target)
            constructor = entry.constructor()
            if constructor is None:
                logger.warning("Provider class %s has no no-argument constructor", entry.name)
                return None
            value = constructor.invoke().get()
        except Exception:
            logger.warning("Provider class %s failed", self.target, exc_info=True)
            return None
        return None if value is None else str(value)

    @property
    def retention(self) -> RetentionType:
        return self._retention

    def __repr__(self) -> str:
        return f"FactoryProvider({self.target!r})"


class ProviderFactory:
    """Builds providers from the variable declarations of a mapping document.

    Attributes:
        resolver: The resolver the built providers resolve types with.
    """

    def __init__(self, resolver: IResolver) -> None:
        self.resolver = resolver

    def from_config(self, value: Union[str, ProviderDescriptor]) -> IProvider:
        """Create the provider declared by ``value``.

        Args:
            value: A literal string or a validated provider descriptor.

        Returns:
            A provider matching the declaration.
        """
        if isinstance(value, str):
            return ConstantProvider(value)

        if value.kind == ProviderKind.VALUE:
            return ConstantProvider(value.value, value.retention)
        if value.kind == ProviderKind.REGISTERED:
            return RegisteredProvider(self.resolver, value.value, value.retention)
        if value.kind == ProviderKind.STATIC:
            return StaticCallProvider(
                self.resolver,
                value.target,
                value.value,
                value.params,
                value.arguments,
                value.retention,
            )
        return FactoryProvider(self.resolver, value.target, value.retention)
