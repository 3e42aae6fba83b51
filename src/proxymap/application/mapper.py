from typing import Any, Optional, Sequence, Tuple, Type, TypeVar

from proxymap.application.dispatch import DispatchAdapter, unwrap
from proxymap.domain import (
    AdaptsMarker,
    ILoadingScope,
    IProvider,
    IResolver,
    MemberNotFoundError,
    MissingMarkerError,
)

I = TypeVar("I")


class ProxyMapper:
    """Entry point wrapping objects in logical interfaces.

    A logical interface is an abstract class decorated with ``@adapts``
    naming the concrete type it controls. Its abstract methods, and any
    method carrying ``@renamed`` or ``@field_proxy``, are dispatched to the
    wrapped target through the resolver. Other methods run as written.

    Attributes:
        _resolver: Resolves type, member and field names.

    Example:
        >>> @adapts("@base@.@v@.Player")
        ... class PlayerView(ABC):
        ...     @abstractmethod
        ...     def health(self) -> float: ...
        >>>
        >>> mapper = ProxyMapper(MappingResolver.from_file("mapping.json"))
        >>> mapper.register_provider("v", Provider.of("v1_20"))
        >>> mapper.wrap(PlayerView, player).health()
    """

    def __init__(self, resolver: IResolver) -> None:
        """Initialize the mapper.

        Args:
            resolver: The resolver used for every adapter of this mapper.
        """
        self._resolver = resolver

    @property
    def resolver(self) -> IResolver:
        return self._resolver

    def register_provider(self, name: str, provider: IProvider) -> None:
        """Register ``provider`` for the variable ``name`` on the resolver."""
        self._resolver.registry.register_provider(name, provider)

    def wrap(self, interface: Type[I], target: Any, loading_scope: Optional[ILoadingScope] = None) -> I:
        """Wrap ``target`` in the logical ``interface``.

        Adapters given as target are unwrapped first, so an adapter never
        wraps another adapter.

        Args:
            interface: The logical interface, decorated with ``@adapts``.
            target: The instance calls are forwarded to.
            loading_scope: Where to locate the adapted type; the import
                system when None.

        Returns:
            An instance of a generated subclass of ``interface``.

        Raises:
            MissingMarkerError: If the interface does not declare ``@adapts``.
            TypeNotFoundError: If the adapted type cannot be located.
        """
        binding = DispatchAdapter(self, interface, unwrap(target), loading_scope)
        return binding.create_adapter()

    def static(self, interface: Type[I], loading_scope: Optional[ILoadingScope] = None) -> I:
        """Bind ``interface`` to the adapted type itself, without an instance.

        Calls reach static and class methods and fields are read from and
        written to the type.
        """
        return self.wrap(interface, None, loading_scope)

    def new_instance(
        self,
        interface: Type[I],
        parameter_types: Sequence[Type] = (),
        *args: Any,
        loading_scope: Optional[ILoadingScope] = None,
        **kwargs: Any,
    ) -> I:
        """Create an instance of the adapted type and wrap it in ``interface``.

        Args:
            interface: The logical interface, decorated with ``@adapts``.
            parameter_types: Parameter types of the wanted constructor.
                Logical interfaces are replaced by the types they adapt.
            *args: Constructor arguments; adapters are unwrapped.
            loading_scope: Where to locate the adapted type.
            **kwargs: Keyword constructor arguments; adapters are unwrapped.

        Raises:
            MissingMarkerError: If the interface does not declare ``@adapts``.
            MemberNotFoundError: If no constructor accepts the parameter types.

        Example:
            >>> vector = mapper.new_instance(VectorView, (float, float, float), 1.0, 2.0, 3.0)
        """
        marker = self._resolver.type_cache.entry(interface).marker(AdaptsMarker)
        if marker is None:
            raise MissingMarkerError(interface)

        target_entry = self._resolver.resolve_class(marker.target, loading_scope)
        resolved_types = self.substitute_parameter_types(parameter_types, loading_scope)
        constructor = target_entry.constructor(resolved_types)
        if constructor is None:
            raise MemberNotFoundError(
                "constructor",
                target_entry.cls.__name__,
                target_entry.cls.__name__,
                resolved_types,
                interface,
                target_entry.cls,
            )

        instance = constructor.invoke(
            *(unwrap(arg) for arg in args),
            **{key: unwrap(value) for key, value in kwargs.items()},
        )
        return self.wrap(interface, instance, loading_scope)

    def substitute_parameter_types(
        self,
        parameter_types: Sequence[Type],
        loading_scope: Optional[ILoadingScope] = None,
    ) -> Tuple[Type, ...]:
        """Replace logical interfaces among ``parameter_types`` by their adapted types."""
        substituted = []
        for parameter_type in parameter_types:
            marker = self._resolver.type_cache.entry(parameter_type).marker(AdaptsMarker)
            if marker is not None:
                parameter_type = self._resolver.resolve_class(marker.target, loading_scope).cls
            substituted.append(parameter_type)
        return tuple(substituted)
