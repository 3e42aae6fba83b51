"""Application layer - Call interception for logical interfaces.

Every logical interface gets one generated adapter class: a subclass of the
interface whose logical members are replaced by trampolines. A trampoline
forwards the call to the ``DispatchAdapter`` bound to the adapter instance,
which resolves the real member of the adapted type and invokes it on the
wrapped target.
"""

import functools
import logging
import threading
import types
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple, Type

from proxymap.application.type_cache import CachedMember, TypeEntry, normalize_hint
from proxymap.domain import (
    AdaptsMarker,
    FieldMarker,
    ILoadingScope,
    MemberNotFoundError,
    MissingMarkerError,
    RenameMarker,
)

if TYPE_CHECKING:
    from proxymap.application.mapper import ProxyMapper

logger = logging.getLogger(__name__)

BINDING_ATTRIBUTE = "_proxymap_binding"


class AdapterBase:
    """Base class of every generated adapter class."""

    __slots__ = ()

    def __repr__(self) -> str:
        binding: DispatchAdapter = getattr(self, BINDING_ATTRIBUTE)
        return f"<{type(self).__name__} of {binding.target!r}>"


def is_adapter(obj: Any) -> bool:
    """Return True when ``obj`` is an adapter created by a mapper."""
    return isinstance(obj, AdapterBase)


def binding_of(adapter: Any) -> "DispatchAdapter":
    """Return the ``DispatchAdapter`` behind an adapter instance.

    Raises:
        TypeError: If ``adapter`` is not an adapter.
    """
    if not is_adapter(adapter):
        raise TypeError(f"{adapter!r} is not an adapter")
    return getattr(adapter, BINDING_ATTRIBUTE)


def unwrap(obj: Any) -> Any:
    """Return the target wrapped by ``obj`` if it is an adapter, else ``obj``."""
    if is_adapter(obj):
        return getattr(obj, BINDING_ATTRIBUTE).target
    return obj


def _trampoline(name: str, declared: Callable[..., Any]) -> Callable[..., Any]:
    def trampoline(self: Any, *args: Any, **kwargs: Any) -> Any:
        return getattr(self, BINDING_ATTRIBUTE).invoke(name, args, kwargs)

    # updated=() keeps __isabstractmethod__ and the markers off the trampoline
    functools.update_wrapper(trampoline, declared, updated=())
    return trampoline


_adapter_classes: Dict[Type, Type] = {}
_adapter_classes_lock = threading.Lock()


def adapter_class(interface_entry: TypeEntry) -> Type:
    """Return the generated adapter class of an interface.

    Classes are generated once per interface and shared by every mapper,
    since trampolines only look up the binding of the instance they run on.
    """
    interface = interface_entry.cls
    cls = _adapter_classes.get(interface)
    if cls is not None:
        return cls

    namespace: Dict[str, Any] = {
        name: _trampoline(name, member.function) for name, member in interface_entry.logical_members().items()
    }
    namespace["__slots__"] = (BINDING_ATTRIBUTE,)
    namespace["__module__"] = interface.__module__
    generated = types.new_class(
        f"{interface.__name__}Adapter",
        (interface, AdapterBase),
        exec_body=lambda ns: ns.update(namespace),
    )
    logger.debug("Generated adapter class for %s with members %s", interface_entry.name, sorted(namespace))
    with _adapter_classes_lock:
        return _adapter_classes.setdefault(interface, generated)


class DispatchAdapter:
    """Live binding of one logical interface to one target.

    The adapted concrete type is resolved once, when the binding is created.

    Attributes:
        interface: The logical interface.
        target: The wrapped instance, or None for static-only bindings.
        loading_scope: Scope used to locate the adapted type and the types
            of nested adapters.
        target_entry: Type cache entry of the adapted concrete type.
    """

    def __init__(
        self,
        mapper: "ProxyMapper",
        interface: Type,
        target: Optional[Any] = None,
        loading_scope: Optional[ILoadingScope] = None,
    ) -> None:
        """Bind ``interface`` to ``target``.

        Raises:
            MissingMarkerError: If the interface does not declare ``@adapts``.
            TypeNotFoundError: If the adapted type cannot be located.
        """
        self._mapper = mapper
        self._resolver = mapper.resolver
        self.interface = interface
        self.target = target
        self.loading_scope = loading_scope

        self.interface_entry = self._resolver.type_cache.entry(interface)
        marker = self.interface_entry.marker(AdaptsMarker)
        if marker is None:
            raise MissingMarkerError(interface)
        self.target_entry = self._resolver.resolve_class(marker.target, loading_scope)

    @property
    def target_type(self) -> Type:
        return self.target_entry.cls

    def create_adapter(self) -> Any:
        """Create the adapter instance dispatching through this binding."""
        cls = adapter_class(self.interface_entry)
        instance = object.__new__(cls)
        object.__setattr__(instance, BINDING_ATTRIBUTE, self)
        return instance

    def invoke(self, name: str, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Any:
        """Dispatch a call of the logical member ``name``.

        Args:
            name: The logical member called on the adapter.
            args: Positional arguments of the call.
            kwargs: Keyword arguments of the call.

        Returns:
            The result of the real member, wrapped in an adapter when the
            declared return type is itself a logical interface.

        Raises:
            MemberNotFoundError: If no real member matches after resolution.
            ConfigurationError: If a type hint of the interface member cannot be
                resolved.
        """
        member = self.interface_entry.logical_members()[name]
        unwrapped_args = tuple(unwrap(arg) for arg in args)
        unwrapped_kwargs = {key: unwrap(value) for key, value in kwargs.items()}

        field_marker = member.marker(FieldMarker)
        if field_marker is not None:
            return self._access_field(name, member, field_marker, args, kwargs, unwrapped_args, unwrapped_kwargs)

        parameter_types = self._mapper.substitute_parameter_types(member.parameter_types, self.loading_scope)

        rename_marker = member.marker(RenameMarker)
        logical_name = rename_marker.target if rename_marker is not None else name
        real_member = self._resolver.resolve_method(self.target_type, self.interface, logical_name, *parameter_types)
        if real_member is None:
            owner_template = self._resolver.owner_template(self.target_type, self.interface)
            raise MemberNotFoundError(
                "method",
                logical_name,
                self._resolver.resolve_member(owner_template, logical_name),
                parameter_types,
                self.interface,
                self.target_type,
                name,
            )

        result = real_member.invoke(self.target, *unwrapped_args, **unwrapped_kwargs)
        return self.wrap_result(result, member.return_type)

    def _access_field(
        self,
        name: str,
        member: CachedMember,
        marker: FieldMarker,
        args: Tuple[Any, ...],
        kwargs: Dict[str, Any],
        unwrapped_args: Tuple[Any, ...],
        unwrapped_kwargs: Dict[str, Any],
    ) -> Any:
        template = marker.field or name
        handle = self._resolver.resolve_field(self.target_type, template, instance=self.target)
        if handle is None:
            raise MemberNotFoundError(
                "field",
                template,
                self._resolver.resolve(template),
                (),
                self.interface,
                self.target_type,
                name,
            )

        if unwrapped_args or unwrapped_kwargs:
            if unwrapped_args:
                value, given = unwrapped_args[0], args[0]
            else:
                key = next(iter(unwrapped_kwargs))
                value, given = unwrapped_kwargs[key], kwargs[key]
            handle.set(self.target, value)
            return given

        return self.wrap_result(handle.get(self.target), member.return_type)

    def wrap_result(self, result: Any, return_type: Any) -> Any:
        """Wrap ``result`` when ``return_type`` is a logical interface."""
        if result is None or return_type is None:
            return result
        interface = normalize_hint(return_type)
        if interface is object or self._resolver.type_cache.entry(interface).marker(AdaptsMarker) is None:
            return result
        return self._mapper.wrap(interface, result, self.loading_scope)

    def __repr__(self) -> str:
        return f"DispatchAdapter({self.interface.__name__} -> {self.target_entry.name})"
