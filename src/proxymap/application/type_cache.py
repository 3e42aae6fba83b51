"""Application layer - Reflective member cache.

Looking members up by name, checking their shape and reading their markers
is the expensive part of every dispatched call. ``TypeCache`` keeps one
``TypeEntry`` per concrete type and each entry memoizes its lookups, so that
after the first call through an adapter only dictionary reads remain.

Lookups try the public name first and then the non-public spellings Python
uses: ``_name`` and the name-mangled ``_Class__name`` of every class in the
MRO. Misses are memoized as well; entries are never invalidated, so members
added to a type after they were first looked up are not seen.
"""

import inspect
import logging
import threading
import types
import typing
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Sequence, Tuple, Type, TypeVar

from proxymap.domain import ConfigurationError, MemberDescriptor, declared_markers

logger = logging.getLogger(__name__)

M = TypeVar("M")

_MISSING = object()

CONSTRUCTOR_NAME = "__init__"


def qualified_name(cls: Type) -> str:
    """Return ``module.QualifiedName`` for ``cls`` (bare name for builtins)."""
    module = getattr(cls, "__module__", None)
    qualname = getattr(cls, "__qualname__", cls.__name__)
    if module in (None, "builtins"):
        return qualname
    return f"{module}.{qualname}"


def normalize_hint(hint: Any) -> Type:
    """Reduce a type hint to the class used in member descriptors.

    ``Optional[X]`` becomes ``X``, generic aliases become their origin and
    anything that is not a class becomes ``object``.
    """
    if isinstance(hint, type):
        return hint
    if hint is None:
        return type(None)
    origin = typing.get_origin(hint)
    if origin is typing.Union or origin is types.UnionType:
        members = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        if len(members) == 1:
            return normalize_hint(members[0])
        return object
    if isinstance(origin, type):
        return origin
    return object


def _is_routine(handle: Any) -> bool:
    return isinstance(handle, (staticmethod, classmethod)) or callable(handle)


def _is_declared_function(handle: Any) -> bool:
    return inspect.isfunction(handle) or isinstance(handle, (staticmethod, classmethod))


def _accepts(handle: Any, count: int) -> bool:
    """Check that ``handle`` can be called with ``count`` positional arguments."""
    if isinstance(handle, staticmethod):
        function, offset = handle.__func__, 0
    elif isinstance(handle, classmethod):
        function, offset = handle.__func__, 1
    elif inspect.isfunction(handle) or inspect.ismethoddescriptor(handle):
        function, offset = handle, 1
    else:
        function, offset = handle, 0
    return _binds(function, offset, count)


def _binds(function: Any, offset: int, count: int) -> bool:
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError):
        # Some builtins expose no signature; their shape cannot be checked.
        return True
    parameters = list(signature.parameters.values())[offset:]
    try:
        signature.replace(parameters=parameters).bind(*range(count))
    except TypeError:
        return False
    return True


def _owner_namespace(owner: Type) -> Dict[str, Any]:
    """Names string hints of ``owner`` members may refer to besides module globals.

    Covers the owner classes of the MRO themselves and the classes nested in
    them, so self-referencing and nested interfaces resolve even when they are
    not reachable from their module.
    """
    namespace: Dict[str, Any] = {}
    for klass in reversed(owner.__mro__):
        if klass is object:
            continue
        namespace.update((name, value) for name, value in vars(klass).items() if isinstance(value, type))
        namespace[klass.__name__] = klass
    return namespace


def _type_hints(function: Any, owner: Type) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(function, localns=_owner_namespace(owner))
    except NameError as e:
        raise ConfigurationError(
            f"Cannot resolve the type hints of {qualified_name(owner)}.{function.__name__}: {e}. "
            "Declare the referenced types at module level or in the owner class"
        ) from e
    except (TypeError, AttributeError):
        return dict(getattr(function, "__annotations__", {}))


class CachedMember:
    """A resolved method together with its lazily captured metadata.

    Attributes:
        name: The real attribute name the member was found under.
        owner: The type the member was looked up on.
        handle: The raw class attribute (function, staticmethod, ...).
    """

    def __init__(self, name: str, owner: Type, handle: Any) -> None:
        self.name = name
        self.owner = owner
        self.handle = handle
        self._lock = threading.Lock()
        self._markers: Optional[Mapping[type, Any]] = None
        self._shape: Optional[Tuple[Tuple[Type, ...], Any]] = None

    @property
    def function(self) -> Any:
        """The underlying function, unwrapped from static/class method objects."""
        if isinstance(self.handle, (staticmethod, classmethod)):
            return self.handle.__func__
        return self.handle

    @property
    def markers(self) -> Mapping[type, Any]:
        """Markers declared on the member, captured once and frozen."""
        markers = self._markers
        if markers is None:
            with self._lock:
                if self._markers is None:
                    self._markers = declared_markers(self.handle)
                markers = self._markers
        return markers

    def marker(self, marker_type: Type[M]) -> Optional[M]:
        """Return the marker of ``marker_type`` declared on the member, if any."""
        return self.markers.get(marker_type)

    def _ensure_shape(self) -> Tuple[Tuple[Type, ...], Any]:
        shape = self._shape
        if shape is None:
            function = self.function
            hints = _type_hints(function, self.owner)
            try:
                parameters = list(inspect.signature(function).parameters.values())
            except (TypeError, ValueError):
                parameters = []
            if not isinstance(self.handle, staticmethod):
                parameters = parameters[1:]
            parameter_types = tuple(
                normalize_hint(hints.get(parameter.name, object))
                for parameter in parameters
                if parameter.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
            )
            shape = (parameter_types, hints.get("return"))
            self._shape = shape
        return shape

    @property
    def parameter_types(self) -> Tuple[Type, ...]:
        """Declared positional parameter types, excluding ``self``/``cls``."""
        return self._ensure_shape()[0]

    @property
    def return_type(self) -> Any:
        """Declared return type hint, or None when not annotated."""
        return self._ensure_shape()[1]

    def bind(self, target: Optional[Any]) -> Callable[..., Any]:
        """Return the member bound to ``target`` (or to the owner when None)."""
        if not hasattr(type(self.handle), "__get__"):
            return self.handle
        return self.handle.__get__(target, self.owner)

    def invoke(self, target: Optional[Any], *args: Any, **kwargs: Any) -> Any:
        """Call the member on ``target``. Exceptions propagate unchanged."""
        return self.bind(target)(*args, **kwargs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CachedMember):
            return NotImplemented
        return self.owner is other.owner and self.name == other.name

    def __hash__(self) -> int:
        return hash((self.owner, self.name))

    def __repr__(self) -> str:
        return f"CachedMember({qualified_name(self.owner)}.{self.name})"


class FieldHandle:
    """Accessor for a resolved field of a type.

    Attributes:
        name: The real attribute name.
        owner: The type the field was resolved on.
    """

    def __init__(self, name: str, owner: Type) -> None:
        self.name = name
        self.owner = owner

    def get(self, target: Optional[Any]) -> Any:
        """Read the field from ``target``, or from the owner type when None."""
        return getattr(self.owner if target is None else target, self.name)

    def set(self, target: Optional[Any], value: Any) -> None:
        """Assign the field on ``target``, or on the owner type when None."""
        setattr(self.owner if target is None else target, self.name, value)

    def __repr__(self) -> str:
        return f"FieldHandle({qualified_name(self.owner)}.{self.name})"


class ConstructorHandle:
    """Constructor of a type matching a given parameter shape."""

    def __init__(self, owner: Type, parameter_types: Tuple[Type, ...]) -> None:
        self.owner = owner
        self.parameter_types = parameter_types

    def invoke(self, *args: Any, **kwargs: Any) -> Any:
        """Create a new instance. Exceptions propagate unchanged."""
        return self.owner(*args, **kwargs)

    def __repr__(self) -> str:
        params = ", ".join(param.__name__ for param in self.parameter_types)
        return f"ConstructorHandle({qualified_name(self.owner)}({params}))"


class TypeEntry:
    """Memoized reflective data of one concrete type.

    Attributes:
        cls: The concrete type.
        name: Its qualified name.
    """

    def __init__(self, cls: Type) -> None:
        self.cls = cls
        self.name = qualified_name(cls)
        self._lock = threading.Lock()
        self._methods: Dict[MemberDescriptor, Optional[CachedMember]] = {}
        self._fields: Dict[str, Optional[FieldHandle]] = {}
        self._constructors: Dict[MemberDescriptor, Optional[ConstructorHandle]] = {}
        self._markers: Optional[Mapping[type, Any]] = None
        self._logical_members: Optional[Mapping[str, CachedMember]] = None

    def _memoize(self, cache: Dict[Any, Any], key: Any, compute: Callable[[], Any]) -> Any:
        found = cache.get(key, _MISSING)
        if found is not _MISSING:
            return found
        computed = compute()
        with self._lock:
            return cache.setdefault(key, computed)

    def _candidate_names(self, name: str) -> Iterator[str]:
        yield name
        if name.startswith("__") and name.endswith("__"):
            return
        seen = {name}
        candidates = [] if name.startswith("_") else [f"_{name}"]
        bare = name.lstrip("_")
        for klass in self.cls.__mro__:
            stripped = klass.__name__.lstrip("_")
            if klass is not object and stripped:
                candidates.append(f"_{stripped}__{bare}")
        for candidate in candidates:
            if candidate not in seen:
                seen.add(candidate)
                yield candidate

    def method(self, descriptor: MemberDescriptor) -> Optional[CachedMember]:
        """Return the method matching ``descriptor``, or None.

        Args:
            descriptor: Real name and parameter types of the wanted method.
        """
        return self._memoize(self._methods, descriptor, lambda: self._find_method(descriptor))

    def _find_method(self, descriptor: MemberDescriptor) -> Optional[CachedMember]:
        count = len(descriptor.parameter_types)
        for index, candidate in enumerate(self._candidate_names(descriptor.name)):
            handle = inspect.getattr_static(self.cls, candidate, _MISSING)
            if handle is _MISSING or not _is_routine(handle) or not _accepts(handle, count):
                continue
            if index:
                logger.debug("Using non-public member %s.%s for %s", self.name, candidate, descriptor)
            return CachedMember(candidate, self.cls, handle)
        logger.debug("No method matching %s on %s", descriptor, self.name)
        return None

    def field(self, name: str) -> Optional[FieldHandle]:
        """Return the field declared on the type under ``name``, or None.

        Declared fields are class attributes that are not methods (including
        properties and slots) and annotated attributes.
        """
        return self._memoize(self._fields, name, lambda: self._find_field(name))

    def _find_field(self, name: str) -> Optional[FieldHandle]:
        for candidate in self._candidate_names(name):
            if self._declares_field(candidate):
                return FieldHandle(candidate, self.cls)
        logger.debug("No field %s declared on %s", name, self.name)
        return None

    def _declares_field(self, name: str) -> bool:
        for klass in self.cls.__mro__:
            if klass is object:
                continue
            namespace = vars(klass)
            if name in namespace:
                return not _is_routine(namespace[name])
            if name in inspect.get_annotations(klass):
                return True
        return False

    def instance_field(self, instance: Any, name: str) -> Optional[FieldHandle]:
        """Find an attribute that only exists on ``instance``.

        Instance attributes are not part of the type's shape, so the result is
        not memoized.
        """
        attributes = getattr(instance, "__dict__", {})
        for candidate in self._candidate_names(name):
            if candidate in attributes:
                return FieldHandle(candidate, self.cls)
        return None

    def constructor(self, parameter_types: Sequence[Type] = ()) -> Optional[ConstructorHandle]:
        """Return the constructor accepting ``parameter_types``, or None."""
        parameter_types = tuple(parameter_types)
        descriptor = MemberDescriptor(name=CONSTRUCTOR_NAME, parameter_types=parameter_types)
        return self._memoize(
            self._constructors,
            descriptor,
            lambda: ConstructorHandle(self.cls, parameter_types)
            if _binds(self.cls, 0, len(parameter_types))
            else None,
        )

    @property
    def markers(self) -> Mapping[type, Any]:
        """Markers declared directly on the type."""
        markers = self._markers
        if markers is None:
            with self._lock:
                if self._markers is None:
                    self._markers = declared_markers(self.cls)
                markers = self._markers
        return markers

    def marker(self, marker_type: Type[M]) -> Optional[M]:
        """Return the marker of ``marker_type`` declared on the type, if any."""
        return self.markers.get(marker_type)

    def logical_members(self) -> Mapping[str, CachedMember]:
        """Return the members an adapter has to dispatch, by name.

        A member is logical when it is abstract or carries a marker. Other
        methods keep their own implementation.
        """
        members = self._logical_members
        if members is None:
            abstract = getattr(self.cls, "__abstractmethods__", frozenset())
            found: Dict[str, CachedMember] = {}
            for name in dir(self.cls):
                if name.startswith("__") and name.endswith("__"):
                    continue
                handle = inspect.getattr_static(self.cls, name, _MISSING)
                if handle is _MISSING or not _is_declared_function(handle):
                    continue
                if name in abstract or declared_markers(handle):
                    found[name] = CachedMember(name, self.cls, handle)
            with self._lock:
                if self._logical_members is None:
                    self._logical_members = MappingProxyType(found)
                members = self._logical_members
        return members

    def __repr__(self) -> str:
        return f"TypeEntry({self.name})"


class TypeCache:
    """Shared cache holding one ``TypeEntry`` per concrete type.

    Entries are retained for the lifetime of the cache.
    """

    def __init__(self) -> None:
        self._entries: Dict[Type, TypeEntry] = {}
        self._lock = threading.Lock()

    def entry(self, cls: Type) -> TypeEntry:
        """Return the entry of ``cls``, creating it on first reference."""
        found = self._entries.get(cls)
        if found is not None:
            return found
        with self._lock:
            return self._entries.setdefault(cls, TypeEntry(cls))

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, cls: object) -> bool:
        return cls in self._entries

    def __len__(self) -> int:
        return len(self._entries)
