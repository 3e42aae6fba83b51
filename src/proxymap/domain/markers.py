"""Declarative markers for logical interfaces.

Markers are plain value objects stored on the decorated class or function
when the interface is defined. The type cache reads them back once per
member and keeps them frozen afterwards.

Example:
    >>> @adapts("@base@.Player")
    ... class PlayerView(ABC):
    ...     @renamed("getHealth@version@")
    ...     @abstractmethod
    ...     def health(self) -> float: ...
    ...
    ...     @field_proxy("name")
    ...     def name(self, value: str = ...) -> str: ...
"""

from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, TypeVar, Union

from proxymap.domain.models import AdaptsMarker, FieldMarker, RenameMarker

T = TypeVar("T")

MARKERS_ATTRIBUTE = "__proxymap_markers__"


def _attach(obj: T, marker: Any) -> T:
    holder = obj.__func__ if isinstance(obj, (staticmethod, classmethod)) else obj
    markers = dict(vars(holder).get(MARKERS_ATTRIBUTE, {}))
    markers[type(marker)] = marker
    setattr(holder, MARKERS_ATTRIBUTE, markers)
    return obj


def adapts(target: str) -> Callable[[T], T]:
    """Declare the concrete type a logical interface adapts.

    Args:
        target: Type template of the adapted type, may contain variables.
    """
    marker = AdaptsMarker(target=target)

    def decorator(cls: T) -> T:
        return _attach(cls, marker)

    return decorator


def renamed(target: str) -> Callable[[T], T]:
    """Resolve a logical method through ``target`` instead of its own name.

    Args:
        target: Member name template, may contain variables.
    """
    marker = RenameMarker(target=target)

    def decorator(func: T) -> T:
        return _attach(func, marker)

    return decorator


def field_proxy(field: Union[Optional[str], Callable[..., Any]] = None) -> Any:
    """Turn a logical method into a field getter/setter.

    Called without arguments the method returns the field value; called with
    one argument it assigns the field and returns the argument.

    Args:
        field: Field name template. The method name is used when omitted.
            May also be used bare as ``@field_proxy``.
    """
    if callable(field):
        return _attach(field, FieldMarker())

    marker = FieldMarker(field=field)

    def decorator(func: T) -> T:
        return _attach(func, marker)

    return decorator


def declared_markers(obj: Any) -> Mapping[type, Any]:
    """Return the markers declared directly on ``obj``.

    Markers inherited from base classes are not included.
    """
    if isinstance(obj, (staticmethod, classmethod)):
        obj = obj.__func__
    try:
        namespace = vars(obj)
    except TypeError:
        return MappingProxyType({})
    return MappingProxyType(dict(namespace.get(MARKERS_ATTRIBUTE, {})))
