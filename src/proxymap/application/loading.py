"""Application layer - Locating types by name."""

import builtins
import importlib
import logging
import threading
from typing import Any, Dict, Mapping, Optional, Tuple, Type

from proxymap.domain import ILoadingScope

logger = logging.getLogger(__name__)


def _walk(obj: Any, path: str) -> Any:
    for part in path.split("."):
        obj = getattr(obj, part, None)
        if obj is None:
            return None
    return obj


class ImportLoadingScope(ILoadingScope):
    """Locates types through the import system.

    Accepted names:
    - ``package.module.Class`` (the longest importable prefix is the module)
    - ``package.module:Outer.Inner`` (explicit module/attribute split)
    - ``int`` (bare names are looked up in builtins)
    """

    def load_type(self, name: str) -> Optional[Type]:
        module_name, _, attribute_path = name.partition(":")
        if attribute_path:
            module = self._import(module_name)
            found = None if module is None else _walk(module, attribute_path)
            return found if isinstance(found, type) else None

        parts = name.split(".")
        if len(parts) == 1:
            found = getattr(builtins, name, None)
            return found if isinstance(found, type) else None

        for index in range(len(parts) - 1, 0, -1):
            module = self._import(".".join(parts[:index]))
            if module is None:
                continue
            found = _walk(module, ".".join(parts[index:]))
            return found if isinstance(found, type) else None
        return None

    @staticmethod
    def _import(module_name: str) -> Any:
        try:
            return importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            # Only a missing module along the requested path means "not here";
            # a missing dependency of an existing module is a real error.
            if e.name and (module_name == e.name or module_name.startswith(e.name + ".")):
                return None
            raise

    def __repr__(self) -> str:
        return "ImportLoadingScope()"


class NamespaceLoadingScope(ILoadingScope):
    """Locates types in an explicit name to type table.

    Useful to isolate mappings from the import system, for example to expose
    several versions of a type under the names a mapping expects.

    Example:
        >>> scope = NamespaceLoadingScope({"game.v2.Player": PlayerV2})
        >>> view = mapper.wrap(PlayerView, player, loading_scope=scope)
    """

    def __init__(self, types: Optional[Mapping[str, Type]] = None) -> None:
        self._types: Dict[str, Type] = dict(types or {})

    def register(self, name: str, cls: Type) -> None:
        """Expose ``cls`` under ``name``."""
        self._types[name] = cls

    def load_type(self, name: str) -> Optional[Type]:
        return self._types.get(name)

    def __repr__(self) -> str:
        return f"NamespaceLoadingScope({sorted(self._types)!r})"


DEFAULT_SCOPE = ImportLoadingScope()


class TypeNameCache:
    """Process-wide cache of types located by name.

    Entries are keyed by name for the default scope and by (name, scope) for
    explicit scopes. Failed lookups are not cached since a later import may
    make the type available. Entries live for the whole process unless
    removed with ``forget`` or ``clear``.
    """

    def __init__(self) -> None:
        self._by_name: Dict[str, Type] = {}
        self._by_scope: Dict[Tuple[str, ILoadingScope], Type] = {}
        self._lock = threading.Lock()

    def lookup(self, name: str, loading_scope: Optional[ILoadingScope] = None) -> Optional[Type]:
        """Return the type called ``name`` in ``loading_scope``.

        Args:
            name: Fully resolved type name.
            loading_scope: Scope to search; the import system when None.
        """
        if loading_scope is None:
            cached = self._by_name.get(name)
            if cached is not None:
                return cached
            loaded = DEFAULT_SCOPE.load_type(name)
            if loaded is None:
                return None
            logger.debug("Loaded type %s as %r", name, loaded)
            with self._lock:
                return self._by_name.setdefault(name, loaded)

        key = (name, loading_scope)
        cached = self._by_scope.get(key)
        if cached is not None:
            return cached
        loaded = loading_scope.load_type(name)
        if loaded is None:
            return None
        logger.debug("Loaded type %s as %r from %r", name, loaded, loading_scope)
        with self._lock:
            return self._by_scope.setdefault(key, loaded)

    def forget(self, loading_scope: ILoadingScope) -> None:
        """Drop every entry cached for ``loading_scope``."""
        with self._lock:
            for key in [key for key in self._by_scope if key[1] is loading_scope]:
                del self._by_scope[key]

    def clear(self) -> None:
        with self._lock:
            self._by_name.clear()
            self._by_scope.clear()


TYPE_NAMES = TypeNameCache()
