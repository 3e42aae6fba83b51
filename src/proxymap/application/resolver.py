"""Application layer - Template and member name resolution."""

import logging
import re
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Type, Union

from pydantic import ValidationError

from proxymap.application.loading import TYPE_NAMES
from proxymap.application.provider_registry import ProviderRegistry
from proxymap.application.providers import ProviderFactory
from proxymap.application.retention_manager import RetentionManager
from proxymap.application.type_cache import CachedMember, FieldHandle, TypeCache, TypeEntry, qualified_name
from proxymap.domain import (
    AdaptsMarker,
    CircularVariableError,
    ConfigurationError,
    ILoadingScope,
    IProvider,
    IResolver,
    IRetentionManager,
    MappingDocument,
    MemberDescriptor,
    TypeNotFoundError,
)

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"@(\w+)@")


class MappingResolver(IResolver):
    """Resolves ``@variable@`` templates and member renames.

    Variables come from two places, checked in this order:
    1. Providers registered from code through ``register_provider``.
    2. Variables declared in the mapping document.

    A token whose variable is unknown, or whose provider yields no value, is
    left in place. Values may contain further tokens; they are resolved
    recursively and a cycle raises ``CircularVariableError``.

    Member renames are declared per owner type in the document's
    ``replacements`` section. Owner templates are resolved once, on the first
    member resolution, and the resulting index is kept for the lifetime of the
    resolver: providers changing afterwards do not move existing renames to a
    different owner.

    Attributes:
        _document: The parsed mapping document.
        _registry: Providers registered from code.
        _retention_manager: Applies LAZY/CACHED retention to values.
        _type_cache: Reflective cache shared by all adapters of this resolver.
        _local: Per-thread stack of the variables being substituted and the
            outermost template, used to report cycles.
    """

    def __init__(
        self,
        document: Optional[MappingDocument] = None,
        registry: Optional[ProviderRegistry] = None,
        retention_manager: Optional[IRetentionManager] = None,
        type_cache: Optional[TypeCache] = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            document: Parsed mapping document; an empty one when None.
            registry: Provider registry to use; a new one when None.
            retention_manager: Retention manager to use; a new one when None.
            type_cache: Type cache to use; a new one when None.
        """
        self._document = document if document is not None else MappingDocument()
        self._registry = registry if registry is not None else ProviderRegistry()
        self._retention_manager = retention_manager if retention_manager is not None else RetentionManager()
        self._type_cache = type_cache if type_cache is not None else TypeCache()
        self._local = threading.local()
        self._factory = ProviderFactory(self)
        self._declared_providers: Dict[str, IProvider] = {}
        self._rename_index: Optional[Dict[str, Dict[str, str]]] = None
        self._lock = threading.Lock()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MappingResolver":
        """Create a resolver from an already decoded mapping document.

        Raises:
            ConfigurationError: If the document is invalid.

        Example:
            >>> resolver = MappingResolver.from_dict({
            ...     "variables": {"base": "game.internal", "v": {"type": "registered", "value": "version"}},
            ...     "replacements": {"@base@.@v@.Player": [{"method": "health", "original": "a"}]},
            ... })
        """
        try:
            return cls(MappingDocument.model_validate(data))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid mapping document: {e}") from e

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "MappingResolver":
        """Create a resolver from a JSON mapping document.

        Raises:
            ConfigurationError: If the text is not a valid mapping document.
        """
        try:
            return cls(MappingDocument.model_validate_json(text))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid mapping document: {e}") from e

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "MappingResolver":
        """Create a resolver from a JSON mapping document on disk.

        Raises:
            ConfigurationError: If the file cannot be read or is invalid.
        """
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Cannot read mapping document {path}: {e}") from e
        return cls.from_json(text)

    @property
    def document(self) -> MappingDocument:
        return self._document

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    @property
    def type_cache(self) -> TypeCache:
        return self._type_cache

    def register_provider(self, name: str, provider: IProvider) -> None:
        """Register ``provider`` for the variable ``name``.

        Register before the first resolution that needs the value.
        """
        self._registry.register_provider(name, provider)

    def get_registered_provider(self, name: str) -> Optional[IProvider]:
        return self._registry.get_registered_provider(name)

    def resolve(self, template: str) -> str:
        """Substitute every resolvable ``@variable@`` token in ``template``.

        The string is rescanned until it no longer changes.

        Raises:
            CircularVariableError: If variables reference each other in a cycle.
            ProviderError: If a registered provider raises.

        Example:
            >>> resolver.register_provider("v", Provider.of("v1"))
            >>> resolver.resolve("game.@v@.Player")
            'game.v1.Player'
            >>> resolver.resolve("@unknown@.Player")
            '@unknown@.Player'
        """
        outermost = getattr(self._local, "template", None) is None
        if outermost:
            self._local.template = template
        try:
            current = template
            while "@" in current:
                substituted = TOKEN_PATTERN.sub(self._substitute, current)
                if substituted == current:
                    break
                current = substituted
        finally:
            if outermost:
                self._local.template = None
        if current != template:
            logger.debug("Resolved %r to %r", template, current)
        return current

    def _substitute(self, match: "re.Match[str]") -> str:
        value = self._variable_value(match.group(1))
        return match.group(0) if value is None else value

    def _variable_value(self, name: str) -> Optional[str]:
        provider = self._provider_for(name)
        if provider is None:
            return None

        stack = self._variable_stack()
        if name in stack:
            cycle = stack[stack.index(name) :] + [name]
            raise CircularVariableError(cycle, self._local.template)

        stack.append(name)
        try:
            value = self._retention_manager.get_or_compute(name, provider)
            return None if value is None else self.resolve(value)
        finally:
            stack.pop()

    def _variable_stack(self) -> List[str]:
        if not hasattr(self._local, "stack"):
            self._local.stack = []
        return self._local.stack

    def _provider_for(self, name: str) -> Optional[IProvider]:
        registered = self._registry.get_registered_provider(name)
        if registered is not None:
            return registered

        declared = self._declared_providers.get(name)
        if declared is not None:
            return declared
        declaration = self._document.variables.get(name)
        if declaration is None:
            return None
        provider = self._factory.from_config(declaration)
        with self._lock:
            return self._declared_providers.setdefault(name, provider)

    def _renames(self) -> Dict[str, Dict[str, str]]:
        index = self._rename_index
        if index is None:
            index = {}
            for owner_template, entries in self._document.replacements.items():
                members = index.setdefault(self.resolve(owner_template), {})
                for entry in entries:
                    members[entry.logical_name] = entry.real_name
            with self._lock:
                if self._rename_index is None:
                    self._rename_index = index
                    logger.debug("Built rename index for %d owner types", len(index))
                index = self._rename_index
        return index

    def resolve_member(self, owner_template: str, logical_name: str) -> str:
        """Return the real member name for ``logical_name`` on the owner type.

        The rename declared for (owner, logical name) wins. Otherwise the
        logical name is token-substituted and the substituted name is looked
        up among the renames once more.

        Args:
            owner_template: Type template of the owner, may contain variables.
            logical_name: Name used by the logical interface, may contain
                variables (e.g. ``"method@i@"``).
        """
        members = self._renames().get(self.resolve(owner_template), {})
        renamed = members.get(logical_name)
        if renamed is not None:
            return renamed
        substituted = self.resolve(logical_name)
        return members.get(substituted, substituted)

    def resolve_class(self, template: str, loading_scope: Optional[ILoadingScope] = None) -> TypeEntry:
        """Resolve a type template to the cache entry of the concrete type.

        Args:
            template: Type name template, e.g. ``"@base@.@v@.Player"``.
            loading_scope: Where to look the type up; the import system when None.

        Raises:
            TypeNotFoundError: If no type exists under the resolved name.
        """
        name = self.resolve(template)
        cls = TYPE_NAMES.lookup(name, loading_scope)
        if cls is None:
            raise TypeNotFoundError(template, name, loading_scope)
        return self._type_cache.entry(cls)

    def resolve_method(
        self,
        target_type: Type,
        interface_type: Optional[Type],
        logical_name: str,
        *parameter_types: Any,
    ) -> Optional[CachedMember]:
        """Resolve the real method of ``target_type`` for a logical name.

        Renames are looked up under the interface's ``@adapts`` template when
        the interface declares one, else under the target's qualified name.

        Args:
            target_type: The concrete type owning the method.
            interface_type: The logical interface the call comes from.
            logical_name: The logical (possibly templated) method name.
            *parameter_types: Parameter types with adapters already substituted.

        Returns:
            The cached member, or None when no member matches.
        """
        entry = self._type_cache.entry(target_type)
        owner_template = self.owner_template(target_type, interface_type)
        real_name = self.resolve_member(owner_template, logical_name)
        logger.debug(
            "Resolving %s.%s as %s.%s",
            getattr(interface_type, "__name__", None),
            logical_name,
            entry.name,
            real_name,
        )
        return entry.method(MemberDescriptor(name=real_name, parameter_types=parameter_types))

    def owner_template(self, target_type: Type, interface_type: Optional[Type]) -> str:
        """Return the owner template renames of ``target_type`` are declared under."""
        if interface_type is not None:
            marker = self._type_cache.entry(interface_type).marker(AdaptsMarker)
            if marker is not None:
                return marker.target
        return qualified_name(target_type)

    def resolve_field(self, cls: Type, template: str, instance: Optional[Any] = None) -> Optional[FieldHandle]:
        """Resolve the field of ``cls`` named by ``template``.

        Fields take no renames, only token substitution.

        Args:
            cls: The type owning the field.
            template: Field name template, e.g. ``"health@v@"``.
            instance: Optional instance to search when the type does not
                declare the field.
        """
        entry = self._type_cache.entry(cls)
        name = self.resolve(template)
        handle = entry.field(name)
        if handle is None and instance is not None:
            handle = entry.instance_field(instance, name)
        return handle
