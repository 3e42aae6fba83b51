from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional, Type

from proxymap.domain.enums import RetentionType

if TYPE_CHECKING:
    from proxymap.application.type_cache import CachedMember, FieldHandle, TypeCache, TypeEntry


class IProvider(ABC):
    """Abstract source of a string value for one variable."""

    @abstractmethod
    def get(self) -> Optional[str]:
        """Return the provided value, or None when no value is available."""

    @property
    @abstractmethod
    def retention(self) -> RetentionType:
        """Retention policy the resolver applies to the provided value."""


class IProviderRegistry(ABC):
    """Abstract registry of programmatically registered providers."""

    @abstractmethod
    def register_provider(self, name: str, provider: IProvider) -> None:
        """Register ``provider`` for the variable ``name``.

        Args:
            name: The variable name, without the surrounding ``@``.
            provider: The provider to register.
        """

    @abstractmethod
    def get_registered_provider(self, name: str) -> Optional[IProvider]:
        """Return the provider registered for ``name``, if any."""


class IRetentionManager(ABC):
    """Abstract interface applying retention policies to provider values."""

    @abstractmethod
    def get_or_compute(self, variable: str, provider: IProvider) -> Optional[str]:
        """Return the provider value according to its retention policy.

        Args:
            variable: The variable the provider is substituted for.
            provider: The provider to read.
        """

    @abstractmethod
    def clear_cache(self) -> None:
        """Forget every cached value."""


class ILoadingScope(ABC):
    """Opaque context deciding where a named type is located."""

    @abstractmethod
    def load_type(self, name: str) -> Optional[Type]:
        """Return the type called ``name`` or None when it does not exist."""


class IResolver(ABC):
    """Abstract interface for template and member resolution."""

    @property
    @abstractmethod
    def registry(self) -> IProviderRegistry:
        """The registry of programmatically registered providers."""

    @property
    @abstractmethod
    def type_cache(self) -> "TypeCache":
        """The reflective cache shared by every adapter of this resolver."""

    @abstractmethod
    def resolve(self, template: str) -> str:
        """Substitute every resolvable ``@variable@`` token in ``template``."""

    @abstractmethod
    def resolve_member(self, owner_template: str, logical_name: str) -> str:
        """Return the real member name for ``logical_name`` on the owner type."""

    @abstractmethod
    def resolve_class(self, template: str, loading_scope: Optional[ILoadingScope] = None) -> "TypeEntry":
        """Resolve a type template to the cache entry of the concrete type.

        Raises:
            TypeNotFoundError: If no type exists under the resolved name.
        """

    @abstractmethod
    def owner_template(self, target_type: Type, interface_type: Optional[Type]) -> str:
        """Return the owner template member renames of ``target_type`` are declared under."""

    @abstractmethod
    def resolve_method(
        self,
        target_type: Type,
        interface_type: Optional[Type],
        logical_name: str,
        *parameter_types: Any,
    ) -> Optional["CachedMember"]:
        """Resolve the real method of ``target_type`` for a logical name."""

    @abstractmethod
    def resolve_field(
        self,
        cls: Type,
        template: str,
        instance: Optional[Any] = None,
    ) -> Optional["FieldHandle"]:
        """Resolve the field of ``cls`` named by ``template``."""
