"""
Domain layer - Core concepts of interface adaptation.

This layer contains the value objects, markers and contracts used to map
logical interfaces onto concrete types. It has no dependencies on other layers.
"""

from .enums import ProviderKind, RetentionType
from .exceptions import (
    CircularVariableError,
    ConfigurationError,
    MemberNotFoundError,
    MissingMarkerError,
    ProviderError,
    ProxyMapException,
    ResolutionError,
    TypeNotFoundError,
)
from .interfaces import ILoadingScope, IProvider, IProviderRegistry, IResolver, IRetentionManager
from .markers import MARKERS_ATTRIBUTE, adapts, declared_markers, field_proxy, renamed
from .models import (
    AdaptsMarker,
    FieldMarker,
    MappingDocument,
    MemberDescriptor,
    ProviderDescriptor,
    RenameEntry,
    RenameMarker,
)

__all__ = [
    # Enums
    "RetentionType",
    "ProviderKind",
    # Exceptions
    "ProxyMapException",
    "ConfigurationError",
    "MissingMarkerError",
    "ResolutionError",
    "TypeNotFoundError",
    "MemberNotFoundError",
    "CircularVariableError",
    "ProviderError",
    # Interfaces
    "IProvider",
    "IProviderRegistry",
    "IRetentionManager",
    "ILoadingScope",
    "IResolver",
    # Markers
    "MARKERS_ATTRIBUTE",
    "adapts",
    "renamed",
    "field_proxy",
    "declared_markers",
    # Models
    "MemberDescriptor",
    "RenameEntry",
    "ProviderDescriptor",
    "MappingDocument",
    "AdaptsMarker",
    "RenameMarker",
    "FieldMarker",
]
