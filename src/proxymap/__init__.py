"""
proxymap: Call version-varying and obfuscated classes through stable interfaces.

Public API exports for the proxymap package.
"""

# Application exports
from proxymap.application import (
    ImportLoadingScope,
    MappingResolver,
    NamespaceLoadingScope,
    Provider,
    ProxyMapper,
    is_adapter,
    unwrap,
)

# Domain exports
from proxymap.domain import (
    CircularVariableError,
    ConfigurationError,
    MemberNotFoundError,
    MissingMarkerError,
    ProviderError,
    ProxyMapException,
    ResolutionError,
    RetentionType,
    TypeNotFoundError,
    adapts,
    field_proxy,
    renamed,
)

__version__ = "0.1.0"

__all__ = [
    # Mapping
    "ProxyMapper",
    "MappingResolver",
    "Provider",
    "ImportLoadingScope",
    "NamespaceLoadingScope",
    "is_adapter",
    "unwrap",
    # Markers
    "adapts",
    "renamed",
    "field_proxy",
    # Enums
    "RetentionType",
    # Exceptions
    "ProxyMapException",
    "ConfigurationError",
    "MissingMarkerError",
    "ResolutionError",
    "TypeNotFoundError",
    "MemberNotFoundError",
    "CircularVariableError",
    "ProviderError",
]
