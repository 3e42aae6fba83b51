"""
Application layer - Resolution, caching and dispatch.

This layer contains the components that resolve templates, cache reflective
lookups and dispatch calls made through logical interfaces.
It depends only on the Domain layer.
"""

from .dispatch import AdapterBase, DispatchAdapter, binding_of, is_adapter, unwrap
from .loading import TYPE_NAMES, ImportLoadingScope, NamespaceLoadingScope, TypeNameCache
from .mapper import ProxyMapper
from .provider_registry import ProviderRegistry
from .providers import (
    ConstantProvider,
    FactoryProvider,
    Provider,
    ProviderFactory,
    RegisteredProvider,
    StaticCallProvider,
)
from .resolver import MappingResolver
from .retention_manager import RetentionManager
from .type_cache import CachedMember, ConstructorHandle, FieldHandle, TypeCache, TypeEntry

__all__ = [
    "ProxyMapper",
    "MappingResolver",
    "ProviderRegistry",
    "RetentionManager",
    # Providers
    "Provider",
    "ConstantProvider",
    "RegisteredProvider",
    "StaticCallProvider",
    "FactoryProvider",
    "ProviderFactory",
    # Type loading
    "ImportLoadingScope",
    "NamespaceLoadingScope",
    "TypeNameCache",
    "TYPE_NAMES",
    # Reflection
    "TypeCache",
    "TypeEntry",
    "CachedMember",
    "FieldHandle",
    "ConstructorHandle",
    # Dispatch
    "DispatchAdapter",
    "AdapterBase",
    "is_adapter",
    "unwrap",
    "binding_of",
]
