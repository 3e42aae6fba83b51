"""
Testing utilities module.

Provides helpers and utilities for testing code that calls through proxymap adapters.
"""

from .utilities import IsolatedTypeScope, TestResolver, create_test_resolver

__all__ = [
    "TestResolver",
    "create_test_resolver",
    "IsolatedTypeScope",
]
