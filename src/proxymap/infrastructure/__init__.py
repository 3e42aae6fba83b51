"""
Infrastructure layer - Tooling around the mapper.

This layer contains helpers for applications and test suites using proxymap.
It depends on both Application and Domain layers.
"""

from . import testing

__all__ = [
    "testing",
]
