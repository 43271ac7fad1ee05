"""
Core session engine.

The `SessionLifecycleManager` creates and reuses sessions through the
`InstanceRegistry`; the `SessionController` drives each session through its
request and download cycle.
"""

from .controller import SessionController
from .lifecycle import SessionLifecycleManager
from .registry import InstanceRegistry, get_registry

__all__ = [
    "InstanceRegistry",
    "SessionController",
    "SessionLifecycleManager",
    "get_registry",
]
