"""
External process adapters.

Generator tasks reach external tools (docker, kubectl, helm, the
generated deploy scripts) only through an ``AdapterRegistry``. Tests
register a ``MockAdapter`` under the same name instead.
"""

from kubegen.adapters.base import Adapter, ExecutionContext
from kubegen.adapters.mock import MockAdapter
from kubegen.adapters.registry import AdapterRegistry, default_registry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "default_registry",
]
