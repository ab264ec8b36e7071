"""Compute and network backends consumed by the reconciler.

The ``openstacksdk`` adapters live in :mod:`pod_routes.backends.openstack` and
are imported lazily by callers so the core stays importable for unit tests.
"""

from .base import ComputeBackend, NetworkBackend  # noqa: F401
from .memory import InMemoryCloud, InMemoryCompute, InMemoryNetwork  # noqa: F401

__all__ = [
    "ComputeBackend",
    "InMemoryCloud",
    "InMemoryCompute",
    "InMemoryNetwork",
    "NetworkBackend",
]
