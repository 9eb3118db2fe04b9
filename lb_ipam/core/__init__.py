"""
Core allocation engine

- pools:      named CIDR pools (read-only registry)
- iterator:   address successor / CIDR walk
- state:      bidirectional service <-> address mapping
- allocator:  locked allocation and assignment
- reconciler: per-service decision procedure
"""

__all__ = [
    "AddressPool",
    "PoolRegistry",
    "AllocationState",
    "Allocator",
    "Decision",
    "Reconciler",
    "AllocationError",
]

from .pools import AddressPool, PoolRegistry
from .state import AllocationState
from .allocator import Allocator
from .reconciler import Decision, Reconciler
from .exceptions import AllocationError
