# lb_ipam/core/exceptions.py
"""
Allocation errors

Every error raised by the Allocator leaves Allocation State exactly as it
was before the call. The Reconciler reports all of them as AllocationFailed.
"""

from typing import Optional


class AllocationError(Exception):
    """Base class for all allocation failures"""

    error_code = "ALLOCATION_FAILED"


class InvalidAddressError(AllocationError):
    """Requested address does not parse"""

    error_code = "INVALID_ADDRESS"

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f"invalid spec.loadBalancerIP {raw!r}")


class UnknownPoolError(AllocationError):
    """Requested pool is not in the registry"""

    error_code = "UNKNOWN_POOL"

    def __init__(self, pool: str):
        self.pool = pool
        super().__init__(f"pool {pool!r} does not exist")


class AddressInUseError(AllocationError):
    """Address is already owned by a different service"""

    error_code = "ADDRESS_IN_USE"

    def __init__(self, address: str, owner: str):
        self.address = address
        self.owner = owner
        super().__init__(f"address already belongs to other service {owner!r}")


class AddressOutsidePoolsError(AllocationError):
    """Address does not lie in any configured CIDR"""

    error_code = "ADDRESS_OUTSIDE_POOLS"

    def __init__(self, address: str):
        self.address = address
        super().__init__("address is not part of any known pool")


class PoolExhaustedError(AllocationError):
    """No free address in the searched pool(s)"""

    error_code = "POOL_EXHAUSTED"

    def __init__(self, pool: Optional[str] = None):
        self.pool = pool
        if pool is None:
            super().__init__("no addresses available in any pool")
        else:
            super().__init__(f"no addresses available in pool {pool!r}")
