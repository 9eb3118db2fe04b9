# lb_ipam/core/domain_events.py
"""
Domain Events - reason codes reported by the controller

Each event is reported against one service and carries enough context
to be understood without looking at allocator state.
"""

from typing import Any, Dict, Optional


# =============================================================================
# Event Types (Constants)
# =============================================================================

class EventTypes:
    """All reason codes produced by the allocation engine"""

    # Successful assignment, carries the resulting address
    IP_ALLOCATED = "IPAllocated"

    # Allocation attempt raised an AllocationError
    ALLOCATION_FAILED = "AllocationFailed"

    # Neither an address nor an error came back from allocation
    INTERNAL_ERROR = "InternalError"


# =============================================================================
# Event Payload Builders
# =============================================================================

def ip_allocated_payload(key: str, ip_address: str, pool: Optional[str] = None) -> Dict[str, Any]:
    """Build payload for IPAllocated event"""
    return {
        "service": key,
        "ip_address": ip_address,
        "pool": pool,
    }


def allocation_failed_payload(
    key: str,
    error_code: str,
    error: str,
    requested_ip: Optional[str] = None,
    requested_pool: Optional[str] = None,
) -> Dict[str, Any]:
    """Build payload for AllocationFailed event"""
    return {
        "service": key,
        "error_code": error_code,
        "error": error,
        "requested_ip": requested_ip,
        "requested_pool": requested_pool,
    }
