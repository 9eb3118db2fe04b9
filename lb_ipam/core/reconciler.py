# lb_ipam/core/reconciler.py
"""
Reconciliation Engine

Drives one service toward its end state: a valid address recorded in the
assigned-ip annotation and reflected in status, or no address and an
AllocationFailed event explaining why.

The decision is computed once from the service as it arrives:

    valid recorded IP | still in a pool | requested IP changed | decision
    ------------------+-----------------+---------------------+---------------------
    no                | -               | -                   | CLEAR
    yes               | no              | -                   | CLEAR_AND_REALLOCATE
    yes               | yes             | yes                 | CLEAR_AND_REALLOCATE
    yes               | yes             | no                  | RETAIN

Both clearing decisions leave nothing recorded, so both are followed by an
allocation. Clearing and allocating are separate critical sections; the
caller guarantees one pass per service key at a time.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..schemas import LoadBalancerIngress, LoadBalancerStatus, Service, TrafficPolicy
from .allocator import Allocator
from .domain_events import EventTypes, allocation_failed_payload
from .events import EventRecorder, EventSeverity
from .exceptions import AllocationError
from .iterator import IPAddress, parse_ip
from .pools import PoolRegistry

logger = logging.getLogger(__name__)


class Decision(str, Enum):
    RETAIN = "Retain"
    CLEAR = "Clear"
    CLEAR_AND_REALLOCATE = "ClearAndReallocate"


def decision_for(has_valid_recorded_address: bool, address_in_any_pool: bool, requested_address_changed: bool) -> Decision:
    """Decision table lookup"""
    if not has_valid_recorded_address:
        return Decision.CLEAR
    if not address_in_any_pool or requested_address_changed:
        return Decision.CLEAR_AND_REALLOCATE
    return Decision.RETAIN


def decide(svc: Service, pools: PoolRegistry) -> Decision:
    """Inspect svc against the current pools and pick what to do with it"""
    recorded = parse_ip(svc.assigned_ip)
    has_valid = recorded is not None
    in_pool = has_valid and pools.contains(recorded)
    # A user-set address that differs from the stamped one always wins,
    # even over an assignment that is otherwise still valid. Compared as
    # addresses: the annotation holds the canonical form.
    changed = bool(svc.requested_ip) and parse_ip(svc.requested_ip) != recorded
    return decision_for(has_valid, in_pool, changed)


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation pass"""
    decision: Decision
    ip: Optional[IPAddress] = None
    error: Optional[AllocationError] = None

    @property
    def ok(self) -> bool:
        return self.ip is not None


class Reconciler:
    """Applies decide() to a service and converges it"""

    def __init__(self, allocator: Allocator, recorder: EventRecorder):
        self.allocator = allocator
        self.recorder = recorder

    def reconcile(self, key: str, svc: Service) -> ReconcileResult:
        decision = decide(svc, self.allocator.pools)
        logger.debug(f"Service {key}: assigned={svc.assigned_ip!r} requested={svc.requested_ip!r} -> {decision.value}")

        lb_ip: Optional[IPAddress] = None
        if decision == Decision.RETAIN:
            lb_ip = parse_ip(svc.assigned_ip)
        else:
            self.allocator.clear(key, svc)

        if lb_ip is None:
            try:
                lb_ip = self.allocator.allocate(key, svc)
            except AllocationError as e:
                # No retry here: the next externally triggered pass tries again
                self.recorder.eventf(
                    svc, EventSeverity.WARNING, EventTypes.ALLOCATION_FAILED,
                    "Failed to allocate IP for %r: %s", key, e,
                    **allocation_failed_payload(
                        key, e.error_code, str(e),
                        requested_ip=svc.requested_ip or None,
                        requested_pool=svc.requested_pool or None,
                    ),
                )
                return ReconcileResult(decision=decision, error=e)

        if lb_ip is None:
            self.recorder.eventf(
                svc, EventSeverity.WARNING, EventTypes.INTERNAL_ERROR,
                "didn't allocate an IP but also did not fail",
            )
            return ReconcileResult(decision=decision)

        svc.spec.external_traffic_policy = TrafficPolicy.LOCAL
        svc.status.load_balancer = LoadBalancerStatus(ingress=[LoadBalancerIngress(ip=str(lb_ip))])
        return ReconcileResult(decision=decision, ip=lb_ip)
