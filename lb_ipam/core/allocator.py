# lb_ipam/core/allocator.py
"""
Allocator - finds, validates and records service addresses

A single process-wide lock covers every pool and every key. clear(),
allocate(), assign() and release() each hold it for their whole duration,
and no error path writes to Allocation State.

Search order for allocate():
1. spec.load_balancer_ip, if set: exactly that address or an error
2. address-pool annotation, if set: only that pool
3. otherwise every pool in registry order
"""

import logging
import threading
from typing import Dict, Optional, Union

from ..schemas import ANNOTATION_ASSIGNED_IP, LoadBalancerStatus, Service
from .domain_events import EventTypes, ip_allocated_payload
from .events import EventRecorder, EventSeverity
from .exceptions import (
    AddressInUseError,
    AddressOutsidePoolsError,
    InvalidAddressError,
    PoolExhaustedError,
    UnknownPoolError,
)
from .iterator import IPAddress, parse_ip, walk
from .pools import AddressPool, PoolRegistry
from .state import AllocationState

logger = logging.getLogger(__name__)


class Allocator:
    """Owns Allocation State and every mutation of it"""

    def __init__(
        self,
        pools: PoolRegistry,
        recorder: EventRecorder,
        state: Optional[AllocationState] = None,
    ):
        self._lock = threading.Lock()
        self._pools = pools
        self._recorder = recorder
        self._state = state if state is not None else AllocationState()

    @property
    def pools(self) -> PoolRegistry:
        return self._pools

    @property
    def state(self) -> AllocationState:
        """Allocation State, for inspection only"""
        return self._state

    def set_pools(self, pools: PoolRegistry) -> None:
        """
        Swap in a reloaded pool registry.

        Existing assignments are left alone: the next reconciliation pass
        of each service notices addresses that fell out of the config.
        """
        with self._lock:
            self._pools = pools
        logger.info(f"Address pools replaced: {pools.names()}")

    # =========================================================================
    # Locked operations
    # =========================================================================

    def clear(self, key: str, svc: Service) -> None:
        """Drop every piece of controller-owned state for key"""
        with self._lock:
            released = self._state.forget(key)
            svc.annotations.pop(ANNOTATION_ASSIGNED_IP, None)
            svc.status.load_balancer = LoadBalancerStatus()
        if released is not None:
            logger.info(f"Cleared assignment {released} of service {key}")

    def allocate(self, key: str, svc: Service) -> IPAddress:
        """
        Find or validate an address for svc and record it.

        Raises:
            AllocationError: any failure; Allocation State is unchanged
        """
        with self._lock:
            pools = self._pools

            # If the user asked for a specific IP, try that
            if svc.requested_ip:
                ip = parse_ip(svc.requested_ip)
                if ip is None:
                    raise InvalidAddressError(svc.requested_ip)
                self._assign(key, svc, ip, pools)
                return ip

            # Otherwise, did the user ask for a specific pool?
            desired_pool = svc.requested_pool
            if desired_pool:
                pool = pools.get(desired_pool)
                if pool is None:
                    raise UnknownPoolError(desired_pool)
                ip = self._allocate_from_pool(key, svc, pool, pools)
                if ip is None:
                    raise PoolExhaustedError(desired_pool)
                return ip

            for pool in pools:
                ip = self._allocate_from_pool(key, svc, pool, pools)
                if ip is not None:
                    return ip
            raise PoolExhaustedError()

    def assign(self, key: str, svc: Service, ip: Union[IPAddress, str]) -> IPAddress:
        """Record exactly ip for key. Idempotent for an address key already owns."""
        if isinstance(ip, str):
            parsed = parse_ip(ip)
            if parsed is None:
                raise InvalidAddressError(ip)
            ip = parsed
        with self._lock:
            self._assign(key, svc, ip, self._pools)
        return ip

    def release(self, key: str) -> Optional[IPAddress]:
        """Forget a deleted service. Returns the address it held, if any."""
        with self._lock:
            released = self._state.forget(key)
        if released is not None:
            logger.info(f"Released {released} from deleted service {key}")
        return released

    def allocations(self) -> Dict[str, str]:
        with self._lock:
            return self._state.snapshot()

    # =========================================================================
    # Helpers (lock held by caller)
    # =========================================================================

    def _allocate_from_pool(
        self,
        key: str,
        svc: Service,
        pool: AddressPool,
        pools: PoolRegistry,
    ) -> Optional[IPAddress]:
        for cidr in pool.cidrs:
            for ip in walk(cidr):
                owner = self._state.owner(ip)
                if owner is None or owner == key:
                    self._assign(key, svc, ip, pools)
                    return ip
        logger.debug(f"Pool {pool.name} has no free address for {key}")
        return None

    def _assign(self, key: str, svc: Service, ip: IPAddress, pools: PoolRegistry) -> None:
        owner = self._state.owner(ip)
        if owner is not None and owner != key:
            raise AddressInUseError(str(ip), owner)

        pool_name = pools.pool_for(ip)
        if pool_name is None:
            raise AddressOutsidePoolsError(str(ip))

        self._state.record(key, ip)
        svc.annotations[ANNOTATION_ASSIGNED_IP] = str(ip)
        self._recorder.eventf(
            svc, EventSeverity.NORMAL, EventTypes.IP_ALLOCATED,
            "Assigned IP %r", str(ip),
            **ip_allocated_payload(key, str(ip), pool_name),
        )
