# lb_ipam/core/controller.py
"""
Controller - wires the allocation engine together

One Controller owns one Allocator (and so one Allocation State), the
event bus its outcomes are reported on, and the Reconciler that drives
services through it.
"""

import logging
from typing import Iterable, Mapping, Optional

from ..schemas import Service
from .allocator import Allocator
from .event_handlers import register_all_handlers
from .events import EventBus, EventRecorder
from .iterator import IPAddress
from .pools import PoolRegistry
from .reconciler import Reconciler, ReconcileResult

logger = logging.getLogger(__name__)


class Controller:
    """Allocation engine plus its event plumbing"""

    def __init__(self, pools: Optional[PoolRegistry] = None, bus: Optional[EventBus] = None):
        self.bus = bus if bus is not None else EventBus()
        self.recorder = EventRecorder(self.bus)
        self.allocator = Allocator(pools if pools is not None else PoolRegistry(), self.recorder)
        self.reconciler = Reconciler(self.allocator, self.recorder)

    @classmethod
    def from_settings(cls, settings) -> "Controller":
        bus = EventBus(max_history_size=settings.EVENT_HISTORY_SIZE)
        register_all_handlers(bus)
        controller = cls(PoolRegistry.from_mapping(settings.ADDRESS_POOLS), bus)
        logger.info(f"Controller started with pools {controller.allocator.pools.names()}")
        return controller

    def reconcile(self, svc: Service) -> ReconcileResult:
        """Run one reconciliation pass for svc, mutating it in place"""
        return self.reconciler.reconcile(svc.key, svc)

    def delete(self, namespace: str, name: str) -> Optional[IPAddress]:
        """Release whatever address a deleted service held"""
        return self.allocator.release(f"{namespace}/{name}")

    def reload_pools(self, data: Mapping[str, Iterable[str]]) -> PoolRegistry:
        """Replace the pool registry from {"name": ["cidr", ...]}"""
        registry = PoolRegistry.from_mapping(data)
        self.allocator.set_pools(registry)
        return registry
