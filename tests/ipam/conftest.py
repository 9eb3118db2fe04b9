# tests/ipam/conftest.py
"""
Pytest fixtures for allocation engine tests
Shared pools, services and a fully wired controller
"""

import pytest

from lb_ipam.core.controller import Controller
from lb_ipam.core.events import EventBus, EventRecorder
from lb_ipam.core.pools import PoolRegistry
from lb_ipam.schemas import ANNOTATION_ADDRESS_POOL, ANNOTATION_ASSIGNED_IP, Service


# ============================================
# Pools
# ============================================

@pytest.fixture
def pool_data():
    """Two pools: a 4-address default pool and a 2-CIDR public pool"""
    return {
        "default": ["192.168.10.0/30"],
        "public": ["203.0.113.8/31", "203.0.113.16/31"],
    }


@pytest.fixture
def registry(pool_data):
    return PoolRegistry.from_mapping(pool_data)


# ============================================
# Events / Controller
# ============================================

@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def recorder(bus):
    return EventRecorder(bus)


@pytest.fixture
def controller(registry, bus):
    return Controller(registry, bus)


# ============================================
# Services
# ============================================

@pytest.fixture
def make_service():
    """Factory for Service records"""
    def _make(name, namespace="default", requested_ip=None, pool=None, assigned_ip=None):
        annotations = {}
        if pool is not None:
            annotations[ANNOTATION_ADDRESS_POOL] = pool
        if assigned_ip is not None:
            annotations[ANNOTATION_ASSIGNED_IP] = assigned_ip
        return Service(
            namespace=namespace,
            name=name,
            annotations=annotations,
            spec={"load_balancer_ip": requested_ip},
        )
    return _make
