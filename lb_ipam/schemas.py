# lb_ipam/schemas.py
"""
Pydantic Schemas

Service records follow the shape of a Kubernetes Service, trimmed to the
fields the controller reads or writes.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

# Annotations the controller reads (address-pool) and owns (assigned-ip)
ANNOTATION_ASSIGNED_IP = "metallb.universe.tf/assigned-ip"
ANNOTATION_ADDRESS_POOL = "metallb.universe.tf/address-pool"


# =============================================================================
# Service Record
# =============================================================================

class TrafficPolicy(str, Enum):
    CLUSTER = "Cluster"
    LOCAL = "Local"


class LoadBalancerIngress(BaseModel):
    ip: str


class LoadBalancerStatus(BaseModel):
    ingress: List[LoadBalancerIngress] = Field(default_factory=list)


class ServiceStatus(BaseModel):
    load_balancer: LoadBalancerStatus = Field(default_factory=LoadBalancerStatus)


class ServiceSpec(BaseModel):
    load_balancer_ip: Optional[str] = Field(None, description="User-requested address")
    external_traffic_policy: TrafficPolicy = TrafficPolicy.CLUSTER


class Service(BaseModel):
    """A load-balanced service as seen by the controller"""
    namespace: str = Field("default", min_length=1)
    name: str = Field(..., min_length=1)
    annotations: Dict[str, str] = Field(default_factory=dict)
    spec: ServiceSpec = Field(default_factory=ServiceSpec)
    status: ServiceStatus = Field(default_factory=ServiceStatus)

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"

    @property
    def assigned_ip(self) -> Optional[str]:
        """Raw assigned-ip annotation, as last stamped by the allocator"""
        return self.annotations.get(ANNOTATION_ASSIGNED_IP)

    @property
    def requested_ip(self) -> str:
        return self.spec.load_balancer_ip or ""

    @property
    def requested_pool(self) -> str:
        return self.annotations.get(ANNOTATION_ADDRESS_POOL, "")

    @property
    def ingress_ips(self) -> List[str]:
        return [i.ip for i in self.status.load_balancer.ingress]


# =============================================================================
# API Schemas
# =============================================================================

class PoolResponse(BaseModel):
    name: str
    cidrs: List[str]
    size: int


class PoolListResponse(BaseModel):
    pools: List[PoolResponse]
    total: int


class PoolsUpdate(BaseModel):
    """Replacement pool set, in search order"""
    pools: Dict[str, List[str]] = Field(..., description="Pool name -> CIDR list")


class AllocationListResponse(BaseModel):
    allocations: Dict[str, str] = Field(..., description="Service key -> address")
    total: int


class EventResponse(BaseModel):
    event_id: str
    reason: str
    severity: str
    message: str
    key: Optional[str]
    timestamp: datetime


class EventListResponse(BaseModel):
    events: List[EventResponse]
    total: int


class ReconcileResponse(BaseModel):
    service: Service
    decision: str
    ip: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class ReleaseResponse(BaseModel):
    key: str
    released_ip: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    error_code: str
