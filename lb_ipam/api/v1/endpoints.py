# lb_ipam/api/v1/endpoints.py
"""
Controller API Endpoints

Thin driver surface over the allocation engine: the surrounding system
posts service records here to reconcile them, and reloads pools.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...core.controller import Controller
from ...schemas import (
    AllocationListResponse,
    ErrorResponse,
    EventListResponse,
    EventResponse,
    PoolListResponse,
    PoolResponse,
    PoolsUpdate,
    ReconcileResponse,
    ReleaseResponse,
    Service,
)
from ..deps import get_controller

logger = logging.getLogger(__name__)

router = APIRouter()


def _pool_list(controller: Controller) -> PoolListResponse:
    pools = [
        PoolResponse(name=pool.name, cidrs=[str(c) for c in pool.cidrs], size=pool.size)
        for pool in controller.allocator.pools
    ]
    return PoolListResponse(pools=pools, total=len(pools))


# === Pool Endpoints ===

@router.get(
    "/pools",
    response_model=PoolListResponse,
    summary="List address pools",
    description="Configured pools in search order"
)
def list_pools(controller: Controller = Depends(get_controller)):
    return _pool_list(controller)


@router.put(
    "/pools",
    response_model=PoolListResponse,
    responses={
        422: {"description": "Invalid pool definition", "model": ErrorResponse},
    },
    summary="Replace address pools",
    description="Swap the whole pool registry. Services outside the new pools are re-homed on their next reconcile."
)
def replace_pools(update: PoolsUpdate, controller: Controller = Depends(get_controller)):
    try:
        controller.reload_pools(update.pools)
    except ValueError as e:
        logger.warning(f"Rejected pool update: {e}")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "error": str(e),
                "error_code": "INVALID_POOL_CONFIG"
            }
        )
    return _pool_list(controller)


# === Allocation Endpoints ===

@router.get(
    "/allocations",
    response_model=AllocationListResponse,
    summary="List allocations",
    description="Current service key -> address assignments"
)
def list_allocations(controller: Controller = Depends(get_controller)):
    allocations = controller.allocator.allocations()
    return AllocationListResponse(allocations=allocations, total=len(allocations))


# === Service Endpoints ===

@router.post(
    "/services/reconcile",
    response_model=ReconcileResponse,
    summary="Reconcile a service",
    description="Run one reconciliation pass and return the updated service record"
)
def reconcile_service(svc: Service, controller: Controller = Depends(get_controller)):
    """Allocation failures are part of the response, not an HTTP error"""
    result = controller.reconcile(svc)
    return ReconcileResponse(
        service=svc,
        decision=result.decision.value,
        ip=str(result.ip) if result.ip is not None else None,
        error=str(result.error) if result.error is not None else None,
        error_code=result.error.error_code if result.error is not None else None,
    )


@router.delete(
    "/services/{namespace}/{name}",
    response_model=ReleaseResponse,
    summary="Release a deleted service",
    description="Forget the service's assignment so its address can be reused"
)
def delete_service(namespace: str, name: str, controller: Controller = Depends(get_controller)):
    released = controller.delete(namespace, name)
    return ReleaseResponse(
        key=f"{namespace}/{name}",
        released_ip=str(released) if released is not None else None,
    )


# === Event Endpoints ===

@router.get(
    "/events",
    response_model=EventListResponse,
    summary="Recent events",
    description="Controller events, newest last"
)
def list_events(
    reason: Optional[str] = Query(None, description="Filter by reason code"),
    key: Optional[str] = Query(None, description="Filter by service key (namespace/name)"),
    limit: int = Query(100, ge=1, le=1000),
    controller: Controller = Depends(get_controller)
):
    events = controller.bus.get_history(reason=reason, key=key, limit=limit)
    return EventListResponse(
        events=[
            EventResponse(
                event_id=e.event_id,
                reason=e.reason,
                severity=e.severity.value,
                message=e.message,
                key=e.key,
                timestamp=e.timestamp,
            )
            for e in events
        ],
        total=len(events)
    )
