# lb_ipam/core/event_handlers.py
"""
Event Handlers - react to controller events

Handlers are decoupled from the allocator and reconciler that publish.
"""

import logging

from .events import ALL_EVENTS, Event, EventBus, EventPriority, EventSeverity

logger = logging.getLogger(__name__)


def audit_handler(event: Event) -> None:
    """
    Log every event to the audit trail

    Runs with HIGH priority so the audit line is written before any other
    handler gets a chance to fail.
    """
    level = logging.WARNING if event.severity == EventSeverity.WARNING else logging.INFO
    logger.log(
        level,
        f"[AUDIT] {event.reason} | "
        f"service={event.key} | "
        f"severity={event.severity.value} | "
        f"{event.message}"
    )


def register_all_handlers(bus: EventBus) -> None:
    """Wire the default handlers onto a bus"""
    bus.subscribe(ALL_EVENTS, audit_handler, priority=EventPriority.HIGH)
    logger.info("Event handlers registered")
