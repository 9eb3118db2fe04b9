# lb_ipam/core/events.py
"""
Event Bus - in-process sink for controller events

The allocator and reconciler report outcomes here instead of raising them
to the caller:
- Each event carries a severity, a short reason code and a message
- Subscribers react per reason (or "*" for everything) in priority order
- Handler failures are logged and never reach the publisher
"""

import logging
import traceback
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)

ALL_EVENTS = "*"


class EventSeverity(str, Enum):
    """Event type as understood by the service's event stream"""
    NORMAL = "Normal"
    WARNING = "Warning"


class EventPriority(Enum):
    """Event handler priority levels"""
    HIGH = 1      # Audit
    NORMAL = 5    # Standard reactions
    LOW = 10      # Metrics, analytics


@dataclass
class Event:
    """A single reported outcome for one service"""
    reason: str
    severity: EventSeverity
    message: str
    key: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "reason": self.reason,
            "severity": self.severity.value,
            "message": self.message,
            "key": self.key,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class HandlerRegistration:
    """Registration info for an event handler"""
    handler: Callable[[Event], None]
    priority: EventPriority


class EventBus:
    """
    Synchronous pub/sub with a bounded history

    History is kept so operators (and tests) can see what happened to a
    service without wiring a handler first.
    """

    def __init__(self, max_history_size: int = 1000):
        self._handlers: Dict[str, List[HandlerRegistration]] = {}
        self._event_history: Deque[Event] = deque(maxlen=max_history_size)

    def subscribe(
        self,
        reason: str,
        handler: Callable[[Event], None],
        priority: EventPriority = EventPriority.NORMAL,
    ) -> None:
        """
        Subscribe a handler to a reason code

        Args:
            reason: Reason to subscribe to (e.g., "IPAllocated"), or "*"
            handler: Callable that receives the Event
            priority: Execution priority (HIGH runs first)
        """
        registrations = self._handlers.setdefault(reason, [])
        registrations.append(HandlerRegistration(handler=handler, priority=priority))
        registrations.sort(key=lambda r: r.priority.value)
        logger.debug(f"Subscribed {getattr(handler, '__name__', handler)} to {reason} with priority {priority.name}")

    def unsubscribe(self, reason: str, handler: Callable[[Event], None]) -> bool:
        """Remove a handler from a reason code"""
        if reason not in self._handlers:
            return False

        original_count = len(self._handlers[reason])
        self._handlers[reason] = [r for r in self._handlers[reason] if r.handler != handler]
        return len(self._handlers[reason]) < original_count

    def publish(self, event: Event) -> None:
        """
        Deliver an event to its subscribers

        Handlers run in priority order, wildcard subscribers included.
        Failures are logged but don't stop other handlers.
        """
        self._add_to_history(event)
        handlers = self._handlers.get(event.reason, []) + self._handlers.get(ALL_EVENTS, [])
        if not handlers:
            logger.debug(f"No handlers for event: {event.reason}")
            return

        handlers.sort(key=lambda r: r.priority.value)
        for registration in handlers:
            self._execute_handler(registration, event)

    def _execute_handler(self, registration: HandlerRegistration, event: Event) -> None:
        handler = registration.handler
        try:
            handler(event)
        except Exception as e:
            logger.error(
                f"Handler {getattr(handler, '__name__', handler)} failed for {event.reason}: {e}\n"
                f"{traceback.format_exc()}"
            )

    def _add_to_history(self, event: Event) -> None:
        """Add event to history; the deque drops the oldest past max size"""
        self._event_history.append(event)

    def get_history(
        self,
        reason: Optional[str] = None,
        key: Optional[str] = None,
        limit: int = 100,
    ) -> List[Event]:
        """Get recent events, optionally filtered by reason and service key"""
        history = list(self._event_history)
        if reason:
            history = [e for e in history if e.reason == reason]
        if key:
            history = [e for e in history if e.key == key]
        return history[-limit:] if limit > 0 else []

    def get_subscriptions(self) -> Dict[str, int]:
        """Get count of handlers per reason"""
        return {reason: len(handlers) for reason, handlers in self._handlers.items()}

    def clear(self) -> None:
        """Clear all subscriptions and history (for testing)"""
        self._handlers.clear()
        self._event_history.clear()


class EventRecorder:
    """
    Facade the core reports through.

    Mirrors the usual eventf(object, type, reason, format, args...) shape so
    call sites read like the events they produce.
    """

    def __init__(self, bus: EventBus, source: str = "lb-ipam-controller"):
        self.bus = bus
        self.source = source

    def eventf(self, obj: Any, severity: EventSeverity, reason: str, fmt: str, *args: Any, **payload: Any) -> Event:
        message = fmt % args if args else fmt
        key = getattr(obj, "key", None)
        payload.setdefault("source", self.source)
        event = Event(reason=reason, severity=severity, message=message, key=key, payload=payload)
        self.bus.publish(event)
        return event
