"""Structured order events and a synchronous in-process event bus.

Use-cases publish after their mutation has been applied; subscribers (the
notification feed, audit sinks, websocket fan-out) never see rolled-back
state.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from threading import Lock
from typing import Callable, Optional

from .models import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderEvent:
    order_id: str
    order_number: str
    actor: User
    timestamp: datetime
    message: str

    @property
    def event_type(self) -> str:
        return EVENT_TYPES[type(self)]


@dataclass(frozen=True)
class OrderCreated(OrderEvent):
    project_name: str = ""


@dataclass(frozen=True)
class OrderUpdated(OrderEvent):
    pass


@dataclass(frozen=True)
class StatusChanged(OrderEvent):
    old_status: str = ""
    new_status: str = ""
    notes: Optional[str] = None


@dataclass(frozen=True)
class DriverAssigned(OrderEvent):
    driver: Optional[User] = None


@dataclass(frozen=True)
class BackOrdered(OrderEvent):
    items: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class DeliveryScheduled(OrderEvent):
    delivery_date: Optional[date] = None


@dataclass(frozen=True)
class OrderBilled(OrderEvent):
    job_number: str = ""
    amount: float = 0.0


EVENT_TYPES: dict[type, str] = {
    OrderEvent: "order_event",
    OrderCreated: "order_created",
    OrderUpdated: "order_updated",
    StatusChanged: "status_changed",
    DriverAssigned: "driver_assigned",
    BackOrdered: "back_ordered",
    DeliveryScheduled: "delivery_scheduled",
    OrderBilled: "order_billed",
}

EventHandler = Callable[[OrderEvent], None]


class EventBus:
    """Fan events out to subscribers in subscription order."""

    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []
        self._lock = Lock()

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        with self._lock:
            self._handlers.append(handler)
        return lambda: self.unsubscribe(handler)

    def unsubscribe(self, handler: EventHandler) -> None:
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)

    def publish(self, event: OrderEvent) -> None:
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                # A broken subscriber must not undo an applied transition.
                logger.exception(
                    "event.handler_failed type=%s order=%s",
                    event.event_type,
                    event.order_number,
                )

    def publish_all(self, events: list[OrderEvent]) -> None:
        for event in events:
            self.publish(event)
