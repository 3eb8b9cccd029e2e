"""Notification feed: turns engine events into read/unread dashboard items."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from threading import Lock
from typing import Optional

from ..domain_errors import NotificationNotFound
from ..events import (
    BackOrdered,
    DeliveryScheduled,
    DriverAssigned,
    OrderBilled,
    OrderCreated,
    OrderEvent,
    OrderUpdated,
    StatusChanged,
)
from ..models import User, new_id

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES: dict[type, str] = {
    OrderCreated: "order_created",
    OrderUpdated: "status_update",
    StatusChanged: "status_update",
    BackOrdered: "back_ordered",
    DeliveryScheduled: "delivery_scheduled",
    DriverAssigned: "driver_assigned",
    OrderBilled: "billed",
}


@dataclass
class NotificationItem:
    id: str
    type: str
    order_id: str
    order_number: str
    message: str
    timestamp: datetime
    read: bool = False
    updated_by: Optional[User] = None


class NotificationFeed:
    """Newest-first notification list; subscribe ``handle`` to an EventBus."""

    def __init__(self, limit: int = 100) -> None:
        self._items: list[NotificationItem] = []
        self._limit = limit
        self._lock = Lock()

    def handle(self, event: OrderEvent) -> NotificationItem:
        item = NotificationItem(
            id=new_id(),
            type=NOTIFICATION_TYPES.get(type(event), "status_update"),
            order_id=event.order_id,
            order_number=event.order_number,
            message=event.message,
            timestamp=event.timestamp,
            updated_by=event.actor,
        )
        with self._lock:
            self._items.insert(0, item)
            del self._items[self._limit:]
        logger.debug("notification.added type=%s order=%s", item.type, item.order_number)
        return item

    @property
    def items(self) -> list[NotificationItem]:
        with self._lock:
            return list(self._items)

    @property
    def unread_count(self) -> int:
        with self._lock:
            return sum(1 for item in self._items if not item.read)

    def for_order(self, order_id: str) -> list[NotificationItem]:
        return [item for item in self.items if item.order_id == order_id]

    def mark_as_read(self, notification_id: str) -> NotificationItem:
        with self._lock:
            for item in self._items:
                if item.id == notification_id:
                    item.read = True
                    return item
        raise NotificationNotFound("Notification not found", details={"notificationId": notification_id})

    def mark_all_as_read(self) -> int:
        with self._lock:
            changed = 0
            for item in self._items:
                if not item.read:
                    item.read = True
                    changed += 1
            return changed
