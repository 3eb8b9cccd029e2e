"""Primitives that mutate an order's status and history.

Callers must already hold the order's store lock and must have finished all
validation: these helpers never fail half-way.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..events import StatusChanged
from ..models import Order, StatusUpdate, User, new_id
from .order_rules import status_changed_message


def append_history_entry(
    order: Order,
    *,
    actor: User,
    at: datetime,
    notes: Optional[str] = None,
    status: Optional[str] = None,
) -> StatusUpdate:
    """Append a history entry; without ``status`` it records the unchanged status."""
    entry = StatusUpdate(
        id=new_id(),
        status=status or order.status,
        updated_by=actor,
        timestamp=at,
        notes=notes,
    )
    order.status_history.append(entry)
    order.status = entry.status
    order.updated_at = at
    order.revision += 1
    return entry


def apply_status_change(
    order: Order,
    *,
    new_status: str,
    actor: User,
    at: datetime,
    notes: Optional[str] = None,
) -> StatusChanged:
    old_status = order.status
    append_history_entry(order, actor=actor, at=at, notes=notes, status=new_status)
    return StatusChanged(
        order_id=order.id,
        order_number=order.order_number,
        actor=actor,
        timestamp=at,
        message=status_changed_message(new_status, notes),
        old_status=old_status,
        new_status=new_status,
        notes=notes,
    )
