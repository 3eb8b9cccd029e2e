"""Shop-side use-cases: material availability, back orders and future deliveries."""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from ..domain_errors import ValidationError
from ..events import BackOrdered, DeliveryScheduled, EventBus, OrderEvent
from ..models import Order, User
from ..security import require_permission
from ..services.order_history import append_history_entry, apply_status_change
from ..services.order_rules import ensure_status_in, now_utc
from ..store import InMemoryOrderStore

logger = logging.getLogger(__name__)

AVAILABILITY_EDITABLE_STATUSES: frozenset[str] = frozenset({"in_shop", "being_pulled", "back_ordered"})
MATERIAL_AVAILABILITY_VALUES: frozenset[str] = frozenset({"available", "back_ordered"})
BACK_ORDER_NOTE = "Material marked as back ordered"
AVAILABILITY_NOTE = "Material availability updated"


def update_material_availability_use_case(
    *,
    store: InMemoryOrderStore,
    events: EventBus,
    order_id: str,
    statuses: dict[str, str],
    current_user: User,
    at: Optional[datetime] = None,
) -> Order:
    """Mark order lines available or back ordered.

    Back-ordering any line of an ``in_shop`` order moves the order to
    ``back_ordered``. Availability marking is its own capability, so this
    path does not consult the actor's status gate. Resolving the back order
    is a regular transition.
    """
    published: list[OrderEvent] = []

    with store.locked(order_id) as order:
        require_permission(current_user, "canUpdateMaterialAvailability")
        ensure_status_in(
            current_status=order.status,
            allowed=AVAILABILITY_EDITABLE_STATUSES,
            action="update material availability",
        )
        if not statuses:
            raise ValidationError("No material statuses given", details={"field": "statuses"})

        lines_by_id = {line.id: line for line in order.materials}
        for material_id, value in statuses.items():
            if material_id not in lines_by_id:
                raise ValidationError(
                    f"Material {material_id} is not part of this order",
                    details={"materialId": material_id},
                )
            if value not in MATERIAL_AVAILABILITY_VALUES:
                raise ValidationError(
                    f"Unknown availability: {value}",
                    details={"materialId": material_id, "allowed": sorted(MATERIAL_AVAILABILITY_VALUES)},
                )

        back_ordered_names = set(order.back_ordered_items)
        for material_id, value in statuses.items():
            line = lines_by_id[material_id]
            if value == "back_ordered":
                line.quantity_available = 0
                back_ordered_names.add(line.name)
            else:
                line.quantity_available = max(line.quantity_available, line.quantity_requested)
                back_ordered_names.discard(line.name)

        newly_back_ordered = [
            line.name
            for line in order.materials
            if line.name in back_ordered_names and line.name not in order.back_ordered_items
        ]
        order.back_ordered_items = [line.name for line in order.materials if line.name in back_ordered_names]

        ts = at or now_utc()
        if order.back_ordered_items and order.status == "in_shop":
            published.append(
                apply_status_change(
                    order,
                    new_status="back_ordered",
                    actor=current_user,
                    at=ts,
                    notes=BACK_ORDER_NOTE,
                )
            )
        else:
            append_history_entry(order, actor=current_user, at=ts, notes=AVAILABILITY_NOTE)

        if newly_back_ordered:
            published.append(
                BackOrdered(
                    order_id=order.id,
                    order_number=order.order_number,
                    actor=current_user,
                    timestamp=ts,
                    message=f"Some items are back ordered - {', '.join(newly_back_ordered)}",
                    items=tuple(newly_back_ordered),
                )
            )

    logger.info(
        "order.availability order=%s back_ordered=%d by=%s",
        order.order_number,
        len(order.back_ordered_items),
        current_user.id,
    )
    events.publish_all(published)
    return order


def schedule_future_delivery_use_case(
    *,
    store: InMemoryOrderStore,
    events: EventBus,
    order_id: str,
    delivery_date: date,
    current_user: User,
    special_instructions: Optional[str] = None,
    at: Optional[datetime] = None,
) -> Order:
    """Reschedule delivery of a back-ordered order pending site foreman approval."""
    with store.locked(order_id) as order:
        require_permission(current_user, "canScheduleFutureDelivery")
        ensure_status_in(
            current_status=order.status,
            allowed=frozenset({"back_ordered"}),
            action="schedule a future delivery",
        )
        if delivery_date is None:
            raise ValidationError("delivery_date is required", details={"field": "delivery_date"})

        ts = at or now_utc()
        note = f"Future delivery scheduled for {delivery_date.isoformat()} - Awaiting Site Foreman approval"
        if special_instructions:
            note += f" ({special_instructions})"
        order.delivery_date = delivery_date
        append_history_entry(order, actor=current_user, at=ts, notes=note)

    logger.info(
        "order.future_delivery order=%s date=%s by=%s",
        order.order_number,
        delivery_date.isoformat(),
        current_user.id,
    )
    events.publish(
        DeliveryScheduled(
            order_id=order.id,
            order_number=order.order_number,
            actor=current_user,
            timestamp=ts,
            message=note,
            delivery_date=delivery_date,
        )
    )
    return order
