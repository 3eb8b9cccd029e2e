"""Order lifecycle use-cases: creation, status transitions and edits."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..auth import check_permission
from ..config import Settings
from ..domain_errors import ConcurrentModification, Unauthorized, ValidationError
from ..events import EventBus, OrderCreated, OrderUpdated
from ..models import ORDER_PRIORITIES, MaterialLine, Order, StatusUpdate, User, new_id
from ..schemas import MaterialRequest, OrderDetails, OrderEdit
from ..security import can_create_order, can_transition_to, gated_statuses
from ..services.order_history import append_history_entry, apply_status_change
from ..services.order_rules import (
    INITIAL_ORDER_STATUS,
    ensure_status_in,
    format_order_number,
    now_utc,
    validate_status_transition,
)
from ..store import FleetRoster, InMemoryOrderStore, MaterialCatalog
from .driver_assignment import sync_driver_roster

logger = logging.getLogger(__name__)

ORDER_EDIT_NOTE = "Order updated - materials modified"
REQUESTER_EDITABLE_STATUSES: frozenset[str] = frozenset({"pending", "in_shop", "being_pulled"})
MANAGER_EDITABLE_STATUSES: frozenset[str] = frozenset({"pending"})


def _required_text(value: Optional[str], field_name: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field_name} is required", details={"field": field_name})
    return text


def _validate_priority(priority: Optional[str]) -> str:
    value = (priority or "medium").strip().lower()
    if value not in ORDER_PRIORITIES:
        raise ValidationError(
            f"Unknown priority: {priority}",
            details={"field": "priority", "allowed": list(ORDER_PRIORITIES)},
        )
    return value


def build_material_lines(
    materials: list[MaterialRequest],
    *,
    catalog: MaterialCatalog,
) -> list[MaterialLine]:
    """Copy requested materials into order-owned lines, resolving catalog ids."""
    if not materials:
        raise ValidationError("Order must contain at least one material", details={"field": "materials"})

    lines: list[MaterialLine] = []
    for index, request in enumerate(materials):
        if request.quantity_requested <= 0:
            raise ValidationError(
                "Requested quantity must be positive",
                details={"field": f"materials[{index}].quantity_requested"},
            )

        if request.material_id:
            item = catalog.get(request.material_id)
            if item is None:
                raise ValidationError(
                    f"Unknown material: {request.material_id}",
                    details={"field": f"materials[{index}].material_id"},
                )
            lines.append(
                MaterialLine(
                    id=new_id(),
                    name=item.name,
                    unit=request.unit or item.unit,
                    quantity_requested=request.quantity_requested,
                    quantity_available=item.quantity_available,
                    unit_price=item.unit_price if request.unit_price is None else request.unit_price,
                    supplier=request.supplier or item.supplier,
                    category=request.category or item.category,
                    description=request.description or item.description,
                )
            )
            continue

        lines.append(
            MaterialLine(
                id=new_id(),
                name=_required_text(request.name, f"materials[{index}].name"),
                unit=_required_text(request.unit, f"materials[{index}].unit"),
                quantity_requested=request.quantity_requested,
                quantity_available=0,
                unit_price=request.unit_price or 0.0,
                supplier=request.supplier or "",
                category=request.category or "",
                description=request.description or "",
            )
        )
    return lines


def create_order_use_case(
    *,
    store: InMemoryOrderStore,
    catalog: MaterialCatalog,
    events: EventBus,
    settings: Settings,
    details: OrderDetails,
    materials: list[MaterialRequest],
    current_user: User,
    at: Optional[datetime] = None,
) -> Order:
    """Create a pending order with a single-entry history."""
    if not can_create_order(current_user.role):
        raise Unauthorized(
            "Your role cannot create orders",
            details={"role": current_user.role},
        )

    project_name = _required_text(details.project_name, "project_name")
    job_site = _required_text(details.job_site, "job_site")
    if details.delivery_date is None:
        raise ValidationError("delivery_date is required", details={"field": "delivery_date"})
    priority = _validate_priority(details.priority)
    lines = build_material_lines(materials, catalog=catalog)

    ts = at or now_utc()
    order_number = format_order_number(
        sequence=store.next_sequence(),
        at=ts,
        prefix=settings.ORDER_NUMBER_PREFIX,
        width=settings.ORDER_NUMBER_WIDTH,
    )
    order = Order(
        id=new_id(),
        order_number=order_number,
        project_name=project_name,
        job_site=job_site,
        requested_by=current_user,
        status=INITIAL_ORDER_STATUS,
        priority=priority,
        materials=lines,
        delivery_date=details.delivery_date,
        special_notes=details.special_notes or "",
        created_at=ts,
        updated_at=ts,
        status_history=[
            StatusUpdate(
                id=new_id(),
                status=INITIAL_ORDER_STATUS,
                updated_by=current_user,
                timestamp=ts,
            )
        ],
    )
    store.add(order)

    logger.info(
        "order.created order=%s project=%s by=%s materials=%d",
        order.order_number,
        order.project_name,
        current_user.id,
        len(lines),
    )
    events.publish(
        OrderCreated(
            order_id=order.id,
            order_number=order.order_number,
            actor=current_user,
            timestamp=ts,
            message=f"New order created for {order.project_name}",
            project_name=order.project_name,
        )
    )
    return order


def transition_order_use_case(
    *,
    store: InMemoryOrderStore,
    events: EventBus,
    order_id: str,
    new_status: str,
    current_user: User,
    notes: Optional[str] = None,
    expected_revision: Optional[int] = None,
    fleet: Optional[FleetRoster] = None,
    at: Optional[datetime] = None,
) -> Order:
    """Move an order along the state machine if the actor's role gate allows it."""
    with store.locked(order_id) as order:
        if expected_revision is not None and order.revision != expected_revision:
            raise ConcurrentModification(
                "Order was modified by someone else",
                details={"expectedRevision": expected_revision, "currentRevision": order.revision},
            )

        target = validate_status_transition(current_status=order.status, next_status=new_status)
        if not can_transition_to(order, current_user, target):
            raise Unauthorized(
                f"Role {current_user.role} cannot move order from {order.status} to {target}",
                details={
                    "role": current_user.role,
                    "currentStatus": order.status,
                    "requestedStatus": target,
                    "gatedStatuses": sorted(gated_statuses(current_user.role)),
                },
            )

        event = apply_status_change(
            order,
            new_status=target,
            actor=current_user,
            at=at or now_utc(),
            notes=notes,
        )
        if fleet is not None:
            sync_driver_roster(fleet, order)

    logger.info(
        "order.transition order=%s %s->%s by=%s",
        order.order_number,
        event.old_status,
        event.new_status,
        current_user.id,
    )
    events.publish(event)
    return order


def _ensure_can_edit(order: Order, current_user: User) -> None:
    if not check_permission(current_user, "canEditOrders"):
        raise Unauthorized("Your role cannot edit orders", details={"role": current_user.role})

    if current_user.role == "project_manager":
        ensure_status_in(current_status=order.status, allowed=MANAGER_EDITABLE_STATUSES, action="edit order")
        return

    if order.requested_by.id != current_user.id:
        raise Unauthorized("Only the requester can edit this order", details={"orderId": order.id})
    ensure_status_in(current_status=order.status, allowed=REQUESTER_EDITABLE_STATUSES, action="edit order")


def edit_order_use_case(
    *,
    store: InMemoryOrderStore,
    catalog: MaterialCatalog,
    events: EventBus,
    order_id: str,
    changes: OrderEdit,
    current_user: User,
    at: Optional[datetime] = None,
) -> Order:
    """Change materials or details; records a history entry with the unchanged status."""
    with store.locked(order_id) as order:
        _ensure_can_edit(order, current_user)
        if not changes.model_dump(exclude_none=True):
            raise ValidationError("No order changes given", details={"fields": sorted(OrderEdit.model_fields)})

        lines = build_material_lines(changes.materials, catalog=catalog) if changes.materials is not None else None
        priority = _validate_priority(changes.priority) if changes.priority is not None else None

        ts = at or now_utc()
        if lines is not None:
            order.materials = lines
            kept_names = {line.name for line in lines}
            order.back_ordered_items = [name for name in order.back_ordered_items if name in kept_names]
        if priority is not None:
            order.priority = priority
        if changes.special_notes is not None:
            order.special_notes = changes.special_notes
        if changes.delivery_date is not None:
            order.delivery_date = changes.delivery_date
        append_history_entry(order, actor=current_user, at=ts, notes=ORDER_EDIT_NOTE)

    logger.info("order.edited order=%s by=%s", order.order_number, current_user.id)
    events.publish(
        OrderUpdated(
            order_id=order.id,
            order_number=order.order_number,
            actor=current_user,
            timestamp=ts,
            message=f"{ORDER_EDIT_NOTE} by {current_user.name}",
        )
    )
    return order
