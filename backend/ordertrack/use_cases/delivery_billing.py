"""Delivery reporting (driver / foreman) and billing to job."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..domain_errors import Unauthorized, ValidationError
from ..events import EventBus, OrderBilled, OrderUpdated
from ..models import BillingRecord, Order, User
from ..schemas import BillingRequest
from ..security import is_order_assigned_to_user, require_permission
from ..services.order_history import append_history_entry
from ..services.order_rules import ensure_status_in, now_utc
from ..store import FleetRoster, InMemoryOrderStore
from .order_lifecycle import transition_order_use_case

logger = logging.getLogger(__name__)

DELIVERY_OUTCOME_NOTES: dict[str, str] = {
    "delivered_full": "Delivered in full.",
    "delivered_partial": "Delivered with missing items.",
    "not_delivered": "Delivery not completed.",
}

# Role -> (status the report is filed against, status a completed delivery moves to)
_DELIVERY_REPORT_STATUSES: dict[str, tuple[str, str]] = {
    "truck_driver": ("out_for_delivery", "delivered"),
    "site_foreman": ("delivered", "foreman_confirmed"),
    "job_lead": ("delivered", "foreman_confirmed"),
}


def _outcome_note(outcome: str, notes: Optional[str]) -> str:
    return f"{DELIVERY_OUTCOME_NOTES[outcome]} {notes or ''}".strip()


def report_delivery_use_case(
    *,
    store: InMemoryOrderStore,
    events: EventBus,
    order_id: str,
    outcome: str,
    current_user: User,
    notes: Optional[str] = None,
    fleet: Optional[FleetRoster] = None,
    at: Optional[datetime] = None,
) -> Order:
    """Record a delivery outcome.

    Completed deliveries (full or partial) advance the order through the
    regular transition path; a failed delivery leaves the status as it is and
    only records the report in the history.
    """
    if outcome not in DELIVERY_OUTCOME_NOTES:
        raise ValidationError(
            f"Unknown delivery outcome: {outcome}",
            details={"field": "outcome", "allowed": sorted(DELIVERY_OUTCOME_NOTES)},
        )
    require_permission(current_user, "canReportDelivery")
    report_status, completed_status = _DELIVERY_REPORT_STATUSES[current_user.role]
    note = _outcome_note(outcome, notes)

    if outcome != "not_delivered":
        return transition_order_use_case(
            store=store,
            events=events,
            order_id=order_id,
            new_status=completed_status,
            current_user=current_user,
            notes=note,
            fleet=fleet,
            at=at,
        )

    with store.locked(order_id) as order:
        ensure_status_in(
            current_status=order.status,
            allowed=frozenset({report_status}),
            action="report a failed delivery",
        )
        if current_user.role == "truck_driver" and not is_order_assigned_to_user(order, current_user):
            raise Unauthorized("Delivery is assigned to another driver", details={"orderId": order.id})
        ts = at or now_utc()
        append_history_entry(order, actor=current_user, at=ts, notes=note)

    logger.info("order.delivery_failed order=%s by=%s", order.order_number, current_user.id)
    events.publish(
        OrderUpdated(
            order_id=order.id,
            order_number=order.order_number,
            actor=current_user,
            timestamp=ts,
            message=f"Order {order.order_number}: {note}",
        )
    )
    return order


def bill_to_job_use_case(
    *,
    store: InMemoryOrderStore,
    events: EventBus,
    order_id: str,
    billing: BillingRequest,
    current_user: User,
    at: Optional[datetime] = None,
) -> Order:
    """Bill a foreman-confirmed order to its job, once."""
    with store.locked(order_id) as order:
        require_permission(current_user, "canBillToJob")
        ensure_status_in(
            current_status=order.status,
            allowed=frozenset({"foreman_confirmed"}),
            action="bill to job",
        )
        if order.is_billed:
            raise ValidationError(
                f"Order {order.order_number} is already billed",
                details={"jobNumber": order.billing.job_number},
            )
        job_number = (billing.job_number or "").strip()
        cost_center = (billing.cost_center or "").strip()
        if not job_number or not cost_center:
            raise ValidationError(
                "job_number and cost_center are required",
                details={"field": "job_number" if not job_number else "cost_center"},
            )

        ts = at or now_utc()
        order.billing = BillingRecord(
            job_number=job_number,
            cost_center=cost_center,
            approved_by=billing.approved_by,
            billing_date=billing.billing_date or ts.date(),
            amount=order.total_value,
            billed_by=current_user,
            billed_at=ts,
            notes=billing.notes,
        )
        note = f"Billed to job {job_number} - Cost Center: {cost_center}"
        append_history_entry(order, actor=current_user, at=ts, notes=note)

    logger.info(
        "order.billed order=%s job=%s amount=%.2f by=%s",
        order.order_number,
        job_number,
        order.billing.amount,
        current_user.id,
    )
    events.publish(
        OrderBilled(
            order_id=order.id,
            order_number=order.order_number,
            actor=current_user,
            timestamp=ts,
            message=note,
            job_number=job_number,
            amount=order.billing.amount,
        )
    )
    return order
