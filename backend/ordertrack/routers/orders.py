"""Order endpoints."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..auth import get_role_ui_permissions
from ..dependencies import get_current_user, get_engine
from ..domain_errors import OrderNotFound
from ..engine import OrderLifecycleEngine
from ..models import Order, User
from ..schemas import (
    BillingRequest,
    DeliveryReportRequest,
    DriverAssignmentRequest,
    FutureDeliveryRequest,
    MaterialAvailabilityRequest,
    OrderActionsResponse,
    OrderCreate,
    OrderDetails,
    OrderEdit,
    OrderResponse,
    StatusTransitionRequest,
)
from ..security import can_view_order

router = APIRouter(prefix="/orders", tags=["orders"])


def _visible_order(engine: OrderLifecycleEngine, order_id: str, current_user: User) -> Order:
    order = engine.get_order(order_id)
    if not can_view_order(order, current_user):
        # Hidden orders answer like missing ones.
        raise OrderNotFound("Order not found", details={"orderId": order_id})
    return order


def _to_response(order: Order) -> OrderResponse:
    return OrderResponse.model_validate(order)


@router.get("", response_model=list[OrderResponse])
def list_orders(
    view: Optional[str] = Query(default=None),
    current_user: User = Depends(get_current_user),
    engine: OrderLifecycleEngine = Depends(get_engine),
):
    orders = engine.filter_orders(current_user, view)
    return [_to_response(order) for order in orders if can_view_order(order, current_user)]


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    data: OrderCreate,
    current_user: User = Depends(get_current_user),
    engine: OrderLifecycleEngine = Depends(get_engine),
):
    details = OrderDetails.model_validate(data.model_dump(exclude={"materials"}))
    order = engine.create_order(details, data.materials, current_user)
    return _to_response(order)


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    current_user: User = Depends(get_current_user),
    engine: OrderLifecycleEngine = Depends(get_engine),
):
    return _to_response(_visible_order(engine, order_id, current_user))


@router.get("/{order_id}/actions", response_model=OrderActionsResponse)
def get_order_actions(
    order_id: str,
    current_user: User = Depends(get_current_user),
    engine: OrderLifecycleEngine = Depends(get_engine),
):
    order = _visible_order(engine, order_id, current_user)
    return OrderActionsResponse(
        order_id=order.id,
        status=order.status,
        can_transition=engine.can_transition(order, current_user),
        available_transitions=engine.available_transitions(order, current_user),
        permissions=get_role_ui_permissions(current_user.role),
    )


@router.patch("/{order_id}", response_model=OrderResponse)
def edit_order(
    order_id: str,
    data: OrderEdit,
    current_user: User = Depends(get_current_user),
    engine: OrderLifecycleEngine = Depends(get_engine),
):
    _visible_order(engine, order_id, current_user)
    return _to_response(engine.edit_order(order_id, data, current_user))


@router.post("/{order_id}/status", response_model=OrderResponse)
def transition_order(
    order_id: str,
    data: StatusTransitionRequest,
    current_user: User = Depends(get_current_user),
    engine: OrderLifecycleEngine = Depends(get_engine),
):
    _visible_order(engine, order_id, current_user)
    order = engine.transition(
        order_id,
        data.status,
        current_user,
        data.notes,
        expected_revision=data.expected_revision,
    )
    return _to_response(order)


@router.post("/{order_id}/driver", response_model=OrderResponse)
def assign_driver(
    order_id: str,
    data: DriverAssignmentRequest,
    current_user: User = Depends(get_current_user),
    engine: OrderLifecycleEngine = Depends(get_engine),
):
    return _to_response(engine.assign_driver(order_id, data.driver_id, current_user))


@router.post("/{order_id}/materials/availability", response_model=OrderResponse)
def update_material_availability(
    order_id: str,
    data: MaterialAvailabilityRequest,
    current_user: User = Depends(get_current_user),
    engine: OrderLifecycleEngine = Depends(get_engine),
):
    return _to_response(engine.update_material_availability(order_id, data.statuses, current_user))


@router.post("/{order_id}/future-delivery", response_model=OrderResponse)
def schedule_future_delivery(
    order_id: str,
    data: FutureDeliveryRequest,
    current_user: User = Depends(get_current_user),
    engine: OrderLifecycleEngine = Depends(get_engine),
):
    order = engine.schedule_future_delivery(
        order_id,
        data.delivery_date,
        current_user,
        special_instructions=data.special_instructions,
    )
    return _to_response(order)


@router.post("/{order_id}/delivery-report", response_model=OrderResponse)
def report_delivery(
    order_id: str,
    data: DeliveryReportRequest,
    current_user: User = Depends(get_current_user),
    engine: OrderLifecycleEngine = Depends(get_engine),
):
    _visible_order(engine, order_id, current_user)
    return _to_response(engine.report_delivery(order_id, data.outcome, current_user, data.notes))


@router.post("/{order_id}/billing", response_model=OrderResponse)
def bill_to_job(
    order_id: str,
    data: BillingRequest,
    current_user: User = Depends(get_current_user),
    engine: OrderLifecycleEngine = Depends(get_engine),
):
    return _to_response(engine.bill_to_job(order_id, data, current_user))
