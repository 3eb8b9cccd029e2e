"""Order lifecycle engine: the single entry point UI/API collaborators call.

The engine owns no global state. Its store, directory, catalog, fleet roster
and event bus are injected, and every mutation goes through a use-case in
``ordertrack.use_cases``.
"""
from __future__ import annotations

from datetime import date
from typing import Any, Callable, Iterable, Mapping, Optional, TypeVar, Union

import pydantic
from pydantic import BaseModel

from .config import Settings, get_settings
from .domain_errors import ValidationError
from .events import EventBus, EventHandler
from .models import MaterialLine, Order, User
from .schemas import (
    BillingRequest,
    FutureDeliveryRequest,
    MaterialAvailabilityRequest,
    MaterialQuantityAdjustment,
    MaterialRequest,
    MaterialUpdate,
    OrderDetails,
    OrderEdit,
)
from .security import available_transitions, can_create_order, can_transition
from .services.order_filters import filter_orders
from .store import FleetRoster, InMemoryOrderStore, MaterialCatalog, UserDirectory
from .use_cases.delivery_billing import bill_to_job_use_case, report_delivery_use_case
from .use_cases.driver_assignment import assign_driver_use_case
from .use_cases.material_catalog import adjust_material_quantity_use_case, update_material_use_case
from .use_cases.material_status import (
    schedule_future_delivery_use_case,
    update_material_availability_use_case,
)
from .use_cases.order_lifecycle import (
    create_order_use_case,
    edit_order_use_case,
    transition_order_use_case,
)

M = TypeVar("M", bound=BaseModel)
Payload = Union[BaseModel, Mapping[str, Any]]


def _coerce(schema: type[M], value: Payload) -> M:
    if isinstance(value, schema):
        return value
    try:
        if isinstance(value, BaseModel):
            return schema.model_validate(value.model_dump())
        return schema.model_validate(value)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            f"Invalid {schema.__name__} payload",
            details={"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
        ) from exc


class OrderLifecycleEngine:
    def __init__(
        self,
        *,
        store: Optional[InMemoryOrderStore] = None,
        directory: Optional[UserDirectory] = None,
        catalog: Optional[MaterialCatalog] = None,
        fleet: Optional[FleetRoster] = None,
        events: Optional[EventBus] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.store = store or InMemoryOrderStore()
        self.directory = directory or UserDirectory()
        self.catalog = catalog or MaterialCatalog()
        self.fleet = fleet or FleetRoster()
        self.events = events or EventBus()
        self.settings = settings or get_settings()

    # Events

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        return self.events.subscribe(handler)

    # Mutations

    def create_order(
        self,
        details: Payload,
        materials: Iterable[Payload],
        actor: User,
    ) -> Order:
        return create_order_use_case(
            store=self.store,
            catalog=self.catalog,
            events=self.events,
            settings=self.settings,
            details=_coerce(OrderDetails, details),
            materials=[_coerce(MaterialRequest, material) for material in materials],
            current_user=actor,
        )

    def transition(
        self,
        order_id: str,
        new_status: str,
        actor: User,
        notes: Optional[str] = None,
        *,
        expected_revision: Optional[int] = None,
    ) -> Order:
        return transition_order_use_case(
            store=self.store,
            events=self.events,
            order_id=order_id,
            new_status=new_status,
            current_user=actor,
            notes=notes,
            expected_revision=expected_revision,
            fleet=self.fleet,
        )

    def assign_driver(self, order_id: str, driver_id: str, actor: User) -> Order:
        return assign_driver_use_case(
            store=self.store,
            directory=self.directory,
            fleet=self.fleet,
            events=self.events,
            settings=self.settings,
            order_id=order_id,
            driver_id=driver_id,
            current_user=actor,
        )

    def edit_order(self, order_id: str, changes: Payload, actor: User) -> Order:
        return edit_order_use_case(
            store=self.store,
            catalog=self.catalog,
            events=self.events,
            order_id=order_id,
            changes=_coerce(OrderEdit, changes),
            current_user=actor,
        )

    def update_material_availability(self, order_id: str, statuses: Mapping[str, str], actor: User) -> Order:
        request = _coerce(MaterialAvailabilityRequest, {"statuses": statuses})
        return update_material_availability_use_case(
            store=self.store,
            events=self.events,
            order_id=order_id,
            statuses=request.statuses,
            current_user=actor,
        )

    def schedule_future_delivery(
        self,
        order_id: str,
        delivery_date: Union[date, str],
        actor: User,
        special_instructions: Optional[str] = None,
    ) -> Order:
        request = _coerce(
            FutureDeliveryRequest,
            {"delivery_date": delivery_date, "special_instructions": special_instructions},
        )
        return schedule_future_delivery_use_case(
            store=self.store,
            events=self.events,
            order_id=order_id,
            delivery_date=request.delivery_date,
            current_user=actor,
            special_instructions=request.special_instructions,
        )

    def report_delivery(self, order_id: str, outcome: str, actor: User, notes: Optional[str] = None) -> Order:
        return report_delivery_use_case(
            store=self.store,
            events=self.events,
            order_id=order_id,
            outcome=outcome,
            current_user=actor,
            notes=notes,
            fleet=self.fleet,
        )

    def bill_to_job(self, order_id: str, billing: Payload, actor: User) -> Order:
        return bill_to_job_use_case(
            store=self.store,
            events=self.events,
            order_id=order_id,
            billing=_coerce(BillingRequest, billing),
            current_user=actor,
        )

    def update_material(self, material_id: str, changes: Payload, actor: User) -> MaterialLine:
        return update_material_use_case(
            catalog=self.catalog,
            material_id=material_id,
            changes=_coerce(MaterialUpdate, changes),
            current_user=actor,
        )

    def adjust_material_quantity(self, material_id: str, change: float, actor: User) -> MaterialLine:
        request = _coerce(MaterialQuantityAdjustment, {"change": change})
        return adjust_material_quantity_use_case(
            catalog=self.catalog,
            material_id=material_id,
            change=request.change,
            current_user=actor,
        )

    # Reads

    def get_order(self, order_id: str) -> Order:
        return self.store.require(order_id)

    def get_material(self, material_id: str) -> MaterialLine:
        return self.catalog.require(material_id)

    def list_materials(
        self,
        category: Optional[str] = None,
        supplier: Optional[str] = None,
        low_stock_only: bool = False,
    ) -> list[MaterialLine]:
        return self.catalog.list(
            category=category,
            supplier=supplier,
            low_stock_below=self.settings.LOW_STOCK_THRESHOLD if low_stock_only else None,
        )

    def list_orders(self) -> list[Order]:
        return self.store.list()

    def filter_orders(self, actor: Optional[User], view_name: Optional[str] = None) -> list[Order]:
        return filter_orders(self.store.list(), actor, view_name)

    @staticmethod
    def can_transition(order: Order, actor: User) -> bool:
        return can_transition(order, actor)

    @staticmethod
    def can_create_order(role: str) -> bool:
        return can_create_order(role)

    @staticmethod
    def available_transitions(order: Order, actor: User) -> list[str]:
        return available_transitions(order, actor)
