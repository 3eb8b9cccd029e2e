"""In-memory domain records for material orders.

Orders live only for the lifetime of the process; the store in
``ordertrack.store`` owns them. ``Order`` is mutated exclusively by the
use-cases in ``ordertrack.use_cases``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional
from uuid import uuid4


USER_ROLES: tuple[str, ...] = (
    "site_foreman",
    "job_lead",
    "project_manager",
    "shop_manager",
    "assistant_shop_manager",
    "shop_employee",
    "truck_driver",
    "accountant_manager",
)

ORDER_STATUSES: tuple[str, ...] = (
    "pending",
    "in_shop",
    "being_pulled",
    "ready_to_load",
    "loaded",
    "out_for_delivery",
    "delivered",
    "foreman_confirmed",
    "back_ordered",
    "cancelled",
)

ORDER_PRIORITIES: tuple[str, ...] = ("low", "medium", "high", "urgent")

DRIVER_STATUSES: tuple[str, ...] = ("available", "loading", "out_for_delivery", "maintenance")


def new_id() -> str:
    return str(uuid4())


@dataclass(frozen=True)
class User:
    id: str
    name: str
    role: str
    email: Optional[str] = None


@dataclass
class MaterialLine:
    """A requested material, owned by exactly one order (or the catalog)."""

    id: str
    name: str
    unit: str
    quantity_requested: float = 0
    quantity_available: float = 0
    unit_price: float = 0.0
    supplier: str = ""
    category: str = ""
    description: str = ""

    @property
    def line_total(self) -> float:
        return float(self.quantity_requested) * float(self.unit_price)


@dataclass(frozen=True)
class StatusUpdate:
    id: str
    status: str
    updated_by: User
    timestamp: datetime
    notes: Optional[str] = None


@dataclass(frozen=True)
class BillingRecord:
    job_number: str
    cost_center: str
    approved_by: str
    billing_date: date
    amount: float
    billed_by: User
    billed_at: datetime
    notes: Optional[str] = None


@dataclass
class FleetDriver:
    """Roster entry for a truck driver."""

    user: User
    status: str = "available"
    truck_number: Optional[str] = None
    phone: Optional[str] = None

    @property
    def id(self) -> str:
        return self.user.id


@dataclass
class Order:
    id: str
    order_number: str
    project_name: str
    job_site: str
    requested_by: User
    status: str
    priority: str
    materials: list[MaterialLine]
    delivery_date: date
    created_at: datetime
    updated_at: datetime
    status_history: list[StatusUpdate] = field(default_factory=list)
    special_notes: str = ""
    assigned_to: Optional[User] = None
    back_ordered_items: list[str] = field(default_factory=list)
    billing: Optional[BillingRecord] = None
    revision: int = 1

    @property
    def total_value(self) -> float:
        return sum((material.line_total for material in self.materials), 0.0)

    @property
    def is_billed(self) -> bool:
        return self.billing is not None
