"""Pydantic schemas for engine inputs and API responses."""
from pydantic import BaseModel, Field, ConfigDict
from typing import Literal, Optional
from datetime import date, datetime


# User schemas
class UserBrief(BaseModel):
    """Brief user info for nested responses."""
    id: str
    name: str
    role: str
    model_config = ConfigDict(from_attributes=True)


class UserDirectoryItem(UserBrief):
    email: Optional[str] = None


# Order input schemas
# Business rules (required fields, non-empty materials) are enforced by the
# use-cases so the engine reports them as ValidationError, not as schema errors.
class MaterialRequest(BaseModel):
    """A requested material: a catalog id, or a free-form line."""
    material_id: Optional[str] = None
    name: Optional[str] = None
    unit: Optional[str] = None
    quantity_requested: float = 0
    unit_price: Optional[float] = None
    supplier: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None


class OrderDetails(BaseModel):
    project_name: Optional[str] = None
    job_site: Optional[str] = None
    delivery_date: Optional[date] = None
    priority: str = "medium"
    special_notes: str = ""


class OrderCreate(OrderDetails):
    materials: list[MaterialRequest] = Field(default_factory=list)


class OrderEdit(BaseModel):
    """Partial order update; omitted fields stay unchanged."""
    materials: Optional[list[MaterialRequest]] = None
    special_notes: Optional[str] = None
    delivery_date: Optional[date] = None
    priority: Optional[str] = None


class StatusTransitionRequest(BaseModel):
    status: str
    notes: Optional[str] = None
    expected_revision: Optional[int] = None


class DriverAssignmentRequest(BaseModel):
    driver_id: str


class MaterialAvailabilityRequest(BaseModel):
    # Values are checked by the use-case so unknown ones name the offending line.
    statuses: dict[str, str]


class FutureDeliveryRequest(BaseModel):
    delivery_date: date
    special_instructions: Optional[str] = None


class DeliveryReportRequest(BaseModel):
    outcome: Literal["delivered_full", "delivered_partial", "not_delivered"]
    notes: Optional[str] = None


class BillingRequest(BaseModel):
    job_number: str
    cost_center: str
    approved_by: str
    billing_date: Optional[date] = None
    notes: Optional[str] = None


# Material catalog schemas
class MaterialUpdate(BaseModel):
    """Partial catalog item update; omitted fields stay unchanged."""
    name: Optional[str] = None
    description: Optional[str] = None
    unit: Optional[str] = None
    quantity_available: Optional[float] = None
    unit_price: Optional[float] = None
    supplier: Optional[str] = None
    category: Optional[str] = None


class MaterialQuantityAdjustment(BaseModel):
    change: float


class MaterialItemResponse(BaseModel):
    id: str
    name: str
    description: str
    unit: str
    quantity_available: float
    unit_price: float
    supplier: str
    category: str
    stock_status: str
    model_config = ConfigDict(from_attributes=True)


class MaterialCatalogResponse(BaseModel):
    items: list[MaterialItemResponse]
    inventory_value: float


# Order response schemas
class MaterialLineResponse(BaseModel):
    id: str
    name: str
    description: str
    unit: str
    quantity_requested: float
    quantity_available: float
    unit_price: float
    supplier: str
    category: str
    line_total: float
    model_config = ConfigDict(from_attributes=True)


class StatusUpdateResponse(BaseModel):
    id: str
    status: str
    updated_by: UserBrief
    timestamp: datetime
    notes: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class BillingResponse(BaseModel):
    job_number: str
    cost_center: str
    approved_by: str
    billing_date: date
    amount: float
    billed_by: UserBrief
    billed_at: datetime
    notes: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class OrderResponse(BaseModel):
    id: str
    order_number: str
    project_name: str
    job_site: str
    requested_by: UserBrief
    assigned_to: Optional[UserBrief] = None
    status: str
    priority: str
    materials: list[MaterialLineResponse]
    delivery_date: date
    special_notes: str
    created_at: datetime
    updated_at: datetime
    status_history: list[StatusUpdateResponse]
    back_ordered_items: list[str]
    billing: Optional[BillingResponse] = None
    total_value: float
    revision: int
    model_config = ConfigDict(from_attributes=True)


class OrderActionsResponse(BaseModel):
    """What the dashboard may offer the current user for one order."""
    order_id: str
    status: str
    can_transition: bool
    available_transitions: list[str]
    permissions: dict[str, bool]


# Notification schemas
class NotificationResponse(BaseModel):
    id: str
    type: str
    order_id: str
    order_number: str
    message: str
    timestamp: datetime
    read: bool
    updated_by: Optional[UserBrief] = None
    model_config = ConfigDict(from_attributes=True)


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]
    unread_count: int
