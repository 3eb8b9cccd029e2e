"""Driver assignment use-case."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..config import Settings
from ..domain_errors import DriverUnavailable, ValidationError
from ..events import DriverAssigned, EventBus, OrderEvent
from ..models import Order, User
from ..security import require_permission
from ..services.order_history import append_history_entry, apply_status_change
from ..services.order_rules import ensure_status_in, now_utc
from ..store import FleetRoster, InMemoryOrderStore, UserDirectory

logger = logging.getLogger(__name__)

UNAVAILABLE_DRIVER_STATUSES: frozenset[str] = frozenset({"maintenance", "out_for_delivery"})
LOADED_STATUS = "loaded"

# Roster status a driver takes while their assigned order sits in a given status.
DRIVER_STATUS_FOR_ORDER_STATUS: dict[str, str] = {
    "loaded": "loading",
    "out_for_delivery": "out_for_delivery",
    "delivered": "available",
}


def sync_driver_roster(fleet: FleetRoster, order: Order) -> None:
    """Mirror the order's delivery progress onto its assigned driver's roster entry."""
    driver_status = DRIVER_STATUS_FOR_ORDER_STATUS.get(order.status)
    if driver_status is None or order.assigned_to is None:
        return
    # Drivers missing from the roster are managed outside the engine.
    if fleet.get(order.assigned_to.id) is None:
        return
    fleet.set_status(order.assigned_to.id, driver_status)


def _resolve_driver(*, directory: UserDirectory, fleet: FleetRoster, driver_id: str) -> User:
    driver = directory.get(driver_id)
    if driver is None or driver.role != "truck_driver":
        raise ValidationError("Assignee must be a truck driver", details={"driverId": driver_id})

    entry = fleet.get(driver_id)
    if entry is None:
        raise ValidationError("Driver is not on the fleet roster", details={"driverId": driver_id})
    if entry.status in UNAVAILABLE_DRIVER_STATUSES:
        raise DriverUnavailable(
            f"Driver {driver.name} is unavailable ({entry.status})",
            details={"driverId": driver_id, "driverStatus": entry.status},
        )
    return driver


def assign_driver_use_case(
    *,
    store: InMemoryOrderStore,
    directory: UserDirectory,
    fleet: FleetRoster,
    events: EventBus,
    settings: Settings,
    order_id: str,
    driver_id: str,
    current_user: User,
    at: Optional[datetime] = None,
) -> Order:
    """Assign a driver and put the order on the truck (status ``loaded``)."""
    published: list[OrderEvent] = []

    with store.locked(order_id) as order:
        require_permission(current_user, "canAssignDrivers")
        ensure_status_in(
            current_status=order.status,
            allowed=settings.driver_assignable_statuses,
            action="assign a driver",
        )
        driver = _resolve_driver(directory=directory, fleet=fleet, driver_id=driver_id)

        ts = at or now_utc()
        note = f"Assigned to driver {driver.name}"
        previous = order.assigned_to
        order.assigned_to = driver
        published.append(
            DriverAssigned(
                order_id=order.id,
                order_number=order.order_number,
                actor=current_user,
                timestamp=ts,
                message=f"Order {order.order_number} assigned to {driver.name}",
                driver=driver,
            )
        )
        if order.status == LOADED_STATUS:
            append_history_entry(order, actor=current_user, at=ts, notes=note)
        else:
            published.append(
                apply_status_change(order, new_status=LOADED_STATUS, actor=current_user, at=ts, notes=note)
            )
        if previous is not None and previous.id != driver.id:
            replaced = fleet.get(previous.id)
            if replaced is not None and replaced.status == "loading":
                fleet.set_status(previous.id, "available")
        sync_driver_roster(fleet, order)

    logger.info(
        "order.driver_assigned order=%s driver=%s by=%s",
        order.order_number,
        driver.id,
        current_user.id,
    )
    events.publish_all(published)
    return order
