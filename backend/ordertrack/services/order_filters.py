"""Dashboard views over an order collection.

All functions are pure: they never mutate their inputs, are recomputed on
every call and preserve the collection's order (most recently created first
when the collection comes from the store).
"""

from __future__ import annotations

from collections import Counter
from typing import Callable, Iterable, Optional

from ..models import ORDER_STATUSES, Order, User

COMPLETED_STATUSES: frozenset[str] = frozenset({"delivered", "foreman_confirmed"})
SHOP_QUEUE_STATUSES: frozenset[str] = frozenset({"pending", "in_shop", "being_pulled", "ready_to_load"})
DELIVERY_STATUSES: frozenset[str] = frozenset({"loaded", "out_for_delivery"})
SHOP_TASK_STATUSES: frozenset[str] = frozenset({"in_shop", "being_pulled"})


def _active(order: Order, user: User) -> bool:
    if order.status in COMPLETED_STATUSES:
        return False
    if user.role == "site_foreman":
        return order.requested_by.id == user.id
    return True


def _completed(order: Order, user: User) -> bool:
    return order.status in COMPLETED_STATUSES


def _shop_queue(order: Order, user: User) -> bool:
    return order.status in SHOP_QUEUE_STATUSES


def _my_deliveries(order: Order, user: User) -> bool:
    return (
        order.assigned_to is not None
        and order.assigned_to.id == user.id
        and order.status in DELIVERY_STATUSES
    )


def _my_tasks(order: Order, user: User) -> bool:
    return order.status in SHOP_TASK_STATUSES


def _all(order: Order, user: User) -> bool:
    return True


ORDER_VIEWS: dict[str, Callable[[Order, User], bool]] = {
    "active": _active,
    "completed": _completed,
    "shop-queue": _shop_queue,
    "my-deliveries": _my_deliveries,
    "my-tasks": _my_tasks,
    "all": _all,
}

# Tab ids used by the dashboard sidebar.
VIEW_ALIASES: dict[str, str] = {
    "active-orders": "active",
    "completed-orders": "completed",
}


def filter_orders(orders: Iterable[Order], user: Optional[User], view_name: Optional[str]) -> list[Order]:
    """Orders in the named view; unknown view names show every order."""
    if user is None:
        return []
    name = VIEW_ALIASES.get(view_name or "all", view_name or "all")
    predicate = ORDER_VIEWS.get(name, _all)
    return [order for order in orders if predicate(order, user)]


def orders_for_user(orders: Iterable[Order], user_id: str) -> list[Order]:
    """Orders requested by or assigned to the user."""
    return [
        order
        for order in orders
        if order.requested_by.id == user_id or (order.assigned_to is not None and order.assigned_to.id == user_id)
    ]


def orders_with_status(orders: Iterable[Order], status: str) -> list[Order]:
    return [order for order in orders if order.status == status]


def dashboard_summary(orders: Iterable[Order]) -> dict[str, int]:
    counts = Counter(order.status for order in orders)
    return {status: counts.get(status, 0) for status in ORDER_STATUSES}
