"""Security helpers (role gates, order visibility and access checks)."""

from __future__ import annotations

from .auth import check_permission
from .domain_errors import Unauthorized
from .models import ORDER_STATUSES, Order, User
from .services.order_rules import allowed_next_statuses, normalize_order_status


def _all_targets(*statuses: str) -> dict[str, frozenset[str]]:
    return {status: allowed_next_statuses(status) for status in statuses}


# Role -> {status the order is currently in: statuses the role may move it to}.
ROLE_TRANSITION_GATES: dict[str, dict[str, frozenset[str]]] = {
    "shop_manager": _all_targets(
        "pending",
        "in_shop",
        "being_pulled",
        "ready_to_load",
        "loaded",
        "back_ordered",
    ),
    "truck_driver": _all_targets("ready_to_load", "loaded", "out_for_delivery"),
    "site_foreman": {"delivered": frozenset({"foreman_confirmed"})},
    "job_lead": {"delivered": frozenset({"foreman_confirmed"})},
    "project_manager": {"pending": frozenset({"cancelled"})},
    "assistant_shop_manager": {
        "back_ordered": frozenset({"in_shop"}),
        "in_shop": frozenset({"being_pulled"}),
    },
    "shop_employee": {"being_pulled": frozenset({"ready_to_load"})},
    "accountant_manager": {},
}

# A driver may only progress a delivery that is assigned to them.
ASSIGNED_DRIVER_TRANSITIONS: frozenset[tuple[str, str]] = frozenset(
    {
        ("loaded", "out_for_delivery"),
        ("out_for_delivery", "delivered"),
    }
)

ORDER_ORIGINATOR_ROLES: frozenset[str] = frozenset({"site_foreman", "job_lead", "project_manager"})
REQUESTER_SCOPED_ROLES: frozenset[str] = frozenset({"site_foreman", "job_lead"})


def is_order_assigned_to_user(order: Order, user: User) -> bool:
    return order.assigned_to is not None and order.assigned_to.id == user.id


def gated_statuses(role: str) -> frozenset[str]:
    """Statuses a role may originate a transition from."""
    return frozenset(ROLE_TRANSITION_GATES.get(role, {}))


def can_transition_to(order: Order, actor: User, new_status: str) -> bool:
    current = normalize_order_status(order.status)
    target = normalize_order_status(new_status)
    role_targets = ROLE_TRANSITION_GATES.get(actor.role, {}).get(current, frozenset())
    if target not in role_targets:
        return False
    if actor.role == "truck_driver" and (current, target) in ASSIGNED_DRIVER_TRANSITIONS:
        return is_order_assigned_to_user(order, actor)
    return True


def available_transitions(order: Order, actor: User) -> list[str]:
    """Targets the actor may request right now, in state-machine order."""
    current = normalize_order_status(order.status)
    targets = ROLE_TRANSITION_GATES.get(actor.role, {}).get(current, frozenset())
    return [
        status
        for status in ORDER_STATUSES
        if status in targets and can_transition_to(order, actor, status)
    ]


def can_transition(order: Order, actor: User) -> bool:
    """Role gate on the order's current status combined with the driver assignment check."""
    return bool(available_transitions(order, actor))


def can_create_order(role: str) -> bool:
    return role in ORDER_ORIGINATOR_ROLES


def can_view_order(order: Order, user: User) -> bool:
    """Order visibility policy: foremen and job leads see their own orders, drivers their deliveries."""
    if check_permission(user, "canViewAllOrders"):
        return True
    if user.role in REQUESTER_SCOPED_ROLES:
        return order.requested_by.id == user.id
    if user.role == "truck_driver":
        return is_order_assigned_to_user(order, user) or normalize_order_status(order.status) == "ready_to_load"
    return True


def require_permission(user: User, permission: str) -> None:
    """Enforce a role capability server-side."""
    if not check_permission(user, permission):
        raise Unauthorized(
            f"Permission denied: {permission} required",
            details={"role": user.role, "permission": permission},
        )
