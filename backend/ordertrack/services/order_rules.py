"""Order status state machine and order-level invariant helpers."""

from __future__ import annotations

from datetime import datetime, timezone

from ..domain_errors import InvalidTransition, ValidationError
from ..models import ORDER_STATUSES


INITIAL_ORDER_STATUS = "pending"
TERMINAL_ORDER_STATUSES: frozenset[str] = frozenset({"foreman_confirmed", "cancelled"})
_ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"in_shop", "cancelled"}),
    "in_shop": frozenset({"being_pulled", "back_ordered"}),
    "being_pulled": frozenset({"ready_to_load"}),
    "ready_to_load": frozenset({"loaded"}),
    "loaded": frozenset({"out_for_delivery"}),
    "out_for_delivery": frozenset({"delivered"}),
    "delivered": frozenset({"foreman_confirmed"}),
    "back_ordered": frozenset({"in_shop"}),
    "foreman_confirmed": frozenset(),
    "cancelled": frozenset(),
}


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def normalize_order_status(status: str | None) -> str:
    if not status:
        return ""
    return status.strip().lower()


def is_known_status(status: str | None) -> bool:
    return normalize_order_status(status) in ORDER_STATUSES


def is_terminal_status(status: str | None) -> bool:
    return normalize_order_status(status) in TERMINAL_ORDER_STATUSES


def allowed_next_statuses(status: str | None) -> frozenset[str]:
    return _ALLOWED_TRANSITIONS.get(normalize_order_status(status), frozenset())


def validate_status_transition(*, current_status: str, next_status: str | None) -> str:
    """Return the normalized target status or raise InvalidTransition.

    Same-status requests are rejected: no state lists itself as a target.
    """
    current = normalize_order_status(current_status)
    nxt = normalize_order_status(next_status)

    if nxt not in ORDER_STATUSES:
        raise InvalidTransition(
            f"Unknown order status: {next_status!r}",
            details={"currentStatus": current, "requestedStatus": next_status},
        )
    if nxt not in allowed_next_statuses(current):
        raise InvalidTransition(
            f"Invalid order status transition: {current} -> {nxt}",
            details={
                "currentStatus": current,
                "requestedStatus": nxt,
                "allowed": sorted(allowed_next_statuses(current)),
            },
        )
    return nxt


def ensure_status_in(*, current_status: str, allowed: frozenset[str] | set[str], action: str) -> None:
    current = normalize_order_status(current_status)
    if current not in allowed:
        raise InvalidTransition(
            f"Cannot {action} while order is {current}",
            details={"currentStatus": current, "allowed": sorted(allowed)},
        )


def status_words(status: str) -> str:
    """``out_for_delivery`` -> ``OUT FOR DELIVERY``."""
    return normalize_order_status(status).replace("_", " ").upper()


def status_changed_message(status: str, notes: str | None = None) -> str:
    message = f'Order status updated to "{status_words(status)}"'
    if notes:
        message += f" - {notes}"
    return message


def format_order_number(*, sequence: int, at: datetime, prefix: str = "ORD", width: int = 3) -> str:
    if sequence < 1:
        raise ValidationError("Order sequence must start at 1", details={"sequence": sequence})
    return f"{prefix}-{at.year}-{str(sequence).zfill(width)}"
