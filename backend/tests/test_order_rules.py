from datetime import datetime, timezone

import pytest

from ordertrack.domain_errors import InvalidTransition, ValidationError
from ordertrack.models import ORDER_STATUSES
from ordertrack.services.order_rules import (
    allowed_next_statuses,
    format_order_number,
    is_terminal_status,
    status_changed_message,
    status_words,
    validate_status_transition,
)


def test_happy_path_walks_from_pending_to_foreman_confirmed() -> None:
    path = [
        "pending",
        "in_shop",
        "being_pulled",
        "ready_to_load",
        "loaded",
        "out_for_delivery",
        "delivered",
        "foreman_confirmed",
    ]
    for current, nxt in zip(path, path[1:]):
        assert validate_status_transition(current_status=current, next_status=nxt) == nxt


def test_back_order_branch_returns_to_in_shop() -> None:
    assert validate_status_transition(current_status="in_shop", next_status="back_ordered") == "back_ordered"
    assert validate_status_transition(current_status="back_ordered", next_status="in_shop") == "in_shop"


def test_pending_can_be_cancelled() -> None:
    assert validate_status_transition(current_status="pending", next_status="CANCELLED ") == "cancelled"


@pytest.mark.parametrize("status", ORDER_STATUSES)
def test_same_status_transition_is_rejected(status: str) -> None:
    with pytest.raises(InvalidTransition) as exc:
        validate_status_transition(current_status=status, next_status=status)
    assert exc.value.code == "INVALID_TRANSITION"
    assert exc.value.http_status == 409


@pytest.mark.parametrize("status", ["foreman_confirmed", "cancelled"])
def test_terminal_statuses_have_no_targets(status: str) -> None:
    assert is_terminal_status(status)
    assert allowed_next_statuses(status) == frozenset()
    for target in ORDER_STATUSES:
        with pytest.raises(InvalidTransition):
            validate_status_transition(current_status=status, next_status=target)


def test_unknown_target_status_is_invalid_transition() -> None:
    with pytest.raises(InvalidTransition, match="Unknown order status"):
        validate_status_transition(current_status="pending", next_status="approved")


def test_skipping_a_stage_is_rejected_with_allowed_targets_in_details() -> None:
    with pytest.raises(InvalidTransition, match="pending -> loaded") as exc:
        validate_status_transition(current_status="pending", next_status="loaded")
    assert exc.value.details["allowed"] == ["cancelled", "in_shop"]


def test_status_words_and_message_format() -> None:
    assert status_words("out_for_delivery") == "OUT FOR DELIVERY"
    assert status_changed_message("in_shop") == 'Order status updated to "IN SHOP"'
    assert (
        status_changed_message("back_ordered", "Coupling out of stock")
        == 'Order status updated to "BACK ORDERED" - Coupling out of stock'
    )


def test_order_number_is_zero_padded_with_year() -> None:
    at = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)
    assert format_order_number(sequence=7, at=at) == "ORD-2024-007"
    assert format_order_number(sequence=1234, at=at) == "ORD-2024-1234"
    assert format_order_number(sequence=3, at=at, prefix="MAT", width=4) == "MAT-2024-0003"


def test_order_number_sequence_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        format_order_number(sequence=0, at=datetime.now(timezone.utc))
