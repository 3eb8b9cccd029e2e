from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ordertrack.domain_errors import (
    ConcurrentModification,
    DomainError,
    DriverUnavailable,
    InvalidTransition,
    MaterialNotFound,
    NotificationNotFound,
    OrderNotFound,
    Unauthorized,
    UserNotFound,
    ValidationError,
)
from ordertrack.problem_details import build_problem_details_response, install_problem_details_handler


def test_problem_details_payload_contains_stable_code_and_rfc7807_fields() -> None:
    response = build_problem_details_response(
        InvalidTransition(
            "Invalid order status transition: pending -> delivered",
            details={"allowed": ["cancelled", "in_shop"]},
        )
    )

    assert response.status_code == 409
    assert response.media_type == "application/problem+json"

    body = response.body.decode("utf-8")
    assert '"type":"https://api.ordertrack.local/problems/invalid-transition"' in body
    assert '"title":"Conflict"' in body
    assert '"status":409' in body
    assert '"detail":"Invalid order status transition: pending -> delivered"' in body
    assert '"code":"INVALID_TRANSITION"' in body
    assert '"details":{"allowed":["cancelled","in_shop"]}' in body


def test_problem_details_omits_details_and_instance_when_absent() -> None:
    response = build_problem_details_response(ValidationError("Order must contain at least one material"))

    body = response.body.decode("utf-8")
    assert response.status_code == 422
    assert '"code":"VALIDATION_ERROR"' in body
    assert '"details"' not in body
    assert '"instance"' not in body


def test_unknown_http_status_falls_back_to_generic_title() -> None:
    response = build_problem_details_response(DomainError(code="ODD", http_status=599, message="odd"))
    assert '"title":"Order Error"' in response.body.decode("utf-8")


def test_installed_handler_maps_domain_error_with_request_path() -> None:
    app = FastAPI()
    install_problem_details_handler(app)

    @app.get("/boom")
    def _boom():
        raise DomainError(
            code="ROUTE_PROBLEM",
            http_status=409,
            message="route failed",
            details={"source": "test"},
        )

    client = TestClient(app)
    response = client.get("/boom")

    assert response.status_code == 409
    assert response.headers["content-type"].startswith("application/problem+json")
    payload = response.json()
    assert payload["code"] == "ROUTE_PROBLEM"
    assert payload["detail"] == "route failed"
    assert payload["instance"] == "/boom"


@pytest.mark.parametrize(
    ("error_type", "code", "http_status"),
    [
        (InvalidTransition, "INVALID_TRANSITION", 409),
        (Unauthorized, "UNAUTHORIZED", 403),
        (DriverUnavailable, "DRIVER_UNAVAILABLE", 409),
        (ValidationError, "VALIDATION_ERROR", 422),
        (OrderNotFound, "ORDER_NOT_FOUND", 404),
        (UserNotFound, "USER_NOT_FOUND", 404),
        (MaterialNotFound, "MATERIAL_NOT_FOUND", 404),
        (NotificationNotFound, "NOTIFICATION_NOT_FOUND", 404),
        (ConcurrentModification, "CONCURRENT_MODIFICATION", 409),
    ],
)
def test_typed_errors_carry_stable_code_and_status(error_type: type, code: str, http_status: int) -> None:
    exc = error_type("operation failed", details={"orderId": "o1"})

    assert isinstance(exc, DomainError)
    assert (exc.code, exc.http_status) == (code, http_status)
    assert str(exc) == "operation failed"
    assert exc.details == {"orderId": "o1"}
