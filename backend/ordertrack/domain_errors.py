"""Domain-level exception primitives with stable machine-readable codes."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(eq=False)
class DomainError(Exception):
    """Engine-level error with stable code and HTTP mapping."""

    code: str
    http_status: int
    message: str
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message


class InvalidTransition(DomainError):
    """Target status is not reachable from the order's current status."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code="INVALID_TRANSITION", http_status=409, message=message, details=details)


class Unauthorized(DomainError):
    """Role gate or driver assignment check failed."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code="UNAUTHORIZED", http_status=403, message=message, details=details)


class DriverUnavailable(DomainError):
    """Driver is in maintenance or already out for delivery."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code="DRIVER_UNAVAILABLE", http_status=409, message=message, details=details)


class ValidationError(DomainError):
    """Missing or malformed order fields."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code="VALIDATION_ERROR", http_status=422, message=message, details=details)


class OrderNotFound(DomainError):
    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code="ORDER_NOT_FOUND", http_status=404, message=message, details=details)


class UserNotFound(DomainError):
    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code="USER_NOT_FOUND", http_status=404, message=message, details=details)


class MaterialNotFound(DomainError):
    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code="MATERIAL_NOT_FOUND", http_status=404, message=message, details=details)


class NotificationNotFound(DomainError):
    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code="NOTIFICATION_NOT_FOUND", http_status=404, message=message, details=details)


class ConcurrentModification(DomainError):
    """Order revision changed since the caller last read it."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code="CONCURRENT_MODIFICATION", http_status=409, message=message, details=details)
