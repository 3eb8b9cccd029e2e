"""FastAPI dependencies: engine, notification feed and the acting user."""
from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, Request

from .domain_errors import DomainError
from .engine import OrderLifecycleEngine
from .models import User
from .services.notification_feed import NotificationFeed


def get_engine(request: Request) -> OrderLifecycleEngine:
    return request.app.state.engine


def get_notification_feed(request: Request) -> NotificationFeed:
    return request.app.state.notification_feed


def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    engine: OrderLifecycleEngine = Depends(get_engine),
) -> User:
    """Resolve the acting user from the directory (identification only, no credentials)."""
    if not x_user_id:
        raise DomainError(
            code="USER_NOT_IDENTIFIED",
            http_status=401,
            message="X-User-Id header is required",
        )
    user = engine.directory.get(x_user_id)
    if user is None:
        raise DomainError(
            code="USER_NOT_IDENTIFIED",
            http_status=401,
            message="Unknown user",
            details={"userId": x_user_id},
        )
    return user
