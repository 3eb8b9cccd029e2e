"""Notification feed endpoints."""
from fastapi import APIRouter, Depends

from ..dependencies import get_current_user, get_notification_feed
from ..models import User
from ..schemas import NotificationListResponse, NotificationResponse
from ..services.notification_feed import NotificationFeed

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
def list_notifications(
    current_user: User = Depends(get_current_user),
    feed: NotificationFeed = Depends(get_notification_feed),
):
    items = feed.items
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(item) for item in items],
        unread_count=sum(1 for item in items if not item.read),
    )


@router.post("/read-all")
def mark_all_as_read(
    current_user: User = Depends(get_current_user),
    feed: NotificationFeed = Depends(get_notification_feed),
):
    return {"marked": feed.mark_all_as_read()}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
def mark_as_read(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    feed: NotificationFeed = Depends(get_notification_feed),
):
    return NotificationResponse.model_validate(feed.mark_as_read(notification_id))
