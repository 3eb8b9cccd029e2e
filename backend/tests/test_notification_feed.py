from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from ordertrack.domain_errors import NotificationNotFound
from ordertrack.events import EventBus, OrderCreated, StatusChanged
from ordertrack.models import User
from ordertrack.services.notification_feed import NotificationFeed

SHOP_MANAGER = User(id="3", name="Mike Wilson", role="shop_manager")

_TS = datetime(2024, 1, 14, 10, 0, tzinfo=timezone.utc)


def _status_changed(order_number: str = "ORD-2024-001") -> StatusChanged:
    return StatusChanged(
        order_id=f"id-{order_number}",
        order_number=order_number,
        actor=SHOP_MANAGER,
        timestamp=_TS,
        message='Order status updated to "IN SHOP"',
        old_status="pending",
        new_status="in_shop",
    )


def test_feed_is_newest_first_and_tracks_unread() -> None:
    feed = NotificationFeed()
    first = feed.handle(_status_changed("ORD-2024-001"))
    second = feed.handle(
        OrderCreated(
            order_id="id-2",
            order_number="ORD-2024-002",
            actor=SHOP_MANAGER,
            timestamp=_TS,
            message="New order created for Hospital Wing Extension",
        )
    )

    assert [item.id for item in feed.items] == [second.id, first.id]
    assert second.type == "order_created"
    assert first.type == "status_update"
    assert feed.unread_count == 2

    feed.mark_as_read(first.id)
    assert feed.unread_count == 1
    assert feed.mark_all_as_read() == 1
    assert feed.unread_count == 0


def test_feed_is_bounded() -> None:
    feed = NotificationFeed(limit=2)
    for number in range(1, 4):
        feed.handle(_status_changed(f"ORD-2024-00{number}"))

    assert [item.order_number for item in feed.items] == ["ORD-2024-003", "ORD-2024-002"]
    assert feed.for_order("id-ORD-2024-001") == []


def test_mark_unknown_notification() -> None:
    with pytest.raises(NotificationNotFound) as exc:
        NotificationFeed().mark_as_read("missing")
    assert exc.value.http_status == 404


def test_failing_subscriber_is_logged_and_others_still_run(caplog: pytest.LogCaptureFixture) -> None:
    bus = EventBus()
    received: list = []

    def broken(event) -> None:
        raise RuntimeError("socket closed")

    bus.subscribe(broken)
    bus.subscribe(received.append)

    with caplog.at_level(logging.ERROR, logger="ordertrack.events"):
        bus.publish(_status_changed())

    assert len(received) == 1
    assert "event.handler_failed type=status_changed order=ORD-2024-001" in caplog.text


def test_unsubscribe_stops_delivery() -> None:
    bus = EventBus()
    received: list = []
    unsubscribe = bus.subscribe(received.append)

    bus.publish(_status_changed())
    unsubscribe()
    bus.publish(_status_changed())

    assert len(received) == 1
