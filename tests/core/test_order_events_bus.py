"""
Tests for core.events — registry wildcards and never-raising dispatch.
"""

from datetime import datetime, timezone

import pytest

from core.events import (
    DomainEvent,
    DuplicateSubscriberError,
    InvalidEventTypeFormat,
    SubscriberRegistry,
    dispatch,
)

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def _event(event_type="orders.order.quoted.v1"):
    return DomainEvent(
        event_type=event_type,
        aggregate_id="order-1",
        actor_id="admin-1",
        occurred_at=NOW,
        payload={"order_code": "ORD-1"},
    )


class TestSubscriberRegistry:
    def test_exact_then_wildcard(self):
        registry = SubscriberRegistry()
        exact = lambda e: None
        wildcard = lambda e: None
        registry.register_subscriber("orders.order.*", wildcard, "notifications")
        registry.register_subscriber("orders.order.quoted.v1", exact, "notifications")

        handlers = [h for h, _ in registry.get_subscribers("orders.order.quoted.v1")]
        assert handlers == [exact, wildcard]
        assert registry.subscriber_count("orders.invoice.issued.v1") == 0

    def test_invalid_format(self):
        registry = SubscriberRegistry()
        with pytest.raises(InvalidEventTypeFormat):
            registry.register_subscriber("orders", lambda e: None, "audit")
        with pytest.raises(InvalidEventTypeFormat):
            registry.register_subscriber("orders.*.quoted", lambda e: None, "audit")

    def test_duplicate_handler(self):
        registry = SubscriberRegistry()
        handler = lambda e: None
        registry.register_subscriber("orders.order.quoted.v1", handler, "audit")
        with pytest.raises(DuplicateSubscriberError):
            registry.register_subscriber("orders.order.quoted.v1", handler, "audit")

    def test_orders_may_follow_own_events(self):
        registry = SubscriberRegistry()
        registry.register_subscriber("orders.reskin.*", lambda e: None, "orders")
        assert registry.has_subscribers("orders.reskin.completed.v1")


class TestDispatch:
    def test_failing_subscriber_does_not_stop_others(self):
        registry = SubscriberRegistry()
        received = []

        def broken(event):
            raise RuntimeError("mail server down")

        registry.register_subscriber("orders.order.quoted.v1", broken, "notifications")
        registry.register_subscriber("orders.order.*", received.append, "audit")

        result = dispatch(_event(), registry)

        assert result.notified == 1
        assert result.failed == 1
        failure = result.failures[0]
        assert failure.error_type == "RuntimeError"
        assert failure.subscriber == "notifications"
        assert failure.error == "mail server down"
        assert len(received) == 1

    def test_no_subscribers(self):
        result = dispatch(_event(), SubscriberRegistry())
        assert result.notified == 0
        assert result.failures == ()
        assert result.event_type == "orders.order.quoted.v1"


class TestDomainEvent:
    def test_to_dict(self):
        data = _event().to_dict()
        assert data["event_type"] == "orders.order.quoted.v1"
        assert data["occurred_at"] == NOW.isoformat()
        assert data["payload"] == {"order_code": "ORD-1"}

    def test_requires_aggregate(self):
        with pytest.raises(ValueError):
            DomainEvent(
                event_type="orders.order.quoted.v1",
                aggregate_id="",
                actor_id="a",
                occurred_at=NOW,
            )
