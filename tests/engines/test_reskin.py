"""
Reskin lifecycle tests: completion side effects, cancellation, auto-advance.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from core.primitives.actor import Actor
from core.primitives.money import Money
from engines.orders.errors import AlreadyResolved, InvalidAmount, MissingFields, NotFound
from engines.orders.models import (
    BillingMode,
    LineItemCategory,
    LineItemSource,
    OrderStatus,
    ReskinStatus,
    StatusHistoryEntry,
)
from engines.orders.order import create_order
from engines.orders.reskin import (
    Asset,
    InMemoryAssetRegistry,
    cancel_reskin,
    complete_reskin,
    request_reskin,
)

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
LATER = NOW + timedelta(hours=2)
ADMIN = Actor.human("admin-1", "Admin")

WALL = Asset(asset_id="asset-1", name="Backdrop Wall", qr_code="QR-0001")
COUNTER = Asset(asset_id="asset-2", name="Counter", qr_code="QR-0002")


class RecordingRegistry(InMemoryAssetRegistry):
    def __init__(self, assets):
        super().__init__(assets)
        self.transform_calls = []

    def mark_transformed(self, asset_id, new_asset_name, reskin_id):
        self.transform_calls.append((asset_id, new_asset_name, reskin_id))
        return super().mark_transformed(asset_id, new_asset_name, reskin_id)


def _order(status=OrderStatus.IN_PREPARATION):
    order = create_order(
        order_id="order-1", order_code="ORD-1", company_id="acme",
        actor=ADMIN, at=NOW,
    )
    entry = StatusHistoryEntry(status=status, timestamp=NOW, actor_id="admin-1")
    return replace(order, status=status, status_history=order.status_history + (entry,))


def _with_reskins(*assets, status=OrderStatus.IN_PREPARATION):
    order = _order(status)
    for index, asset in enumerate(assets, start=1):
        order = request_reskin(
            order, asset, reskin_id=f"rs-{index}", order_item_id=f"oi-{index}",
            target_brand="Acme Red", at=NOW,
        )
    return order


def _complete(order, registry, reskin_id="rs-1", **overrides):
    params = dict(
        new_asset_name="Backdrop Wall (Acme)",
        completion_photos=["photo-1.jpg"],
        cost=Money.of("450"),
        line_item_id=f"li-{reskin_id}",
        assets=registry,
        actor=ADMIN,
        at=LATER,
    )
    params.update(overrides)
    return complete_reskin(order, reskin_id, **params)


class TestRequestReskin:
    def test_pending_request(self):
        order = _with_reskins(WALL)
        reskin = order.find_reskin("rs-1")
        assert reskin.status == ReskinStatus.PENDING
        assert reskin.original_asset_name == "Backdrop Wall"
        assert order.pending_reskins() == (reskin,)

    def test_target_brand_required(self):
        with pytest.raises(MissingFields):
            request_reskin(
                _order(), WALL, reskin_id="rs-1", order_item_id="oi-1",
                target_brand=" ", at=NOW,
            )


class TestCompleteReskin:
    def test_completion_side_effects(self):
        registry = RecordingRegistry([WALL])
        order = _complete(_with_reskins(WALL), registry)

        reskin = order.find_reskin("rs-1")
        assert reskin.status == ReskinStatus.COMPLETE
        assert reskin.new_asset_id == "asset-1-r1"
        assert registry.get("asset-1").status == "TRANSFORMED"
        assert registry.get("asset-1-r1").name == "Backdrop Wall (Acme)"

        item = order.find_line_item("li-rs-1")
        assert item.source == LineItemSource.RESKIN
        assert item.category == LineItemCategory.RESKIN
        assert item.billing_mode == BillingMode.BILLABLE
        assert item.quantity == Decimal("1")
        assert item.line_total.amount == Decimal("450.00")
        assert item.description == "Rebrand: Backdrop Wall → Acme Red"
        assert item.metadata == {"original_asset_id": "asset-1", "new_asset_id": "asset-1-r1"}

    def test_no_photos_leaves_no_trace(self):
        registry = RecordingRegistry([WALL])
        order = _with_reskins(WALL)
        with pytest.raises(MissingFields):
            _complete(order, registry, completion_photos=[])
        assert registry.transform_calls == []
        assert registry.get("asset-1").status == "AVAILABLE"
        assert order.line_items == ()
        assert order.find_reskin("rs-1").is_pending

    @pytest.mark.parametrize("cost", ["0", "-10"])
    def test_cost_must_be_positive(self, cost):
        registry = RecordingRegistry([WALL])
        with pytest.raises(InvalidAmount):
            _complete(_with_reskins(WALL), registry, cost=Money.of(cost))
        assert registry.transform_calls == []

    def test_missing_cost(self):
        with pytest.raises(MissingFields):
            _complete(_with_reskins(WALL), RecordingRegistry([WALL]), cost=None)

    def test_complete_twice(self):
        registry = RecordingRegistry([WALL])
        order = _complete(_with_reskins(WALL), registry)
        with pytest.raises(AlreadyResolved):
            _complete(order, registry, line_item_id="li-again")
        assert len(registry.transform_calls) == 1

    def test_unknown_reskin(self):
        with pytest.raises(NotFound):
            _complete(_with_reskins(WALL), RecordingRegistry([WALL]), reskin_id="rs-9")


    def test_cost_in_other_currency_leaves_no_trace(self):
        registry = RecordingRegistry([WALL])
        with pytest.raises(InvalidAmount):
            _complete(_with_reskins(WALL), registry, cost=Money.of("450", "USD"))
        assert registry.transform_calls == []
        assert registry.get("asset-1").status == "AVAILABLE"

    def test_retry_from_same_snapshot_reuses_new_asset(self):
        registry = RecordingRegistry([WALL])
        snapshot = _with_reskins(WALL)
        first = _complete(snapshot, registry)
        retried = _complete(snapshot, registry)

        assert retried.find_reskin("rs-1").new_asset_id == "asset-1-r1"
        assert first.find_reskin("rs-1").new_asset_id == "asset-1-r1"
        assert registry.asset_ids() == ("asset-1", "asset-1-r1")
        assert len(registry.transform_calls) == 2


class TestInMemoryAssetRegistry:
    def test_mark_transformed_keyed_on_reskin(self):
        registry = InMemoryAssetRegistry([WALL])
        assert registry.mark_transformed("asset-1", "Wall (Acme)", "rs-1") == "asset-1-r1"
        assert registry.mark_transformed("asset-1", "Wall (Other)", "rs-1") == "asset-1-r1"
        assert registry.get("asset-1-r1").name == "Wall (Acme)"

    def test_new_ids_never_repeat(self):
        registry = InMemoryAssetRegistry([WALL, COUNTER])
        registry.mark_transformed("asset-2", "Counter (Acme)", "rs-1")
        registry.mark_transformed("asset-1", "Wall (Acme)", "rs-2")
        registry.mark_transformed("asset-1", "Wall (Globex)", "rs-3")
        assert registry.asset_ids() == (
            "asset-1", "asset-1-r1", "asset-1-r2", "asset-2", "asset-2-r1",
        )
        assert registry.transformed_into("asset-1") == "asset-1-r2"


class TestCancelReskin:
    def test_cancel_releases_reservation(self):
        registry = InMemoryAssetRegistry([WALL])
        registry.reserve("asset-1", "order-1")
        order = cancel_reskin(
            _with_reskins(WALL), "rs-1", "Client changed mind",
            assets=registry, actor=ADMIN, at=LATER,
        )
        reskin = order.find_reskin("rs-1")
        assert reskin.status == ReskinStatus.CANCELLED
        assert reskin.cancellation_reason == "Client changed mind"
        assert not registry.is_reserved("asset-1")
        assert order.line_items == ()

    def test_reason_required(self):
        with pytest.raises(MissingFields):
            cancel_reskin(
                _with_reskins(WALL), "rs-1", "",
                assets=InMemoryAssetRegistry([WALL]), actor=ADMIN, at=LATER,
            )

    def test_cancel_after_complete(self):
        registry = InMemoryAssetRegistry([WALL])
        order = _complete(_with_reskins(WALL), registry)
        with pytest.raises(AlreadyResolved):
            cancel_reskin(order, "rs-1", "too late", assets=registry, actor=ADMIN, at=LATER)


class TestAutoAdvance:
    def test_advances_once_all_resolved(self):
        registry = InMemoryAssetRegistry([WALL, COUNTER])
        order = _with_reskins(WALL, COUNTER)

        order = _complete(order, registry, advance_to=OrderStatus.READY_FOR_DELIVERY)
        assert order.status == OrderStatus.IN_PREPARATION

        order = cancel_reskin(
            order, "rs-2", "Counter not needed", assets=registry, actor=ADMIN,
            at=LATER, advance_to=OrderStatus.READY_FOR_DELIVERY,
        )
        assert order.status == OrderStatus.READY_FOR_DELIVERY
        assert order.status_history[-1].actor_id == "system:reskin"

    def test_illegal_advance_is_skipped(self):
        registry = InMemoryAssetRegistry([WALL])
        order = _complete(
            _with_reskins(WALL, status=OrderStatus.CONFIRMED), registry,
            advance_to=OrderStatus.READY_FOR_DELIVERY,
        )
        assert order.status == OrderStatus.CONFIRMED

    def test_no_policy_no_advance(self):
        order = _complete(_with_reskins(WALL), InMemoryAssetRegistry([WALL]))
        assert order.status == OrderStatus.IN_PREPARATION
