"""
Order service tests: end-to-end flows through permissions, clock and events.
"""

import itertools
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from core.config import InMemoryPricingConfigStore, PricingRules
from core.events import SubscriberRegistry
from core.permissions import (
    PERMISSION_ORDERS_CREATE,
    PERMISSION_ORDERS_LINE_ITEMS,
    PERMISSION_ORDERS_LOGISTICS,
    PERMISSION_ORDERS_PRICING_ADJUST,
    PERMISSION_ORDERS_SUBMIT,
    PERMISSION_ORDERS_UPDATE_STATUS,
    PERMISSION_PRICING_REVIEW,
    PERMISSION_QUOTES_RESPOND,
    VALID_PERMISSIONS,
    InMemoryPermissionChecker,
    Role,
    RoleAssignment,
)
from core.primitives.actor import Actor
from core.primitives.money import Money, Percentage
from core.time import FixedClock
from engines.orders.catalog import InMemoryServiceCatalog, ServiceType
from engines.orders.errors import (
    AlreadyPaid,
    AlreadyResolved,
    InvalidAmount,
    InvalidTransition,
    MissingFields,
    OrderLocked,
    RateNotFound,
    Unauthorized,
)
from engines.orders.events import (
    ORDERS_INVOICE_ISSUED_V1,
    ORDERS_ORDER_CREATED_V1,
    ORDERS_ORDER_RETURNED_TO_LOGISTICS_V1,
    ORDERS_PAYMENT_RECORDED_V1,
    ORDERS_RESKIN_COMPLETED_V1,
)
from engines.orders.ledger import RequestApproval
from engines.orders.models import (
    BillingMode,
    FinancialStatus,
    LineItemCategory,
    LineItemRequestStatus,
    OrderStatus,
    TripType,
    TruckLeg,
)
from engines.orders.rates import PricingTier, TieredBaseRateTable, TransportRateTable
from engines.orders.reskin import Asset, InMemoryAssetRegistry
from engines.orders.services import OrderService, route_direct_to_quote

START = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

ADMIN = Actor.human("admin-1", "Platform Admin")
LOGISTICS = Actor.human("logistics-1", "Logistics")
CLIENT = Actor.human("client-1", "Client", company_id="acme")


class EventRecorder:
    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    @property
    def types(self):
        return [e.event_type for e in self.events]


def _permissions():
    return InMemoryPermissionChecker(
        roles=(
            Role("admin", tuple(VALID_PERMISSIONS)),
            Role("logistics", (
                PERMISSION_ORDERS_UPDATE_STATUS,
                PERMISSION_ORDERS_LOGISTICS,
                PERMISSION_ORDERS_LINE_ITEMS,
                PERMISSION_ORDERS_PRICING_ADJUST,
                PERMISSION_PRICING_REVIEW,
            )),
            Role("client", (
                PERMISSION_ORDERS_CREATE,
                PERMISSION_ORDERS_SUBMIT,
                PERMISSION_QUOTES_RESPOND,
            )),
        ),
        assignments=(
            RoleAssignment("admin-1", "admin"),
            RoleAssignment("logistics-1", "logistics"),
            RoleAssignment("client-1", "client", company_id="acme"),
        ),
    )


def _transport_rates():
    table = TransportRateTable()
    table.set_rate(city_id="dubai", trip_type=TripType.ROUND_TRIP,
                   vehicle_type_id="3-ton", rate=Money.of("300"))
    table.set_rate(city_id="dubai", trip_type=TripType.ROUND_TRIP,
                   vehicle_type_id="7-ton", rate=Money.of("500"))
    return table


class Harness:
    def __init__(self, **overrides):
        self.clock = FixedClock(START)
        self.recorder = EventRecorder()
        self.registry = SubscriberRegistry()
        for pattern in ("orders.order.*", "orders.invoice.*", "orders.payment.*",
                        "orders.line_item.*", "orders.line_item_request.*",
                        "orders.reskin.*"):
            self.registry.register_subscriber(pattern, self.recorder, "audit")
        self.assets = InMemoryAssetRegistry([
            Asset(asset_id="asset-1", name="Backdrop Wall", qr_code="QR-0001"),
        ])
        ids = itertools.count(1)
        params = dict(
            permissions=_permissions(),
            base_rates=TieredBaseRateTable([
                PricingTier("AE", "Dubai", Decimal("0"), Decimal("10"), Money.of("60")),
                PricingTier("AE", "Dubai", Decimal("10"), None, Money.of("50")),
            ]),
            transport_rates=_transport_rates(),
            catalog=InMemoryServiceCatalog([
                ServiceType("assembly", "Assembly", LineItemCategory.ASSEMBLY,
                            "hour", Money.of("120")),
            ]),
            assets=self.assets,
            clock=self.clock,
            event_registry=self.registry,
            id_factory=lambda: f"id-{next(ids)}",
        )
        params.update(overrides)
        self.service = OrderService(**params)

    def draft(self):
        return self.service.create_order(
            CLIENT, order_code="ORD-100", company_id="acme", contact_name="Dana",
        )

    def in_pricing_review(self):
        order = self.service.transition(self.draft(), OrderStatus.SUBMITTED, CLIENT)
        return self.service.transition(order, OrderStatus.PRICING_REVIEW, LOGISTICS)

    def priced(self):
        svc = self.service
        order = self.in_pricing_review()
        order = svc.set_base_operations(order, LOGISTICS, "20", country="AE", city="Dubai")
        order = svc.set_transport(
            order, LOGISTICS, region="Dubai", city_id="dubai",
            trip_type=TripType.ROUND_TRIP, vehicle_type_id="3-ton",
        )
        return svc.add_custom_item(
            order, LOGISTICS, description="Extra handling",
            category=LineItemCategory.HANDLING, quantity="2", unit="trip",
            unit_rate=Money.of("50"),
        )

    def confirmed(self):
        svc = self.service
        order = svc.submit_for_approval(self.priced(), LOGISTICS)
        order = svc.transition(order, OrderStatus.QUOTED, ADMIN)
        return svc.transition(order, OrderStatus.CONFIRMED, CLIENT)


class TestCreateOrder:
    def test_create(self):
        h = Harness()
        order = h.draft()
        assert order.status == OrderStatus.DRAFT
        assert order.order_id == "id-1"
        assert order.created_at == START
        assert order.status_history[0].actor_id == "client-1"
        assert order.margin_percent == Percentage.of("25")
        assert h.recorder.types == [ORDERS_ORDER_CREATED_V1]

    def test_company_rules_seed_currency_and_margin(self):
        store = InMemoryPricingConfigStore()
        store.set_company_rules(
            "acme", PricingRules(currency="USD", default_margin=Percentage.of("30")),
        )
        order = Harness(config_store=store).draft()
        assert order.currency == "USD"
        assert order.margin_percent == Percentage.of("30")

    def test_requires_permission(self):
        with pytest.raises(Unauthorized):
            Harness().service.create_order(LOGISTICS, order_code="X", company_id="acme")

    def test_client_cannot_create_for_other_company(self):
        with pytest.raises(Unauthorized):
            Harness().service.create_order(CLIENT, order_code="X", company_id="globex")


class TestCompanyScope:
    def _globex_draft(self, h):
        return h.service.create_order(ADMIN, order_code="ORD-200", company_id="globex")

    def _globex_quoted(self, h):
        svc = h.service
        order = svc.transition(self._globex_draft(h), OrderStatus.SUBMITTED, ADMIN)
        order = svc.transition(order, OrderStatus.PRICING_REVIEW, ADMIN)
        order = svc.set_base_operations(order, ADMIN, "20", country="AE", city="Dubai")
        order = svc.set_transport(
            order, ADMIN, region="Dubai", city_id="dubai",
            trip_type=TripType.ROUND_TRIP, vehicle_type_id="3-ton",
        )
        order = svc.submit_for_approval(order, ADMIN)
        return svc.transition(order, OrderStatus.QUOTED, ADMIN)

    def test_cannot_submit_other_company_order(self):
        h = Harness()
        order = self._globex_draft(h)
        with pytest.raises(Unauthorized):
            h.service.transition(order, OrderStatus.SUBMITTED, CLIENT)
        assert order.status == OrderStatus.DRAFT

    @pytest.mark.parametrize("target", [OrderStatus.CONFIRMED, OrderStatus.DECLINED])
    def test_cannot_answer_other_company_quote(self, target):
        h = Harness()
        order = self._globex_quoted(h)
        with pytest.raises(Unauthorized):
            h.service.transition(order, target, CLIENT)

    def test_own_company_quote_still_answered(self):
        assert Harness().confirmed().status == OrderStatus.CONFIRMED

    def test_cannot_request_items_on_other_company_order(self):
        h = Harness()
        with pytest.raises(Unauthorized):
            h.service.request_line_item(
                self._globex_draft(h), CLIENT, description="Forklift", quantity="1",
            )

    def test_cannot_request_reskin_on_other_company_order(self):
        h = Harness()
        with pytest.raises(Unauthorized):
            h.service.request_reskin(
                self._globex_draft(h), CLIENT, qr_code="QR-0001",
                order_item_id="oi-1", target_brand="Acme Red",
            )


def _usd_store():
    store = InMemoryPricingConfigStore()
    store.set_company_rules("acme", PricingRules(currency="USD"))
    return store


def _usd_rates():
    transport = TransportRateTable()
    transport.set_rate(city_id="dubai", trip_type=TripType.ROUND_TRIP,
                       vehicle_type_id="3-ton", rate=Money.of("300", "USD"))
    return dict(
        base_rates=TieredBaseRateTable([
            PricingTier("AE", "Dubai", Decimal("0"), None, Money.of("50", "USD")),
        ]),
        transport_rates=transport,
    )


class TestOrderCurrency:
    def test_company_currency_carries_into_pricing(self):
        h = Harness(config_store=_usd_store(), **_usd_rates())
        order = h.service.set_base_operations(
            h.in_pricing_review(), LOGISTICS, "20", country="AE", city="Dubai",
        )
        order = h.service.set_transport(
            order, LOGISTICS, region="Dubai", city_id="dubai",
            trip_type=TripType.ROUND_TRIP, vehicle_type_id="3-ton",
        )
        assert order.currency == "USD"
        assert order.pricing.currency == "USD"
        assert order.pricing.final_total == Money.of("1625", "USD")

    def test_base_rate_in_other_currency(self):
        h = Harness(config_store=_usd_store())
        with pytest.raises(InvalidAmount):
            h.service.set_base_operations(
                h.in_pricing_review(), LOGISTICS, "20", country="AE", city="Dubai",
            )

    def test_transport_rate_in_other_currency(self):
        h = Harness(config_store=_usd_store())
        with pytest.raises(InvalidAmount):
            h.service.set_transport(
                h.in_pricing_review(), LOGISTICS, region="Dubai", city_id="dubai",
                trip_type=TripType.ROUND_TRIP, vehicle_type_id="3-ton",
            )

    def test_vehicle_rate_in_other_currency(self):
        transport = _transport_rates()
        transport.set_rate(city_id="dubai", trip_type=TripType.ROUND_TRIP,
                           vehicle_type_id="10-ton", rate=Money.of("900", "USD"))
        h = Harness(transport_rates=transport)
        order = h.priced()
        with pytest.raises(InvalidAmount):
            h.service.change_vehicle(order, LOGISTICS, "10-ton", "Bigger load")
        assert order.transport.vehicle_type == "3-ton"

    def test_override_in_other_currency(self):
        h = Harness()
        with pytest.raises(InvalidAmount):
            h.service.set_transport(
                h.in_pricing_review(), LOGISTICS, region="Dubai", city_id="dubai",
                trip_type=TripType.ROUND_TRIP, vehicle_type_id="3-ton",
                rate_override=Money.of("250", "USD"), override_reason="Deal",
            )

    def test_custom_item_in_other_currency(self):
        h = Harness()
        order = h.priced()
        with pytest.raises(InvalidAmount):
            h.service.add_custom_item(
                order, LOGISTICS, description="Crane", category=LineItemCategory.OTHER,
                quantity="1", unit="day", unit_rate=Money.of("10", "USD"),
            )
        assert order.pricing.final_total.amount == Decimal("1750.00")

    def test_catalog_rate_in_other_currency(self):
        h = Harness(catalog=InMemoryServiceCatalog([
            ServiceType("lift", "Lift", LineItemCategory.ASSEMBLY,
                        "hour", Money.of("10", "USD")),
        ]))
        with pytest.raises(InvalidAmount):
            h.service.add_catalog_item(h.priced(), LOGISTICS, "lift", "1")

    def test_approved_rate_in_other_currency(self):
        h = Harness()
        order = h.service.request_line_item(
            h.priced(), CLIENT, description="Extra forklift", quantity="1",
        )
        request_id = order.line_item_requests[0].request_id
        with pytest.raises(InvalidAmount):
            h.service.approve_line_item_request(
                order, ADMIN, request_id, RequestApproval(unit_rate=Money.of("100", "USD")),
            )
        assert order.find_line_item_request(request_id).status == LineItemRequestStatus.REQUESTED


class TestWorkedPricing:
    def test_scenario_totals(self):
        order = Harness().priced()
        pricing = order.pricing
        assert order.status == OrderStatus.PRICING_REVIEW
        assert pricing.base_operations.total.amount == Decimal("1000.00")
        assert pricing.transport.final_rate.amount == Decimal("300.00")
        assert pricing.logistics_subtotal.amount == Decimal("1400.00")
        assert pricing.margin.amount.amount == Decimal("350.00")
        assert pricing.final_total.amount == Decimal("1750.00")

    def test_margin_override(self):
        h = Harness()
        order = h.service.set_margin(h.priced(), LOGISTICS, "10")
        assert order.pricing.final_total.amount == Decimal("1540.00")

    def test_margin_outside_rules(self):
        store = InMemoryPricingConfigStore(PricingRules(max_margin=Percentage.of("40")))
        h = Harness(config_store=store)
        with pytest.raises(InvalidAmount):
            h.service.set_margin(h.priced(), LOGISTICS, "45")

    def test_vehicle_change_reprices(self):
        h = Harness()
        order = h.service.change_vehicle(h.priced(), LOGISTICS, "7-ton", "Bigger load")
        assert order.transport.vehicle_type == "7-ton"
        assert order.transport.vehicle_change_reason == "Bigger load"
        assert order.pricing.logistics_subtotal.amount == Decimal("1600.00")

    def test_transport_override_needs_reason(self):
        h = Harness()
        order = h.in_pricing_review()
        with pytest.raises(MissingFields):
            h.service.set_transport(
                order, LOGISTICS, region="Dubai", city_id="dubai",
                trip_type=TripType.ROUND_TRIP, vehicle_type_id="3-ton",
                rate_override=Money.of("250"),
            )

    def test_missing_rate(self):
        h = Harness()
        with pytest.raises(RateNotFound):
            h.service.set_base_operations(
                h.in_pricing_review(), LOGISTICS, "5", country="AE", city="Sharjah",
            )

    def test_pricing_locked_after_quote(self):
        h = Harness()
        order = h.service.transition(
            h.service.submit_for_approval(h.priced(), LOGISTICS),
            OrderStatus.QUOTED, ADMIN,
        )
        with pytest.raises(OrderLocked):
            h.service.set_margin(order, ADMIN, "30")

    def test_client_cannot_adjust_pricing(self):
        h = Harness()
        with pytest.raises(Unauthorized):
            h.service.set_margin(h.priced(), CLIENT, "5")


class TestSubmitForApproval:
    def test_routes_to_pending_approval(self):
        h = Harness()
        order = h.service.submit_for_approval(h.priced(), LOGISTICS)
        assert order.status == OrderStatus.PENDING_APPROVAL

    def test_direct_to_quote_routing(self):
        h = Harness(submit_routing=route_direct_to_quote)
        order = h.service.submit_for_approval(h.priced(), ADMIN)
        assert order.status == OrderStatus.QUOTED

    def test_requires_pricing(self):
        h = Harness()
        with pytest.raises(MissingFields):
            h.service.submit_for_approval(h.in_pricing_review(), LOGISTICS)

    def test_return_to_logistics_event(self):
        h = Harness()
        order = h.service.submit_for_approval(h.priced(), LOGISTICS)
        order = h.service.return_to_logistics(order, ADMIN, "Please recheck volume")
        assert order.status == OrderStatus.PRICING_REVIEW
        assert h.recorder.types[-1] == ORDERS_ORDER_RETURNED_TO_LOGISTICS_V1
        assert h.recorder.events[-1].payload["notes"] == "Please recheck volume"


class TestTransitions:
    def test_skipping_fulfilment_steps(self):
        h = Harness()
        order = h.confirmed()
        with pytest.raises(InvalidTransition):
            h.service.transition(order, "DELIVERED", ADMIN)
        assert order.status == OrderStatus.CONFIRMED

    def test_status_events_in_order(self):
        h = Harness()
        h.confirmed()
        assert h.recorder.types[:3] == [
            ORDERS_ORDER_CREATED_V1,
            "orders.order.submitted.v1",
            "orders.order.pricing_review.v1",
        ]
        assert h.recorder.types[-1] == "orders.order.confirmed.v1"

    def test_history_tracks_clock(self):
        h = Harness()
        order = h.draft()
        h.clock.advance(minutes=10)
        order = h.service.transition(order, OrderStatus.SUBMITTED, CLIENT)
        assert order.status_history[-1].timestamp == START + timedelta(minutes=10)
        assert order.status_history[-1].status == order.status

    def test_failed_operation_emits_nothing(self):
        h = Harness()
        order = h.draft()
        count = len(h.recorder.events)
        with pytest.raises(Unauthorized):
            h.service.transition(order, OrderStatus.SUBMITTED, LOGISTICS)
        assert len(h.recorder.events) == count

    def test_failing_subscriber_does_not_block(self):
        h = Harness()

        def broken(event):
            raise RuntimeError("boom")

        h.registry.register_subscriber("orders.order.submitted.v1", broken, "notifications")
        order = h.service.transition(h.draft(), OrderStatus.SUBMITTED, CLIENT)
        assert order.status == OrderStatus.SUBMITTED


class TestLogistics:
    def test_windows_and_trucks(self):
        h = Harness()
        order = h.confirmed()
        order = h.service.assign_time_windows(
            order, LOGISTICS,
            delivery_start=START + timedelta(days=2),
            delivery_end=START + timedelta(days=2, hours=3),
            pickup_start=START + timedelta(days=6),
            pickup_end=START + timedelta(days=6, hours=3),
        )
        order = h.service.set_truck_details(
            order, LOGISTICS, TruckLeg.DELIVERY,
            plate="D 1", driver_name="Sam", driver_contact="+971",
        )
        order = h.service.set_job_number(order, LOGISTICS, "JOB-7")
        assert order.delivery_window is not None
        assert order.delivery_truck.driver_name == "Sam"
        assert order.job_number == "JOB-7"

    def test_client_cannot_schedule(self):
        h = Harness()
        with pytest.raises(Unauthorized):
            h.service.set_job_number(h.draft(), CLIENT, "JOB-1")


class TestFinancial:
    def test_invoice_then_pay(self):
        h = Harness()
        order = h.service.issue_invoice(h.confirmed(), ADMIN, "INV-9")
        order = h.service.record_payment(
            order, ADMIN, method="card", reference="PAY-1", paid_on=date(2026, 3, 5),
        )
        assert order.financial_status == FinancialStatus.PAID
        assert h.recorder.types[-2:] == [ORDERS_INVOICE_ISSUED_V1, ORDERS_PAYMENT_RECORDED_V1]
        assert h.recorder.events[-2].payload["final_total"] == "1750.00"

    def test_pay_twice(self):
        h = Harness()
        order = h.service.issue_invoice(h.confirmed(), ADMIN, "INV-9")
        paid = h.service.record_payment(
            order, ADMIN, method="card", reference="PAY-1", paid_on=date(2026, 3, 5),
        )
        with pytest.raises(AlreadyPaid):
            h.service.record_payment(
                paid, ADMIN, method="card", reference="PAY-2", paid_on=date(2026, 3, 6),
            )
        assert paid.payment.reference == "PAY-1"

    def test_permission_checked_before_state(self):
        h = Harness()
        order = h.service.issue_invoice(h.confirmed(), ADMIN, "INV-9")
        paid = h.service.record_payment(
            order, ADMIN, method="card", reference="PAY-1", paid_on=date(2026, 3, 5),
        )
        with pytest.raises(Unauthorized):
            h.service.record_payment(
                paid, LOGISTICS, method="card", reference="PAY-2", paid_on=date(2026, 3, 6),
            )


class TestLineItemRequests:
    def test_client_request_admin_approve(self):
        h = Harness()
        order = h.service.request_line_item(
            h.priced(), CLIENT, description="Extra forklift", quantity="1",
        )
        request_id = order.line_item_requests[0].request_id
        order = h.service.approve_line_item_request(
            order, ADMIN, request_id, RequestApproval(unit_rate=Money.of("100")),
        )
        assert order.find_line_item_request(request_id).status == LineItemRequestStatus.APPROVED
        assert order.pricing.logistics_subtotal.amount == Decimal("1500.00")

    def test_approve_twice(self):
        h = Harness()
        order = h.service.request_line_item(
            h.priced(), CLIENT, description="Extra forklift", quantity="1",
        )
        request_id = order.line_item_requests[0].request_id
        approval = RequestApproval(unit_rate=Money.of("100"))
        order = h.service.approve_line_item_request(order, ADMIN, request_id, approval)
        with pytest.raises(AlreadyResolved):
            h.service.approve_line_item_request(order, ADMIN, request_id, approval)
        assert len(order.line_items) == 2

    def test_reject_needs_note(self):
        h = Harness()
        order = h.service.request_line_item(
            h.priced(), CLIENT, description="Extra forklift", quantity="1",
        )
        request_id = order.line_item_requests[0].request_id
        with pytest.raises(MissingFields):
            h.service.reject_line_item_request(order, ADMIN, request_id, "")
        assert order.find_line_item_request(request_id).status == LineItemRequestStatus.REQUESTED

    def test_catalog_item_and_billing_mode(self):
        h = Harness()
        order = h.service.add_catalog_item(h.priced(), LOGISTICS, "assembly", "2")
        item = order.line_items[-1]
        assert item.line_total.amount == Decimal("240.00")
        order = h.service.update_billing_mode(
            order, LOGISTICS, item.line_item_id, BillingMode.NON_BILLABLE,
        )
        assert order.pricing.logistics_subtotal.amount == Decimal("1400.00")
        order = h.service.remove_line_item(order, LOGISTICS, item.line_item_id)
        assert len(order.line_items) == 1


class TestReskins:
    def _order_with_reskin(self, h):
        order = h.service.request_reskin(
            h.confirmed(), CLIENT, qr_code="QR-0001", order_item_id="oi-1",
            target_brand="Acme Red",
        )
        return order, order.reskin_requests[0].reskin_id

    def test_complete(self):
        h = Harness()
        order, reskin_id = self._order_with_reskin(h)
        order = h.service.complete_reskin(
            order, ADMIN, reskin_id, new_asset_name="Wall (Acme)",
            completion_photos=["p1.jpg"], cost=Money.of("450"),
        )
        assert order.find_reskin(reskin_id).is_complete
        assert h.assets.get("asset-1").status == "TRANSFORMED"
        assert h.recorder.types[-1] == ORDERS_RESKIN_COMPLETED_V1

    def test_zero_photos(self):
        h = Harness()
        order, reskin_id = self._order_with_reskin(h)
        line_items = order.line_items
        with pytest.raises(MissingFields):
            h.service.complete_reskin(
                order, ADMIN, reskin_id, new_asset_name="Wall (Acme)",
                completion_photos=[], cost=Money.of("450"),
            )
        assert order.line_items == line_items
        assert h.assets.get("asset-1").status == "AVAILABLE"
        assert h.assets.transformed_into("asset-1") is None

    def test_auto_advance_emits_status_event(self):
        h = Harness(reskin_advance_to=OrderStatus.IN_PREPARATION)
        order, reskin_id = self._order_with_reskin(h)
        order = h.service.cancel_reskin(order, ADMIN, reskin_id, "Brand assets late")
        assert order.status == OrderStatus.IN_PREPARATION
        assert h.recorder.types[-1] == "orders.order.in_preparation.v1"
        assert h.recorder.events[-1].actor_id == "system:reskin"
