"""
Financial axis tests: invoice issue, payment recording, logistics details.
"""

from dataclasses import replace
from datetime import date, datetime, timedelta, timezone

import pytest

from core.primitives.actor import Actor
from engines.orders.errors import AlreadyPaid, InvalidFinancialState, MissingFields
from engines.orders.financial import issue_invoice, record_payment
from engines.orders.logistics import set_job_number, set_truck_details
from engines.orders.models import FinancialStatus, OrderStatus, StatusHistoryEntry, TruckLeg
from engines.orders.order import create_order

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
LATER = NOW + timedelta(days=3)
FINANCE = Actor.human("finance-1", "Finance")


def _order(status=OrderStatus.CONFIRMED):
    order = create_order(
        order_id="order-1", order_code="ORD-1", company_id="acme",
        actor=FINANCE, at=NOW,
    )
    entry = StatusHistoryEntry(status=status, timestamp=NOW, actor_id="finance-1")
    return replace(order, status=status, status_history=order.status_history + (entry,))


def _pay(order, **overrides):
    params = dict(
        method="bank_transfer", reference="TRX-881", paid_on=date(2026, 3, 4),
        actor=FINANCE, at=LATER,
    )
    params.update(overrides)
    return record_payment(order, **params)


class TestIssueInvoice:
    def test_issue(self):
        order = issue_invoice(_order(), "INV-001", at=LATER)
        assert order.financial_status == FinancialStatus.INVOICED
        assert order.invoice_number == "INV-001"
        assert order.invoiced_at == LATER
        assert order.status == OrderStatus.CONFIRMED

    def test_before_confirmation(self):
        with pytest.raises(InvalidFinancialState):
            issue_invoice(_order(OrderStatus.QUOTED), "INV-001", at=LATER)

    def test_twice(self):
        order = issue_invoice(_order(), "INV-001", at=LATER)
        with pytest.raises(InvalidFinancialState):
            issue_invoice(order, "INV-002", at=LATER)

    def test_number_required(self):
        with pytest.raises(MissingFields):
            issue_invoice(_order(), " ", at=LATER)


class TestRecordPayment:
    def test_pay(self):
        order = _pay(issue_invoice(_order(), "INV-001", at=NOW))
        assert order.financial_status == FinancialStatus.PAID
        assert order.invoice_paid_at == LATER
        assert order.payment.reference == "TRX-881"
        assert order.payment.recorded_by == "finance-1"

    def test_already_paid(self):
        paid = _pay(issue_invoice(_order(), "INV-001", at=NOW))
        with pytest.raises(AlreadyPaid):
            _pay(paid, reference="TRX-999")
        assert paid.payment.reference == "TRX-881"

    def test_not_invoiced(self):
        with pytest.raises(InvalidFinancialState):
            _pay(_order())

    def test_fields_required(self):
        invoiced = issue_invoice(_order(), "INV-001", at=NOW)
        with pytest.raises(MissingFields, match="paid_on"):
            _pay(invoiced, paid_on=None)

    def test_paid_requires_invoice_number(self):
        with pytest.raises(ValueError, match="invoice number"):
            replace(_order(), financial_status=FinancialStatus.PAID)


class TestLogisticsDetails:
    def test_job_number_any_status(self):
        order = set_job_number(_order(OrderStatus.DRAFT), " JOB-42 ", at=LATER)
        assert order.job_number == "JOB-42"
        assert set_job_number(order, "", at=LATER).job_number is None

    def test_trucks(self):
        order = set_truck_details(
            _order(), TruckLeg.PICKUP, plate="D 12345", driver_name="Sam",
            driver_contact="+971500000000", at=LATER, truck_size="3-ton",
        )
        assert order.pickup_truck.plate == "D 12345"
        assert order.delivery_truck is None

    def test_truck_fields_required(self):
        with pytest.raises(MissingFields):
            set_truck_details(
                _order(), TruckLeg.DELIVERY, plate="", driver_name="Sam",
                driver_contact="+971", at=LATER,
            )
