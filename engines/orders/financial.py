"""
RentOps Orders Engine — Financial Status
=========================================
The invoice axis of an order, independent of its lifecycle status:

    NONE ──issue_invoice──▶ INVOICED ──record_payment──▶ PAID

Permission checks happen in the order service before these run.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from core.primitives.actor import Actor
from engines.orders.errors import raise_if_rejected
from engines.orders.models import FinancialStatus, PaymentRecord
from engines.orders.order import Order
from engines.orders.policies import (
    invoice_must_not_exist_policy,
    order_must_be_invoiceable_policy,
    order_must_be_invoiced_policy,
    order_must_not_be_paid_policy,
    required_fields_policy,
)

logger = logging.getLogger("rentops.orders")


def issue_invoice(order: Order, invoice_number: str, *, at: datetime) -> Order:
    raise_if_rejected(invoice_must_not_exist_policy(order))
    raise_if_rejected(order_must_be_invoiceable_policy(order))
    raise_if_rejected(required_fields_policy(
        {"invoice_number": invoice_number}, policy_name="issue_invoice",
    ))

    logger.info(f"Order {order.order_code}: invoice {invoice_number} issued")
    return replace(
        order,
        financial_status=FinancialStatus.INVOICED,
        invoice_number=invoice_number.strip(),
        invoiced_at=at,
        updated_at=at,
    )


def record_payment(
    order: Order,
    *,
    method: Optional[str],
    reference: Optional[str],
    paid_on: Optional[date],
    actor: Actor,
    at: datetime,
    notes: Optional[str] = None,
) -> Order:
    """
    Mark an INVOICED order PAID.

    Checked in order: already paid, not yet invoiced, missing payment
    fields. Stamps invoice_paid_at with the acceptance time.
    """
    raise_if_rejected(order_must_not_be_paid_policy(order))
    raise_if_rejected(order_must_be_invoiced_policy(order))
    raise_if_rejected(required_fields_policy(
        {"method": method, "reference": reference, "paid_on": paid_on},
        policy_name="record_payment",
    ))

    payment = PaymentRecord(
        method=method.strip(),
        reference=reference.strip(),
        paid_on=paid_on,
        recorded_by=actor.actor_id,
        recorded_at=at,
        notes=notes,
    )
    logger.info(
        f"Order {order.order_code}: payment {payment.reference} recorded "
        f"by {actor.actor_id}"
    )
    return replace(
        order,
        financial_status=FinancialStatus.PAID,
        payment=payment,
        invoice_paid_at=at,
        updated_at=at,
    )
