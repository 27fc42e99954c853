"""RentOps Orders Engine - policies."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, FrozenSet, Iterable, Mapping

from core.policy.rejection import ReasonCode, RejectionReason
from core.primitives.money import Money
from engines.orders.models import (
    FinancialStatus,
    LineItem,
    LineItemRequest,
    LineItemSource,
    OrderStatus,
    ReskinRequest,
)

DEFAULT_EDITABLE_STATUSES: FrozenSet[OrderStatus] = frozenset({
    OrderStatus.PRICING_REVIEW,
    OrderStatus.PENDING_APPROVAL,
})

INVOICEABLE_STATUSES: FrozenSet[OrderStatus] = frozenset({
    OrderStatus.CONFIRMED,
    OrderStatus.IN_PREPARATION,
    OrderStatus.READY_FOR_DELIVERY,
    OrderStatus.IN_TRANSIT,
    OrderStatus.DELIVERED,
    OrderStatus.IN_USE,
    OrderStatus.AWAITING_RETURN,
    OrderStatus.CLOSED,
})


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def order_must_be_editable_policy(
    order, editable_statuses: Iterable[OrderStatus]
) -> RejectionReason | None:
    if order.status not in frozenset(editable_statuses):
        return RejectionReason(
            code=ReasonCode.ORDER_LOCKED,
            message=(
                f"Order {order.order_code} is {order.status.value}; "
                f"line items and pricing are locked."
            ),
            policy_name="order_must_be_editable_policy",
        )
    return None


def required_fields_policy(
    fields: Mapping[str, Any], policy_name: str = "required_fields_policy"
) -> RejectionReason | None:
    missing = [name for name, value in fields.items() if _is_blank(value)]
    if missing:
        return RejectionReason(
            code=ReasonCode.MISSING_FIELDS,
            message=f"Missing required fields: {', '.join(missing)}.",
            policy_name=policy_name,
        )
    return None


def quantity_must_be_positive_policy(quantity: Decimal) -> RejectionReason | None:
    if quantity <= 0:
        return RejectionReason(
            code=ReasonCode.INVALID_QUANTITY,
            message=f"quantity must be > 0, got {quantity}.",
            policy_name="quantity_must_be_positive_policy",
        )
    return None


def unit_rate_must_be_non_negative_policy(unit_rate: Money) -> RejectionReason | None:
    if unit_rate.is_negative():
        return RejectionReason(
            code=ReasonCode.INVALID_AMOUNT,
            message=f"unit_rate must be >= 0, got {unit_rate.amount}.",
            policy_name="unit_rate_must_be_non_negative_policy",
        )
    return None


def money_must_match_currency_policy(
    money: Money, currency: str, field_name: str = "amount"
) -> RejectionReason | None:
    if money.currency != currency:
        return RejectionReason(
            code=ReasonCode.INVALID_AMOUNT,
            message=(
                f"{field_name} is in {money.currency}; the order is priced "
                f"in {currency}."
            ),
            policy_name="money_must_match_currency_policy",
        )
    return None


def amount_must_be_positive_policy(
    amount: Money, field_name: str = "amount"
) -> RejectionReason | None:
    if amount.amount <= 0:
        return RejectionReason(
            code=ReasonCode.INVALID_AMOUNT,
            message=f"{field_name} must be > 0, got {amount.amount}.",
            policy_name="amount_must_be_positive_policy",
        )
    return None


def request_must_be_unresolved_policy(request: LineItemRequest) -> RejectionReason | None:
    if request.is_resolved:
        return RejectionReason(
            code=ReasonCode.ALREADY_RESOLVED,
            message=(
                f"Line item request '{request.request_id}' is already "
                f"{request.status.value}."
            ),
            policy_name="request_must_be_unresolved_policy",
        )
    return None


def reskin_must_be_pending_policy(reskin: ReskinRequest) -> RejectionReason | None:
    if not reskin.is_pending:
        return RejectionReason(
            code=ReasonCode.ALREADY_RESOLVED,
            message=(
                f"Reskin request '{reskin.reskin_id}' is already "
                f"{reskin.status.value}."
            ),
            policy_name="reskin_must_be_pending_policy",
        )
    return None


def line_item_must_not_be_linked_policy(order, item: LineItem) -> RejectionReason | None:
    """A RESKIN line item belonging to a completed reskin is frozen."""
    if item.source != LineItemSource.RESKIN or item.reskin_request_id is None:
        return None
    for reskin in order.reskin_requests:
        if reskin.reskin_id == item.reskin_request_id and reskin.is_complete:
            return RejectionReason(
                code=ReasonCode.LINKED_RECORD_EXISTS,
                message=(
                    f"Line item '{item.line_item_id}' belongs to completed "
                    f"reskin '{reskin.reskin_id}'."
                ),
                policy_name="line_item_must_not_be_linked_policy",
            )
    return None


def invoice_must_not_exist_policy(order) -> RejectionReason | None:
    if order.financial_status != FinancialStatus.NONE:
        return RejectionReason(
            code=ReasonCode.INVALID_FINANCIAL_STATE,
            message=(
                f"Order {order.order_code} is already "
                f"{order.financial_status.value}."
            ),
            policy_name="invoice_must_not_exist_policy",
        )
    return None


def order_must_be_invoiceable_policy(order) -> RejectionReason | None:
    if order.status not in INVOICEABLE_STATUSES:
        return RejectionReason(
            code=ReasonCode.INVALID_FINANCIAL_STATE,
            message=(
                f"Order {order.order_code} is {order.status.value}; "
                f"invoices are issued from CONFIRMED onward."
            ),
            policy_name="order_must_be_invoiceable_policy",
        )
    return None


def order_must_not_be_paid_policy(order) -> RejectionReason | None:
    if order.financial_status == FinancialStatus.PAID:
        return RejectionReason(
            code=ReasonCode.ALREADY_PAID,
            message=f"Order {order.order_code} is already paid.",
            policy_name="order_must_not_be_paid_policy",
        )
    return None


def order_must_be_invoiced_policy(order) -> RejectionReason | None:
    if order.financial_status != FinancialStatus.INVOICED:
        return RejectionReason(
            code=ReasonCode.INVALID_FINANCIAL_STATE,
            message=(
                f"Order {order.order_code} must be INVOICED to record a "
                f"payment, is {order.financial_status.value}."
            ),
            policy_name="order_must_be_invoiced_policy",
        )
    return None
