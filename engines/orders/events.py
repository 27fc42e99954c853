"""RentOps Orders Engine - event types and payload builders."""

from __future__ import annotations

from core.events import DomainEvent
from engines.orders.models import LineItem, LineItemRequest, OrderStatus, ReskinRequest
from engines.orders.order import Order

ORDERS_ORDER_CREATED_V1 = "orders.order.created.v1"
ORDERS_ORDER_RETURNED_TO_LOGISTICS_V1 = "orders.order.returned_to_logistics.v1"
ORDERS_INVOICE_ISSUED_V1 = "orders.invoice.issued.v1"
ORDERS_PAYMENT_RECORDED_V1 = "orders.payment.recorded.v1"
ORDERS_LINE_ITEM_ADDED_V1 = "orders.line_item.added.v1"
ORDERS_LINE_ITEM_REMOVED_V1 = "orders.line_item.removed.v1"
ORDERS_LINE_ITEM_REQUEST_APPROVED_V1 = "orders.line_item_request.approved.v1"
ORDERS_LINE_ITEM_REQUEST_REJECTED_V1 = "orders.line_item_request.rejected.v1"
ORDERS_RESKIN_COMPLETED_V1 = "orders.reskin.completed.v1"
ORDERS_RESKIN_CANCELLED_V1 = "orders.reskin.cancelled.v1"

STATUS_EVENT_TYPES = {
    status: f"orders.order.{status.value.lower()}.v1"
    for status in OrderStatus
}

ORDERS_EVENT_TYPES = tuple(sorted(
    set(STATUS_EVENT_TYPES.values()) | {
        ORDERS_ORDER_CREATED_V1,
        ORDERS_ORDER_RETURNED_TO_LOGISTICS_V1,
        ORDERS_INVOICE_ISSUED_V1,
        ORDERS_PAYMENT_RECORDED_V1,
        ORDERS_LINE_ITEM_ADDED_V1,
        ORDERS_LINE_ITEM_REMOVED_V1,
        ORDERS_LINE_ITEM_REQUEST_APPROVED_V1,
        ORDERS_LINE_ITEM_REQUEST_REJECTED_V1,
        ORDERS_RESKIN_COMPLETED_V1,
        ORDERS_RESKIN_CANCELLED_V1,
    }
))


def resolve_status_event_type(status: OrderStatus) -> str:
    return STATUS_EVENT_TYPES[status]


def _base_payload(order: Order) -> dict:
    return {
        "order_id": order.order_id,
        "order_code": order.order_code,
        "company_id": order.company_id,
        "status": order.status.value,
        "financial_status": order.financial_status.value,
    }


def _event(event_type: str, order: Order, actor_id: str, payload: dict) -> DomainEvent:
    return DomainEvent(
        event_type=event_type,
        aggregate_id=order.order_id,
        actor_id=actor_id,
        occurred_at=order.updated_at,
        payload=payload,
    )


def build_status_changed_event(order: Order, previous: OrderStatus) -> DomainEvent:
    entry = order.status_history[-1]
    payload = _base_payload(order)
    payload.update({
        "previous_status": previous.value,
        "notes": entry.notes,
    })
    event_type = (
        ORDERS_ORDER_RETURNED_TO_LOGISTICS_V1
        if previous == OrderStatus.PENDING_APPROVAL
        and order.status == OrderStatus.PRICING_REVIEW
        else resolve_status_event_type(order.status)
    )
    return _event(event_type, order, entry.actor_id, payload)


def build_order_created_event(order: Order) -> DomainEvent:
    return _event(
        ORDERS_ORDER_CREATED_V1,
        order,
        order.status_history[0].actor_id,
        _base_payload(order),
    )


def build_invoice_issued_event(order: Order, actor_id: str) -> DomainEvent:
    payload = _base_payload(order)
    payload.update({
        "invoice_number": order.invoice_number,
        "final_total": (
            str(order.pricing.final_total.amount) if order.pricing else None
        ),
        "currency": order.currency,
    })
    return _event(ORDERS_INVOICE_ISSUED_V1, order, actor_id, payload)


def build_payment_recorded_event(order: Order) -> DomainEvent:
    payment = order.payment
    payload = _base_payload(order)
    payload.update({
        "invoice_number": order.invoice_number,
        "method": payment.method,
        "reference": payment.reference,
        "paid_on": payment.paid_on.isoformat(),
    })
    return _event(ORDERS_PAYMENT_RECORDED_V1, order, payment.recorded_by, payload)


def build_line_item_event(
    event_type: str, order: Order, item: LineItem, actor_id: str
) -> DomainEvent:
    payload = _base_payload(order)
    payload.update({
        "line_item_id": item.line_item_id,
        "description": item.description,
        "category": item.category.value,
        "billing_mode": item.billing_mode.value,
        "line_total": str(item.line_total.amount),
    })
    return _event(event_type, order, actor_id, payload)


def build_line_item_request_event(
    event_type: str, order: Order, request: LineItemRequest
) -> DomainEvent:
    payload = _base_payload(order)
    payload.update({
        "request_id": request.request_id,
        "request_status": request.status.value,
        "admin_note": request.admin_note,
        "line_item_id": request.line_item_id,
    })
    return _event(event_type, order, request.resolved_by, payload)


def build_reskin_event(
    event_type: str, order: Order, reskin: ReskinRequest
) -> DomainEvent:
    payload = _base_payload(order)
    payload.update({
        "reskin_id": reskin.reskin_id,
        "reskin_status": reskin.status.value,
        "original_asset_id": reskin.original_asset_id,
        "new_asset_id": reskin.new_asset_id,
        "cancellation_reason": reskin.cancellation_reason,
    })
    return _event(event_type, order, reskin.resolved_by, payload)
