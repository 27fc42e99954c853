"""
RentOps Permissions - Operation to Permission Registry
======================================================
Status transitions carry their permission on the workflow graph.
Every other guarded order operation is mapped here.
"""

from __future__ import annotations

from core.permissions.constants import (
    PERMISSION_INVOICES_CONFIRM_PAYMENT,
    PERMISSION_INVOICES_GENERATE,
    PERMISSION_ORDERS_CREATE,
    PERMISSION_ORDERS_LINE_ITEMS,
    PERMISSION_ORDERS_LOGISTICS,
    PERMISSION_ORDERS_PRICING_ADJUST,
    PERMISSION_ORDERS_RESKIN,
)

OPERATION_PERMISSION_MAP = {
    "orders.order.create": PERMISSION_ORDERS_CREATE,
    "orders.windows.assign": PERMISSION_ORDERS_LOGISTICS,
    "orders.job_number.set": PERMISSION_ORDERS_LOGISTICS,
    "orders.truck.set": PERMISSION_ORDERS_LOGISTICS,
    "orders.line_item.add": PERMISSION_ORDERS_LINE_ITEMS,
    "orders.line_item.remove": PERMISSION_ORDERS_LINE_ITEMS,
    "orders.line_item.billing_mode": PERMISSION_ORDERS_LINE_ITEMS,
    "orders.line_item_request.approve": PERMISSION_ORDERS_LINE_ITEMS,
    "orders.line_item_request.reject": PERMISSION_ORDERS_LINE_ITEMS,
    "orders.pricing.base_operations": PERMISSION_ORDERS_PRICING_ADJUST,
    "orders.pricing.transport": PERMISSION_ORDERS_PRICING_ADJUST,
    "orders.pricing.vehicle": PERMISSION_ORDERS_PRICING_ADJUST,
    "orders.pricing.margin": PERMISSION_ORDERS_PRICING_ADJUST,
    "orders.reskin.complete": PERMISSION_ORDERS_RESKIN,
    "orders.reskin.cancel": PERMISSION_ORDERS_RESKIN,
    "orders.invoice.issue": PERMISSION_INVOICES_GENERATE,
    "orders.payment.record": PERMISSION_INVOICES_CONFIRM_PAYMENT,
}


def resolve_required_permission(operation: str) -> str | None:
    """Resolve required permission for an order operation."""
    return OPERATION_PERMISSION_MAP.get(operation)
