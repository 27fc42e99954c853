"""
RentOps Permissions - Permission Keys
=====================================
Keys use the `<area>:<action>` convention. The order workflow graph
and the operation registry reference these constants only.
"""

PERMISSION_ORDERS_SUBMIT = "orders:submit"
PERMISSION_ORDERS_UPDATE_STATUS = "orders:update_status"
PERMISSION_ORDERS_LOGISTICS = "orders:logistics"
PERMISSION_ORDERS_LINE_ITEMS = "orders:line_items"
PERMISSION_ORDERS_PRICING_ADJUST = "orders:pricing_adjust"
PERMISSION_ORDERS_RESKIN = "orders:reskin"
PERMISSION_ORDERS_CREATE = "orders:create"

PERMISSION_PRICING_REVIEW = "pricing:review"
PERMISSION_PRICING_PMG_APPROVE = "pricing:pmg_approve"

PERMISSION_QUOTES_RESPOND = "quotes:respond"

PERMISSION_INVOICES_GENERATE = "invoices:generate"
PERMISSION_INVOICES_CONFIRM_PAYMENT = "invoices:confirm_payment"

VALID_PERMISSIONS = frozenset({
    PERMISSION_ORDERS_SUBMIT,
    PERMISSION_ORDERS_UPDATE_STATUS,
    PERMISSION_ORDERS_LOGISTICS,
    PERMISSION_ORDERS_LINE_ITEMS,
    PERMISSION_ORDERS_PRICING_ADJUST,
    PERMISSION_ORDERS_RESKIN,
    PERMISSION_ORDERS_CREATE,
    PERMISSION_PRICING_REVIEW,
    PERMISSION_PRICING_PMG_APPROVE,
    PERMISSION_QUOTES_RESPOND,
    PERMISSION_INVOICES_GENERATE,
    PERMISSION_INVOICES_CONFIRM_PAYMENT,
})
