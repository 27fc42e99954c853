"""
RentOps Permissions - Public API
================================
"""

from core.permissions.constants import (
    PERMISSION_INVOICES_CONFIRM_PAYMENT,
    PERMISSION_INVOICES_GENERATE,
    PERMISSION_ORDERS_CREATE,
    PERMISSION_ORDERS_LINE_ITEMS,
    PERMISSION_ORDERS_LOGISTICS,
    PERMISSION_ORDERS_PRICING_ADJUST,
    PERMISSION_ORDERS_RESKIN,
    PERMISSION_ORDERS_SUBMIT,
    PERMISSION_ORDERS_UPDATE_STATUS,
    PERMISSION_PRICING_PMG_APPROVE,
    PERMISSION_PRICING_REVIEW,
    PERMISSION_QUOTES_RESPOND,
    VALID_PERMISSIONS,
)
from core.permissions.models import Role, RoleAssignment
from core.permissions.provider import (
    InMemoryPermissionChecker,
    PermissionChecker,
)
from core.permissions.registry import resolve_required_permission

__all__ = [
    "PERMISSION_ORDERS_SUBMIT",
    "PERMISSION_ORDERS_UPDATE_STATUS",
    "PERMISSION_ORDERS_LOGISTICS",
    "PERMISSION_ORDERS_LINE_ITEMS",
    "PERMISSION_ORDERS_PRICING_ADJUST",
    "PERMISSION_ORDERS_RESKIN",
    "PERMISSION_ORDERS_CREATE",
    "PERMISSION_PRICING_REVIEW",
    "PERMISSION_PRICING_PMG_APPROVE",
    "PERMISSION_QUOTES_RESPOND",
    "PERMISSION_INVOICES_GENERATE",
    "PERMISSION_INVOICES_CONFIRM_PAYMENT",
    "VALID_PERMISSIONS",
    "Role",
    "RoleAssignment",
    "PermissionChecker",
    "InMemoryPermissionChecker",
    "resolve_required_permission",
]
