"""
RentOps Orders Engine — Error Kinds
====================================
One exception class per logical error kind. Every operation either
returns a complete new snapshot or raises one of these; the snapshot
passed in is never touched.

These are business rejections, not programming errors. Malformed
value objects still raise ValueError / TypeError at construction.
"""

from __future__ import annotations

from typing import Dict, Optional, Type

from core.policy.rejection import ReasonCode, RejectionReason


class OrderError(Exception):
    """Base error for order lifecycle and pricing operations."""

    code = "ORDER_ERROR"

    def __init__(self, message: str, *, policy_name: Optional[str] = None):
        self.message = message
        self.policy_name = policy_name
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
        }


class InvalidTransition(OrderError):
    """Requested status is not reachable from the current status."""
    code = ReasonCode.INVALID_TRANSITION


class TerminalState(OrderError):
    """Transition attempted from DECLINED or CLOSED."""
    code = ReasonCode.TERMINAL_STATE


class Unauthorized(OrderError):
    """Actor lacks the permission mapped to the attempted operation."""
    code = ReasonCode.UNAUTHORIZED


class InvalidQuantity(OrderError):
    code = ReasonCode.INVALID_QUANTITY


class InvalidAmount(OrderError):
    code = ReasonCode.INVALID_AMOUNT


class InvalidTimeWindow(OrderError):
    code = ReasonCode.INVALID_TIME_WINDOW


class MissingFields(OrderError):
    code = ReasonCode.MISSING_FIELDS


class AlreadyResolved(OrderError):
    """Request or reskin has already left its initial status."""
    code = ReasonCode.ALREADY_RESOLVED


class AlreadyPaid(OrderError):
    code = ReasonCode.ALREADY_PAID


class InvalidFinancialState(OrderError):
    """Financial operation attempted from the wrong financial status."""
    code = ReasonCode.INVALID_FINANCIAL_STATE


class OrderLocked(OrderError):
    """Mutation attempted outside the order's editable window."""
    code = ReasonCode.ORDER_LOCKED


class LinkedRecordExists(OrderError):
    """Deletion or edit blocked by a completed reskin / invoice record."""
    code = ReasonCode.LINKED_RECORD_EXISTS


class NotFound(OrderError):
    code = ReasonCode.NOT_FOUND


class RateNotFound(OrderError):
    """No tier or transport rate configured for the requested lookup."""
    code = ReasonCode.RATE_NOT_FOUND


class ConcurrentModification(OrderError):
    """
    Caller-supplied snapshot version is stale.

    Raised at the persistence boundary; the core never detects this
    on its own.
    """
    code = ReasonCode.CONCURRENT_MODIFICATION

    def __init__(self, order_id: str, expected_version: int, actual_version: int):
        self.order_id = order_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Order '{order_id}' was modified concurrently: expected "
            f"version {expected_version}, found {actual_version}."
        )


ERROR_TYPES: Dict[str, Type[OrderError]] = {
    cls.code: cls
    for cls in (
        InvalidTransition,
        TerminalState,
        Unauthorized,
        InvalidQuantity,
        InvalidAmount,
        InvalidTimeWindow,
        MissingFields,
        AlreadyResolved,
        AlreadyPaid,
        InvalidFinancialState,
        OrderLocked,
        LinkedRecordExists,
        NotFound,
        RateNotFound,
    )
}


def error_for_rejection(reason: RejectionReason) -> OrderError:
    """Map a policy rejection to the typed error callers catch."""
    error_type = ERROR_TYPES.get(reason.code, OrderError)
    return error_type(reason.message, policy_name=reason.policy_name)


def raise_if_rejected(reason: Optional[RejectionReason]) -> None:
    if reason is not None:
        raise error_for_rejection(reason)
