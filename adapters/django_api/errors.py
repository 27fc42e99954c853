"""
RentOps Django Adapter - Error Mapping
======================================
Stable transport mapping from order error kinds to HTTP responses.
"""

from __future__ import annotations

from typing import Any, Optional

from engines.orders.errors import (
    AlreadyPaid,
    AlreadyResolved,
    ConcurrentModification,
    InvalidAmount,
    InvalidFinancialState,
    InvalidQuantity,
    InvalidTimeWindow,
    InvalidTransition,
    LinkedRecordExists,
    MissingFields,
    NotFound,
    OrderError,
    OrderLocked,
    RateNotFound,
    TerminalState,
    Unauthorized,
)

HTTP_STATUS_BY_ERROR = {
    InvalidTransition: 409,
    TerminalState: 409,
    OrderLocked: 409,
    AlreadyResolved: 409,
    AlreadyPaid: 409,
    LinkedRecordExists: 409,
    InvalidFinancialState: 409,
    ConcurrentModification: 409,
    InvalidQuantity: 400,
    InvalidAmount: 400,
    InvalidTimeWindow: 400,
    MissingFields: 400,
    RateNotFound: 422,
    Unauthorized: 403,
    NotFound: 404,
}


def error_response(
    *,
    code: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    return {
        "ok": False,
        "error": {"code": code, "message": message, "details": details or {}},
    }


def success_response(data: Any, *, meta: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    body = {"ok": True, "data": data}
    if meta:
        body["meta"] = meta
    return body


def status_for_error(exc: OrderError) -> int:
    for error_type in type(exc).__mro__:
        status = HTTP_STATUS_BY_ERROR.get(error_type)
        if status is not None:
            return status
    return 400


def map_order_error(exc: OrderError) -> tuple[dict[str, Any], int]:
    details: dict[str, Any] = {"policy_name": exc.policy_name}
    if isinstance(exc, ConcurrentModification):
        details.update({
            "expected_version": exc.expected_version,
            "actual_version": exc.actual_version,
        })
    return (
        error_response(code=exc.code, message=exc.message, details=details),
        status_for_error(exc),
    )
