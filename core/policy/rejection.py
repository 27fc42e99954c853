"""
RentOps Policy Layer — Rejection Model
=======================================
Structured rejection reasons for denied operations.

Policies return a RejectionReason (or None when they pass). The order
service turns a rejection into the matching typed error; the HTTP
adapter turns that error into a response body.

Every rejection must be:
- Deterministic (same input → same rejection)
- Auditable (code + message + policy)
- Machine-readable (code)
- Human-readable (message)
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RejectionReason:
    """
    Structured reason for an operation rejection.

    Fields:
        code:        Machine-readable rejection code (e.g. 'ORDER_LOCKED').
        message:     Human-readable explanation.
        policy_name: Name of the policy that caused rejection.
    """

    code: str
    message: str
    policy_name: str

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

        if not self.policy_name or not isinstance(self.policy_name, str):
            raise ValueError("policy_name must be a non-empty string.")

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
        }


class ReasonCode:
    """
    Known rejection codes.

    Convention: SCREAMING_SNAKE_CASE.
    """

    # ── Lifecycle ─────────────────────────────────────────────
    INVALID_TRANSITION = "INVALID_TRANSITION"
    TERMINAL_STATE = "TERMINAL_STATE"
    ORDER_LOCKED = "ORDER_LOCKED"

    # ── Authorization ─────────────────────────────────────────
    UNAUTHORIZED = "UNAUTHORIZED"

    # ── Input validation ──────────────────────────────────────
    INVALID_QUANTITY = "INVALID_QUANTITY"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_TIME_WINDOW = "INVALID_TIME_WINDOW"
    MISSING_FIELDS = "MISSING_FIELDS"

    # ── Resolution / financial ────────────────────────────────
    ALREADY_RESOLVED = "ALREADY_RESOLVED"
    ALREADY_PAID = "ALREADY_PAID"
    INVALID_FINANCIAL_STATE = "INVALID_FINANCIAL_STATE"

    # ── Referential ───────────────────────────────────────────
    LINKED_RECORD_EXISTS = "LINKED_RECORD_EXISTS"
    NOT_FOUND = "NOT_FOUND"
    RATE_NOT_FOUND = "RATE_NOT_FOUND"

    # ── Persistence boundary ──────────────────────────────────
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"
