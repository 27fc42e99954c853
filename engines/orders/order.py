"""
RentOps Orders Engine — Order Aggregate
========================================
The order snapshot. Immutable: every operation returns a new Order
built with dataclasses.replace and leaves its input untouched.

Invariants checked on construction:
- status_history is non-empty and its last entry matches status
- PAID implies an invoice number (and so a preceding INVOICED step)
- delivery / pickup windows are both set or both absent

Pricing is never stored. Order.pricing composes it from the current
inputs on every read.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from core.primitives.actor import Actor
from core.primitives.money import DEFAULT_CURRENCY, Percentage
from engines.orders.errors import MissingFields, NotFound
from engines.orders.models import (
    BaseOperations,
    FinancialStatus,
    LineItem,
    LineItemRequest,
    OrderStatus,
    PaymentRecord,
    ReskinRequest,
    StatusHistoryEntry,
    TimeWindow,
    TransportCharge,
    TruckDetails,
)
from engines.orders.pricing import PricingBreakdown, compose

DEFAULT_MARGIN_PERCENT = Percentage.of("25")


@dataclass(frozen=True)
class Order:
    order_id: str
    order_code: str
    company_id: str
    status: OrderStatus
    status_history: Tuple[StatusHistoryEntry, ...]
    created_at: datetime
    updated_at: datetime

    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    venue_name: Optional[str] = None
    venue_city: Optional[str] = None
    venue_address: Optional[str] = None
    event_start_date: Optional[date] = None
    event_end_date: Optional[date] = None

    job_number: Optional[str] = None
    delivery_window: Optional[TimeWindow] = None
    pickup_window: Optional[TimeWindow] = None
    delivery_truck: Optional[TruckDetails] = None
    pickup_truck: Optional[TruckDetails] = None

    financial_status: FinancialStatus = FinancialStatus.NONE
    invoice_number: Optional[str] = None
    invoiced_at: Optional[datetime] = None
    invoice_paid_at: Optional[datetime] = None
    payment: Optional[PaymentRecord] = None

    base_operations: Optional[BaseOperations] = None
    transport: Optional[TransportCharge] = None
    margin_percent: Percentage = DEFAULT_MARGIN_PERCENT
    currency: str = DEFAULT_CURRENCY
    line_items: Tuple[LineItem, ...] = ()
    line_item_requests: Tuple[LineItemRequest, ...] = ()
    reskin_requests: Tuple[ReskinRequest, ...] = ()

    version: int = 0

    def __post_init__(self):
        if not self.order_id:
            raise ValueError("order_id must be non-empty.")
        if not isinstance(self.status, OrderStatus):
            raise TypeError("status must be OrderStatus.")
        if not isinstance(self.financial_status, FinancialStatus):
            raise TypeError("financial_status must be FinancialStatus.")

        for name in ("status_history", "line_items",
                     "line_item_requests", "reskin_requests"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

        if not self.status_history:
            raise ValueError("status_history must contain at least one entry.")
        if self.status_history[-1].status != self.status:
            raise ValueError(
                f"Last history entry is {self.status_history[-1].status.value} "
                f"but order status is {self.status.value}."
            )
        if (self.financial_status == FinancialStatus.PAID
                and not self.invoice_number):
            raise ValueError("A PAID order must carry an invoice number.")
        if (self.delivery_window is None) != (self.pickup_window is None):
            raise ValueError(
                "Delivery and pickup windows must be set together."
            )
        if self.version < 0:
            raise ValueError("version must be >= 0.")

    # ── Derived ───────────────────────────────────────────────

    @property
    def pricing(self) -> Optional[PricingBreakdown]:
        """Current breakdown, or None until both base inputs are priced."""
        if self.base_operations is None or self.transport is None:
            return None
        return compose(
            self.base_operations,
            self.transport,
            self.line_items,
            self.margin_percent,
            currency=self.currency,
        )

    @property
    def is_invoiced(self) -> bool:
        return self.financial_status != FinancialStatus.NONE

    def pending_reskins(self) -> Tuple[ReskinRequest, ...]:
        return tuple(r for r in self.reskin_requests if r.is_pending)

    # ── Lookups ───────────────────────────────────────────────

    def find_line_item(self, line_item_id: str) -> LineItem:
        for item in self.line_items:
            if item.line_item_id == line_item_id:
                return item
        raise NotFound(
            f"Line item '{line_item_id}' not found on order {self.order_code}.",
            policy_name="find_line_item",
        )

    def find_line_item_request(self, request_id: str) -> LineItemRequest:
        for request in self.line_item_requests:
            if request.request_id == request_id:
                return request
        raise NotFound(
            f"Line item request '{request_id}' not found on order "
            f"{self.order_code}.",
            policy_name="find_line_item_request",
        )

    def find_reskin(self, reskin_id: str) -> ReskinRequest:
        for reskin in self.reskin_requests:
            if reskin.reskin_id == reskin_id:
                return reskin
        raise NotFound(
            f"Reskin request '{reskin_id}' not found on order {self.order_code}.",
            policy_name="find_reskin",
        )


def create_order(
    *,
    order_id: str,
    order_code: str,
    company_id: str,
    actor: Actor,
    at: datetime,
    currency: str = DEFAULT_CURRENCY,
    margin_percent: Percentage = DEFAULT_MARGIN_PERCENT,
    **details,
) -> Order:
    """
    Build a new DRAFT order whose history holds the initial entry.

    `details` carries the informational fields (contact, venue,
    event dates, job number).
    """
    missing = [
        name for name, value in (
            ("order_id", order_id),
            ("order_code", order_code),
            ("company_id", company_id),
        ) if not value
    ]
    if missing:
        raise MissingFields(
            f"Missing required fields: {', '.join(missing)}.",
            policy_name="create_order",
        )
    entry = StatusHistoryEntry(
        status=OrderStatus.DRAFT,
        timestamp=at,
        actor_id=actor.actor_id,
        notes="Order created",
    )
    return Order(
        order_id=order_id,
        order_code=order_code,
        company_id=company_id,
        status=OrderStatus.DRAFT,
        status_history=(entry,),
        created_at=at,
        updated_at=at,
        currency=currency,
        margin_percent=margin_percent,
        **details,
    )
