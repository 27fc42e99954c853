"""
RentOps Orders Engine — Value Objects and Entities
===================================================
Everything attached to an order that is not the order itself:
line items, line item requests, reskin requests, pricing inputs,
history entries, windows, truck details and payment records.

All entities are frozen. Operations build new snapshots with
dataclasses.replace; nothing is mutated in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from core.primitives.money import Money, Volume, to_decimal


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class OrderStatus(Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    PRICING_REVIEW = "PRICING_REVIEW"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    QUOTED = "QUOTED"
    DECLINED = "DECLINED"
    CONFIRMED = "CONFIRMED"
    IN_PREPARATION = "IN_PREPARATION"
    READY_FOR_DELIVERY = "READY_FOR_DELIVERY"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    IN_USE = "IN_USE"
    AWAITING_RETURN = "AWAITING_RETURN"
    CLOSED = "CLOSED"


class FinancialStatus(Enum):
    """Invoice lifecycle. Independent axis from OrderStatus."""
    NONE = "NONE"
    INVOICED = "INVOICED"
    PAID = "PAID"


class TripType(Enum):
    ONE_WAY = "ONE_WAY"
    ROUND_TRIP = "ROUND_TRIP"


class LineItemCategory(Enum):
    ASSEMBLY = "ASSEMBLY"
    EQUIPMENT = "EQUIPMENT"
    HANDLING = "HANDLING"
    RESKIN = "RESKIN"
    TRANSPORT = "TRANSPORT"
    OTHER = "OTHER"


class BillingMode(Enum):
    """
    BILLABLE       — counts toward the client-billed total
    NON_BILLABLE   — tracked for operations, never charged
    COMPLIMENTARY  — explicit goodwill waiver, never charged
    """
    BILLABLE = "BILLABLE"
    NON_BILLABLE = "NON_BILLABLE"
    COMPLIMENTARY = "COMPLIMENTARY"


class LineItemSource(Enum):
    CATALOG = "CATALOG"
    CUSTOM = "CUSTOM"
    REQUEST = "REQUEST"
    RESKIN = "RESKIN"


class LineItemRequestStatus(Enum):
    REQUESTED = "REQUESTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ReskinStatus(Enum):
    PENDING = "pending"
    COMPLETE = "complete"
    CANCELLED = "cancelled"


class TruckLeg(Enum):
    DELIVERY = "DELIVERY"
    PICKUP = "PICKUP"


# ══════════════════════════════════════════════════════════════
# HISTORY / SCHEDULING
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StatusHistoryEntry:
    """One accepted transition. Appended, never rewritten."""
    status: OrderStatus
    timestamp: datetime
    actor_id: str
    notes: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.status, OrderStatus):
            raise TypeError("status must be OrderStatus.")
        if not isinstance(self.timestamp, datetime):
            raise TypeError("timestamp must be datetime.")
        if not self.actor_id:
            raise ValueError("actor_id must be non-empty.")


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class TruckDetails:
    plate: str
    driver_name: str
    driver_contact: str
    truck_size: Optional[str] = None


@dataclass(frozen=True)
class PaymentRecord:
    method: str
    reference: str
    paid_on: date
    recorded_by: str
    recorded_at: datetime
    notes: Optional[str] = None


# ══════════════════════════════════════════════════════════════
# PRICING INPUTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BaseOperations:
    """Warehouse / operations charge: volume × tiered rate per m³."""
    volume: Volume
    rate: Money

    @property
    def total(self) -> Money:
        return self.rate.times(self.volume.cubic_metres)


@dataclass(frozen=True)
class TransportCharge:
    """
    Transport leg pricing.

    base_rate is what the rate table says; final_rate is what is
    charged. They differ only when an admin override is recorded.
    """
    region: str
    trip_type: TripType
    vehicle_type: str
    base_rate: Money
    final_rate: Money
    city_id: Optional[str] = None
    area: Optional[str] = None
    override_reason: Optional[str] = None
    vehicle_change_reason: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.trip_type, TripType):
            raise TypeError("trip_type must be TripType.")
        if self.base_rate.is_negative() or self.final_rate.is_negative():
            raise ValueError("transport rates must be >= 0.")


# ══════════════════════════════════════════════════════════════
# LINE ITEMS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LineItem:
    """
    A service or rebrand charge attached to an order.

    line_total is derived: quantity × unit_rate when BILLABLE, zero
    otherwise. metadata is opaque to pricing.
    """
    line_item_id: str
    description: str
    category: LineItemCategory
    billing_mode: BillingMode
    quantity: Decimal
    unit: str
    unit_rate: Money
    source: LineItemSource = LineItemSource.CUSTOM
    metadata: Mapping[str, Any] = field(default_factory=dict)
    service_type_id: Optional[str] = None
    reskin_request_id: Optional[str] = None
    added_by: Optional[str] = None
    added_at: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "quantity", to_decimal(self.quantity, "quantity"))
        object.__setattr__(self, "metadata", dict(self.metadata))
        if self.quantity <= 0:
            raise ValueError("quantity must be > 0.")
        if self.unit_rate.is_negative():
            raise ValueError("unit_rate must be >= 0.")
        if not self.description.strip():
            raise ValueError("description must be non-empty.")
        if not self.unit.strip():
            raise ValueError("unit must be non-empty.")

    @property
    def is_billable(self) -> bool:
        return self.billing_mode == BillingMode.BILLABLE

    @property
    def line_total(self) -> Money:
        if not self.is_billable:
            return Money.zero(self.unit_rate.currency)
        return self.unit_rate.times(self.quantity)


@dataclass(frozen=True)
class LineItemRequest:
    """A client/logistics request for an extra service, pending admin review."""
    request_id: str
    order_id: str
    description: str
    category: LineItemCategory
    quantity: Decimal
    unit: str
    requested_by: str
    requested_at: datetime
    status: LineItemRequestStatus = LineItemRequestStatus.REQUESTED
    notes: Optional[str] = None
    admin_note: Optional[str] = None
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    line_item_id: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.status != LineItemRequestStatus.REQUESTED


# ══════════════════════════════════════════════════════════════
# RESKIN (REBRAND) REQUESTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ReskinRequest:
    """Client request to rebrand one asset on the order."""
    reskin_id: str
    order_id: str
    order_item_id: str
    original_asset_id: str
    original_asset_name: str
    target_brand: str
    client_notes: Optional[str] = None
    status: ReskinStatus = ReskinStatus.PENDING
    new_asset_name: Optional[str] = None
    new_asset_id: Optional[str] = None
    completion_photos: Tuple[str, ...] = ()
    completion_notes: Optional[str] = None
    cost: Optional[Money] = None
    line_item_id: Optional[str] = None
    cancellation_reason: Optional[str] = None
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == ReskinStatus.PENDING

    @property
    def is_complete(self) -> bool:
        return self.status == ReskinStatus.COMPLETE
