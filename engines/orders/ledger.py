"""
RentOps Orders Engine — Line Item Ledger
=========================================
Service and rebrand charges attached to an order.

Line items are created four ways: from the service catalog, as a
custom item, by approving a line item request, or by completing a
reskin (see engines.orders.reskin). Once attached an item is
immutable apart from its billing mode, and only while the order sits
inside its editable window.

The editable window is supplied by the caller (defaults to
PRICING_REVIEW and PENDING_APPROVAL). Every function returns a new
Order; the pricing breakdown follows automatically.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Tuple

from core.primitives.actor import Actor
from core.primitives.money import DecimalInput, Money, to_decimal
from engines.orders.catalog import ServiceCatalog
from engines.orders.errors import InvalidQuantity, raise_if_rejected
from engines.orders.models import (
    BillingMode,
    LineItem,
    LineItemCategory,
    LineItemRequest,
    LineItemRequestStatus,
    LineItemSource,
    OrderStatus,
)
from engines.orders.order import Order
from engines.orders.policies import (
    DEFAULT_EDITABLE_STATUSES,
    line_item_must_not_be_linked_policy,
    money_must_match_currency_policy,
    order_must_be_editable_policy,
    quantity_must_be_positive_policy,
    request_must_be_unresolved_policy,
    required_fields_policy,
    unit_rate_must_be_non_negative_policy,
)

logger = logging.getLogger("rentops.orders")

DEFAULT_REQUEST_UNIT = "service"


def _coerce_quantity(quantity: DecimalInput) -> Decimal:
    try:
        value = to_decimal(quantity, "quantity")
    except (TypeError, ValueError) as exc:
        raise InvalidQuantity(str(exc), policy_name="quantity_must_be_decimal") from exc
    raise_if_rejected(quantity_must_be_positive_policy(value))
    return value


def _append_item(order: Order, item: LineItem, at: datetime) -> Order:
    logger.info(
        f"Order {order.order_code}: line item {item.line_item_id} added "
        f"({item.source.value}, {item.billing_mode.value}, "
        f"{item.quantity} × {item.unit_rate.amount})"
    )
    return replace(order, line_items=order.line_items + (item,), updated_at=at)


# ══════════════════════════════════════════════════════════════
# ADDING ITEMS
# ══════════════════════════════════════════════════════════════

def add_catalog_item(
    order: Order,
    service_type_id: str,
    quantity: DecimalInput,
    billing_mode: BillingMode,
    *,
    catalog: ServiceCatalog,
    line_item_id: str,
    actor: Actor,
    at: datetime,
    metadata: Optional[Mapping[str, Any]] = None,
    editable_statuses: Iterable[OrderStatus] = DEFAULT_EDITABLE_STATUSES,
) -> Order:
    raise_if_rejected(order_must_be_editable_policy(order, editable_statuses))
    qty = _coerce_quantity(quantity)
    service_type = catalog.get_service_type(service_type_id)
    raise_if_rejected(money_must_match_currency_policy(
        service_type.default_rate, order.currency, "default_rate",
    ))

    item = LineItem(
        line_item_id=line_item_id,
        description=service_type.name,
        category=service_type.category,
        billing_mode=billing_mode,
        quantity=qty,
        unit=service_type.unit,
        unit_rate=service_type.default_rate,
        source=LineItemSource.CATALOG,
        metadata=metadata or {},
        service_type_id=service_type.service_type_id,
        added_by=actor.actor_id,
        added_at=at,
    )
    return _append_item(order, item, at)


def add_custom_item(
    order: Order,
    description: str,
    category: LineItemCategory,
    quantity: DecimalInput,
    unit: str,
    unit_rate: Money,
    billing_mode: BillingMode,
    *,
    line_item_id: str,
    actor: Actor,
    at: datetime,
    metadata: Optional[Mapping[str, Any]] = None,
    editable_statuses: Iterable[OrderStatus] = DEFAULT_EDITABLE_STATUSES,
) -> Order:
    raise_if_rejected(order_must_be_editable_policy(order, editable_statuses))
    raise_if_rejected(required_fields_policy(
        {"description": description, "unit": unit, "unit_rate": unit_rate},
        policy_name="add_custom_item",
    ))
    qty = _coerce_quantity(quantity)
    raise_if_rejected(unit_rate_must_be_non_negative_policy(unit_rate))
    raise_if_rejected(money_must_match_currency_policy(
        unit_rate, order.currency, "unit_rate",
    ))

    item = LineItem(
        line_item_id=line_item_id,
        description=description.strip(),
        category=category,
        billing_mode=billing_mode,
        quantity=qty,
        unit=unit.strip(),
        unit_rate=unit_rate,
        source=LineItemSource.CUSTOM,
        metadata=metadata or {},
        added_by=actor.actor_id,
        added_at=at,
    )
    return _append_item(order, item, at)


# ══════════════════════════════════════════════════════════════
# LINE ITEM REQUESTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RequestApproval:
    """
    Admin edits applied when approving a request. Unset fields fall
    back to what the requester asked for; unit_rate is always set by
    the admin.
    """
    unit_rate: Money
    description: Optional[str] = None
    category: Optional[LineItemCategory] = None
    quantity: Optional[DecimalInput] = None
    unit: Optional[str] = None
    billing_mode: BillingMode = BillingMode.BILLABLE
    admin_note: Optional[str] = None


def request_line_item(
    order: Order,
    *,
    request_id: str,
    description: str,
    quantity: DecimalInput,
    actor: Actor,
    at: datetime,
    category: LineItemCategory = LineItemCategory.OTHER,
    unit: str = DEFAULT_REQUEST_UNIT,
    notes: Optional[str] = None,
) -> Order:
    """Record a request for an extra service. Awaits admin review."""
    raise_if_rejected(required_fields_policy(
        {"description": description}, policy_name="request_line_item",
    ))
    qty = _coerce_quantity(quantity)
    request = LineItemRequest(
        request_id=request_id,
        order_id=order.order_id,
        description=description.strip(),
        category=category,
        quantity=qty,
        unit=unit or DEFAULT_REQUEST_UNIT,
        requested_by=actor.actor_id,
        requested_at=at,
        notes=notes,
    )
    return replace(
        order,
        line_item_requests=order.line_item_requests + (request,),
        updated_at=at,
    )


def approve_request(
    request: LineItemRequest,
    overrides: RequestApproval,
    *,
    line_item_id: str,
    actor: Actor,
    at: datetime,
    currency: Optional[str] = None,
) -> Tuple[LineItemRequest, LineItem]:
    """
    Approve a REQUESTED request, producing the line item it becomes.
    Approving twice raises AlreadyResolved. When currency is given the
    admin rate must be in it.
    """
    raise_if_rejected(request_must_be_unresolved_policy(request))

    description = (
        overrides.description if overrides.description is not None
        else request.description
    )
    unit = overrides.unit if overrides.unit is not None else request.unit
    raise_if_rejected(required_fields_policy(
        {"description": description, "unit": unit},
        policy_name="approve_request",
    ))
    qty = _coerce_quantity(
        overrides.quantity if overrides.quantity is not None else request.quantity
    )
    raise_if_rejected(unit_rate_must_be_non_negative_policy(overrides.unit_rate))
    if currency is not None:
        raise_if_rejected(money_must_match_currency_policy(
            overrides.unit_rate, currency, "unit_rate",
        ))

    item = LineItem(
        line_item_id=line_item_id,
        description=description.strip(),
        category=overrides.category or request.category,
        billing_mode=overrides.billing_mode,
        quantity=qty,
        unit=unit.strip(),
        unit_rate=overrides.unit_rate,
        source=LineItemSource.REQUEST,
        metadata={"request_id": request.request_id},
        added_by=actor.actor_id,
        added_at=at,
    )
    approved = replace(
        request,
        status=LineItemRequestStatus.APPROVED,
        admin_note=overrides.admin_note,
        resolved_by=actor.actor_id,
        resolved_at=at,
        line_item_id=line_item_id,
    )
    return approved, item


def reject_request(
    request: LineItemRequest,
    admin_note: str,
    *,
    actor: Actor,
    at: datetime,
) -> LineItemRequest:
    raise_if_rejected(request_must_be_unresolved_policy(request))
    raise_if_rejected(required_fields_policy(
        {"admin_note": admin_note}, policy_name="reject_request",
    ))
    return replace(
        request,
        status=LineItemRequestStatus.REJECTED,
        admin_note=admin_note.strip(),
        resolved_by=actor.actor_id,
        resolved_at=at,
    )


def _replace_request(order: Order, updated: LineItemRequest) -> Tuple[LineItemRequest, ...]:
    return tuple(
        updated if r.request_id == updated.request_id else r
        for r in order.line_item_requests
    )


def approve_line_item_request(
    order: Order,
    request_id: str,
    overrides: RequestApproval,
    *,
    line_item_id: str,
    actor: Actor,
    at: datetime,
) -> Order:
    request = order.find_line_item_request(request_id)
    approved, item = approve_request(
        request, overrides,
        line_item_id=line_item_id,
        actor=actor,
        at=at,
        currency=order.currency,
    )
    order = replace(order, line_item_requests=_replace_request(order, approved))
    return _append_item(order, item, at)


def reject_line_item_request(
    order: Order,
    request_id: str,
    admin_note: str,
    *,
    actor: Actor,
    at: datetime,
) -> Order:
    request = order.find_line_item_request(request_id)
    rejected = reject_request(request, admin_note, actor=actor, at=at)
    logger.info(
        f"Order {order.order_code}: line item request {request_id} rejected"
    )
    return replace(
        order,
        line_item_requests=_replace_request(order, rejected),
        updated_at=at,
    )


# ══════════════════════════════════════════════════════════════
# EDITING / REMOVING
# ══════════════════════════════════════════════════════════════

def remove_line_item(
    order: Order,
    line_item_id: str,
    *,
    at: datetime,
    editable_statuses: Iterable[OrderStatus] = DEFAULT_EDITABLE_STATUSES,
) -> Order:
    raise_if_rejected(order_must_be_editable_policy(order, editable_statuses))
    item = order.find_line_item(line_item_id)
    raise_if_rejected(line_item_must_not_be_linked_policy(order, item))

    logger.info(f"Order {order.order_code}: line item {line_item_id} removed")
    return replace(
        order,
        line_items=tuple(
            i for i in order.line_items if i.line_item_id != line_item_id
        ),
        updated_at=at,
    )


def update_billing_mode(
    order: Order,
    line_item_id: str,
    billing_mode: BillingMode,
    *,
    at: datetime,
    editable_statuses: Iterable[OrderStatus] = DEFAULT_EDITABLE_STATUSES,
) -> Order:
    raise_if_rejected(order_must_be_editable_policy(order, editable_statuses))
    item = order.find_line_item(line_item_id)
    raise_if_rejected(line_item_must_not_be_linked_policy(order, item))

    updated = replace(item, billing_mode=billing_mode)
    return replace(
        order,
        line_items=tuple(
            updated if i.line_item_id == line_item_id else i
            for i in order.line_items
        ),
        updated_at=at,
    )
