"""
RentOps Orders Engine — Pricing Adjustments
============================================
Order-level changes to the pricing inputs: base operations, transport
(including vehicle changes and admin overrides) and margin. Each
returns a new Order; Order.pricing recomputes from the new inputs.

All adjustments respect the same editable window as the line item
ledger.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional

from core.config import PricingRules
from core.primitives.money import DecimalInput, Money, Percentage, Volume
from engines.orders.errors import (
    InvalidAmount,
    InvalidQuantity,
    MissingFields,
    raise_if_rejected,
)
from engines.orders.models import OrderStatus, TripType
from engines.orders.order import Order
from engines.orders.policies import (
    DEFAULT_EDITABLE_STATUSES,
    money_must_match_currency_policy,
    order_must_be_editable_policy,
    required_fields_policy,
    unit_rate_must_be_non_negative_policy,
)
from engines.orders.pricing import price_base_operations, price_transport
from engines.orders.rates import BaseRateLookup, TransportRateLookup

logger = logging.getLogger("rentops.orders")


def set_base_operations(
    order: Order,
    volume: DecimalInput,
    *,
    country: str,
    city: str,
    lookup: BaseRateLookup,
    at: datetime,
    editable_statuses: Iterable[OrderStatus] = DEFAULT_EDITABLE_STATUSES,
) -> Order:
    raise_if_rejected(order_must_be_editable_policy(order, editable_statuses))
    try:
        vol = Volume.of(volume)
    except (TypeError, ValueError) as exc:
        raise InvalidQuantity(str(exc), policy_name="set_base_operations") from exc

    base_operations = price_base_operations(
        vol, country=country, city=city, lookup=lookup,
    )
    raise_if_rejected(money_must_match_currency_policy(
        base_operations.rate, order.currency, "base rate",
    ))
    logger.info(
        f"Order {order.order_code}: base operations {vol} at "
        f"{base_operations.rate.amount}/m³"
    )
    return replace(order, base_operations=base_operations, updated_at=at)


def set_transport(
    order: Order,
    *,
    region: str,
    city_id: str,
    trip_type: TripType,
    vehicle_type_id: str,
    lookup: TransportRateLookup,
    at: datetime,
    area: Optional[str] = None,
    rate_override: Optional[Money] = None,
    override_reason: Optional[str] = None,
    editable_statuses: Iterable[OrderStatus] = DEFAULT_EDITABLE_STATUSES,
) -> Order:
    """
    Price the transport leg from the rate table. An admin override
    needs a reason and only replaces final_rate.
    """
    raise_if_rejected(order_must_be_editable_policy(order, editable_statuses))
    if rate_override is not None:
        raise_if_rejected(unit_rate_must_be_non_negative_policy(rate_override))
        raise_if_rejected(money_must_match_currency_policy(
            rate_override, order.currency, "rate_override",
        ))
        raise_if_rejected(required_fields_policy(
            {"override_reason": override_reason},
            policy_name="set_transport",
        ))

    transport = price_transport(
        region=region,
        city_id=city_id,
        trip_type=trip_type,
        vehicle_type_id=vehicle_type_id,
        lookup=lookup,
        company_id=order.company_id,
        area=area,
        rate_override=rate_override,
        override_reason=override_reason,
    )
    raise_if_rejected(money_must_match_currency_policy(
        transport.base_rate, order.currency, "transport rate",
    ))
    return replace(order, transport=transport, updated_at=at)


def change_vehicle(
    order: Order,
    vehicle_type_id: str,
    reason: str,
    *,
    lookup: TransportRateLookup,
    at: datetime,
    editable_statuses: Iterable[OrderStatus] = DEFAULT_EDITABLE_STATUSES,
) -> Order:
    """
    Switch the transport vehicle. The rate is looked up again for the
    new vehicle on the same route; a previous override is dropped.
    """
    raise_if_rejected(order_must_be_editable_policy(order, editable_statuses))
    raise_if_rejected(required_fields_policy(
        {"vehicle_type_id": vehicle_type_id, "reason": reason},
        policy_name="change_vehicle",
    ))
    current = order.transport
    if current is None or current.city_id is None:
        raise MissingFields(
            f"Order {order.order_code} has no priced transport leg to change.",
            policy_name="change_vehicle",
        )

    transport = price_transport(
        region=current.region,
        city_id=current.city_id,
        trip_type=current.trip_type,
        vehicle_type_id=vehicle_type_id,
        lookup=lookup,
        company_id=order.company_id,
        area=current.area,
    )
    raise_if_rejected(money_must_match_currency_policy(
        transport.base_rate, order.currency, "transport rate",
    ))
    transport = replace(transport, vehicle_change_reason=reason.strip())
    logger.info(
        f"Order {order.order_code}: vehicle {current.vehicle_type} → "
        f"{vehicle_type_id}"
    )
    return replace(order, transport=transport, updated_at=at)


def set_margin(
    order: Order,
    percent: DecimalInput,
    *,
    rules: PricingRules,
    at: datetime,
    editable_statuses: Iterable[OrderStatus] = DEFAULT_EDITABLE_STATUSES,
) -> Order:
    raise_if_rejected(order_must_be_editable_policy(order, editable_statuses))
    try:
        margin = Percentage.of(percent)
    except (TypeError, ValueError) as exc:
        raise InvalidAmount(str(exc), policy_name="set_margin") from exc
    if not rules.allows_margin(margin):
        raise InvalidAmount(
            f"Margin {margin.value}% is outside "
            f"[{rules.min_margin.value}, {rules.max_margin.value}].",
            policy_name="set_margin",
        )
    return replace(order, margin_percent=margin, updated_at=at)
