"""
RentOps Pricing Composer
=========================
Builds the priced breakdown of an order from its inputs:

    base operations   volume × tier rate
  + transport         final rate of the transport leg
  + line items        BILLABLE line totals only
  = logistics subtotal
  + margin            subtotal × percent / 100 (applied once)
  = final total

compose() is a pure function: identical inputs give an identical
PricingBreakdown. Orders never store the breakdown; they derive it
from their current inputs on every read, so it cannot go stale.

Rate lookups are external collaborators (see engines.orders.rates);
price_base_operations / price_transport only compose their results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from core.primitives.money import Money, Percentage, Volume, sum_money
from engines.orders.errors import RateNotFound, raise_if_rejected
from engines.orders.models import (
    BaseOperations,
    LineItem,
    TransportCharge,
    TripType,
)
from engines.orders.policies import money_must_match_currency_policy
from engines.orders.rates import BaseRateLookup, TransportRateLookup


@dataclass(frozen=True)
class Margin:
    percent: Percentage
    amount: Money


@dataclass(frozen=True)
class PricingBreakdown:
    base_operations: BaseOperations
    transport: TransportCharge
    line_items: Tuple[LineItem, ...]
    line_items_total: Money
    logistics_subtotal: Money
    margin: Margin
    final_total: Money

    @property
    def currency(self) -> str:
        return self.final_total.currency

    def to_dict(self) -> dict:
        return {
            "base_operations": {
                "volume": str(self.base_operations.volume.cubic_metres),
                "rate": str(self.base_operations.rate.amount),
                "total": str(self.base_operations.total.amount),
            },
            "transport": {
                "region": self.transport.region,
                "trip_type": self.transport.trip_type.value,
                "vehicle_type": self.transport.vehicle_type,
                "base_rate": str(self.transport.base_rate.amount),
                "final_rate": str(self.transport.final_rate.amount),
            },
            "line_items": [
                {
                    "line_item_id": item.line_item_id,
                    "description": item.description,
                    "category": item.category.value,
                    "billing_mode": item.billing_mode.value,
                    "quantity": str(item.quantity),
                    "unit_rate": str(item.unit_rate.amount),
                    "line_total": str(item.line_total.amount),
                }
                for item in self.line_items
            ],
            "line_items_total": str(self.line_items_total.amount),
            "logistics_subtotal": str(self.logistics_subtotal.amount),
            "margin": {
                "percent": str(self.margin.percent.value),
                "amount": str(self.margin.amount.amount),
            },
            "final_total": str(self.final_total.amount),
            "currency": self.currency,
        }


def compose(
    base_operations: BaseOperations,
    transport: TransportCharge,
    line_items: Iterable[LineItem],
    margin_percent: Percentage,
    *,
    currency: Optional[str] = None,
) -> PricingBreakdown:
    """
    Compose the full breakdown. Pure: no side effects, no hidden state.

    NON_BILLABLE and COMPLIMENTARY items are carried in the breakdown
    but contribute nothing to any monetary total. Every amount must be
    in `currency` (default: the base rate's currency), else
    InvalidAmount.
    """
    items = tuple(line_items)
    currency = currency or base_operations.rate.currency
    raise_if_rejected(money_must_match_currency_policy(
        base_operations.rate, currency, "base rate",
    ))
    raise_if_rejected(money_must_match_currency_policy(
        transport.final_rate, currency, "transport rate",
    ))
    for item in items:
        raise_if_rejected(money_must_match_currency_policy(
            item.unit_rate, currency, f"line item {item.line_item_id}",
        ))

    line_items_total = sum_money(
        (item.line_total for item in items if item.is_billable),
        currency=currency,
    )
    subtotal = base_operations.total + transport.final_rate + line_items_total
    margin = Margin(
        percent=margin_percent,
        amount=subtotal.percent(margin_percent.value),
    )
    return PricingBreakdown(
        base_operations=base_operations,
        transport=transport,
        line_items=items,
        line_items_total=line_items_total,
        logistics_subtotal=subtotal,
        margin=margin,
        final_total=subtotal + margin.amount,
    )


def price_base_operations(
    volume: Volume,
    *,
    country: str,
    city: str,
    lookup: BaseRateLookup,
) -> BaseOperations:
    rate = lookup.lookup_base_rate(country, city, volume.cubic_metres)
    if rate is None:
        raise RateNotFound(
            f"No pricing tier for {country}/{city} at {volume}.",
            policy_name="price_base_operations",
        )
    return BaseOperations(volume=volume, rate=rate)


def price_transport(
    *,
    region: str,
    city_id: str,
    trip_type: TripType,
    vehicle_type_id: str,
    lookup: TransportRateLookup,
    company_id: Optional[str] = None,
    area: Optional[str] = None,
    rate_override: Optional[Money] = None,
    override_reason: Optional[str] = None,
) -> TransportCharge:
    """
    Price a transport leg. An admin override replaces final_rate only;
    base_rate always reflects the rate table.
    """
    rate = lookup.lookup_transport_rate(
        company_id, city_id, area, trip_type, vehicle_type_id
    )
    if rate is None:
        raise RateNotFound(
            f"No transport rate for city '{city_id}', "
            f"{trip_type.value}, vehicle '{vehicle_type_id}'.",
            policy_name="price_transport",
        )
    final_rate = rate if rate_override is None else rate_override
    return TransportCharge(
        region=region,
        trip_type=trip_type,
        vehicle_type=vehicle_type_id,
        base_rate=rate,
        final_rate=final_rate,
        city_id=city_id,
        area=area,
        override_reason=override_reason if rate_override is not None else None,
    )
