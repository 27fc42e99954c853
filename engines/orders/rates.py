"""
RentOps Orders Engine — Rate Lookup Capabilities
=================================================
Tier and transport rates are owned by reference-data services. The
pricing composer only consumes their answers, through these injected
strategy objects, so it stays pure and testable with fixed fixtures.

The in-memory tables below are the deterministic implementations used
for bootstrap wiring and tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from core.primitives.money import Money, quantize_volume
from engines.orders.models import TripType


class BaseRateLookup(Protocol):
    def lookup_base_rate(
        self, country: str, city: str, volume: Decimal
    ) -> Optional[Money]:
        """Rate per m³ for the tier containing `volume`, or None."""
        ...  # pragma: no cover


class TransportRateLookup(Protocol):
    def lookup_transport_rate(
        self,
        company_id: Optional[str],
        city_id: str,
        area: Optional[str],
        trip_type: TripType,
        vehicle_type_id: str,
    ) -> Optional[Money]:
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# TIERED BASE RATES
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PricingTier:
    """
    Volume bracket for one location. min_volume is inclusive,
    max_volume exclusive; max_volume None means open-ended.
    """
    country: str
    city: str
    min_volume: Decimal
    max_volume: Optional[Decimal]
    rate: Money

    def __post_init__(self):
        object.__setattr__(self, "min_volume", quantize_volume(self.min_volume))
        if self.max_volume is not None:
            object.__setattr__(self, "max_volume", quantize_volume(self.max_volume))
            if self.max_volume <= self.min_volume:
                raise ValueError("max_volume must be greater than min_volume.")
        if self.min_volume < 0:
            raise ValueError("min_volume must be >= 0.")

    def contains(self, volume: Decimal) -> bool:
        if volume < self.min_volume:
            return False
        return self.max_volume is None or volume < self.max_volume


class TieredBaseRateTable:
    """In-memory tier table keyed by (country, city)."""

    def __init__(self, tiers: Iterable[PricingTier] = ()):
        self._tiers: Dict[Tuple[str, str], List[PricingTier]] = {}
        for tier in tiers:
            self.add(tier)

    def add(self, tier: PricingTier) -> None:
        key = (tier.country.upper(), tier.city.lower())
        bucket = self._tiers.setdefault(key, [])
        for existing in bucket:
            if _overlaps(existing, tier):
                raise ValueError(
                    f"Tier {tier.min_volume}-{tier.max_volume} overlaps "
                    f"{existing.min_volume}-{existing.max_volume} "
                    f"for {tier.country}/{tier.city}."
                )
        bucket.append(tier)
        bucket.sort(key=lambda t: t.min_volume)

    def lookup_base_rate(
        self, country: str, city: str, volume: Decimal
    ) -> Optional[Money]:
        volume = quantize_volume(volume)
        for tier in self._tiers.get((country.upper(), city.lower()), ()):
            if tier.contains(volume):
                return tier.rate
        return None


def _overlaps(a: PricingTier, b: PricingTier) -> bool:
    a_end = a.max_volume if a.max_volume is not None else Decimal("Infinity")
    b_end = b.max_volume if b.max_volume is not None else Decimal("Infinity")
    return a.min_volume < b_end and b.min_volume < a_end


# ══════════════════════════════════════════════════════════════
# TRANSPORT RATES
# ══════════════════════════════════════════════════════════════

_RateKey = Tuple[Optional[str], str, Optional[str], TripType, str]


class TransportRateTable:
    """
    In-memory transport rates.

    Resolution order: company + area, company, platform + area,
    platform. A company-specific rate always wins over the platform
    default for the same route.
    """

    def __init__(self):
        self._rates: Dict[_RateKey, Money] = {}

    def set_rate(
        self,
        *,
        city_id: str,
        trip_type: TripType,
        vehicle_type_id: str,
        rate: Money,
        company_id: Optional[str] = None,
        area: Optional[str] = None,
    ) -> None:
        if rate.is_negative():
            raise ValueError("transport rate must be >= 0.")
        self._rates[(company_id, city_id, area, trip_type, vehicle_type_id)] = rate

    def lookup_transport_rate(
        self,
        company_id: Optional[str],
        city_id: str,
        area: Optional[str],
        trip_type: TripType,
        vehicle_type_id: str,
    ) -> Optional[Money]:
        candidates = []
        if company_id is not None:
            if area is not None:
                candidates.append((company_id, city_id, area, trip_type, vehicle_type_id))
            candidates.append((company_id, city_id, None, trip_type, vehicle_type_id))
        if area is not None:
            candidates.append((None, city_id, area, trip_type, vehicle_type_id))
        candidates.append((None, city_id, None, trip_type, vehicle_type_id))

        for key in candidates:
            rate = self._rates.get(key)
            if rate is not None:
                return rate
        return None
