"""
RentOps Core Config — Admin-Configurable Pricing Rules
=======================================================
Doctrine: No hardcoded commercial terms in engine logic.
Currency, default margin and margin bounds come from
admin-configurable data, not from source code.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional, Protocol

from core.primitives.money import DEFAULT_CURRENCY, Percentage


# ══════════════════════════════════════════════════════════════
# PRICING RULES
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PricingRules:
    """
    Commercial terms applied when pricing an order.

    default_margin seeds new orders; an admin may override it per
    order within [min_margin, max_margin].
    """

    currency: str = DEFAULT_CURRENCY
    default_margin: Percentage = Percentage(Decimal("25"))
    min_margin: Percentage = Percentage(Decimal("0"))
    max_margin: Percentage = Percentage(Decimal("100"))

    def __post_init__(self) -> None:
        if not self.currency or len(self.currency) != 3:
            raise ValueError(
                f"currency must be 3-letter ISO 4217 code, got '{self.currency}'."
            )
        if self.min_margin.value > self.max_margin.value:
            raise ValueError("min_margin must not exceed max_margin.")
        if not self.allows_margin(self.default_margin):
            raise ValueError(
                f"default_margin {self.default_margin.value} is outside "
                f"[{self.min_margin.value}, {self.max_margin.value}]."
            )

    def allows_margin(self, margin: Percentage) -> bool:
        return self.min_margin.value <= margin.value <= self.max_margin.value


# ══════════════════════════════════════════════════════════════
# CONFIG STORE PROTOCOL
# ══════════════════════════════════════════════════════════════

class PricingConfigStore(Protocol):
    """
    Protocol for admin-configured pricing rules.

    Implementations may back this with a database, settings, or an
    in-memory store.
    """

    def get_pricing_rules(self, company_id: Optional[str] = None) -> PricingRules:
        """Rules for a company, falling back to the platform rules."""
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IN-MEMORY CONFIG STORE (for testing / bootstrap)
# ══════════════════════════════════════════════════════════════

class InMemoryPricingConfigStore:
    """Simple in-memory config store for testing and bootstrap."""

    def __init__(self, platform_rules: Optional[PricingRules] = None) -> None:
        self._platform_rules = platform_rules or PricingRules()
        self._company_rules: Dict[str, PricingRules] = {}

    def set_company_rules(self, company_id: str, rules: PricingRules) -> None:
        self._company_rules[company_id] = rules

    def get_pricing_rules(self, company_id: Optional[str] = None) -> PricingRules:
        if company_id is not None and company_id in self._company_rules:
            return self._company_rules[company_id]
        return self._platform_rules
