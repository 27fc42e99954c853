"""
RentOps Core Config — Public API
=================================
Admin-configurable pricing rules (currency, margin).
Doctrine: No hardcoded commercial terms in engine logic.
"""

from core.config.rules import (
    InMemoryPricingConfigStore,
    PricingConfigStore,
    PricingRules,
)

__all__ = [
    "PricingRules",
    "PricingConfigStore",
    "InMemoryPricingConfigStore",
]
