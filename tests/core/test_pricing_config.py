"""
Tests for core.config and core.time — pricing rules and clocks.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from core.config import InMemoryPricingConfigStore, PricingRules
from core.primitives.money import Percentage
from core.time import FixedClock


class TestPricingRules:
    def test_defaults(self):
        rules = PricingRules()
        assert rules.currency == "AED"
        assert rules.default_margin.value == Decimal("25.00")

    def test_allows_margin(self):
        rules = PricingRules(
            min_margin=Percentage.of("10"), max_margin=Percentage.of("40"),
        )
        assert rules.allows_margin(Percentage.of("10"))
        assert not rules.allows_margin(Percentage.of("41"))

    def test_default_outside_bounds(self):
        with pytest.raises(ValueError, match="outside"):
            PricingRules(max_margin=Percentage.of("20"))

    def test_bad_currency(self):
        with pytest.raises(ValueError, match="ISO 4217"):
            PricingRules(currency="DH")


class TestInMemoryPricingConfigStore:
    def test_company_override(self):
        store = InMemoryPricingConfigStore()
        usd = PricingRules(currency="USD", default_margin=Percentage.of("30"))
        store.set_company_rules("acme", usd)
        assert store.get_pricing_rules("acme") is usd
        assert store.get_pricing_rules("globex").currency == "AED"
        assert store.get_pricing_rules().currency == "AED"


class TestFixedClock:
    def test_advance(self):
        start = datetime(2026, 3, 1, tzinfo=timezone.utc)
        clock = FixedClock(start)
        clock.advance(minutes=5)
        assert clock.now_utc() == start + timedelta(minutes=5)

    def test_requires_aware(self):
        with pytest.raises(ValueError, match="timezone-aware"):
            FixedClock(datetime(2026, 3, 1))
