"""
RentOps Money Primitive — Fixed-Precision Decimal Values
=========================================================
Primitive Layer

Monetary amounts, volumes and percentages used by the pricing
composer and the line item ledger.

RULES (NON-NEGOTIABLE):
- All arithmetic uses decimal.Decimal — NO binary floats
- Currency amounts carry 2 fractional digits
- Volumes (m³) carry 3 fractional digits
- Rounding is ROUND_HALF_UP and happens at construction, so repeated
  recomputation never drifts
- Currency is explicit on every monetary value

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union


# ══════════════════════════════════════════════════════════════
# PRECISION
# ══════════════════════════════════════════════════════════════

CURRENCY_QUANTUM = Decimal("0.01")
VOLUME_QUANTUM = Decimal("0.001")
PERCENT_QUANTUM = Decimal("0.01")

DEFAULT_CURRENCY = "AED"

DecimalInput = Union[Decimal, int, str]


def to_decimal(value: DecimalInput, field_name: str = "value") -> Decimal:
    """
    Coerce an exact input to Decimal.

    Floats are refused: a float has already lost precision by the time
    it reaches us. Pass strings ("12.50") or Decimals instead.
    """
    if isinstance(value, bool):
        raise TypeError(f"{field_name} must be a decimal, got bool.")
    if isinstance(value, float):
        raise TypeError(
            f"{field_name} must be Decimal, int or str, got float. "
            f"Binary floating point is not allowed for prices."
        )
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(value)
        except InvalidOperation as exc:
            raise ValueError(f"{field_name} '{value}' is not a decimal.") from exc
    else:
        raise TypeError(
            f"{field_name} must be Decimal, int or str, "
            f"got {type(value).__name__}."
        )
    if not result.is_finite():
        raise ValueError(f"{field_name} must be finite.")
    return result


def quantize_currency(value: DecimalInput) -> Decimal:
    return to_decimal(value).quantize(CURRENCY_QUANTUM, rounding=ROUND_HALF_UP)


def quantize_volume(value: DecimalInput) -> Decimal:
    return to_decimal(value).quantize(VOLUME_QUANTUM, rounding=ROUND_HALF_UP)


def quantize_percent(value: DecimalInput) -> Decimal:
    return to_decimal(value).quantize(PERCENT_QUANTUM, rounding=ROUND_HALF_UP)


# ══════════════════════════════════════════════════════════════
# MONEY VALUE OBJECT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Money:
    """
    Monetary value with 2 fractional digits.

    Rules:
    - amount is quantized to 0.01 on construction
    - currency is a 3-letter ISO 4217 code (e.g. "AED", "USD")
    - Cross-currency arithmetic is refused
    """
    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self):
        object.__setattr__(
            self, "amount", quantize_currency(to_decimal(self.amount, "amount"))
        )
        if not self.currency or not isinstance(self.currency, str):
            raise ValueError("currency must be a non-empty ISO 4217 string.")
        if len(self.currency) != 3:
            raise ValueError(
                f"currency must be 3-letter ISO 4217 code, "
                f"got '{self.currency}'."
            )

    def __add__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def times(self, factor: DecimalInput) -> Money:
        """Multiply by an exact factor (quantity, volume). Rounded once."""
        return Money(
            amount=self.amount * to_decimal(factor, "factor"),
            currency=self.currency,
        )

    def percent(self, percent: DecimalInput) -> Money:
        """Return `percent`% of this amount, rounded once."""
        return Money(
            amount=self.amount * to_decimal(percent, "percent") / Decimal(100),
            currency=self.currency,
        )

    def is_zero(self) -> bool:
        return self.amount == 0

    def is_negative(self) -> bool:
        return self.amount < 0

    def _assert_same_currency(self, other: Money) -> None:
        if not isinstance(other, Money):
            raise TypeError(f"Cannot operate with {type(other).__name__}.")
        if self.currency != other.currency:
            raise ValueError(
                f"Currency mismatch: {self.currency} vs {other.currency}. "
                f"Cross-currency operations require explicit conversion."
            )

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> Money:
        return cls(amount=Decimal(0), currency=currency)

    @classmethod
    def of(cls, amount: DecimalInput, currency: str = DEFAULT_CURRENCY) -> Money:
        return cls(amount=to_decimal(amount, "amount"), currency=currency)

    def to_dict(self) -> dict:
        return {"amount": str(self.amount), "currency": self.currency}

    @classmethod
    def from_dict(cls, data: dict) -> Money:
        return cls(amount=Decimal(data["amount"]), currency=data["currency"])


def sum_money(values, currency: str = DEFAULT_CURRENCY) -> Money:
    """Sum an iterable of Money; empty input yields zero in `currency`."""
    total = Money.zero(currency)
    for value in values:
        total = total + value
    return total


# ══════════════════════════════════════════════════════════════
# VOLUME
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Volume:
    """Volume in cubic metres, 3 fractional digits, never negative."""
    cubic_metres: Decimal

    def __post_init__(self):
        value = quantize_volume(to_decimal(self.cubic_metres, "cubic_metres"))
        if value < 0:
            raise ValueError("cubic_metres must be >= 0.")
        object.__setattr__(self, "cubic_metres", value)

    @classmethod
    def of(cls, cubic_metres: DecimalInput) -> Volume:
        return cls(cubic_metres=to_decimal(cubic_metres, "cubic_metres"))

    def __str__(self) -> str:
        return f"{self.cubic_metres} m³"


# ══════════════════════════════════════════════════════════════
# PERCENTAGE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Percentage:
    """
    Percentage in the closed range [0, 100], 2 fractional digits.
    25 means 25%, not 0.25.
    """
    value: Decimal

    def __post_init__(self):
        value = quantize_percent(to_decimal(self.value, "percent"))
        if value < 0 or value > 100:
            raise ValueError(f"percent must be between 0 and 100, got {value}.")
        object.__setattr__(self, "value", value)

    @classmethod
    def of(cls, value: DecimalInput) -> Percentage:
        return cls(value=to_decimal(value, "percent"))
