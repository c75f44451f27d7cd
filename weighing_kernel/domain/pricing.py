"""
PricingCalculator -- cent-precision amounts for ticket lines and totals.

Each line rounds once (what the printed ticket shows), and the report total
is the rounded sum of those already-rounded lines.  The extra percentage is
realized as a weight deduction upstream, so total equals base here.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from weighing_kernel.db.types import round_money
from weighing_kernel.exceptions import InvalidInputError

_ZERO = Decimal("0")


@dataclass(frozen=True)
class LinePrice:
    base_price: Decimal
    total_price: Decimal


@dataclass(frozen=True)
class ReportPrice:
    base_price: Decimal
    total_price: Decimal
    line_count: int


def price_line(price_per_quintal: Decimal, effective_quintals: Decimal) -> LinePrice:
    """``base = round2(price_per_quintal * effective_quintals)``."""
    if price_per_quintal < _ZERO:
        raise InvalidInputError(
            "price_per_quintal", f"must not be negative, got {price_per_quintal}"
        )
    base = round_money(price_per_quintal * effective_quintals)
    return LinePrice(base_price=base, total_price=base)


def price_report(line_prices: Iterable[Decimal]) -> ReportPrice:
    """Sum line base prices (each already rounded) and round the sum."""
    count = 0
    total = _ZERO
    for amount in line_prices:
        total += round_money(amount)
        count += 1
    base = round_money(total)
    return ReportPrice(base_price=base, total_price=base, line_count=count)
