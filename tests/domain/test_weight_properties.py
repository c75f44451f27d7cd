"""
Property-based checks for weight conversion, deductions, pricing and capacity.

Properties:
1. Converted weights are non-negative and carry at most 4 decimal places
2. Deductions never add weight and never decrease as a rate grows
3. A report total is the exact sum of its (already rounded) lines
4. Items accepted by the capacity guard never outweigh the bound
"""

from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from weighing_kernel.domain.capacity import ensure_capacity
from weighing_kernel.domain.deductions import apply_deductions
from weighing_kernel.domain.pricing import price_line, price_report
from weighing_kernel.domain.units import WeightConverter, WeightUnit
from weighing_kernel.exceptions import CapacityExceededError, InvalidEffectiveWeightError

weights = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("100000"), places=3,
    allow_nan=False, allow_infinity=False,
)
quintals = st.decimals(
    min_value=Decimal("0.0001"), max_value=Decimal("10000"), places=4,
    allow_nan=False, allow_infinity=False,
)
percentages = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("100"), places=2,
    allow_nan=False, allow_infinity=False,
)
prices = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("500"), places=2,
    allow_nan=False, allow_infinity=False,
)


def _effective(raw: Decimal, extra: Decimal) -> Decimal:
    try:
        return apply_deductions(raw, extra_percentage=extra).effective_quintals
    except InvalidEffectiveWeightError:
        return Decimal("0")


@given(weight=weights, unit=st.sampled_from(list(WeightUnit)))
def test_conversion_is_quantized(weight, unit):
    result = WeightConverter().to_quintals(weight, unit)
    assert result >= 0
    assert result.as_tuple().exponent >= -4


@given(raw=quintals, a=percentages, b=percentages)
def test_deductions_monotone_in_extra_percentage(raw, a, b):
    low, high = sorted((a, b))
    assert _effective(raw, high) <= _effective(raw, low) <= raw


@given(lines=st.lists(st.tuples(prices, quintals), max_size=20))
@settings(max_examples=50)
def test_report_total_is_sum_of_lines(lines):
    bases = [price_line(price, qq).base_price for price, qq in lines]
    assert price_report(bases).base_price == sum(bases, Decimal("0"))


@given(capacity=quintals, incoming=st.lists(quintals, max_size=30))
def test_capacity_guard_never_overshoots(capacity, incoming):
    used = Decimal("0")
    for qq in incoming:
        try:
            ensure_capacity(used, qq, capacity)
        except CapacityExceededError:
            continue
        used += qq
    assert used <= capacity
