"""
DeductionEngine -- moisture and commercial deductions on quintal weights.

Responsibility:
    Turns a raw quintal value into the effective quintal weight that is
    priced.  The order is fixed and each step compounds on the previous
    result:

        1. facility moisture/impurity rate (default 5%) off the raw value
        2. report-level extra percentage off the moisture-reduced value
        3. item-level fixed discount weight (quintals) subtracted directly

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.

Invariants enforced:
    - Effective weight is strictly positive, else InvalidEffectiveWeightError.
    - Effective weight is monotonically non-increasing in moisture rate,
      extra percentage and discount weight.
    - Result is quantized to 4 decimal places once, at the end.
"""

from dataclasses import dataclass
from decimal import Decimal

from weighing_kernel.db.types import round_weight
from weighing_kernel.exceptions import InvalidEffectiveWeightError, InvalidInputError

DEFAULT_MOISTURE_RATE = Decimal("0.05")

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class DeductionResult:
    """Breakdown of one deduction pass, kept for logs and printed tickets."""

    raw_quintals: Decimal
    moisture_deduction: Decimal
    extra_deduction: Decimal
    discount_deduction: Decimal
    effective_quintals: Decimal


def apply_deductions(
    raw_quintals: Decimal,
    extra_percentage: Decimal | None = None,
    discount_weight: Decimal | None = None,
    moisture_rate: Decimal = DEFAULT_MOISTURE_RATE,
) -> DeductionResult:
    """Apply moisture, extra-percentage and discount deductions in order.

    Args:
        raw_quintals: Converted weight before any deduction.
        extra_percentage: Report snapshot, 0-100.  None or 0 skips the step.
        discount_weight: Fixed quintals to subtract.  None skips the step.
        moisture_rate: Fraction in [0, 1).

    Raises:
        InvalidInputError: A rate, percentage or discount is out of range.
        InvalidEffectiveWeightError: Result is zero or negative.
    """
    if moisture_rate < _ZERO or moisture_rate >= 1:
        raise InvalidInputError("moisture_rate", f"must be in [0, 1), got {moisture_rate}")
    if extra_percentage is not None and not (_ZERO <= extra_percentage <= _HUNDRED):
        raise InvalidInputError(
            "extra_percentage", f"must be between 0 and 100, got {extra_percentage}"
        )
    if discount_weight is not None and discount_weight < _ZERO:
        raise InvalidInputError(
            "discount_weight", f"must not be negative, got {discount_weight}"
        )

    moisture = raw_quintals * moisture_rate
    value = raw_quintals - moisture

    extra = _ZERO
    if extra_percentage:
        extra = value * (extra_percentage / _HUNDRED)
        value -= extra

    discount = _ZERO
    if discount_weight:
        discount = discount_weight
        value -= discount

    effective = round_weight(value)
    if effective <= _ZERO:
        raise InvalidEffectiveWeightError(raw_quintals, effective)

    return DeductionResult(
        raw_quintals=raw_quintals,
        moisture_deduction=round_weight(moisture),
        extra_deduction=round_weight(extra),
        discount_deduction=round_weight(discount),
        effective_quintals=effective,
    )
