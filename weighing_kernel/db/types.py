"""
Module: weighing_kernel.db.types
Responsibility: Precision constants and rounding helpers for weight and
    money values.  Centralizes precision and rounding so that every model,
    domain function and service uses identical definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - Weights carry 4 decimal places (quintals are fractional; 4 places keep
      per-line rounding drift invisible on a printed ticket).
    - Money carries 2 decimal places.
    - Scale readings (report gross, tare, net) and percentages carry 2
      decimal places, matching their columns.
    - Rounding is ROUND_HALF_UP, which for Decimal is half away from zero.
    CRITICAL: No floats anywhere in the weighing kernel.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

WEIGHT_DECIMAL_PLACES = 4
MONEY_DECIMAL_PLACES = 2
SCALE_DECIMAL_PLACES = 2
PERCENTAGE_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

_WEIGHT_QUANTUM = Decimal(1).scaleb(-WEIGHT_DECIMAL_PLACES)
_MONEY_QUANTUM = Decimal(1).scaleb(-MONEY_DECIMAL_PLACES)
_SCALE_QUANTUM = Decimal(1).scaleb(-SCALE_DECIMAL_PLACES)
_PERCENTAGE_QUANTUM = Decimal(1).scaleb(-PERCENTAGE_DECIMAL_PLACES)


def to_decimal(value: Decimal | int | str) -> Decimal:
    """
    Coerce a value to Decimal without passing through float.

    Raises:
        ValueError: If the value is a float or not numeric.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"Refusing to coerce {type(value).__name__} to Decimal: {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Not a number: {value!r}") from exc


def round_weight(value: Decimal) -> Decimal:
    """Quantize a weight to 4 decimal places, half away from zero."""
    return value.quantize(_WEIGHT_QUANTUM, rounding=DEFAULT_ROUNDING)


def round_money(value: Decimal) -> Decimal:
    """Quantize an amount to cents, half away from zero."""
    return value.quantize(_MONEY_QUANTUM, rounding=DEFAULT_ROUNDING)


def round_scale_weight(value: Decimal) -> Decimal:
    """Quantize a truck-scale reading (gross, tare, net) to 2 decimal places."""
    return value.quantize(_SCALE_QUANTUM, rounding=DEFAULT_ROUNDING)


def round_percentage(value: Decimal) -> Decimal:
    """Quantize a percentage to 2 decimal places."""
    return value.quantize(_PERCENTAGE_QUANTUM, rounding=DEFAULT_ROUNDING)
