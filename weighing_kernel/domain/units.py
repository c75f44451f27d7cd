"""
Weight units and conversion to quintals (``weighing_kernel.domain.units``).

Responsibility
--------------
Normalizes a weight expressed in any supported unit to the canonical quintal
value used for all pricing.  Conversion constants live in a
``ConversionTable`` so the facility can correct them without a code change.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects and functions.  ZERO I/O.
May import only from ``db/types`` and ``exceptions``.

Invariants enforced
-------------------
* Output is quantized to 4 decimal places, ROUND_HALF_UP.
* ``to_quintals(0, unit) == 0`` for every unit.
* Conversion is linear up to the 4-decimal quantum.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from weighing_kernel.db.types import round_weight, to_decimal
from weighing_kernel.exceptions import InvalidUnitError, InvalidWeightError


class WeightUnit(str, Enum):
    """Units a weight may be submitted in."""

    QUINTALS = "quintals"
    POUNDS = "pounds"
    KILOGRAMS = "kilograms"
    TONS = "tons"


def parse_unit(value: WeightUnit | str) -> WeightUnit:
    """Resolve an enum member, value (``"pounds"``) or name (``"POUNDS"``)."""
    if isinstance(value, WeightUnit):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        for unit in WeightUnit:
            if normalized in (unit.value, unit.name.lower()):
                return unit
    raise InvalidUnitError(value)


@dataclass(frozen=True)
class ConversionTable:
    """Conversion constants between submitted units and quintals.

    Defaults follow the 100-pound quintal used at Central American receiving
    stations: 100 lb, 45.359237 kg, and 1000 / 45.359237 quintals per metric
    ton.
    """

    pounds_per_quintal: Decimal = Decimal("100")
    kilograms_per_quintal: Decimal = Decimal("45.359237")
    quintals_per_ton: Decimal = Decimal("22.0462262185")

    def __post_init__(self) -> None:
        for name in ("pounds_per_quintal", "kilograms_per_quintal", "quintals_per_ton"):
            value = getattr(self, name)
            if not isinstance(value, Decimal) or value <= 0:
                raise ValueError(f"{name} must be a positive Decimal, got {value!r}")


class WeightConverter:
    """Converts weights to and from quintals using a ``ConversionTable``."""

    def __init__(self, table: ConversionTable | None = None):
        self.table = table or ConversionTable()

    def to_quintals(self, weight: Decimal | int | str, unit: WeightUnit | str) -> Decimal:
        """Convert ``weight`` in ``unit`` to quintals (4 dp).

        Raises:
            InvalidUnitError: Unit not recognised.
            InvalidWeightError: Weight negative or not a number.
        """
        resolved = parse_unit(unit)
        value = self._coerce(weight)

        if resolved is WeightUnit.QUINTALS:
            quintals = value
        elif resolved is WeightUnit.POUNDS:
            quintals = value / self.table.pounds_per_quintal
        elif resolved is WeightUnit.KILOGRAMS:
            quintals = value / self.table.kilograms_per_quintal
        elif resolved is WeightUnit.TONS:
            quintals = value * self.table.quintals_per_ton
        else:  # pragma: no cover - enum is exhaustive
            raise InvalidUnitError(unit)

        return round_weight(quintals)

    def from_quintals(self, quintals: Decimal, unit: WeightUnit | str) -> Decimal:
        """Express a quintal value in ``unit`` (4 dp)."""
        resolved = parse_unit(unit)
        value = self._coerce(quintals)

        if resolved is WeightUnit.QUINTALS:
            converted = value
        elif resolved is WeightUnit.POUNDS:
            converted = value * self.table.pounds_per_quintal
        elif resolved is WeightUnit.KILOGRAMS:
            converted = value * self.table.kilograms_per_quintal
        else:
            converted = value / self.table.quintals_per_ton

        return round_weight(converted)

    @staticmethod
    def _coerce(weight: Decimal | int | str) -> Decimal:
        try:
            value = to_decimal(weight)
        except ValueError:
            raise InvalidWeightError("weight", weight) from None
        if not value.is_finite() or value < 0:
            raise InvalidWeightError("weight", weight)
        return value
