"""
CapacityGuard -- keeps a ticket's item weights within the truck's weight.

The bound is the report's net weight once the tare is known and the gross
weight before that, both converted from the facility unit to quintals.
Callers must evaluate the guard inside the same transaction that inserts the
item; the report's version column turns a concurrent overshoot into a retry.
"""

from decimal import Decimal

from weighing_kernel.domain.units import WeightConverter, WeightUnit
from weighing_kernel.exceptions import CapacityExceededError

_ZERO = Decimal("0")


def capacity_bound(
    gross_weight: Decimal,
    net_weight: Decimal | None,
    facility_unit: WeightUnit,
    converter: WeightConverter,
) -> Decimal:
    """Capacity in quintals: net when known (> 0), otherwise gross."""
    declared = net_weight if net_weight and net_weight > _ZERO else gross_weight
    return converter.to_quintals(declared, facility_unit)


def ensure_capacity(
    current_used_quintals: Decimal,
    incoming_quintals: Decimal,
    capacity_quintals: Decimal,
) -> None:
    """Raise CapacityExceededError if used + incoming exceeds capacity."""
    if current_used_quintals + incoming_quintals > capacity_quintals:
        raise CapacityExceededError(
            used_quintals=current_used_quintals,
            incoming_quintals=incoming_quintals,
            capacity_quintals=capacity_quintals,
        )
