"""
Facility settings schema.

Frozen dataclasses the YAML document is parsed into.  The loader builds
them; ``bridges.to_lifecycle_policy`` turns them into the kernel's
``LifecyclePolicy``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from weighing_kernel.domain.units import WeightUnit


@dataclass(frozen=True)
class FacilitySection:
    """Facility-wide weighing parameters."""

    weight_unit: WeightUnit = WeightUnit.POUNDS
    moisture_rate: Decimal = Decimal("0.05")
    default_extra_percentage: Decimal = Decimal("0")


@dataclass(frozen=True)
class ConversionSection:
    """Unit conversion constants, all relative to the quintal."""

    pounds_per_quintal: Decimal = Decimal("100")
    kilograms_per_quintal: Decimal = Decimal("45.359237")
    quintals_per_ton: Decimal = Decimal("22.0462262185")


@dataclass(frozen=True)
class TicketSection:
    width: int = 6
    sequence_name: str = "report_ticket"


@dataclass(frozen=True)
class ConcurrencySection:
    max_attempts: int = 5


@dataclass(frozen=True)
class FacilitySettings:
    """Complete, validated facility configuration.

    ``checksum`` identifies the source document; ``source`` is the file it
    was read from (empty for settings built in code).
    """

    facility: FacilitySection = field(default_factory=FacilitySection)
    conversion: ConversionSection = field(default_factory=ConversionSection)
    tickets: TicketSection = field(default_factory=TicketSection)
    concurrency: ConcurrencySection = field(default_factory=ConcurrencySection)
    checksum: str = ""
    source: str = ""
