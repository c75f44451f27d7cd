"""
LifecyclePolicy -- facility parameters the lifecycle engine runs under.

Pure value object.  Built from YAML by ``weighing_config.bridges``; the
kernel never reads configuration files itself.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from weighing_kernel.domain.deductions import DEFAULT_MOISTURE_RATE
from weighing_kernel.domain.units import ConversionTable, WeightUnit


@dataclass(frozen=True)
class LifecyclePolicy:
    """Parameters for ReportLifecycleService.

    ``facility_unit`` is the unit gross, tare and net weights are recorded
    in; capacity checks convert them to quintals with ``conversion``.
    """

    conversion: ConversionTable = field(default_factory=ConversionTable)
    facility_unit: WeightUnit = WeightUnit.POUNDS
    moisture_rate: Decimal = DEFAULT_MOISTURE_RATE
    default_extra_percentage: Decimal = Decimal("0")
    ticket_width: int = 6
    ticket_sequence: str = "report_ticket"
    max_attempts: int = 5

    def __post_init__(self) -> None:
        if not (Decimal("0") <= self.moisture_rate < Decimal("1")):
            raise ValueError(f"moisture_rate must be in [0, 1), got {self.moisture_rate}")
        if not (Decimal("0") <= self.default_extra_percentage <= Decimal("100")):
            raise ValueError(
                f"default_extra_percentage must be in [0, 100], got {self.default_extra_percentage}"
            )
        if self.ticket_width < 1:
            raise ValueError(f"ticket_width must be positive, got {self.ticket_width}")
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be positive, got {self.max_attempts}")
