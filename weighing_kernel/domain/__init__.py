"""Pure domain layer: units, deductions, pricing, capacity and lifecycle."""

from weighing_kernel.domain.capacity import capacity_bound, ensure_capacity
from weighing_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from weighing_kernel.domain.commands import AddItemCommand, CreateReportCommand
from weighing_kernel.domain.deductions import (
    DEFAULT_MOISTURE_RATE,
    DeductionResult,
    apply_deductions,
)
from weighing_kernel.domain.lifecycle import (
    REPORT_TRANSITIONS,
    ReportOperation,
    ReportState,
    can_transition,
    guard_operation,
)
from weighing_kernel.domain.policy import LifecyclePolicy
from weighing_kernel.domain.pricing import LinePrice, ReportPrice, price_line, price_report
from weighing_kernel.domain.units import (
    ConversionTable,
    WeightConverter,
    WeightUnit,
    parse_unit,
)

__all__ = [
    "AddItemCommand",
    "CreateReportCommand",
    "LifecyclePolicy",
    "Clock",
    "ConversionTable",
    "DEFAULT_MOISTURE_RATE",
    "DeductionResult",
    "DeterministicClock",
    "LinePrice",
    "REPORT_TRANSITIONS",
    "ReportOperation",
    "ReportPrice",
    "ReportState",
    "SystemClock",
    "WeightConverter",
    "WeightUnit",
    "apply_deductions",
    "can_transition",
    "capacity_bound",
    "ensure_capacity",
    "guard_operation",
    "parse_unit",
    "price_line",
    "price_report",
]
