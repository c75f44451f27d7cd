"""Read-only selectors for weighing tickets and their references."""

from weighing_kernel.selectors.base import BaseSelector
from weighing_kernel.selectors.reference_selector import ReferenceSelector
from weighing_kernel.selectors.report_selector import (
    ReportDTO,
    ReportItemDTO,
    ReportPage,
    ReportSelector,
    report_to_dto,
)

__all__ = [
    "BaseSelector",
    "ReferenceSelector",
    "ReportDTO",
    "ReportItemDTO",
    "ReportPage",
    "ReportSelector",
    "report_to_dto",
]
