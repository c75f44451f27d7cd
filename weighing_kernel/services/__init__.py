"""Services for the weighing kernel (write side)."""

from weighing_kernel.services.config_service import (
    SystemConfigService,
    validate_extra_percentage,
)
from weighing_kernel.services.report_lifecycle import ReportLifecycleService
from weighing_kernel.services.report_repository import ReportRepository
from weighing_kernel.services.sequence_service import (
    SequenceCounter,
    SequenceService,
    TicketSequencer,
)

__all__ = [
    "ReportLifecycleService",
    "ReportRepository",
    "SequenceCounter",
    "SequenceService",
    "SystemConfigService",
    "TicketSequencer",
    "validate_extra_percentage",
]
