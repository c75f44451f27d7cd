"""Domain models for the weighing kernel."""

from weighing_kernel.models.reference import Product, Supplier, User
from weighing_kernel.models.report import Report, ReportItem
from weighing_kernel.models.system_config import SystemConfig

__all__ = [
    "Product",
    "Report",
    "ReportItem",
    "Supplier",
    "SystemConfig",
    "User",
]
