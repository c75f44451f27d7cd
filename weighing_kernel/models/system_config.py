"""
Module: weighing_kernel.models.system_config
Responsibility: Single-row persisted configuration holding the extra
    percentage that new tickets snapshot at creation.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - At most one row is ever written (created lazily on first read by
      SystemConfigService; updated in place; never deleted).
    - extra_percentage is between 0 and 100 (ck_system_config_extra_range).
"""

from decimal import Decimal

from sqlalchemy import CheckConstraint, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from weighing_kernel.db.base import TrackedBase


class SystemConfig(TrackedBase):
    """Facility-wide default applied to new weighing tickets."""

    __tablename__ = "system_config"

    __table_args__ = (
        CheckConstraint(
            "extra_percentage >= 0 AND extra_percentage <= 100",
            name="ck_system_config_extra_range",
        ),
    )

    extra_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
        default=Decimal("0"),
    )

    def __repr__(self) -> str:
        return f"<SystemConfig extra_percentage={self.extra_percentage}>"
