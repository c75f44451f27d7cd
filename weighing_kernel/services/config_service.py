"""
SystemConfigService -- persisted facility configuration.

Responsibility:
    Reads and updates the single SystemConfig row.  The row is created on
    first read with the configured default extra percentage; it is updated by
    an administrative operation and never deleted.

Architecture position:
    Kernel > Services.  Flush-only (BaseService contract).  The boundary reads
    the extra percentage through this service and passes it into
    ``ReportLifecycleService.create()`` explicitly.
"""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from weighing_kernel.db.types import round_percentage, to_decimal
from weighing_kernel.domain.clock import Clock, SystemClock
from weighing_kernel.exceptions import InvalidInputError
from weighing_kernel.logging_config import get_logger
from weighing_kernel.models.system_config import SystemConfig
from weighing_kernel.services.base import BaseService

logger = get_logger("services.config")

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


class SystemConfigService(BaseService):
    """Lazily created, administratively updated extra percentage."""

    def __init__(
        self,
        session: Session,
        default_extra_percentage: Decimal = _ZERO,
        clock: Clock | None = None,
    ):
        super().__init__(session)
        self._default = validate_extra_percentage(default_extra_percentage)
        self._clock = clock or SystemClock()

    def get_config(self) -> SystemConfig:
        """Return the configuration row, creating it on first read."""
        config = self.session.execute(
            select(SystemConfig).order_by(SystemConfig.created_at).limit(1)
        ).scalar_one_or_none()

        if config is None:
            now = self._clock.now()
            config = SystemConfig(
                extra_percentage=self._default,
                created_at=now,
                updated_at=now,
            )
            self.session.add(config)
            self.session.flush()
            logger.info(
                "system_config_created",
                extra={"extra_percentage": self._default},
            )
        return config

    def get_extra_percentage(self) -> Decimal:
        return Decimal(self.get_config().extra_percentage)

    def update_extra_percentage(self, value: Decimal | int | str) -> SystemConfig:
        """Set a new default extra percentage (0-100) for future tickets."""
        new_value = validate_extra_percentage(value)
        config = self.get_config()
        previous = config.extra_percentage
        config.extra_percentage = new_value
        config.updated_at = self._clock.now()
        self.session.flush()
        logger.info(
            "system_config_updated",
            extra={"previous": previous, "extra_percentage": new_value},
        )
        return config


def validate_extra_percentage(value: Decimal | int | str) -> Decimal:
    """Coerce and range-check an extra percentage, rounded to its 2-place column."""
    try:
        percentage = to_decimal(value)
    except ValueError:
        raise InvalidInputError("extra_percentage", f"not a number: {value!r}") from None
    if not percentage.is_finite() or not (_ZERO <= percentage <= _HUNDRED):
        raise InvalidInputError(
            "extra_percentage", f"must be between 0 and 100, got {value}"
        )
    return round_percentage(percentage)
