"""Tests for the persisted extra-percentage configuration."""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from weighing_kernel.exceptions import InvalidInputError
from weighing_kernel.models.system_config import SystemConfig
from weighing_kernel.services.config_service import (
    SystemConfigService,
    validate_extra_percentage,
)


class TestSystemConfigService:

    def test_lazily_created_with_default(self, session, clock, captured_logs):
        service = SystemConfigService(session, default_extra_percentage=Decimal("5"), clock=clock)
        assert service.get_extra_percentage() == Decimal("5")
        assert any(r["message"] == "system_config_created" for r in captured_logs())

    def test_single_row(self, session, clock):
        service = SystemConfigService(session, clock=clock)
        service.get_config()
        service.get_config()
        count = session.execute(select(func.count()).select_from(SystemConfig)).scalar_one()
        assert count == 1

    def test_default_is_zero(self, session, clock):
        assert SystemConfigService(session, clock=clock).get_extra_percentage() == Decimal("0")

    def test_update(self, session_factory, clock):
        with session_factory() as session, session.begin():
            SystemConfigService(session, clock=clock).update_extra_percentage("7.5")
        with session_factory() as session:
            assert SystemConfigService(session, clock=clock).get_extra_percentage() == Decimal("7.5")

    def test_update_returns_stored_precision(self, session_factory, clock):
        with session_factory() as session, session.begin():
            config = SystemConfigService(session, clock=clock).update_extra_percentage("2.555")
            assert config.extra_percentage == Decimal("2.56")
        with session_factory() as session:
            assert SystemConfigService(session, clock=clock).get_extra_percentage() == Decimal("2.56")

    def test_existing_row_wins_over_default(self, session_factory, clock):
        with session_factory() as session, session.begin():
            SystemConfigService(session, clock=clock).update_extra_percentage(Decimal("4"))
        with session_factory() as session:
            service = SystemConfigService(session, default_extra_percentage=Decimal("9"), clock=clock)
            assert service.get_extra_percentage() == Decimal("4")

    @pytest.mark.parametrize("value", [Decimal("-0.01"), Decimal("100.01"), "lots"])
    def test_update_rejects_out_of_range(self, session, clock, value):
        with pytest.raises(InvalidInputError):
            SystemConfigService(session, clock=clock).update_extra_percentage(value)

    def test_invalid_default_rejected(self, session):
        with pytest.raises(InvalidInputError):
            SystemConfigService(session, default_extra_percentage=Decimal("101"))


@pytest.mark.parametrize("value,expected", [(0, Decimal("0")), ("100", Decimal("100")), (Decimal("2.5"), Decimal("2.5")), ("2.555", Decimal("2.56"))])
def test_validate_extra_percentage_bounds(value, expected):
    assert validate_extra_percentage(value) == expected
