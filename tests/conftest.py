"""
Pytest fixtures for the weighing kernel test suite.

Provides:
- A file-backed SQLite database per test (several sessions can interleave,
  which the concurrency tests rely on)
- Seeded supplier, product and user rows
- A DeterministicClock, the lifecycle policy and the lifecycle service
- Structured log capture

Environment Variables:
- WEIGHING_TEST_DATABASE_URL: run against another database (e.g. a local
  PostgreSQL) instead of the per-test SQLite file.  The database must be
  empty; tables are created and dropped around every test.
"""

import json
import logging
import os
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest
from sqlalchemy.orm import Session, sessionmaker

from weighing_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from weighing_kernel.domain.clock import DeterministicClock
from weighing_kernel.domain.commands import AddItemCommand, CreateReportCommand
from weighing_kernel.domain.policy import LifecyclePolicy
from weighing_kernel.domain.units import WeightUnit
from weighing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from weighing_kernel.models.reference import Product, Supplier, User
from weighing_kernel.services.report_lifecycle import ReportLifecycleService

PRODUCT_PRICE = Decimal("10.00")


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "postgres: mark test as requiring PostgreSQL"
    )
    config.addinivalue_line(
        "markers", "concurrency: mark test as interleaving several sessions"
    )


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture weighing_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, lifecycle):
            lifecycle.create(...)
            logs = captured_logs()
            assert any(r["message"] == "report_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("weighing_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine(tmp_path):
    """Fresh database with all tables, disposed after the test."""
    url = os.environ.get("WEIGHING_TEST_DATABASE_URL") or f"sqlite:///{tmp_path / 'weighing.db'}"
    db_engine = init_engine_from_url(url)
    create_tables()
    yield db_engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session_factory(engine) -> sessionmaker[Session]:
    return get_session_factory()


@pytest.fixture
def session(session_factory):
    """A plain session for assertions; tests commit or roll back as needed."""
    with session_factory() as db_session:
        yield db_session


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock()


# =============================================================================
# Reference data
# =============================================================================


@pytest.fixture
def supplier(session_factory, clock) -> Supplier:
    now = clock.now()
    with session_factory() as db_session, db_session.begin():
        row = Supplier(name="Cooperativa El Progreso", tax_id="0614-010190-101-1",
                       is_active=True, created_at=now, updated_at=now)
        db_session.add(row)
    return row


@pytest.fixture
def product(session_factory, clock) -> Product:
    now = clock.now()
    with session_factory() as db_session, db_session.begin():
        row = Product(name="Maiz blanco", price_per_quintal=PRODUCT_PRICE,
                      is_active=True, created_at=now, updated_at=now)
        db_session.add(row)
    return row


@pytest.fixture
def inactive_product(session_factory, clock) -> Product:
    now = clock.now()
    with session_factory() as db_session, db_session.begin():
        row = Product(name="Sorgo", price_per_quintal=Decimal("8.00"),
                      is_active=False, created_at=now, updated_at=now)
        db_session.add(row)
    return row


@pytest.fixture
def user(session_factory, clock) -> User:
    now = clock.now()
    with session_factory() as db_session, db_session.begin():
        row = User(first_name="Ana", last_name="Martinez",
                   created_at=now, updated_at=now)
        db_session.add(row)
    return row


# =============================================================================
# Lifecycle
# =============================================================================


@pytest.fixture
def policy() -> LifecyclePolicy:
    return LifecyclePolicy()


@pytest.fixture
def lifecycle(session_factory, clock, policy) -> ReportLifecycleService:
    return ReportLifecycleService(session_factory, clock, policy)


@pytest.fixture
def create_command(supplier):
    """Factory for CreateReportCommand with sensible defaults (gross 200 lb)."""

    def _make(**overrides) -> CreateReportCommand:
        fields = {
            "supplier_id": supplier.id,
            "gross_weight": Decimal("200"),
            "plate_number": "C-123456",
            "driver_name": "Jose Hernandez",
            "report_date": date(2024, 1, 1),
        }
        fields.update(overrides)
        return CreateReportCommand(**fields)

    return _make


@pytest.fixture
def item_command(product):
    """Factory for AddItemCommand (defaults to 50 lb of the seeded product)."""

    def _make(**overrides) -> AddItemCommand:
        fields = {
            "product_id": product.id,
            "weight": Decimal("50"),
            "weight_unit": WeightUnit.POUNDS,
        }
        fields.update(overrides)
        return AddItemCommand(**fields)

    return _make


@pytest.fixture
def pending_report(lifecycle, create_command):
    """A PENDING report with gross 200 lb, no items, extra percentage 0."""
    return lifecycle.create(create_command(), extra_percentage=Decimal("0"))
