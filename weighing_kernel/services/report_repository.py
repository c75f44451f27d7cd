"""
ReportRepository -- persistence contract for the Report aggregate.

Responsibility:
    Loads and stores a Report together with its items.  Every load returns
    the full aggregate (items in insertion order, item products, supplier and
    user resolved), because every lifecycle operation needs all of it.

Architecture position:
    Kernel > Services.  Flush-only: the lifecycle service owns the
    transaction and commits once per operation.

Invariants enforced:
    - ``save`` flushes under the Report version check; a version written by
      another transaction since this one loaded the report surfaces as
      ``OptimisticLockError``, never as a silent overwrite.
    - ``touch`` bumps the version even when only child rows changed, so item
      insertions are serialized per report.

Failure modes:
    - ReportNotFoundError from ``get``.
    - OptimisticLockError from ``save`` / ``remove`` on a stale version.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError

from weighing_kernel.exceptions import OptimisticLockError, ReportNotFoundError
from weighing_kernel.logging_config import get_logger
from weighing_kernel.models.report import Report
from weighing_kernel.services.base import BaseService

logger = get_logger("services.report_repository")


class ReportRepository(BaseService):
    """Aggregate repository for weighing tickets."""

    def find_by_id(self, report_id: UUID) -> Report | None:
        # populate_existing so a retry never sees a stale identity-map copy
        return self.session.execute(
            select(Report)
            .where(Report.id == report_id)
            .execution_options(populate_existing=True)
        ).unique().scalar_one_or_none()

    def get(self, report_id: UUID) -> Report:
        report = self.find_by_id(report_id)
        if report is None:
            raise ReportNotFoundError(str(report_id))
        return report

    def find_latest_by_creation(self) -> Report | None:
        """Most recently created report.  Diagnostics only, never numbering."""
        return self.session.execute(
            select(Report)
            .order_by(Report.created_at.desc(), Report.ticket_number.desc())
            .limit(1)
        ).unique().scalar_one_or_none()

    def touch(self, report: Report, now: datetime) -> None:
        """Mark the report row dirty so the next flush bumps its version."""
        report.updated_at = now
        flag_modified(report, "updated_at")

    def save(self, report: Report) -> Report:
        if report not in self.session:
            self.session.add(report)
        self._flush(report)
        return report

    def remove(self, report: Report) -> None:
        ticket_number = report.ticket_number
        self.session.delete(report)
        report_id = self._flush(report)
        logger.info(
            "report_removed",
            extra={"report_id": report_id, "ticket_number": ticket_number},
        )

    def _flush(self, report: Report) -> str:
        # A failed flush expires the instance, so read the id beforehand
        report_id = str(report.id)
        try:
            self.session.flush()
        except StaleDataError as exc:
            logger.warning(
                "report_version_conflict",
                extra={"report_id": report_id},
            )
            raise OptimisticLockError("Report", report_id) from exc
        return report_id
