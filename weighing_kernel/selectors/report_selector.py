"""
Module: weighing_kernel.selectors.report_selector
Responsibility: Read-only access to weighing tickets for display and export.
    Converts Report aggregates to frozen DTOs with every display field
    resolved (supplier name, product names, issuing user name), and pages
    through tickets with the filters the ticket list offers.
Architecture position: Kernel > Selectors.  May import from models/ and
    selectors/base.py.

Invariants enforced:
    - Read-only: no mutations performed on any queried data.
    - Items are returned in insertion order (position).
    - Listing order is report_date DESC, then ticket_number DESC.

Failure modes:
    - Returns None / empty pages on absence of data (never raises).
    - ValueError for page < 1 or page_size outside 1..200.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from weighing_kernel.domain.lifecycle import ReportState
from weighing_kernel.domain.units import WeightUnit
from weighing_kernel.models.report import Report, ReportItem
from weighing_kernel.selectors.base import BaseSelector

MAX_PAGE_SIZE = 200


@dataclass(frozen=True)
class ReportItemDTO:
    """Data transfer object for a ticket line."""

    id: UUID
    product_id: UUID
    product_name: str
    position: int
    weight: Decimal
    weight_unit: WeightUnit
    discount_weight: Decimal | None
    weight_in_quintals: Decimal
    price_per_quintal: Decimal
    base_price: Decimal
    created_at: datetime


@dataclass(frozen=True)
class ReportDTO:
    """Data transfer object for a weighing ticket."""

    id: UUID
    ticket_number: str
    report_date: date
    plate_number: str
    driver_name: str
    supplier_id: UUID
    supplier_name: str
    user_id: UUID | None
    user_name: str | None
    gross_weight: Decimal
    tare_weight: Decimal
    net_weight: Decimal
    extra_percentage: Decimal
    base_price: Decimal
    total_price: Decimal
    state: ReportState
    version: int
    created_at: datetime
    updated_at: datetime
    items: tuple[ReportItemDTO, ...]

    @property
    def total_quintals(self) -> Decimal:
        return sum((item.weight_in_quintals for item in self.items), Decimal("0"))


@dataclass(frozen=True)
class ReportPage:
    """One page of tickets."""

    items: tuple[ReportDTO, ...]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.total == 0:
            return 0
        return -(-self.total // self.page_size)


def report_to_dto(report: Report) -> ReportDTO:
    """Convert a fully loaded Report aggregate to a DTO."""
    items = tuple(
        ReportItemDTO(
            id=item.id,
            product_id=item.product_id,
            product_name=item.product.name,
            position=item.position,
            weight=item.weight,
            weight_unit=WeightUnit(item.weight_unit),
            discount_weight=item.discount_weight,
            weight_in_quintals=item.weight_in_quintals,
            price_per_quintal=item.price_per_quintal,
            base_price=item.base_price,
            created_at=item.created_at,
        )
        for item in sorted(report.items, key=lambda i: i.position)
    )
    return ReportDTO(
        id=report.id,
        ticket_number=report.ticket_number,
        report_date=report.report_date,
        plate_number=report.plate_number,
        driver_name=report.driver_name,
        supplier_id=report.supplier_id,
        supplier_name=report.supplier.name,
        user_id=report.user_id,
        user_name=report.user.display_name if report.user is not None else None,
        gross_weight=report.gross_weight,
        tare_weight=report.tare_weight,
        net_weight=report.net_weight,
        extra_percentage=report.extra_percentage,
        base_price=report.base_price,
        total_price=report.total_price,
        state=ReportState(report.state),
        version=report.version,
        created_at=report.created_at,
        updated_at=report.updated_at,
        items=items,
    )


class ReportSelector(BaseSelector[Report]):
    """
    Selector for weighing ticket queries.

    Guarantees:
        - Read-only: No mutations are performed.
        - Items, products, supplier and user are eagerly loaded by the
          model's relationship settings.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def get_by_id(self, report_id: UUID) -> ReportDTO | None:
        report = self.session.get(Report, report_id)
        if report is None:
            return None
        return report_to_dto(report)

    def get_by_ticket(self, ticket_number: str) -> ReportDTO | None:
        report = self.session.execute(
            select(Report).where(Report.ticket_number == ticket_number)
        ).unique().scalar_one_or_none()
        if report is None:
            return None
        return report_to_dto(report)

    def list_reports(
        self,
        page: int = 1,
        page_size: int = 10,
        start_date: date | None = None,
        end_date: date | None = None,
        supplier_id: UUID | None = None,
        product_id: UUID | None = None,
        state: ReportState | None = None,
        search: str | None = None,
    ) -> ReportPage:
        """
        Page through tickets, newest report date first.

        Args:
            page: 1-based page number.
            page_size: Tickets per page (1..200).
            start_date / end_date: Inclusive report_date range; either bound
                may be given alone.
            supplier_id: Only tickets from this supplier.
            product_id: Only tickets with at least one line of this product.
            state: Only tickets in this lifecycle state.
            search: Case-insensitive substring of plate number, ticket
                number or driver name.
        """
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}")

        conditions = []
        if start_date is not None:
            conditions.append(Report.report_date >= start_date)
        if end_date is not None:
            conditions.append(Report.report_date <= end_date)
        if supplier_id is not None:
            conditions.append(Report.supplier_id == supplier_id)
        if state is not None:
            conditions.append(Report.state == ReportState(state))
        if product_id is not None:
            conditions.append(
                Report.id.in_(
                    select(ReportItem.report_id).where(ReportItem.product_id == product_id)
                )
            )
        if search:
            term = search.strip().lower()
            # Wildcards in the term match literally
            conditions.append(
                or_(
                    func.lower(Report.plate_number).contains(term, autoescape=True),
                    func.lower(Report.ticket_number).contains(term, autoescape=True),
                    func.lower(Report.driver_name).contains(term, autoescape=True),
                )
            )

        total = self.session.execute(
            select(func.count()).select_from(Report).where(*conditions)
        ).scalar_one()

        reports = self.session.execute(
            select(Report)
            .where(*conditions)
            .order_by(Report.report_date.desc(), Report.ticket_number.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).unique().scalars().all()

        return ReportPage(
            items=tuple(report_to_dto(r) for r in reports),
            total=total,
            page=page,
            page_size=page_size,
        )
