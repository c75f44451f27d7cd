"""
Module: weighing_kernel.models.report
Responsibility: ORM persistence for weighing tickets (Report) and their
    commodity lines (ReportItem).  A Report and its items form one aggregate:
    items never exist without their report and are deleted with it.
Architecture position: Kernel > Models.  May import from db/base.py,
    domain/ enums, and sibling models.  MUST NOT import from services/ or
    selectors/.

Invariants enforced:
    - ticket_number is unique (uq_report_ticket_number).
    - version is SQLAlchemy's version_id_col: every UPDATE checks and bumps
      it, so two writers racing on the same report cannot both commit.
    - While PENDING, base_price and total_price stay 0.  Once APPROVED,
      weights, prices and items are fixed.
    - Items are ordered by ``position`` (insertion order).

Failure modes:
    - IntegrityError on duplicate ticket_number.
    - StaleDataError on flush when another transaction committed a newer
      version (translated to OptimisticLockError by the repository).
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from weighing_kernel.db.base import Base, TrackedBase, UUIDString
from weighing_kernel.domain.lifecycle import ReportState
from weighing_kernel.domain.units import WeightUnit
from weighing_kernel.models.reference import Product, Supplier, User


class Report(TrackedBase):
    """
    One weighing event: a truck's gross/tare weights and its commodity lines.

    Guarantees:
        - Weights (gross, tare, net) are in the facility's declared unit.
        - extra_percentage is a snapshot taken at creation.
        - items are loaded in insertion order with their products.
    """

    __tablename__ = "reports"

    __table_args__ = (
        UniqueConstraint("ticket_number", name="uq_report_ticket_number"),
        Index("idx_report_date", "report_date"),
        Index("idx_report_supplier", "supplier_id"),
        Index("idx_report_state", "state"),
    )

    ticket_number: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    report_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    plate_number: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    driver_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    supplier_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("suppliers.id"),
        nullable=False,
    )

    # Issuing user; the boundary may not always supply one
    user_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("users.id"),
        nullable=True,
    )

    # Weights in the facility unit
    gross_weight: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )

    tare_weight: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
    )

    net_weight: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
    )

    extra_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
        default=Decimal("0"),
    )

    base_price: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
        default=Decimal("0"),
    )

    total_price: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
        default=Decimal("0"),
    )

    state: Mapped[ReportState] = mapped_column(
        SAEnum(ReportState, native_enum=False, length=20),
        nullable=False,
        default=ReportState.PENDING,
    )

    version: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    items: Mapped[list["ReportItem"]] = relationship(
        back_populates="report",
        cascade="all, delete-orphan",
        order_by="ReportItem.position",
        lazy="selectin",
    )

    supplier: Mapped[Supplier] = relationship(lazy="joined")

    user: Mapped[User | None] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<Report {self.ticket_number} state={self.state.value}>"

    @property
    def is_pending(self) -> bool:
        return self.state == ReportState.PENDING

    @property
    def used_quintals(self) -> Decimal:
        """Sum of the effective quintal weight of every item."""
        return sum((item.weight_in_quintals for item in self.items), Decimal("0"))


class ReportItem(Base):
    """
    One commodity line on a weighing ticket.

    Guarantees:
        - weight / weight_unit are exactly what the caller submitted.
        - weight_in_quintals is the effective weight after conversion and
          deductions.
        - price_per_quintal is a snapshot of the product price at insertion.
    """

    __tablename__ = "report_items"

    __table_args__ = (
        Index("idx_report_item_report", "report_id"),
        Index("idx_report_item_product", "product_id"),
    )

    report_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("reports.id", ondelete="CASCADE"),
        nullable=False,
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    # Insertion order within the report
    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    weight: Mapped[Decimal] = mapped_column(
        Numeric(12, 4),
        nullable=False,
    )

    weight_unit: Mapped[WeightUnit] = mapped_column(
        SAEnum(WeightUnit, native_enum=False, length=20),
        nullable=False,
    )

    # Fixed discount in quintals, kept so finish can recompute
    discount_weight: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 4),
        nullable=True,
    )

    weight_in_quintals: Mapped[Decimal] = mapped_column(
        Numeric(12, 4),
        nullable=False,
    )

    price_per_quintal: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )

    base_price: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
        default=Decimal("0"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    # Relationships
    report: Mapped[Report] = relationship(
        back_populates="items",
    )

    product: Mapped[Product] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return (
            f"<ReportItem #{self.position} {self.weight} {self.weight_unit.value} "
            f"= {self.weight_in_quintals} qq>"
        )
