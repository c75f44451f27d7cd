"""
Module: weighing_kernel.models.reference
Responsibility: Minimal ORM rows for the entities a weighing ticket refers to
    (suppliers, products, issuing users).  Their full CRUD lives outside the
    kernel; these rows exist so tickets can resolve references and display
    names.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - The kernel reads these rows and never mutates them.
    - A ticket item snapshots ``Product.price_per_quintal`` when it is added;
      later price changes do not touch existing items.
"""

from decimal import Decimal

from sqlalchemy import Boolean, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from weighing_kernel.db.base import TrackedBase


class Supplier(TrackedBase):
    """Party delivering commodity to the facility."""

    __tablename__ = "suppliers"

    __table_args__ = (
        Index("idx_supplier_name", "name"),
    )

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    tax_id: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    def __repr__(self) -> str:
        return f"<Supplier {self.name}>"


class Product(TrackedBase):
    """Commodity received at the facility, priced per quintal."""

    __tablename__ = "products"

    __table_args__ = (
        Index("idx_product_name", "name"),
    )

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    price_per_quintal: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )

    # Inactive products cannot be added to new tickets
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    def __repr__(self) -> str:
        return f"<Product {self.name} @ {self.price_per_quintal}/qq>"


class User(TrackedBase):
    """Operator who issues a ticket."""

    __tablename__ = "users"

    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    last_name: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    @property
    def display_name(self) -> str:
        if self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.first_name

    def __repr__(self) -> str:
        return f"<User {self.display_name}>"
