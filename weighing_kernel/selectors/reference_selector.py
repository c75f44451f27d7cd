"""
Module: weighing_kernel.selectors.reference_selector
Responsibility: Read-only lookups of the suppliers, products and users a
    weighing ticket refers to.  These rows are treated as immutable snapshots
    for the duration of one lifecycle operation.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from weighing_kernel.db.base import Base
from weighing_kernel.models.reference import Product, Supplier, User
from weighing_kernel.selectors.base import BaseSelector


class ReferenceSelector(BaseSelector[Base]):
    """find_* return the row or None; they never raise on absence."""

    def __init__(self, session: Session):
        super().__init__(session)

    def find_supplier(self, supplier_id: UUID) -> Supplier | None:
        return self.session.get(Supplier, supplier_id)

    def find_product(self, product_id: UUID, active_only: bool = True) -> Product | None:
        product = self.session.get(Product, product_id)
        if product is not None and active_only and not product.is_active:
            return None
        return product

    def find_user(self, user_id: UUID) -> User | None:
        return self.session.get(User, user_id)
