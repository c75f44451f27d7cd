"""
Command DTOs accepted by the report lifecycle (``weighing_kernel.domain.commands``).

Frozen, already-typed inputs.  The boundary layer parses raw payloads into
these; the lifecycle still re-checks every numeric invariant it relies on.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from weighing_kernel.domain.units import WeightUnit


@dataclass(frozen=True)
class CreateReportCommand:
    """Open a new weighing ticket for a loaded truck."""

    supplier_id: UUID
    gross_weight: Decimal
    plate_number: str
    driver_name: str
    report_date: date
    tare_weight: Decimal | None = None
    user_id: UUID | None = None


@dataclass(frozen=True)
class AddItemCommand:
    """Attach one commodity line to a pending ticket."""

    product_id: UUID
    weight: Decimal
    weight_unit: WeightUnit
    discount_weight: Decimal | None = None
