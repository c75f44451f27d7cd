"""
Request parsing for the service boundary.

Turns raw payload dicts (as decoded from JSON or a query string) into the
kernel's frozen command objects.  Accepts both ``snake_case`` and the
``camelCase`` keys older clients send.  Every failure raises
``InvalidInputError`` naming the offending field; nothing here touches the
database.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from weighing_kernel.domain.commands import AddItemCommand, CreateReportCommand
from weighing_kernel.domain.lifecycle import ReportState
from weighing_kernel.domain.units import WeightUnit, parse_unit
from weighing_kernel.exceptions import InvalidInputError, InvalidUnitError
from weighing_kernel.selectors.report_selector import MAX_PAGE_SIZE

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

PLATE_NUMBER_MAX = 20
DRIVER_NAME_MAX = 200
SEARCH_MAX = 100


@dataclass(frozen=True)
class ReportListQuery:
    """Filters and paging for the ticket list."""

    page: int = 1
    page_size: int = 10
    start_date: date | None = None
    end_date: date | None = None
    supplier_id: UUID | None = None
    product_id: UUID | None = None
    state: ReportState | None = None
    search: str | None = None


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _get(payload: dict[str, Any], name: str) -> Any:
    if name in payload:
        return payload[name]
    return payload.get(_camel(name))


def _require(payload: dict[str, Any], name: str) -> Any:
    value = _get(payload, name)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidInputError(name, "is required")
    return value


def _decimal(name: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise InvalidInputError(name, f"must be a number, got {value!r}")
    if isinstance(value, float):
        # JSON numbers decode as float; go through the shortest repr
        value = repr(value)
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidInputError(name, f"must be a number, got {value!r}") from None
    if not result.is_finite():
        raise InvalidInputError(name, f"must be a finite number, got {value!r}")
    return result


def _uuid(name: str, value: Any) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise InvalidInputError(name, f"must be a UUID, got {value!r}") from None


def _date(name: str, value: Any) -> date:
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not _ISO_DATE.match(text):
        raise InvalidInputError(name, f"must be formatted YYYY-MM-DD, got {value!r}")
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise InvalidInputError(name, f"is not a valid date: {value!r}") from None


def _text(name: str, value: Any, max_length: int) -> str:
    if not isinstance(value, str):
        raise InvalidInputError(name, f"must be a string, got {type(value).__name__}")
    text = value.strip()
    if len(text) > max_length:
        raise InvalidInputError(name, f"must be at most {max_length} characters")
    return text


def _int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidInputError(name, f"must be an integer, got {value!r}")
    try:
        return int(str(value).strip())
    except ValueError:
        raise InvalidInputError(name, f"must be an integer, got {value!r}") from None


def _positive(name: str, value: Any) -> Decimal:
    result = _decimal(name, value)
    if result <= 0:
        raise InvalidInputError(name, f"must be greater than 0, got {result}")
    return result


def parse_create_report(payload: dict[str, Any]) -> CreateReportCommand:
    """Parse a create-ticket request.

    Required: report_date, plate_number, driver_name, supplier_id,
    gross_weight.  Optional: tare_weight, user_id.
    """
    tare = _get(payload, "tare_weight")
    user_id = _get(payload, "user_id")
    return CreateReportCommand(
        supplier_id=_uuid("supplier_id", _require(payload, "supplier_id")),
        gross_weight=_positive("gross_weight", _require(payload, "gross_weight")),
        plate_number=_text("plate_number", _require(payload, "plate_number"), PLATE_NUMBER_MAX),
        driver_name=_text("driver_name", _require(payload, "driver_name"), DRIVER_NAME_MAX),
        report_date=_date("report_date", _require(payload, "report_date")),
        tare_weight=_positive("tare_weight", tare) if tare is not None else None,
        user_id=_uuid("user_id", user_id) if user_id is not None else None,
    )


def parse_add_item(payload: dict[str, Any]) -> AddItemCommand:
    unit_value = _require(payload, "weight_unit")
    try:
        unit: WeightUnit = parse_unit(unit_value)
    except InvalidUnitError:
        raise InvalidInputError("weight_unit", f"unsupported unit {unit_value!r}") from None

    discount = _get(payload, "discount_weight")
    discount_weight = None
    if discount is not None:
        discount_weight = _decimal("discount_weight", discount)
        if discount_weight < 0:
            raise InvalidInputError("discount_weight", f"must not be negative, got {discount_weight}")

    return AddItemCommand(
        product_id=_uuid("product_id", _require(payload, "product_id")),
        weight=_positive("weight", _require(payload, "weight")),
        weight_unit=unit,
        discount_weight=discount_weight,
    )


def parse_finish(payload: dict[str, Any]) -> Decimal:
    """Return the tare weight of a finish request."""
    return _positive("tare_weight", _require(payload, "tare_weight"))


def parse_config_update(payload: dict[str, Any]) -> Decimal:
    """Return the new extra percentage (0-100)."""
    value = _decimal("extra_percentage", _require(payload, "extra_percentage"))
    if not (Decimal("0") <= value <= Decimal("100")):
        raise InvalidInputError("extra_percentage", f"must be between 0 and 100, got {value}")
    return value


def parse_list_query(params: dict[str, Any] | None) -> ReportListQuery:
    """Parse list filters; every key is optional."""
    params = params or {}

    page = _get(params, "page")
    page_size = _get(params, "page_size")
    start_date = _get(params, "start_date")
    end_date = _get(params, "end_date")
    supplier_id = _get(params, "supplier_id")
    product_id = _get(params, "product_id")
    state = _get(params, "state")
    search = _get(params, "search")

    query = ReportListQuery(
        page=_int("page", page) if page not in (None, "") else 1,
        page_size=_int("page_size", page_size) if page_size not in (None, "") else 10,
        start_date=_date("start_date", start_date) if start_date else None,
        end_date=_date("end_date", end_date) if end_date else None,
        supplier_id=_uuid("supplier_id", supplier_id) if supplier_id else None,
        product_id=_uuid("product_id", product_id) if product_id else None,
        state=_state(state) if state else None,
        search=(_text("search", search, SEARCH_MAX) or None) if search else None,
    )

    if query.page < 1:
        raise InvalidInputError("page", f"must be >= 1, got {query.page}")
    if not 1 <= query.page_size <= MAX_PAGE_SIZE:
        raise InvalidInputError(
            "page_size", f"must be between 1 and {MAX_PAGE_SIZE}, got {query.page_size}"
        )
    if query.start_date and query.end_date and query.start_date > query.end_date:
        raise InvalidInputError("start_date", "must not be after end_date")
    return query


def _state(value: Any) -> ReportState:
    try:
        return ReportState(str(value).strip().upper())
    except ValueError:
        raise InvalidInputError("state", f"unknown state {value!r}") from None
