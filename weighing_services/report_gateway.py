"""
ReportGateway -- the service boundary around the report lifecycle.

Responsibility:
    One method per externally visible operation.  Each method binds the
    logging context, checks the caller's role, parses the raw payload,
    calls the kernel and returns ``(status, body)``: a serialized report on
    success or a translated error on a kernel failure.

Architecture position:
    Services layer.  Composes ``rbac_authority``, ``requests`` and
    ``errors`` around ``ReportLifecycleService``, ``ReportSelector`` and
    ``SystemConfigService``.

Invariants:
    - Authorization runs before parsing, so a denied request never reads or
      writes data.
    - ``create_report`` reads the extra percentage here and passes it to the
      lifecycle explicitly.
    - Only ``WeighingKernelError`` is translated; any other exception is a
      defect and propagates.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.orm import Session, sessionmaker

from weighing_kernel.domain.clock import Clock
from weighing_kernel.exceptions import InvalidInputError, WeighingKernelError
from weighing_kernel.logging_config import LogContext, get_logger
from weighing_kernel.models.report import Report
from weighing_kernel.selectors.report_selector import (
    ReportDTO,
    ReportPage,
    ReportSelector,
    report_to_dto,
)
from weighing_kernel.services.config_service import SystemConfigService
from weighing_kernel.services.report_lifecycle import ReportLifecycleService
from weighing_services.errors import to_error_response
from weighing_services.rbac_authority import Role, require_role
from weighing_services.requests import (
    parse_add_item,
    parse_config_update,
    parse_create_report,
    parse_finish,
    parse_list_query,
)

logger = get_logger("services.report_gateway")

Response = tuple[int, Any]


@dataclass(frozen=True)
class Caller:
    """Authenticated identity as supplied by the transport layer."""

    actor_id: UUID | None = None
    roles: tuple[Role | str, ...] = field(default_factory=tuple)
    correlation_id: str | None = None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def serialize_item(item) -> dict[str, Any]:
    return {
        "id": str(item.id),
        "position": item.position,
        "product_id": str(item.product_id),
        "product_name": item.product_name,
        "weight": str(item.weight),
        "weight_unit": item.weight_unit.value,
        "discount_weight": _text(item.discount_weight),
        "weight_in_quintals": str(item.weight_in_quintals),
        "price_per_quintal": str(item.price_per_quintal),
        "base_price": str(item.base_price),
        "created_at": item.created_at.isoformat(),
    }


def serialize_report(report: Report | ReportDTO) -> dict[str, Any]:
    """Render a ticket for output.  Decimals are strings, dates ISO-8601."""
    dto = report if isinstance(report, ReportDTO) else report_to_dto(report)
    return {
        "id": str(dto.id),
        "ticket_number": dto.ticket_number,
        "report_date": dto.report_date.isoformat(),
        "plate_number": dto.plate_number,
        "driver_name": dto.driver_name,
        "supplier": {"id": str(dto.supplier_id), "name": dto.supplier_name},
        "user": (
            {"id": str(dto.user_id), "name": dto.user_name}
            if dto.user_id is not None
            else None
        ),
        "gross_weight": str(dto.gross_weight),
        "tare_weight": str(dto.tare_weight),
        "net_weight": str(dto.net_weight),
        "extra_percentage": str(dto.extra_percentage),
        "base_price": str(dto.base_price),
        "total_price": str(dto.total_price),
        "total_quintals": str(dto.total_quintals),
        "state": dto.state.value,
        "version": dto.version,
        "created_at": dto.created_at.isoformat(),
        "updated_at": dto.updated_at.isoformat(),
        "items": [serialize_item(item) for item in dto.items],
    }


def serialize_page(page: ReportPage) -> dict[str, Any]:
    return {
        "items": [serialize_report(report) for report in page.items],
        "total": page.total,
        "page": page.page,
        "page_size": page.page_size,
        "total_pages": page.total_pages,
    }


class ReportGateway:
    """Boundary facade over the weighing kernel."""

    def __init__(
        self,
        lifecycle: ReportLifecycleService,
        session_factory: sessionmaker[Session],
        clock: Clock,
    ):
        self._lifecycle = lifecycle
        self._session_factory = session_factory
        self._clock = clock

    # ------------------------------------------------------------------
    # Tickets
    # ------------------------------------------------------------------

    def create_report(self, caller: Caller, payload: dict[str, Any]) -> Response:
        def _create() -> Response:
            command = parse_create_report(payload)
            if command.user_id is None and caller.actor_id is not None:
                command = replace(command, user_id=caller.actor_id)
            extra_percentage = self._read_extra_percentage()
            report = self._lifecycle.create(command, extra_percentage=extra_percentage)
            return 201, serialize_report(report)

        return self._handle("create", caller, None, _create)

    def add_item(self, caller: Caller, report_id: Any, payload: dict[str, Any]) -> Response:
        def _add_item() -> Response:
            report = self._lifecycle.add_item(_report_id(report_id), parse_add_item(payload))
            return 201, serialize_report(report)

        return self._handle("add_item", caller, report_id, _add_item)

    def finish_report(self, caller: Caller, report_id: Any, payload: dict[str, Any]) -> Response:
        def _finish() -> Response:
            report = self._lifecycle.finish(_report_id(report_id), parse_finish(payload))
            return 200, serialize_report(report)

        return self._handle("finish", caller, report_id, _finish)

    def cancel_report(self, caller: Caller, report_id: Any) -> Response:
        def _cancel() -> Response:
            return 200, serialize_report(self._lifecycle.cancel(_report_id(report_id)))

        return self._handle("cancel", caller, report_id, _cancel)

    def delete_report(self, caller: Caller, report_id: Any) -> Response:
        def _delete() -> Response:
            self._lifecycle.delete(_report_id(report_id))
            return 204, None

        return self._handle("delete", caller, report_id, _delete)

    def get_report(self, caller: Caller, report_id: Any) -> Response:
        def _get() -> Response:
            return 200, serialize_report(self._lifecycle.get(_report_id(report_id)))

        return self._handle("get", caller, report_id, _get)

    def list_reports(self, caller: Caller, params: dict[str, Any] | None = None) -> Response:
        def _list() -> Response:
            query = parse_list_query(params)
            with self._session_factory() as session:
                page = ReportSelector(session).list_reports(
                    page=query.page,
                    page_size=query.page_size,
                    start_date=query.start_date,
                    end_date=query.end_date,
                    supplier_id=query.supplier_id,
                    product_id=query.product_id,
                    state=query.state,
                    search=query.search,
                )
            return 200, serialize_page(page)

        return self._handle("list", caller, None, _list)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def get_config(self, caller: Caller) -> Response:
        def _get_config() -> Response:
            return 200, {"extra_percentage": str(self._read_extra_percentage())}

        return self._handle("get_config", caller, None, _get_config)

    def update_config(self, caller: Caller, payload: dict[str, Any]) -> Response:
        def _update() -> Response:
            value = parse_config_update(payload)
            with self._session_factory() as session:
                with session.begin():
                    config = self._config_service(session).update_extra_percentage(value)
                    extra_percentage = Decimal(config.extra_percentage)
            return 200, {"extra_percentage": str(extra_percentage)}

        return self._handle("update_config", caller, None, _update)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _config_service(self, session: Session) -> SystemConfigService:
        return SystemConfigService(
            session,
            default_extra_percentage=self._lifecycle.policy.default_extra_percentage,
            clock=self._clock,
        )

    def _read_extra_percentage(self) -> Decimal:
        # get_config may create the row on first read, so commit
        with self._session_factory() as session:
            with session.begin():
                return self._config_service(session).get_extra_percentage()

    def _handle(
        self,
        operation: str,
        caller: Caller,
        report_id: Any,
        work: Callable[[], Response],
    ) -> Response:
        with LogContext.bind(
            correlation_id=caller.correlation_id or str(uuid4()),
            actor_id=_text(caller.actor_id),
            report_id=_text(report_id),
        ):
            try:
                require_role(operation, caller.roles)
                return work()
            except WeighingKernelError as exc:
                status, body = to_error_response(exc)
                logger.warning(
                    "request_failed",
                    extra={
                        "operation": operation,
                        "status": status,
                        "error_code": exc.code,
                        "details": body["details"],
                    },
                )
                return status, body


def _report_id(value: Any) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise InvalidInputError("report_id", f"must be a UUID, got {value!r}") from None


__all__ = [
    "Caller",
    "ReportGateway",
    "serialize_page",
    "serialize_report",
]
