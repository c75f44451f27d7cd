"""
ReportLifecycleService -- create, fill, finish and cancel weighing tickets.

Responsibility:
    Orchestrates every write on a Report aggregate: ticket allocation,
    unit conversion, deductions, the capacity guard, price snapshots and
    state transitions.  Each public operation is one atomic commit.

Architecture position:
    Kernel > Services -- imperative shell.  Unlike the flush-only services it
    owns its transactions: it opens one session per attempt from the
    injected session factory and commits once.

Invariants enforced:
    - Capacity: the sum of item effective weights never exceeds the report's
      capacity bound (net once tare is known, gross before).
    - While PENDING, report base_price and total_price stay 0.
    - Only ``guard_operation`` decides which operations a state allows.
    - Ticket numbers come from the atomic counter only.
    - A concurrent writer on the same report is detected by the version
      column; the losing attempt is rolled back and re-run against fresh
      state, up to ``policy.max_attempts`` times.

Failure modes:
    - NotFoundError subclasses for unknown report, supplier or product.
    - ValidationError subclasses for bad weights, units, percentages, tare.
    - ConflictError subclasses for state, tare/gross and capacity conflicts.
    - OptimisticLockError once the retry budget is spent.

Usage:
    lifecycle = ReportLifecycleService(get_session_factory(), clock, policy)
    report = lifecycle.create(CreateReportCommand(...), extra_percentage=Decimal("2"))
    lifecycle.add_item(report.id, AddItemCommand(...))
    lifecycle.finish(report.id, tare_weight=Decimal("40"))
"""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal, InvalidOperation
from typing import TypeVar
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from weighing_kernel.db.types import round_scale_weight, round_weight, to_decimal
from weighing_kernel.domain.capacity import capacity_bound, ensure_capacity
from weighing_kernel.domain.clock import Clock
from weighing_kernel.domain.commands import AddItemCommand, CreateReportCommand
from weighing_kernel.domain.deductions import apply_deductions
from weighing_kernel.domain.lifecycle import ReportOperation, ReportState, guard_operation
from weighing_kernel.domain.policy import LifecyclePolicy
from weighing_kernel.domain.pricing import price_line, price_report
from weighing_kernel.domain.units import WeightConverter, parse_unit
from weighing_kernel.exceptions import (
    CapacityExceededError,
    ConcurrencyError,
    InvalidInputError,
    InvalidTareWeightError,
    InvalidWeightError,
    OptimisticLockError,
    ProductNotFoundError,
    SupplierNotFoundError,
    TareExceedsGrossError,
)
from weighing_kernel.logging_config import LogContext, get_logger
from weighing_kernel.models.report import Report, ReportItem
from weighing_kernel.selectors.reference_selector import ReferenceSelector
from weighing_kernel.services.config_service import (
    SystemConfigService,
    validate_extra_percentage,
)
from weighing_kernel.services.report_repository import ReportRepository
from weighing_kernel.services.sequence_service import SequenceService, TicketSequencer

logger = get_logger("services.report_lifecycle")

T = TypeVar("T")

_ZERO = Decimal("0")


class ReportLifecycleService:
    """
    Lifecycle engine for weighing tickets.

    Guarantees:
        - Every operation either commits completely or leaves no trace.
        - Returned Report objects are fully loaded (items, products,
          supplier, user) and remain readable after their session closes.

    Non-goals:
        - Does NOT authorize callers; the boundary does.
        - Does NOT read configuration files; the policy is injected.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock,
        policy: LifecyclePolicy | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock
        self._policy = policy or LifecyclePolicy()
        self._converter = WeightConverter(self._policy.conversion)

    @property
    def policy(self) -> LifecyclePolicy:
        return self._policy

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def create(
        self,
        command: CreateReportCommand,
        extra_percentage: Decimal | int | str | None = None,
    ) -> Report:
        """Open a PENDING ticket with the next ticket number.

        Args:
            command: Truck, driver and supplier data plus gross weight.
                A tare given here sets the net weight immediately.
            extra_percentage: Snapshot to store on the report.  When None
                the persisted system configuration is read instead.

        Raises:
            InvalidWeightError: gross_weight is not positive.
            InvalidTareWeightError / TareExceedsGrossError: bad tare.
            InvalidInputError: bad extra percentage or unknown user.
            SupplierNotFoundError: supplier_id does not resolve.
        """
        gross = self._positive_weight(
            "gross_weight", command.gross_weight, round_scale_weight
        )
        tare = None
        if command.tare_weight is not None:
            tare = self._valid_tare(command.tare_weight, gross)
        snapshot = None
        if extra_percentage is not None:
            snapshot = validate_extra_percentage(extra_percentage)

        def _create(session: Session) -> Report:
            references = ReferenceSelector(session)
            supplier = references.find_supplier(command.supplier_id)
            if supplier is None:
                raise SupplierNotFoundError(str(command.supplier_id))

            user = None
            if command.user_id is not None:
                user = references.find_user(command.user_id)
                if user is None:
                    raise InvalidInputError("user_id", f"unknown user {command.user_id}")

            percentage = snapshot
            if percentage is None:
                percentage = SystemConfigService(
                    session,
                    default_extra_percentage=self._policy.default_extra_percentage,
                    clock=self._clock,
                ).get_extra_percentage()

            ticket_number = TicketSequencer(
                SequenceService(session),
                width=self._policy.ticket_width,
                sequence_name=self._policy.ticket_sequence,
            ).next()

            now = self._clock.now()
            report = Report(
                ticket_number=ticket_number,
                report_date=command.report_date,
                plate_number=command.plate_number,
                driver_name=command.driver_name,
                gross_weight=gross,
                tare_weight=tare if tare is not None else _ZERO,
                net_weight=gross - tare if tare is not None else _ZERO,
                extra_percentage=percentage,
                base_price=_ZERO,
                total_price=_ZERO,
                state=ReportState.PENDING,
                created_at=now,
                updated_at=now,
                items=[],
            )
            report.supplier = supplier
            report.user = user
            ReportRepository(session).save(report)

            logger.info(
                "report_created",
                extra={
                    "report_id": str(report.id),
                    "ticket_number": ticket_number,
                    "supplier_id": str(supplier.id),
                    "gross_weight": gross,
                    "tare_weight": tare,
                    "extra_percentage": percentage,
                },
            )
            return report

        return self._run("create", None, _create, retry_integrity=True)

    def add_item(self, report_id: UUID, command: AddItemCommand) -> Report:
        """Append one commodity line to a PENDING ticket.

        The weight is converted to quintals, reduced by the moisture rate,
        the report's extra percentage and the item discount, checked against
        the capacity bound, and priced at the product's current price.

        Raises:
            ReportNotFoundError, ProductNotFoundError: unknown references.
            AlreadyCancelledError / InvalidStateError: report not PENDING.
            InvalidWeightError, InvalidUnitError, InvalidInputError,
            InvalidEffectiveWeightError: bad line input.
            CapacityExceededError: line would overflow the truck.
        """

        def _add_item(session: Session) -> Report:
            repository = ReportRepository(session)
            report = repository.get(report_id)
            guard_operation(report.id, report.state, ReportOperation.ADD_ITEM)

            weight = self._positive_weight("weight", command.weight)
            unit = parse_unit(command.weight_unit)
            discount = None
            if command.discount_weight is not None:
                discount = self._decimal("discount_weight", command.discount_weight)
                if discount < _ZERO:
                    raise InvalidInputError(
                        "discount_weight", f"must not be negative, got {discount}"
                    )

            product = ReferenceSelector(session).find_product(command.product_id)
            if product is None:
                raise ProductNotFoundError(str(command.product_id))

            raw = self._converter.to_quintals(weight, unit)
            deduction = apply_deductions(
                raw,
                extra_percentage=report.extra_percentage,
                discount_weight=discount,
                moisture_rate=self._policy.moisture_rate,
            )
            capacity = capacity_bound(
                report.gross_weight,
                report.net_weight,
                self._policy.facility_unit,
                self._converter,
            )
            used = report.used_quintals
            try:
                ensure_capacity(used, deduction.effective_quintals, capacity)
            except CapacityExceededError as exc:
                logger.warning(
                    "capacity_exceeded",
                    extra={
                        "used_quintals": exc.used_quintals,
                        "incoming_quintals": exc.incoming_quintals,
                        "capacity_quintals": exc.capacity_quintals,
                        "overflow": exc.overflow,
                    },
                )
                raise

            line = price_line(product.price_per_quintal, deduction.effective_quintals)
            now = self._clock.now()
            item = ReportItem(
                product_id=product.id,
                position=len(report.items),
                weight=weight,
                weight_unit=unit,
                discount_weight=discount,
                weight_in_quintals=deduction.effective_quintals,
                price_per_quintal=product.price_per_quintal,
                base_price=line.base_price,
                created_at=now,
            )
            item.product = product
            report.items.append(item)
            repository.touch(report, now)
            repository.save(report)

            logger.info(
                "report_item_added",
                extra={
                    "product_id": str(product.id),
                    "position": item.position,
                    "weight": weight,
                    "weight_unit": unit,
                    "raw_quintals": deduction.raw_quintals,
                    "moisture_deduction": deduction.moisture_deduction,
                    "extra_deduction": deduction.extra_deduction,
                    "discount_deduction": deduction.discount_deduction,
                    "effective_quintals": deduction.effective_quintals,
                    "base_price": line.base_price,
                },
            )
            return report

        return self._run("add_item", report_id, _add_item)

    def finish(self, report_id: UUID, tare_weight: Decimal | int | str) -> Report:
        """Record the tare, reconcile items against the net weight, price, approve.

        Items are recomputed from their stored weight, unit and discount with
        the report's extra-percentage snapshot and the current moisture
        rate, so the approved figures never depend on intermediate state.

        Raises:
            InvalidTareWeightError: tare is not a positive number.
            TareExceedsGrossError: tare >= gross.
            AlreadyCancelledError / InvalidStateError: report not PENDING.
            CapacityExceededError: items outweigh the net weight.
        """

        def _finish(session: Session) -> Report:
            repository = ReportRepository(session)
            report = repository.get(report_id)
            guard_operation(report.id, report.state, ReportOperation.FINISH)

            tare = self._positive_tare(tare_weight)
            gross = report.gross_weight
            if tare >= gross:
                raise TareExceedsGrossError(tare, gross)
            net = gross - tare

            effective = []
            for item in report.items:
                raw = self._converter.to_quintals(item.weight, item.weight_unit)
                deduction = apply_deductions(
                    raw,
                    extra_percentage=report.extra_percentage,
                    discount_weight=item.discount_weight,
                    moisture_rate=self._policy.moisture_rate,
                )
                effective.append(deduction.effective_quintals)

            total_quintals = sum(effective, _ZERO)
            capacity = self._converter.to_quintals(net, self._policy.facility_unit)
            try:
                ensure_capacity(_ZERO, total_quintals, capacity)
            except CapacityExceededError as exc:
                logger.warning(
                    "capacity_exceeded",
                    extra={
                        "used_quintals": exc.incoming_quintals,
                        "capacity_quintals": exc.capacity_quintals,
                        "overflow": exc.overflow,
                        "operation": ReportOperation.FINISH.value,
                    },
                )
                raise

            for item, quintals in zip(report.items, effective):
                item.weight_in_quintals = quintals
                item.base_price = price_line(item.price_per_quintal, quintals).base_price
            totals = price_report(item.base_price for item in report.items)

            report.tare_weight = tare
            report.net_weight = net
            report.base_price = totals.base_price
            report.total_price = totals.total_price
            report.state = ReportState.APPROVED
            repository.touch(report, self._clock.now())
            repository.save(report)

            logger.info(
                "report_finished",
                extra={
                    "tare_weight": tare,
                    "net_weight": net,
                    "total_quintals": total_quintals,
                    "line_count": totals.line_count,
                    "base_price": totals.base_price,
                    "total_price": totals.total_price,
                },
            )
            return report

        return self._run("finish", report_id, _finish)

    def cancel(self, report_id: UUID) -> Report:
        """Move a PENDING or APPROVED ticket to CANCELLED.

        Only state, updated_at and version change.  A second cancel raises
        AlreadyCancelledError and writes nothing.
        """

        def _cancel(session: Session) -> Report:
            repository = ReportRepository(session)
            report = repository.get(report_id)
            guard_operation(report.id, report.state, ReportOperation.CANCEL)

            previous = report.state
            report.state = ReportState.CANCELLED
            repository.touch(report, self._clock.now())
            repository.save(report)

            logger.info(
                "report_cancelled",
                extra={"previous_state": previous},
            )
            return report

        return self._run("cancel", report_id, _cancel)

    def get(self, report_id: UUID) -> Report:
        """Load the full aggregate or raise ReportNotFoundError."""
        with self._session_factory() as session:
            return ReportRepository(session).get(report_id)

    def delete(self, report_id: UUID) -> None:
        """Remove a PENDING or CANCELLED ticket and its items."""

        def _delete(session: Session) -> None:
            repository = ReportRepository(session)
            report = repository.get(report_id)
            guard_operation(report.id, report.state, ReportOperation.DELETE)
            repository.remove(report)

        self._run("delete", report_id, _delete)

    # ------------------------------------------------------------------
    # Transaction and retry
    # ------------------------------------------------------------------

    def _run(
        self,
        operation: str,
        report_id: UUID | None,
        work: Callable[[Session], T],
        retry_integrity: bool = False,
    ) -> T:
        """Run ``work`` in its own transaction, re-running it on conflicts.

        ``retry_integrity`` also treats IntegrityError as a conflict; only
        ``create`` sets it, for the first-use race on the ticket counter.
        """
        max_attempts = self._policy.max_attempts
        with LogContext.bind(report_id=report_id):
            for attempt in range(1, max_attempts + 1):
                try:
                    with self._session_factory() as session:
                        with session.begin():
                            result = work(session)
                    return result
                except (ConcurrencyError, StaleDataError, IntegrityError) as exc:
                    if isinstance(exc, IntegrityError) and not retry_integrity:
                        raise
                    if attempt >= max_attempts:
                        logger.error(
                            "optimistic_lock_exhausted",
                            extra={"operation": operation, "attempts": attempt},
                        )
                        if isinstance(exc, ConcurrencyError):
                            raise
                        raise OptimisticLockError(
                            "Report", str(report_id) if report_id else operation
                        ) from exc
                    logger.warning(
                        "optimistic_lock_retry",
                        extra={
                            "operation": operation,
                            "attempt": attempt,
                            "error": type(exc).__name__,
                        },
                    )
        raise AssertionError("unreachable")  # pragma: no cover

    # ------------------------------------------------------------------
    # Input checks
    # ------------------------------------------------------------------

    @staticmethod
    def _decimal(field: str, value: Decimal | int | str) -> Decimal:
        try:
            result = to_decimal(value)
        except ValueError:
            raise InvalidInputError(field, f"not a number: {value!r}") from None
        if not result.is_finite():
            raise InvalidInputError(field, f"not a finite number: {value!r}")
        try:
            return round_weight(result)
        except InvalidOperation:
            raise InvalidInputError(field, f"out of range: {value!r}") from None

    @staticmethod
    def _positive_weight(
        field: str,
        value: Decimal | int | str,
        rounding: Callable[[Decimal], Decimal] = round_weight,
    ) -> Decimal:
        """Coerce, quantize to the column's places, then require > 0."""
        try:
            result = to_decimal(value)
        except ValueError:
            raise InvalidWeightError(field, str(value)) from None
        if not result.is_finite():
            raise InvalidWeightError(field, result)
        try:
            result = rounding(result)
        except InvalidOperation:
            raise InvalidWeightError(field, str(value)) from None
        if result <= _ZERO:
            raise InvalidWeightError(field, result)
        return result

    @staticmethod
    def _positive_tare(value: Decimal | int | str) -> Decimal:
        try:
            result = to_decimal(value)
        except ValueError:
            raise InvalidTareWeightError(str(value)) from None
        if not result.is_finite():
            raise InvalidTareWeightError(result)
        try:
            result = round_scale_weight(result)
        except InvalidOperation:
            raise InvalidTareWeightError(str(value)) from None
        if result <= _ZERO:
            raise InvalidTareWeightError(result)
        return result

    def _valid_tare(self, value: Decimal | int | str, gross: Decimal) -> Decimal:
        tare = self._positive_tare(value)
        if tare >= gross:
            raise TareExceedsGrossError(tare, gross)
        return tare
