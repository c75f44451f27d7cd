"""
Tests for ReportLifecycleService: create, add_item, finish, cancel, get, delete.

Weights are in pounds (the default facility unit) and the seeded product
costs 10.00 per quintal, so 50 lb -> 0.5 qq raw -> 0.475 qq after the 5%
moisture deduction -> 4.75.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from weighing_kernel.domain.lifecycle import ReportState
from weighing_kernel.domain.policy import LifecyclePolicy
from weighing_kernel.domain.units import WeightUnit
from weighing_kernel.exceptions import (
    AlreadyCancelledError,
    CapacityExceededError,
    InvalidEffectiveWeightError,
    InvalidInputError,
    InvalidStateError,
    InvalidTareWeightError,
    InvalidUnitError,
    InvalidWeightError,
    ProductNotFoundError,
    ReportNotFoundError,
    SupplierNotFoundError,
    TareExceedsGrossError,
)
from weighing_kernel.models.reference import Product
from weighing_kernel.models.report import ReportItem
from weighing_kernel.services.config_service import SystemConfigService
from weighing_kernel.services.report_lifecycle import ReportLifecycleService


# =============================================================================
# create
# =============================================================================


class TestCreate:

    def test_new_report_is_pending_with_zero_prices(self, lifecycle, create_command):
        report = lifecycle.create(create_command(), extra_percentage=Decimal("0"))

        assert report.state == ReportState.PENDING
        assert report.ticket_number == "000001"
        assert report.gross_weight == Decimal("200")
        assert report.tare_weight == Decimal("0")
        assert report.net_weight == Decimal("0")
        assert report.base_price == Decimal("0")
        assert report.total_price == Decimal("0")
        assert report.items == []
        assert report.version == 1

    def test_ticket_numbers_strictly_increase(self, lifecycle, create_command):
        tickets = [lifecycle.create(create_command()).ticket_number for _ in range(4)]
        assert tickets == ["000001", "000002", "000003", "000004"]

    def test_ticket_width_follows_policy(self, session_factory, clock, create_command):
        lifecycle = ReportLifecycleService(session_factory, clock, LifecyclePolicy(ticket_width=8))
        assert lifecycle.create(create_command()).ticket_number == "00000001"

    def test_timestamps_come_from_clock(self, lifecycle, create_command, clock):
        report = lifecycle.create(create_command())
        assert report.created_at == clock.now()
        assert report.updated_at == clock.now()

    def test_tare_at_creation_sets_net(self, lifecycle, create_command):
        report = lifecycle.create(create_command(tare_weight=Decimal("40")))
        assert report.tare_weight == Decimal("40")
        assert report.net_weight == Decimal("160")
        assert report.state == ReportState.PENDING
        assert report.base_price == Decimal("0")

    def test_issuing_user_recorded(self, lifecycle, create_command, user):
        report = lifecycle.create(create_command(user_id=user.id))
        assert report.user_id == user.id
        assert report.user.display_name == "Ana Martinez"

    def test_unknown_user_rejected(self, lifecycle, create_command):
        with pytest.raises(InvalidInputError) as exc_info:
            lifecycle.create(create_command(user_id=uuid4()))
        assert exc_info.value.field == "user_id"

    @pytest.mark.parametrize("gross", [Decimal("0"), Decimal("-5"), "abc"])
    def test_gross_must_be_positive(self, lifecycle, create_command, gross):
        with pytest.raises(InvalidWeightError):
            lifecycle.create(create_command(gross_weight=gross))

    def test_tare_must_be_positive(self, lifecycle, create_command):
        with pytest.raises(InvalidTareWeightError):
            lifecycle.create(create_command(tare_weight=Decimal("0")))

    @pytest.mark.parametrize("tare", [Decimal("200"), Decimal("250")])
    def test_tare_must_be_below_gross(self, lifecycle, create_command, tare):
        with pytest.raises(TareExceedsGrossError):
            lifecycle.create(create_command(tare_weight=tare))

    def test_returned_figures_match_stored_precision(self, lifecycle, create_command):
        report = lifecycle.create(
            create_command(gross_weight=Decimal("200.555"), tare_weight=Decimal("40.125")),
            extra_percentage=Decimal("2.555"),
        )
        assert report.gross_weight == Decimal("200.56")
        assert report.tare_weight == Decimal("40.13")
        assert report.net_weight == Decimal("160.43")
        assert report.extra_percentage == Decimal("2.56")

        stored = lifecycle.get(report.id)
        assert stored.gross_weight == report.gross_weight
        assert stored.tare_weight == report.tare_weight
        assert stored.net_weight == report.net_weight
        assert stored.extra_percentage == report.extra_percentage

    def test_gross_rounding_to_zero_rejected(self, lifecycle, create_command):
        with pytest.raises(InvalidWeightError):
            lifecycle.create(create_command(gross_weight=Decimal("0.004")))

    def test_unknown_supplier(self, lifecycle, create_command):
        with pytest.raises(SupplierNotFoundError):
            lifecycle.create(create_command(supplier_id=uuid4()))

    def test_failed_create_does_not_consume_ticket(self, lifecycle, create_command):
        with pytest.raises(SupplierNotFoundError):
            lifecycle.create(create_command(supplier_id=uuid4()))
        assert lifecycle.create(create_command()).ticket_number == "000001"

    def test_explicit_extra_percentage_snapshot(self, lifecycle, create_command):
        report = lifecycle.create(create_command(), extra_percentage=Decimal("2.5"))
        assert report.extra_percentage == Decimal("2.5")

    def test_invalid_extra_percentage(self, lifecycle, create_command):
        with pytest.raises(InvalidInputError):
            lifecycle.create(create_command(), extra_percentage=Decimal("150"))

    def test_extra_percentage_read_from_system_config(
        self, session_factory, clock, create_command,
    ):
        lifecycle = ReportLifecycleService(
            session_factory, clock, LifecyclePolicy(default_extra_percentage=Decimal("3")),
        )
        report = lifecycle.create(create_command())
        assert report.extra_percentage == Decimal("3")

    def test_report_created_logged(self, lifecycle, create_command, captured_logs):
        report = lifecycle.create(create_command())
        created = [r for r in captured_logs() if r["message"] == "report_created"]
        assert len(created) == 1
        assert created[0]["ticket_number"] == report.ticket_number
        assert created[0]["gross_weight"] == "200"


# =============================================================================
# add_item
# =============================================================================


class TestAddItem:

    def test_scenario_a_fifty_pounds(self, lifecycle, pending_report, item_command):
        report = lifecycle.add_item(pending_report.id, item_command())

        assert len(report.items) == 1
        item = report.items[0]
        assert item.weight == Decimal("50")
        assert item.weight_unit == WeightUnit.POUNDS
        assert item.weight_in_quintals == Decimal("0.4750")
        assert item.price_per_quintal == Decimal("10.00")
        assert item.base_price == Decimal("4.75")
        assert item.position == 0
        # Report totals stay at zero until finish
        assert report.state == ReportState.PENDING
        assert report.base_price == Decimal("0")
        assert report.total_price == Decimal("0")

    def test_kilograms_converted(self, lifecycle, pending_report, item_command):
        report = lifecycle.add_item(
            pending_report.id,
            item_command(weight=Decimal("45.359237"), weight_unit=WeightUnit.KILOGRAMS),
        )
        assert report.items[0].weight_in_quintals == Decimal("0.9500")
        assert report.items[0].base_price == Decimal("9.50")

    def test_extra_percentage_and_discount_applied(self, lifecycle, create_command, item_command):
        report = lifecycle.create(create_command(), extra_percentage=Decimal("10"))
        report = lifecycle.add_item(
            report.id, item_command(discount_weight=Decimal("0.1")),
        )
        assert report.items[0].weight_in_quintals == Decimal("0.3275")
        assert report.items[0].discount_weight == Decimal("0.1")

    def test_positions_follow_insertion_order(self, lifecycle, pending_report, item_command):
        lifecycle.add_item(pending_report.id, item_command(weight=Decimal("10")))
        lifecycle.add_item(pending_report.id, item_command(weight=Decimal("20")))
        report = lifecycle.get(pending_report.id)
        assert [item.position for item in report.items] == [0, 1]
        assert [item.weight for item in report.items] == [Decimal("10"), Decimal("20")]

    def test_each_write_bumps_version(self, lifecycle, pending_report, item_command):
        report = lifecycle.add_item(pending_report.id, item_command())
        assert report.version == pending_report.version + 1

    def test_capacity_holds_across_sequence(self, lifecycle, pending_report, item_command):
        lifecycle.add_item(pending_report.id, item_command(weight=Decimal("150")))  # 1.4250
        lifecycle.add_item(pending_report.id, item_command(weight=Decimal("60")))   # 0.5700

        with pytest.raises(CapacityExceededError) as exc_info:
            lifecycle.add_item(pending_report.id, item_command(weight=Decimal("1")))  # 0.0095
        assert exc_info.value.capacity_quintals == Decimal("2.0000")

        report = lifecycle.get(pending_report.id)
        assert len(report.items) == 2
        assert report.used_quintals == Decimal("1.9950")
        assert report.used_quintals <= Decimal("2.0000")

    def test_capacity_uses_net_when_tare_given_at_creation(
        self, lifecycle, create_command, item_command,
    ):
        report = lifecycle.create(create_command(tare_weight=Decimal("40")))
        with pytest.raises(CapacityExceededError):
            lifecycle.add_item(report.id, item_command(weight=Decimal("170")))  # 1.615 > 1.6
        lifecycle.add_item(report.id, item_command(weight=Decimal("168")))      # 1.596

    def test_capacity_exceeded_logged(self, lifecycle, pending_report, item_command, captured_logs):
        with pytest.raises(CapacityExceededError):
            lifecycle.add_item(pending_report.id, item_command(weight=Decimal("300")))
        records = [r for r in captured_logs() if r["message"] == "capacity_exceeded"]
        assert records and records[0]["level"] == "WARNING"
        assert records[0]["report_id"] == str(pending_report.id)

    def test_deductions_consuming_weight_rejected(self, lifecycle, pending_report, item_command):
        with pytest.raises(InvalidEffectiveWeightError):
            lifecycle.add_item(pending_report.id, item_command(discount_weight=Decimal("1")))
        assert lifecycle.get(pending_report.id).items == []

    def test_zero_weight_rejected(self, lifecycle, pending_report, item_command):
        with pytest.raises(InvalidWeightError):
            lifecycle.add_item(pending_report.id, item_command(weight=Decimal("0")))

    def test_negative_discount_rejected(self, lifecycle, pending_report, item_command):
        with pytest.raises(InvalidInputError):
            lifecycle.add_item(pending_report.id, item_command(discount_weight=Decimal("-1")))

    def test_unknown_unit_rejected(self, lifecycle, pending_report, item_command):
        with pytest.raises(InvalidUnitError):
            lifecycle.add_item(pending_report.id, item_command(weight_unit="stone"))

    def test_item_weight_returned_at_stored_precision(
        self, lifecycle, pending_report, item_command,
    ):
        report = lifecycle.add_item(
            pending_report.id,
            item_command(weight=Decimal("50.00005"), discount_weight=Decimal("0.00005")),
        )
        assert report.items[0].weight == Decimal("50.0001")
        assert report.items[0].discount_weight == Decimal("0.0001")

        stored = lifecycle.get(pending_report.id).items[0]
        assert stored.weight == report.items[0].weight
        assert stored.discount_weight == report.items[0].discount_weight

    def test_cancelled_report_wins_over_bad_weight(self, lifecycle, pending_report, item_command):
        lifecycle.cancel(pending_report.id)
        with pytest.raises(AlreadyCancelledError):
            lifecycle.add_item(pending_report.id, item_command(weight=Decimal("0")))

    def test_unknown_report_wins_over_bad_unit(self, lifecycle, item_command):
        with pytest.raises(ReportNotFoundError):
            lifecycle.add_item(uuid4(), item_command(weight_unit="stone"))

    def test_unknown_product(self, lifecycle, pending_report, item_command):
        with pytest.raises(ProductNotFoundError):
            lifecycle.add_item(pending_report.id, item_command(product_id=uuid4()))

    def test_inactive_product_is_not_found(
        self, lifecycle, pending_report, item_command, inactive_product,
    ):
        with pytest.raises(ProductNotFoundError):
            lifecycle.add_item(pending_report.id, item_command(product_id=inactive_product.id))

    def test_unknown_report(self, lifecycle, item_command, product):
        with pytest.raises(ReportNotFoundError):
            lifecycle.add_item(uuid4(), item_command())

    def test_scenario_d_add_to_approved_report(self, lifecycle, pending_report, item_command):
        lifecycle.add_item(pending_report.id, item_command())
        lifecycle.finish(pending_report.id, Decimal("40"))

        with pytest.raises(InvalidStateError) as exc_info:
            lifecycle.add_item(pending_report.id, item_command())
        assert exc_info.value.state == "APPROVED"

    def test_add_to_cancelled_report(self, lifecycle, pending_report, item_command):
        lifecycle.cancel(pending_report.id)
        with pytest.raises(AlreadyCancelledError):
            lifecycle.add_item(pending_report.id, item_command())


# =============================================================================
# finish
# =============================================================================


class TestFinish:

    def test_scenario_a_finish(self, lifecycle, pending_report, item_command, clock):
        lifecycle.add_item(pending_report.id, item_command())
        clock.advance(60)

        report = lifecycle.finish(pending_report.id, Decimal("40"))

        assert report.state == ReportState.APPROVED
        assert report.tare_weight == Decimal("40")
        assert report.net_weight == Decimal("160")
        assert report.items[0].weight_in_quintals == Decimal("0.4750")
        assert report.items[0].base_price == Decimal("4.75")
        assert report.base_price == Decimal("4.75")
        assert report.total_price == Decimal("4.75")
        assert report.updated_at == clock.now()

    def test_totals_sum_lines(self, lifecycle, pending_report, item_command):
        lifecycle.add_item(pending_report.id, item_command(weight=Decimal("50")))   # 4.75
        lifecycle.add_item(pending_report.id, item_command(weight=Decimal("33")))   # 0.3135 -> 3.14
        report = lifecycle.finish(pending_report.id, Decimal("20"))
        assert [item.base_price for item in report.items] == [Decimal("4.75"), Decimal("3.14")]
        assert report.base_price == Decimal("7.89")

    def test_scenario_b_items_exceed_net(self, lifecycle, pending_report, item_command):
        lifecycle.add_item(pending_report.id, item_command(weight=Decimal("190")))  # 1.805

        with pytest.raises(CapacityExceededError) as exc_info:
            lifecycle.finish(pending_report.id, Decimal("40"))
        assert exc_info.value.capacity_quintals == Decimal("1.6000")

        report = lifecycle.get(pending_report.id)
        assert report.state == ReportState.PENDING
        assert report.tare_weight == Decimal("0")
        assert report.net_weight == Decimal("0")

    def test_price_snapshot_survives_product_price_change(
        self, lifecycle, pending_report, item_command, product, session_factory,
    ):
        lifecycle.add_item(pending_report.id, item_command())
        with session_factory() as session, session.begin():
            session.get(Product, product.id).price_per_quintal = Decimal("20.00")

        report = lifecycle.finish(pending_report.id, Decimal("40"))
        assert report.items[0].price_per_quintal == Decimal("10.00")
        assert report.base_price == Decimal("4.75")

    def test_finish_without_items(self, lifecycle, pending_report):
        report = lifecycle.finish(pending_report.id, Decimal("40"))
        assert report.state == ReportState.APPROVED
        assert report.base_price == Decimal("0")

    @pytest.mark.parametrize("tare", [Decimal("0"), Decimal("-1"), "x"])
    def test_tare_must_be_positive(self, lifecycle, pending_report, tare):
        with pytest.raises(InvalidTareWeightError):
            lifecycle.finish(pending_report.id, tare)

    @pytest.mark.parametrize("tare", [Decimal("200"), Decimal("201")])
    def test_tare_must_be_below_gross(self, lifecycle, pending_report, tare):
        with pytest.raises(TareExceedsGrossError):
            lifecycle.finish(pending_report.id, tare)

    def test_tare_returned_at_stored_precision(self, lifecycle, pending_report):
        report = lifecycle.finish(pending_report.id, Decimal("40.005"))
        assert report.tare_weight == Decimal("40.01")
        assert report.net_weight == Decimal("159.99")

        stored = lifecycle.get(pending_report.id)
        assert stored.tare_weight == report.tare_weight
        assert stored.net_weight == report.net_weight

    def test_cancelled_report_wins_over_bad_tare(self, lifecycle, pending_report):
        lifecycle.cancel(pending_report.id)
        with pytest.raises(AlreadyCancelledError):
            lifecycle.finish(pending_report.id, Decimal("0"))

    def test_unknown_report_wins_over_bad_tare(self, lifecycle):
        with pytest.raises(ReportNotFoundError):
            lifecycle.finish(uuid4(), "x")

    def test_finish_twice(self, lifecycle, pending_report):
        lifecycle.finish(pending_report.id, Decimal("40"))
        with pytest.raises(InvalidStateError):
            lifecycle.finish(pending_report.id, Decimal("40"))

    def test_finish_cancelled(self, lifecycle, pending_report):
        lifecycle.cancel(pending_report.id)
        with pytest.raises(AlreadyCancelledError):
            lifecycle.finish(pending_report.id, Decimal("40"))

    def test_report_finished_logged(self, lifecycle, pending_report, item_command, captured_logs):
        lifecycle.add_item(pending_report.id, item_command())
        lifecycle.finish(pending_report.id, Decimal("40"))
        finished = [r for r in captured_logs() if r["message"] == "report_finished"]
        assert len(finished) == 1
        assert finished[0]["total_price"] == "4.75"
        assert finished[0]["report_id"] == str(pending_report.id)


# =============================================================================
# cancel
# =============================================================================


class TestCancel:

    def test_scenario_c_cancel_empty_pending(self, lifecycle, pending_report):
        report = lifecycle.cancel(pending_report.id)
        assert report.state == ReportState.CANCELLED
        assert report.base_price == Decimal("0")
        assert report.total_price == Decimal("0")
        assert report.items == []

    def test_cancel_is_idempotent_in_effect(self, lifecycle, pending_report, clock):
        first = lifecycle.cancel(pending_report.id)
        clock.advance(30)

        with pytest.raises(AlreadyCancelledError):
            lifecycle.cancel(pending_report.id)

        again = lifecycle.get(pending_report.id)
        assert again.state == ReportState.CANCELLED
        assert again.version == first.version
        assert again.updated_at.replace(tzinfo=None) == first.updated_at.replace(tzinfo=None)

    def test_cancel_approved_keeps_figures(self, lifecycle, pending_report, item_command):
        lifecycle.add_item(pending_report.id, item_command())
        approved = lifecycle.finish(pending_report.id, Decimal("40"))

        report = lifecycle.cancel(pending_report.id)
        assert report.state == ReportState.CANCELLED
        assert report.base_price == approved.base_price
        assert report.net_weight == approved.net_weight
        assert report.version == approved.version + 1


# =============================================================================
# get / delete
# =============================================================================


class TestGetAndDelete:

    def test_get_returns_full_aggregate(self, lifecycle, pending_report, item_command):
        lifecycle.add_item(pending_report.id, item_command())
        report = lifecycle.get(pending_report.id)
        assert report.supplier.name == "Cooperativa El Progreso"
        assert report.items[0].product.name == "Maiz blanco"
        assert report.report_date == date(2024, 1, 1)

    def test_get_unknown(self, lifecycle, engine):
        with pytest.raises(ReportNotFoundError):
            lifecycle.get(uuid4())

    def test_delete_pending_removes_items(
        self, lifecycle, pending_report, item_command, session_factory,
    ):
        lifecycle.add_item(pending_report.id, item_command())
        lifecycle.delete(pending_report.id)

        with pytest.raises(ReportNotFoundError):
            lifecycle.get(pending_report.id)
        with session_factory() as session:
            remaining = session.execute(
                select(func.count()).select_from(ReportItem)
            ).scalar_one()
        assert remaining == 0

    def test_delete_cancelled(self, lifecycle, pending_report):
        lifecycle.cancel(pending_report.id)
        lifecycle.delete(pending_report.id)
        with pytest.raises(ReportNotFoundError):
            lifecycle.get(pending_report.id)

    def test_delete_approved_rejected(self, lifecycle, pending_report):
        lifecycle.finish(pending_report.id, Decimal("40"))
        with pytest.raises(InvalidStateError):
            lifecycle.delete(pending_report.id)

    def test_extra_percentage_snapshot_outlives_config_change(
        self, lifecycle, create_command, item_command, session_factory, clock,
    ):
        report = lifecycle.create(create_command(), extra_percentage=Decimal("10"))
        with session_factory() as session, session.begin():
            SystemConfigService(session, clock=clock).update_extra_percentage(Decimal("20"))

        report = lifecycle.add_item(report.id, item_command())
        assert report.items[0].weight_in_quintals == Decimal("0.4275")
