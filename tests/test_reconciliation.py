"""
Tests for the reconciliation reports.
"""
import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy.orm import Session

from stockroom.core.errors import NotFoundError, ValidationError
from stockroom.models.stock import MovementType, DestinationCategory, StockMovement
from stockroom.services.daily_calculations import DailyCalculationService
from stockroom.services.reconciliation import (
    ReconciliationService,
    UsageBuckets,
    classify_usage,
    percentage_difference,
    signed_quantity,
    transfer_destination,
)
from stockroom.services.stock_ledger import StockLedgerService

DAY = date(2024, 1, 10)
NOON = datetime(2024, 1, 10, 12, 0)


def _movement(movement_type, quantity, reference="", destination_category=None):
    return SimpleNamespace(
        movement_type=movement_type,
        quantity=Decimal(str(quantity)),
        reference=reference,
        destination_category=destination_category,
    )


@pytest.fixture
def planned_flour(db: Session, flour, make_recipe):
    """100 kg of flour required on DAY by a Kitchen recipe."""
    recipe = make_recipe("Dough", "Kitchen", [(flour, 100)])
    DailyCalculationService(db).save(DAY, [(recipe.id, Decimal(1))])
    return recipe


class TestClassification:

    def test_percentage_with_nothing_required(self):
        assert percentage_difference(Decimal(5), Decimal(0)) == Decimal(0)

    @pytest.mark.parametrize("pct,diff,expected", [
        (Decimal(-5), Decimal(-5), "match"),
        (Decimal("14.99"), Decimal(1), "match"),
        (Decimal(15), Decimal(15), "overuse"),
        (Decimal(-50), Decimal(-50), "underuse"),
    ])
    def test_tolerance_band(self, pct, diff, expected):
        assert classify_usage(pct, diff, Decimal(15)) == expected

    def test_explicit_category_wins(self):
        movement = _movement(MovementType.TRANSFER_OUT, 1, "moved to trash", DestinationCategory.USED)

        assert transfer_destination(movement) == DestinationCategory.USED

    @pytest.mark.parametrize("reference,expected", [
        ("Transfer to TRASH from Kitchen", DestinationCategory.TRASH),
        ("Transfer to used from Kitchen", DestinationCategory.USED),
        ("Transfer from Kitchen to Bakery", DestinationCategory.OTHER),
    ])
    def test_reference_fallback(self, reference, expected):
        assert transfer_destination(_movement(MovementType.TRANSFER_OUT, 1, reference)) == expected

    def test_legacy_adjustment_sign(self):
        buckets = UsageBuckets()
        buckets.add(_movement(MovementType.ADJUSTMENT, -3))
        buckets.add(_movement(MovementType.ADJUSTMENT, 2))

        assert buckets.adjustment_out == Decimal(3)
        assert buckets.adjustment_in == Decimal(2)
        assert signed_quantity(_movement(MovementType.ADJUSTMENT, -3)) == Decimal(-3)
        assert signed_quantity(_movement(MovementType.EXIT, 3)) == Decimal(-3)

    def test_other_transfers_not_counted_as_usage(self):
        buckets = UsageBuckets()
        buckets.add(_movement(MovementType.EXIT, 10))
        buckets.add(_movement(MovementType.TRANSFER_OUT, 4, "Transfer from Kitchen to Bakery"))
        buckets.add(_movement(MovementType.TRANSFER_OUT, 1, "", DestinationCategory.TRASH))
        buckets.add(_movement(MovementType.ADJUSTMENT_OUT, 2))

        assert buckets.transfer_out_other == Decimal(4)
        assert buckets.total_actual_out == Decimal(13)


class TestIngredientComparison:

    def test_within_tolerance(self, db: Session, planned_flour, flour, kitchen, make_movement):
        make_movement(flour, kitchen, 90, MovementType.EXIT, created_at=NOON)
        make_movement(
            flour, kitchen, 5, MovementType.TRANSFER_OUT,
            reference="Transfer to trash from Kitchen", created_at=NOON,
        )

        report = ReconciliationService(db).compare_ingredient_usage(DAY, DAY)

        row, = report.rows
        assert row.required_quantity == Decimal(100)
        assert row.buckets.total_actual_out == Decimal(95)
        assert row.difference == Decimal(-5)
        assert row.percentage_difference == Decimal(-5)
        assert row.status == "match"
        assert report.summary()["match"] == 1

    def test_underuse(self, db: Session, planned_flour, flour, kitchen, make_movement):
        make_movement(flour, kitchen, 50, MovementType.EXIT, created_at=NOON)

        row, = ReconciliationService(db).compare_ingredient_usage(DAY, DAY).rows

        assert row.percentage_difference == Decimal(-50)
        assert row.status == "underuse"

    def test_overuse(self, db: Session, planned_flour, flour, kitchen, make_movement):
        make_movement(flour, kitchen, 130, MovementType.EXIT, created_at=NOON)

        row, = ReconciliationService(db).compare_ingredient_usage(DAY, DAY).rows

        assert row.status == "overuse"

    def test_movements_outside_window_ignored(self, db: Session, planned_flour, flour, kitchen, make_movement):
        make_movement(flour, kitchen, 100, MovementType.EXIT, created_at=datetime(2024, 1, 11, 0, 0, 1))
        make_movement(flour, kitchen, 100, MovementType.EXIT, created_at=datetime(2024, 1, 9, 23, 59))

        row, = ReconciliationService(db).compare_ingredient_usage(DAY, DAY).rows

        assert row.buckets.total_actual_out == Decimal(0)

    def test_department_scope(self, db: Session, flour, kitchen, bakery, make_recipe, make_movement):
        dough = make_recipe("Dough", "Kitchen", [(flour, 100)])
        bread = make_recipe("Bread", "Bakery", [(flour, 10)])
        DailyCalculationService(db).save(DAY, [(dough.id, Decimal(1))])
        DailyCalculationService(db).save(date(2024, 1, 11), [(bread.id, Decimal(1))])
        make_movement(flour, kitchen, 100, MovementType.EXIT, created_at=NOON)
        make_movement(flour, bakery, 10, MovementType.EXIT, created_at=NOON)

        report = ReconciliationService(db).compare_ingredient_usage(DAY, date(2024, 1, 11), bakery.id)

        row, = report.rows
        assert row.required_quantity == Decimal(10)
        assert row.buckets.total_out == Decimal(10)
        assert [usage.department_name for usage in row.by_department] == ["Bakery"]

    def test_ledger_transfers_counted_by_category(
        self, db: Session, admin_user, flour, kitchen, bakery, make_recipe, make_department, set_stock,
    ):
        """Sink transfers recorded by the ledger land in the trash/used buckets."""
        make_department("Used")
        recipe = make_recipe("Dough", "Kitchen", [(flour, 100)])
        today = date.today()
        DailyCalculationService(db).save(today, [(recipe.id, Decimal(1))])
        set_stock(flour, kitchen, 100)

        ledger = StockLedgerService(db, admin_user)
        # reference carries no sink keyword, so only the stored category classifies it
        ledger.transfer("Flour", "Kitchen", "Used", Decimal(40), reference="Lunch service")
        ledger.transfer_to_used("Flour", "Kitchen", Decimal(50))
        ledger.transfer_to_trash("Flour", "Kitchen", Decimal(5), reason="spoiled")
        ledger.transfer("Flour", "Kitchen", "Bakery", Decimal(5))

        categories = sorted(
            movement.destination_category.value
            for movement in db.query(StockMovement).filter(StockMovement.movement_type == MovementType.TRANSFER_OUT)
        )
        assert categories == ["other", "trash", "used", "used"]

        report = ReconciliationService(db).compare_ingredient_usage(
            today - timedelta(days=1), today + timedelta(days=1), kitchen.id,
        )

        row, = report.rows
        assert row.buckets.transfer_to_used == Decimal(90)
        assert row.buckets.transfer_to_trash == Decimal(5)
        assert row.buckets.transfer_out_other == Decimal(5)
        assert row.buckets.total_actual_out == Decimal(95)
        assert row.status == "match"

    def test_mixed_units_flagged(self, db: Session, flour, make_recipe):
        dough = make_recipe("Dough", "Kitchen", [(flour, 2)])
        flour.unit = "g"
        db.commit()
        sauce = make_recipe("Roux", "Kitchen", [(flour, 500)])
        DailyCalculationService(db).save(DAY, [(dough.id, Decimal(1)), (sauce.id, Decimal(1))])

        row, = ReconciliationService(db).compare_ingredient_usage(DAY, DAY).rows

        assert row.mixed_units is True
        assert row.as_dict()["mixed_units"] is True

    def test_no_requirements(self, db: Session):
        report = ReconciliationService(db).compare_ingredient_usage(DAY, DAY)

        assert report.rows == []
        assert report.as_dict()["message"] == "No ingredient requirements found for this period"

    def test_unknown_department(self, db: Session):
        with pytest.raises(NotFoundError):
            ReconciliationService(db).compare_ingredient_usage(DAY, DAY, uuid.uuid4())

    def test_dates_required(self, db: Session):
        with pytest.raises(ValidationError):
            ReconciliationService(db).compare_ingredient_usage(DAY, None)


class TestStockConsumption:

    def test_opening_and_closing_levels(self, db: Session, flour, kitchen, make_recipe, set_stock, make_movement):
        recipe = make_recipe("Dough", "Kitchen", [(flour, 20)])
        DailyCalculationService(db).save(DAY, [(recipe.id, Decimal(1))])
        set_stock(flour, kitchen, 40)
        make_movement(flour, kitchen, 50, MovementType.ENTRY, created_at=datetime(2024, 1, 10, 8, 0))
        make_movement(flour, kitchen, 20, MovementType.EXIT, created_at=NOON)
        make_movement(
            flour, kitchen, 5, MovementType.TRANSFER_OUT,
            destination_category=DestinationCategory.TRASH, created_at=NOON,
        )
        make_movement(flour, kitchen, 10, MovementType.ENTRY, created_at=datetime(2024, 1, 11, 9, 0))

        report = ReconciliationService(db).stock_consumption(DAY, DAY)

        row, = report.rows
        assert row.closing_stock == Decimal(30)
        assert row.opening_stock == Decimal(5)
        assert row.entries == Decimal(50)
        assert row.transfers_to_trash == Decimal(5)
        assert row.required_cost == Decimal(100)
        assert row.consumption == Decimal(20)
        assert row.status == "match"
        assert report.summary()["required_cost"] == Decimal(100)


class TestDepartmentTransfers:

    def test_grouped_by_department(self, db: Session, flour, kitchen, bakery, make_movement):
        make_movement(flour, kitchen, 5, MovementType.TRANSFER_OUT, "Transfer from Kitchen to Bakery", NOON)
        make_movement(flour, bakery, 5, MovementType.TRANSFER_IN, "Transfer from Kitchen to Bakery", NOON)

        result = ReconciliationService(db).department_transfers(DAY, DAY)

        assert [d["department_name"] for d in result["departments"]] == ["Bakery", "Kitchen"]
        bakery_row, kitchen_row = (d["products"][0] for d in result["departments"])
        assert bakery_row["transfer_in"] == Decimal(5)
        assert kitchen_row["transfer_out_other"] == Decimal(5)
        assert kitchen_row["product_name"] == "Flour"

    def test_start_date_required(self, db: Session):
        with pytest.raises(ValidationError, match="startDate is required"):
            ReconciliationService(db).department_transfers(None, None)
