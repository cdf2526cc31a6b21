"""
Tests for daily calculation snapshots.
"""
import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from stockroom.core.errors import MissingRecipesError
from stockroom.models.daily_calculation import DailyCalculation, IngredientRequirement
from stockroom.services.daily_calculations import DailyCalculationService


class TestSave:

    def test_creates_snapshot(self, db: Session, flour, make_recipe):
        bread = make_recipe("Bread", "Bakery", [(flour, 2)])

        snapshot, created = DailyCalculationService(db).save("2024-01-01T17:45:00", [(bread.id, Decimal(3))])

        assert created is True
        assert snapshot.date == date(2024, 1, 1)
        assert snapshot.total_cost == Decimal(30)
        assert [entry.recipe_name for entry in snapshot.calculations] == ["Bread"]
        assert snapshot.calculations[0].department_name == "Bakery"
        requirement = snapshot.ingredient_requirements[0]
        assert requirement.required_quantity == Decimal(6)
        assert requirement.total_price == Decimal(30)

    def test_same_date_replaces(self, db: Session, flour, sugar, make_recipe):
        bread = make_recipe("Bread", "Bakery", [(flour, 2)])
        cake = make_recipe("Cake", "Bakery", [(sugar, 1)])
        service = DailyCalculationService(db)

        first, _ = service.save(date(2024, 1, 1), [(bread.id, Decimal(1))])
        second, created = service.save("2024-01-01T08:00:00", [(cake.id, Decimal(2))])

        assert created is False
        assert second.id == first.id
        assert db.query(DailyCalculation).count() == 1
        assert [entry.recipe_name for entry in second.calculations] == ["Cake"]
        assert db.query(IngredientRequirement).count() == 1
        assert second.total_cost == Decimal(4)

    def test_missing_recipe_keeps_existing_snapshot(self, db: Session, flour, make_recipe):
        bread = make_recipe("Bread", "Bakery", [(flour, 2)])
        service = DailyCalculationService(db)
        service.save(date(2024, 1, 1), [(bread.id, Decimal(1))])

        with pytest.raises(MissingRecipesError):
            service.save(date(2024, 1, 1), [(uuid.uuid4(), Decimal(1))])

        snapshot = service.get_for_date(date(2024, 1, 1))
        assert snapshot.total_cost == Decimal(10)


class TestRead:

    def test_get_for_missing_date(self, db: Session):
        assert DailyCalculationService(db).get_for_date("2024-01-01") is None

    def test_list_range_ordered(self, db: Session, flour, make_recipe):
        bread = make_recipe("Bread", "Bakery", [(flour, 1)])
        service = DailyCalculationService(db)
        for day in (date(2024, 1, 3), date(2024, 1, 1), date(2024, 1, 5)):
            service.save(day, [(bread.id, Decimal(1))])

        snapshots = service.list_range(date(2024, 1, 1), date(2024, 1, 3))

        assert [s.date for s in snapshots] == [date(2024, 1, 1), date(2024, 1, 3)]
