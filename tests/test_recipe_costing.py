"""
Tests for the recipe cost calculator.
"""
import uuid
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from stockroom.core.errors import ValidationError
from stockroom.services.recipe_costing import (
    RecipeCostCalculator,
    LineInput,
    CostedLine,
    recipe_total,
)


class TestRecipeTotal:

    def test_sums_price_times_quantity(self):
        lines = [
            CostedLine(uuid.uuid4(), Decimal("2"), "Flour", "kg", Decimal("5")),
            CostedLine(uuid.uuid4(), Decimal("0.5"), "Sugar", "kg", Decimal("2")),
        ]

        assert recipe_total(lines) == Decimal("11")

    def test_empty(self):
        assert recipe_total([]) == Decimal(0)


class TestCostRecipe:

    def test_lines_snapshot_catalog(self, db: Session, flour):
        costed = RecipeCostCalculator(db).cost_recipe(
            "Bread", "Bakery", [LineInput(product_id=flour.id, quantity=2)]
        )

        assert costed.total_cost == Decimal("10")
        line = costed.lines[0]
        assert line.product_name == "Flour"
        assert line.unit == "kg"
        assert line.price == Decimal("5")
        assert line.line_cost == Decimal("10")

    def test_names_are_trimmed(self, db: Session, flour):
        costed = RecipeCostCalculator(db).cost_recipe(
            "  Bread ", " Bakery", [LineInput(product_id=flour.id, quantity="1.5")]
        )

        assert costed.name == "Bread"
        assert costed.department_name == "Bakery"
        assert costed.lines[0].quantity == Decimal("1.5")

    def test_every_bad_line_is_reported(self, db: Session, flour):
        lines = [
            LineInput(product_id=flour.id, quantity=1),
            LineInput(product_id=None, quantity=1),
            LineInput(product_id=flour.id, quantity="abc"),
            LineInput(product_id=flour.id, quantity=0),
            LineInput(product_id=uuid.uuid4(), quantity=1),
        ]

        with pytest.raises(ValidationError) as exc_info:
            RecipeCostCalculator(db).cost_recipe("Bread", "Bakery", lines)

        errors = {e["line"]: e["error"] for e in exc_info.value.errors}
        assert errors == {
            2: "productId is required",
            3: "quantity must be a number",
            4: "quantity must be greater than 0",
            5: "product not found",
        }

    @pytest.mark.parametrize("name,department,lines", [
        ("", "Bakery", [LineInput(None, 1)]),
        ("Bread", "  ", [LineInput(None, 1)]),
        ("Bread", "Bakery", []),
    ])
    def test_header_validation(self, db: Session, name, department, lines):
        with pytest.raises(ValidationError):
            RecipeCostCalculator(db).cost_recipe(name, department, lines)
