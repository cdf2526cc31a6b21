"""
Smoke test for the demo seed script.
"""
from sqlalchemy.orm import Session

from stockroom.models.daily_calculation import DailyCalculation
from stockroom.models.recipe import Recipe
from stockroom.models.stock import StockMovement
from stockroom.scripts.seed_demo import seed


def test_seed_is_idempotent_for_reference_data(db: Session):
    seed(db)
    seed(db)

    assert db.query(Recipe).count() == 2
    assert db.query(DailyCalculation).count() == 7
    assert db.query(StockMovement).count() > 0
