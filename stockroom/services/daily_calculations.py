"""
Daily calculation snapshots: persist the aggregated plan for a date.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from stockroom.core.dates import DateLike, to_calendar_date
from stockroom.models.daily_calculation import (
    DailyCalculation,
    DailyCalculationEntry,
    IngredientRequirement,
)
from stockroom.services.requirement_aggregator import RequirementAggregator

logger = logging.getLogger(__name__)


def _with_children():
    return (
        selectinload(DailyCalculation.calculations),
        selectinload(DailyCalculation.ingredient_requirements),
    )


class DailyCalculationService:
    """Upserts and reads DailyCalculation snapshots keyed by calendar date."""

    def __init__(self, db: Session):
        self.db = db

    def get_for_date(self, day: DateLike) -> Optional[DailyCalculation]:
        return self.db.execute(
            select(DailyCalculation)
            .options(*_with_children())
            .where(DailyCalculation.date == to_calendar_date(day))
        ).scalar_one_or_none()

    def list_range(self, start: date, end: date) -> list[DailyCalculation]:
        return list(self.db.execute(
            select(DailyCalculation)
            .options(*_with_children())
            .where(DailyCalculation.date >= start, DailyCalculation.date <= end)
            .order_by(DailyCalculation.date.asc())
        ).scalars().all())

    def save(self, day: DateLike, plan: Sequence[tuple[UUID, Decimal]]) -> tuple[DailyCalculation, bool]:
        """
        Aggregate `plan` and store it as the snapshot for `day`.

        The aggregation runs before anything is written, so an invalid plan
        leaves any existing snapshot untouched. Returns (snapshot, created).
        """
        calculation_date = to_calendar_date(day)
        result = RequirementAggregator(self.db).aggregate(plan)

        snapshot = self.get_for_date(calculation_date)
        created = snapshot is None
        if created:
            snapshot = DailyCalculation(date=calculation_date)
            self.db.add(snapshot)
        else:
            snapshot.calculations.clear()
            snapshot.ingredient_requirements.clear()
            self.db.flush()

        for recipe_id, factor in plan:
            recipe = result.recipes[recipe_id]
            snapshot.calculations.append(DailyCalculationEntry(
                recipe_id=recipe.id,
                recipe_name=recipe.name,
                department_name=recipe.department_name,
                quantity=Decimal(factor),
            ))

        for line in result.requirements:
            snapshot.ingredient_requirements.append(IngredientRequirement(
                product_id=line.product_id,
                name=line.name,
                unit=line.unit,
                required_quantity=line.required_quantity,
                total_price=line.total_price,
            ))

        snapshot.total_cost = result.total_cost
        self.db.commit()
        self.db.refresh(snapshot)

        logger.info(
            "%s daily calculation for %s: %d recipes, %d products, total %s",
            "Created" if created else "Replaced",
            calculation_date, len(plan), len(result.requirements), result.total_cost,
        )
        return snapshot, created
