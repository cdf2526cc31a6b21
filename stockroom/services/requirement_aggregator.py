"""
Requirement Aggregator.

Expands a production plan of {recipe, factor} pairs into the total
ingredient demand it implies:

    required_quantity_j = Σ_i (factor_i × qty_ij)
    total_price_j       = Σ_i (factor_i × qty_ij × price_ij)

Where:
- factor_i = how many times recipe i is made (any positive number)
- qty_ij   = quantity of product j on recipe i's line
- price_ij = unit price snapshotted on that line

Demand is keyed by (product, unit). Lines snapshot the product's unit at
save time, so a product normally yields one entry; it only splits if the
product's unit was changed between recipe saves.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from stockroom.core.errors import MissingRecipesError, ValidationError
from stockroom.models.recipe import Recipe

logger = logging.getLogger(__name__)


@dataclass
class RequirementLine:
    """Aggregated demand for one product."""
    product_id: UUID
    name: str
    unit: str
    required_quantity: Decimal
    total_price: Decimal
    mixed_units: bool = False


@dataclass
class AggregationResult:
    requirements: list[RequirementLine]
    total_cost: Decimal
    recipes: dict[UUID, Recipe] = field(default_factory=dict)


class RequirementAccumulator:
    """
    Ordered per-product accumulator; one instance per request.

    Entries keep the name and unit of the first contribution seen and
    stay in order of first appearance.
    """

    def __init__(self, by_unit: bool = True):
        self.by_unit = by_unit
        self._totals: dict[tuple, RequirementLine] = {}

    def add(self, product_id: UUID, name: str, unit: str, quantity: Decimal, cost: Decimal) -> None:
        key = (product_id, unit) if self.by_unit else (product_id,)
        entry = self._totals.get(key)
        if entry is None:
            self._totals[key] = RequirementLine(
                product_id=product_id,
                name=name,
                unit=unit,
                required_quantity=quantity,
                total_price=cost,
            )
            return
        if entry.unit != unit:
            if not entry.mixed_units:
                logger.warning(
                    "Product %s (%s) has demand in both %s and %s; quantities summed under %s",
                    product_id, name, entry.unit, unit, entry.unit,
                )
            entry.mixed_units = True
        entry.required_quantity += quantity
        entry.total_price += cost

    def lines(self) -> list[RequirementLine]:
        return list(self._totals.values())

    @property
    def total_cost(self) -> Decimal:
        return sum((entry.total_price for entry in self._totals.values()), Decimal(0))


def merge_requirements(rows: Iterable, by_unit: bool = True) -> list[RequirementLine]:
    """
    Sum already-aggregated requirement rows by product.

    `rows` are anything shaped like a requirement (product_id, name, unit,
    required_quantity, total_price), e.g. persisted snapshot rows. With
    `by_unit=False` every product collapses to one entry carrying the
    first unit seen and is flagged `mixed_units` when other units were
    folded into it.
    """
    accumulator = RequirementAccumulator(by_unit=by_unit)
    for row in rows:
        accumulator.add(
            row.product_id,
            row.name,
            row.unit,
            Decimal(row.required_quantity),
            Decimal(row.total_price),
        )
    return accumulator.lines()


class RequirementAggregator:
    """Merges scaled ingredient demand across recipes."""

    def __init__(self, db: Session):
        self.db = db

    def aggregate(self, plan: Sequence[tuple[UUID, Decimal]]) -> AggregationResult:
        """
        Aggregate ingredient requirements for a plan.

        Args:
            plan: List of (recipe_id, factor) tuples, factor > 0

        Raises:
            ValidationError: empty plan or a non-positive factor
            MissingRecipesError: any recipe id does not resolve; nothing is aggregated
        """
        if not plan:
            raise ValidationError("At least one recipe is required")

        bad_factors = [
            {"index": index, "recipeId": str(recipe_id), "error": "factor must be greater than 0"}
            for index, (recipe_id, factor) in enumerate(plan)
            if factor is None or Decimal(factor) <= 0
        ]
        if bad_factors:
            raise ValidationError("Invalid recipe factors", errors=bad_factors)

        recipes = self._load_recipes({recipe_id for recipe_id, _ in plan})
        missing = []
        for recipe_id, _ in plan:
            if recipe_id not in recipes and recipe_id not in missing:
                missing.append(recipe_id)
        if missing:
            raise MissingRecipesError(missing)

        accumulator = RequirementAccumulator()
        for recipe_id, factor in plan:
            factor = Decimal(factor)
            for line in recipes[recipe_id].lines:
                quantity = Decimal(line.quantity)
                price = Decimal(line.price or 0)
                accumulator.add(
                    line.product_id,
                    line.product_name,
                    line.unit,
                    quantity * factor,
                    price * quantity * factor,
                )

        return AggregationResult(
            requirements=accumulator.lines(),
            total_cost=accumulator.total_cost,
            recipes=recipes,
        )

    def _load_recipes(self, recipe_ids: set[UUID]) -> dict[UUID, Recipe]:
        rows = self.db.execute(
            select(Recipe)
            .options(selectinload(Recipe.lines))
            .where(Recipe.id.in_(recipe_ids))
        ).scalars().all()
        return {recipe.id: recipe for recipe in rows}

