"""
Recipe Cost Calculator.

Enriches a recipe's product lines with the current catalog name, unit and
price, and computes the recipe total:

    total_cost = Σ (line.price × line.quantity)

The enriched lines are a snapshot. Persisting them (rather than a live
product reference) keeps past recipes stable when catalog prices change.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from stockroom.core.errors import ValidationError
from stockroom.models.catalog import Product


@dataclass
class LineInput:
    """A raw recipe line as submitted: {productId, quantity}."""
    product_id: Optional[UUID]
    quantity: Any


@dataclass
class CostedLine:
    """A recipe line stamped with the product snapshot and its cost."""
    product_id: UUID
    quantity: Decimal
    product_name: str
    unit: str
    price: Decimal

    @property
    def line_cost(self) -> Decimal:
        return self.price * self.quantity


@dataclass
class CostedRecipe:
    name: str
    department_name: str
    lines: list[CostedLine]
    total_cost: Decimal


def recipe_total(lines: Iterable[Any]) -> Decimal:
    """Σ price × quantity over anything with `price` and `quantity` attributes."""
    return sum(
        ((line.price or Decimal(0)) * line.quantity for line in lines),
        Decimal(0),
    )


def _as_quantity(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        quantity = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not quantity.is_finite():
        return None
    return quantity


class RecipeCostCalculator:
    """
    Validates and costs recipe lines against the live catalog.

    All lines are checked before anything is returned; one bad line fails
    the whole recipe with a ValidationError listing every offending line.
    """

    def __init__(self, db: Session):
        self.db = db

    def cost_recipe(
        self,
        name: str,
        department_name: str,
        lines: Sequence[LineInput],
    ) -> CostedRecipe:
        if not name or not name.strip():
            raise ValidationError("Recipe name is required")
        if not department_name or not department_name.strip():
            raise ValidationError("Recipe department is required")
        if not lines:
            raise ValidationError("A recipe needs at least one product line")

        requested_ids = {line.product_id for line in lines if line.product_id is not None}
        products = {}
        if requested_ids:
            products = {
                product.id: product
                for product in self.db.execute(
                    select(Product).where(Product.id.in_(requested_ids))
                ).scalars()
            }

        errors = []
        costed = []
        for position, line in enumerate(lines, start=1):
            if line.product_id is None:
                errors.append({"line": position, "error": "productId is required"})
                continue

            quantity = _as_quantity(line.quantity)
            if quantity is None:
                errors.append({"line": position, "productId": str(line.product_id), "error": "quantity must be a number"})
                continue
            if quantity <= 0:
                errors.append({"line": position, "productId": str(line.product_id), "error": "quantity must be greater than 0"})
                continue

            product = products.get(line.product_id)
            if product is None:
                errors.append({"line": position, "productId": str(line.product_id), "error": "product not found"})
                continue

            costed.append(CostedLine(
                product_id=product.id,
                quantity=quantity,
                product_name=product.product_name,
                unit=product.unit,
                price=Decimal(product.price or 0),
            ))

        if errors:
            raise ValidationError(
                f"Invalid recipe lines: {', '.join(str(e['line']) for e in errors)}",
                errors=errors,
            )

        return CostedRecipe(
            name=name.strip(),
            department_name=department_name.strip(),
            lines=costed,
            total_cost=recipe_total(costed),
        )
