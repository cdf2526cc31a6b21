"""
Recipe router.

Provides API endpoints for:
- Recipe CRUD with costed line snapshots
- Ingredient requirement aggregation for a production plan
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session, selectinload

from stockroom.core.deps import get_current_user
from stockroom.core.errors import NotFoundError
from stockroom.db.session import get_db
from stockroom.models.activity_log import EntityType
from stockroom.models.recipe import Recipe, RecipeLine
from stockroom.models.user import User
from stockroom.schemas.recipe import (
    RecipeIn,
    RecipeResponse,
    RecipeFactor,
    CalculationResponse,
    RequirementResponse,
)
from stockroom.services.audit import log_activity
from stockroom.services.catalog import find_department_by_name
from stockroom.services.recipe_costing import RecipeCostCalculator, LineInput, CostedRecipe
from stockroom.services.requirement_aggregator import RequirementAggregator


router = APIRouter(prefix="/recipes", tags=["recipes"])


def _cost(db: Session, recipe_data: RecipeIn) -> CostedRecipe:
    costed = RecipeCostCalculator(db).cost_recipe(
        recipe_data.name,
        recipe_data.department_name,
        [LineInput(product_id=line.product_id, quantity=line.quantity) for line in recipe_data.products],
    )
    if not find_department_by_name(db, costed.department_name):
        raise NotFoundError("Department", costed.department_name)
    return costed


def _apply(recipe: Recipe, costed: CostedRecipe) -> None:
    recipe.name = costed.name
    recipe.department_name = costed.department_name
    recipe.lines = [
        RecipeLine(
            position=position,
            product_id=line.product_id,
            product_name=line.product_name,
            unit=line.unit,
            price=line.price,
            quantity=line.quantity,
        )
        for position, line in enumerate(costed.lines)
    ]
    recipe.total_cost = costed.total_cost


def _snapshot(recipe: Recipe) -> dict:
    return {
        "name": recipe.name,
        "department_name": recipe.department_name,
        "total_cost": recipe.total_cost,
        "products": [
            {"productId": line.product_id, "quantity": line.quantity, "price": line.price}
            for line in recipe.lines
        ],
    }


def _get_recipe(db: Session, recipe_id: UUID) -> Recipe:
    recipe = db.query(Recipe).options(selectinload(Recipe.lines)).filter(Recipe.id == recipe_id).first()
    if not recipe:
        raise NotFoundError("Recipe", recipe_id)
    return recipe


@router.post("", response_model=RecipeResponse, status_code=status.HTTP_201_CREATED)
def create_recipe(
    recipe_data: RecipeIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Create a recipe. Each line is stamped with the product's current
    name, unit and price, and the recipe total is computed from them.
    """
    costed = _cost(db, recipe_data)

    recipe = Recipe()
    _apply(recipe, costed)
    db.add(recipe)
    db.commit()
    db.refresh(recipe)

    log_activity(db, "create", EntityType.RECIPE, recipe.id, _snapshot(recipe), current_user.id)
    return recipe


@router.get("", response_model=List[RecipeResponse])
def list_recipes(db: Session = Depends(get_db)):
    return db.query(Recipe).options(selectinload(Recipe.lines)).order_by(Recipe.name).all()


@router.get("/search", response_model=List[RecipeResponse])
def search_recipes(
    q: str = Query("", description="Case-insensitive name fragment"),
    department: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(Recipe).options(selectinload(Recipe.lines))
    if q:
        query = query.filter(Recipe.name.ilike(f"%{q}%"))
    if department:
        query = query.filter(Recipe.department_name == department)
    return query.order_by(Recipe.name).all()


@router.post("/calculate", response_model=CalculationResponse)
def calculate_total(
    calculations: List[RecipeFactor],
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Aggregate the ingredients needed to make each recipe `factor` times.

    Rejects the whole request if any recipe id is unknown.
    """
    result = RequirementAggregator(db).aggregate(
        [(item.recipe_id, item.factor) for item in calculations]
    )
    return CalculationResponse(
        requirements=[RequirementResponse.model_validate(line) for line in result.requirements],
        total_cost=result.total_cost,
    )


@router.get("/{recipe_id}", response_model=RecipeResponse)
def get_recipe(recipe_id: UUID, db: Session = Depends(get_db)):
    return _get_recipe(db, recipe_id)


@router.put("/{recipe_id}", response_model=RecipeResponse)
def update_recipe(
    recipe_id: UUID,
    recipe_data: RecipeIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Replace a recipe's lines; prices are re-snapshotted from the catalog."""
    recipe = _get_recipe(db, recipe_id)
    costed = _cost(db, recipe_data)

    before = _snapshot(recipe)
    _apply(recipe, costed)
    db.commit()
    db.refresh(recipe)

    log_activity(
        db, "update", EntityType.RECIPE, recipe.id,
        {"old": before, "new": _snapshot(recipe)},
        current_user.id,
    )
    return recipe


@router.delete("/{recipe_id}")
def delete_recipe(
    recipe_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    recipe = _get_recipe(db, recipe_id)
    snapshot = _snapshot(recipe)
    db.delete(recipe)
    db.commit()

    log_activity(db, "delete", EntityType.RECIPE, recipe_id, snapshot, current_user.id)
    return {"message": "Recipe deleted successfully"}
