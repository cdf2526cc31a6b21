"""
Recipe, requirement and daily calculation schemas.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from stockroom.schemas.common import Amount, CAMEL_OR_SNAKE


# ============ Recipes ============

class RecipeLineIn(BaseModel):
    model_config = CAMEL_OR_SNAKE

    product_id: Optional[UUID] = Field(default=None, alias="productId")
    quantity: Optional[Decimal] = None


class RecipeIn(BaseModel):
    model_config = CAMEL_OR_SNAKE

    name: str
    department_name: str = Field(alias="departmentName")
    products: List[RecipeLineIn]


class RecipeLineResponse(BaseModel):
    product_id: UUID
    quantity: Amount
    product_name: str
    unit: str
    price: Amount

    class Config:
        from_attributes = True


class RecipeResponse(BaseModel):
    id: UUID
    name: str
    department_name: str
    products: List[RecipeLineResponse] = Field(validation_alias="lines")
    total_cost: Amount
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============ Requirement aggregation ============

class RecipeFactor(BaseModel):
    model_config = CAMEL_OR_SNAKE

    recipe_id: UUID = Field(alias="recipeId")
    factor: Decimal = Field(gt=0)


class RequirementResponse(BaseModel):
    product_id: UUID
    name: str
    unit: str
    required_quantity: Amount
    total_price: Amount

    class Config:
        from_attributes = True


class CalculationResponse(BaseModel):
    requirements: List[RequirementResponse]
    total_cost: Amount


# ============ Daily calculations ============

class DailyCalculationItem(BaseModel):
    recipe: UUID
    quantity: Decimal = Field(gt=0)


class DailyCalculationIn(BaseModel):
    date: str  # ISO date or datetime; the time of day is dropped
    calculations: List[DailyCalculationItem]


class DailyCalculationEntryResponse(BaseModel):
    recipe_id: Optional[UUID] = None
    recipe_name: str
    department_name: str
    quantity: Amount

    class Config:
        from_attributes = True


class DailyCalculationResponse(BaseModel):
    id: UUID
    date: date
    calculations: List[DailyCalculationEntryResponse]
    ingredient_requirements: List[RequirementResponse]
    total_cost: Amount
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
