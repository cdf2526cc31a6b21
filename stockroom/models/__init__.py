"""
SQLAlchemy models for Stockroom.
"""
# Users
from stockroom.models.user import User, UserRole

# Catalog
from stockroom.models.catalog import Product, Department

# Recipes
from stockroom.models.recipe import Recipe, RecipeLine

# Daily calculations
from stockroom.models.daily_calculation import (
    DailyCalculation,
    DailyCalculationEntry,
    IngredientRequirement,
)

# Stock ledger
from stockroom.models.stock import (
    Stock,
    StockMovement,
    MovementType,
    DestinationCategory,
    RelatedDocumentType,
)

# Audit
from stockroom.models.activity_log import ActivityLog, EntityType


__all__ = [
    # Users
    "User",
    "UserRole",
    # Catalog
    "Product",
    "Department",
    # Recipes
    "Recipe",
    "RecipeLine",
    # Daily calculations
    "DailyCalculation",
    "DailyCalculationEntry",
    "IngredientRequirement",
    # Stock ledger
    "Stock",
    "StockMovement",
    "MovementType",
    "DestinationCategory",
    "RelatedDocumentType",
    # Audit
    "ActivityLog",
    "EntityType",
]
