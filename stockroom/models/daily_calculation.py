"""
Daily production calculation snapshots.

One DailyCalculation per calendar date. Recomputing a date replaces its
entries and requirement rows wholesale.
"""
import uuid
from sqlalchemy import Column, String, Date, Numeric, DateTime, ForeignKey, Uuid, func, Index
from sqlalchemy.orm import relationship

from stockroom.db.base import Base


class DailyCalculation(Base):
    __tablename__ = "daily_calculations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    date = Column(Date, nullable=False, unique=True, index=True)
    total_cost = Column(Numeric(14, 4), nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    calculations = relationship(
        "DailyCalculationEntry",
        back_populates="daily_calculation",
        cascade="all, delete-orphan",
    )
    ingredient_requirements = relationship(
        "IngredientRequirement",
        back_populates="daily_calculation",
        cascade="all, delete-orphan",
    )


class DailyCalculationEntry(Base):
    """A planned {recipe, multiplier} pair for the day."""
    __tablename__ = "daily_calculation_entries"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    daily_calculation_id = Column(Uuid, ForeignKey("daily_calculations.id", ondelete="CASCADE"), nullable=False)
    recipe_id = Column(Uuid, ForeignKey("recipes.id", ondelete="SET NULL"))
    recipe_name = Column(String(255), nullable=False)
    department_name = Column(String(255), nullable=False)  # owning department at save time
    quantity = Column(Numeric(12, 4), nullable=False)

    daily_calculation = relationship("DailyCalculation", back_populates="calculations")
    recipe = relationship("Recipe")

    __table_args__ = (
        Index('idx_daily_calc_entries_calc', 'daily_calculation_id'),
    )


class IngredientRequirement(Base):
    """Aggregated demand for one product implied by the day's plan."""
    __tablename__ = "ingredient_requirements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    daily_calculation_id = Column(Uuid, ForeignKey("daily_calculations.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Uuid, nullable=False)
    name = Column(String(255), nullable=False)
    unit = Column(String(50), nullable=False)
    required_quantity = Column(Numeric(14, 4), nullable=False)
    total_price = Column(Numeric(14, 4), nullable=False)

    daily_calculation = relationship("DailyCalculation", back_populates="ingredient_requirements")

    __table_args__ = (
        Index('idx_ingredient_requirements_calc', 'daily_calculation_id'),
        Index('idx_ingredient_requirements_product', 'product_id'),
    )
