"""
Recipe models.

Recipe: a named bill of materials owned by a department (by name)
RecipeLine: one product line, snapshotting the product's name, unit and
    price at save time so later catalog changes leave the recipe intact
"""
import uuid
from sqlalchemy import Column, String, Integer, Numeric, DateTime, ForeignKey, Uuid, func, Index
from sqlalchemy.orm import relationship

from stockroom.db.base import Base


class Recipe(Base):
    __tablename__ = "recipes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    department_name = Column(String(255), nullable=False)
    total_cost = Column(Numeric(14, 4), nullable=False, default=0)  # Σ line.price × line.quantity
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    lines = relationship(
        "RecipeLine",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeLine.position",
    )

    __table_args__ = (
        Index('idx_recipes_name', 'name'),
        Index('idx_recipes_department', 'department_name'),
    )


class RecipeLine(Base):
    __tablename__ = "recipe_lines"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    recipe_id = Column(Uuid, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False)

    # Snapshot of the product at save time, not a live reference
    product_id = Column(Uuid, nullable=False)
    product_name = Column(String(255), nullable=False)
    unit = Column(String(50), nullable=False)
    price = Column(Numeric(12, 4), nullable=False, default=0)

    quantity = Column(Numeric(12, 4), nullable=False)

    recipe = relationship("Recipe", back_populates="lines")

    __table_args__ = (
        Index('idx_recipe_lines_recipe', 'recipe_id'),
        Index('idx_recipe_lines_product', 'product_id'),
    )
