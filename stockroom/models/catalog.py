"""
Catalog reference data: products and departments.
"""
import uuid
from sqlalchemy import Column, String, Text, Numeric, DateTime, Uuid, func
from sqlalchemy.orm import relationship

from stockroom.db.base import Base


class Product(Base):
    """A stocked product (ingredient, consumable, packaging...)."""
    __tablename__ = "products"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    product_name = Column(String(255), nullable=False, index=True)
    barcode = Column(String(100), unique=True)  # optional, unique when present
    unit = Column(String(50), nullable=False)  # kg, l, pcs
    min_stock = Column(Numeric(12, 3), nullable=False, default=0)
    price = Column(Numeric(12, 4), nullable=False, default=0)  # unit price
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    stocks = relationship("Stock", back_populates="product")


class Department(Base):
    """
    Organizational unit holding its own stock of each product.

    The name is the join key used by recipes, users and ledger requests.
    "Trash" and "Used" are sink departments created on first use.
    """
    __tablename__ = "departments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    stocks = relationship("Stock", back_populates="department")
