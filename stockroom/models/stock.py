"""
Stock ledger models.
"""
import enum
import uuid
from sqlalchemy import Column, Text, Numeric, DateTime, Enum, ForeignKey, Uuid, func, UniqueConstraint, CheckConstraint, Index
from sqlalchemy.orm import relationship

from stockroom.db.base import Base


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class MovementType(str, enum.Enum):
    ENTRY = "entry"
    EXIT = "exit"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"
    ADJUSTMENT = "adjustment"  # legacy, signed quantity
    ADJUSTMENT_IN = "adjustment_in"
    ADJUSTMENT_OUT = "adjustment_out"


class DestinationCategory(str, enum.Enum):
    TRASH = "trash"
    USED = "used"
    OTHER = "other"


class RelatedDocumentType(str, enum.Enum):
    STOCK = "Stock"
    RECIPE = "Recipe"
    DAILY_CALCULATION = "DailyCalculation"
    TRANSFER = "Transfer"
    ADJUSTMENT = "Adjustment"


class Stock(Base):
    """Current on-hand quantity of one product in one department."""
    __tablename__ = "stocks"
    __table_args__ = (
        UniqueConstraint('product_id', 'department_id', name='uq_stock_product_department'),
        CheckConstraint('quantity >= 0', name='ck_stocks_quantity_non_negative'),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id = Column(Uuid, ForeignKey("products.id"), nullable=False)
    department_id = Column(Uuid, ForeignKey("departments.id"), nullable=False)
    quantity = Column(Numeric(14, 4), nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    product = relationship("Product", back_populates="stocks")
    department = relationship("Department", back_populates="stocks")


class StockMovement(Base):
    """
    Append-only ledger entry for one quantity change.

    Quantities are positive magnitudes; the direction is in movement_type.
    Rows written before adjustment_in/adjustment_out existed use the
    signed `adjustment` type instead.
    """
    __tablename__ = "stock_movements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id = Column(Uuid, ForeignKey("products.id"), nullable=False)
    department_id = Column(Uuid, ForeignKey("departments.id"), nullable=False)
    quantity = Column(Numeric(14, 4), nullable=False)
    movement_type = Column(Enum(MovementType, native_enum=False, values_callable=_enum_values, length=20), nullable=False)
    destination_category = Column(Enum(DestinationCategory, native_enum=False, values_callable=_enum_values, length=10))
    reference = Column(Text, nullable=False)
    related_document_id = Column(Uuid)
    related_document_type = Column(Enum(RelatedDocumentType, native_enum=False, values_callable=_enum_values, length=20))
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    product = relationship("Product")
    department = relationship("Department")
    user = relationship("User")

    __table_args__ = (
        Index('idx_stock_movements_product_created', 'product_id', 'created_at'),
        Index('idx_stock_movements_department_created', 'department_id', 'created_at'),
    )
