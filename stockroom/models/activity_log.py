"""
Audit trail for mutating actions.
"""
import enum
import uuid
from sqlalchemy import Column, String, DateTime, Enum, ForeignKey, JSON, Uuid, func, Index
from sqlalchemy.orm import relationship

from stockroom.db.base import Base


class EntityType(str, enum.Enum):
    USER = "User"
    PRODUCT = "Product"
    RECIPE = "Recipe"
    DEPARTMENT = "Department"
    STOCK = "Stock"
    DAILY_CALCULATION = "DailyCalculation"


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    action = Column(String(50), nullable=False)  # create, update, delete, transfer_out, transfer_in, adjust
    entity_type = Column(Enum(EntityType, native_enum=False, values_callable=lambda e: [m.value for m in e], length=20), nullable=False)
    entity_id = Column(Uuid, nullable=False)
    changes = Column(JSON)  # old/new values or creation snapshot
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    user = relationship("User")

    __table_args__ = (
        Index('idx_activity_logs_entity', 'entity_type', 'entity_id'),
        Index('idx_activity_logs_created', 'created_at'),
    )
