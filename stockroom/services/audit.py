"""
Best-effort activity and stock-movement logging.

Both writers commit on their own after the ledger mutation they describe
has already been committed. A failed write is rolled back and logged here;
it never reaches the caller and never undoes the mutation.
"""
import logging
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stockroom.models.activity_log import ActivityLog, EntityType
from stockroom.models.stock import (
    StockMovement,
    MovementType,
    DestinationCategory,
    RelatedDocumentType,
)

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    action: str,
    entity_type: EntityType,
    entity_id: UUID,
    changes: Optional[dict[str, Any]],
    user_id: UUID,
) -> Optional[ActivityLog]:
    """Append an audit entry. Returns None when the write failed."""
    entry = ActivityLog(
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        changes=jsonable_encoder(changes) if changes is not None else None,
        user_id=user_id,
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(
            "Failed to write activity log: action=%s entity=%s:%s user=%s",
            action, entity_type.value, entity_id, user_id,
        )
        return None
    return entry


def log_stock_movement(
    db: Session,
    *,
    product_id: UUID,
    department_id: UUID,
    quantity: Decimal,
    movement_type: MovementType,
    reference: str,
    user_id: UUID,
    destination_category: Optional[DestinationCategory] = None,
    related_document_id: Optional[UUID] = None,
    related_document_type: Optional[RelatedDocumentType] = None,
) -> Optional[StockMovement]:
    """Append a ledger movement. Returns None when the write failed."""
    movement = StockMovement(
        product_id=product_id,
        department_id=department_id,
        quantity=quantity,
        movement_type=movement_type,
        destination_category=destination_category,
        reference=reference,
        related_document_id=related_document_id,
        related_document_type=related_document_type,
        user_id=user_id,
    )
    try:
        db.add(movement)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(
            "Failed to write stock movement: type=%s product=%s department=%s quantity=%s",
            movement_type.value, product_id, department_id, quantity,
        )
        return None
    return movement
