"""
Read-only access to the stock movement ledger and the activity audit trail.
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from stockroom.core.dates import to_calendar_date, start_of_day, end_of_day
from stockroom.core.deps import get_current_user
from stockroom.db.session import get_db
from stockroom.models.activity_log import ActivityLog, EntityType
from stockroom.models.stock import StockMovement, MovementType
from stockroom.models.user import User
from stockroom.schemas.stock import StockMovementResponse, ActivityLogResponse
from stockroom.services.reconciliation import ReconciliationService

router = APIRouter(prefix="/logs", tags=["logs"])


def _created_between(query, column, start_date: Optional[str], end_date: Optional[str]):
    if start_date:
        query = query.where(column >= start_of_day(to_calendar_date(start_date)))
    if end_date:
        query = query.where(column <= end_of_day(to_calendar_date(end_date)))
    return query


@router.get("/stock-movements", response_model=List[StockMovementResponse])
def list_stock_movements(
    product: Optional[UUID] = None,
    department: Optional[UUID] = None,
    movement_type: Optional[MovementType] = Query(None, alias="movementType"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Movements matching every supplied filter, newest first."""
    query = select(StockMovement)
    if product:
        query = query.where(StockMovement.product_id == product)
    if department:
        query = query.where(StockMovement.department_id == department)
    if movement_type:
        query = query.where(StockMovement.movement_type == movement_type)
    query = _created_between(query, StockMovement.created_at, start_date, end_date)

    return db.execute(query.order_by(StockMovement.created_at.desc())).scalars().all()


@router.get("/products/{product_id}/movements", response_model=List[StockMovementResponse])
def product_movement_history(
    product_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return db.execute(
        select(StockMovement)
        .where(StockMovement.product_id == product_id)
        .order_by(StockMovement.created_at.desc())
    ).scalars().all()


@router.get("/activity-logs", response_model=List[ActivityLogResponse])
def list_activity_logs(
    entity_type: Optional[EntityType] = Query(None, alias="entityType"),
    entity_id: Optional[UUID] = Query(None, alias="entityId"),
    action: Optional[str] = None,
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = select(ActivityLog)
    if entity_type:
        query = query.where(ActivityLog.entity_type == entity_type)
    if entity_id:
        query = query.where(ActivityLog.entity_id == entity_id)
    if action:
        query = query.where(ActivityLog.action == action)
    query = _created_between(query, ActivityLog.created_at, start_date, end_date)

    return db.execute(query.order_by(ActivityLog.created_at.desc())).scalars().all()


@router.get("/activity/{entity_type}/{entity_id}", response_model=List[ActivityLogResponse])
def entity_activity(
    entity_type: EntityType,
    entity_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return db.execute(
        select(ActivityLog)
        .where(ActivityLog.entity_type == entity_type, ActivityLog.entity_id == entity_id)
        .order_by(ActivityLog.created_at.desc())
    ).scalars().all()


@router.get("/department-transfers")
def department_transfers(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    department_id: Optional[UUID] = Query(None, alias="departmentId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Movements in the window grouped by department, then product.

    `startDate` is required; `endDate` defaults to today.
    """
    return ReconciliationService(db).department_transfers(start_date, end_date, department_id)
