"""
Reconciliation reports: planned ingredient demand vs. recorded usage.
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from stockroom.core.deps import get_current_user
from stockroom.db.session import get_db
from stockroom.models.user import User
from stockroom.services.reconciliation import ReconciliationService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/ingredient-comparison")
def ingredient_comparison(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    department_id: Optional[UUID] = Query(None, alias="departmentId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Compare required quantities from the daily calculations in the window
    with the outbound movements recorded for the same products.

    Each product is classified match/overuse/underuse using the configured
    tolerance band.
    """
    report = ReconciliationService(db).compare_ingredient_usage(start_date, end_date, department_id)
    return report.as_dict()


@router.get("/stock-consumption")
def stock_consumption(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    department_id: Optional[UUID] = Query(None, alias="departmentId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Consumption derived from opening and closing stock levels."""
    report = ReconciliationService(db).stock_consumption(start_date, end_date, department_id)
    return report.as_dict()
