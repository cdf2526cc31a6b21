"""
Daily calculation router.

A daily calculation is the production plan for one calendar date together
with the ingredient requirements it implies. Saving a date that already has
a calculation replaces it.
"""
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from stockroom.core.dates import to_calendar_date
from stockroom.core.deps import get_current_user
from stockroom.core.errors import NotFoundError, ValidationError
from stockroom.db.session import get_db
from stockroom.models.activity_log import EntityType
from stockroom.models.user import User
from stockroom.schemas.recipe import DailyCalculationIn, DailyCalculationResponse
from stockroom.services.audit import log_activity
from stockroom.services.daily_calculations import DailyCalculationService

router = APIRouter(prefix="/calcule", tags=["daily-calculations"])


@router.post("", response_model=DailyCalculationResponse)
def save_daily_calculation(
    calculation_data: DailyCalculationIn,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Save the plan for a date (201 when new, 200 when replacing).

    The time of day in `date` is ignored.
    """
    if not calculation_data.calculations:
        raise ValidationError("At least one calculation is required")

    snapshot, created = DailyCalculationService(db).save(
        calculation_data.date,
        [(item.recipe, item.quantity) for item in calculation_data.calculations],
    )

    log_activity(
        db,
        "create" if created else "update",
        EntityType.DAILY_CALCULATION,
        snapshot.id,
        {
            "date": snapshot.date,
            "calculations": [item.model_dump() for item in calculation_data.calculations],
            "total_cost": snapshot.total_cost,
        },
        current_user.id,
    )

    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return snapshot


@router.get("/range/{start_date}/{end_date}", response_model=List[DailyCalculationResponse])
def list_daily_calculations(start_date: str, end_date: str, db: Session = Depends(get_db)):
    start = to_calendar_date(start_date)
    end = to_calendar_date(end_date)
    if end < start:
        raise ValidationError("endDate must not be before startDate")
    return DailyCalculationService(db).list_range(start, end)


@router.get("/{day}", response_model=DailyCalculationResponse)
def get_daily_calculation(day: str, db: Session = Depends(get_db)):
    snapshot = DailyCalculationService(db).get_for_date(day)
    if not snapshot:
        raise NotFoundError("DailyCalculation", day, "No calculations found for this date")
    return snapshot
