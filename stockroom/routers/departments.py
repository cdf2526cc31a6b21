"""
Department router.
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from stockroom.core.deps import get_current_user
from stockroom.core.errors import NotFoundError, ValidationError
from stockroom.db.session import get_db
from stockroom.models.activity_log import EntityType
from stockroom.models.catalog import Department
from stockroom.models.stock import Stock
from stockroom.models.user import User
from stockroom.schemas.catalog import DepartmentCreate, DepartmentUpdate, DepartmentResponse
from stockroom.services.audit import log_activity
from stockroom.services.catalog import find_department_by_name

router = APIRouter(prefix="/departments", tags=["departments"])


@router.post("", response_model=DepartmentResponse, status_code=status.HTTP_201_CREATED)
def create_department(
    department_data: DepartmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if find_department_by_name(db, department_data.name):
        raise ValidationError(f"Department {department_data.name} already exists")

    department = Department(**department_data.model_dump())
    db.add(department)
    db.commit()
    db.refresh(department)

    log_activity(db, "create", EntityType.DEPARTMENT, department.id, department_data.model_dump(), current_user.id)
    return department


@router.get("", response_model=List[DepartmentResponse])
def list_departments(db: Session = Depends(get_db)):
    return db.query(Department).order_by(Department.name).all()


@router.get("/{department_id}", response_model=DepartmentResponse)
def get_department(department_id: UUID, db: Session = Depends(get_db)):
    department = db.get(Department, department_id)
    if not department:
        raise NotFoundError("Department", department_id)
    return department


@router.put("/{department_id}", response_model=DepartmentResponse)
def update_department(
    department_id: UUID,
    department_data: DepartmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    department = db.get(Department, department_id)
    if not department:
        raise NotFoundError("Department", department_id)

    updates = department_data.model_dump(exclude_unset=True)
    if "name" in updates and updates["name"] != department.name:
        if find_department_by_name(db, updates["name"]):
            raise ValidationError(f"Department {updates['name']} already exists")

    changes = {}
    for key, value in updates.items():
        old = getattr(department, key)
        if old != value:
            changes[key] = {"old": old, "new": value}
            setattr(department, key, value)

    db.commit()
    db.refresh(department)

    if changes:
        log_activity(db, "update", EntityType.DEPARTMENT, department.id, changes, current_user.id)
    return department


@router.delete("/{department_id}")
def delete_department(
    department_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    department = db.get(Department, department_id)
    if not department:
        raise NotFoundError("Department", department_id)

    if db.query(Stock).filter(Stock.department_id == department.id).first():
        raise ValidationError("Department holds stock and cannot be deleted")

    snapshot = {"name": department.name, "description": department.description}
    db.delete(department)
    db.commit()

    log_activity(db, "delete", EntityType.DEPARTMENT, department_id, snapshot, current_user.id)
    return {"message": "Department deleted successfully"}
