"""
User management (admin only).
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from stockroom.core.deps import require_admin
from stockroom.core.errors import NotFoundError, ValidationError
from stockroom.core.security import hash_password
from stockroom.db.session import get_db
from stockroom.models.activity_log import EntityType
from stockroom.models.user import User
from stockroom.schemas.auth import UserRegister, UserUpdate, UserResponse
from stockroom.services.audit import log_activity

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserResponse])
def list_users(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return db.query(User).order_by(User.created_at.desc()).all()


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserRegister,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    if db.query(User).filter(User.email == user_data.email).first():
        raise ValidationError("Email already in use")

    user = User(
        name=user_data.name,
        email=user_data.email,
        hashed_password=hash_password(user_data.password),
        role=user_data.role,
        department=user_data.department,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    log_activity(
        db, "create", EntityType.USER, user.id,
        {"email": user.email, "role": user.role.value, "department": user.department},
        admin.id,
    )
    return user


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: UUID,
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User", user_id)

    updates = user_data.model_dump(exclude_unset=True)
    if "email" in updates and updates["email"] != user.email:
        if db.query(User).filter(User.email == updates["email"]).first():
            raise ValidationError("Email already in use")

    changes = {}
    password = updates.pop("password", None)
    for key, value in updates.items():
        old = getattr(user, key)
        if old != value:
            changes[key] = {"old": old, "new": value}
            setattr(user, key, value)
    if password:
        user.hashed_password = hash_password(password)
        changes["password"] = "changed"

    db.commit()
    db.refresh(user)

    if changes:
        log_activity(db, "update", EntityType.USER, user.id, changes, admin.id)
    return user


@router.delete("/{user_id}")
def delete_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User", user_id)
    if user.id == admin.id:
        raise ValidationError("You cannot delete your own account")

    snapshot = {"email": user.email, "role": user.role.value}
    db.delete(user)
    db.commit()

    log_activity(db, "delete", EntityType.USER, user_id, snapshot, admin.id)
    return {"message": "User deleted successfully"}
