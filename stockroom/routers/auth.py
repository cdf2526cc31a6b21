"""
Authentication router with register, login and profile endpoints.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from stockroom.core.deps import get_current_user
from stockroom.core.errors import AuthError, ValidationError
from stockroom.core.security import hash_password, verify_password, create_access_token
from stockroom.db.session import get_db
from stockroom.models.user import User
from stockroom.schemas.auth import UserRegister, UserLogin, Token, UserResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(user_data: UserRegister, db: Session = Depends(get_db)) -> dict:
    """
    Register a new user account.
    """
    existing_user = db.query(User).filter(User.email == user_data.email).first()
    if existing_user:
        raise ValidationError("Email already registered")

    new_user = User(
        name=user_data.name,
        email=user_data.email,
        hashed_password=hash_password(user_data.password),
        role=user_data.role,
        department=user_data.department,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    return {"message": "User registered", "id": str(new_user.id)}


@router.post("/login", response_model=Token)
def login(user_data: UserLogin, db: Session = Depends(get_db)) -> Token:
    """
    Authenticate user and return an access token.
    """
    user = db.query(User).filter(User.email == user_data.email).first()
    if not user or not verify_password(user_data.password, user.hashed_password):
        raise AuthError("Invalid email or password")

    access_token = create_access_token(
        subject=str(user.id),
        role=user.role.value,
        department=user.department,
    )

    return Token(
        access_token=access_token,
        id=user.id,
        role=user.role,
        department=user.department,
    )


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)) -> User:
    """
    Get the current authenticated user's profile.
    """
    return current_user
