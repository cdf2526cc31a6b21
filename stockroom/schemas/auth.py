"""
Auth and user Pydantic schemas for request/response validation.
"""
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from stockroom.models.user import UserRole


class UserRegister(BaseModel):
    """Schema for user registration request."""
    name: str
    email: EmailStr
    password: str = Field(min_length=6)
    role: UserRole = UserRole.WORKER
    department: Optional[str] = None


class UserLogin(BaseModel):
    """Schema for user login request."""
    email: EmailStr
    password: str


class Token(BaseModel):
    """Schema for login response."""
    access_token: str
    token_type: str = "bearer"
    id: UUID
    role: UserRole
    department: Optional[str] = None


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6)
    role: Optional[UserRole] = None
    department: Optional[str] = None


class UserResponse(BaseModel):
    """Schema for user response (without password)."""
    id: UUID
    name: Optional[str] = None
    email: str
    role: UserRole
    department: Optional[str] = None

    class Config:
        from_attributes = True
