import enum
import uuid
from sqlalchemy import Column, String, DateTime, Enum, Uuid, func
from stockroom.db.base import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    WORKER = "worker"


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255))
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(Enum(UserRole, native_enum=False, values_callable=lambda e: [m.value for m in e]), nullable=False, default=UserRole.WORKER)
    department = Column(String(255))  # department name, free text
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())
