"""
Product and department schemas.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from stockroom.schemas.common import Amount


class ProductCreate(BaseModel):
    product_name: str = Field(min_length=1)
    unit: str = Field(min_length=1)
    barcode: Optional[str] = None
    min_stock: Decimal = Field(default=Decimal(0), ge=0)
    price: Decimal = Field(default=Decimal(0), ge=0)


class ProductUpdate(BaseModel):
    product_name: Optional[str] = Field(default=None, min_length=1)
    unit: Optional[str] = Field(default=None, min_length=1)
    barcode: Optional[str] = None
    min_stock: Optional[Decimal] = Field(default=None, ge=0)
    price: Optional[Decimal] = Field(default=None, ge=0)


class ProductResponse(BaseModel):
    id: UUID
    product_name: str
    unit: str
    barcode: Optional[str] = None
    min_stock: Amount
    price: Amount
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DepartmentCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None


class DepartmentUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None


class DepartmentResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
