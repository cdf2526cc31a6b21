"""
Stock ledger and audit log schemas.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from stockroom.models.activity_log import EntityType
from stockroom.models.stock import MovementType, DestinationCategory, RelatedDocumentType
from stockroom.schemas.common import Amount


# ============ Requests ============

class StockAddRequest(BaseModel):
    product_name: str
    department: str
    quantity: Decimal = Field(gt=0)
    reference: Optional[str] = None


class StockTransferRequest(BaseModel):
    product_name: str
    from_department: str
    to_department: str
    quantity: Decimal = Field(gt=0)
    reference: Optional[str] = None


class SinkTransferRequest(BaseModel):
    product_name: str
    department: str
    quantity: Decimal = Field(gt=0)
    reason: Optional[str] = None


class StockAdjustRequest(BaseModel):
    product_name: str
    department: str
    quantity: Decimal = Field(ge=0)
    reason: str = Field(min_length=1)


# ============ Responses ============

class StockResponse(BaseModel):
    stock_id: UUID
    product_id: UUID
    product_name: str
    unit: str
    department_id: UUID
    department_name: str
    quantity: Amount
    min_stock: Optional[Amount] = None


class StockChangeResponse(BaseModel):
    message: str
    stock: StockResponse


class TransferResponse(BaseModel):
    message: str
    product_name: str
    from_department: str
    to_department: str
    quantity: Amount
    source_quantity: Amount
    destination_quantity: Amount
    reference: str
    destination_category: DestinationCategory


class AdjustmentResponse(BaseModel):
    message: str
    stock: StockResponse
    previous_quantity: Amount
    new_quantity: Amount
    delta: Amount
    movement_type: Optional[MovementType] = None


class DepartmentValue(BaseModel):
    department_id: UUID
    department_name: str
    total_value: Amount


class StockValueResponse(BaseModel):
    total_value: Amount
    departments: List[DepartmentValue]


class StockMovementResponse(BaseModel):
    id: UUID
    product_id: UUID
    department_id: UUID
    quantity: Amount
    movement_type: MovementType
    destination_category: Optional[DestinationCategory] = None
    reference: str
    related_document_id: Optional[UUID] = None
    related_document_type: Optional[RelatedDocumentType] = None
    user_id: UUID
    created_at: datetime

    class Config:
        from_attributes = True


class ActivityLogResponse(BaseModel):
    id: UUID
    action: str
    entity_type: EntityType
    entity_id: UUID
    changes: Optional[Any] = None
    user_id: UUID
    created_at: datetime

    class Config:
        from_attributes = True
