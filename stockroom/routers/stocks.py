"""
Stock router.

Provides API endpoints for:
- Receiving stock into a department
- Transfers between departments and into the Trash/Used sinks
- Count adjustments
- Stock level, low-stock and valuation queries
"""
from collections import defaultdict
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from stockroom.core.deps import get_current_user
from stockroom.core.errors import NotFoundError
from stockroom.db.session import get_db
from stockroom.models.catalog import Product, Department
from stockroom.models.stock import Stock
from stockroom.models.user import User
from stockroom.schemas.stock import (
    StockAddRequest,
    StockTransferRequest,
    SinkTransferRequest,
    StockAdjustRequest,
    StockResponse,
    StockChangeResponse,
    TransferResponse,
    AdjustmentResponse,
    DepartmentValue,
    StockValueResponse,
)
from stockroom.services.catalog import find_department_by_name
from stockroom.services.stock_ledger import StockLedgerService, TransferResult


router = APIRouter(prefix="/stocks", tags=["stocks"])


def _stock_response(stock: Stock) -> StockResponse:
    return StockResponse(
        stock_id=stock.id,
        product_id=stock.product_id,
        product_name=stock.product.product_name,
        unit=stock.product.unit,
        department_id=stock.department_id,
        department_name=stock.department.name,
        quantity=stock.quantity,
        min_stock=stock.product.min_stock,
    )


def _transfer_response(message: str, result: TransferResult) -> TransferResponse:
    return TransferResponse(
        message=message,
        product_name=result.product_name,
        from_department=result.from_department,
        to_department=result.to_department,
        quantity=result.quantity,
        source_quantity=result.source_quantity,
        destination_quantity=result.destination_quantity,
        reference=result.reference,
        destination_category=result.destination_category,
    )


def _stock_query():
    return (
        select(Stock)
        .join(Product, Product.id == Stock.product_id)
        .join(Department, Department.id == Stock.department_id)
        .options(joinedload(Stock.product), joinedload(Stock.department))
    )


# ==================== MUTATIONS ====================

@router.post("/add", response_model=StockChangeResponse)
def add_stock(
    stock_data: StockAddRequest,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Receive stock; 201 when the department had no row for the product yet."""
    result = StockLedgerService(db, current_user).add_stock(
        stock_data.product_name,
        stock_data.department,
        stock_data.quantity,
        stock_data.reference,
    )
    response.status_code = status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
    return StockChangeResponse(
        message="Stock created successfully" if result.created else "Stock updated successfully",
        stock=_stock_response(result.stock),
    )


@router.post("/transfer", response_model=TransferResponse)
def transfer_stock(
    transfer_data: StockTransferRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = StockLedgerService(db, current_user).transfer(
        transfer_data.product_name,
        transfer_data.from_department,
        transfer_data.to_department,
        transfer_data.quantity,
        transfer_data.reference,
    )
    return _transfer_response("Stock transferred successfully", result)


@router.post("/transfer-to-trash", response_model=TransferResponse)
def transfer_to_trash(
    transfer_data: SinkTransferRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = StockLedgerService(db, current_user).transfer_to_trash(
        transfer_data.product_name,
        transfer_data.department,
        transfer_data.quantity,
        transfer_data.reason,
    )
    return _transfer_response("Stock transferred to trash successfully", result)


@router.post("/transfer-to-used", response_model=TransferResponse)
def transfer_to_used(
    transfer_data: SinkTransferRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = StockLedgerService(db, current_user).transfer_to_used(
        transfer_data.product_name,
        transfer_data.department,
        transfer_data.quantity,
        transfer_data.reason,
    )
    return _transfer_response("Stock transferred to used successfully", result)


@router.post("/adjust", response_model=AdjustmentResponse)
def adjust_stock(
    adjust_data: StockAdjustRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Set a counted quantity. A zero delta records no movement."""
    result = StockLedgerService(db, current_user).adjust(
        adjust_data.product_name,
        adjust_data.department,
        adjust_data.quantity,
        adjust_data.reason,
    )
    return AdjustmentResponse(
        message="Stock adjusted successfully" if result.delta else "Stock already at counted quantity",
        stock=_stock_response(result.stock),
        previous_quantity=result.previous_quantity,
        new_quantity=result.new_quantity,
        delta=result.delta,
        movement_type=result.movement_type,
    )


# ==================== QUERIES ====================

@router.get("", response_model=List[StockResponse])
def list_stocks(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    stocks = db.execute(
        _stock_query().order_by(Department.name, Product.product_name)
    ).scalars().all()
    return [_stock_response(stock) for stock in stocks]


@router.get("/low", response_model=List[StockResponse])
def list_low_stocks(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Rows whose quantity is below the product's min_stock."""
    stocks = db.execute(
        _stock_query()
        .where(Product.min_stock.is_not(None), Stock.quantity < Product.min_stock)
        .order_by(Department.name, Product.product_name)
    ).scalars().all()
    return [_stock_response(stock) for stock in stocks]


@router.get("/total-value", response_model=StockValueResponse)
def total_stock_value(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Quantity times current product price, overall and per department."""
    per_department: dict = defaultdict(Decimal)
    names = {}
    for stock in db.execute(_stock_query()).scalars():
        price = Decimal(stock.product.price or 0)
        per_department[stock.department_id] += Decimal(stock.quantity) * price
        names[stock.department_id] = stock.department.name

    departments = sorted(
        (
            DepartmentValue(department_id=dept_id, department_name=names[dept_id], total_value=value)
            for dept_id, value in per_department.items()
        ),
        key=lambda d: d.department_name,
    )
    return StockValueResponse(
        total_value=sum(per_department.values(), Decimal(0)),
        departments=departments,
    )


@router.get("/department/{department_name}", response_model=List[StockResponse])
def list_department_stocks(
    department_name: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    department = find_department_by_name(db, department_name)
    if not department:
        raise NotFoundError("Department", department_name)

    stocks = db.execute(
        _stock_query()
        .where(Stock.department_id == department.id)
        .order_by(Product.product_name)
    ).scalars().all()
    return [_stock_response(stock) for stock in stocks]
