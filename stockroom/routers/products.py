"""
Product catalog router.
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from stockroom.core.deps import get_current_user
from stockroom.core.errors import NotFoundError, ValidationError
from stockroom.db.session import get_db
from stockroom.models.activity_log import EntityType
from stockroom.models.catalog import Product
from stockroom.models.stock import Stock
from stockroom.models.user import User
from stockroom.schemas.catalog import ProductCreate, ProductUpdate, ProductResponse
from stockroom.services.audit import log_activity

router = APIRouter(prefix="/products", tags=["products"])


def _check_barcode(db: Session, barcode, product_id=None) -> None:
    if not barcode:
        return
    query = db.query(Product).filter(Product.barcode == barcode)
    if product_id is not None:
        query = query.filter(Product.id != product_id)
    if query.first():
        raise ValidationError(f"Barcode {barcode} is already assigned")


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    product_data: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _check_barcode(db, product_data.barcode)

    product = Product(**product_data.model_dump())
    db.add(product)
    db.commit()
    db.refresh(product)

    log_activity(db, "create", EntityType.PRODUCT, product.id, product_data.model_dump(), current_user.id)
    return product


@router.get("", response_model=List[ProductResponse])
def list_products(db: Session = Depends(get_db)):
    return db.query(Product).order_by(Product.product_name).all()


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: UUID, db: Session = Depends(get_db)):
    product = db.get(Product, product_id)
    if not product:
        raise NotFoundError("Product", product_id)
    return product


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: UUID,
    product_data: ProductUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Update a product.

    Recipes keep the name/unit/price they snapshotted; only recipes saved
    after this change pick up the new values.
    """
    product = db.get(Product, product_id)
    if not product:
        raise NotFoundError("Product", product_id)

    updates = product_data.model_dump(exclude_unset=True)
    if "barcode" in updates:
        _check_barcode(db, updates["barcode"], product.id)

    changes = {}
    for key, value in updates.items():
        old = getattr(product, key)
        if old != value:
            changes[key] = {"old": old, "new": value}
            setattr(product, key, value)

    db.commit()
    db.refresh(product)

    if changes:
        log_activity(db, "update", EntityType.PRODUCT, product.id, changes, current_user.id)
    return product


@router.delete("/{product_id}")
def delete_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = db.get(Product, product_id)
    if not product:
        raise NotFoundError("Product", product_id)

    if db.query(Stock).filter(Stock.product_id == product.id).first():
        raise ValidationError("Product has stock records and cannot be deleted")

    snapshot = {"product_name": product.product_name, "unit": product.unit, "price": product.price}
    db.delete(product)
    db.commit()

    log_activity(db, "delete", EntityType.PRODUCT, product_id, snapshot, current_user.id)
    return {"message": "Product deleted successfully"}
