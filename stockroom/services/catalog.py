"""
Catalog lookups shared by the ledger, recipes and reports.
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from stockroom.models.catalog import Product, Department

logger = logging.getLogger(__name__)


def find_product_by_name(db: Session, product_name: str) -> Optional[Product]:
    return db.execute(
        select(Product).where(Product.product_name == product_name)
    ).scalars().first()


def find_department_by_name(db: Session, name: str) -> Optional[Department]:
    return db.execute(
        select(Department).where(Department.name == name)
    ).scalar_one_or_none()


def get_or_create_department(db: Session, name: str, description: Optional[str] = None) -> Department:
    """Fetch a department by name, creating it when absent (used for the Trash/Used sinks)."""
    department = find_department_by_name(db, name)
    if department:
        return department

    department = Department(name=name, description=description)
    db.add(department)
    db.flush()
    logger.info("Created department %s", name)
    return department
