"""
Test configuration and fixtures.
"""
import os
from datetime import datetime
from decimal import Decimal
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

# Set test settings before importing app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "stockroom-test-secret-key-0123456789abcdef"

from stockroom.main import app
from stockroom.db.base import Base
from stockroom.db.session import get_db
from stockroom.models.user import User, UserRole
from stockroom.models.catalog import Product, Department
from stockroom.models.recipe import Recipe, RecipeLine
from stockroom.models.stock import Stock, StockMovement, MovementType
from stockroom.core.security import hash_password, create_access_token


# One in-memory database shared by every connection of a test
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh schema and a database session for the test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create test client with database session override."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def admin_user(db: Session) -> User:
    user = User(
        name="Admin",
        email="admin@example.com",
        hashed_password=hash_password("adminpassword"),
        role=UserRole.ADMIN,
        department="Kitchen",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def worker_user(db: Session) -> User:
    user = User(
        name="Worker",
        email="worker@example.com",
        hashed_password=hash_password("workerpassword"),
        role=UserRole.WORKER,
        department="Kitchen",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _headers(user: User) -> dict:
    token = create_access_token(
        subject=str(user.id),
        role=user.role.value,
        department=user.department,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(admin_user: User) -> dict:
    """Bearer headers for the admin user."""
    return _headers(admin_user)


@pytest.fixture
def worker_headers(worker_user: User) -> dict:
    return _headers(worker_user)


# ============ Catalog factories ============

@pytest.fixture
def make_department(db: Session):
    def _make(name: str, description: str = None) -> Department:
        department = Department(name=name, description=description)
        db.add(department)
        db.commit()
        db.refresh(department)
        return department
    return _make


@pytest.fixture
def make_product(db: Session):
    def _make(name: str, unit: str = "kg", price="5", min_stock="0", barcode: str = None) -> Product:
        product = Product(
            product_name=name,
            unit=unit,
            price=Decimal(price),
            min_stock=Decimal(min_stock),
            barcode=barcode,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make


@pytest.fixture
def make_recipe(db: Session):
    """Create a recipe directly; lines are (product, quantity) pairs priced from the product."""
    def _make(name: str, department_name: str, lines) -> Recipe:
        recipe = Recipe(name=name, department_name=department_name)
        total = Decimal(0)
        for position, (product, quantity) in enumerate(lines):
            quantity = Decimal(str(quantity))
            recipe.lines.append(RecipeLine(
                position=position,
                product_id=product.id,
                product_name=product.product_name,
                unit=product.unit,
                price=Decimal(product.price),
                quantity=quantity,
            ))
            total += Decimal(product.price) * quantity
        recipe.total_cost = total
        db.add(recipe)
        db.commit()
        db.refresh(recipe)
        return recipe
    return _make


@pytest.fixture
def set_stock(db: Session):
    def _set(product: Product, department: Department, quantity) -> Stock:
        stock = Stock(product_id=product.id, department_id=department.id, quantity=Decimal(str(quantity)))
        db.add(stock)
        db.commit()
        db.refresh(stock)
        return stock
    return _set


@pytest.fixture
def make_movement(db: Session, admin_user: User):
    """Insert a ledger row directly, optionally backdated."""
    def _make(
        product: Product,
        department: Department,
        quantity,
        movement_type: MovementType,
        reference: str = "test movement",
        created_at: datetime = None,
        destination_category=None,
    ) -> StockMovement:
        movement = StockMovement(
            product_id=product.id,
            department_id=department.id,
            quantity=Decimal(str(quantity)),
            movement_type=movement_type,
            destination_category=destination_category,
            reference=reference,
            user_id=admin_user.id,
        )
        if created_at is not None:
            movement.created_at = created_at
        db.add(movement)
        db.commit()
        db.refresh(movement)
        return movement
    return _make


@pytest.fixture
def kitchen(make_department) -> Department:
    return make_department("Kitchen")


@pytest.fixture
def bakery(make_department) -> Department:
    return make_department("Bakery")


@pytest.fixture
def flour(make_product) -> Product:
    return make_product("Flour", unit="kg", price="5")


@pytest.fixture
def sugar(make_product) -> Product:
    return make_product("Sugar", unit="kg", price="2")
