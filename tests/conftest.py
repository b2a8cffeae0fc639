"""
Pytest fixtures: an in-memory SQLite database shared by the app and the tests.
"""
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from stockapi.core.database import Base
from stockapi.core.dependencies import get_db
from stockapi.core.security import create_access_token, get_password_hash
from stockapi.main import app
from stockapi.models import Category, Product, Purchase, Sale, Supplier, User, UserRole

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    """Fresh schema per test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _make_user(db, username: str, role: UserRole) -> User:
    user = User(
        username=username,
        password_hash=get_password_hash("secret123"),
        email=f"{username}@example.com",
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _headers_for(user: User) -> dict:
    token = create_access_token(
        data={"sub": str(user.id), "username": user.username, "role": user.role.value}
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_user(db_session):
    return _make_user(db_session, "admin", UserRole.Admin)


@pytest.fixture
def staff_user(db_session):
    return _make_user(db_session, "staff", UserRole.Staff)


@pytest.fixture
def admin_headers(admin_user):
    return _headers_for(admin_user)


@pytest.fixture
def staff_headers(staff_user):
    return _headers_for(staff_user)


@pytest.fixture
def category(db_session, admin_user):
    category = Category(name="Hardware", user_id=admin_user.id)
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def supplier(db_session, admin_user):
    supplier = Supplier(name="Acme Supplies", contact="555-0100", address="1 Main St", user_id=admin_user.id)
    db_session.add(supplier)
    db_session.commit()
    db_session.refresh(supplier)
    return supplier


def _make_product(db, name: str, stock_level: int, category, supplier) -> Product:
    product = Product(
        name=name,
        category_id=category.id,
        supplier_id=supplier.id,
        unit="pcs",
        cost_price=Decimal("4.00"),
        selling_price=Decimal("6.50"),
        stock_level=stock_level,
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@pytest.fixture
def product(db_session, category, supplier):
    """A product holding 10 units."""
    return _make_product(db_session, "Widget", 10, category, supplier)


@pytest.fixture
def other_product(db_session, category, supplier):
    return _make_product(db_session, "Gadget", 4, category, supplier)


@pytest.fixture
def purchase(db_session, supplier, admin_user):
    """An empty purchase."""
    purchase = Purchase(supplier_id=supplier.id, user_id=admin_user.id, total_amount=0)
    db_session.add(purchase)
    db_session.commit()
    db_session.refresh(purchase)
    return purchase


@pytest.fixture
def sale(db_session, admin_user):
    """An empty sale."""
    sale = Sale(user_id=admin_user.id, total_amount=0, discount=0, tax=0, net_amount=0)
    db_session.add(sale)
    db_session.commit()
    db_session.refresh(sale)
    return sale
