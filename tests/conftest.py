import os

# Settings are read once at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CACHE_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from stockroom.main import app
from stockroom.config import get_settings
from stockroom.database import Base, get_db
from stockroom.models.category import Category
from stockroom.models.product import Product
from stockroom.models.user import User, UserRole
from stockroom.utils.security import create_access_token, hash_password


# Create test database (SQLite in-memory for testing)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


PASSWORD = "Secret123!"


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Override the dependency
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function")
def upload_dir(tmp_path, monkeypatch):
    """Store uploaded images in a per-test directory."""
    monkeypatch.setattr(get_settings(), "UPLOAD_DIR", str(tmp_path))
    return tmp_path / "products"


@pytest.fixture(scope="function")
def client(upload_dir):
    """Create test client with fresh database for each test."""
    # Create tables
    Base.metadata.create_all(bind=engine)

    with TestClient(app) as test_client:
        yield test_client

    # Drop tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(client):
    """Database session for direct database access in tests."""
    session = TestingSessionLocal()

    yield session

    session.close()


@pytest.fixture(scope="function")
def user_password():
    return PASSWORD


@pytest.fixture(scope="function")
def make_user(db_session):
    """Insert an account directly; verified by default."""
    def _make(email, role=UserRole.USER, verified=True, name="Test", lastname="User"):
        user = User(
            email=email,
            password=hash_password(PASSWORD),
            name=name,
            lastname=lastname,
            role=role,
            email_verified=verified,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make


@pytest.fixture(scope="function")
def auth_headers():
    """Bearer headers for a user."""
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role.value)}"}
    return _headers


@pytest.fixture(scope="function")
def admin_user(make_user):
    return make_user("admin@example.com", role=UserRole.ADMIN, name="Ada", lastname="Admin")


@pytest.fixture(scope="function")
def seller_user(make_user):
    return make_user("seller@example.com", name="Sam", lastname="Seller")


@pytest.fixture(scope="function")
def admin_headers(admin_user, auth_headers):
    return auth_headers(admin_user)


@pytest.fixture(scope="function")
def seller_headers(seller_user, auth_headers):
    return auth_headers(seller_user)


@pytest.fixture(scope="function")
def create_product(client, admin_headers):
    """Create a product through the API and return its JSON."""
    def _create(**fields):
        data = {"name": "Test Product", "price": "1000", "stock": "10", "categoryName": "General"}
        data.update({k: v for k, v in fields.items() if k != "files"})
        data = {k: v for k, v in data.items() if v is not None}
        response = client.post(
            "/api/v1/products/",
            data=data,
            files=fields.get("files"),
            headers=admin_headers,
        )
        assert response.status_code == 201, response.json()
        return response.json()["product"]
    return _create


@pytest.fixture(scope="function")
def product_in_db(db_session):
    """Insert a product directly, bypassing the API."""
    def _insert(name="Stored Product", price=500, stock=5, category="Stored", is_active=True, sku=None):
        cat = db_session.query(Category).filter(Category.name == category).first()
        if cat is None:
            cat = Category(name=category)
        product = Product(name=name, price=price, stock=stock, category=cat, is_active=is_active, sku=sku)
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product
    return _insert
