import os

# Keep the application's own engine in memory during tests
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from rice_ledger.main import app
from rice_ledger.database import Base, build_engine, get_db


# Create test database (SQLite in-memory for testing)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = build_engine(SQLALCHEMY_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


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
def client():
    """Create test client with fresh database for each test."""
    # Create tables
    Base.metadata.create_all(bind=engine)
    
    with TestClient(app) as test_client:
        yield test_client
    
    # Drop tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create database session for direct database access in tests."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    
    yield session
    
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def create_product(client):
    """Return a helper that creates a product through the API."""
    def _create(name="Basmati Rice", weight_per_bag=26, low_stock_alert=0):
        response = client.post(
            "/api/v1/products/",
            json={
                "name": name,
                "weight_per_bag": weight_per_bag,
                "low_stock_alert": low_stock_alert,
            }
        )
        assert response.status_code == 201
        return response.json()
    
    return _create


@pytest.fixture
def stock_product(client, create_product):
    """Return a helper that creates a product and purchases bags of it."""
    def _stock(bags, name="Basmati Rice", weight_per_bag=26, unit_price=1000):
        product = create_product(name=name, weight_per_bag=weight_per_bag)
        response = client.post(
            "/api/v1/purchases/",
            json={
                "biller_name": "Rice Supplier Co.",
                "items": [
                    {"product_id": product["id"], "quantity": bags, "unit_price": unit_price}
                ],
                "paid_amount": 0,
            }
        )
        assert response.status_code == 201
        return client.get(f"/api/v1/products/{product['id']}").json()
    
    return _stock
