import os

# Settings are read at import time
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ALGORITHM", "HS256")
os.environ.setdefault("STRIPE_API_KEY", "sk_test_dummy")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("FRONTEND_URL", "http://localhost:5174")
os.environ.setdefault("ORDER_RETENTION_SECONDS", "60")
os.environ.setdefault("ARCHIVAL_SCHEDULER_ENABLED", "false")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from main import app
from core.database import Base
from models import User, Restaurant, MenuItem
from utils.deps import get_db, get_payment_gateway
from tests.helpers import FakePaymentGateway

# SYNC SQLite for testing (matches sync service layer)
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False}
)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """
    Creates a fresh, empty database for each test.
    Uses SYNC SQLAlchemy to match the service layer.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
async def client(session: Session, fake_gateway: FakePaymentGateway):
    """
    Yields an HTTP client that interacts with the app using the test
    database and the fake payment gateway.
    """
    def override_get_db():
        try:
            yield session
        finally:
            pass  # Session cleanup handled by session fixture

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: fake_gateway

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def owner(session: Session) -> User:
    user = User(id="U1", auth_sub="auth0|owner", email="owner@example.com", name="Restaurant Owner")
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def customer(session: Session) -> User:
    user = User(id="C1", auth_sub="auth0|customer", email="customer@example.com", name="Hungry Customer")
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def stranger(session: Session) -> User:
    user = User(id="U2", auth_sub="auth0|stranger", email="stranger@example.com", name="Someone Else")
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def restaurant(session: Session, owner: User) -> Restaurant:
    """Menu item A costs 5000, B costs 1500, delivery is 2000."""
    model = Restaurant(id="R1", user_id=owner.id, name="Tacos El Gordo", city="Tijuana", delivery_price=2000)
    model.menu_items = [
        MenuItem(id="A", name="Taco de asada", price=5000),
        MenuItem(id="B", name="Agua de horchata", price=1500),
    ]
    session.add(model)
    session.commit()
    return model


@pytest.fixture
def delivery_details() -> dict:
    return {
        "email": "customer@example.com",
        "name": "Hungry Customer",
        "addressLine1": "Av. Revolucion 123",
        "city": "Tijuana",
    }


@pytest.fixture
def make_order(session: Session, customer: User, restaurant: Restaurant):
    """Factory for orders already somewhere in their lifecycle."""
    from models import Order, OrderItem
    from utils.clock import utcnow

    counter = {"n": 0}

    def _make(status: str = "placed", total_amount: int | None = None, updated_at=None,
              archived: bool = False, user: User | None = None, order_id: str | None = None):
        counter["n"] += 1
        now = utcnow()
        if total_amount is None and status != "placed":
            total_amount = 12000
        order = Order(
            id=order_id or f"order{counter['n']}",
            user_id=(user or customer).id,
            restaurant_id=restaurant.id,
            status=status,
            archived=archived,
            total_amount=total_amount,
            delivery_email="customer@example.com",
            delivery_name="Hungry Customer",
            delivery_address_line1="Av. Revolucion 123",
            delivery_city="Tijuana",
            created_at=now,
            updated_at=updated_at or now,
        )
        order.items = [OrderItem(menu_item_id="A", name="Taco de asada", quantity=2, position=0)]
        session.add(order)
        session.commit()
        return order

    return _make
