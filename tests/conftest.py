import os

# Must be set before order_ledger settings are first read
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "order-ledger-test-secret-0123456789abcdef")

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from order_ledger.application.schemas import AddressIn, CartLine
from order_ledger.core_settings import get_settings
from order_ledger.domain.models import Base, Coupon, Customer, Product, utcnow
from order_ledger.infrastructure.db import get_db
from order_ledger.main import app


@pytest.fixture(scope="session")
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture(scope="session")
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(engine, session_factory):
    Base.metadata.create_all(engine)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)


def create_access_token(user_id, role="customer", expires_minutes=60):
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


class Seeder:
    """Inserts catalog, coupon and customer rows and commits them."""

    def __init__(self, session):
        self.session = session
        self._sku = 0

    def customer(self, name="Asha", email=None):
        customer = Customer(name=name, email=email or f"{name.lower()}-{self._next()}@example.com", orders_count=0)
        return self._save(customer)

    def product(self, title="Kettle", price="100.00", stock=10, sold=0, seller_id=900, is_active=True):
        product = Product(
            sku=f"SKU{self._next():04d}",
            title=title,
            price=Decimal(price),
            stock=stock,
            sold=sold,
            seller_id=seller_id,
            is_active=is_active,
        )
        return self._save(product)

    def coupon(self, name="SAVE10", discount="10", is_active=True, expires_in=None):
        coupon = Coupon(
            name=name,
            discount=Decimal(discount),
            is_active=is_active,
            expiry_date=utcnow() + expires_in if expires_in is not None else None,
        )
        return self._save(coupon)

    def _save(self, obj):
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    def _next(self):
        self._sku += 1
        return self._sku


@pytest.fixture
def seed(db):
    return Seeder(db)


@pytest.fixture
def address():
    return AddressIn(house="12B", street="MG Road", pincode=560001, city="Bengaluru", state="Karnataka")


@pytest.fixture
def address_payload():
    return {"house": "12B", "street": "MG Road", "pincode": 560001, "city": "Bengaluru", "state": "Karnataka"}


@pytest.fixture
def lines():
    def build(*pairs):
        return [CartLine(product_id=product_id, quantity=quantity) for product_id, quantity in pairs]
    return build


@pytest.fixture
def client(db, session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def build(user_id, role="customer", expires_minutes=60):
        return {"Authorization": f"Bearer {create_access_token(user_id, role, expires_minutes)}"}
    return build
