from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import redis
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.api import create_app
from storefront.api.deps import get_current_user_id
from storefront.data.database import Base, get_db
from storefront.data.models import ProductModel, OrderModel, OrderItemModel
from storefront.domain.schemas import OrderCreate
from storefront.services.count_cache import CartCountCache

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)
USER = "user_1"


class FakeRedis:
    """dict-backed stand-in for the three redis commands the cache uses"""

    def __init__(self):
        self.store = {}
        self.ttls = {}
        self.down = False

    def _check(self):
        if self.down:
            raise redis.ConnectionError("redis is down")

    def get(self, key):
        self._check()
        return self.store.get(key)

    def set(self, name, value, ex=None):
        self._check()
        self.store[name] = value
        self.ttls[name] = ex
        return True

    def delete(self, key):
        self._check()
        return 1 if self.store.pop(key, None) is not None else 0


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def count_cache(fake_redis):
    return CartCountCache(client=fake_redis, ttl=30)


@pytest.fixture
def make_product(db):
    counter = {"n": 0}

    def _make(name="상품", price="10000", stock=10, category=None, active=True, created_at=None):
        counter["n"] += 1
        created = created_at or BASE_TIME + timedelta(minutes=counter["n"])
        product = ProductModel(
            name=name,
            price=Decimal(price),
            stock_quantity=stock,
            category=category,
            is_active=active,
            created_at=created,
            updated_at=created,
        )
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture
def record_sale(db):
    def _record(product, quantity):
        order = OrderModel(user_id="someone", status="confirmed", total_amount=product.price * quantity)
        db.add(order)
        db.flush()
        db.add(
            OrderItemModel(
                order_id=order.id,
                product_id=product.id,
                product_name=product.name,
                quantity=quantity,
                price=product.price,
            )
        )
        db.commit()

    return _record


@pytest.fixture
def order_payload():
    def _payload(expected, address=True, note=None):
        return OrderCreate(
            shipping_address={
                "recipient_name": "홍길동",
                "phone": "010-1234-5678",
                "address": "서울특별시 강남구 테헤란로 123",
            }
            if address
            else None,
            order_note=note,
            expected_total_amount=expected,
        )

    return _payload


@pytest.fixture
def current_user():
    return {"id": USER}


@pytest.fixture
def client(session_factory, current_user, count_cache, monkeypatch):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user_id] = lambda: current_user["id"]
    monkeypatch.setattr("storefront.api.routers.cart.get_count_cache", lambda: count_cache)
    monkeypatch.setattr("storefront.api.routers.orders.get_count_cache", lambda: count_cache)

    with TestClient(app) as c:
        yield c
