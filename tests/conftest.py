import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")

import random
from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from marketplace.core.clock import FixedClock
from marketplace.core.config import Settings
from marketplace.core.security import create_access_token
from marketplace.db.session import build_engine, build_session_factory, create_tables
from marketplace.main import create_app
from marketplace.models.user import User
from marketplace.schemas.product import ProductCreate
from marketplace.services.cart_store import CartStore
from marketplace.services.catalog_store import CatalogStore
from marketplace.services.order_store import OrderStore
from marketplace.services.user_directory import UserDirectory

NOW = datetime(2024, 3, 1, 12, 0, 0)


@pytest.fixture
def settings():
    return Settings(DATABASE_URL="sqlite://", SECRET_KEY="test-secret-key", AUTO_CREATE_TABLES=False)


@pytest.fixture
def engine(settings):
    engine = build_engine(settings)
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def rng():
    return random.Random(1234)


def _add_user(db, user_id, first_name, email):
    user = User(id=user_id, first_name=first_name, last_name="Tester", email=email)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def buyer(db):
    return _add_user(db, "user-a", "Asha", "asha@example.com")


@pytest.fixture
def seller(db):
    return _add_user(db, "seller-b", "Bala", "bala@example.com")


@pytest.fixture
def other_seller(db):
    return _add_user(db, "seller-c", "Chitra", "chitra@example.com")


@pytest.fixture
def directory(db):
    return UserDirectory(db)


@pytest.fixture
def catalog(db):
    return CatalogStore(db)


@pytest.fixture
def cart(db, catalog):
    return CartStore(db, catalog=catalog, tax_rate=Decimal("0.01"))


@pytest.fixture
def orders(db, clock, rng):
    return OrderStore(db, clock=clock, rng=rng, tax_rate=Decimal("0.01"))


@pytest.fixture
def make_product(catalog, seller):
    def _make(title="Desk Lamp", price="100.00", category="Furniture", seller_id=None):
        return catalog.create(
            seller_id or seller.id,
            ProductCreate(
                title=title,
                description=f"{title} description",
                category=category,
                price=Decimal(price),
                image_url=f"https://img.example.com/{title.replace(' ', '-').lower()}.png",
            ),
        )

    return _make


@pytest.fixture
def app(settings, session_factory, clock, rng):
    return create_app(settings=settings, session_factory=session_factory, clock=clock, rng=rng)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers(settings):
    def _headers(user_id, **claims):
        token = create_access_token({"sub": user_id, **claims}, settings)
        return {"Authorization": f"Bearer {token}"}

    return _headers
