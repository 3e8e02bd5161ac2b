import os

# baza testowa w pamieci, ustawiona zanim storefront wczyta settings
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import storefront.data.models  # noqa: F401
from storefront.data.database import Base
from storefront.domain.errors import CatalogUnavailable, VariantNotFound
from storefront.domain.schemas import CatalogVariant, StoreSettings


class FakeCatalog:
    """Katalog w pamieci z tym samym kontraktem co ProductClient."""

    def __init__(self):
        self.variants: dict[str, CatalogVariant] = {}
        self.unavailable = False
        self.decrements: list[tuple[str, int]] = []
        self.increments: list[tuple[str, int]] = []

    def add(self, variant_id, price="10.00", stock=10, name="Basic Tee", label="M / Black"):
        self.variants[variant_id] = CatalogVariant(
            variant_id=variant_id,
            unit_price=Decimal(price),
            available_stock=stock,
            display_name=name,
            variant_label=label,
        )
        return self.variants[variant_id]

    def set_price(self, variant_id, price):
        self.variants[variant_id] = self.variants[variant_id].model_copy(
            update={"unit_price": Decimal(price)}
        )

    def set_stock(self, variant_id, stock):
        self.variants[variant_id] = self.variants[variant_id].model_copy(
            update={"available_stock": stock}
        )

    def stock(self, variant_id):
        return self.variants[variant_id].available_stock

    def get_variant(self, variant_id):
        if self.unavailable:
            raise CatalogUnavailable("Catalog unavailable: connection refused")
        return self.variants.get(variant_id)

    def decrement_stock(self, variant_id, quantity):
        if variant_id not in self.variants:
            raise VariantNotFound(variant_id)
        if self.stock(variant_id) < quantity:
            return False
        self.set_stock(variant_id, self.stock(variant_id) - quantity)
        self.decrements.append((variant_id, quantity))
        return True

    def increment_stock(self, variant_id, quantity):
        if variant_id not in self.variants:
            raise VariantNotFound(variant_id)
        self.set_stock(variant_id, self.stock(variant_id) + quantity)
        self.increments.append((variant_id, quantity))


class FakeNotifier:
    def __init__(self):
        self.sent: list[tuple[str, str, dict]] = []

    def send(self, customer_id, template, data):
        self.sent.append((customer_id, template, data))


class FakeLockService:
    def __init__(self):
        self.held: dict[str, str] = {}
        self.acquired: list[str] = []

    def acquire_variant_lock(self, variant_id, owner, ttl):
        if variant_id in self.held:
            return False
        self.held[variant_id] = owner
        self.acquired.append(variant_id)
        return True

    def release_variant_lock(self, variant_id, owner):
        if self.held.get(variant_id) == owner:
            del self.held[variant_id]
            return True
        return False


class FakeClock:
    def __init__(self, now=None):
        self.now = now or datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def catalog():
    catalog = FakeCatalog()
    catalog.add("v1", price="25.00", stock=10, name="Basic Tee", label="M / Black")
    catalog.add("v2", price="40.50", stock=5, name="Slim Jeans", label="32")
    catalog.add("v3", price="9.99", stock=100, name="Socks", label="One size")
    return catalog


@pytest.fixture()
def notifier():
    return FakeNotifier()


@pytest.fixture()
def lock_service():
    return FakeLockService()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def store_settings():
    return StoreSettings(
        home_delivery_fee=Decimal("5000.00"),
        free_delivery_threshold=None,
        pickup_address="Recoger en tienda",
        store_country="Colombia",
    )
