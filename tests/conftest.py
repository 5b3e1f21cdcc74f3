import os

# Settings are read once; point the service at an in-memory database before any import.
os.environ["DATABASE_URL"] = "sqlite://"

from decimal import Decimal

import pytest

from order_service.domain import models
from order_service.domain.entities import Customer, Product
from order_service.infrastructure.db import create_db_engine, create_session_factory

from fakes import InMemoryStore


@pytest.fixture
def store():
    return InMemoryStore(
        customers=[Customer(id="C1", name="Alice", email="alice@example.com")],
        products=[
            Product(id="P1", name="Keyboard", unit_price=Decimal("10"), available_quantity=5),
            Product(id="P2", name="Mouse", unit_price=Decimal("4.50"), available_quantity=10),
        ],
    )


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    models.Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


def add_catalog(session_factory):
    with session_factory() as db:
        db.add(models.Customer(id="C1", name="Alice", email="alice@example.com"))
        db.add(models.Product(id="P1", name="Keyboard", price=Decimal("10.00"), available_quantity=5))
        db.add(models.Product(id="P2", name="Mouse", price=Decimal("4.50"), available_quantity=10))
        db.commit()
    return session_factory


@pytest.fixture
def seeded(session_factory):
    """Catalog with customer C1 and products P1 (10.00 x5) and P2 (4.50 x10)."""
    return add_catalog(session_factory)


@pytest.fixture
def file_seeded(tmp_path):
    """Same catalog in an on-disk database, so every session gets its own connection."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'orders.db'}")
    models.Base.metadata.create_all(engine)
    yield add_catalog(create_session_factory(engine))
    engine.dispose()


@pytest.fixture
def stock_of(seeded):
    def read(product_id):
        with seeded() as db:
            return db.get(models.Product, product_id).available_quantity
    return read
