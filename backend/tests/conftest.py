"""
Fixtures compartidas: base SQLite por test, Redis falso y servicio de pedidos
con reloj controlado.
"""

import os

# Evita que el motor global de la app intente cargar el driver de PostgreSQL
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite:///:memory:")

from datetime import datetime
from decimal import Decimal

import fakeredis
import pytest
from sqlalchemy import func, select

from comandera.core.config import Settings
from comandera.db.database import create_engine, create_session_factory
from comandera.db.init_db import init_db
from comandera.db.models.menu_model import Category, Meal, Modifier
from comandera.db.models.user_model import User
from comandera.schemas.order_schema import OrderCreate
from comandera.services.audit_service import AuditLogService
from comandera.services.cache_service import OrderCacheService
from comandera.services.order_service import OrderService

CASHIER_EMAIL = "cajero@example.com"


class FakeClock:
    """Reloj local controlable desde el test."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
async def engine(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'comandera.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def redis_server():
    return fakeredis.FakeServer()


@pytest.fixture
async def redis_client(redis_server):
    client = fakeredis.FakeAsyncRedis(server=redis_server)
    yield client
    await client.aclose()


@pytest.fixture
def cache(redis_client):
    return OrderCacheService(redis_client, ttl_seconds=3600)


@pytest.fixture
async def audit(session_factory):
    audit = AuditLogService(session_factory)
    yield audit
    await audit.drain()


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 10, 12, 0))


@pytest.fixture
def app_settings():
    return Settings(
        INSUFFICIENT_PAYMENT_POLICY="reject",
        AUDIT_REQUIRE_ACTING_USER=False,
        ALLOW_EMPTY_ORDERS=True,
        BUSINESS_DAY_START_HOUR=3,
    )


@pytest.fixture
async def menu(session_factory):
    """Carta mínima: dos platillos, un modificador con precio y otro sin precio, un cajero."""
    async with session_factory() as db:
        async with db.begin():
            tacos = Category(id=1, name="Tacos")
            db.add(tacos)
            db.add_all([
                Meal(id=1, name="Orden de pastor", description="5 tacos", price=Decimal("50.00"), category=tacos),
                Meal(id=2, name="Quesadilla", description="De harina", price=Decimal("30.00"), category=tacos),
                Modifier(id=9, name="Extra queso", description="", has_price=True, price=Decimal("10.00")),
                Modifier(id=10, name="Sin cebolla", description="", has_price=False, price=None),
                User(id=1, name="Cajero", email=CASHIER_EMAIL, password="hash", role="cashier"),
            ])


@pytest.fixture
def service(session_factory, cache, audit, app_settings, clock, menu):
    return OrderService(session_factory, cache, audit, settings=app_settings, clock=clock)


def make_order(items=None, payments=None, **overrides) -> OrderCreate:
    """Pedido de ejemplo: 2 órdenes de pastor con extra queso, paga 130 en efectivo."""
    data = {
        "client_name": "Ana",
        "client_phone": "5551234567",
        "items": items if items is not None else [{"meal_id": 1, "quantity": 2, "modifier_ids": [9]}],
        "payments": payments if payments is not None else [{"payment_method": "cash", "amount_given": 130}],
    }
    data.update(overrides)
    return OrderCreate(**data)


async def count_rows(session_factory, model) -> int:
    async with session_factory() as db:
        return await db.scalar(select(func.count()).select_from(model))
