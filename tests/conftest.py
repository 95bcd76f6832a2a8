import os

os.environ["APP_ENV"] = "development"
os.environ["DB_TYPE"] = "sqlite"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("JWT_ACCESS_SECRET_KEY", "test-secret-key")

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import select

from app.core.db import Base, build_engine, build_session_factory
from app.models.catalog.location_models import InventoryLocation
from app.models.catalog.supply_models import Supply, SupplyLot, SupplyPresentation
from app.models.inventory.inventory_balance_models import InventoryBalance
from app.utils.get_user import Caller

TENANT_ID = 1
OTHER_TENANT_ID = 2


@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}", "sqlite")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def caller():
    return Caller(tenant_id=TENANT_ID, user_id=7, username="ops@example.com")


@pytest.fixture
async def catalog(session_factory):
    """Two active locations, one closed location, a supply with lots and a box presentation."""
    now = datetime.now(timezone.utc)

    async with session_factory() as session:
        supply = Supply(tenant_id=TENANT_ID, code="GLV", name="Nitrile gloves", base_unit="unit")
        inactive_supply = Supply(tenant_id=TENANT_ID, name="Retired reagent", is_active=False)
        foreign_supply = Supply(tenant_id=OTHER_TENANT_ID, name="Nitrile gloves")

        wh_a = InventoryLocation(tenant_id=TENANT_ID, code="wh-a", name="Warehouse A")
        wh_b = InventoryLocation(tenant_id=TENANT_ID, code="wh-b", name="Warehouse B")
        closed = InventoryLocation(tenant_id=TENANT_ID, code="closing", name="Closing branch", is_active=False)
        foreign_location = InventoryLocation(tenant_id=OTHER_TENANT_ID, code="wh-a", name="Other tenant")

        session.add_all([supply, inactive_supply, foreign_supply, wh_a, wh_b, closed, foreign_location])
        await session.flush()

        lot = SupplyLot(
            tenant_id=TENANT_ID,
            supply_id=supply.id,
            lot_number="L-001",
            expires_at=now + timedelta(days=365),
        )
        expired_lot = SupplyLot(
            tenant_id=TENANT_ID,
            supply_id=supply.id,
            lot_number="L-OLD",
            expires_at=datetime(2000, 1, 1, tzinfo=timezone.utc),
        )
        box = SupplyPresentation(
            tenant_id=TENANT_ID,
            supply_id=supply.id,
            name="Box x12",
            multiplier=Decimal("12"),
        )
        session.add_all([lot, expired_lot, box])
        await session.commit()

        return SimpleNamespace(
            supply_id=supply.id,
            inactive_supply_id=inactive_supply.id,
            foreign_supply_id=foreign_supply.id,
            a=wh_a.id,
            b=wh_b.id,
            closed=closed.id,
            foreign_location=foreign_location.id,
            lot_id=lot.id,
            expired_lot_id=expired_lot.id,
            box_id=box.id,
        )


async def balance_quantity(session, location_id, supply_id, lot_id=None, tenant_id=TENANT_ID):
    """Current quantity straight from the table, or None when no row exists."""
    lot_filter = (
        InventoryBalance.lot_id.is_(None) if lot_id is None else InventoryBalance.lot_id == lot_id
    )
    return await session.scalar(
        select(InventoryBalance.quantity).where(
            InventoryBalance.tenant_id == tenant_id,
            InventoryBalance.location_id == location_id,
            InventoryBalance.supply_id == supply_id,
            lot_filter,
        )
    )
