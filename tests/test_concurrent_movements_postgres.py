"""Row-lock behaviour under real concurrency. Needs a scratch Postgres database."""
import asyncio
import os
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import create_async_engine

from app.constants.stock_movement_type import StockMovementType
from app.core.db import Base
from app.core.exceptions import InsufficientStockException
from app.models.inventory.inventory_balance_models import InventoryBalance
from app.schemas.inventory.stock_movement_schemas import StockMovementCreateSchema
from app.services.inventory.stock_movement_service import create_stock_movement

from conftest import balance_quantity

TEST_POSTGRES_URL = os.getenv("TEST_POSTGRES_URL")

pytestmark = pytest.mark.skipif(
    not TEST_POSTGRES_URL,
    reason="TEST_POSTGRES_URL is not set",
)


@pytest.fixture
async def engine():
    engine = create_async_engine(TEST_POSTGRES_URL, pool_size=25, max_overflow=0)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


async def run_concurrently(session_factory, caller, payloads):
    async def attempt(body):
        async with session_factory() as session:
            return await create_stock_movement(session, body, caller)

    return await asyncio.gather(*(attempt(p) for p in payloads), return_exceptions=True)


def movement(type_, supply_id, **fields):
    return StockMovementCreateSchema(type=type_, supply_id=supply_id, **fields)


class TestConcurrentMovements:
    async def test_concurrent_outs_never_overdraw(self, session_factory, db, catalog, caller):
        s, a = catalog.supply_id, catalog.a
        await create_stock_movement(db, movement(StockMovementType.IN, s, to_location_id=a, quantity="20"), caller)

        results = await run_concurrently(
            session_factory,
            caller,
            [movement(StockMovementType.OUT, s, from_location_id=a, quantity="3") for _ in range(10)],
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 6
        assert len(failures) == 4
        assert all(isinstance(f, InsufficientStockException) for f in failures)
        assert len({r.movement.number for r in successes}) == 6
        assert await balance_quantity(db, a, s) == Decimal("2")

    async def test_opposite_transfers_do_not_deadlock(self, session_factory, db, catalog, caller):
        s, a, b = catalog.supply_id, catalog.a, catalog.b
        for location_id in (a, b):
            await create_stock_movement(
                db, movement(StockMovementType.IN, s, to_location_id=location_id, quantity="100"), caller
            )

        payloads = []
        for i in range(20):
            src, dst = (a, b) if i % 2 == 0 else (b, a)
            payloads.append(
                movement(StockMovementType.TRANSFER, s, from_location_id=src, to_location_id=dst, quantity="1")
            )

        results = await run_concurrently(session_factory, caller, payloads)

        assert [r for r in results if isinstance(r, Exception)] == []
        assert await balance_quantity(db, a, s) == Decimal("100")
        assert await balance_quantity(db, b, s) == Decimal("100")

    async def test_first_receipts_share_one_balance_row(self, session_factory, db, catalog, caller):
        s, b = catalog.supply_id, catalog.b

        results = await run_concurrently(
            session_factory,
            caller,
            [movement(StockMovementType.IN, s, to_location_id=b, quantity="1") for _ in range(10)],
        )

        assert [r for r in results if isinstance(r, Exception)] == []
        rows = await db.scalar(
            select(func.count()).select_from(InventoryBalance).where(InventoryBalance.location_id == b)
        )
        assert rows == 1
        assert await balance_quantity(db, b, s) == Decimal("10")
