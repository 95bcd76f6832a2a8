from sqlalchemy import select

from app.models.shared.sequence_models import TenantSequence
from app.services.shared.sequence_service import format_sequence_number, next_sequence


class TestFormatSequenceNumber:
    def test_movement_number(self):
        assert format_sequence_number("SM", 2026, 1) == "SM2026-1"
        assert format_sequence_number("SM", 2026, 1042) == "SM2026-1042"

    def test_lot_number_is_zero_padded(self):
        assert format_sequence_number("LOT", 2026, 7) == "LOT-2026007"
        assert format_sequence_number("LOT", 2026, 1234) == "LOT-20261234"


class TestNextSequence:
    async def test_first_use_creates_counter(self, db):
        value, number = await next_sequence(db, tenant_id=1, year=2026, key="SM")
        await db.commit()

        assert (value, number) == (1, "SM2026-1")
        row = await db.scalar(select(TenantSequence))
        assert (row.tenant_id, row.year, row.key, row.current_value) == (1, 2026, "SM", 1)

    async def test_increments_by_one(self, db):
        values = []
        for _ in range(5):
            value, _ = await next_sequence(db, tenant_id=1, year=2026, key="SM")
            values.append(value)
        await db.commit()

        assert values == [1, 2, 3, 4, 5]

    async def test_scoped_by_tenant_year_and_key(self, db):
        await next_sequence(db, tenant_id=1, year=2026, key="SM")
        await next_sequence(db, tenant_id=1, year=2026, key="SM")

        assert await next_sequence(db, tenant_id=2, year=2026, key="SM") == (1, "SM2026-1")
        assert await next_sequence(db, tenant_id=1, year=2027, key="SM") == (1, "SM2027-1")
        assert await next_sequence(db, tenant_id=1, year=2026, key="LOT") == (1, "LOT-2026001")
        assert await next_sequence(db, tenant_id=1, year=2026, key="SM") == (3, "SM2026-3")

    async def test_rollback_returns_the_number(self, db):
        await next_sequence(db, tenant_id=1, year=2026, key="SM")
        await db.commit()

        await next_sequence(db, tenant_id=1, year=2026, key="SM")
        await db.rollback()

        assert await next_sequence(db, tenant_id=1, year=2026, key="SM") == (2, "SM2026-2")
