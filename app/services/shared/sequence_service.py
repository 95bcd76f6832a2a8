import logging
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.sequence_keys import SequenceKey
from app.models.shared.sequence_models import TenantSequence
from app.services.shared.db_dialect import insert_ignore

logger = logging.getLogger(__name__)


def current_year_utc() -> int:
    return datetime.now(timezone.utc).year


def format_sequence_number(key: str, year: int, value: int) -> str:
    if key == SequenceKey.LOT.value:
        return f"LOT-{year}{value:03d}"
    return f"{key}{year}-{value}"


async def next_sequence(
    db: AsyncSession,
    *,
    tenant_id: int,
    year: int,
    key: str,
) -> tuple[int, str]:
    """
    Allocate the next number for (tenant, year, key) inside the caller's transaction.

    The counter row is created on first use, then incremented with a single
    UPDATE ... RETURNING. The UPDATE holds the row lock until the enclosing
    transaction ends, so concurrent allocators queue behind it and a rolled
    back allocation gives its number back.
    """
    await db.execute(
        insert_ignore(
            db,
            TenantSequence,
            {"tenant_id": tenant_id, "year": year, "key": key, "current_value": 0},
        )
    )

    result = await db.execute(
        update(TenantSequence)
        .where(
            TenantSequence.tenant_id == tenant_id,
            TenantSequence.year == year,
            TenantSequence.key == key,
        )
        .values(current_value=TenantSequence.current_value + 1)
        .returning(TenantSequence.current_value)
    )
    value = result.scalar_one()

    number = format_sequence_number(key, year, value)
    logger.debug(
        "[SEQ] allocated",
        extra={"tenant_id": tenant_id, "key": key, "year": year, "value": value},
    )
    return value, number
