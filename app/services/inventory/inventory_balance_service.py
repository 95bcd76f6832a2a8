import time
import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select, update, func, text
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.error_codes import ErrorCode
from app.core.exceptions import InsufficientStockException, StockConflictException
from app.models.catalog.location_models import InventoryLocation
from app.models.catalog.supply_models import Supply, SupplyLot
from app.models.inventory.inventory_balance_models import InventoryBalance
from app.services.shared.db_dialect import dialect_name, insert_ignore
from app.utils.decimal_utils import MAX_QUANTITY, to_quantity

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class BalanceKey:
    tenant_id: int
    location_id: int
    supply_id: int
    lot_id: int | None

    def lock_order(self) -> tuple:
        # null lot sorts first
        return (
            self.tenant_id,
            self.location_id,
            self.supply_id,
            -1 if self.lot_id is None else self.lot_id,
        )


@dataclass
class LockedBalance:
    key: BalanceKey
    id: int | None
    quantity: Decimal
    version: int


# =====================================================
# LOCKER
# =====================================================
def _key_filter(key: BalanceKey) -> list:
    filters = [
        InventoryBalance.tenant_id == key.tenant_id,
        InventoryBalance.location_id == key.location_id,
        InventoryBalance.supply_id == key.supply_id,
    ]
    if key.lot_id is None:
        filters.append(InventoryBalance.lot_id.is_(None))
    else:
        filters.append(InventoryBalance.lot_id == key.lot_id)
    return filters


def build_lock_statement(key: BalanceKey):
    return (
        select(
            InventoryBalance.id,
            InventoryBalance.quantity,
            InventoryBalance.version,
        )
        .where(*_key_filter(key))
        .with_for_update()
    )


def order_for_locking(keys) -> list[BalanceKey]:
    return sorted(set(keys), key=BalanceKey.lock_order)


async def set_lock_timeout(db: AsyncSession, timeout_ms: int):
    """Bound lock waits for the rest of the current transaction."""
    if dialect_name(db) == "postgresql":
        await db.execute(text(f"SET LOCAL lock_timeout = '{int(timeout_ms)}ms'"))


async def lock_balances(
    db: AsyncSession,
    keys: dict[BalanceKey, bool],
    *,
    actor_id: int,
) -> dict[BalanceKey, LockedBalance]:
    """
    Take FOR UPDATE locks on every balance row a movement touches.

    `keys` maps each key to whether it will be credited. Credited keys are
    materialized first with INSERT ... ON CONFLICT DO NOTHING so that the
    unique key index arbitrates concurrent first-time creates. Debit-only
    keys are locked when present; absence reads as zero.

    Keys are visited in lock_order() so two movements over the same pair of
    keys always queue in the same order, whatever their direction.
    """
    locked: dict[BalanceKey, LockedBalance] = {}

    for key in order_for_locking(keys):
        if keys[key]:
            await db.execute(
                insert_ignore(
                    db,
                    InventoryBalance,
                    {
                        "tenant_id": key.tenant_id,
                        "location_id": key.location_id,
                        "supply_id": key.supply_id,
                        "lot_id": key.lot_id,
                        "quantity": ZERO,
                        "version": 0,
                        "created_by_id": actor_id,
                    },
                )
            )

        row = (await db.execute(build_lock_statement(key))).first()

        if row is None:
            locked[key] = LockedBalance(key=key, id=None, quantity=ZERO, version=0)
        else:
            locked[key] = LockedBalance(
                key=key,
                id=row.id,
                quantity=to_quantity(row.quantity),
                version=row.version,
            )

        logger.debug(
            "[BAL] locked",
            extra={
                "location_id": key.location_id,
                "supply_id": key.supply_id,
                "lot_id": key.lot_id,
                "exists": row is not None,
            },
        )

    return locked


# =====================================================
# UPDATER
# =====================================================
async def apply_balance_delta(
    db: AsyncSession,
    locked: LockedBalance,
    delta: Decimal,
    *,
    actor_id: int,
) -> InventoryBalance:
    new_quantity = locked.quantity + delta

    if new_quantity < 0 or locked.id is None:
        raise InsufficientStockException(
            {
                "location_id": locked.key.location_id,
                "supply_id": locked.key.supply_id,
                "lot_id": locked.key.lot_id,
                "available": str(locked.quantity),
                "requested": str(-delta),
            }
        )

    if new_quantity > MAX_QUANTITY:
        raise StockConflictException(
            "Balance would exceed the largest storable quantity",
            ErrorCode.BALANCE_LIMIT_EXCEEDED,
            {
                "location_id": locked.key.location_id,
                "supply_id": locked.key.supply_id,
                "lot_id": locked.key.lot_id,
                "available": str(locked.quantity),
                "requested": str(delta),
                "maximum": str(MAX_QUANTITY),
            },
        )

    # Version guard is redundant under the row lock, but keeps the write
    # correct on stores that ignore FOR UPDATE.
    result = await db.execute(
        update(InventoryBalance)
        .where(
            InventoryBalance.id == locked.id,
            InventoryBalance.version == locked.version,
        )
        .values(
            quantity=new_quantity,
            version=InventoryBalance.version + 1,
            updated_by_id=actor_id,
        )
        .returning(InventoryBalance)
        .execution_options(populate_existing=True)
    )
    balance = result.scalar_one_or_none()

    if balance is None:
        raise StockConflictException(
            "Balance was modified by another process",
            ErrorCode.BALANCE_VERSION_CONFLICT,
            {"balance_id": locked.id, "expected_version": locked.version},
        )

    locked.quantity = new_quantity
    locked.version = balance.version
    return balance


# =====================================================
# LIST BALANCES
# =====================================================
async def list_inventory_balances(
    db: AsyncSession,
    tenant_id: int,
    supply_id: int | None,
    location_id: int | None,
    page: int,
    page_size: int,
):
    t0 = time.perf_counter()

    filters = [InventoryBalance.tenant_id == tenant_id]

    if supply_id:
        filters.append(InventoryBalance.supply_id == supply_id)

    if location_id:
        filters.append(InventoryBalance.location_id == location_id)

    stmt = (
        select(
            InventoryBalance,
            Supply.name.label("supply_name"),
            InventoryLocation.code.label("location_code"),
            SupplyLot.lot_number.label("lot_number"),
            func.count().over().label("total"),
        )
        .join(Supply, InventoryBalance.supply_id == Supply.id)
        .join(InventoryLocation, InventoryBalance.location_id == InventoryLocation.id)
        .outerjoin(SupplyLot, InventoryBalance.lot_id == SupplyLot.id)
        .where(*filters)
        .order_by(
            Supply.name.asc(),
            InventoryLocation.code.asc(),
            InventoryBalance.id.asc(),
        )
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    rows = (await db.execute(stmt)).all()

    logger.info(
        "[INV] list_inventory_balances",
        extra={
            "t_total": round(time.perf_counter() - t0, 4),
            "rows": len(rows),
            "page": page,
            "page_size": page_size,
        },
    )

    if not rows:
        return {"total": 0, "items": []}

    items = [
        {
            "id": r.InventoryBalance.id,
            "supply_id": r.InventoryBalance.supply_id,
            "supply_name": r.supply_name,
            "location_id": r.InventoryBalance.location_id,
            "location_code": r.location_code,
            "lot_id": r.InventoryBalance.lot_id,
            "lot_number": r.lot_number,
            "quantity": r.InventoryBalance.quantity,
            "version": r.InventoryBalance.version,
            "updated_at": r.InventoryBalance.updated_at,
        }
        for r in rows
    ]

    return {
        "total": rows[0].total,
        "items": items,
    }
