import logging
from decimal import Decimal
from enum import Enum

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.activity_codes import ActivityCode
from app.constants.error_codes import ErrorCode
from app.constants.stock_movement_type import StockMovementType
from app.core.config import MOVEMENT_SEQUENCE_KEY, STOCK_LOCK_TIMEOUT_MS
from app.core.exceptions import AppException, StockNotFoundException, StockValidationException
from app.models.inventory.inventory_balance_models import InventoryBalance
from app.models.inventory.stock_movement_models import StockMovement
from app.schemas.inventory.stock_movement_schemas import (
    BalanceSnapshotSchema,
    MovementResultSchema,
    StockMovementCreateSchema,
    StockMovementOutSchema,
)
from app.services.inventory.catalog_lookup_service import resolve_movement_entities
from app.services.inventory.inventory_balance_service import (
    BalanceKey,
    apply_balance_delta,
    lock_balances,
    set_lock_timeout,
)
from app.services.inventory.stock_movement_rules import (
    FROM_SIDE,
    TO_SIDE,
    decreases_stock,
    signed_deltas,
    validate_movement_request,
)
from app.services.shared.sequence_service import current_year_utc, next_sequence
from app.utils.activity_helpers import emit_activity
from app.utils.decimal_utils import convert_presentation, to_quantity
from app.utils.get_user import Caller

logger = logging.getLogger(__name__)


class MovementStage(str, Enum):
    VALIDATE = "VALIDATE"
    RESOLVE_ENTITIES = "RESOLVE_ENTITIES"
    LOCK_BALANCES = "LOCK_BALANCES"
    UPDATE_BALANCES = "UPDATE_BALANCES"
    ALLOCATE_SEQUENCE = "ALLOCATE_SEQUENCE"
    RECORD_MOVEMENT = "RECORD_MOVEMENT"
    COMMIT = "COMMIT"


# =====================================================
# RECORDER
# =====================================================
async def record_stock_movement(
    db: AsyncSession,
    *,
    payload: StockMovementCreateSchema,
    tenant_id: int,
    actor_id: int,
    number: str,
    number_year: int,
    quantity: Decimal,
    presentation_quantity: Decimal | None,
) -> StockMovement:
    movement = StockMovement(
        tenant_id=tenant_id,
        number=number,
        number_year=number_year,
        type=payload.type,
        supply_id=payload.supply_id,
        lot_id=payload.lot_id,
        from_location_id=payload.from_location_id,
        to_location_id=payload.to_location_id,
        quantity=quantity,
        presentation_id=payload.presentation_id,
        presentation_quantity=presentation_quantity,
        reference_type=payload.reference_type.strip() if payload.reference_type else None,
        reference_id=payload.reference_id.strip() if payload.reference_id else None,
        note=payload.note.strip() if payload.note else None,
        created_by_id=actor_id,
    )

    db.add(movement)
    await db.flush()
    await db.refresh(movement)
    return movement


# =====================================================
# ENGINE (NO COMMIT HERE)
# =====================================================
async def apply_stock_movement(
    db: AsyncSession,
    payload: StockMovementCreateSchema,
    caller: Caller,
) -> MovementResultSchema:
    """
    Run one movement inside the caller's transaction.

    VALIDATE -> RESOLVE_ENTITIES -> LOCK_BALANCES -> UPDATE_BALANCES ->
    ALLOCATE_SEQUENCE -> RECORD_MOVEMENT. Any exception leaves partial
    writes in the session; the caller must roll back.
    """
    tenant_id = caller.tenant_id
    stage = MovementStage.VALIDATE
    log_ctx = {
        "tenant_id": tenant_id,
        "movement_type": payload.type.value,
        "supply_id": payload.supply_id,
    }

    try:
        # ------------------------------------
        # 1. Validate request shape
        # ------------------------------------
        quantity = validate_movement_request(payload)

        # ------------------------------------
        # 2. Resolve tenant-bound entities
        # ------------------------------------
        stage = MovementStage.RESOLVE_ENTITIES
        entities = await resolve_movement_entities(
            db,
            payload,
            tenant_id,
            decreases_stock=decreases_stock(payload),
        )

        presentation_quantity = None
        if entities.presentation is not None:
            presentation_quantity = to_quantity(payload.presentation_quantity)
            try:
                derived = convert_presentation(
                    presentation_quantity, entities.presentation.multiplier
                )
            except ValueError as e:
                raise StockValidationException(
                    str(e),
                    ErrorCode.MOVEMENT_INVALID_QUANTITY,
                    "presentation_quantity",
                )
            if derived <= 0:
                raise StockValidationException(
                    "presentation_quantity converts to a zero base quantity",
                    ErrorCode.MOVEMENT_INVALID_QUANTITY,
                    "presentation_quantity",
                )
            if quantity is not None and quantity != derived:
                raise StockValidationException(
                    f"quantity {quantity} does not match presentation total {derived}",
                    ErrorCode.MOVEMENT_INVALID_PRESENTATION,
                    "quantity",
                )
            quantity = derived

        deltas = signed_deltas(
            payload.type,
            payload.from_location_id,
            payload.to_location_id,
            quantity,
        )
        keys = {
            d.side: BalanceKey(tenant_id, d.location_id, payload.supply_id, payload.lot_id)
            for d in deltas
        }

        # ------------------------------------
        # 3. Lock balance rows (canonical order)
        # ------------------------------------
        stage = MovementStage.LOCK_BALANCES
        await set_lock_timeout(db, STOCK_LOCK_TIMEOUT_MS)
        locked = await lock_balances(
            db,
            {keys[d.side]: d.delta > 0 for d in deltas},
            actor_id=caller.user_id,
        )

        # ------------------------------------
        # 4. Apply deltas
        # ------------------------------------
        stage = MovementStage.UPDATE_BALANCES
        snapshots: dict[str, InventoryBalance] = {}
        for d in deltas:
            snapshots[d.side] = await apply_balance_delta(
                db,
                locked[keys[d.side]],
                d.delta,
                actor_id=caller.user_id,
            )

        # ------------------------------------
        # 5. Allocate movement number
        # ------------------------------------
        stage = MovementStage.ALLOCATE_SEQUENCE
        year = current_year_utc()
        _, number = await next_sequence(
            db,
            tenant_id=tenant_id,
            year=year,
            key=MOVEMENT_SEQUENCE_KEY,
        )

        # ------------------------------------
        # 6. Insert ledger entry
        # ------------------------------------
        stage = MovementStage.RECORD_MOVEMENT
        movement = await record_stock_movement(
            db,
            payload=payload,
            tenant_id=tenant_id,
            actor_id=caller.user_id,
            number=number,
            number_year=year,
            quantity=quantity,
            presentation_quantity=presentation_quantity,
        )

    except AppException as exc:
        logger.warning(
            "[MOVE] aborted",
            extra={**log_ctx, "stage": stage.value, "error_code": exc.error_code.value},
        )
        raise

    except Exception:
        logger.exception(
            "[MOVE] aborted by unexpected error",
            extra={**log_ctx, "stage": stage.value},
        )
        raise

    from_balance = snapshots.get(FROM_SIDE)
    to_balance = snapshots.get(TO_SIDE)

    logger.debug(
        "[MOVE] recorded",
        extra={**log_ctx, "number": movement.number, "movement_id": movement.id},
    )

    return MovementResultSchema(
        movement=StockMovementOutSchema.model_validate(movement),
        from_balance=BalanceSnapshotSchema.model_validate(from_balance) if from_balance else None,
        to_balance=BalanceSnapshotSchema.model_validate(to_balance) if to_balance else None,
    )


# =====================================================
# CREATE (OWNS THE TRANSACTION)
# =====================================================
async def create_stock_movement(
    db: AsyncSession,
    payload: StockMovementCreateSchema,
    caller: Caller,
) -> MovementResultSchema:
    try:
        result = await apply_stock_movement(db, payload, caller)
        movement = result.movement

        await emit_activity(
            db,
            tenant_id=caller.tenant_id,
            user_id=caller.user_id,
            username=caller.username,
            code=ActivityCode.STOCK_MOVEMENT_CREATED,
            entity_type="StockMovement",
            entity_id=str(movement.id),
            payload=result.model_dump(mode="json"),
            actor_name=caller.username,
            movement_type=movement.type.value,
            number=movement.number,
            quantity=movement.quantity,
            supply_id=movement.supply_id,
            from_location=movement.from_location_id or "-",
            to_location=movement.to_location_id or "-",
        )

        await db.commit()

    except Exception:
        await db.rollback()
        raise

    logger.info(
        "[MOVE] committed",
        extra={
            "tenant_id": caller.tenant_id,
            "movement_id": result.movement.id,
            "number": result.movement.number,
            "stage": MovementStage.COMMIT.value,
        },
    )
    return result


# =====================================================
# READ
# =====================================================
async def get_stock_movement(
    db: AsyncSession,
    tenant_id: int,
    movement_id: int,
) -> StockMovementOutSchema:
    movement = await db.scalar(
        select(StockMovement).where(
            StockMovement.id == movement_id,
            StockMovement.tenant_id == tenant_id,
        )
    )
    if not movement:
        raise StockNotFoundException(
            "Stock movement not found",
            ErrorCode.MOVEMENT_NOT_FOUND,
            entity="movement_id",
            entity_id=movement_id,
        )
    return StockMovementOutSchema.model_validate(movement)


async def list_stock_movements(
    db: AsyncSession,
    *,
    tenant_id: int,
    supply_id: int | None,
    location_id: int | None,
    movement_type: StockMovementType | None,
    page: int,
    page_size: int,
):
    filters = [StockMovement.tenant_id == tenant_id]

    if supply_id:
        filters.append(StockMovement.supply_id == supply_id)

    if location_id:
        filters.append(
            or_(
                StockMovement.from_location_id == location_id,
                StockMovement.to_location_id == location_id,
            )
        )

    if movement_type:
        filters.append(StockMovement.type == movement_type)

    total = await db.scalar(
        select(func.count()).select_from(StockMovement).where(*filters)
    )

    rows = (
        await db.execute(
            select(StockMovement)
            .where(*filters)
            .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
    ).scalars().all()

    return total or 0, [StockMovementOutSchema.model_validate(m) for m in rows]


# =====================================================
# LEDGER REPLAY
# =====================================================
async def replay_balance_quantity(db: AsyncSession, key: BalanceKey) -> Decimal:
    """Sum the signed effects of every movement on `key`, oldest first."""
    lot_filter = (
        StockMovement.lot_id.is_(None)
        if key.lot_id is None
        else StockMovement.lot_id == key.lot_id
    )

    rows = (
        await db.execute(
            select(StockMovement)
            .where(
                StockMovement.tenant_id == key.tenant_id,
                StockMovement.supply_id == key.supply_id,
                lot_filter,
                or_(
                    StockMovement.from_location_id == key.location_id,
                    StockMovement.to_location_id == key.location_id,
                ),
            )
            .order_by(StockMovement.created_at.asc(), StockMovement.id.asc())
        )
    ).scalars().all()

    total = Decimal("0")
    for m in rows:
        for d in signed_deltas(m.type, m.from_location_id, m.to_location_id, to_quantity(m.quantity)):
            if d.location_id == key.location_id:
                total += d.delta
    return to_quantity(total)
