from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.error_codes import ErrorCode
from app.core.exceptions import (
    StockConflictException,
    StockNotFoundException,
    StockValidationException,
)
from app.models.catalog.location_models import InventoryLocation
from app.models.catalog.supply_models import Supply, SupplyLot, SupplyPresentation
from app.schemas.inventory.stock_movement_schemas import StockMovementCreateSchema


@dataclass
class ResolvedEntities:
    supply: Supply
    from_location: InventoryLocation | None
    to_location: InventoryLocation | None
    lot: SupplyLot | None
    presentation: SupplyPresentation | None


def start_of_today_utc() -> datetime:
    now = datetime.now(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def _get_location(
    db: AsyncSession,
    tenant_id: int,
    location_id: int,
    *,
    must_be_active: bool,
    field: str,
) -> InventoryLocation:
    filters = [
        InventoryLocation.id == location_id,
        InventoryLocation.tenant_id == tenant_id,
    ]
    if must_be_active:
        filters.append(InventoryLocation.is_active.is_(True))

    location = await db.scalar(select(InventoryLocation).where(*filters))
    if not location:
        raise StockNotFoundException(
            f"Location not found ({field})",
            ErrorCode.LOCATION_NOT_FOUND,
            entity=field,
            entity_id=location_id,
        )
    return location


async def resolve_movement_entities(
    db: AsyncSession,
    payload: StockMovementCreateSchema,
    tenant_id: int,
    *,
    decreases_stock: bool,
    today: datetime | None = None,
) -> ResolvedEntities:
    # -------------------------
    # SUPPLY
    # -------------------------
    supply = await db.scalar(
        select(Supply).where(
            Supply.id == payload.supply_id,
            Supply.tenant_id == tenant_id,
            Supply.is_active.is_(True),
        )
    )
    if not supply:
        raise StockNotFoundException(
            "Supply not found",
            ErrorCode.SUPPLY_NOT_FOUND,
            entity="supply_id",
            entity_id=payload.supply_id,
        )

    # -------------------------
    # LOCATIONS
    # -------------------------
    # A source may be inactive so closing locations can be drained.
    from_location = None
    if payload.from_location_id is not None:
        from_location = await _get_location(
            db, tenant_id, payload.from_location_id,
            must_be_active=False, field="from_location_id",
        )

    to_location = None
    if payload.to_location_id is not None:
        to_location = await _get_location(
            db, tenant_id, payload.to_location_id,
            must_be_active=True, field="to_location_id",
        )

    # -------------------------
    # LOT
    # -------------------------
    lot = None
    if payload.lot_id is not None:
        lot = await db.scalar(
            select(SupplyLot).where(
                SupplyLot.id == payload.lot_id,
                SupplyLot.tenant_id == tenant_id,
                SupplyLot.supply_id == supply.id,
            )
        )
        if not lot:
            raise StockNotFoundException(
                "Lot not found",
                ErrorCode.LOT_NOT_FOUND,
                entity="lot_id",
                entity_id=payload.lot_id,
            )

        cutoff = today or start_of_today_utc()
        if decreases_stock and lot.expires_at and _as_utc(lot.expires_at) < cutoff:
            raise StockConflictException(
                "Lot is expired",
                ErrorCode.LOT_EXPIRED,
                {
                    "lot_id": lot.id,
                    "lot_number": lot.lot_number,
                    "expires_at": _as_utc(lot.expires_at).isoformat(),
                },
            )

    # -------------------------
    # PRESENTATION
    # -------------------------
    presentation = None
    if payload.presentation_id is not None:
        presentation = await db.scalar(
            select(SupplyPresentation).where(
                SupplyPresentation.id == payload.presentation_id,
                SupplyPresentation.tenant_id == tenant_id,
                SupplyPresentation.supply_id == supply.id,
                SupplyPresentation.is_active.is_(True),
            )
        )
        if not presentation:
            raise StockValidationException(
                "Invalid presentation_id for this supply",
                ErrorCode.MOVEMENT_INVALID_PRESENTATION,
                "presentation_id",
            )

    return ResolvedEntities(
        supply=supply,
        from_location=from_location,
        to_location=to_location,
        lot=lot,
        presentation=presentation,
    )
