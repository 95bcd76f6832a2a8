from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.constants.stock_movement_type import StockMovementType
from app.utils.get_user import Caller, get_current_caller

from app.schemas.inventory.stock_movement_schemas import (
    StockMovementCreateSchema,
    StockMovementResponse,
    StockMovementDetailResponse,
    StockMovementListResponse,
)

from app.services.inventory.stock_movement_service import (
    create_stock_movement,
    get_stock_movement,
    list_stock_movements,
)

router = APIRouter(prefix="/stock-movements", tags=["Stock Movements"])


@router.post(
    "/",
    response_model=StockMovementResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_stock_movement_api(
    payload: StockMovementCreateSchema,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    return {
        "message": "Stock movement recorded",
        "data": await create_stock_movement(db, payload, caller),
    }


@router.get("/{movement_id}", response_model=StockMovementDetailResponse)
async def get_stock_movement_api(
    movement_id: int,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    return {
        "message": "Stock movement fetched",
        "data": await get_stock_movement(db, caller.tenant_id, movement_id),
    }


@router.get("/", response_model=StockMovementListResponse)
async def list_stock_movements_api(
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),

    supply_id: int | None = Query(None),
    location_id: int | None = Query(None),
    type: StockMovementType | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    total, data = await list_stock_movements(
        db,
        tenant_id=caller.tenant_id,
        supply_id=supply_id,
        location_id=location_id,
        movement_type=type,
        page=page,
        page_size=page_size,
    )

    return {
        "message": "Stock movements fetched",
        "total": total,
        "data": data,
    }
