from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.utils.get_user import Caller, get_current_caller
from app.schemas.inventory.inventory_balance_schemas import InventoryBalanceListResponse
from app.services.inventory.inventory_balance_service import list_inventory_balances

router = APIRouter(prefix="/inventory-balances", tags=["Inventory Balances"])


@router.get("/", response_model=InventoryBalanceListResponse)
async def list_inventory_balances_api(
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),

    supply_id: int | None = Query(None),
    location_id: int | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    return {
        "message": "Inventory balances fetched",
        "data": await list_inventory_balances(
            db,
            tenant_id=caller.tenant_id,
            supply_id=supply_id,
            location_id=location_id,
            page=page,
            page_size=page_size,
        ),
    }
