from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class InventoryBalanceTableSchema(BaseModel):
    id: int

    supply_id: int
    supply_name: str

    location_id: int
    location_code: str

    lot_id: Optional[int]
    lot_number: Optional[str]

    quantity: Decimal
    version: int
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class InventoryBalanceListData(BaseModel):
    total: int
    items: List[InventoryBalanceTableSchema]


class InventoryBalanceListResponse(BaseModel):
    message: str
    data: InventoryBalanceListData
