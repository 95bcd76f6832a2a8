from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from app.constants.stock_movement_type import StockMovementType


# -------------------------
# REQUEST
# -------------------------
class StockMovementCreateSchema(BaseModel):
    """Shape only. Per-type rules are enforced by the movement validator."""

    type: StockMovementType
    supply_id: int
    lot_id: Optional[int] = None

    from_location_id: Optional[int] = None
    to_location_id: Optional[int] = None

    # Base units. May be omitted when a presentation is given.
    quantity: Optional[Decimal] = None
    presentation_id: Optional[int] = None
    presentation_quantity: Optional[Decimal] = None

    reference_type: Optional[str] = None
    reference_id: Optional[str] = None
    note: Optional[str] = None


# -------------------------
# RESPONSE ROWS
# -------------------------
class StockMovementOutSchema(BaseModel):
    id: int
    number: str
    number_year: int
    type: StockMovementType

    supply_id: int
    lot_id: Optional[int]
    from_location_id: Optional[int]
    to_location_id: Optional[int]

    quantity: Decimal
    presentation_id: Optional[int]
    presentation_quantity: Optional[Decimal]

    reference_type: Optional[str]
    reference_id: Optional[str]
    note: Optional[str]

    created_by_id: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True


class BalanceSnapshotSchema(BaseModel):
    id: int
    location_id: int
    supply_id: int
    lot_id: Optional[int]
    quantity: Decimal
    version: int
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class MovementResultSchema(BaseModel):
    movement: StockMovementOutSchema
    from_balance: Optional[BalanceSnapshotSchema] = None
    to_balance: Optional[BalanceSnapshotSchema] = None


# -------------------------
# ENVELOPES
# -------------------------
class StockMovementResponse(BaseModel):
    message: str
    data: MovementResultSchema


class StockMovementDetailResponse(BaseModel):
    message: str
    data: StockMovementOutSchema


class StockMovementListResponse(BaseModel):
    message: str
    total: int
    data: List[StockMovementOutSchema]
