# app/routers/__init__.py

from .inventory.stock_movement_router import router as stock_movement_router
from .inventory.inventory_balance_router import router as inventory_balance_router


__all__ = [
"stock_movement_router",
"inventory_balance_router",
]
