# Catalog (read-only for the stock engine)
from app.models.catalog.supply_models import Supply, SupplyLot, SupplyPresentation
from app.models.catalog.location_models import InventoryLocation

# Inventory
from app.models.inventory.inventory_balance_models import InventoryBalance
from app.models.inventory.stock_movement_models import StockMovement

# Shared
from app.models.shared.sequence_models import TenantSequence

# Support
from app.models.support.activity_event_models import ActivityEvent
