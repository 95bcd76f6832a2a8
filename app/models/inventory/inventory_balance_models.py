from sqlalchemy import Column, Integer, ForeignKey, CheckConstraint, Index, text
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, TenantMixin, AuditMixin
from app.models.base.types import Quantity


class InventoryBalance(Base, TimestampMixin, TenantMixin, AuditMixin):
    """Materialized on-hand quantity per (tenant, location, supply, lot). Written only by the movement engine."""

    __tablename__ = "inventory_balances"

    id = Column(Integer, primary_key=True)
    location_id = Column(Integer, ForeignKey("inventory_locations.id", ondelete="RESTRICT"), nullable=False, index=True)
    supply_id = Column(Integer, ForeignKey("supplies.id", ondelete="RESTRICT"), nullable=False, index=True)
    lot_id = Column(Integer, ForeignKey("supply_lots.id", ondelete="RESTRICT"), nullable=True, index=True)
    quantity = Column(Quantity(), nullable=False, default=0)
    version = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_inventory_balance_quantity_non_negative"),
        # NULL lot_id never collides in a plain unique index, so the key is split in two.
        Index(
            "uq_inventory_balance_key_lot",
            "tenant_id", "location_id", "supply_id", "lot_id",
            unique=True,
            postgresql_where=text("lot_id IS NOT NULL"),
            sqlite_where=text("lot_id IS NOT NULL"),
        ),
        Index(
            "uq_inventory_balance_key_no_lot",
            "tenant_id", "location_id", "supply_id",
            unique=True,
            postgresql_where=text("lot_id IS NULL"),
            sqlite_where=text("lot_id IS NULL"),
        ),
    )

    def __repr__(self):
        return (
            f"<InventoryBalance id={self.id} location_id={self.location_id} "
            f"supply_id={self.supply_id} lot_id={self.lot_id} qty={self.quantity} v={self.version}>"
        )
