from sqlalchemy import Column, Integer, String, Enum, ForeignKey, CheckConstraint, Index, UniqueConstraint, event
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, TenantMixin, AuditMixin
from app.models.base.types import Quantity
from app.constants.stock_movement_type import StockMovementType


class LedgerImmutableError(RuntimeError):
    pass


class StockMovement(Base, TimestampMixin, TenantMixin, AuditMixin):
    """Immutable ledger entry. APPEND-ONLY. Never updated, never deleted."""

    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True)
    number = Column(String(40), nullable=False)
    number_year = Column(Integer, nullable=False)
    type = Column(Enum(StockMovementType, name="stock_movement_type"), nullable=False, index=True)
    supply_id = Column(Integer, ForeignKey("supplies.id", ondelete="RESTRICT"), nullable=False, index=True)
    lot_id = Column(Integer, ForeignKey("supply_lots.id", ondelete="RESTRICT"), nullable=True, index=True)
    from_location_id = Column(Integer, ForeignKey("inventory_locations.id", ondelete="RESTRICT"), nullable=True, index=True)
    to_location_id = Column(Integer, ForeignKey("inventory_locations.id", ondelete="RESTRICT"), nullable=True, index=True)
    quantity = Column(Quantity(), nullable=False)
    presentation_id = Column(Integer, ForeignKey("supply_presentations.id", ondelete="RESTRICT"), nullable=True)
    presentation_quantity = Column(Quantity(), nullable=True)
    reference_type = Column(String(50), nullable=True)
    reference_id = Column(String(80), nullable=True)
    note = Column(String(500), nullable=True)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_stock_movement_quantity_positive"),
        CheckConstraint(
            "from_location_id IS NOT NULL OR to_location_id IS NOT NULL",
            name="ck_stock_movement_has_location",
        ),
        UniqueConstraint("tenant_id", "number", name="uq_stock_movement_tenant_number"),
        Index("ix_stock_movement_reference", "reference_type", "reference_id"),
        Index("ix_stock_movement_tenant_created", "tenant_id", "created_at"),
    )

    def __repr__(self):
        return (
            f"<StockMovement id={self.id} number={self.number} type={self.type} "
            f"supply_id={self.supply_id} {self.from_location_id}->{self.to_location_id} qty={self.quantity}>"
        )


@event.listens_for(StockMovement, "before_update")
def _reject_movement_update(mapper, connection, target):
    raise LedgerImmutableError(f"Stock movement {target.id} is append-only and cannot be updated")


@event.listens_for(StockMovement, "before_delete")
def _reject_movement_delete(mapper, connection, target):
    raise LedgerImmutableError(f"Stock movement {target.id} is append-only and cannot be deleted")
