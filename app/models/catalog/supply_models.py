from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, CheckConstraint, Index, UniqueConstraint
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, TenantMixin, AuditMixin
from app.models.base.types import Quantity


class Supply(Base, TimestampMixin, TenantMixin, AuditMixin):
    """Stock-keeping item. Owned by the catalog; read-only for the stock engine."""

    __tablename__ = "supplies"

    id = Column(Integer, primary_key=True)
    code = Column(String(50), nullable=True)
    name = Column(String(255), nullable=False)
    base_unit = Column(String(20), nullable=False, default="unit")
    is_active = Column(Boolean, default=True, nullable=False)
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="uq_supply_tenant_name"),
        Index("ix_supply_tenant_active", "tenant_id", "is_active"),
    )

    def __repr__(self):
        return f"<Supply id={self.id} tenant={self.tenant_id} name={self.name} active={self.is_active}>"


class SupplyLot(Base, TimestampMixin, TenantMixin, AuditMixin):
    __tablename__ = "supply_lots"

    id = Column(Integer, primary_key=True)
    supply_id = Column(Integer, ForeignKey("supplies.id", ondelete="RESTRICT"), nullable=False, index=True)
    lot_number = Column(String(80), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)
    received_at = Column(DateTime(timezone=True), nullable=True)
    vendor_name = Column(String(255), nullable=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "supply_id", "lot_number", name="uq_supply_lot_number"),
    )

    def __repr__(self):
        return f"<SupplyLot id={self.id} supply_id={self.supply_id} lot={self.lot_number}>"


class SupplyPresentation(Base, TimestampMixin, TenantMixin, AuditMixin):
    """Packaging unit for a supply (box of 12 -> multiplier 12)."""

    __tablename__ = "supply_presentations"

    id = Column(Integer, primary_key=True)
    supply_id = Column(Integer, ForeignKey("supplies.id", ondelete="RESTRICT"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    multiplier = Column(Quantity(), nullable=False, default=1)
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        CheckConstraint("multiplier > 0", name="ck_supply_presentation_multiplier_positive"),
        UniqueConstraint("tenant_id", "supply_id", "name", name="uq_supply_presentation_name"),
    )

    def __repr__(self):
        return f"<SupplyPresentation id={self.id} supply_id={self.supply_id} x{self.multiplier}>"
