from sqlalchemy import Column, Integer, String, Boolean, Index, UniqueConstraint
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, TenantMixin, AuditMixin


class InventoryLocation(Base, TimestampMixin, TenantMixin, AuditMixin):
    __tablename__ = "inventory_locations"

    id = Column(Integer, primary_key=True)
    code = Column(String(50), nullable=False, index=True)  # business identifier (warehouse, shelf, quarantine...)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_inventory_location_tenant_code"),
        Index("ix_inventory_location_tenant_active", "tenant_id", "is_active"),
    )

    def __repr__(self):
        return f"<InventoryLocation id={self.id} code={self.code} active={self.is_active}>"
