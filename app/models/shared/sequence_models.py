from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from app.core.db import Base


class TenantSequence(Base):
    """Last issued number per (tenant, year, key)."""

    __tablename__ = "tenant_sequences"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    year = Column(Integer, nullable=False)
    key = Column(String(20), nullable=False)
    current_value = Column(Integer, nullable=False, default=0)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "year", "key", name="uq_tenant_sequence_scope"),
    )

    def __repr__(self):
        return f"<TenantSequence tenant={self.tenant_id} {self.key}{self.year} value={self.current_value}>"
