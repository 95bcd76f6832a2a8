from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func


class TimestampMixin:
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )


class TenantMixin:
    @declared_attr
    def tenant_id(cls):
        return Column(Integer, nullable=False, index=True)


class AuditMixin:
    # Users live in the identity service; only their ids are kept here.
    @declared_attr
    def created_by_id(cls):
        return Column(Integer, nullable=True, index=True)

    @declared_attr
    def updated_by_id(cls):
        return Column(Integer, nullable=True)
