from sqlalchemy import Column, Integer, String, JSON, Index
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, TenantMixin


class ActivityEvent(Base, TimestampMixin, TenantMixin):
    """Immutable audit log. APPEND-ONLY. Never updated, never deleted."""

    __tablename__ = "activity_events"

    id = Column(Integer, primary_key=True)
    actor_user_id = Column(Integer, nullable=True, index=True)
    actor_name_snapshot = Column(String(150), nullable=False)
    code = Column(String(60), nullable=False, index=True)
    entity_type = Column(String(60), nullable=False)
    entity_id = Column(String(80), nullable=True)
    message = Column(String, nullable=False)
    payload = Column(JSON, nullable=True)

    __table_args__ = (
        Index("ix_activity_event_tenant_created", "tenant_id", "created_at"),
        Index("ix_activity_event_entity", "entity_type", "entity_id"),
    )

    def __repr__(self):
        return f"<ActivityEvent id={self.id} code={self.code} entity={self.entity_type}:{self.entity_id}>"
