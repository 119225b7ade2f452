"""AuditLog SQLAlchemy model"""

import uuid

from sqlalchemy import Column, Text, DateTime, Index, Uuid

from .base import Base, PortableJSONB
from ..utils.time import utc_now


class AuditLog(Base):
    """AuditLog model for immutable lifecycle event logging.

    Records every document request state change and review decision.
    Entries are append-only and should never be updated or deleted.
    """
    __tablename__ = "audit_log"
    __table_args__ = (
        Index("ix_audit_log_entity", "entity_type", "entity_id"),
        Index("ix_audit_log_created_at", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    actor = Column(Text, nullable=True)  # operator id, "portal" or "system"
    action = Column(Text, nullable=False)
    entity_type = Column(Text, nullable=True)
    entity_id = Column(Text, nullable=True)
    metadata_json = Column(PortableJSONB, nullable=True)
    ip_address = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)
