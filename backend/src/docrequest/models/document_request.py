"""DocumentRequest SQLAlchemy model

DocumentRequest is the aggregate root of an external document request. It
carries the portal token, lifecycle status, and review outcome. Status is
only ever changed through conditional UPDATEs guarded by the current status.
"""

import uuid

from sqlalchemy import CheckConstraint, Column, Text, Integer, DateTime, Index, Uuid
from sqlalchemy.orm import relationship

from .base import Base, one_of
from ..domain.requests.request_status import RequestStatus
from ..utils.time import utc_now


class DocumentRequest(Base):
    """A request for documents sent to an external recipient.

    The token is unique, stored lowercase, and never reused. file_count is a
    cache of the number of non-deleted FileArtifacts and is always recomputed
    from the artifact table, never taken from a caller.
    """
    __tablename__ = "document_request"
    __table_args__ = (
        Index("ux_document_request_token", "token", unique=True),
        Index("ix_document_request_status_expires", "status", "token_expires_at"),
        Index("ix_document_request_originating", "originating_type", "originating_id"),
        CheckConstraint(one_of("status", RequestStatus), name="ck_document_request_status"),
        CheckConstraint("file_count >= 0", name="ck_document_request_file_count"),
        CheckConstraint("token = lower(token)", name="ck_document_request_token_lower"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    display_number = Column(Text, nullable=False, unique=True)
    token = Column(Text, nullable=False)
    token_expires_at = Column(DateTime, nullable=False)
    status = Column(Text, nullable=False)
    instructions = Column(Text, nullable=False)
    internal_notes = Column(Text, nullable=True)
    originating_type = Column(Text, nullable=False)
    originating_id = Column(Text, nullable=False)
    recipient_email = Column(Text, nullable=False)
    recipient_name = Column(Text, nullable=False)
    recipient_ref = Column(Text, nullable=True)
    requested_by = Column(Text, nullable=False)
    requested_at = Column(DateTime, nullable=False, default=utc_now)
    files_received_at = Column(DateTime, nullable=True)
    review_completed_at = Column(DateTime, nullable=True)
    review_notes = Column(Text, nullable=True)
    file_count = Column(Integer, nullable=False, default=0)
    config_type_id = Column(Text, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    artifacts = relationship(
        "FileArtifact",
        back_populates="request",
        order_by="FileArtifact.uploaded_at",
    )


class RequestNumber(Base):
    """Allocator for human-readable request numbers (DR-000001, ...).

    One row is inserted per request; the autoincrement key is the sequence.
    """
    __tablename__ = "document_request_number"

    id = Column(Integer, primary_key=True, autoincrement=True)
    allocated_at = Column(DateTime, nullable=False, default=utc_now)
