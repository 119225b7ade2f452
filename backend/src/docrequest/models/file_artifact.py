"""FileArtifact and ArtifactLink SQLAlchemy models

A FileArtifact is a file staged against a DocumentRequest by the anonymous
portal. On commit, approved artifacts gain an ArtifactLink to the originating
entity; the request-side ownership is kept for audit.
"""

import uuid

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from .base import Base, one_of
from ..domain.requests.review_status import ReviewStatus, UploadSource
from ..utils.time import utc_now


class FileArtifact(Base):
    """An uploaded file owned by a DocumentRequest.

    Artifacts are soft-deleted (deleted_at) so the audit history survives;
    only non-deleted artifacts count toward DocumentRequest.file_count.
    """
    __tablename__ = "file_artifact"
    __table_args__ = (
        Index("ix_file_artifact_request", "request_id", "deleted_at"),
        CheckConstraint(one_of("review_status", ReviewStatus), name="ck_file_artifact_review_status"),
        CheckConstraint(one_of("upload_source", UploadSource), name="ck_file_artifact_upload_source"),
        CheckConstraint("size_bytes > 0", name="ck_file_artifact_size"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    request_id = Column(
        Uuid,
        ForeignKey("document_request.id", ondelete="RESTRICT"),
        nullable=False,
    )
    file_name = Column(Text, nullable=False)
    size_bytes = Column(BigInteger, nullable=False)
    content_type = Column(Text, nullable=True)
    sha256 = Column(Text, nullable=False)
    storage_key = Column(Text, nullable=False)
    upload_source = Column(Text, nullable=False)
    review_status = Column(Text, nullable=False)
    reviewed_by = Column(Text, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    uploaded_at = Column(DateTime, nullable=False, default=utc_now)
    deleted_at = Column(DateTime, nullable=True)

    request = relationship("DocumentRequest", back_populates="artifacts")
    links = relationship("ArtifactLink", back_populates="artifact")


class ArtifactLink(Base):
    """Link from a committed artifact to its originating entity.

    The unique constraint makes link creation idempotent across commit retries.
    """
    __tablename__ = "artifact_link"
    __table_args__ = (
        UniqueConstraint("artifact_id", "entity_type", "entity_id", name="uq_artifact_link_target"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    artifact_id = Column(
        Uuid,
        ForeignKey("file_artifact.id", ondelete="CASCADE"),
        nullable=False,
    )
    entity_type = Column(Text, nullable=False)
    entity_id = Column(Text, nullable=False)
    linked_at = Column(DateTime, nullable=False, default=utc_now)

    artifact = relationship("FileArtifact", back_populates="links")
