"""ReviewAssignment SQLAlchemy model

Backs the database implementation of the review-assignment collaborator.
"""

import uuid

from sqlalchemy import CheckConstraint, Column, Text, DateTime, Index, Uuid

from .base import Base, TimestampMixin


class ReviewAssignment(TimestampMixin, Base):
    """Review task handed to the requesting operator after the first upload."""
    __tablename__ = "review_assignment"
    __table_args__ = (
        Index("ix_review_assignment_request_status", "request_id", "status"),
        CheckConstraint("status IN ('OPEN', 'COMPLETED')", name="ck_review_assignment_status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    request_id = Column(Uuid, nullable=False)
    owner_id = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="OPEN")  # OPEN | COMPLETED
    completed_at = Column(DateTime, nullable=True)
