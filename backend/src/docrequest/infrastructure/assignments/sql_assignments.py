"""Database-backed review assignments.

Runs on the caller's session so assignments commit or roll back together
with the lifecycle change that triggered them.
"""

from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from ...domain.ports.assignment_port import ReviewAssignmentPort
from ...models.review_assignment import ReviewAssignment
from ...utils.time import utc_now

STATUS_OPEN = "OPEN"
STATUS_COMPLETED = "COMPLETED"


class SqlReviewAssignments(ReviewAssignmentPort):

    def __init__(self, db: Session):
        self.db = db

    def create_review_assignment(self, request_id: UUID, owner_id: str) -> None:
        existing = self.db.query(ReviewAssignment).filter(
            ReviewAssignment.request_id == request_id,
            ReviewAssignment.status == STATUS_OPEN,
        ).first()
        if existing is not None:
            return

        self.db.add(ReviewAssignment(
            request_id=request_id,
            owner_id=owner_id,
            status=STATUS_OPEN,
        ))
        self.db.flush()

    def complete_assignment(self, request_id: UUID) -> None:
        self.db.execute(
            update(ReviewAssignment)
            .where(
                ReviewAssignment.request_id == request_id,
                ReviewAssignment.status == STATUS_OPEN,
            )
            .values(status=STATUS_COMPLETED, completed_at=utc_now())
        )
