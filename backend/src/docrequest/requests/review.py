"""Per-file review actions and request rejection.

The first review action on a Files_Received request moves it to
Under_Review; there is no separate "begin review" call.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..audit.service import AuditAction, log_audit_event
from ..domain.errors import (
    ArtifactNotFoundError,
    InvalidStateError,
    RequestValidationFailedError,
)
from ..domain.ports.assignment_port import ReviewAssignmentPort
from ..domain.requests.request_status import (
    EXPIRABLE_STATUSES,
    RequestStatus,
    REVIEWABLE_STATUSES,
    TERMINAL_STATUSES,
)
from ..domain.requests.review_status import ReviewStatus
from ..models.document_request import DocumentRequest
from ..models.file_artifact import FileArtifact
from ..observability.metrics import files_reviewed_total
from ..utils.time import utc_now
from .lifecycle import (
    active_artifacts_query,
    current_status,
    expire_if_due,
    get_request,
    recompute_file_count,
    transition_status,
)

logger = logging.getLogger(__name__)


class ReviewService:
    """Operator review of staged files."""

    def __init__(self, db: Session, assignments: ReviewAssignmentPort):
        self.db = db
        self.assignments = assignments

    def approve_file(self, artifact_id: UUID, reviewer: str) -> FileArtifact:
        """Mark one artifact Approved.

        Raises:
            ArtifactNotFoundError: Unknown or removed artifact
            InvalidStateError: Request is not reviewable or has expired
        """
        artifact = self.get_artifact(artifact_id)
        self._begin_review(artifact.request)

        self._set_review(artifact, ReviewStatus.APPROVED, reviewer)
        log_audit_event(
            self.db,
            action=AuditAction.FILE_APPROVED,
            actor=reviewer,
            entity_type="file_artifact",
            entity_id=artifact.id,
            metadata={"request_id": str(artifact.request_id)},
        )
        self.db.commit()
        self.db.refresh(artifact)

        files_reviewed_total.labels(decision="approved").inc()
        return artifact

    def reject_file(self, artifact_id: UUID, reviewer: str, reason: str) -> FileArtifact:
        """Mark one artifact Rejected with a mandatory reason.

        Raises:
            RequestValidationFailedError: Blank reason
            ArtifactNotFoundError: Unknown or removed artifact
            InvalidStateError: Request is not reviewable or has expired
        """
        if not reason or not reason.strip():
            raise RequestValidationFailedError(
                "A rejection reason is required",
                details={"field": "reason"},
            )

        artifact = self.get_artifact(artifact_id)
        self._begin_review(artifact.request)

        self._set_review(artifact, ReviewStatus.REJECTED, reviewer, reason.strip())
        log_audit_event(
            self.db,
            action=AuditAction.FILE_REJECTED,
            actor=reviewer,
            entity_type="file_artifact",
            entity_id=artifact.id,
            metadata={"request_id": str(artifact.request_id), "reason": reason.strip()},
        )
        self.db.commit()
        self.db.refresh(artifact)

        files_reviewed_total.labels(decision="rejected").inc()
        return artifact

    def approve_pending_files(self, request_id: UUID, reviewer: str) -> int:
        """Approve every Pending_Review artifact of a request.

        Returns:
            int: Number of artifacts approved
        """
        request = get_request(self.db, request_id)
        self._begin_review(request)

        pending = active_artifacts_query(self.db, request.id).filter(
            FileArtifact.review_status == ReviewStatus.PENDING_REVIEW.value
        ).all()
        for artifact in pending:
            self._set_review(artifact, ReviewStatus.APPROVED, reviewer)

        if pending:
            log_audit_event(
                self.db,
                action=AuditAction.FILE_APPROVED,
                actor=reviewer,
                entity_type="document_request",
                entity_id=request.id,
                metadata={"artifact_ids": [str(a.id) for a in pending]},
            )
        self.db.commit()

        files_reviewed_total.labels(decision="approved").inc(len(pending))
        logger.info(
            "Pending files approved",
            extra={"document_request_id": str(request.id), "file_count": len(pending)},
        )
        return len(pending)

    def reject_request(
        self,
        request_id: UUID,
        reviewer: str,
        notes: Optional[str] = None,
    ) -> DocumentRequest:
        """Reject the whole request and close its review assignment.

        Raises:
            RequestNotFoundError: Unknown request
            InvalidStateError: Request is not reviewable or has expired
        """
        request = get_request(self.db, request_id)
        self._begin_review(request)

        if not transition_status(
            self.db,
            request.id,
            RequestStatus.REJECTED,
            review_completed_at=utc_now(),
            review_notes=notes,
        ):
            self.db.rollback()
            self.db.refresh(request)
            raise InvalidStateError(
                f"Request cannot be rejected (status is {request.status})",
                details={"status": request.status},
            )

        self.assignments.complete_assignment(request.id)
        log_audit_event(
            self.db,
            action=AuditAction.REQUEST_REJECTED,
            actor=reviewer,
            entity_type="document_request",
            entity_id=request.id,
            metadata={"notes": notes},
        )
        self.db.commit()
        self.db.refresh(request)

        logger.info(
            "Document request rejected",
            extra={"document_request_id": str(request.id), "display_number": request.display_number},
        )
        return request

    def remove_file(self, artifact_id: UUID, actor: str) -> DocumentRequest:
        """Soft-delete an artifact of a non-terminal request.

        Raises:
            ArtifactNotFoundError: Unknown or already removed artifact
            InvalidStateError: Request is terminal or has expired
        """
        artifact = self.get_artifact(artifact_id)
        request = artifact.request

        if expire_if_due(self.db, request):
            raise InvalidStateError("Request has expired", details={"status": request.status})
        if current_status(request) in TERMINAL_STATUSES:
            raise InvalidStateError(
                f"Files cannot be removed (status is {request.status})",
                details={"status": request.status},
            )

        artifact.deleted_at = utc_now()
        file_count = recompute_file_count(self.db, request.id, EXPIRABLE_STATUSES)  # any non-terminal status
        if file_count is None:
            self.db.rollback()
            self.db.refresh(request)
            raise InvalidStateError(
                f"Files cannot be removed (status is {request.status})",
                details={"status": request.status},
            )
        log_audit_event(
            self.db,
            action=AuditAction.FILE_REMOVED,
            actor=actor,
            entity_type="file_artifact",
            entity_id=artifact.id,
            metadata={"request_id": str(request.id), "file_count": file_count},
        )
        self.db.commit()
        self.db.refresh(request)

        files_reviewed_total.labels(decision="removed").inc()
        return request

    def get_artifact(self, artifact_id: UUID) -> FileArtifact:
        """Load an artifact that has not been removed."""
        artifact = self.db.get(FileArtifact, artifact_id)
        if artifact is None or artifact.deleted_at is not None:
            raise ArtifactNotFoundError(
                f"File {artifact_id} not found",
                details={"artifact_id": str(artifact_id)},
            )
        return artifact

    def _begin_review(self, request: DocumentRequest) -> None:
        """Check the request is reviewable, entering Under_Review if needed."""
        if expire_if_due(self.db, request):
            raise InvalidStateError("Request has expired", details={"status": request.status})

        status = current_status(request)
        if status not in REVIEWABLE_STATUSES:
            raise InvalidStateError(
                f"Files cannot be reviewed (status is {status.value})",
                details={"status": status.value},
            )

        if status == RequestStatus.FILES_RECEIVED:
            # Losing means another reviewer got there first
            transition_status(self.db, request.id, RequestStatus.UNDER_REVIEW)

    def _set_review(
        self,
        artifact: FileArtifact,
        review_status: ReviewStatus,
        reviewer: str,
        reason: Optional[str] = None,
    ) -> None:
        artifact.review_status = review_status.value
        artifact.reviewed_by = reviewer
        artifact.reviewed_at = utc_now()
        artifact.rejection_reason = reason
