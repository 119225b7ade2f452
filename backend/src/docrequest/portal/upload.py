"""Anonymous upload handler.

An upload re-validates the token from scratch, checks the whole batch against
the configured limits, and only then stores bytes and records artifacts. A
batch is accepted or rejected as a unit.
"""

import logging
from io import BytesIO
from typing import List, Optional, Sequence

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..audit.service import AuditAction, log_audit_event, PORTAL_ACTOR
from ..domain.configs.registry import ConfigRegistry
from ..domain.errors import (
    InvalidOrExpiredTokenError,
    StorageError,
    TransientStoreError,
    UploadLimitExceededError,
    UploadRejectedError,
)
from ..domain.ports.artifact_store_port import ArtifactStorePort, StoredArtifact
from ..domain.ports.assignment_port import ReviewAssignmentPort
from ..domain.requests.request_status import PORTAL_OPEN_STATUSES, RequestStatus
from ..domain.requests.review_status import ReviewStatus, UploadSource
from ..domain.uploads.validation import IncomingFile, decode_file, validate_batch_limits
from ..models.document_request import DocumentRequest
from ..models.file_artifact import FileArtifact
from ..observability.metrics import portal_files_uploaded_total, portal_uploads_total
from ..requests.lifecycle import recompute_file_count
from ..utils.time import utc_now
from .session import TokenSessionValidator

logger = logging.getLogger(__name__)


class AnonymousUploadHandler:
    """Stage files from the anonymous party against a request.

    Example:
        handler = AnonymousUploadHandler(db, artifact_store, assignments)
        count = handler.upload(token, [IncomingFile("scan.pdf", data_b64)])
    """

    def __init__(
        self,
        db: Session,
        artifact_store: ArtifactStorePort,
        assignments: ReviewAssignmentPort,
        registry: Optional[ConfigRegistry] = None,
    ):
        self.db = db
        self.artifact_store = artifact_store
        self.assignments = assignments
        self.validator = TokenSessionValidator(db, registry)

    def upload(self, token: str, files: Sequence[IncomingFile]) -> int:
        """Validate and stage a batch of files.

        Returns:
            int: Number of files accepted

        Raises:
            InvalidOrExpiredTokenError: Token failed validation
            UploadLimitExceededError: Batch violates a configured limit
            UploadRejectedError: Batch could not be processed
            TransientStoreError: Store failed; nothing was recorded
        """
        try:
            request, config = self.validator.open_session(token)
        except InvalidOrExpiredTokenError:
            portal_uploads_total.labels(outcome="invalid_token").inc()
            raise

        try:
            validate_batch_limits(files, config)
            decoded = [decode_file(incoming, config) for incoming in files]
        except UploadLimitExceededError as e:
            portal_uploads_total.labels(outcome="limit_exceeded").inc()
            logger.info(
                "Upload batch over limit",
                extra={"document_request_id": str(request.id), "limit": e.limit},
            )
            raise
        except UploadRejectedError:
            portal_uploads_total.labels(outcome="rejected").inc()
            logger.info(
                "Upload batch rejected",
                extra={"document_request_id": str(request.id), "file_count": len(files)},
            )
            raise

        stored: List[StoredArtifact] = []
        try:
            for item in decoded:
                stored_artifact = self.artifact_store.store_file(
                    file=BytesIO(item.content),
                    request_id=request.id,
                    filename=item.file_name,
                    content_type=item.content_type,
                )
                stored.append(stored_artifact)
                self.db.add(FileArtifact(
                    request_id=request.id,
                    file_name=item.file_name,
                    size_bytes=stored_artifact.size_bytes,
                    content_type=item.content_type,
                    sha256=stored_artifact.sha256,
                    storage_key=stored_artifact.storage_key,
                    upload_source=UploadSource.PORTAL_UPLOAD.value,
                    review_status=ReviewStatus.PENDING_REVIEW.value,
                ))
            # Guarded by status and expiry; holds the request row lock until commit
            file_count = recompute_file_count(
                self.db,
                request.id,
                PORTAL_OPEN_STATUSES,
                DocumentRequest.token_expires_at > utc_now(),
            )
            if file_count is None:
                raise InvalidOrExpiredTokenError()

            first_upload = self._mark_files_received(request)
            if first_upload:
                self.assignments.create_review_assignment(request.id, request.requested_by)

            log_audit_event(
                self.db,
                action=AuditAction.FILES_UPLOADED,
                actor=PORTAL_ACTOR,
                entity_type="document_request",
                entity_id=request.id,
                metadata={
                    "uploaded": len(decoded),
                    "file_count": file_count,
                    "first_upload": first_upload,
                },
            )
            self.db.commit()
        except InvalidOrExpiredTokenError:
            self.db.rollback()
            self._discard(stored)
            portal_uploads_total.labels(outcome="invalid_token").inc()
            logger.info(
                "Request left the portal-open statuses during upload",
                extra={"document_request_id": str(request.id)},
            )
            raise
        except (SQLAlchemyError, StorageError) as e:
            self.db.rollback()
            self._discard(stored)
            portal_uploads_total.labels(outcome="store_error").inc()
            logger.error(
                "Upload could not be recorded",
                exc_info=True,
                extra={"document_request_id": str(request.id)},
            )
            raise TransientStoreError(
                "The upload could not be saved. Please try again.",
                details={"reason": type(e).__name__},
            )

        portal_uploads_total.labels(outcome="accepted").inc()
        portal_files_uploaded_total.inc(len(decoded))
        logger.info(
            "Files uploaded through portal",
            extra={
                "document_request_id": str(request.id),
                "display_number": request.display_number,
                "file_count": file_count,
            },
        )
        return len(decoded)

    def _mark_files_received(self, request: DocumentRequest) -> bool:
        """Sent -> Files_Received; a loser just keeps the stored status."""
        now = utc_now()
        result = self.db.execute(
            update(DocumentRequest)
            .where(
                DocumentRequest.id == request.id,
                DocumentRequest.status == RequestStatus.SENT.value,
            )
            .values(
                status=RequestStatus.FILES_RECEIVED.value,
                files_received_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _discard(self, stored: List[StoredArtifact]) -> None:
        for item in stored:
            try:
                self.artifact_store.delete_file(item.storage_key)
            except Exception:
                logger.warning(
                    "Could not delete orphaned upload",
                    exc_info=True,
                    extra={"path": item.storage_key},
                )
