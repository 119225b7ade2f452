"""FastAPI dependencies wiring services to their collaborators.

Tests override the collaborator providers (get_record_access,
get_notification_sender, get_artifact_store) and get_db; the service
providers then pick the overrides up.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from .config import get_settings
from .database import get_db
from .domain.ports.artifact_store_port import ArtifactStorePort
from .domain.ports.assignment_port import ReviewAssignmentPort
from .domain.ports.notification_port import NotificationPort
from .domain.ports.record_access_port import RecordAccessPort
from .infrastructure.assignments.sql_assignments import SqlReviewAssignments
from .infrastructure.notifications.celery_sender import CeleryNotificationSender
from .infrastructure.records.sql_records import SqlRecordAccess
from .infrastructure.storage.s3_artifact_store import S3ArtifactStore
from .infrastructure.storage.storage_config import load_storage_config
from .portal.session import TokenSessionValidator
from .portal.upload import AnonymousUploadHandler
from .requests.review import ReviewService
from .requests.service import DocumentRequestService

logger = logging.getLogger(__name__)

# Storage adapter singleton (initialized once)
_artifact_store: Optional[S3ArtifactStore] = None


def get_record_access(db: Session = Depends(get_db)) -> RecordAccessPort:
    return SqlRecordAccess(db)


def get_assignments(db: Session = Depends(get_db)) -> ReviewAssignmentPort:
    return SqlReviewAssignments(db)


def get_notification_sender() -> NotificationPort:
    from .celery_app import celery_app

    return CeleryNotificationSender(celery_app, get_settings().NOTIFICATION_TASK_NAME)


def get_artifact_store() -> ArtifactStorePort:
    """Get or create the artifact store singleton.

    Raises:
        HTTPException 503: If storage configuration is invalid
    """
    global _artifact_store

    if _artifact_store is None:
        try:
            _artifact_store = S3ArtifactStore.from_config(load_storage_config())
        except ValueError as e:
            logger.error(f"Failed to initialize artifact store: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Storage is not available",
            )

    return _artifact_store


def get_request_service(
    db: Session = Depends(get_db),
    record_access: RecordAccessPort = Depends(get_record_access),
    notifications: NotificationPort = Depends(get_notification_sender),
    assignments: ReviewAssignmentPort = Depends(get_assignments),
) -> DocumentRequestService:
    return DocumentRequestService(db, record_access, notifications, assignments)


def get_review_service(
    db: Session = Depends(get_db),
    assignments: ReviewAssignmentPort = Depends(get_assignments),
) -> ReviewService:
    return ReviewService(db, assignments)


def get_token_validator(db: Session = Depends(get_db)) -> TokenSessionValidator:
    return TokenSessionValidator(db)


def get_upload_handler(
    db: Session = Depends(get_db),
    artifact_store: ArtifactStorePort = Depends(get_artifact_store),
    assignments: ReviewAssignmentPort = Depends(get_assignments),
) -> AnonymousUploadHandler:
    return AnonymousUploadHandler(db, artifact_store, assignments)
