"""Status transitions and derived counters for DocumentRequest.

Every status change goes through transition_status(), a single conditional
UPDATE guarded by the statuses allowed to enter the target. A rowcount of 0
means a concurrent writer moved the request first; callers re-read instead of
retrying blindly.
"""

import logging
from datetime import datetime
from typing import Any, Iterable, Optional
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from ..audit.service import AuditAction, log_audit_event, SYSTEM_ACTOR
from ..domain.errors import RequestNotFoundError
from ..domain.requests.request_status import (
    RequestStatus,
    TERMINAL_STATUSES,
    sources_for,
)
from ..models.document_request import DocumentRequest
from ..models.file_artifact import FileArtifact
from ..observability.metrics import requests_expired_total
from ..utils.time import utc_now

logger = logging.getLogger(__name__)


def current_status(request: DocumentRequest) -> RequestStatus:
    return RequestStatus(request.status)


def get_request(db: Session, request_id: UUID) -> DocumentRequest:
    """Load a request or raise RequestNotFoundError."""
    request = db.get(DocumentRequest, request_id)
    if request is None:
        raise RequestNotFoundError(
            f"Document request {request_id} not found",
            details={"request_id": str(request_id)},
        )
    return request


def transition_status(
    db: Session,
    request_id: UUID,
    to_status: RequestStatus,
    *conditions: Any,
    **values: Any,
) -> bool:
    """Move a request to to_status if its stored status allows it.

    Args:
        db: Database session (not committed here)
        request_id: Request to move
        to_status: Target status
        *conditions: Extra WHERE clauses (e.g. an expiry guard)
        **values: Extra columns to set in the same statement

    Returns:
        bool: True if this call performed the transition
    """
    stmt = (
        update(DocumentRequest)
        .where(
            DocumentRequest.id == request_id,
            DocumentRequest.status.in_(sources_for(to_status)),
            *conditions,
        )
        .values(status=RequestStatus(to_status).value, updated_at=utc_now(), **values)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    return result.rowcount == 1


def expire_if_due(
    db: Session,
    request: DocumentRequest,
    now: Optional[datetime] = None,
) -> bool:
    """Lazily expire a request whose token lifetime has passed.

    Commits the expiry on its own so it survives a failure of the operation
    that triggered the check.

    Returns:
        bool: True if the request is Expired after the check
    """
    now = now or utc_now()
    status = current_status(request)

    if status == RequestStatus.EXPIRED:
        return True
    if status in TERMINAL_STATUSES or request.token_expires_at > now:
        return False

    won = transition_status(
        db,
        request.id,
        RequestStatus.EXPIRED,
        DocumentRequest.token_expires_at <= now,
    )
    if won:
        log_audit_event(
            db,
            action=AuditAction.REQUEST_EXPIRED,
            actor=SYSTEM_ACTOR,
            entity_type="document_request",
            entity_id=request.id,
            metadata={"trigger": "lazy", "previous_status": status.value},
        )
        requests_expired_total.labels(trigger="lazy").inc()
        logger.info(
            "Request expired lazily",
            extra={"document_request_id": str(request.id), "display_number": request.display_number},
        )
    db.commit()
    db.refresh(request)
    return current_status(request) == RequestStatus.EXPIRED


def active_artifacts_query(db: Session, request_id: UUID):
    return db.query(FileArtifact).filter(
        FileArtifact.request_id == request_id,
        FileArtifact.deleted_at.is_(None),
    )


def claim_request(
    db: Session,
    request_id: UUID,
    statuses: Iterable[RequestStatus],
    *conditions: Any,
) -> bool:
    """Take the request row's write lock if its stored status is in statuses.

    Writers that derive a column from other rows claim first, so concurrent
    writers on one request are serialised behind the row lock.

    Returns:
        bool: False if the request has left statuses (nothing was written)
    """
    result = db.execute(
        update(DocumentRequest)
        .where(
            DocumentRequest.id == request_id,
            DocumentRequest.status.in_([RequestStatus(s).value for s in statuses]),
            *conditions,
        )
        .values(updated_at=utc_now())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def recompute_file_count(
    db: Session,
    request_id: UUID,
    statuses: Iterable[RequestStatus],
    *conditions: Any,
) -> Optional[int]:
    """Set file_count from the non-deleted artifacts of the request.

    Returns:
        Optional[int]: The new count, or None if the request is no longer in
        statuses and the caller must roll back
    """
    db.flush()
    if not claim_request(db, request_id, statuses, *conditions):
        return None

    count = db.query(func.count(FileArtifact.id)).filter(
        FileArtifact.request_id == request_id,
        FileArtifact.deleted_at.is_(None),
    ).scalar() or 0

    db.execute(
        update(DocumentRequest)
        .where(DocumentRequest.id == request_id)
        .values(file_count=count)
        .execution_options(synchronize_session=False)
    )
    return count
