"""Expiration sweep - force-expires requests whose token lifetime has passed.

The sweep is a single conditional UPDATE, so overlapping runs are safe: a
request already moved by another run (or by a lazy check) no longer matches
the guard and is not counted twice.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..audit.service import AuditAction, log_audit_event, SYSTEM_ACTOR
from ..domain.requests.request_status import RequestStatus, EXPIRABLE_STATUSES
from ..models.document_request import DocumentRequest
from ..observability.metrics import requests_expired_total
from ..utils.time import utc_now

logger = logging.getLogger(__name__)


def run_expiration_sweep(db: Session, now: Optional[datetime] = None) -> int:
    """Expire every non-terminal request with token_expires_at < now.

    Args:
        db: Database session (committed here)
        now: Sweep reference time, naive UTC (defaults to the current time)

    Returns:
        int: Number of requests expired by this run
    """
    now = now or utc_now()
    started = utc_now()

    stmt = (
        update(DocumentRequest)
        .where(
            DocumentRequest.token_expires_at < now,
            DocumentRequest.status.in_([status.value for status in EXPIRABLE_STATUSES]),
        )
        .values(status=RequestStatus.EXPIRED.value, updated_at=started)
        .execution_options(synchronize_session=False)
    )
    expired_count = db.execute(stmt).rowcount or 0

    if expired_count:
        log_audit_event(
            db,
            action=AuditAction.REQUEST_EXPIRED,
            actor=SYSTEM_ACTOR,
            entity_type="document_request",
            metadata={"trigger": "sweep", "expired_count": expired_count, "cutoff": now.isoformat()},
        )
    db.commit()

    requests_expired_total.labels(trigger="sweep").inc(expired_count)
    logger.info(
        "Expiration sweep completed",
        extra={
            "expired_count": expired_count,
            "trigger": "sweep",
            "duration_seconds": (utc_now() - started).total_seconds(),
        },
    )
    return expired_count
