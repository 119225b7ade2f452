"""Token session validator - the anonymous access gate.

Checks run in a fixed order and stop at the first failure:

    1. token is well formed
    2. a request carries the token
    3. the token has not expired (expires lazily on failure)
    4. the request is open for uploads
    5. the entity type is still configured

Every failure raises the same InvalidOrExpiredTokenError; the specific
reason is logged, never returned.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..audit.service import AuditAction, log_audit_event, SYSTEM_ACTOR
from ..domain.configs.entity_type_config import EntityTypeConfig
from ..domain.configs.registry import ConfigRegistry, config_registry
from ..domain.errors import InvalidOrExpiredTokenError
from ..domain.requests.request_status import (
    RequestStatus,
    PORTAL_OPEN_STATUSES,
    sources_for,
)
from ..domain.requests.tokens import is_well_formed_token, normalize_token
from ..models.document_request import DocumentRequest
from ..observability.metrics import requests_expired_total, token_validations_total
from ..utils.time import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionView:
    """Everything the anonymous party may see about a request.

    Deliberately excludes the originating entity, the recipient contact
    reference, and the exact expiration timestamp.
    """
    display_number: str
    request_date: datetime
    instructions: str
    existing_file_count: int
    max_file_size_bytes: int
    max_files_per_upload: int
    allowed_extensions: Tuple[str, ...]


class TokenSessionValidator:
    """Validate portal tokens.

    Example:
        view = TokenSessionValidator(db).validate(token)
    """

    def __init__(self, db: Session, registry: Optional[ConfigRegistry] = None):
        self.db = db
        self.registry = registry or config_registry

    def validate(self, token: str, now: Optional[datetime] = None) -> SessionView:
        """Validate a token and return the minimal session view.

        Raises:
            InvalidOrExpiredTokenError: On any failed check
        """
        request, config = self.open_session(token, now)
        return SessionView(
            display_number=request.display_number,
            request_date=request.requested_at,
            instructions=request.instructions,
            existing_file_count=request.file_count,
            max_file_size_bytes=config.max_file_size_bytes,
            max_files_per_upload=config.max_files_per_upload,
            allowed_extensions=tuple(sorted(config.allowed_extensions)),
        )

    def open_session(
        self,
        token: str,
        now: Optional[datetime] = None,
    ) -> Tuple[DocumentRequest, EntityTypeConfig]:
        """Run every check and return the request with its configuration.

        Used by the upload handler, which needs the full request row; the
        caller must not disclose anything beyond SessionView.
        """
        now = now or utc_now()

        if not token or not is_well_formed_token(normalize_token(token)):
            self._reject("malformed")

        request = self.db.query(DocumentRequest).filter(
            DocumentRequest.token == normalize_token(token)
        ).first()
        if request is None:
            self._reject("unknown")

        if request.token_expires_at <= now:
            self._expire(request, now)
            self._reject("expired", request)

        if RequestStatus(request.status) not in PORTAL_OPEN_STATUSES:
            self._reject("closed", request)

        config = self.registry.get_config(self.db, request.config_type_id)
        if config is None:
            logger.warning(
                "Portal token for request whose entity type is no longer configured",
                extra={"document_request_id": str(request.id), "type_id": request.config_type_id},
            )
            self._reject("not_configured", request)

        token_validations_total.labels(outcome="valid").inc()
        return request, config

    def _expire(self, request: DocumentRequest, now: datetime) -> None:
        """Lazy expiry; a no-op when the request is already terminal."""
        result = self.db.execute(
            update(DocumentRequest)
            .where(
                DocumentRequest.id == request.id,
                DocumentRequest.status.in_(sources_for(RequestStatus.EXPIRED)),
                DocumentRequest.token_expires_at <= now,
            )
            .values(status=RequestStatus.EXPIRED.value, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            log_audit_event(
                self.db,
                action=AuditAction.REQUEST_EXPIRED,
                actor=SYSTEM_ACTOR,
                entity_type="document_request",
                entity_id=request.id,
                metadata={"trigger": "lazy", "previous_status": request.status},
            )
            requests_expired_total.labels(trigger="lazy").inc()
        self.db.commit()

    def _reject(self, outcome: str, request: Optional[DocumentRequest] = None) -> None:
        token_validations_total.labels(outcome=outcome).inc()
        logger.info(
            "Portal token rejected",
            extra={
                "outcome": outcome,
                "document_request_id": str(request.id) if request is not None else None,
            },
        )
        raise InvalidOrExpiredTokenError()
