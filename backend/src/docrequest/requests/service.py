"""Document request service - creation, sending, and commit.

The commit is the serialization point of the lifecycle: only the caller that
wins the conditional transition to Approved links files to the originating
entity. Every other caller re-reads and returns the winner's result.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..audit.service import AuditAction, log_audit_event
from ..config import Settings, get_settings
from ..domain.configs.entity_type_config import EntityTypeConfig
from ..domain.configs.registry import ConfigRegistry, config_registry
from ..domain.errors import (
    CommitConflictError,
    InvalidStateError,
    MissingRecipientEmailError,
    RequestValidationFailedError,
    TransientStoreError,
)
from ..domain.ports.assignment_port import ReviewAssignmentPort
from ..domain.ports.notification_port import NotificationMergeFields, NotificationPort
from ..domain.ports.record_access_port import RecordAccessPort
from ..domain.recipients.resolver import RecipientResolver
from ..domain.requests.request_status import RequestStatus, REVIEWABLE_STATUSES
from ..domain.requests.review_status import ReviewStatus
from ..domain.requests.tokens import generate_token
from ..models.document_request import DocumentRequest, RequestNumber
from ..models.file_artifact import ArtifactLink, FileArtifact
from ..observability.metrics import commits_total, document_requests_created_total
from ..utils.time import utc_now
from .lifecycle import (
    active_artifacts_query,
    current_status,
    expire_if_due,
    get_request,
    transition_status,
)

logger = logging.getLogger(__name__)

DISPLAY_NUMBER_FORMAT = "DR-{:06d}"


@dataclass(frozen=True)
class CreatedRequest:
    request_id: UUID
    display_number: str


@dataclass(frozen=True)
class RecipientPreview:
    name: Optional[str]
    email: Optional[str]
    has_email: bool


@dataclass(frozen=True)
class CommitResult:
    """Outcome of commit_approved_files; identical for every call on a request."""
    request_id: UUID
    status: str
    linked_count: int
    review_completed_at: Optional[datetime]


class DocumentRequestService:
    """Service for operator-initiated request lifecycle operations."""

    def __init__(
        self,
        db: Session,
        record_access: RecordAccessPort,
        notifications: NotificationPort,
        assignments: ReviewAssignmentPort,
        registry: Optional[ConfigRegistry] = None,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.record_access = record_access
        self.notifications = notifications
        self.assignments = assignments
        self.registry = registry or config_registry
        self.settings = settings or get_settings()
        self.resolver = RecipientResolver(db, record_access, self.registry)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def preview_recipient(self, originating_type: str, originating_id: str) -> RecipientPreview:
        """Resolve the recipient without creating anything.

        A blank email is reported as has_email=False so the operator screen can
        refuse to open the request form. Other resolution errors propagate.
        """
        try:
            recipient = self.resolver.resolve(originating_type, originating_id)
        except MissingRecipientEmailError:
            return RecipientPreview(name=None, email=None, has_email=False)
        return RecipientPreview(name=recipient.name, email=recipient.email, has_email=True)

    def create_request(
        self,
        originating_type: str,
        originating_id: str,
        instructions: str,
        requested_by: str,
        internal_notes: Optional[str] = None,
        expiration_override_days: Optional[int] = None,
        send: bool = True,
    ) -> CreatedRequest:
        """Create a request for the recipient of an originating entity.

        Args:
            originating_type: Entity type key, must have an active configuration
            originating_id: Entity identifier
            instructions: Text shown to the recipient (required)
            requested_by: Operator id; owner of the later review assignment
            internal_notes: Operator-only notes
            expiration_override_days: Token lifetime in days instead of the
                configured default
            send: Create in Sent and notify; otherwise create in Draft

        Returns:
            CreatedRequest with request id and display number

        Raises:
            RequestValidationFailedError: Blank instructions or bad override
            NotConfiguredError: Entity type not configured
            MissingRecipientEmailError: Recipient email resolved blank
            InvalidFieldPathError: Configured path is broken
            RecordNotFoundError: Originating record does not exist
            TransientStoreError: Store failure, including token collision
        """
        if not instructions or not instructions.strip():
            raise RequestValidationFailedError(
                "Instructions are required",
                details={"field": "instructions"},
            )
        self._validate_override(expiration_override_days)

        config = self.registry.require_config(self.db, originating_type)
        recipient = self.resolver.resolve_with_config(config, originating_id)

        now = utc_now()
        lifetime_days = (
            expiration_override_days
            or config.default_expiration_days
            or self.settings.DEFAULT_EXPIRATION_DAYS
        )
        status = RequestStatus.SENT if send else RequestStatus.DRAFT

        try:
            number = RequestNumber(allocated_at=now)
            self.db.add(number)
            self.db.flush()

            request = DocumentRequest(
                display_number=DISPLAY_NUMBER_FORMAT.format(number.id),
                token=generate_token(),
                token_expires_at=now + timedelta(days=lifetime_days),
                status=status.value,
                instructions=instructions.strip(),
                internal_notes=internal_notes,
                originating_type=originating_type,
                originating_id=str(originating_id),
                recipient_email=recipient.email,
                recipient_name=recipient.name,
                recipient_ref=recipient.contact_ref,
                requested_by=requested_by,
                requested_at=now,
                file_count=0,
                config_type_id=config.type_id,
            )
            self.db.add(request)
            self.db.flush()

            log_audit_event(
                self.db,
                action=AuditAction.REQUEST_CREATED,
                actor=requested_by,
                entity_type="document_request",
                entity_id=request.id,
                metadata={
                    "display_number": request.display_number,
                    "originating_type": originating_type,
                    "originating_id": str(originating_id),
                    "status": status.value,
                    "expiration_days": lifetime_days,
                },
            )
            self.db.commit()
        except (IntegrityError, OperationalError) as e:
            self.db.rollback()
            logger.warning(
                "Request creation failed in store",
                exc_info=True,
                extra={"originating_type": originating_type, "originating_id": originating_id},
            )
            raise TransientStoreError(
                "The request could not be saved. Please retry.",
                details={"reason": type(e).__name__},
            )

        self.db.refresh(request)
        document_requests_created_total.labels(type_id=config.type_id, status=status.value).inc()
        logger.info(
            "Document request created",
            extra={
                "document_request_id": str(request.id),
                "display_number": request.display_number,
                "type_id": config.type_id,
                "status": status.value,
            },
        )

        if send:
            self._notify(request, config)

        return CreatedRequest(request_id=request.id, display_number=request.display_number)

    def send_request(self, request_id: UUID, actor: str) -> DocumentRequest:
        """Move a Draft request to Sent and notify the recipient.

        Raises:
            RequestNotFoundError: Unknown request
            InvalidStateError: Request is not a Draft, or has expired
            NotConfiguredError: Entity type was deactivated since creation
        """
        request = get_request(self.db, request_id)
        if expire_if_due(self.db, request):
            raise InvalidStateError("Request has expired", details={"status": request.status})
        if current_status(request) != RequestStatus.DRAFT:
            raise InvalidStateError(
                f"Only Draft requests can be sent (status is {request.status})",
                details={"status": request.status},
            )

        config = self.registry.require_config(self.db, request.config_type_id)

        if not transition_status(self.db, request.id, RequestStatus.SENT):
            self.db.rollback()
            self.db.refresh(request)
            raise InvalidStateError(
                f"Request was modified concurrently (status is {request.status})",
                details={"status": request.status},
            )

        log_audit_event(
            self.db,
            action=AuditAction.REQUEST_SENT,
            actor=actor,
            entity_type="document_request",
            entity_id=request.id,
        )
        self.db.commit()
        self.db.refresh(request)

        logger.info(
            "Document request sent",
            extra={"document_request_id": str(request.id), "display_number": request.display_number},
        )
        self._notify(request, config)
        return request

    def _validate_override(self, override_days: Optional[int]) -> None:
        if override_days is None:
            return
        maximum = self.settings.MAX_EXPIRATION_OVERRIDE_DAYS
        if override_days < 1 or override_days > maximum:
            raise RequestValidationFailedError(
                f"Expiration override must be between 1 and {maximum} days",
                details={"field": "expiration_override_days"},
            )

    def _notify(self, request: DocumentRequest, config: EntityTypeConfig) -> None:
        merge_fields: NotificationMergeFields = {
            "requestNumber": request.display_number,
            "requestDate": request.requested_at.date().isoformat(),
            "instructions": request.instructions,
            "expirationDate": request.token_expires_at.date().isoformat(),
            "uploadUrl": self.upload_url(request.token),
            "recipientName": request.recipient_name,
        }
        try:
            self.notifications.send(config.notification_template_id, request.recipient_email, merge_fields)
        except Exception:
            # Delivery never rolls back the request
            logger.warning(
                "Notification could not be handed off",
                exc_info=True,
                extra={"document_request_id": str(request.id), "display_number": request.display_number},
            )

    def upload_url(self, token: str) -> str:
        return f"{self.settings.PORTAL_BASE_URL}?token={token}"

    def list_request_types(self) -> List[EntityTypeConfig]:
        """Entity types on which operators can start a request, by type_id."""
        return self.registry.list_active_types(self.db)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_request_details(self, request_id: UUID) -> DocumentRequest:
        """Full internal model of a request, for operators only."""
        return get_request(self.db, request_id)

    def list_request_files(self, request_id: UUID) -> List[FileArtifact]:
        get_request(self.db, request_id)
        return active_artifacts_query(self.db, request_id).order_by(FileArtifact.uploaded_at).all()

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def commit_approved_files(self, request_id: UUID, actor: str) -> CommitResult:
        """Link approved files to the originating entity and approve the request.

        Safe to call any number of times: once the request is Approved, every
        call returns the same result without creating links.

        Raises:
            RequestNotFoundError: Unknown request
            InvalidStateError: Expired, rejected, not reviewable, or nothing approved
            RecordNotFoundError: Originating record no longer exists
            TransientStoreError: Store failure; the commit can be retried
        """
        request = get_request(self.db, request_id)

        if current_status(request) == RequestStatus.APPROVED:
            commits_total.labels(outcome="already_committed").inc()
            return self._commit_result(request)

        if expire_if_due(self.db, request):
            raise InvalidStateError("Request has expired", details={"status": request.status})

        status = current_status(request)
        if status not in REVIEWABLE_STATUSES:
            raise InvalidStateError(
                f"Request cannot be committed (status is {status.value})",
                details={"status": status.value},
            )

        approved = active_artifacts_query(self.db, request.id).filter(
            FileArtifact.review_status == ReviewStatus.APPROVED.value
        ).all()
        if not approved:
            raise InvalidStateError(
                "No approved files to commit",
                details={"status": status.value},
            )

        # Confirms the originating record still exists before anything is written
        self.record_access.fetch(request.originating_type, request.originating_id, [])

        completed_at = utc_now()
        try:
            if not transition_status(
                self.db, request.id, RequestStatus.APPROVED, review_completed_at=completed_at
            ):
                raise CommitConflictError(
                    "Another commit won the transition",
                    details={"request_id": str(request.id)},
                )

            linked = self._link_artifacts(request, approved, completed_at)
            self.assignments.complete_assignment(request.id)
            log_audit_event(
                self.db,
                action=AuditAction.REQUEST_COMMITTED,
                actor=actor,
                entity_type="document_request",
                entity_id=request.id,
                metadata={
                    "linked": linked,
                    "originating_type": request.originating_type,
                    "originating_id": request.originating_id,
                },
            )
            self.db.commit()
        except CommitConflictError:
            self.db.rollback()
            return self._resolve_conflict(request)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                "Commit failed, request left reviewable",
                exc_info=True,
                extra={"document_request_id": str(request.id)},
            )
            raise TransientStoreError(
                "The commit could not be completed. Please retry.",
                details={"reason": type(e).__name__},
            )

        self.db.refresh(request)
        commits_total.labels(outcome="committed").inc()
        logger.info(
            "Approved files committed",
            extra={
                "document_request_id": str(request.id),
                "display_number": request.display_number,
                "file_count": linked,
            },
        )
        return self._commit_result(request)

    def _link_artifacts(
        self,
        request: DocumentRequest,
        artifacts: List[FileArtifact],
        linked_at: datetime,
    ) -> int:
        already_linked = {
            artifact_id for (artifact_id,) in self.db.query(ArtifactLink.artifact_id).filter(
                ArtifactLink.artifact_id.in_([a.id for a in artifacts]),
                ArtifactLink.entity_type == request.originating_type,
                ArtifactLink.entity_id == request.originating_id,
            )
        }
        created = 0
        for artifact in artifacts:
            if artifact.id in already_linked:
                continue
            self.db.add(ArtifactLink(
                artifact_id=artifact.id,
                entity_type=request.originating_type,
                entity_id=request.originating_id,
                linked_at=linked_at,
            ))
            created += 1
        self.db.flush()
        return created

    def _resolve_conflict(self, request: DocumentRequest) -> CommitResult:
        self.db.refresh(request)
        if current_status(request) == RequestStatus.APPROVED:
            commits_total.labels(outcome="already_committed").inc()
            logger.info(
                "Concurrent commit already approved the request",
                extra={"document_request_id": str(request.id)},
            )
            return self._commit_result(request)
        raise InvalidStateError(
            f"Request cannot be committed (status is {request.status})",
            details={"status": request.status},
        )

    def _commit_result(self, request: DocumentRequest) -> CommitResult:
        linked_count = self.db.query(func.count(ArtifactLink.id)).select_from(ArtifactLink).join(
            FileArtifact, ArtifactLink.artifact_id == FileArtifact.id
        ).filter(
            FileArtifact.request_id == request.id,
            ArtifactLink.entity_type == request.originating_type,
            ArtifactLink.entity_id == request.originating_id,
        ).scalar() or 0

        return CommitResult(
            request_id=request.id,
            status=request.status,
            linked_count=linked_count,
            review_completed_at=request.review_completed_at,
        )
