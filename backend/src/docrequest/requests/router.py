"""Document Requests API Router - operator endpoints.

Create, send, review, and commit document requests. Every endpoint requires
an authenticated operator; the anonymous portal lives in portal.router.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from ..auth.dependencies import Operator, get_current_operator
from ..dependencies import get_artifact_store, get_request_service, get_review_service
from ..domain.errors import ArtifactNotFoundError
from ..domain.ports.artifact_store_port import ArtifactStorePort
from .review import ReviewService
from .service import DocumentRequestService
from .schemas import (
    ApprovePendingResponse,
    ArtifactDownloadResponse,
    CommitResponse,
    DocumentRequestCreate,
    DocumentRequestCreated,
    DocumentRequestResponse,
    FileArtifactListResponse,
    FileArtifactResponse,
    FileRejectRequest,
    RecipientPreviewResponse,
    RequestRejectRequest,
    RequestTypeListResponse,
    RequestTypeResponse,
)

router = APIRouter(prefix="/document-requests", tags=["document_requests"])


@router.get(
    "/recipient-preview",
    response_model=RecipientPreviewResponse,
    summary="Preview the recipient of an originating record",
)
def preview_recipient(
    originating_type: str = Query(..., min_length=1),
    originating_id: str = Query(..., min_length=1),
    operator: Operator = Depends(get_current_operator),
    service: DocumentRequestService = Depends(get_request_service),
) -> RecipientPreviewResponse:
    """Resolve the recipient without creating a request.

    **Errors:** 422 NOT_CONFIGURED, 404 RECORD_NOT_FOUND
    """
    preview = service.preview_recipient(originating_type, originating_id)
    return RecipientPreviewResponse(name=preview.name, email=preview.email, has_email=preview.has_email)


@router.get("/entity-types", response_model=RequestTypeListResponse)
def list_request_types(
    operator: Operator = Depends(get_current_operator),
    service: DocumentRequestService = Depends(get_request_service),
) -> RequestTypeListResponse:
    """Entity types where the request quick action should be offered."""
    return RequestTypeListResponse(items=[
        RequestTypeResponse(type_id=config.type_id, quick_action_label=config.quick_action_label)
        for config in service.list_request_types()
    ])


@router.post(
    "",
    response_model=DocumentRequestCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Create a document request",
)
def create_document_request(
    body: DocumentRequestCreate,
    operator: Operator = Depends(get_current_operator),
    service: DocumentRequestService = Depends(get_request_service),
) -> DocumentRequestCreated:
    """Create a request and (unless send=false) notify the recipient.

    **Errors:**
    - 400 VALIDATION_ERROR: blank instructions or override out of range
    - 422 NOT_CONFIGURED / MISSING_RECIPIENT_EMAIL
    - 503 TRANSIENT_STORE_ERROR: retry
    """
    created = service.create_request(
        originating_type=body.originating_type,
        originating_id=body.originating_id,
        instructions=body.instructions,
        requested_by=operator.id,
        internal_notes=body.internal_notes,
        expiration_override_days=body.expiration_override_days,
        send=body.send,
    )
    return DocumentRequestCreated(request_id=created.request_id, display_number=created.display_number)


@router.get("/{request_id}", response_model=DocumentRequestResponse)
def get_document_request(
    request_id: UUID,
    operator: Operator = Depends(get_current_operator),
    service: DocumentRequestService = Depends(get_request_service),
) -> DocumentRequestResponse:
    request = service.get_request_details(request_id)
    return DocumentRequestResponse.model_validate(request)


@router.post("/{request_id}/send", response_model=DocumentRequestResponse)
def send_document_request(
    request_id: UUID,
    operator: Operator = Depends(get_current_operator),
    service: DocumentRequestService = Depends(get_request_service),
) -> DocumentRequestResponse:
    """Send a Draft request (409 INVALID_STATE otherwise)."""
    request = service.send_request(request_id, actor=operator.id)
    return DocumentRequestResponse.model_validate(request)


@router.get("/{request_id}/files", response_model=FileArtifactListResponse)
def list_request_files(
    request_id: UUID,
    operator: Operator = Depends(get_current_operator),
    service: DocumentRequestService = Depends(get_request_service),
) -> FileArtifactListResponse:
    artifacts = service.list_request_files(request_id)
    return FileArtifactListResponse(
        items=[FileArtifactResponse.model_validate(a) for a in artifacts],
        total=len(artifacts),
    )


@router.post("/{request_id}/files/approve-pending", response_model=ApprovePendingResponse)
def approve_pending_files(
    request_id: UUID,
    operator: Operator = Depends(get_current_operator),
    review: ReviewService = Depends(get_review_service),
) -> ApprovePendingResponse:
    approved = review.approve_pending_files(request_id, reviewer=operator.id)
    return ApprovePendingResponse(approved=approved)


@router.post("/files/{artifact_id}/approve", response_model=FileArtifactResponse)
def approve_file(
    artifact_id: UUID,
    operator: Operator = Depends(get_current_operator),
    review: ReviewService = Depends(get_review_service),
) -> FileArtifactResponse:
    artifact = review.approve_file(artifact_id, reviewer=operator.id)
    return FileArtifactResponse.model_validate(artifact)


@router.post("/files/{artifact_id}/reject", response_model=FileArtifactResponse)
def reject_file(
    artifact_id: UUID,
    body: FileRejectRequest,
    operator: Operator = Depends(get_current_operator),
    review: ReviewService = Depends(get_review_service),
) -> FileArtifactResponse:
    artifact = review.reject_file(artifact_id, reviewer=operator.id, reason=body.reason)
    return FileArtifactResponse.model_validate(artifact)


@router.get("/files/{artifact_id}/download-url", response_model=ArtifactDownloadResponse)
def get_download_url(
    artifact_id: UUID,
    expires_in: int = Query(3600, ge=60, le=7 * 24 * 3600),
    operator: Operator = Depends(get_current_operator),
    review: ReviewService = Depends(get_review_service),
    artifact_store: ArtifactStorePort = Depends(get_artifact_store),
) -> ArtifactDownloadResponse:
    """Time-limited link for viewing a staged file during review."""
    artifact = review.get_artifact(artifact_id)
    try:
        url = artifact_store.generate_presigned_url(artifact.storage_key, expires_in_seconds=expires_in)
    except FileNotFoundError as exc:
        raise ArtifactNotFoundError(
            f"Stored content for file {artifact_id} is missing",
            details={"artifact_id": str(artifact_id)},
        ) from exc
    return ArtifactDownloadResponse(url=url, expires_in_seconds=expires_in)


@router.delete("/files/{artifact_id}", response_model=DocumentRequestResponse)
def remove_file(
    artifact_id: UUID,
    operator: Operator = Depends(get_current_operator),
    review: ReviewService = Depends(get_review_service),
) -> DocumentRequestResponse:
    """Soft-delete a file; returns the request with its recomputed file_count."""
    request = review.remove_file(artifact_id, actor=operator.id)
    return DocumentRequestResponse.model_validate(request)


@router.post("/{request_id}/reject", response_model=DocumentRequestResponse)
def reject_document_request(
    request_id: UUID,
    body: RequestRejectRequest,
    operator: Operator = Depends(get_current_operator),
    review: ReviewService = Depends(get_review_service),
) -> DocumentRequestResponse:
    request = review.reject_request(request_id, reviewer=operator.id, notes=body.notes)
    return DocumentRequestResponse.model_validate(request)


@router.post(
    "/{request_id}/commit",
    response_model=CommitResponse,
    summary="Commit approved files to the originating record",
)
def commit_approved_files(
    request_id: UUID,
    operator: Operator = Depends(get_current_operator),
    service: DocumentRequestService = Depends(get_request_service),
) -> CommitResponse:
    """Link approved files and approve the request.

    Idempotent: repeating the call returns the same result.

    **Errors:** 409 INVALID_STATE (expired, rejected, nothing approved)
    """
    result = service.commit_approved_files(request_id, actor=operator.id)
    return CommitResponse(
        request_id=result.request_id,
        status=result.status,
        linked_count=result.linked_count,
        review_completed_at=result.review_completed_at,
    )
