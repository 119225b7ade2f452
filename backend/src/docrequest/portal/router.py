"""Portal API Router - anonymous, token-scoped endpoints.

No operator authentication is accepted or required here. Every failure is
reported with a fixed message; only upload limit violations name the limit.
"""

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_token_validator, get_upload_handler
from ..domain.uploads.validation import IncomingFile
from .schemas import PortalSessionResponse, PortalUploadRequest, PortalUploadResponse
from .session import TokenSessionValidator
from .upload import AnonymousUploadHandler

router = APIRouter(prefix="/portal", tags=["portal"])


@router.get("/session", response_model=PortalSessionResponse)
def get_session(
    token: str = Query(..., max_length=100),
    validator: TokenSessionValidator = Depends(get_token_validator),
) -> PortalSessionResponse:
    """Validate an upload link and return what the upload page may show.

    **Errors:** 404 INVALID_OR_EXPIRED_TOKEN (one message for every reason)
    """
    view = validator.validate(token)
    return PortalSessionResponse(
        display_number=view.display_number,
        request_date=view.request_date,
        instructions=view.instructions,
        existing_file_count=view.existing_file_count,
        max_file_size_bytes=view.max_file_size_bytes,
        max_files_per_upload=view.max_files_per_upload,
        allowed_extensions=list(view.allowed_extensions),
    )


@router.post("/uploads", response_model=PortalUploadResponse)
def upload_files(
    body: PortalUploadRequest,
    handler: AnonymousUploadHandler = Depends(get_upload_handler),
) -> PortalUploadResponse:
    """Upload a batch of files; the batch is accepted or rejected as a whole.

    **Errors:**
    - 404 INVALID_OR_EXPIRED_TOKEN
    - 400 UPLOAD_LIMIT_EXCEEDED (details.limit names the limit)
    - 400 UPLOAD_REJECTED
    - 503 TRANSIENT_STORE_ERROR
    """
    files = [
        IncomingFile(
            file_name=f.file_name,
            base64_data=f.base64_data,
            content_type=f.content_type,
            size_bytes=f.size_bytes,
        )
        for f in body.files
    ]
    uploaded = handler.upload(body.token, files)
    return PortalUploadResponse(uploaded=uploaded)
