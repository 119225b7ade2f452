"""Pydantic schemas for the operator Document Requests API"""

from datetime import datetime
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict


# ============================================================================
# Creation
# ============================================================================

class DocumentRequestCreate(BaseModel):
    """Schema for POST /document-requests"""
    originating_type: str = Field(..., min_length=1, max_length=100)
    originating_id: str = Field(..., min_length=1, max_length=255)
    instructions: str = Field(..., min_length=1, max_length=10000)
    internal_notes: Optional[str] = Field(None, max_length=10000)
    expiration_override_days: Optional[int] = Field(None, description="Token lifetime in days")
    send: bool = Field(True, description="Send immediately; otherwise create as Draft")

    model_config = ConfigDict(extra='forbid')


class DocumentRequestCreated(BaseModel):
    request_id: UUID
    display_number: str


class RecipientPreviewResponse(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    has_email: bool


# ============================================================================
# Detail
# ============================================================================

class DocumentRequestResponse(BaseModel):
    """Full internal view of a request (operators only)"""
    id: UUID
    display_number: str
    status: str
    token_expires_at: datetime
    instructions: str
    internal_notes: Optional[str] = None
    originating_type: str
    originating_id: str
    recipient_email: str
    recipient_name: str
    recipient_ref: Optional[str] = None
    requested_by: str
    requested_at: datetime
    files_received_at: Optional[datetime] = None
    review_completed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    file_count: int
    config_type_id: str

    model_config = ConfigDict(from_attributes=True)


class FileArtifactResponse(BaseModel):
    id: UUID
    request_id: UUID
    file_name: str
    size_bytes: int
    content_type: Optional[str] = None
    upload_source: str
    review_status: str
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FileArtifactListResponse(BaseModel):
    items: List[FileArtifactResponse]
    total: int


# ============================================================================
# Review & commit
# ============================================================================

class FileRejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=2000)


class RequestRejectRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=10000)


class ApprovePendingResponse(BaseModel):
    approved: int


class CommitResponse(BaseModel):
    request_id: UUID
    status: str
    linked_count: int
    review_completed_at: Optional[datetime] = None


class ArtifactDownloadResponse(BaseModel):
    url: str
    expires_in_seconds: int


class RequestTypeResponse(BaseModel):
    type_id: str
    quick_action_label: Optional[str] = None


class RequestTypeListResponse(BaseModel):
    items: List[RequestTypeResponse]
