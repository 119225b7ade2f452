"""Pydantic schemas for the anonymous portal API.

Responses carry only what SessionView allows; nothing here may reference the
originating entity or the recipient.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict


class PortalSessionResponse(BaseModel):
    display_number: str
    request_date: datetime
    instructions: str
    existing_file_count: int
    max_file_size_bytes: int
    max_files_per_upload: int
    allowed_extensions: List[str]


class PortalFile(BaseModel):
    """One base64-encoded file of an upload batch"""
    file_name: str = Field(..., min_length=1, max_length=255)
    content_type: Optional[str] = Field(None, max_length=255)
    size_bytes: Optional[int] = Field(None, ge=0, description="Declared size; derived from the payload if omitted")
    base64_data: str

    model_config = ConfigDict(extra='forbid')


class PortalUploadRequest(BaseModel):
    token: str = Field(..., max_length=100)
    files: List[PortalFile]

    model_config = ConfigDict(extra='forbid')


class PortalUploadResponse(BaseModel):
    uploaded: int
