"""Pydantic schemas for the Entity Type Config API"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator


class EntityTypeConfigUpsert(BaseModel):
    """Schema for PUT /entity-type-configs/{type_id}"""
    is_active: bool = True
    recipient_email_path: str = Field(..., min_length=1, max_length=500)
    recipient_name_path: Optional[str] = Field(None, max_length=500)
    recipient_ref_path: Optional[str] = Field(None, max_length=500)
    default_expiration_days: int = Field(7, ge=1, le=365)
    max_file_size_bytes: int = Field(5 * 1024 * 1024, ge=1)
    max_files_per_upload: int = Field(10, ge=1, le=100)
    allowed_extensions: List[str] = Field(..., min_length=1)
    quick_action_label: Optional[str] = Field(None, max_length=100)
    notification_template_id: Optional[str] = Field(None, max_length=255)

    model_config = ConfigDict(extra='forbid')

    @field_validator('allowed_extensions')
    @classmethod
    def normalize_extensions(cls, v: List[str]) -> List[str]:
        """Lowercase, strip leading dots, drop blanks and duplicates"""
        normalized = []
        for ext in v:
            ext = ext.strip().lower().lstrip('.')
            if ext and ext not in normalized:
                normalized.append(ext)
        if not normalized:
            raise ValueError('At least one allowed extension is required')
        return normalized


class EntityTypeConfigResponse(BaseModel):
    type_id: str
    is_active: bool
    recipient_email_path: Optional[str] = None
    recipient_name_path: Optional[str] = None
    recipient_ref_path: Optional[str] = None
    default_expiration_days: int
    max_file_size_bytes: int
    max_files_per_upload: int
    allowed_extensions: List[str]
    quick_action_label: Optional[str] = None
    notification_template_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class EntityTypeConfigListResponse(BaseModel):
    items: List[EntityTypeConfigResponse]
    total: int
