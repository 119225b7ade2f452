"""Immutable view of an entity type's configuration"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from ...models.entity_type_config import EntityTypeConfigRecord


@dataclass(frozen=True)
class EntityTypeConfig:
    """Cached, read-only configuration for one originating-entity type.

    Attributes:
        type_id: Originating entity type key (e.g. "opportunity")
        is_active: Inactive types are treated as not configured
        recipient_email_path: Field path to the recipient email (mandatory to resolve)
        recipient_name_path: Field path to the recipient display name
        recipient_ref_path: Field path to a linked contact reference
        default_expiration_days: Token lifetime when no override is given
        max_file_size_bytes: Per-file size cap on the portal
        max_files_per_upload: Per-batch file count cap on the portal
        allowed_extensions: Lowercase extensions without the dot
    """
    type_id: str
    is_active: bool
    recipient_email_path: Optional[str]
    recipient_name_path: Optional[str]
    recipient_ref_path: Optional[str]
    default_expiration_days: int
    max_file_size_bytes: int
    max_files_per_upload: int
    allowed_extensions: FrozenSet[str] = field(default_factory=frozenset)
    quick_action_label: Optional[str] = None
    notification_template_id: Optional[str] = None

    @classmethod
    def from_record(cls, record: EntityTypeConfigRecord) -> "EntityTypeConfig":
        return cls(
            type_id=record.type_id,
            is_active=bool(record.is_active),
            recipient_email_path=record.recipient_email_path,
            recipient_name_path=record.recipient_name_path,
            recipient_ref_path=record.recipient_ref_path,
            default_expiration_days=record.default_expiration_days,
            max_file_size_bytes=record.max_file_size_bytes,
            max_files_per_upload=record.max_files_per_upload,
            allowed_extensions=frozenset(
                ext.strip().lower().lstrip(".") for ext in (record.allowed_extensions or [])
                if ext and ext.strip()
            ),
            quick_action_label=record.quick_action_label,
            notification_template_id=record.notification_template_id,
        )
