"""Entity type config administration.

Writes go to the entity_type_config table and then invalidate the
registry's cache entry for that type, so the next lookup sees the change.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..audit.service import AuditAction, log_audit_event
from ..domain.configs.registry import ConfigRegistry, config_registry
from ..domain.errors import (
    InvalidFieldPathError,
    NotConfiguredError,
    RequestValidationFailedError,
)
from ..domain.recipients.field_path import parse_field_path
from ..models.entity_type_config import EntityTypeConfigRecord

logger = logging.getLogger(__name__)

PATH_FIELDS = ("recipient_email_path", "recipient_name_path", "recipient_ref_path")


class EntityTypeConfigService:

    def __init__(self, db: Session, registry: Optional[ConfigRegistry] = None):
        self.db = db
        self.registry = registry or config_registry

    def list_configs(self, include_inactive: bool = True) -> List[EntityTypeConfigRecord]:
        query = self.db.query(EntityTypeConfigRecord)
        if not include_inactive:
            query = query.filter(EntityTypeConfigRecord.is_active.is_(True))
        return query.order_by(EntityTypeConfigRecord.type_id).all()

    def get_config(self, type_id: str) -> EntityTypeConfigRecord:
        record = self.db.get(EntityTypeConfigRecord, type_id)
        if record is None:
            raise NotConfiguredError(
                f"No configuration for entity type '{type_id}'",
                details={"type_id": type_id},
            )
        return record

    def upsert_config(self, type_id: str, values: Dict[str, Any], actor: str) -> EntityTypeConfigRecord:
        """Create or replace the configuration of one entity type.

        Field paths are parsed here only to give the administrator early
        feedback; resolution parses them again.

        Raises:
            RequestValidationFailedError: A field path is malformed
        """
        for field in PATH_FIELDS:
            raw = values.get(field)
            if raw is not None and raw.strip():
                try:
                    parse_field_path(raw)
                except InvalidFieldPathError as e:
                    raise RequestValidationFailedError(
                        e.message,
                        details={"field": field, "path": raw},
                    )
            else:
                values[field] = None

        record = self.db.get(EntityTypeConfigRecord, type_id)
        created = record is None
        if created:
            record = EntityTypeConfigRecord(type_id=type_id)
            self.db.add(record)

        for key, value in values.items():
            setattr(record, key, value)

        log_audit_event(
            self.db,
            action=AuditAction.CONFIG_UPDATED,
            actor=actor,
            entity_type="entity_type_config",
            entity_id=type_id,
            metadata={"created": created, "is_active": values.get("is_active")},
        )
        self.db.commit()
        self.db.refresh(record)
        self.registry.invalidate(type_id)

        logger.info(
            "Entity type config saved",
            extra={"type_id": type_id, "status": "created" if created else "updated"},
        )
        return record

    def deactivate_config(self, type_id: str, actor: str) -> EntityTypeConfigRecord:
        record = self.get_config(type_id)
        record.is_active = False

        log_audit_event(
            self.db,
            action=AuditAction.CONFIG_UPDATED,
            actor=actor,
            entity_type="entity_type_config",
            entity_id=type_id,
            metadata={"is_active": False},
        )
        self.db.commit()
        self.db.refresh(record)
        self.registry.invalidate(type_id)
        return record
