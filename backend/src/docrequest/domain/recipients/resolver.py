"""Recipient resolver

Maps an originating entity to the person who should receive the upload link,
using the field paths configured for its entity type.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..configs.entity_type_config import EntityTypeConfig
from ..configs.registry import ConfigRegistry, config_registry
from ..errors import InvalidFieldPathError, MissingRecipientEmailError
from ..ports.record_access_port import RecordAccessPort
from .field_path import FieldPath, parse_field_path, evaluate_field_path

logger = logging.getLogger(__name__)

DEFAULT_RECIPIENT_NAME = "Recipient"


@dataclass(frozen=True)
class RecipientDescriptor:
    """Resolved recipient of a document request."""
    name: str
    email: str
    contact_ref: Optional[str] = None


class RecipientResolver:
    """Resolve recipients from configuration-driven field paths.

    Example:
        resolver = RecipientResolver(db, record_access)
        recipient = resolver.resolve("opportunity", "006xx000001")
    """

    def __init__(
        self,
        db: Session,
        record_access: RecordAccessPort,
        registry: Optional[ConfigRegistry] = None,
    ):
        self.db = db
        self.record_access = record_access
        self.registry = registry or config_registry

    def resolve(self, originating_type: str, originating_id: str) -> RecipientDescriptor:
        """Resolve the recipient for one originating entity.

        Raises:
            NotConfiguredError: Entity type has no active configuration
            MissingRecipientEmailError: Email path absent or resolved blank
            InvalidFieldPathError: A configured path is malformed or does not
                match the record
            RecordNotFoundError: The originating record does not exist
        """
        config = self.registry.require_config(self.db, originating_type)
        return self.resolve_with_config(config, originating_id)

    def resolve_with_config(
        self,
        config: EntityTypeConfig,
        originating_id: str,
    ) -> RecipientDescriptor:
        paths = self._parse_paths(config)

        record = self.record_access.fetch(
            config.type_id,
            originating_id,
            [path.raw for path in paths.values() if path is not None],
        )

        values = {
            key: self._evaluate(record, path, config.type_id)
            for key, path in paths.items()
        }

        email = _as_text(values["email"])
        if not email:
            logger.info(
                "Recipient email resolved blank",
                extra={"type_id": config.type_id, "originating_id": originating_id},
            )
            raise MissingRecipientEmailError(
                "No email address found for the recipient on this record.",
                details={"type_id": config.type_id, "originating_id": originating_id},
            )

        return RecipientDescriptor(
            name=_as_text(values["name"]) or DEFAULT_RECIPIENT_NAME,
            email=email,
            contact_ref=_as_text(values["contact_ref"]) or None,
        )

    def _parse_paths(self, config: EntityTypeConfig) -> Dict[str, Optional[FieldPath]]:
        configured = {
            "email": config.recipient_email_path,
            "name": config.recipient_name_path,
            "contact_ref": config.recipient_ref_path,
        }
        parsed: Dict[str, Optional[FieldPath]] = {}
        for key, raw in configured.items():
            if raw is None or not raw.strip():
                parsed[key] = None
                continue
            try:
                parsed[key] = parse_field_path(raw)
            except InvalidFieldPathError:
                logger.error(
                    "Invalid recipient field path in configuration",
                    extra={"type_id": config.type_id, "path": raw, "role": key},
                )
                raise
        return parsed

    def _evaluate(self, record: Dict[str, Any], path: Optional[FieldPath], type_id: str) -> Any:
        if path is None:
            return None
        try:
            return evaluate_field_path(record, path)
        except InvalidFieldPathError:
            logger.error(
                "Recipient field path does not match record",
                extra={"type_id": type_id, "path": path.raw},
            )
            raise


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()
