"""Audit trail for document request lifecycle events.

Entries are added to the caller's session and commit or roll back together
with the change they describe.
"""

from enum import Enum
from typing import Optional, Dict, Any, Union

from sqlalchemy.orm import Session

from ..models.audit_log import AuditLog

PORTAL_ACTOR = "portal"
SYSTEM_ACTOR = "system"


class AuditAction(str, Enum):
    REQUEST_CREATED = "REQUEST_CREATED"
    REQUEST_SENT = "REQUEST_SENT"
    FILES_UPLOADED = "FILES_UPLOADED"
    FILE_APPROVED = "FILE_APPROVED"
    FILE_REJECTED = "FILE_REJECTED"
    FILE_REMOVED = "FILE_REMOVED"
    REQUEST_COMMITTED = "REQUEST_COMMITTED"
    REQUEST_REJECTED = "REQUEST_REJECTED"
    REQUEST_EXPIRED = "REQUEST_EXPIRED"
    CONFIG_UPDATED = "CONFIG_UPDATED"


def log_audit_event(
    db: Session,
    action: Union[AuditAction, str],
    actor: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[Any] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> AuditLog:
    """Stage an audit entry in the current transaction.

    Args:
        action: One of AuditAction; plain strings must name a member
        actor: Operator id, PORTAL_ACTOR or SYSTEM_ACTOR
        entity_id: Stored as text, so UUIDs and business keys share the column

    Raises:
        ValueError: Unknown action
    """
    entry = AuditLog(
        actor=actor,
        action=AuditAction(action).value,
        entity_type=entity_type,
        entity_id=None if entity_id is None else str(entity_id),
        metadata_json=metadata,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(entry)
    db.flush()
    return entry
