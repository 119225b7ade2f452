"""SQLAlchemy Models for DocRequest"""

from .base import Base
from .entity_type_config import EntityTypeConfigRecord
from .document_request import DocumentRequest, RequestNumber
from .file_artifact import FileArtifact, ArtifactLink
from .review_assignment import ReviewAssignment
from .audit_log import AuditLog

__all__ = [
    "Base",
    "EntityTypeConfigRecord",
    "DocumentRequest",
    "RequestNumber",
    "FileArtifact",
    "ArtifactLink",
    "ReviewAssignment",
    "AuditLog",
]
