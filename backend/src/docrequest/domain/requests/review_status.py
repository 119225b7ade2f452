"""Per-file review status and upload source values"""

from enum import Enum


class ReviewStatus(str, Enum):
    """Review decision on a single FileArtifact."""
    PENDING_REVIEW = "Pending_Review"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class UploadSource(str, Enum):
    """Where a FileArtifact came from."""
    PORTAL_UPLOAD = "Portal_Upload"
    INTERNAL = "Internal"
    MIGRATION = "Migration"
