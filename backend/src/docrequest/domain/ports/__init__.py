"""Ports for the external collaborators of the request lifecycle"""

from .record_access_port import RecordAccessPort
from .notification_port import NotificationPort, NotificationMergeFields
from .assignment_port import ReviewAssignmentPort
from .artifact_store_port import ArtifactStorePort, StoredArtifact

__all__ = [
    "RecordAccessPort",
    "NotificationPort",
    "NotificationMergeFields",
    "ReviewAssignmentPort",
    "ArtifactStorePort",
    "StoredArtifact",
]
