"""Artifact Store Port - opaque storage for uploaded file bytes.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO
from uuid import UUID


@dataclass
class StoredArtifact:
    """Metadata for a file stored in the artifact store.

    Attributes:
        storage_key: Unique key (format: requests/{request_id}/{sha256}-{nonce}.{ext})
        sha256: SHA256 hash of file content (hex format)
        size_bytes: File size in bytes
        content_type: MIME type recorded with the object
    """
    storage_key: str
    sha256: str
    size_bytes: int
    content_type: str


class ArtifactStorePort(ABC):
    """Port interface for S3-compatible artifact storage."""

    @abstractmethod
    def store_file(
        self,
        file: BinaryIO,
        request_id: UUID,
        filename: str,
        content_type: str,
    ) -> StoredArtifact:
        """Store file bytes under a key scoped to the request.

        Raises:
            StorageError: If upload fails or storage is unavailable
            ValueError: If file is empty
        """
        pass

    @abstractmethod
    def delete_file(self, storage_key: str) -> bool:
        """Delete a stored file. Returns False if it did not exist."""
        pass

    @abstractmethod
    def generate_presigned_url(self, storage_key: str, expires_in_seconds: int = 3600) -> str:
        """Generate a time-limited download URL for operator review."""
        pass
