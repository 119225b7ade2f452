"""boto3 implementation of the artifact store.

Objects live at ``requests/{request_id}/{sha256}-{nonce}.{ext}``. The nonce
gives every upload its own object even when two files have identical bytes,
so removing one artifact never removes another artifact's content.
"""

import hashlib
import logging
import secrets
from pathlib import PurePosixPath
from typing import BinaryIO, Optional
from uuid import UUID

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ...domain.errors import StorageError
from ...domain.ports.artifact_store_port import ArtifactStorePort, StoredArtifact
from .storage_config import StorageConfig

logger = logging.getLogger(__name__)

READ_CHUNK_BYTES = 64 * 1024
_MISSING_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def build_storage_key(request_id: UUID, sha256: str, filename: str) -> str:
    extension = PurePosixPath(filename).suffix.lower().lstrip(".") or "bin"
    return f"requests/{request_id}/{sha256}-{secrets.token_hex(4)}.{extension}"


class S3ArtifactStore(ArtifactStorePort):
    """Artifact store backed by an S3-compatible bucket (AWS S3 or MinIO)."""

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        bucket_name: str,
        region: str = "us-east-1",
    ):
        self.bucket_name = bucket_name
        self.s3_client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
        )
        logger.info(
            "S3 artifact store ready",
            extra={"bucket": bucket_name, "endpoint": endpoint_url or "aws", "region": region},
        )

    @classmethod
    def from_config(cls, config: StorageConfig) -> "S3ArtifactStore":
        return cls(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
        )

    def store_file(
        self,
        file: BinaryIO,
        request_id: UUID,
        filename: str,
        content_type: str,
    ) -> StoredArtifact:
        """Upload one file and return its key, digest and size.

        Raises:
            ValueError: The stream is empty
            StorageError: The bucket rejected the upload
        """
        digest = hashlib.sha256()
        body = bytearray()
        for chunk in iter(lambda: file.read(READ_CHUNK_BYTES), b""):
            digest.update(chunk)
            body.extend(chunk)

        if not body:
            raise ValueError("Cannot store empty file")

        sha256 = digest.hexdigest()
        storage_key = build_storage_key(request_id, sha256, filename)
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=storage_key,
                Body=bytes(body),
                ContentType=content_type,
                Metadata={"sha256": sha256, "document_request_id": str(request_id)},
            )
        except (ClientError, BotoCoreError) as exc:
            logger.error("S3 upload failed", extra={"storage_key": storage_key, "error": str(exc)})
            raise StorageError(f"Failed to upload file: {exc}") from exc

        logger.info(
            "Artifact stored",
            extra={"storage_key": storage_key, "size_bytes": len(body)},
        )
        return StoredArtifact(
            storage_key=storage_key,
            sha256=sha256,
            size_bytes=len(body),
            content_type=content_type,
        )

    def delete_file(self, storage_key: str) -> bool:
        """Remove an object; False when there was nothing to remove."""
        if not self.file_exists(storage_key):
            return False
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=storage_key)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to delete file: {exc}") from exc
        logger.info("Artifact deleted", extra={"storage_key": storage_key})
        return True

    def file_exists(self, storage_key: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=storage_key)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return False
            raise StorageError(f"Failed to check file existence: {exc}") from exc
        return True

    def generate_presigned_url(self, storage_key: str, expires_in_seconds: int = 3600) -> str:
        """Time-limited GET link for reviewers.

        Raises:
            FileNotFoundError: No object under the key
            StorageError: Signing failed
        """
        if not self.file_exists(storage_key):
            raise FileNotFoundError(f"File not found: {storage_key}")
        try:
            return self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": storage_key},
                ExpiresIn=expires_in_seconds,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to generate presigned URL: {exc}") from exc
