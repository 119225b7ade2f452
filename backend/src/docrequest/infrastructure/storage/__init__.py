from .s3_artifact_store import S3ArtifactStore
from .storage_config import StorageConfig, load_storage_config

__all__ = ["S3ArtifactStore", "StorageConfig", "load_storage_config"]
