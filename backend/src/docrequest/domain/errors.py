"""Domain Errors - Centralized Exception Hierarchy

Every error carries a stable error_code and the HTTP status the API layer
maps it to. Anonymous-facing errors carry fixed, non-diagnostic messages.
"""

from typing import Any, Dict, Optional


class DocRequestError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOC_REQUEST_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to API response dict"""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# Configuration & resolution errors (operator / administrator facing)
class NotConfiguredError(DocRequestError):
    """Entity type has no active configuration"""
    error_code = "NOT_CONFIGURED"
    http_status = 422


class MissingRecipientEmailError(DocRequestError):
    """Recipient email resolved blank; fix the source record"""
    error_code = "MISSING_RECIPIENT_EMAIL"
    http_status = 422


class InvalidFieldPathError(DocRequestError):
    """Configured field path is malformed or does not match the record"""
    error_code = "INVALID_FIELD_PATH"
    http_status = 500

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, details={"path": path} if path else None)
        self.path = path


# Anonymous-facing errors
class InvalidOrExpiredTokenError(DocRequestError):
    """Token failed validation. The reason is never disclosed."""
    error_code = "INVALID_OR_EXPIRED_TOKEN"
    http_status = 404

    GENERIC_MESSAGE = "This upload link is invalid or has expired."

    def __init__(self):
        super().__init__(self.GENERIC_MESSAGE)


class UploadLimitExceededError(DocRequestError):
    """Upload batch violated one of the configured limits"""
    error_code = "UPLOAD_LIMIT_EXCEEDED"
    http_status = 400

    MAX_FILES = "max_files_per_upload"
    MAX_FILE_SIZE = "max_file_size_bytes"
    ALLOWED_EXTENSIONS = "allowed_extensions"

    def __init__(self, limit: str, message: str):
        super().__init__(message, details={"limit": limit})
        self.limit = limit


class UploadRejectedError(DocRequestError):
    """Upload could not be processed. The reason is never disclosed."""
    error_code = "UPLOAD_REJECTED"
    http_status = 400

    GENERIC_MESSAGE = "The upload could not be processed. Please check your files and try again."

    def __init__(self):
        super().__init__(self.GENERIC_MESSAGE)


# Lifecycle errors (operator facing)
class RequestNotFoundError(DocRequestError):
    """Document request not found"""
    error_code = "REQUEST_NOT_FOUND"
    http_status = 404


class ArtifactNotFoundError(DocRequestError):
    """File artifact not found"""
    error_code = "ARTIFACT_NOT_FOUND"
    http_status = 404


class RecordNotFoundError(DocRequestError):
    """Originating record not found by the record-access collaborator"""
    error_code = "RECORD_NOT_FOUND"
    http_status = 404


class InvalidStateError(DocRequestError):
    """Action not valid for the request's current status"""
    error_code = "INVALID_STATE"
    http_status = 409


class RequestValidationFailedError(DocRequestError):
    """Operator input failed validation"""
    error_code = "VALIDATION_ERROR"
    http_status = 400


class CommitConflictError(DocRequestError):
    """Lost the conditional status transition to a concurrent writer.

    Resolved internally by re-reading the winner's result.
    """
    error_code = "COMMIT_CONFLICT"
    http_status = 409


# Infrastructure errors
class TransientStoreError(DocRequestError):
    """Persistent store failed in a retryable way"""
    error_code = "TRANSIENT_STORE_ERROR"
    http_status = 503


class StorageError(DocRequestError):
    """Artifact store operation failed"""
    error_code = "STORAGE_ERROR"
    http_status = 503
