"""File validation utilities for portal uploads

Batch validation is all-or-nothing: the first violated limit rejects the
whole batch before anything is decoded or stored.
"""

import base64
import binascii
import os
import re
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ..configs.entity_type_config import EntityTypeConfig
from ..errors import UploadLimitExceededError, UploadRejectedError


@dataclass
class IncomingFile:
    """A file as received from the portal, still base64 encoded."""
    file_name: str
    base64_data: str
    content_type: Optional[str] = None
    size_bytes: Optional[int] = None  # size declared by the client


@dataclass
class DecodedFile:
    """A file that passed every check and is ready to store."""
    file_name: str
    content: bytes
    content_type: str


def file_extension(filename: str) -> str:
    """Lowercase substring after the last '.', or '' if there is none.

    Example:
        >>> file_extension("Scan.PDF")
        'pdf'
        >>> file_extension("README")
        ''
    """
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def declared_size(incoming: IncomingFile) -> int:
    """Size the client claims for a file.

    Falls back to the size implied by the base64 payload length when the
    client sent no explicit size.
    """
    if incoming.size_bytes is not None:
        return incoming.size_bytes
    data = (incoming.base64_data or "").strip()
    padding = data.count("=", max(len(data) - 2, 0))
    return max((len(data) * 3) // 4 - padding, 0)


def validate_batch_limits(files: Sequence[IncomingFile], config: EntityTypeConfig) -> None:
    """Check count, declared sizes, and extensions against the config.

    Raises:
        UploadRejectedError: If the batch is empty
        UploadLimitExceededError: On the first violated limit
    """
    if not files:
        raise UploadRejectedError()

    if len(files) > config.max_files_per_upload:
        raise UploadLimitExceededError(
            UploadLimitExceededError.MAX_FILES,
            f"Too many files. Maximum is {config.max_files_per_upload} per upload.",
        )

    for incoming in files:
        if declared_size(incoming) > config.max_file_size_bytes:
            raise UploadLimitExceededError(
                UploadLimitExceededError.MAX_FILE_SIZE,
                f"A file exceeds the maximum size of {config.max_file_size_bytes} bytes.",
            )

    for incoming in files:
        if file_extension(incoming.file_name) not in config.allowed_extensions:
            raise UploadLimitExceededError(
                UploadLimitExceededError.ALLOWED_EXTENSIONS,
                "File type is not allowed. Allowed types: "
                + ", ".join(sorted(config.allowed_extensions)),
            )


def decode_file(incoming: IncomingFile, config: EntityTypeConfig) -> DecodedFile:
    """Decode one file and re-check its real size.

    Raises:
        UploadRejectedError: Undecodable payload, unsafe filename, or empty file
        UploadLimitExceededError: Decoded size exceeds the cap
    """
    is_valid, _ = validate_filename(incoming.file_name)
    if not is_valid:
        raise UploadRejectedError()

    try:
        content = base64.b64decode(incoming.base64_data or "", validate=True)
    except (binascii.Error, ValueError):
        raise UploadRejectedError()

    is_valid, _ = validate_file_size(len(content), config.max_file_size_bytes)
    if not is_valid:
        if len(content) > config.max_file_size_bytes:
            raise UploadLimitExceededError(
                UploadLimitExceededError.MAX_FILE_SIZE,
                f"A file exceeds the maximum size of {config.max_file_size_bytes} bytes.",
            )
        raise UploadRejectedError()

    return DecodedFile(
        file_name=sanitize_filename(incoming.file_name),
        content=content,
        content_type=incoming.content_type or "application/octet-stream",
    )


def validate_file_size(size_bytes: int, max_size: int) -> Tuple[bool, Optional[str]]:
    """Validate file size is within limits

    Returns:
        Tuple of (is_valid, error_message)
    """
    if size_bytes == 0:
        return False, "File is empty (0 bytes)"

    if size_bytes > max_size:
        return False, f"File exceeds maximum size of {max_size} bytes (got {size_bytes} bytes)"

    return True, None


def validate_filename(filename: str) -> Tuple[bool, Optional[str]]:
    """Validate filename

    Validation rules:
    - Not empty
    - Max 255 characters
    - No path traversal (../, ..\\)
    - No null bytes or control characters

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not filename or len(filename.strip()) == 0:
        return False, "Filename cannot be empty"

    if len(filename) > 255:
        return False, f"Filename exceeds 255 characters (got {len(filename)})"

    if '..' in filename or '/' in filename or '\\' in filename:
        return False, "Filename contains path traversal or directory separators"

    if any(ord(c) < 32 for c in filename):
        return False, "Filename contains control characters"

    return True, None


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for safe storage

    Example:
        >>> sanitize_filename('tax return (2024).pdf')
        'tax_return_2024_.pdf'
    """
    filename = os.path.basename(filename)

    # Replace problematic characters with underscore
    filename = re.sub(r'[^\w\s.-]', '_', filename)

    # Collapse multiple spaces/underscores
    filename = re.sub(r'[\s_]+', '_', filename)

    if len(filename) > 255:
        name, ext = os.path.splitext(filename)
        filename = name[:255 - len(ext)] + ext

    return filename
