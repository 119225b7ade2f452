"""Upload validation for the anonymous portal"""

from .validation import (
    IncomingFile,
    DecodedFile,
    file_extension,
    declared_size,
    validate_batch_limits,
    decode_file,
    validate_filename,
    sanitize_filename,
)

__all__ = [
    "IncomingFile",
    "DecodedFile",
    "file_extension",
    "declared_size",
    "validate_batch_limits",
    "decode_file",
    "validate_filename",
    "sanitize_filename",
]
