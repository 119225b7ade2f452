"""Recipient resolution - configuration-driven field path traversal"""

from .field_path import FieldPath, parse_field_path, evaluate_field_path, MAX_PATH_SEGMENTS
from .resolver import RecipientResolver, RecipientDescriptor, DEFAULT_RECIPIENT_NAME

__all__ = [
    "FieldPath",
    "parse_field_path",
    "evaluate_field_path",
    "MAX_PATH_SEGMENTS",
    "RecipientResolver",
    "RecipientDescriptor",
    "DEFAULT_RECIPIENT_NAME",
]
