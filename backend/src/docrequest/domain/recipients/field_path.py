"""Field path grammar and evaluator

A field path is a dot-separated list of at most five identifiers. Every
segment but the last is a relationship hop; the last is the terminal field:

    email               -> terminal field on the record itself
    contact.email       -> hop "contact", then field "email"
    account.owner.name  -> two hops, then field "name"

Evaluation walks a generic key-value record (see RecordAccessPort). A null
hop short-circuits to a null leaf for that path only.
"""

import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from ..errors import InvalidFieldPathError

MAX_PATH_SEGMENTS = 5

SEGMENT_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class FieldPath:
    """Parsed field path: ordered relationship hops plus the terminal field."""
    raw: str
    hops: Tuple[str, ...]
    field: str

    @property
    def root(self) -> str:
        """Field on the root record the path starts from."""
        return self.hops[0] if self.hops else self.field

    def __str__(self) -> str:
        return self.raw


def parse_field_path(raw: str) -> FieldPath:
    """Parse a dot-separated field path.

    Raises:
        InvalidFieldPathError: If the path is blank, has empty or malformed
            segments, or exceeds MAX_PATH_SEGMENTS

    Example:
        >>> parse_field_path("contact.email")
        FieldPath(raw='contact.email', hops=('contact',), field='email')
    """
    if raw is None or not raw.strip():
        raise InvalidFieldPathError("Field path is empty", path=raw)

    text = raw.strip()
    segments = text.split(".")

    if len(segments) > MAX_PATH_SEGMENTS:
        raise InvalidFieldPathError(
            f"Field path has {len(segments)} segments (maximum {MAX_PATH_SEGMENTS})",
            path=raw,
        )

    for segment in segments:
        if not SEGMENT_PATTERN.match(segment):
            raise InvalidFieldPathError(
                f"Field path segment '{segment}' is not a valid identifier",
                path=raw,
            )

    return FieldPath(raw=text, hops=tuple(segments[:-1]), field=segments[-1])


def evaluate_field_path(record: Mapping[str, Any], path: FieldPath) -> Optional[Any]:
    """Walk path over record and return the terminal value.

    Returns None when any hop is null. A hop or field missing from the record,
    or a hop that is not itself a record, is a configuration defect.

    Raises:
        InvalidFieldPathError: If the path does not match the record's shape
    """
    current: Mapping[str, Any] = record

    for hop in path.hops:
        if hop not in current:
            raise InvalidFieldPathError(
                f"Relationship '{hop}' not found on record", path=path.raw
            )
        value = current[hop]
        if value is None:
            return None
        if not isinstance(value, Mapping):
            raise InvalidFieldPathError(
                f"Segment '{hop}' is a field, not a relationship", path=path.raw
            )
        current = value

    if path.field not in current:
        raise InvalidFieldPathError(
            f"Field '{path.field}' not found on record", path=path.raw
        )

    value = current[path.field]
    if isinstance(value, Mapping):
        raise InvalidFieldPathError(
            f"Segment '{path.field}' is a relationship, not a field", path=path.raw
        )
    return value
