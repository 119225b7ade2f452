"""Portal token generation and syntax checks

Tokens carry 128 random bits and are rendered in canonical lowercase
hyphenated hexadecimal (8-4-4-4-12). Comparison is case-insensitive, so
tokens are normalized to lowercase before storage and lookup.
"""

import re
import secrets
import uuid
from typing import Optional

TOKEN_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"
)


def generate_token() -> str:
    """Generate a new portal token from 16 bytes of CSPRNG output."""
    return str(uuid.UUID(bytes=secrets.token_bytes(16)))


def normalize_token(token: Optional[str]) -> str:
    """Strip and lowercase a presented token."""
    return (token or "").strip().lower()


def is_well_formed_token(token: Optional[str]) -> bool:
    """Check the token's syntax after normalization.

    Example:
        >>> is_well_formed_token("8F14E45F-CEEA-467F-A0E6-0D2A7B1C9E3D")
        True
        >>> is_well_formed_token("not-a-token")
        False
    """
    return bool(TOKEN_PATTERN.match(normalize_token(token)))
