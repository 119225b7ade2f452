"""JWT token generation and validation for operators

Operator bearer tokens carry:
- sub: operator id (string)
- email: operator email
- role: "ADMIN" | "OPERATOR"
- iat / exp: issue and expiry timestamps

These tokens authenticate the privileged surface only. Portal tokens are a
separate, unrelated mechanism (see domain.requests.tokens).
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Any

import jwt

from ..config import get_settings


def create_access_token(operator_id: str, email: str, role: str) -> str:
    """Create a signed JWT for an operator.

    Args:
        operator_id: Operator identifier (becomes the sub claim)
        email: Operator email address
        role: ADMIN or OPERATOR

    Returns:
        str: Signed JWT token
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expiration = now + timedelta(minutes=settings.JWT_EXPIRY_MINUTES)

    payload = {
        'sub': str(operator_id),
        'email': email,
        'role': role,
        'iat': int(now.timestamp()),
        'exp': int(expiration.timestamp())
    }

    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or tampered
    """
    settings = get_settings()
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
