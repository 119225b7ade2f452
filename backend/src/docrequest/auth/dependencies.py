"""FastAPI dependencies for operator authentication.

Usage:
    @router.post("/document-requests")
    def create(operator: Operator = Depends(get_current_operator)):
        ...

    @router.put("/entity-type-configs/{type_id}")
    def upsert(operator: Operator = Depends(require_admin)):
        ...
"""

from dataclasses import dataclass

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .jwt import decode_token

ROLE_ADMIN = "ADMIN"
ROLE_OPERATOR = "OPERATOR"
VALID_ROLES = {ROLE_ADMIN, ROLE_OPERATOR}

security = HTTPBearer()


@dataclass(frozen=True)
class Operator:
    """Authenticated internal user, built from token claims."""
    id: str
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def get_current_operator(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Operator:
    """Validate the bearer token and return the operator it names.

    Raises:
        HTTPException 401: If token is missing, invalid, expired, or lacks claims
    """
    try:
        payload = decode_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    operator_id = payload.get("sub")
    role = payload.get("role")
    if not operator_id or role not in VALID_ROLES:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token claims",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return Operator(id=operator_id, email=payload.get("email", ""), role=role)


def require_admin(operator: Operator = Depends(get_current_operator)) -> Operator:
    """Dependency that only admits ADMIN operators.

    Raises:
        HTTPException 403: If the operator is not an admin
    """
    if not operator.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator role required",
        )
    return operator
