"""Unit tests for operator JWT authentication"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from docrequest.auth.dependencies import Operator, get_current_operator, require_admin
from docrequest.auth.jwt import create_access_token, decode_token
from docrequest.config import get_settings


def credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestAccessTokens:

    def test_round_trip_claims(self):
        payload = decode_token(create_access_token("op-1", "op@example.com", "OPERATOR"))
        assert payload["sub"] == "op-1"
        assert payload["role"] == "OPERATOR"
        assert payload["exp"] > payload["iat"]

    def test_tampered_token_rejected(self):
        token = create_access_token("op-1", "op@example.com", "OPERATOR")
        other = create_access_token("admin-1", "admin@example.com", "ADMIN")
        forged = ".".join(other.split(".")[:2] + token.split(".")[2:])
        with pytest.raises(jwt.InvalidTokenError):
            decode_token(forged)


class TestGetCurrentOperator:

    def test_valid_token(self):
        operator = get_current_operator(credentials(create_access_token("op-1", "op@example.com", "OPERATOR")))
        assert operator == Operator(id="op-1", email="op@example.com", role="OPERATOR")
        assert operator.is_admin is False

    def test_expired_token(self):
        settings = get_settings()
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {"sub": "op-1", "role": "OPERATOR", "iat": int(past.timestamp()), "exp": int(past.timestamp()) + 60},
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
        )
        with pytest.raises(HTTPException) as exc_info:
            get_current_operator(credentials(token))
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Token has expired"

    def test_unknown_role(self):
        token = create_access_token("op-1", "op@example.com", "GUEST")
        with pytest.raises(HTTPException) as exc_info:
            get_current_operator(credentials(token))
        assert exc_info.value.status_code == 401


class TestRequireAdmin:

    def test_admin_admitted(self):
        admin = Operator(id="admin-1", email="a@example.com", role="ADMIN")
        assert require_admin(admin) is admin

    def test_operator_forbidden(self):
        with pytest.raises(HTTPException) as exc_info:
            require_admin(Operator(id="op-1", email="op@example.com", role="OPERATOR"))
        assert exc_info.value.status_code == 403
