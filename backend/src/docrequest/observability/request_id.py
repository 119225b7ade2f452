"""Correlation IDs carried through a request and into every log line."""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Inbound IDs come from anonymous portal clients and end up in log output
_ACCEPTED_REQUEST_ID = re.compile(r"[A-Za-z0-9._-]{1,64}")


def generate_request_id() -> str:
    return uuid.uuid4().hex


def accept_request_id(header_value: Optional[str]) -> str:
    """Reuse a caller-supplied X-Request-ID if it is short and plain, else mint one."""
    if header_value and _ACCEPTED_REQUEST_ID.fullmatch(header_value):
        return header_value
    return generate_request_id()


def get_request_id() -> str:
    return request_id_var.get() or "no-request-id"


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)
