"""Requests domain module - request status machine, review status, tokens"""

from .request_status import (
    RequestStatus,
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    EXPIRABLE_STATUSES,
    PORTAL_OPEN_STATUSES,
    REVIEWABLE_STATUSES,
    can_transition,
)
from .review_status import ReviewStatus, UploadSource
from .tokens import generate_token, normalize_token, is_well_formed_token

__all__ = [
    "RequestStatus",
    "ALLOWED_TRANSITIONS",
    "TERMINAL_STATUSES",
    "EXPIRABLE_STATUSES",
    "PORTAL_OPEN_STATUSES",
    "REVIEWABLE_STATUSES",
    "can_transition",
    "ReviewStatus",
    "UploadSource",
    "generate_token",
    "normalize_token",
    "is_well_formed_token",
]
