"""RequestStatus state machine for the document request lifecycle

State Flow:
    Draft → Sent → Files_Received → Under_Review → Approved | Rejected

Any non-terminal status can move to Expired once the token lifetime passes.
Terminal States: Approved, Rejected, Expired (absorbing)
"""

from enum import Enum
from typing import Dict, List, FrozenSet


class RequestStatus(str, Enum):
    """Document request status enumeration."""
    DRAFT = "Draft"
    SENT = "Sent"
    FILES_RECEIVED = "Files_Received"
    UNDER_REVIEW = "Under_Review"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    EXPIRED = "Expired"


ALLOWED_TRANSITIONS: Dict[RequestStatus, List[RequestStatus]] = {
    RequestStatus.DRAFT: [RequestStatus.SENT, RequestStatus.EXPIRED],
    RequestStatus.SENT: [RequestStatus.FILES_RECEIVED, RequestStatus.EXPIRED],
    RequestStatus.FILES_RECEIVED: [
        RequestStatus.UNDER_REVIEW,
        RequestStatus.APPROVED,  # commit straight from Files_Received
        RequestStatus.EXPIRED,
    ],
    RequestStatus.UNDER_REVIEW: [
        RequestStatus.APPROVED,
        RequestStatus.REJECTED,
        RequestStatus.EXPIRED,
    ],
    RequestStatus.APPROVED: [],  # Terminal state
    RequestStatus.REJECTED: [],  # Terminal state
    RequestStatus.EXPIRED: [],  # Terminal state
}

TERMINAL_STATUSES: FrozenSet[RequestStatus] = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)

EXPIRABLE_STATUSES: FrozenSet[RequestStatus] = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items()
    if RequestStatus.EXPIRED in targets
)

# Statuses in which the anonymous party may use the link
PORTAL_OPEN_STATUSES: FrozenSet[RequestStatus] = frozenset({
    RequestStatus.SENT,
    RequestStatus.FILES_RECEIVED,
    RequestStatus.UNDER_REVIEW,
})

# Statuses in which an operator may review files or commit
REVIEWABLE_STATUSES: FrozenSet[RequestStatus] = frozenset({
    RequestStatus.FILES_RECEIVED,
    RequestStatus.UNDER_REVIEW,
})


def can_transition(from_status: RequestStatus, to_status: RequestStatus) -> bool:
    """Check if the transition table allows from_status -> to_status.

    Example:
        >>> can_transition(RequestStatus.SENT, RequestStatus.FILES_RECEIVED)
        True
        >>> can_transition(RequestStatus.EXPIRED, RequestStatus.SENT)
        False
    """
    allowed = ALLOWED_TRANSITIONS.get(RequestStatus(from_status), [])
    return RequestStatus(to_status) in allowed


def sources_for(to_status: RequestStatus) -> List[str]:
    """Status values that may transition into to_status.

    Used as the guard of conditional UPDATE statements so the transition
    table stays the only place transitions are defined.
    """
    return [
        status.value for status in ALLOWED_TRANSITIONS
        if can_transition(status, to_status)
    ]
