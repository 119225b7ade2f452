"""Review Assignment Port - task handed to the reviewing operator."""

from abc import ABC, abstractmethod
from uuid import UUID


class ReviewAssignmentPort(ABC):
    """Port interface for creating and closing review assignments.

    Called inside the lifecycle transaction: on the first successful upload
    and on a successful commit or rejection.
    """

    @abstractmethod
    def create_review_assignment(self, request_id: UUID, owner_id: str) -> None:
        """Open a review assignment for request_id (idempotent per request)."""
        pass

    @abstractmethod
    def complete_assignment(self, request_id: UUID) -> None:
        """Close any open assignment for request_id (no-op if none)."""
        pass
