"""Notification Port - outbound message to the external recipient.

Delivery is fire-and-forget from the core's perspective: a failure to send
never rolls back the request that triggered it.
"""

from abc import ABC, abstractmethod
from typing import Optional, TypedDict


class NotificationMergeFields(TypedDict):
    requestNumber: str
    requestDate: str
    instructions: str
    expirationDate: str
    uploadUrl: str
    recipientName: str


class NotificationPort(ABC):
    """Port interface for sending the upload-link notification."""

    @abstractmethod
    def send(
        self,
        template_id: Optional[str],
        recipient_email: str,
        merge_fields: NotificationMergeFields,
    ) -> None:
        """Hand a notification to the delivery system.

        Args:
            template_id: Template configured for the entity type (may be None)
            recipient_email: Destination address
            merge_fields: Values substituted into the template
        """
        pass
