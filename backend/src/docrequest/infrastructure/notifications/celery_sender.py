"""Notification sender that hands messages to a Celery delivery task.

Template rendering and mail transport retries belong to the task consumer;
this adapter only enqueues.
"""

import logging
from typing import Optional

from celery import Celery

from ...domain.ports.notification_port import NotificationMergeFields, NotificationPort

logger = logging.getLogger(__name__)


class CeleryNotificationSender(NotificationPort):
    """Enqueue notifications by task name with send_task."""

    def __init__(self, celery_app: Celery, task_name: str):
        self.celery_app = celery_app
        self.task_name = task_name

    def send(
        self,
        template_id: Optional[str],
        recipient_email: str,
        merge_fields: NotificationMergeFields,
    ) -> None:
        result = self.celery_app.send_task(
            self.task_name,
            kwargs={
                "template_id": template_id,
                "recipient_email": recipient_email,
                "merge_fields": dict(merge_fields),
            },
        )
        logger.info(
            "Notification enqueued",
            extra={
                "task_id": getattr(result, "id", None),
                "template_id": template_id,
                "request_number": merge_fields.get("requestNumber"),
            },
        )
