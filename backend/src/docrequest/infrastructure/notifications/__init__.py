from .celery_sender import CeleryNotificationSender

__all__ = ["CeleryNotificationSender"]
