"""Celery application and beat schedule.

Start a worker with beat:
    celery -A docrequest.celery_app worker --beat --loglevel=INFO
"""

from celery import Celery
from celery.schedules import crontab

from .config import get_settings

settings = get_settings()

app = Celery(
    "docrequest",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

app.conf.update(
    imports=["docrequest.requests.tasks"],
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
)

app.conf.beat_schedule = {
    "document-requests-expiration-sweep": {
        "task": "document_requests.expiration_sweep",
        "schedule": crontab(
            hour=settings.EXPIRATION_SWEEP_HOUR,
            minute=settings.EXPIRATION_SWEEP_MINUTE,
        ),
        "options": {
            "expires": 3600,  # Skip if not picked up within an hour
        },
    },
}

celery_app = app
