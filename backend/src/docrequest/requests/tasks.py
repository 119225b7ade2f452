"""Celery tasks for document request expiration.

Tasks:
- expiration_sweep_task: Daily job (02:00 UTC by default, see celery_app)
"""

import logging
from typing import Any, Dict

from celery import shared_task

from ..database import SessionLocal
from .expiration import run_expiration_sweep

logger = logging.getLogger(__name__)


@shared_task(name="document_requests.expiration_sweep", bind=True)
def expiration_sweep_task(self) -> Dict[str, Any]:
    """Run the expiration sweep once.

    Idempotent: a second run in succession finds nothing left to expire.
    Errors are logged and reported in the result; the next scheduled run
    picks up whatever this one missed.
    """
    logger.info("Expiration sweep task started")

    db = SessionLocal()
    try:
        expired_count = run_expiration_sweep(db)
        return {"status": "completed", "expired_count": expired_count}

    except Exception as e:
        db.rollback()
        logger.error(
            "Expiration sweep task failed",
            exc_info=True,
            extra={"error": str(e)},
        )
        return {"status": "failed", "error": str(e), "expired_count": 0}

    finally:
        db.close()
