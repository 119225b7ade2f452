"""Observability API endpoints.

Provides metrics and health checks for monitoring.
"""

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from ..database import get_db
from .logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Observability"])


@router.get("/metrics", include_in_schema=False)
def metrics():
    """Expose Prometheus metrics in exposition format."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


@router.get("/health", summary="Health check endpoint")
def health_check(db: Session = Depends(get_db)):
    """Check database connectivity.

    Returns 200 OK when the database answers, 503 otherwise.
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Database health check failed", extra={"error": str(e)})
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "components": {"database": "unhealthy"}},
        )

    return {"status": "healthy", "components": {"database": "healthy"}}
