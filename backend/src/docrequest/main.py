"""DocRequest API application.

Three audiences share one app:
- operators (JWT) under /api/v1/document-requests
- administrators (JWT, ADMIN role) under /api/v1/admin
- anonymous portal clients under /api/v1/portal, authenticated by token only

Portal failures are always reported with one of the generic portal errors so
callers cannot tell which tokens exist.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .admin.router import router as admin_router
from .config import get_settings
from .domain.errors import (
    DocRequestError,
    InvalidFieldPathError,
    InvalidOrExpiredTokenError,
    UploadRejectedError,
)
from .observability.logging_config import configure_logging
from .observability.middleware import RequestIDMiddleware
from .observability.router import router as observability_router
from .portal.router import router as portal_router
from .requests.router import router as document_requests_router

API_PREFIX = "/api/v1"
PORTAL_PREFIX = f"{API_PREFIX}/portal"
APP_VERSION = "0.1.0"

logger = logging.getLogger(__name__)


def _error(status_code: int, code: str, message: str, details=None) -> JSONResponse:
    body = {"error": code, "message": message}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def _on_portal(request: Request) -> bool:
    return request.url.path.startswith(PORTAL_PREFIX)


async def handle_domain_error(request: Request, exc: DocRequestError) -> JSONResponse:
    # A broken field path is an admin problem; the caller only learns that one exists
    if isinstance(exc, InvalidFieldPathError):
        logger.error(
            f"Configuration error on {request.method} {request.url.path}",
            extra={"path": exc.path},
        )
        return _error(
            exc.http_status,
            exc.error_code,
            "A configuration error occurred. Please contact an administrator.",
            details={},
        )

    if exc.http_status >= 500 and _on_portal(request):
        logger.error(f"Portal error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Field-level detail for operators, a generic portal error otherwise."""
    logger.warning(
        f"Validation error on {request.method} {request.url.path}",
        extra={"errors": exc.errors()},
    )
    if _on_portal(request):
        generic = InvalidOrExpiredTokenError() if request.method == "GET" else UploadRejectedError()
        return JSONResponse(status_code=generic.http_status, content=generic.to_dict())

    return _error(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "validation_error",
        "Request validation failed",
        details=jsonable_encoder(exc.errors()),
    )


async def handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error on {request.method} {request.url.path}", exc_info=exc)
    return _error(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "TRANSIENT_STORE_ERROR",
        "A database error occurred. Please try again later.",
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "An unexpected error occurred. Please try again later.",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("DocRequest API starting", extra={"environment": settings.ENVIRONMENT})
    yield
    logger.info("DocRequest API stopped")


def create_app() -> FastAPI:
    """Build the application with logging, middleware, handlers and routers wired."""
    settings = get_settings()
    configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

    docs_enabled = settings.ENVIRONMENT != "production"
    application = FastAPI(
        title="DocRequest API",
        description="Secure document requests to external parties",
        version=APP_VERSION,
        docs_url="/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )

    # Added first so it wraps everything, including CORS preflights
    application.add_middleware(RequestIDMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    application.add_exception_handler(DocRequestError, handle_domain_error)
    application.add_exception_handler(RequestValidationError, handle_validation_error)
    application.add_exception_handler(SQLAlchemyError, handle_database_error)
    application.add_exception_handler(Exception, handle_unexpected_error)

    application.include_router(observability_router)
    for router in (document_requests_router, admin_router, portal_router):
        application.include_router(router, prefix=API_PREFIX)

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "docrequest.main:app",
        host="0.0.0.0",
        port=8000,
        reload=get_settings().ENVIRONMENT == "development",
    )
