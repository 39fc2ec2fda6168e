"""Exception handlers translating domain and storage errors to JSON responses."""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from app.core.config import settings
from app.core.exceptions import DomainError
from app.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


def _error(status_code: int, title: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=title, message=message).model_dump(),
    )


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        logger.info("%s: %s %s -> %s", exc.title, request.method, request.url.path, exc.message)
    else:
        logger.warning("%s: %s %s -> %s", exc.title, request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.title, exc.message)


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning(
        "Data integrity violation: %s %s -> %s", request.method, request.url.path, exc.orig
    )
    return _error(
        status.HTTP_409_CONFLICT,
        "Data integrity violation",
        "The request violates database constraints",
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error at %s %s", request.method, request.url.path)
    message = str(exc) if settings.ENVIRONMENT == "dev" else "An unexpected error occurred"
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", message)


EXCEPTION_HANDLERS = {
    DomainError: domain_error_handler,
    IntegrityError: integrity_error_handler,
    Exception: unexpected_error_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
