"""Map domain errors to HTTP responses."""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from kithu.errors import (
    DuplicateUser,
    InvalidCredentials,
    InvalidOrExpiredToken,
    KithuError,
    NotFound,
    StoreUnavailable,
)

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = "5"


def error_response(exc: KithuError) -> JSONResponse:
    """Build the HTTP response for a domain error."""
    headers = None
    if isinstance(exc, (InvalidCredentials, InvalidOrExpiredToken)):
        status_code = status.HTTP_401_UNAUTHORIZED
        headers = {"WWW-Authenticate": "Bearer"}
    elif isinstance(exc, DuplicateUser):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, NotFound):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, StoreUnavailable):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        headers = {"Retry-After": RETRY_AFTER_SECONDS}
    else:
        status_code = status.HTTP_400_BAD_REQUEST

    return JSONResponse(status_code=status_code, content={"detail": str(exc)}, headers=headers)


async def kithu_error_handler(_: Request, exc: KithuError) -> JSONResponse:
    return error_response(exc)


async def general_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected errors (500)."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected error occurred"},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(KithuError, kithu_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
