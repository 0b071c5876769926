"""Error taxonomy and the handlers that turn it into JSON responses."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from todoai.core.config import settings

logger = logging.getLogger(__name__)

REAUTHENTICATE_MESSAGE = "Your session has expired. Please sign in again."
STORAGE_ERROR_MESSAGE = "A storage error occurred."


class TodoAIError(Exception):
    """Base class for every caller-facing failure."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None, *, detail: str | None = None) -> None:
        self.message = message or self.default_message
        # Underlying cause, exposed to clients only in debug builds.
        self.detail = detail
        super().__init__(self.message)


class InvalidInput(TodoAIError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "The request is invalid."


class NothingToAnalyze(TodoAIError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "There are no tasks to analyze."


class NotFound(TodoAIError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


class Conflict(TodoAIError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "The resource already exists."


class AuthenticationFailed(TodoAIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication is required."


class SessionExpired(AuthenticationFailed):
    default_message = REAUTHENTICATE_MESSAGE


class OwnershipViolation(TodoAIError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "This record belongs to another user."


class ServiceError(TodoAIError):
    """Catch-all failure of the completion service."""

    default_message = "The AI service failed. Please try again shortly."


class ServiceAuthError(ServiceError):
    default_message = "The AI service rejected our credentials."


class ServiceRateLimited(ServiceError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "The AI service usage limit was reached. Please try again later."


class ServiceUnavailable(ServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "The AI service could not be reached. Check your connection and try again."


def describe_storage_error(exc: BaseException) -> str:
    """Return the caller-facing message for a storage failure.

    Storage messages are surfaced verbatim, except that anything pointing at an
    expired credential is rewritten to ask the user to sign in again.
    """
    raw = str(getattr(exc, "orig", None) or exc).strip()
    lowered = raw.lower()
    if "jwt" in lowered or "expired" in lowered:
        return REAUTHENTICATE_MESSAGE
    return raw or STORAGE_ERROR_MESSAGE


def error_payload(message: str, detail: Optional[str] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"success": False, "error": message}
    if settings.debug and detail:
        payload["details"] = detail
    return payload


async def handle_todoai_error(request: Request, exc: TodoAIError) -> JSONResponse:
    level = logging.WARNING if exc.status_code < 500 else logging.ERROR
    logger.log(level, "%s on %s: %s", type(exc).__name__, request.url.path, exc.detail or exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_payload(exc.message, exc.detail))


async def handle_storage_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Storage failure on %s", request.url.path)
    message = describe_storage_error(exc)
    status_code = (
        status.HTTP_401_UNAUTHORIZED if message == REAUTHENTICATE_MESSAGE else status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    return JSONResponse(status_code=status_code, content=error_payload(message, str(exc)))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TodoAIError, handle_todoai_error)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, handle_storage_error)  # type: ignore[arg-type]
