"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from core.exceptions import OrderNotFoundError
from ipn.exceptions import AuthenticationError, ResolutionError

logger = logging.getLogger(__name__)


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _json_error(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_response(code, message, _request_id(request)).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(request: Request, exc: AuthenticationError):
        # Reason stays in the security log, the sender learns nothing
        return _json_error(
            request, 401, ErrorCodes.NOTIFICATION_UNAUTHENTICATED, "Notification rejected"
        )

    @app.exception_handler(ResolutionError)
    async def resolution_error_handler(request: Request, exc: ResolutionError):
        logger.error("Unresolvable request on %s: %s", request.url.path, exc)
        return _json_error(request, 422, ErrorCodes.NOTIFICATION_UNRESOLVED, str(exc))

    @app.exception_handler(OrderNotFoundError)
    async def order_not_found_handler(request: Request, exc: OrderNotFoundError):
        return _json_error(request, 404, ErrorCodes.NOT_FOUND, str(exc))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        message = str(exc)
        if "not found" in message.lower():
            return _json_error(request, 404, ErrorCodes.NOT_FOUND, message)
        return _json_error(request, 400, ErrorCodes.INVALID_REQUEST, message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _json_error(request, 422, ErrorCodes.VALIDATION_ERROR, str(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _json_error(request, 500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
