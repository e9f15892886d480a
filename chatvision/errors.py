# chatvision/errors.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)


class AIGatewayError(Exception):
    """The AI provider call failed; the message is safe to show to users."""


# status and message for a malformed body, per route
VALIDATION_ERRORS = {
    "/api/register": (400, "Invalid registration data"),
    "/api/login": (401, "Invalid credentials"),
    "/api/chat/session": (400, "Invalid session data"),
    "/api/chat/message": (400, "Invalid message data"),
    "/api/ai/text": (400, "Prompt is required"),
}


def error_body(message: str) -> dict:
    return {"success": False, "error": message}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def _http_error(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        status_code, message = VALIDATION_ERRORS.get(request.url.path, (400, "Invalid request data"))
        logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
        return JSONResponse(status_code=status_code, content=error_body(message))

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=error_body("Internal Server Error"))
