"""Exception handlers that turn every failure into `{"error": message}`."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from opa_console.errors import ConsoleError
from opa_console.observability import get_logger

logger = get_logger(__name__)


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Request body is not valid JSON"
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return f"{location}: {message}" if location else message


async def console_error_handler(request: Request, exc: ConsoleError) -> JSONResponse:
    """Translate a ConsoleError into its HTTP status and message."""
    logger.warning(
        "Request failed",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
        upstream_status=exc.status_code,
        error=exc.message,
    )
    return JSONResponse(status_code=exc.http_status, content={"error": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed or invalid request bodies as 400 instead of 422."""
    return JSONResponse(status_code=400, content={"error": _first_validation_message(exc)})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler so callers always receive JSON."""
    logger.exception("Unhandled error", method=request.method, path=request.url.path)
    return JSONResponse(status_code=500, content={"error": str(exc) or type(exc).__name__})


def register_exception_handlers(app: FastAPI) -> None:
    """Install the console's exception handlers on an application."""
    app.add_exception_handler(ConsoleError, console_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
