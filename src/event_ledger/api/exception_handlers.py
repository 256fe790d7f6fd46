"""Map exceptions to the ``{"error": message}`` response shape."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from event_ledger.errors import GoneError, LedgerError

logger = logging.getLogger(__name__)


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    content: dict = {"error": exc.message}
    if isinstance(exc, GoneError):
        content["deprecated"] = True
    return JSONResponse(status_code=exc.status_code, content=content)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def build_unhandled_exception_handler(verbose: bool):
    """Return the catch-all handler; ``verbose`` exposes the exception text."""

    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc
        )
        message = f"Internal server error: {exc}" if verbose else "Internal server error"
        return JSONResponse(status_code=500, content={"error": message})

    return unhandled_exception_handler


def register_exception_handlers(app: FastAPI, *, verbose_errors: bool = False) -> None:
    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, build_unhandled_exception_handler(verbose_errors))
