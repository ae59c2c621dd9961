"""Exception handlers HTTP para o FastAPI.

Toda resposta de erro usa o envelope ``{success: false, error, details?}``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from voxtract.exceptions import InvalidInputError, VoxtractError
from voxtract.logging import get_logger
from voxtract.server.models.responses import ErrorResponse

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = get_logger("server.errors")

MISSING_URL_ERROR = "Missing required parameter: url"


def error_response(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    """Cria resposta de erro no envelope da API."""
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def _handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "error": "Endpoint not found",
                "requestedPath": request.url.path,
            },
        )
    return error_response(exc.status_code, str(exc.detail))


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    logger.warning("invalid_request_body", path=request.url.path, errors=errors)
    return error_response(400, "Invalid request body", errors)


async def _handle_invalid_input(request: Request, exc: InvalidInputError) -> JSONResponse:
    logger.warning("invalid_input", path=request.url.path, detail=exc.detail)
    return error_response(400, exc.detail)


async def _handle_voxtract_error(request: Request, exc: VoxtractError) -> JSONResponse:
    logger.error(
        "unhandled_voxtract_error",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )
    return error_response(500, "Internal server error", str(exc))


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unexpected_error",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )
    return error_response(500, "Internal server error", str(exc))


def register_error_handlers(app: FastAPI) -> None:
    """Registra todos os exception handlers no FastAPI app."""
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(InvalidInputError, _handle_invalid_input)  # type: ignore[arg-type]
    app.add_exception_handler(VoxtractError, _handle_voxtract_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected_error)
