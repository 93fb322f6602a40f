"""JSON error bodies and global exception handlers.

Every error leaves the service as ``{"error": <message>, "code": <kind>}``
with the status carried by the domain error class.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from survey_builder.logic.errors import MethodNotAllowed, SurveyBuilderError, ValidationError

ALLOWED_METHODS = "GET, POST"
DATA_PATH = "/api/data"

logger = logging.getLogger(__name__)


def error_body(message: str, code: str) -> Dict[str, Any]:
    return {"error": message, "code": code}


def error_response(exc: SurveyBuilderError) -> JSONResponse:
    headers = {"Allow": ALLOWED_METHODS} if isinstance(exc, MethodNotAllowed) else None
    return JSONResponse(error_body(exc.message, exc.code), status_code=exc.status, headers=headers)


async def handle_domain_error(request: Request, exc: SurveyBuilderError) -> JSONResponse:  # noqa: D401
    log = logger.error if exc.status >= 500 else logger.info
    log("error_handler.handle code=%s status=%s path=%s", exc.code, exc.status, request.url.path)
    return error_response(exc)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    errors = [
        {"loc": list(err.get("loc", ())), "msg": str(err.get("msg", ""))}
        for err in exc.errors()
    ]
    body = error_body("Invalid request payload", ValidationError.code)
    body["errors"] = errors
    return JSONResponse(body, status_code=ValidationError.status)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # noqa: D401
    status_code = int(getattr(exc, "status_code", 500) or 500)
    headers = dict(exc.headers) if isinstance(getattr(exc, "headers", None), dict) else None
    if status_code == MethodNotAllowed.status:
        body = error_body(f"Method {request.method} Not Allowed", MethodNotAllowed.code)
        if request.url.path == DATA_PATH:
            headers = {**(headers or {}), "Allow": ALLOWED_METHODS}
    else:
        body = error_body(str(exc.detail), "HTTP_ERROR")
    return JSONResponse(body, status_code=status_code, headers=headers)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error path=%s", request.url.path, exc_info=True)
    return JSONResponse(error_body(str(exc) or "Internal Server Error", "INTERNAL_ERROR"), status_code=500)


__all__ = [
    "ALLOWED_METHODS",
    "error_body",
    "error_response",
    "handle_domain_error",
    "handle_request_validation_error",
    "handle_http_exception",
    "handle_unexpected_error",
]
