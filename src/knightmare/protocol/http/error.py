from __future__ import annotations

import logging
from typing import Any, Optional, cast

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from ...engine.board import SetupError


logger = logging.getLogger(__name__)

# Named HTTP_422_UNPROCESSABLE_CONTENT in newer Starlette releases
HTTP_422_UNPROCESSABLE = 422

_STATUS_CODES: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_409_CONFLICT: "conflict",
    HTTP_422_UNPROCESSABLE: "unprocessable_entity",
}


def error_envelope(
    *,
    code: str,
    message: str,
    err_type: str,
    request_id: str,
    field_errors: Optional[list[dict[str, str]]] = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
            "type": err_type,
            "request_id": request_id,
        }
    }
    if field_errors:
        payload["error"]["field_errors"] = field_errors
    return payload


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")


def _render(status_code: int, code: str, message: str, request_id: str, **extra: Any) -> JSONResponse:
    payload = error_envelope(
        code=code,
        message=message,
        err_type="client_error" if 400 <= status_code < 500 else "server_error",
        request_id=request_id,
        **extra,
    )
    return JSONResponse(status_code=status_code, content=payload)


def _render_http_exception(exc: HTTPException, request_id: str) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _render(exc.status_code, _status_to_code(exc.status_code), message, request_id)


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, HTTPException):
        return _render_http_exception(exc, _request_id(request))
    # Registered for HTTPException only; anything else is a server fault
    return await exception_handler(request, exc)


async def setup_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Malformed board setups reaching the app unhandled become 400s."""
    return _render(status.HTTP_400_BAD_REQUEST, "invalid_setup", str(exc), _request_id(request))


async def exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = _request_id(request)
    if isinstance(exc, HTTPException):
        return _render_http_exception(exc, request_id)
    if isinstance(exc, SetupError):
        return await setup_error_handler(request, exc)
    logger.exception("Unhandled exception", extra={"request_id": request_id})
    return _render(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", "Internal Server Error", request_id
    )


async def request_validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Pydantic/FastAPI validation errors keep their 422 with per-field detail
    errors = []
    rve = cast(RequestValidationError, exc)
    for e in rve.errors():
        loc = ".".join(str(p) for p in e.get("loc", []) if p is not None)
        errors.append(
            {
                "field": loc,
                "code": e.get("type", "value_error"),
                "message": e.get("msg", "invalid value"),
            }
        )
    return _render(
        HTTP_422_UNPROCESSABLE,
        "unprocessable_entity",
        "Validation error",
        _request_id(request),
        field_errors=errors or None,
    )


def _status_to_code(status_code: int) -> str:
    if status_code in _STATUS_CODES:
        return _STATUS_CODES[status_code]
    if 500 <= status_code < 600:
        return "internal_error"
    return "error"
