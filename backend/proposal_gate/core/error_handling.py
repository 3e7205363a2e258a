"""Request-id middleware, request logging, and exception handlers."""

from __future__ import annotations

from time import perf_counter
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from fastapi import status
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from proposal_gate.core.config import settings
from proposal_gate.core.logging import REQUEST_ID_VAR, get_logger
from proposal_gate.services.errors import StoreUnavailable

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from fastapi import FastAPI
    from starlette.requests import Request
    from starlette.responses import Response

logger = get_logger(__name__)
REQUEST_ID_HEADER = "X-Request-Id"
_HEALTH_PATHS = frozenset({"/health", "/healthz", "/readyz"})


def _json_safe(value: object) -> object:
    """Coerce validation error payloads into JSON-serializable values."""
    if value is None or isinstance(value, str | int | float | bool):
        return value
    if isinstance(value, bytes | bytearray | memoryview):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, list | tuple | set):
        return [_json_safe(v) for v in value]
    return str(value)


def _get_request_id(request: Request) -> str | None:
    request_id = getattr(request.state, "request_id", None)
    if not isinstance(request_id, str) or not request_id:
        return None
    return request_id


def _error_payload(
    *,
    detail: object,
    request_id: str | None,
    code: str | None = None,
) -> dict[str, object]:
    payload: dict[str, object] = {"detail": detail}
    if code is not None:
        payload["code"] = code
    if request_id is not None:
        payload["request_id"] = request_id
    return payload


def _json_response(
    request: Request,
    *,
    status_code: int,
    detail: object,
    code: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    request_id = _get_request_id(request)
    response = JSONResponse(
        status_code=status_code,
        content=_error_payload(detail=detail, request_id=request_id, code=code),
        headers=headers,
    )
    if request_id is not None:
        response.headers[REQUEST_ID_HEADER] = request_id
    return response


async def _request_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> Response:
    if not isinstance(exc, RequestValidationError):
        msg = "Expected RequestValidationError"
        raise TypeError(msg)
    logger.info(
        "http.request.invalid",
        extra={"path": request.url.path, "error_count": len(exc.errors())},
    )
    return _json_response(
        request,
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=_json_safe(exc.errors()),
    )


async def _response_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> Response:
    if not isinstance(exc, ResponseValidationError):
        msg = "Expected ResponseValidationError"
        raise TypeError(msg)
    logger.error(
        "http.response.invalid",
        extra={"path": request.url.path, "errors": _json_safe(exc.errors())},
    )
    return _json_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal Server Error",
    )


async def _http_exception_exception_handler(
    request: Request,
    exc: Exception,
) -> Response:
    if not isinstance(exc, StarletteHTTPException):
        msg = "Expected StarletteHTTPException"
        raise TypeError(msg)
    code = getattr(exc, "code", None)
    return _json_response(
        request,
        status_code=exc.status_code,
        detail=exc.detail,
        code=code if isinstance(code, str) else None,
        headers=getattr(exc, "headers", None),
    )


async def _store_exception_handler(request: Request, exc: Exception) -> Response:
    if not isinstance(exc, SQLAlchemyError):
        msg = "Expected SQLAlchemyError"
        raise TypeError(msg)
    logger.error(
        "http.request.store_unavailable",
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method},
    )
    return await _http_exception_exception_handler(request, StoreUnavailable())


async def _unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    logger.error(
        "http.request.unhandled_exception",
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method},
    )
    return _json_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal Server Error",
    )


def _should_log_request(path: str) -> bool:
    return settings.request_log_include_health or path not in _HEALTH_PATHS


async def _request_context_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    supplied = request.headers.get(REQUEST_ID_HEADER, "").strip()
    request_id = supplied or uuid4().hex
    request.state.request_id = request_id
    token = REQUEST_ID_VAR.set(request_id)
    started = perf_counter()
    try:
        response = await call_next(request)
    finally:
        REQUEST_ID_VAR.reset(token)
    elapsed_ms = int((perf_counter() - started) * 1000)
    response.headers[REQUEST_ID_HEADER] = request_id

    path = request.url.path
    if _should_log_request(path):
        extra: dict[str, Any] = {
            "method": request.method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": elapsed_ms,
            "request_id": request_id,
        }
        logger.info("http.request.completed", extra=extra)
        slow_threshold = settings.request_log_slow_ms
        if slow_threshold and elapsed_ms >= slow_threshold:
            logger.warning(
                "http.request.slow",
                extra={**extra, "slow_threshold_ms": slow_threshold},
            )
    return response


def install_error_handling(app: FastAPI) -> None:
    """Register request-id middleware and JSON exception handlers on `app`."""
    app.middleware("http")(_request_context_middleware)
    app.add_exception_handler(RequestValidationError, _request_validation_exception_handler)
    app.add_exception_handler(ResponseValidationError, _response_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_exception_handler)
    app.add_exception_handler(SQLAlchemyError, _store_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
