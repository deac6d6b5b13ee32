"""
Exception handlers and request middleware for the CV Match API
"""
import time
import traceback
import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from cvmatch.utils.exceptions import CVMatchBaseException, map_to_http_exception
from cvmatch.utils.logging_config import get_logger

logger = get_logger(__name__)


def _request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if request_id is None:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
    return request_id


def create_error_response(request_id: str, status_code: int, detail: Any) -> JSONResponse:
    """Create standardized error response; `error` is always a message string"""

    if isinstance(detail, str):
        detail = {"error": detail}
    elif not isinstance(detail, dict):
        detail = {"error": str(detail)}

    error_response = {
        "success": False,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": request_id,
        "status_code": status_code,
        **detail
    }

    return JSONResponse(
        status_code=status_code,
        content=error_response,
        headers={"X-Request-ID": request_id}
    )


async def cvmatch_exception_handler(request: Request, exc: CVMatchBaseException) -> JSONResponse:
    request_id = _request_id(request)
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"{exc.__class__.__name__} in {request.method} {request.url.path}: {exc.message}",
        extra={
            "request_id": request_id,
            "error_code": exc.error_code,
            "reason": exc.reason.value,
            "details": exc.details
        }
    )
    http_exc = map_to_http_exception(exc)
    return create_error_response(request_id, http_exc.status_code, http_exc.detail)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    request_id = _request_id(request)
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    logger.warning(
        f"Validation error in {request.method} {request.url.path}: {len(errors)} error(s)",
        extra={"request_id": request_id, "validation_errors": errors}
    )
    return create_error_response(request_id, 400, {
        "error": "Invalid request body",
        "error_code": "VALIDATION_ERROR",
        "retryable": False,
        "user_action": "fix_input",
        "validation_errors": errors
    })


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CVMatchBaseException, cvmatch_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """Outermost middleware: request ids and a last-resort 500"""

    async def dispatch(self, request: Request, call_next):
        request_id = _request_id(request)

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        except CVMatchBaseException as exc:
            return await cvmatch_exception_handler(request, exc)

        except Exception as exc:
            logger.error(
                f"Unhandled exception in {request.method} {request.url.path}: {exc}",
                extra={
                    "request_id": request_id,
                    "exception_type": exc.__class__.__name__,
                    "traceback": traceback.format_exc()
                },
                exc_info=True
            )

            # Don't expose internal errors
            return create_error_response(request_id, 500, {
                "error": "An unexpected error occurred. Please try again later.",
                "error_code": "INTERNAL_ERROR"
            })


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Request/response logging without payload contents"""

    SKIP_PATHS = {"/health", "/healthz", "/ping"}

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        request_id = _request_id(request)

        logger.debug(
            f"Request started: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "content_length": request.headers.get("content-length", "unknown"),
                "client_ip": request.client.host if request.client else "unknown"
            }
        )

        try:
            response = await call_next(request)
        except Exception:
            processing_time = time.perf_counter() - start_time
            logger.error(
                f"Request failed: {request.method} {request.url.path} after {processing_time:.3f}s",
                extra={"request_id": request_id, "processing_time": processing_time}
            )
            raise

        processing_time = time.perf_counter() - start_time
        logger.info(
            f"Response: {request.method} {request.url.path} - {response.status_code} in {processing_time:.3f}s",
            extra={"request_id": request_id, "status_code": response.status_code, "processing_time": processing_time}
        )
        return response


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Slow request warnings and the X-Processing-Time header"""

    def __init__(self, app, slow_request_threshold: float = 2.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()

        response = await call_next(request)

        processing_time = time.perf_counter() - start_time
        if processing_time > self.slow_request_threshold:
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path} took {processing_time:.3f}s",
                extra={
                    "request_id": _request_id(request),
                    "processing_time": processing_time,
                    "threshold": self.slow_request_threshold
                }
            )

        response.headers["X-Processing-Time"] = f"{processing_time:.3f}"
        return response
