from __future__ import annotations

import logging
import re
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

REQUEST_ID_HEADER = "X-Request-ID"
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,128}$")
_LOG = logging.getLogger("app.http")
_ERROR_LOG = logging.getLogger("app.errors")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}


def _request_id_from_header(raw: str | None) -> str:
    value = str(raw or "").strip()
    if not value:
        return uuid4().hex
    if not _REQUEST_ID_RE.fullmatch(value):
        return uuid4().hex
    return value


def _request_id(request: Request) -> str:
    return str(getattr(request.state, "request_id", "") or "-")


def install_http_hardening(app: FastAPI) -> None:
    @app.exception_handler(SQLAlchemyError)
    async def _storage_error_handler(request: Request, exc: SQLAlchemyError):
        _ERROR_LOG.error(
            "storage failure %s %s request_id=%s: %s",
            request.method,
            request.url.path,
            _request_id(request),
            exc.__class__.__name__,
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content={"detail": "Storage error"})

    @app.middleware("http")
    async def _http_hardening_middleware(request: Request, call_next):
        request_id = _request_id_from_header(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        started_at = perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            _ERROR_LOG.error(
                "unhandled error %s %s request_id=%s: %s",
                request.method,
                request.url.path,
                request_id,
                exc.__class__.__name__,
                exc_info=exc,
            )
            response = JSONResponse(status_code=500, content={"detail": "Internal server error"})

        for key, value in SECURITY_HEADERS.items():
            response.headers[key] = value
        # Pages reflect live data; never let intermediaries cache them.
        response.headers["Cache-Control"] = "no-store"
        response.headers[REQUEST_ID_HEADER] = request_id

        duration_ms = (perf_counter() - started_at) * 1000.0
        _LOG.info(
            "%s %s status=%s duration_ms=%.2f request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id,
        )
        return response
