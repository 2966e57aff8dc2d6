"""FastAPI application factory for the accounting service.

Route handlers reach the ledger and throttle through app.state. Every
LedgerError is rendered as {ok: false, error, kind, retryable}; unexpected
exceptions become a 500 with the same shape.
"""

from __future__ import annotations

import time
from typing import Any
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dexledger.api.routes import faucet, pools, quote
from dexledger.config import AppSettings
from dexledger.exceptions import CooldownActiveError, ErrorKind, LedgerError
from dexledger.logging import bind_request_context, get_logger

logger = get_logger(__name__)

_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.COOLDOWN: 429,
    ErrorKind.DELIVERY: 502,
    ErrorKind.STORAGE: 500,
    ErrorKind.CONFIG: 500,
    ErrorKind.INTERNAL: 500,
}


def error_body(message: str, kind: ErrorKind, retryable: bool = False) -> dict[str, Any]:
    """Build the standard failure payload."""
    return {"ok": False, "error": message, "kind": kind.value, "retryable": retryable}


async def _ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    body = error_body(exc.message, exc.kind, exc.retryable)
    if isinstance(exc, CooldownActiveError):
        body["retryAfterMs"] = exc.remaining_ms
    status = _STATUS_BY_KIND.get(exc.kind, 400)
    log = logger.error if status >= 500 else logger.info
    log("request_rejected", kind=exc.kind.value, error=exc.message, status=status)
    return JSONResponse(status_code=status, content=body)


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.info("request_body_invalid", errors=str(exc.errors()))
    return JSONResponse(
        status_code=400,
        content=error_body("Invalid request body", ErrorKind.VALIDATION),
    )


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request_failed_unexpectedly")
    return JSONResponse(
        status_code=500,
        content=error_body("Internal error", ErrorKind.INTERNAL),
    )


def create_app(settings: AppSettings | None = None, lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings (CORS origin, pricing defaults).
        lifespan: Optional async context manager for startup/shutdown.
                  Used by main.py to wire and dispose components.

    Returns:
        FastAPI app with /health and the /api routers registered. Callers
        must set app.state.ledger and app.state.throttle before serving.
    """
    settings = settings or AppSettings()
    app = FastAPI(title="DEX Accounting Service", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.server.cors_origin],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.middleware("http")
    async def _request_context(request: Request, call_next: Any) -> Any:
        bind_request_context(request_id=uuid4().hex[:12], path=request.url.path)
        started = time.perf_counter()
        response = await call_next(request)
        logger.debug(
            "request_served",
            method=request.method,
            status=response.status_code,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return response

    app.add_exception_handler(LedgerError, _ledger_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    app.include_router(pools.router, prefix="/api")
    app.include_router(faucet.router, prefix="/api")
    app.include_router(quote.router, prefix="/api")

    return app
