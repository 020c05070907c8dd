from __future__ import annotations
# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of BuildHerald core/server, licensed under Apache-2.0.
# See LICENSE for the full license text.


import logging
import time
import uuid

import structlog
from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse as StarletteJSONResponse

from core.config import ConfigStore, validate_config
from core.notification import BuildNotifier, Dispatcher, create_transport
from server.routes import create_router

logger = logging.getLogger("buildherald.server")

# Paths to exclude from request logging (noisy health checks)
_NOISY_PATHS = frozenset({
    "/api/system/health",
})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status, and duration.

    Automatically binds a ``request_id`` into structlog contextvars so that
    all log records emitted during request processing carry the ID.
    """

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        structlog.contextvars.clear_contextvars()
        request_id = request.headers.get(
            "X-Request-ID", uuid.uuid4().hex[:12],
        )
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start) * 1000, 1)

        response.headers["X-Request-ID"] = request_id

        if request.url.path not in _NOISY_PATHS:
            req_logger = logging.getLogger("buildherald.request")
            req_logger.info(
                "request %s %s -> %d (%.1fms)",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
            )

        return response


def create_app(store: ConfigStore, dispatcher: Dispatcher | None = None) -> FastAPI:
    app = FastAPI(title="BuildHerald", version="0.1.0")

    if dispatcher is None:
        dispatcher = create_transport("zulip")

    app.state.config_store = store
    app.state.dispatcher = dispatcher
    app.state.notifier = BuildNotifier(dispatcher)

    # ── Global exception handler ────────────────────────────
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return StarletteJSONResponse(
            {"error": "Internal server error"}, status_code=500,
        )

    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(create_router())

    for problem in validate_config(store.snapshot()):
        logger.warning("Configuration problem: %s", problem)

    return app
