# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of BuildHerald core/server, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Centralized logging configuration for BuildHerald.

Uses structlog in stdlib-compatible mode so that plain
``logging.getLogger()`` calls gain structured output (context binding,
JSON file output).

Provides:
- setup_logging(): structlog + stdlib unified setup (console + file)
- bind_build_context() / clear_build_context(): per-notification context
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import orjson
import structlog


def bind_build_context(job: str, build: str) -> None:
    """Bind the job and build being notified into structlog contextvars."""
    structlog.contextvars.bind_contextvars(job=job, build=build)


def clear_build_context() -> None:
    structlog.contextvars.unbind_contextvars("job", "build")


# ── Shared Processors ──────────────────────────────────────────


def _build_shared_processors() -> list:
    """Build the shared processor chain used by both structlog and stdlib."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _orjson_serializer(obj: object, **_kw) -> str:  # noqa: ANN001
    return orjson.dumps(obj, default=str).decode("utf-8")


# ── Main Setup ─────────────────────────────────────────────────


def setup_logging(
    level: str = "INFO",
    log_dir: Path | None = None,
    json_file: bool = True,
) -> None:
    """Configure logging for the entire BuildHerald process.

    Args:
        level: Root log level (DEBUG, INFO, WARNING, etc.).
        log_dir: Directory for log files. If None, file logging is disabled.
        json_file: Whether to use JSON format for the file handler.
    """
    shared_processors = _build_shared_processors()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    # foreign_pre_chain: stdlib LogRecords go through the structlog pipeline
    # so that contextvars (job, build, request_id) are merged in.
    foreign_pre_chain = list(shared_processors)

    console_formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(),
        ],
        foreign_pre_chain=foreign_pre_chain,
    )
    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG)
    console.setFormatter(console_formatter)
    root.addHandler(console)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / "buildherald.log"

        if json_file:
            renderer = structlog.processors.JSONRenderer(serializer=_orjson_serializer)
        else:
            renderer = structlog.dev.ConsoleRenderer(colors=False)
        file_formatter = structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
            foreign_pre_chain=foreign_pre_chain,
        )

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        root.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
