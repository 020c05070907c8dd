# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import argparse
import logging

logger = logging.getLogger("buildherald")


def cmd_serve(args: argparse.Namespace) -> None:
    """Run the HTTP server that receives build-completion events."""
    import uvicorn

    from core.config import ConfigStore
    from server.app import create_app

    store = ConfigStore()
    app = create_app(store)
    logger.info("Serving on %s:%d (config: %s)", args.host, args.port, store.path)
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level="info",
        log_config=None,
    )


def register(sub: argparse._SubParsersAction) -> None:
    p_serve = sub.add_parser("serve", help="Start the notification server")
    p_serve.add_argument("--host", default="127.0.0.1")
    p_serve.add_argument("--port", type=int, default=18600)
    p_serve.set_defaults(func=cmd_serve)
