# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import argparse
import os
import sys


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="BuildHerald - build result notifications for Zulip"
    )
    parser.add_argument(
        "--data-dir",
        default=None,
        help="Override runtime data directory (default: ~/.buildherald or BUILDHERALD_DATA_DIR)",
    )
    sub = parser.add_subparsers(dest="command")

    from cli.commands import notify, server
    from core.config import cli as config_cli

    server.register(sub)
    notify.register(sub)
    config_cli.register(sub)

    return parser


def cli_main(argv: list[str] | None = None) -> None:
    from dotenv import load_dotenv

    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    # Apply --data-dir override before any command
    if args.data_dir:
        os.environ["BUILDHERALD_DATA_DIR"] = args.data_dir

    from core.config import load_config
    from core.exceptions import ConfigError
    from core.logging_config import setup_logging
    from core.paths import get_log_dir

    level = os.environ.get("BUILDHERALD_LOG_LEVEL")
    if not level:
        try:
            level = load_config().system.log_level
        except ConfigError:
            # Reported again by the command that needs the config
            level = "INFO"
    setup_logging(
        level=level,
        log_dir=get_log_dir() if args.command == "serve" else None,
    )

    if not hasattr(args, "func"):
        parser.print_help()
        return
    try:
        args.func(args)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
