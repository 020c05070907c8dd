# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of BuildHerald core/server, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""CLI handlers for the ``buildherald config`` and ``check`` subcommands."""

from __future__ import annotations

import argparse
import sys
from typing import Any

from pydantic import ValidationError

from core.config.models import (
    ConfigStore,
    GlobalConfig,
    NotifierConfig,
    ZulipCredentials,
    validate_config,
)


# ---------------------------------------------------------------------------
# Helper utilities
# ---------------------------------------------------------------------------


def _flatten_dict(d: dict, prefix: str = "") -> list[tuple[str, Any]]:
    """Recursively flatten a nested dict to dot-notation key-value pairs."""
    items: list[tuple[str, Any]] = []
    for k, v in d.items():
        full_key = f"{prefix}.{k}" if prefix else k
        if isinstance(v, dict) and v:
            items.extend(_flatten_dict(v, full_key))
        else:
            items.append((full_key, v))
    return items


def _mask_secret(key: str, value: Any) -> str:
    """Mask API key values, showing only the first 8 characters."""
    if key.endswith("api_key") and isinstance(value, str) and value:
        return value[:8] + "..."
    return str(value)


def _coerce_value(value: str) -> Any:
    """Coerce a CLI string value to the appropriate Python type.

    ``"true"`` / ``"false"`` (case-insensitive) become ``bool``; everything
    else stays a string (stream and topic names may look like numbers).
    """
    lower = value.lower()
    if lower == "true":
        return True
    if lower == "false":
        return False
    return value


def _global_change(key: str, value: Any) -> dict[str, Any]:
    """Turn ``credentials.api_key`` style keys into an update mapping.

    Raises ``KeyError`` for anything that is not a settable field.
    """
    parts = key.split(".")
    if len(parts) == 1 and parts[0] in GlobalConfig.model_fields and parts[0] != "credentials":
        return {key: value}
    if len(parts) == 2 and parts[0] == "credentials" and parts[1] in ZulipCredentials.model_fields:
        return {"credentials": {parts[1]: value}}
    raise KeyError(key)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def cmd_config_list(args: argparse.Namespace) -> None:
    """List configuration values as flat dot-notation key = value pairs."""
    data = ConfigStore().snapshot().model_dump(mode="json")

    section: str | None = getattr(args, "section", None)
    show_secrets: bool = getattr(args, "show_secrets", False)

    flat = _flatten_dict(data)
    if section:
        flat = [(k, v) for k, v in flat if k.startswith(section)]

    for k, v in flat:
        display = v if show_secrets else _mask_secret(k, v)
        print(f"{k} = {display}")


def cmd_config_set_global(args: argparse.Namespace) -> None:
    """Set a field of the global configuration (e.g. ``stream``, ``credentials.email``)."""
    key: str = args.key
    coerced = _coerce_value(args.value)
    try:
        changes = _global_change(key, coerced)
        ConfigStore().update_global(**changes)
    except KeyError:
        print(f"Error: unknown global setting '{key}'", file=sys.stderr)
        sys.exit(1)
    except ValidationError as exc:
        print(f"Error: invalid value for '{key}': {exc}", file=sys.stderr)
        sys.exit(1)

    print(f"Set global_config.{key} = {_mask_secret(key, coerced)}")


def cmd_config_set_job(args: argparse.Namespace) -> None:
    """Set the stream/topic override of one job."""
    job_config = NotifierConfig(stream=args.stream, topic=args.topic)
    ConfigStore().set_job(args.job, job_config)
    print(f"Set jobs.{args.job}: stream={job_config.stream!r} topic={job_config.topic!r}")


def cmd_config_remove_job(args: argparse.Namespace) -> None:
    if not ConfigStore().remove_job(args.job):
        print(f"Error: no override for job '{args.job}'", file=sys.stderr)
        sys.exit(1)
    print(f"Removed jobs.{args.job}")


def cmd_check(args: argparse.Namespace) -> None:
    """Validate the configuration and optionally test the Zulip connection."""
    from core.config.models import resolve_credentials
    from core.exceptions import TransportError
    from core.notification.transport import ZulipTransport

    config = ConfigStore().snapshot()
    problems = validate_config(config)
    for problem in problems:
        print(f"  ✗ {problem}")

    if getattr(args, "connect", False) and not problems:
        try:
            account = ZulipTransport().check_connection(
                resolve_credentials(config.global_config.credentials),
            )
        except TransportError as exc:
            print(f"  ✗ Connection failed: {exc}")
            sys.exit(1)
        print(f"  ✓ Connected as {account}")

    if problems:
        sys.exit(1)
    print("  ✓ Configuration OK")


def register(sub: argparse._SubParsersAction) -> None:
    """Register ``config`` and ``check`` subcommands."""
    p_config = sub.add_parser("config", help="Show or change the configuration")
    config_sub = p_config.add_subparsers(dest="config_command")
    p_config.set_defaults(func=lambda args: p_config.print_help())

    p_list = config_sub.add_parser("list", help="List configuration values")
    p_list.add_argument("--section", default=None, help="Only keys with this prefix")
    p_list.add_argument("--show-secrets", action="store_true", help="Do not mask API keys")
    p_list.set_defaults(func=cmd_config_list)

    p_set = config_sub.add_parser("set-global", help="Set a global setting")
    p_set.add_argument("key", help="e.g. stream, topic, hudson_url, smart_notify, credentials.api_key")
    p_set.add_argument("value")
    p_set.set_defaults(func=cmd_config_set_global)

    p_job = config_sub.add_parser("set-job", help="Set per-job stream/topic overrides")
    p_job.add_argument("job")
    p_job.add_argument("--stream", default=None)
    p_job.add_argument("--topic", default=None)
    p_job.set_defaults(func=cmd_config_set_job)

    p_rm = config_sub.add_parser("remove-job", help="Remove per-job overrides")
    p_rm.add_argument("job")
    p_rm.set_defaults(func=cmd_config_remove_job)

    p_check = sub.add_parser("check", help="Validate the configuration")
    p_check.add_argument("--connect", action="store_true", help="Also test the Zulip credentials")
    p_check.set_defaults(func=cmd_check)
