# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

logger = logging.getLogger("buildherald")


def cmd_notify(args: argparse.Namespace) -> None:
    """Notify about a completed build described by a JSON event file.

    ``-`` reads the event from stdin.  An unreadable or malformed event is
    a usage error and exits 2, like a bad argument.  Once the event is
    accepted the exit status is 0 whatever happens to the notification
    (configuration, delivery) so that a CI step calling this never fails
    the build.
    """
    from pydantic import ValidationError

    from core.config import ConfigStore
    from core.exceptions import ConfigError
    from core.host import BuildEvent, EventBuildHost
    from core.notification import BuildNotifier, create_transport

    try:
        raw = sys.stdin.read() if args.event == "-" else Path(args.event).read_text(encoding="utf-8")
    except OSError as exc:
        print(f"Error: cannot read build event: {exc}", file=sys.stderr)
        sys.exit(2)
    try:
        event = BuildEvent.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as exc:
        print(f"Error: invalid build event: {exc}", file=sys.stderr)
        sys.exit(2)

    try:
        config = ConfigStore().snapshot()
    except ConfigError as exc:
        print(f"Notification skipped: {exc}", file=sys.stderr)
        return

    host = EventBuildHost(event)
    notifier = BuildNotifier(create_transport(args.transport))

    if args.dry_run:
        composed = notifier.prepare(host.build, host, config, host.job_name)
        if composed is None:
            print("Notification suppressed (smart notify)")
            return
        print(f"Stream: {composed.stream or '(none)'}")
        print(f"Topic:  {composed.topic}")
        print()
        print(composed.message)
        return

    result = notifier.publish(host.build, host, config, host.job_name)
    if result.status == "sent":
        print(f"Sent to {result.stream} > {result.topic}")
    elif result.status == "suppressed":
        print("Notification suppressed (smart notify)")
    else:
        print(f"Notification {result.status}: {result.error}", file=sys.stderr)


def register(sub: argparse._SubParsersAction) -> None:
    p_notify = sub.add_parser("notify", help="Send the notification for a completed build")
    p_notify.add_argument("event", help="Path to a build event JSON file, or - for stdin")
    p_notify.add_argument(
        "--dry-run", action="store_true",
        help="Print the composed message instead of sending it",
    )
    p_notify.add_argument("--transport", default="zulip", help=argparse.SUPPRESS)
    p_notify.set_defaults(func=cmd_notify)
