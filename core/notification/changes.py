from __future__ import annotations
# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0

"""Change-log summary for the notification message."""

import logging
from collections.abc import Callable

from core.exceptions import ChangeLogUnavailableError
from core.schemas import ChangeEntries, ChangeSetResult, NotComputed

logger = logging.getLogger("buildherald.notification.changes")

NOT_COMPUTED_TEXT = "Could not determine changes since last build."
CHANGES_HEADER = "Changes since last build:\n"
CHANGES_ERROR_TEXT = (
    "\nError determining changes since last build - please contact support@zulip.com."
)

MAX_COMMIT_MESSAGE = 46
ELLIPSIS = "..."


def truncate_commit_message(message: str) -> str:
    message = message.strip()
    if len(message) > MAX_COMMIT_MESSAGE:
        return message[:MAX_COMMIT_MESSAGE] + ELLIPSIS
    return message


def summarize(result: ChangeSetResult) -> str:
    """Render *result* as the changelog section of a message.

    Returns ``""`` when there is nothing to show.
    """
    if isinstance(result, NotComputed):
        return NOT_COMPUTED_TEXT
    if not isinstance(result, ChangeEntries) or not result.entries:
        return ""
    lines = [CHANGES_HEADER]
    for entry in result.entries:
        lines.append(f"\n* `{entry.author}` {truncate_commit_message(entry.message)}")
    return "".join(lines)


def summarize_safely(fetch: Callable[[], ChangeSetResult]) -> str:
    """Fetch the change set and summarize it without ever raising.

    A failure while retrieving or walking the change log is logged and
    turned into an inline notice so the build notification still goes out.
    """
    text = ""
    try:
        text = summarize(fetch())
    except ChangeLogUnavailableError as e:
        logger.warning("Change log unavailable: %s", e)
        text += CHANGES_ERROR_TEXT
    except Exception:
        logger.warning("Exception while computing changes since last build", exc_info=True)
        text += CHANGES_ERROR_TEXT
    return text
