from __future__ import annotations
# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0

"""Publish-or-suppress decision ("smart notify")."""

from core.schemas import BuildOutcome


def should_notify(
    current: BuildOutcome,
    previous: BuildOutcome | None,
    smart_mode: bool,
) -> bool:
    """Decide whether a completed build gets a notification.

    Without smart mode every build notifies.  With it, notify only if:

    - there was no previous build,
    - the current build did not succeed, or
    - the previous build did not succeed (the recovery notice).

    *previous* is ``None`` when the job has no earlier build; callers map
    unset results to SUCCESS before getting here.
    """
    if not smart_mode:
        return True
    if previous is None:
        return True
    return current is not BuildOutcome.SUCCESS or previous is not BuildOutcome.SUCCESS
