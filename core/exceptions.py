from __future__ import annotations
# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of BuildHerald core/server, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Unified exception hierarchy for BuildHerald.

All domain-specific exceptions derive from :class:`BuildHeraldError`,
enabling callers to catch the entire family with a single clause::

    try:
        ...
    except BuildHeraldError as e:
        logger.error("Domain error: %s", e)
"""


class BuildHeraldError(Exception):
    """Base exception for all BuildHerald errors."""


# ── Configuration ────────────────────────────────────────────


class ConfigError(BuildHeraldError):
    """Configuration errors."""


class ConfigurationIncompleteError(ConfigError):
    """No stream/topic or credential could be resolved for a destination."""


# ── Notification ─────────────────────────────────────────────


class NotificationError(BuildHeraldError):
    """Notification pipeline errors."""


class ChangeLogUnavailableError(NotificationError):
    """The host failed to produce the change log for a build."""


class TransportError(NotificationError):
    """Delivery to the messaging service failed.

    ``status_code`` carries the HTTP status when the service answered.
    """

    def __init__(self, message: str = "Transport failure", *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
