from __future__ import annotations
# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0

"""Build-result notification subsystem.

Provides ``BuildNotifier`` (policy, changelog summary, composition,
delivery) and the ``Dispatcher`` transports it sends through.
"""

from core.notification.notifier import BuildNotifier, NotificationResult
from core.notification.transport import Dispatcher, ZulipTransport, create_transport

__all__ = [
    "BuildNotifier",
    "Dispatcher",
    "NotificationResult",
    "ZulipTransport",
    "create_transport",
]
