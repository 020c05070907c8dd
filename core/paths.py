# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of BuildHerald core/server, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Centralized path resolution for BuildHerald.

Runtime data directory can be overridden via BUILDHERALD_DATA_DIR environment variable.
"""

from __future__ import annotations

import os
from pathlib import Path

# Default runtime data directory
_DEFAULT_DATA_DIR = Path.home() / ".buildherald"


def get_data_dir() -> Path:
    """Return the runtime data directory, respecting BUILDHERALD_DATA_DIR env var."""
    env_val = os.environ.get("BUILDHERALD_DATA_DIR")
    if env_val:
        return Path(env_val).expanduser().resolve()
    return _DEFAULT_DATA_DIR


def get_log_dir() -> Path:
    return get_data_dir() / "logs"
