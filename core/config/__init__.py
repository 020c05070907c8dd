# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from core.config.models import (
    DEFAULT_ZULIP_URL,
    BuildHeraldConfig,
    ConfigStore,
    GlobalConfig,
    NotifierConfig,
    SystemConfig,
    ZulipCredentials,
    get_config_path,
    load_config,
    resolve_credentials,
    save_config,
    validate_config,
)
