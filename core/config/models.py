# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of BuildHerald core/server, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Central configuration module for BuildHerald.

Defines Pydantic models for the unified config.json, load / save helpers
and :class:`ConfigStore`, the lock-guarded holder that hands immutable
snapshots to the notification pipeline.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from core.exceptions import ConfigError

logger = logging.getLogger("buildherald.config")

DEFAULT_ZULIP_URL = "https://api.zulip.com"

# Credential field → environment variable consulted when the field is blank
_CREDENTIAL_ENV = {
    "url": "ZULIP_URL",
    "email": "ZULIP_EMAIL",
    "api_key": "ZULIP_API_KEY",
}

# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class SystemConfig(_Frozen):
    log_level: str = "INFO"


class ZulipCredentials(_Frozen):
    """Transport credentials: endpoint, bot account and its API key."""

    url: str = DEFAULT_ZULIP_URL
    email: str = ""
    api_key: str = ""


class GlobalConfig(_Frozen):
    """Process-wide defaults read by every notification."""

    stream: str = ""
    topic: str = ""
    hudson_url: str = ""  # base URL for links to the build host
    smart_notify: bool = False
    credentials: ZulipCredentials = ZulipCredentials()


class NotifierConfig(_Frozen):
    """Per-job overrides.  ``None`` and ``""`` both mean "use default"."""

    stream: str | None = None
    topic: str | None = None


class BuildHeraldConfig(_Frozen):
    version: int = 1
    system: SystemConfig = SystemConfig()
    global_config: GlobalConfig = GlobalConfig()
    jobs: dict[str, NotifierConfig] = {}

    @field_validator("jobs")
    @classmethod
    def _no_empty_job_names(cls, value: dict[str, NotifierConfig]) -> dict[str, NotifierConfig]:
        if any(not name for name in value):
            raise ValueError("job names must not be empty")
        return value

    def job_config(self, job_name: str) -> NotifierConfig:
        """Return the overrides for *job_name*, or an empty override set."""
        return self.jobs.get(job_name, NotifierConfig())


# ---------------------------------------------------------------------------
# Credential resolution
# ---------------------------------------------------------------------------


def resolve_credentials(credentials: ZulipCredentials) -> ZulipCredentials:
    """Fill blank credential fields from ZULIP_URL / ZULIP_EMAIL / ZULIP_API_KEY."""
    updates: dict[str, str] = {}
    for field, env_var in _CREDENTIAL_ENV.items():
        if getattr(credentials, field):
            continue
        env_val = os.environ.get(env_var, "")
        if env_val:
            updates[field] = env_val
    if not updates:
        return credentials
    return credentials.model_copy(update=updates)


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def get_config_path(data_dir: Path | None = None) -> Path:
    """Return the path to config.json inside *data_dir*.

    If *data_dir* is not given, it is resolved via ``core.paths.get_data_dir``.
    """
    if data_dir is None:
        from core.paths import get_data_dir

        data_dir = get_data_dir()
    return data_dir / "config.json"


# ---------------------------------------------------------------------------
# Load / Save
# ---------------------------------------------------------------------------


def load_config(path: Path | None = None) -> BuildHeraldConfig:
    """Load configuration from disk.

    When the file does not exist the default configuration is returned.
    Raises ``ConfigError`` when the file cannot be read, parsed or validated.
    """
    if path is None:
        path = get_config_path()

    if not path.is_file():
        logger.info("Config file not found at %s; using defaults", path)
        return BuildHeraldConfig()

    logger.debug("Loading config from %s", path)
    try:
        data: dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))
        return BuildHeraldConfig.model_validate(data)
    except json.JSONDecodeError as exc:
        logger.error("Failed to parse %s: %s", path, exc)
        raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc
    except ValidationError as exc:
        logger.error("Invalid configuration in %s: %s", path, exc)
        raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc
    except OSError as exc:
        logger.error("Failed to read %s: %s", path, exc)
        raise ConfigError(f"Cannot read {path}: {exc}") from exc


def save_config(config: BuildHeraldConfig, path: Path | None = None) -> None:
    """Persist *config* to disk as pretty-printed JSON (mode 0o600)."""
    if path is None:
        path = get_config_path()

    path.parent.mkdir(parents=True, exist_ok=True)

    payload = config.model_dump(mode="json")
    text = json.dumps(payload, indent=2, ensure_ascii=False) + "\n"
    path.write_text(text, encoding="utf-8")

    # The file holds the Zulip API key.
    os.chmod(path, 0o600)

    logger.debug("Config saved to %s", path)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_config(config: BuildHeraldConfig) -> list[str]:
    """Return operator-facing problems with *config* (empty list = OK).

    Topics always resolve (the project name is the last fallback), so
    only streams and credentials can be missing end to end.
    """
    problems: list[str] = []
    gc = config.global_config

    credentials = resolve_credentials(gc.credentials)
    if not credentials.url:
        problems.append("Zulip server URL is not configured")
    if not credentials.email:
        problems.append("Zulip bot e-mail is not configured")
    if not credentials.api_key:
        problems.append("Zulip API key is not configured")

    if not gc.stream:
        problems.append(
            "No default stream configured; jobs without their own stream cannot be notified"
        )
        for name, job in sorted(config.jobs.items()):
            if not job.stream:
                problems.append(f"Job '{name}' has no stream and there is no default stream")

    return problems


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class ConfigStore:
    """Holds the current configuration snapshot.

    Readers call :meth:`snapshot` without locking; the snapshot is an
    immutable model that is swapped wholesale.  Administrative updates
    are serialized by ``_lock`` and persisted before the swap.
    """

    def __init__(self, path: Path | None = None, config: BuildHeraldConfig | None = None) -> None:
        self._path = path if path is not None else get_config_path()
        self._lock = threading.Lock()
        self._snapshot = config if config is not None else load_config(self._path)
        self._mtime = self._stat_mtime()

    @property
    def path(self) -> Path:
        return self._path

    def snapshot(self) -> BuildHeraldConfig:
        return self._snapshot

    def reload_if_changed(self) -> bool:
        """Reload from disk when the file was edited externally.

        A file that no longer loads is reported once and the previous
        snapshot stays in effect until the file changes again.
        """
        with self._lock:
            mtime = self._stat_mtime()
            if mtime == self._mtime:
                return False
            logger.debug("Config file changed on disk (mtime %.3f → %.3f); reloading", self._mtime, mtime)
            self._mtime = mtime
            try:
                self._snapshot = load_config(self._path)
            except ConfigError as exc:
                logger.error("Keeping previous configuration: %s", exc)
                return False
            return True

    def update_global(self, **changes: Any) -> BuildHeraldConfig:
        """Replace fields of the global configuration.

        ``credentials`` may be given as a partial dict; unspecified
        credential fields keep their current value.
        """
        with self._lock:
            current = self._snapshot
            data = current.global_config.model_dump()
            creds = changes.pop("credentials", None)
            if creds is not None:
                if isinstance(creds, BaseModel):
                    creds = creds.model_dump()
                data["credentials"] = {**data["credentials"], **creds}
            data.update(changes)
            global_config = GlobalConfig.model_validate(data)
            return self._commit(current.model_copy(update={"global_config": global_config}))

    def set_job(self, job_name: str, job_config: NotifierConfig) -> BuildHeraldConfig:
        if not job_name:
            raise ValueError("job name must not be empty")
        with self._lock:
            current = self._snapshot
            jobs = {**current.jobs, job_name: job_config}
            return self._commit(current.model_copy(update={"jobs": jobs}))

    def remove_job(self, job_name: str) -> bool:
        with self._lock:
            current = self._snapshot
            if job_name not in current.jobs:
                return False
            jobs = {k: v for k, v in current.jobs.items() if k != job_name}
            self._commit(current.model_copy(update={"jobs": jobs}))
            return True

    def _commit(self, config: BuildHeraldConfig) -> BuildHeraldConfig:
        save_config(config, self._path)
        self._snapshot = config
        self._mtime = self._stat_mtime()
        logger.info("Configuration updated (%d job override(s))", len(config.jobs))
        return config

    def _stat_mtime(self) -> float:
        try:
            return self._path.stat().st_mtime
        except OSError:
            return 0.0
