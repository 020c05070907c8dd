# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0
"""Global test fixtures for BuildHerald.

Isolates the runtime data directory and the Zulip credential
environment so no test reads or writes the developer's real config.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.helpers.builds import FakeBuildHost, make_build


@pytest.fixture(autouse=True)
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point BUILDHERALD_DATA_DIR at a fresh temporary directory."""
    d = tmp_path / ".buildherald"
    d.mkdir()
    monkeypatch.setenv("BUILDHERALD_DATA_DIR", str(d))
    for var in ("ZULIP_URL", "ZULIP_EMAIL", "ZULIP_API_KEY", "BUILDHERALD_ADMIN_TOKEN"):
        monkeypatch.delenv(var, raising=False)
    return d


@pytest.fixture
def build():
    return make_build()


@pytest.fixture
def host(build) -> FakeBuildHost:
    return FakeBuildHost(build)
