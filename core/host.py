from __future__ import annotations
# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of BuildHerald core/server, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Host build-system collaborator.

``BuildHost`` is the narrow interface the notifier reads build facts
through.  ``EventBuildHost`` implements it on top of a ``BuildEvent``,
the JSON payload a CI server posts when a build completes.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel, model_validator

from core.exceptions import ChangeLogUnavailableError
from core.schemas import (
    NOT_COMPUTED,
    BuildOutcome,
    BuildRef,
    ChangeEntries,
    ChangeEntry,
    ChangeSetResult,
    ProjectRef,
)


# ── Abstract host ─────────────────────────────────────────


class BuildHost(ABC):
    """Read-only view of the build system for one completed build."""

    @abstractmethod
    def get_outcome(self, build: BuildRef) -> BuildOutcome | None:
        """Return the recorded outcome, or ``None`` while unset."""

    @abstractmethod
    def get_previous_build(self, build: BuildRef) -> BuildRef | None:
        """Return the build that ran before *build* in the same job."""

    @abstractmethod
    def get_change_set(self, build: BuildRef) -> ChangeSetResult:
        """Return the changes since the previous build.

        Raises ``ChangeLogUnavailableError`` (or anything else) when the
        change log cannot be read.
        """

    def root_url(self) -> str | None:
        """Return the host's own absolute root URL, if it knows one."""
        return None


# ── Event payload ─────────────────────────────────────────


class JobPayload(BaseModel):
    name: str = ""  # full job name, key for per-job overrides
    display_name: str
    url: str

    @model_validator(mode="after")
    def _default_name(self) -> JobPayload:
        if not self.name:
            self.name = self.display_name
        return self


class RunPayload(BaseModel):
    display_name: str
    url: str
    result: str | None = None


class ChangePayload(BaseModel):
    author: str
    message: str


class BuildEvent(BaseModel):
    """Build-completion event posted by the CI server.

    ``change_sets`` is ``None`` when the server could not compute the
    changes; an empty list means there were none.  ``change_log_error``
    carries the server's reason when reading its change log failed.
    """

    job: JobPayload
    build: RunPayload
    previous_build: RunPayload | None = None
    change_sets: list[list[ChangePayload]] | None = []
    change_log_error: str | None = None
    root_url: str | None = None


class EventBuildHost(BuildHost):
    """``BuildHost`` answering from a single ``BuildEvent``."""

    def __init__(self, event: BuildEvent) -> None:
        self._event = event
        self.project = ProjectRef(event.job.display_name, event.job.url)
        self.build = BuildRef(event.build.display_name, event.build.url, self.project)
        self._previous: BuildRef | None = None
        if event.previous_build is not None:
            self._previous = BuildRef(
                event.previous_build.display_name,
                event.previous_build.url,
                self.project,
            )

    @property
    def job_name(self) -> str:
        return self._event.job.name

    def get_outcome(self, build: BuildRef) -> BuildOutcome | None:
        if build == self.build:
            return BuildOutcome.parse(self._event.build.result)
        if self._previous is not None and build == self._previous:
            return BuildOutcome.parse(self._event.previous_build.result)
        raise KeyError(f"Unknown build: {build.display_name}")

    def get_previous_build(self, build: BuildRef) -> BuildRef | None:
        return self._previous if build == self.build else None

    def get_change_set(self, build: BuildRef) -> ChangeSetResult:
        if self._event.change_log_error:
            raise ChangeLogUnavailableError(self._event.change_log_error)
        change_sets = self._event.change_sets
        if change_sets is None:
            return NOT_COMPUTED
        return ChangeEntries.from_groups(
            [ChangeEntry(item.author, item.message) for item in group]
            for group in change_sets
        )

    def root_url(self) -> str | None:
        return self._event.root_url
