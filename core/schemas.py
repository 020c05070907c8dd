from __future__ import annotations
# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of BuildHerald core/server, licensed under Apache-2.0.
# See LICENSE for the full license text.


from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


# ── Build Outcome ─────────────────────────────────────────


class BuildOutcome(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    UNSTABLE = "UNSTABLE"
    ABORTED = "ABORTED"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, value: str | None) -> BuildOutcome | None:
        """Map a host result string to an outcome.

        ``None`` / ``""`` mean the host has not recorded a result yet;
        unknown names (e.g. ``NOT_BUILT``) become ``OTHER``.
        """
        if not value:
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return cls.OTHER


def effective_outcome(outcome: BuildOutcome | None) -> BuildOutcome:
    """Treat a build without a recorded result as a success.

    Scripted pipelines have no post-build phase, so a run that reaches
    the notifier without a result has not failed.
    """
    return outcome if outcome is not None else BuildOutcome.SUCCESS


# ── Build Identity ────────────────────────────────────────


@dataclass(frozen=True)
class ProjectRef:
    """The job that owns a build."""

    display_name: str
    url: str  # relative to the host root, e.g. "job/TestJob"


@dataclass(frozen=True)
class BuildRef:
    display_name: str  # e.g. "#1"
    url: str  # e.g. "job/TestJob/1"
    project: ProjectRef


# ── Change Sets ───────────────────────────────────────────


@dataclass(frozen=True)
class ChangeEntry:
    author: str
    message: str


class ChangeSetResult:
    """Base of the change-set variants: not computed, empty, entries."""


@dataclass(frozen=True)
class NotComputed(ChangeSetResult):
    """The host could not tell whether the build has changes."""


@dataclass(frozen=True)
class EmptyChangeSet(ChangeSetResult):
    """Changes were computed and there are none."""


@dataclass(frozen=True)
class ChangeEntries(ChangeSetResult):
    entries: tuple[ChangeEntry, ...]

    @classmethod
    def from_groups(cls, groups: Iterable[Iterable[ChangeEntry]]) -> ChangeSetResult:
        """Flatten change-log groups in order; no entries yields ``EMPTY``."""
        entries = tuple(entry for group in groups for entry in group)
        if not entries:
            return EMPTY
        return cls(entries)


NOT_COMPUTED = NotComputed()
EMPTY = EmptyChangeSet()
