from __future__ import annotations
# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0

"""Message composition and destination resolution.

Stream and topic are resolved through ordered candidate chains where
the first non-blank value wins.  Blank means ``None`` or ``""``; a
whitespace-only value counts as set.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from core.config.models import GlobalConfig, NotifierConfig
from core.schemas import BuildOutcome, BuildRef, ProjectRef, effective_outcome

SUCCESS_GLYPH = ":check_mark:"
FAILURE_GLYPH = ":x:"


# ── Precedence chains ─────────────────────────────────────


@dataclass(frozen=True)
class DestinationSources:
    """Everything a candidate provider may read."""

    job: NotifierConfig
    global_config: GlobalConfig
    project: ProjectRef


@dataclass(frozen=True)
class Candidate:
    name: str
    provide: Callable[[DestinationSources], str | None]


CONFIGURED_TOPIC_CHAIN: tuple[Candidate, ...] = (
    Candidate("job topic", lambda s: s.job.topic),
    Candidate("default topic", lambda s: s.global_config.topic),
)

TOPIC_CHAIN: tuple[Candidate, ...] = CONFIGURED_TOPIC_CHAIN + (
    Candidate("project name", lambda s: s.project.display_name),
)

STREAM_CHAIN: tuple[Candidate, ...] = (
    Candidate("job stream", lambda s: s.job.stream),
    Candidate("default stream", lambda s: s.global_config.stream),
)


def resolve(chain: Sequence[Candidate], sources: DestinationSources) -> str:
    """Return the first non-blank value of *chain*, or ``""``."""
    for candidate in chain:
        value = candidate.provide(sources)
        if value:
            return value
    return ""


# ── Message ───────────────────────────────────────────────


@dataclass(frozen=True)
class ComposedMessage:
    stream: str
    topic: str
    message: str


def link_base(global_config: GlobalConfig, root_url: str | None = None) -> str:
    """Return the base for build-host links with exactly one trailing slash.

    The configured ``hudson_url`` wins over the host's own root URL;
    ``""`` disables links.
    """
    base = global_config.hudson_url or root_url or ""
    if not base:
        return ""
    return base.rstrip("/") + "/"


def format_item(prefix: str, display: str, url: str, base: str) -> str:
    """Bold *prefix* followed by *display*, linked when *base* is set."""
    text = display
    if base:
        text = f"[{display}]({base}{url})"
    return f"**{prefix}**{text}"


def compose(
    build: BuildRef,
    outcome: BuildOutcome | None,
    change_text: str,
    job_config: NotifierConfig,
    global_config: GlobalConfig,
    root_url: str | None = None,
) -> ComposedMessage:
    project = build.project
    sources = DestinationSources(job_config, global_config, project)
    configured_topic = resolve(CONFIGURED_TOPIC_CHAIN, sources)
    base = link_base(global_config, root_url)
    outcome = effective_outcome(outcome)

    message = ""
    # A fixed topic collects many jobs, so name the project in the message
    if configured_topic:
        message += format_item("Project: ", project.display_name, project.url, base) + " : "
    message += format_item("Build: ", build.display_name, build.url, base)
    message += ": "
    message += f"**{outcome.value}**"
    message += f" {SUCCESS_GLYPH}" if outcome is BuildOutcome.SUCCESS else f" {FAILURE_GLYPH}"
    if change_text:
        message += "\n\n" + change_text

    return ComposedMessage(
        stream=resolve(STREAM_CHAIN, sources),
        topic=resolve(TOPIC_CHAIN, sources),
        message=message,
    )
