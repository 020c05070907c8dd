from __future__ import annotations
# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0

"""BuildNotifier — the build-completion hook.

Runs the notify policy, summarizes changes, composes the message and
hands it to a ``Dispatcher`` exactly once.  Notification is best-effort:
:meth:`BuildNotifier.publish` never raises into the build pipeline.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any

from core.config.models import BuildHeraldConfig, resolve_credentials
from core.exceptions import ConfigurationIncompleteError
from core.host import BuildHost
from core.logging_config import bind_build_context, clear_build_context
from core.notification.changes import summarize_safely
from core.notification.composer import ComposedMessage, compose
from core.notification.policy import should_notify
from core.notification.transport import Dispatcher
from core.schemas import BuildRef, effective_outcome

logger = logging.getLogger("buildherald.notification")

STATUS_SENT = "sent"
STATUS_SUPPRESSED = "suppressed"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"


@dataclass
class NotificationResult:
    """Outcome of one build-completion notification."""

    status: str
    stream: str = ""
    topic: str = ""
    message: str = ""
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def require_destination(composed: ComposedMessage) -> None:
    """Raise ``ConfigurationIncompleteError`` unless stream and topic are set."""
    if not composed.stream:
        raise ConfigurationIncompleteError("no stream configured for this job and no default stream")
    if not composed.topic:
        raise ConfigurationIncompleteError("no topic configured and the project has no name")


class BuildNotifier:
    def __init__(self, dispatcher: Dispatcher) -> None:
        self._dispatcher = dispatcher

    def prepare(
        self,
        build: BuildRef,
        host: BuildHost,
        config: BuildHeraldConfig,
        job_name: str | None = None,
    ) -> ComposedMessage | None:
        """Compose the message for *build*, or ``None`` if suppressed."""
        gc = config.global_config
        current = effective_outcome(host.get_outcome(build))
        previous_build = host.get_previous_build(build)
        previous = None
        if previous_build is not None:
            previous = effective_outcome(host.get_outcome(previous_build))

        if not should_notify(current, previous, gc.smart_notify):
            logger.info(
                "Notification suppressed: %s after %s",
                current.value, previous.value if previous else "none",
            )
            return None

        change_text = summarize_safely(lambda: host.get_change_set(build))
        job_config = config.job_config(job_name or build.project.display_name)
        return compose(build, current, change_text, job_config, gc, host.root_url())

    def publish(
        self,
        build: BuildRef,
        host: BuildHost,
        config: BuildHeraldConfig,
        job_name: str | None = None,
    ) -> NotificationResult:
        """Notify about a completed build.  Never raises."""
        bind_build_context(job_name or build.project.display_name, build.display_name)
        try:
            return self._publish(build, host, config, job_name)
        except Exception as e:
            logger.exception("Build notification failed")
            return NotificationResult(STATUS_FAILED, error=str(e) or type(e).__name__)
        finally:
            clear_build_context()

    def _publish(
        self,
        build: BuildRef,
        host: BuildHost,
        config: BuildHeraldConfig,
        job_name: str | None,
    ) -> NotificationResult:
        composed = self.prepare(build, host, config, job_name)
        if composed is None:
            return NotificationResult(STATUS_SUPPRESSED)

        try:
            require_destination(composed)
        except ConfigurationIncompleteError as e:
            logger.error("%s; not sending", e)
            return NotificationResult(
                STATUS_SKIPPED,
                stream=composed.stream,
                topic=composed.topic,
                message=composed.message,
                error=str(e),
            )

        credentials = resolve_credentials(config.global_config.credentials)
        result = NotificationResult(
            STATUS_FAILED,
            stream=composed.stream,
            topic=composed.topic,
            message=composed.message,
        )
        try:
            delivered = self._dispatcher.send(
                credentials, composed.stream, composed.topic, composed.message,
            )
        except Exception as e:
            logger.error(
                "%s delivery failed for %s > %s: %s",
                self._dispatcher.transport_type, composed.stream, composed.topic, e,
            )
            result.error = str(e) or type(e).__name__
            return result

        if not delivered:
            result.error = "message rejected by messaging service"
            return result

        result.status = STATUS_SENT
        return result
