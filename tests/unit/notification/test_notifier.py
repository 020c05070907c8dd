"""Tests for core.notification.notifier — end-to-end build notification."""
# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging

import pytest

from core.config.models import NotifierConfig, ZulipCredentials
from core.exceptions import ConfigurationIncompleteError, TransportError
from core.notification.composer import ComposedMessage
from core.notification.notifier import BuildNotifier, NotificationResult, require_destination
from core.schemas import NOT_COMPUTED, BuildOutcome
from tests.helpers.builds import (
    FakeBuildHost,
    RecordingDispatcher,
    changes,
    make_build,
    make_config,
)


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def notifier(dispatcher) -> BuildNotifier:
    return BuildNotifier(dispatcher)


# ── Defaults & overrides ─────────────────────────────────────


class TestDestination:
    def test_uses_defaults(self, notifier, dispatcher, build, host):
        result = notifier.publish(build, host, make_config())

        assert result.status == "sent"
        assert len(dispatcher.sent) == 1
        sent = dispatcher.sent[0]
        assert sent["stream"] == "defaultStream"
        assert sent["topic"] == "defaultTopic"
        assert sent["message"] == "**Project: **TestJob : **Build: **#1: **SUCCESS** :check_mark:"
        assert sent["credentials"] == ZulipCredentials(
            url="zulipUrl", email="jenkins-bot@zulip.com", api_key="secret",
        )

    def test_blank_job_values_use_defaults(self, notifier, dispatcher, build, host):
        config = make_config(jobs={"TestJob": NotifierConfig(stream="", topic="")})
        notifier.publish(build, host, config)
        assert dispatcher.sent[0]["stream"] == "defaultStream"
        assert dispatcher.sent[0]["topic"] == "defaultTopic"

    def test_uses_job_config(self, notifier, dispatcher, build, host):
        config = make_config(
            jobs={"TestJob": NotifierConfig(stream="projectStream", topic="projectTopic")},
        )
        notifier.publish(build, host, config)
        assert dispatcher.sent[0]["stream"] == "projectStream"
        assert dispatcher.sent[0]["topic"] == "projectTopic"

    def test_explicit_job_name_selects_override(self, notifier, dispatcher, build, host):
        config = make_config(jobs={"folder/TestJob": NotifierConfig(topic="nested")})
        notifier.publish(build, host, config, job_name="folder/TestJob")
        assert dispatcher.sent[0]["topic"] == "nested"

    def test_project_name_as_topic(self, notifier, dispatcher, build, host):
        notifier.publish(build, host, make_config(topic=""))
        assert dispatcher.sent[0]["topic"] == "TestJob"
        assert dispatcher.sent[0]["message"] == "**Build: **#1: **SUCCESS** :check_mark:"

    def test_jenkins_url(self, notifier, dispatcher, build, host):
        notifier.publish(build, host, make_config(hudson_url="JenkinsUrl"))
        assert dispatcher.sent[0]["message"] == (
            "**Project: **[TestJob](JenkinsUrl/job/TestJob) : "
            "**Build: **[#1](JenkinsUrl/job/TestJob/1): **SUCCESS** :check_mark:"
        )

    def test_no_stream_skips_sending(self, notifier, dispatcher, build, host):
        result = notifier.publish(build, host, make_config(stream=""))
        assert result.status == "skipped"
        assert result.error == "no stream configured for this job and no default stream"
        assert dispatcher.sent == []

    def test_no_topic_skips_sending(self, notifier, dispatcher, caplog):
        build = make_build(job="")
        with caplog.at_level(logging.ERROR, logger="buildherald.notification"):
            result = notifier.publish(build, FakeBuildHost(build), make_config(topic=""))
        assert result.status == "skipped"
        assert result.stream == "defaultStream"
        assert result.topic == ""
        assert "no topic configured" in caplog.text
        assert dispatcher.sent == []


class TestRequireDestination:
    def test_complete(self):
        require_destination(ComposedMessage("s", "t", "m"))

    @pytest.mark.parametrize("stream, topic", [("", "t"), ("s", ""), ("", "")])
    def test_blank_stream_or_topic(self, stream, topic):
        with pytest.raises(ConfigurationIncompleteError):
            require_destination(ComposedMessage(stream, topic, "m"))


# ── Message content ──────────────────────────────────────────


class TestMessage:
    def test_failed_build(self, notifier, dispatcher, build):
        host = FakeBuildHost(build, outcome=BuildOutcome.FAILURE)
        notifier.publish(build, host, make_config())
        assert dispatcher.sent[0]["message"] == (
            "**Project: **TestJob : **Build: **#1: **FAILURE** :x:"
        )

    def test_change_log(self, notifier, dispatcher, build):
        host = FakeBuildHost(build, change_set=changes(
            ("Author 1", "Short Commit Msg"),
            ("Author 2", "This is a very long commit message that will get truncated in the Zulip message"),
        ))
        notifier.publish(build, host, make_config())
        assert dispatcher.sent[0]["message"] == (
            "**Project: **TestJob : **Build: **#1: **SUCCESS** :check_mark:\n"
            "\n"
            "Changes since last build:\n"
            "\n"
            "* `Author 1` Short Commit Msg\n"
            "* `Author 2` This is a very long commit message that will g..."
        )

    def test_changes_not_computed(self, notifier, dispatcher, build):
        host = FakeBuildHost(build, change_set=NOT_COMPUTED)
        notifier.publish(build, host, make_config())
        assert dispatcher.sent[0]["message"].endswith(
            ":check_mark:\n\nCould not determine changes since last build."
        )

    def test_change_log_failure_still_notifies(self, notifier, dispatcher, build):
        host = FakeBuildHost(build, change_error=RuntimeError("scm down"))
        result = notifier.publish(build, host, make_config())
        assert result.status == "sent"
        assert dispatcher.sent[0]["message"] == (
            "**Project: **TestJob : **Build: **#1: **SUCCESS** :check_mark:\n\n"
            "\nError determining changes since last build - please contact support@zulip.com."
        )

    def test_host_root_url_used_for_links(self, notifier, dispatcher, build):
        host = FakeBuildHost(build, root="http://ci.example.com/")
        notifier.publish(build, host, make_config(topic=""))
        assert dispatcher.sent[0]["message"].startswith(
            "**Build: **[#1](http://ci.example.com/job/TestJob/1)"
        )


# ── Smart notify ─────────────────────────────────────────────


class TestSmartNotify:
    def _publish(self, notifier, build, outcome, previous, has_previous=True):
        host = FakeBuildHost(
            build, outcome=outcome, previous_outcome=previous, has_previous=has_previous,
        )
        return notifier.publish(build, host, make_config(smart_notify=True))

    def test_no_previous_build(self, notifier, dispatcher, build):
        self._publish(notifier, build, BuildOutcome.SUCCESS, None, has_previous=False)
        self._publish(notifier, build, BuildOutcome.FAILURE, None, has_previous=False)
        assert len(dispatcher.sent) == 2

    def test_previous_failure(self, notifier, dispatcher, build):
        self._publish(notifier, build, BuildOutcome.SUCCESS, BuildOutcome.FAILURE)
        self._publish(notifier, build, BuildOutcome.FAILURE, BuildOutcome.FAILURE)
        assert len(dispatcher.sent) == 2

    def test_previous_success(self, notifier, dispatcher, build):
        suppressed = self._publish(notifier, build, BuildOutcome.SUCCESS, BuildOutcome.SUCCESS)
        self._publish(notifier, build, BuildOutcome.FAILURE, BuildOutcome.SUCCESS)
        assert suppressed.status == "suppressed"
        assert len(dispatcher.sent) == 1

    def test_unset_results_count_as_success(self, notifier, dispatcher, build):
        result = self._publish(notifier, build, None, None)
        assert result.status == "suppressed"
        assert dispatcher.sent == []

    def test_suppressed_build_does_not_fetch_changes(self, notifier, build):
        host = FakeBuildHost(
            build,
            outcome=BuildOutcome.SUCCESS,
            previous_outcome=BuildOutcome.SUCCESS,
            has_previous=True,
            change_error=AssertionError("should not be called"),
        )
        result = notifier.publish(build, host, make_config(smart_notify=True))
        assert result == NotificationResult("suppressed")


# ── Failure isolation ────────────────────────────────────────


class TestFailures:
    def test_transport_error_is_caught(self, build, host, caplog):
        dispatcher = RecordingDispatcher(fail=TransportError("connection refused"))
        with caplog.at_level(logging.ERROR, logger="buildherald.notification"):
            result = BuildNotifier(dispatcher).publish(build, host, make_config())
        assert result.status == "failed"
        assert result.error == "connection refused"
        assert len(dispatcher.sent) == 1
        assert "delivery failed" in caplog.text

    def test_unexpected_transport_exception_is_caught(self, build, host):
        dispatcher = RecordingDispatcher(fail=ValueError("bad"))
        result = BuildNotifier(dispatcher).publish(build, host, make_config())
        assert result.status == "failed"

    def test_rejected_message(self, build, host):
        dispatcher = RecordingDispatcher(accept=False)
        result = BuildNotifier(dispatcher).publish(build, host, make_config())
        assert result.status == "failed"
        assert result.error == "message rejected by messaging service"

    def test_host_failure_is_caught(self, notifier, dispatcher, build):
        class BrokenHost(FakeBuildHost):
            def get_outcome(self, build):
                raise RuntimeError("host gone")

        result = notifier.publish(build, BrokenHost(build), make_config())
        assert result.status == "failed"
        assert result.error == "host gone"
        assert dispatcher.sent == []


class TestCredentials:
    def test_env_fills_blank_credentials(self, notifier, dispatcher, build, host, monkeypatch):
        monkeypatch.setenv("ZULIP_API_KEY", "from-env")
        config = make_config()
        gc = config.global_config.model_copy(update={
            "credentials": ZulipCredentials(url="u", email="e", api_key=""),
        })
        notifier.publish(build, host, config.model_copy(update={"global_config": gc}))
        assert dispatcher.sent[0]["credentials"].api_key == "from-env"


class TestPrepare:
    def test_prepare_does_not_send(self, notifier, dispatcher, build, host):
        composed = notifier.prepare(build, host, make_config())
        assert composed is not None
        assert composed.topic == "defaultTopic"
        assert dispatcher.sent == []
