"""Tests for core.notification.changes — changelog summary."""
# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging

from core.exceptions import ChangeLogUnavailableError
from core.notification.changes import (
    CHANGES_ERROR_TEXT,
    NOT_COMPUTED_TEXT,
    summarize,
    summarize_safely,
    truncate_commit_message,
)
from core.schemas import EMPTY, NOT_COMPUTED, ChangeEntries, ChangeEntry
from tests.helpers.builds import changes

LONG_MSG = "This is a very long commit message that will get truncated in the Zulip message"


class TestTruncation:
    def test_exactly_46_chars_untouched(self):
        msg = "x" * 46
        assert truncate_commit_message(msg) == msg

    def test_47_chars_truncated(self):
        msg = "y" * 47
        assert truncate_commit_message(msg) == "y" * 46 + "..."

    def test_long_message(self):
        result = truncate_commit_message(LONG_MSG)
        assert result == "This is a very long commit message that will g..."
        assert len(result) == 49

    def test_surrounding_whitespace_stripped(self):
        assert truncate_commit_message("  fix typo\n") == "fix typo"


class TestSummarize:
    def test_not_computed(self):
        assert summarize(NOT_COMPUTED) == NOT_COMPUTED_TEXT
        assert NOT_COMPUTED_TEXT == "Could not determine changes since last build."

    def test_empty(self):
        assert summarize(EMPTY) == ""

    def test_entries(self):
        result = changes(("Author 1", "Short Commit Msg"), ("Author 2", LONG_MSG))
        assert summarize(result) == (
            "Changes since last build:\n"
            "\n"
            "* `Author 1` Short Commit Msg\n"
            "* `Author 2` This is a very long commit message that will g..."
        )

    def test_groups_flattened_in_order(self):
        result = ChangeEntries.from_groups([
            [ChangeEntry("a", "first")],
            [],
            [ChangeEntry("b", "second"), ChangeEntry("c", "third")],
        ])
        text = summarize(result)
        assert text.index("first") < text.index("second") < text.index("third")

    def test_no_groups_is_empty(self):
        assert ChangeEntries.from_groups([[], []]) is EMPTY

    def test_idempotent(self):
        result = changes(("Author 1", LONG_MSG))
        assert summarize(result) == summarize(result)


class TestSummarizeSafely:
    def test_passes_through(self):
        assert summarize_safely(lambda: NOT_COMPUTED) == NOT_COMPUTED_TEXT

    def test_failure_becomes_notice(self, caplog):
        def boom():
            raise RuntimeError("scm exploded")

        with caplog.at_level(logging.WARNING, logger="buildherald.notification.changes"):
            text = summarize_safely(boom)

        assert text == CHANGES_ERROR_TEXT
        assert text == (
            "\nError determining changes since last build - please contact support@zulip.com."
        )
        assert "Exception while computing changes" in caplog.text

    def test_failure_while_iterating_entries(self):
        class BrokenEntry:
            message = "ok"

            @property
            def author(self):
                raise OSError("changelog.xml unreadable")

        broken = ChangeEntries((ChangeEntry("a", "fine"), BrokenEntry()))
        assert summarize_safely(lambda: broken) == CHANGES_ERROR_TEXT

    def test_reported_unavailable_change_log(self, caplog):
        def unavailable():
            raise ChangeLogUnavailableError("git fetch failed")

        with caplog.at_level(logging.WARNING, logger="buildherald.notification.changes"):
            text = summarize_safely(unavailable)

        assert text == CHANGES_ERROR_TEXT
        assert "Change log unavailable: git fetch failed" in caplog.text
        assert caplog.records[-1].exc_info is None
