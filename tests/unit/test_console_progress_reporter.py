"""
Unit tests for ConsoleProgressReporter adapter.

Tests verify progress labels are logged in the expected format and that
the reporter fits both the bulk and the single-entry callback shapes.
"""

import logging
import typing

import pytest

from src.adapters.progress.console import ConsoleProgressReporter
from src.domain.ports import BulkProgressCallback, ProgressCallback


class TestCallbackShapes:
    """Tests for callback protocol compliance."""

    def test_is_bulk_callback(self) -> None:
        def accepts(callback: BulkProgressCallback) -> None:
            callback("a@x.com", "Starting...")

        accepts(ConsoleProgressReporter())

    def test_for_entry_annotated_as_progress_callback(self) -> None:
        hints = typing.get_type_hints(ConsoleProgressReporter.for_entry)
        assert hints["return"] == ProgressCallback

    def test_for_entry_is_single_entry_callback(self) -> None:
        def accepts(callback: ProgressCallback) -> None:
            callback("Starting...")

        accepts(ConsoleProgressReporter().for_entry("a@x.com"))


class TestLogging:
    """Tests for log output."""

    def test_label_logged_at_info(self, caplog: pytest.LogCaptureFixture) -> None:
        reporter = ConsoleProgressReporter()

        with caplog.at_level(logging.INFO):
            reporter("a@x.com", "Sending verification code...")

        assert len(caplog.records) == 1
        assert caplog.records[0].levelno == logging.INFO

    def test_format(self, caplog: pytest.LogCaptureFixture) -> None:
        reporter = ConsoleProgressReporter()

        with caplog.at_level(logging.INFO):
            reporter("a@x.com", "Sending verification code...")

        assert (
            caplog.records[0].getMessage()
            == "[PROGRESS] Email: a@x.com Status: Sending verification code..."
        )

    def test_for_entry_binds_email(self, caplog: pytest.LogCaptureFixture) -> None:
        report = ConsoleProgressReporter().for_entry("b@x.com")

        with caplog.at_level(logging.INFO):
            report("Signed in")
            report("Registration completed successfully!")

        assert [r.getMessage() for r in caplog.records] == [
            "[PROGRESS] Email: b@x.com Status: Signed in",
            "[PROGRESS] Email: b@x.com Status: Registration completed successfully!",
        ]
