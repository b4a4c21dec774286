"""Unit tests for logging configuration."""

import io
import json
import logging

import structlog

from personal_feed.observability import (
    FeedLogger,
    bind_run_context,
    clear_run_context,
    configure_logging,
    get_logger,
)
from tests.helpers.fakes import RecordingLogger


class TestConfigureLogging:
    """Tests for configure_logging."""

    def teardown_method(self) -> None:
        """Restore structlog defaults after each test."""
        clear_run_context()
        structlog.reset_defaults()

    def test_json_output_includes_run_context(self) -> None:
        """JSON logs should carry the bound run id."""
        stream = io.StringIO()
        configure_logging(level=logging.INFO, output=stream, json_format=True)
        bind_run_context("run-42")

        structlog.get_logger().bind(component="test").info("something_happened", count=3)

        record = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert record["event"] == "something_happened"
        assert record["run_id"] == "run-42"
        assert record["component"] == "test"
        assert record["level"] == "info"

    def test_level_filters_debug(self) -> None:
        """Debug events should be dropped at INFO level."""
        stream = io.StringIO()
        configure_logging(level=logging.INFO, output=stream, json_format=True)

        structlog.get_logger().debug("hidden")

        assert "hidden" not in stream.getvalue()


class TestFeedLoggerProtocol:
    """Tests for the FeedLogger protocol."""

    def test_structlog_and_fakes_conform(self) -> None:
        """Both the structlog logger and test doubles satisfy the protocol."""
        assert isinstance(get_logger(), FeedLogger)
        assert isinstance(RecordingLogger(), FeedLogger)
