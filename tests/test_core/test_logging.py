"""Tests for structlog configuration."""

from __future__ import annotations

import io
import json
import logging

import structlog

from alarm_enricher.core.logging import setup_logging


class TestSetupLogging:
    def teardown_method(self) -> None:
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()

    def test_json_output_with_context(self) -> None:
        stream = io.StringIO()
        setup_logging(level="INFO", fmt="json", stream=stream)

        with structlog.contextvars.bound_contextvars(alarm_name="HighCPU"):
            structlog.stdlib.get_logger("alarm_enricher.test").info("alarm_enriched", violating=2)

        record = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert record["event"] == "alarm_enriched"
        assert record["alarm_name"] == "HighCPU"
        assert record["violating"] == 2
        assert record["level"] == "info"
        assert record["logger"] == "alarm_enricher.test"
        assert record["timestamp"].endswith("Z")

    def test_level_filters(self) -> None:
        stream = io.StringIO()
        setup_logging(level="WARNING", fmt="json", stream=stream)
        structlog.stdlib.get_logger("alarm_enricher.test").info("hidden")
        assert stream.getvalue() == ""

    def test_botocore_quieted(self) -> None:
        setup_logging(level="DEBUG", fmt="console", stream=io.StringIO())
        assert logging.getLogger("botocore").level == logging.WARNING
