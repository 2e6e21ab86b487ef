"""Tests for resource_spine.core.logging module."""

import json

from resource_spine.core.logging import (
    LogContext,
    clear_context,
    configure_logging,
    get_logger,
)


def last_json_line(text):
    return json.loads(text.strip().splitlines()[-1])


class TestConfigureLogging:
    def test_json_to_stderr(self, capsys):
        configure_logging(level="DEBUG", json_format=True, to_stderr=True)
        get_logger("resource_spine.test").info("lock_acquired", lock_name="beestat_sync")

        captured = capsys.readouterr()
        assert captured.out == ""
        event = last_json_line(captured.err)
        assert event["event"] == "lock_acquired"
        assert event["lock_name"] == "beestat_sync"
        assert event["log.level"] == "info"
        assert event["logger_name"] == "resource_spine.test"
        assert event["service.name"] == "resource-spine"
        assert "@timestamp" in event

    def test_level_filters(self, capsys):
        configure_logging(level="WARNING", json_format=True, to_stderr=True)
        logger = get_logger("resource_spine.test")
        logger.info("connection_opened")
        logger.warning("statement_failed", code=1146)

        lines = capsys.readouterr().err.strip().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["event"] == "statement_failed"

    def test_custom_service_name(self, capsys):
        configure_logging(json_format=True, service="beestat-api", to_stderr=True)
        get_logger("x").info("hello")
        assert last_json_line(capsys.readouterr().err)["service.name"] == "beestat-api"
        configure_logging(json_format=True, to_stderr=True)


class TestLogContext:
    def test_binds_and_unbinds(self, capsys):
        configure_logging(json_format=True, to_stderr=True)
        logger = get_logger("resource_spine.test")

        with LogContext(request_id="req-1", user_id=7):
            logger.info("inside")
        logger.info("outside")

        inside, outside = (
            json.loads(line) for line in capsys.readouterr().err.strip().splitlines()
        )
        assert inside["request_id"] == "req-1"
        assert inside["user_id"] == 7
        assert "request_id" not in outside
        clear_context()
