"""Unit tests for structlog configuration."""

import json

import pytest
import structlog

from fraudshield.shared.logging import setup_logging


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


def test_json_logs(capsys):
    setup_logging("INFO", json_logs=True)
    structlog.get_logger().info("transaction_scored", transaction_id="t1")

    line = capsys.readouterr().out.strip().splitlines()[-1]
    event = json.loads(line)
    assert event["event"] == "transaction_scored"
    assert event["transaction_id"] == "t1"
    assert event["level"] == "info"
    assert "timestamp" in event


def test_level_filtering(capsys):
    setup_logging("WARNING", json_logs=True)
    structlog.get_logger().info("quiet")
    assert capsys.readouterr().out == ""
