"""Tests for the structlog configuration."""

import json
import logging

import structlog

from src.core.logging import configure_logging


def test_json_logs_carry_context(caplog):
    caplog.set_level(logging.INFO)
    try:
        configure_logging("INFO", json_logs=True)
        structlog.get_logger("heritage.audit").info("user_logged_in", user_id=7)
    finally:
        structlog.reset_defaults()

    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["event"] == "user_logged_in"
    assert payload["user_id"] == 7
    assert payload["level"] == "info"
    assert "timestamp" in payload
