"""Tests for structured logging configuration."""

import json

import pytest
import structlog

from adkit.utils.logging import configure_logging, get_logger


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    configure_logging(level="INFO", fmt="json")


def test_json_output_keeps_japanese_text(capsys):
    configure_logging(level="INFO", fmt="json")
    log = get_logger("adkit.test")

    log.info("progress_pushed", current_step="ナレーション生成中...")

    line = capsys.readouterr().out.strip().splitlines()[-1]
    event = json.loads(line)
    assert event["event"] == "progress_pushed"
    assert event["current_step"] == "ナレーション生成中..."
    assert event["logger"] == "adkit.test"
    assert event["level"] == "info"
    assert "timestamp" in event
    assert "ナレーション" in line


def test_level_filters_lower_events(capsys):
    configure_logging(level="WARNING", fmt="json")
    log = get_logger("adkit.test")

    log.info("dropped")
    log.warning("kept")

    out = capsys.readouterr().out
    assert "dropped" not in out
    assert "kept" in out


def test_context_vars_merged(capsys):
    configure_logging(level="INFO", fmt="json")
    log = get_logger("adkit.test")

    with structlog.contextvars.bound_contextvars(campaign_id="c-1"):
        log.info("step_started")

    event = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert event["campaign_id"] == "c-1"


def test_console_format(capsys):
    configure_logging(level="INFO", fmt="console")
    log = get_logger("adkit.test")

    log.info("console_event")

    assert "console_event" in capsys.readouterr().out
