"""Tests for logging setup."""
from __future__ import annotations

import json
import logging
from pathlib import Path

import structlog

from guardrails.shared.logging import SERVICE_NAME, bind_run_id, setup_logging


def test_bind_run_id() -> None:
    try:
        assert bind_run_id("run-1") == "run-1"
        assert structlog.contextvars.get_contextvars()["run_id"] == "run-1"
        assert len(bind_run_id()) == 32
    finally:
        structlog.contextvars.unbind_contextvars("run_id")


def test_file_output_is_json(tmp_path: Path) -> None:
    log_file = tmp_path / "guardrails.log"
    root = logging.getLogger()
    previous = (list(root.handlers), root.level)
    try:
        setup_logging(level="info", json_output=False, log_file=str(log_file), environment="test")
        structlog.get_logger("guardrails.test").info("preflight_complete", overall="green")
        for handler in root.handlers:
            handler.flush()
        events = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = previous[0]
        root.setLevel(previous[1])

    event = next(e for e in events if e["event"] == "preflight_complete")
    assert event["overall"] == "green"
    assert event["service"] == SERVICE_NAME
    assert event["environment"] == "test"
    assert event["level"] == "info"
