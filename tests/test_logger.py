"""
Tests for the structured logger.
"""

import json
import logging
import os
from io import StringIO

import pytest

from criteria_engine.logger import StructuredLogger, create_test_logger, logger


@pytest.fixture
def capture():
    """Attach a fresh StringIO handler to a test logger"""
    env_backup = os.environ.pop("LOG_FORMAT", None)
    log = create_test_logger("capture")
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setLevel(logging.DEBUG)
    log.logger.handlers.clear()
    log.logger.addHandler(handler)
    log.logger.setLevel(logging.DEBUG)

    yield log, stream

    log.clear_evaluation()
    log.clear_context()
    log.logger.handlers.clear()
    if env_backup is None:
        os.environ.pop("LOG_FORMAT", None)
    else:
        os.environ["LOG_FORMAT"] = env_backup


def _json_lines(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


class TestStructuredLogger:
    """Basic logging"""

    def test_module_logger(self):
        assert isinstance(logger, StructuredLogger)
        assert logger.name == "criteria_engine"
        assert logger.logger.propagate is False

    def test_test_logger_name(self):
        assert create_test_logger("x").name == "criteria_engine.x"

    def test_readable_format(self, capture):
        log, stream = capture
        log.info("Criteria validated", failed=2)
        assert "Criteria validated [failed=2]" in stream.getvalue()

    def test_readable_with_evaluation_id(self, capture):
        log, stream = capture
        log.set_evaluation("req_1")
        log.warning("Unknown language")
        assert "[req_1] Unknown language" in stream.getvalue()

    def test_debug_respects_level(self, capture):
        log, stream = capture
        log.logger.setLevel(logging.INFO)
        log.debug("hidden")
        assert stream.getvalue() == ""


class TestJsonFormat:
    """LOG_FORMAT=json"""

    def test_json_entry(self, capture):
        log, stream = capture
        os.environ["LOG_FORMAT"] = "json"
        log.set_evaluation("req_42")
        log.error("Derivation failed", criterion="total")

        entry = _json_lines(stream)[0]
        assert entry["level"] == "ERROR"
        assert entry["logger"] == "criteria_engine.capture"
        assert entry["message"] == "Derivation failed"
        assert entry["evaluation_id"] == "req_42"
        assert entry["criterion"] == "total"
        assert entry["timestamp"].endswith("Z")

    def test_no_evaluation_id_key_when_unset(self, capture):
        log, stream = capture
        os.environ["LOG_FORMAT"] = "json"
        log.info("plain")
        assert "evaluation_id" not in _json_lines(stream)[0]

    def test_extra_context(self, capture):
        log, stream = capture
        os.environ["LOG_FORMAT"] = "json"
        log.set_context(language="pt")
        log.info("first")
        log.clear_context()
        log.info("second")

        first, second = _json_lines(stream)
        assert first["language"] == "pt"
        assert "language" not in second

    def test_metric(self, capture):
        log, stream = capture
        os.environ["LOG_FORMAT"] = "json"
        log.metric("validation_failures", 3, language="en")

        entry = _json_lines(stream)[0]
        assert entry["level"] == "METRIC"
        assert entry["message"] == "validation_failures"
        assert entry["value"] == 3
        assert entry["language"] == "en"

    def test_event(self, capture):
        log, stream = capture
        os.environ["LOG_FORMAT"] = "json"
        log.event("function_registered", name="double")

        entry = _json_lines(stream)[0]
        assert entry["level"] == "EVENT"
        assert entry["name"] == "double"

    def test_non_serializable_values(self, capture):
        log, stream = capture
        os.environ["LOG_FORMAT"] = "json"
        log.info("object", value=object())
        assert "object" in _json_lines(stream)[0]["value"]


class TestEvaluationId:
    """evaluation_id lifecycle"""

    def test_set_and_clear(self, capture):
        log, _ = capture
        assert log.evaluation_id is None
        log.set_evaluation("abc")
        assert log.evaluation_id == "abc"
        log.clear_evaluation()
        assert log.evaluation_id is None

    def test_shared_between_loggers_in_same_context(self, capture):
        log, _ = capture
        log.set_evaluation("shared")
        assert create_test_logger("other").evaluation_id == "shared"
