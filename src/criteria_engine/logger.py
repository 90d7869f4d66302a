"""
Structured logging for the criteria engine.

JSON logs for production, readable lines for development.
Carries an evaluation_id for tracing a single request through the engine.

Usage:
    from criteria_engine.logger import logger

    logger.set_evaluation("req_123")
    logger.info("Criteria validated", failed=2)
    logger.metric("equation_result", True, template="{{age}} >= 18")
"""

import json
import logging
import os
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from criteria_engine.settings import settings


# Context-local storage so parallel evaluations do not share trace ids
_evaluation_id_var: ContextVar[Optional[str]] = ContextVar('evaluation_id', default=None)
_extra_context_var: ContextVar[Optional[Dict[str, Any]]] = ContextVar('extra_context', default=None)


class StructuredLogger:
    """
    Structured logger with JSON support and evaluation tracing.

    - JSON format when LOG_FORMAT=json
    - Readable format otherwise
    - evaluation_id attached to every line when set
    - metric() and event() helpers for analytics
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(name)

        if not self.logger.handlers:
            self._setup_logger()

    def _setup_logger(self) -> None:
        """Configure level and handler from settings and environment"""
        level_name = settings.get_nested("logging.level", "INFO")
        level = getattr(logging, str(level_name).upper(), logging.INFO)
        self.logger.setLevel(level)

        handler = logging.StreamHandler()
        handler.setLevel(level)

        log_format = os.environ.get("LOG_FORMAT", "readable")

        if log_format == "json":
            formatter = logging.Formatter("%(message)s")
        else:
            formatter = logging.Formatter(
                "[%(asctime)s] %(levelname)s - %(message)s",
                datefmt="%H:%M:%S"
            )

        handler.setFormatter(formatter)
        self.logger.addHandler(handler)

        self.logger.propagate = False

    @property
    def evaluation_id(self) -> Optional[str]:
        """Context-local evaluation id"""
        return _evaluation_id_var.get()

    def set_evaluation(self, evaluation_id: str) -> None:
        """Set evaluation id (context-local)"""
        _evaluation_id_var.set(evaluation_id)

    def clear_evaluation(self) -> None:
        """Clear evaluation id"""
        _evaluation_id_var.set(None)

    @property
    def _extra_context(self) -> Dict[str, Any]:
        ctx = _extra_context_var.get()
        if ctx is None:
            ctx = {}
            _extra_context_var.set(ctx)
        return ctx

    def set_context(self, **kwargs: Any) -> None:
        """Set extra context (context-local)"""
        ctx = dict(self._extra_context)
        ctx.update(kwargs)
        _extra_context_var.set(ctx)

    def clear_context(self) -> None:
        """Clear extra context"""
        _extra_context_var.set({})

    def _format_structured(self, level: str, message: str, **kwargs: Any) -> Dict[str, Any]:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": level,
            "logger": self.name,
            "message": message,
        }

        if self.evaluation_id:
            log_entry["evaluation_id"] = self.evaluation_id

        if self._extra_context:
            log_entry.update(self._extra_context)

        if kwargs:
            log_entry.update(kwargs)

        return log_entry

    def _should_use_json(self) -> bool:
        return os.environ.get("LOG_FORMAT", "readable") == "json"

    def _render(self, level: str, message: str, **kwargs: Any) -> str:
        if self._should_use_json():
            structured = self._format_structured(level, message, **kwargs)
            return json.dumps(structured, ensure_ascii=False, default=str)

        if kwargs:
            extras = ", ".join(f"{k}={v}" for k, v in kwargs.items())
            full_message = f"{message} [{extras}]"
        else:
            full_message = message

        if self.evaluation_id:
            full_message = f"[{self.evaluation_id}] {full_message}"
        return full_message

    def _log(self, level: str, message: str, log_method, **kwargs: Any) -> None:
        log_method(self._render(level, message, **kwargs))

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message"""
        if self.logger.isEnabledFor(logging.DEBUG):
            self._log("DEBUG", message, self.logger.debug, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message"""
        self._log("INFO", message, self.logger.info, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message"""
        self._log("WARNING", message, self.logger.warning, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error message"""
        self._log("ERROR", message, self.logger.error, **kwargs)

    def metric(self, name: str, value: Any, **kwargs: Any) -> None:
        """
        Structured metric for analytics.

        Example:
            logger.metric("validation_failures", 3, language="en")
        """
        self._log("METRIC", name, self.logger.info, value=value, **kwargs)

    def event(self, event_type: str, **kwargs: Any) -> None:
        """
        Log an engine event.

        Example:
            logger.event("function_registered", name="double")
        """
        self._log("EVENT", event_type, self.logger.info, **kwargs)


# Singleton logger
logger = StructuredLogger("criteria_engine")


def create_test_logger(name: str = "test") -> StructuredLogger:
    """Create an isolated logger for tests"""
    return StructuredLogger(f"criteria_engine.{name}")


__all__ = ["StructuredLogger", "logger", "create_test_logger"]
