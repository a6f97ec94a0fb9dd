"""
Structured logging for Prompt Studio.

JSON records for files and production consoles, readable lines in
development, timing of gateway and model calls, and an error tracker that
the sessions report every failed flow to.
"""

import logging
import logging.handlers
import json
import time
import traceback
from collections import deque
from datetime import datetime
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional
from contextlib import contextmanager
import streamlit as st

from config.app_config import AppConfig, get_config

ERROR_LOGGER_NAME = "prompt_studio.errors"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

# Attributes every LogRecord has; anything else came in through `extra=`
_RECORD_ATTRIBUTES = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per record. Fields passed with `extra=` are grouped under
    "extra"; `static_fields` are added to every record.
    """

    def __init__(self, static_fields: Optional[Dict[str, Any]] = None):
        super().__init__()
        self.static_fields = dict(static_fields or {})

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.module}.{record.funcName}:{record.lineno}",
            **self.static_fields,
        }

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            log_data["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": traceback.format_exception(exc_type, exc_value, exc_tb),
            }

        extra_fields = {
            key: value for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, ensure_ascii=False, default=str)


class StreamlitLogHandler(logging.Handler):
    """Shows warnings and errors on the page while developing"""

    def emit(self, record: logging.LogRecord):
        try:
            if record.levelno >= logging.ERROR:
                st.error(f"🚨 {self.format(record)}")
            else:
                st.warning(f"⚠️ {self.format(record)}")
        except Exception:
            self.handleError(record)


def _console_handler(config: AppConfig) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(config.logging.level)
    if config.debug:
        handler.setFormatter(logging.Formatter(config.logging.format + " [%(filename)s:%(lineno)d]"))
    else:
        handler.setFormatter(StructuredFormatter({"environment": config.environment}))
    return handler


def _file_handler(config: AppConfig) -> logging.Handler:
    log_file = Path(config.logging.log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(StructuredFormatter({"environment": config.environment}))
    return handler


def setup_logging(config: Optional[AppConfig] = None) -> logging.Logger:
    """
    Configure the root logger from `config.logging`.

    Returns:
        logging.Logger: Configured root logger
    """
    config = config or get_config()

    root_logger = logging.getLogger()
    root_logger.setLevel(config.logging.level)
    root_logger.handlers.clear()
    root_logger.addHandler(_console_handler(config))

    if config.logging.enable_file_logging:
        root_logger.addHandler(_file_handler(config))

    if config.debug and config.environment == "development":
        streamlit_handler = StreamlitLogHandler()
        streamlit_handler.setLevel(logging.WARNING)
        streamlit_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(streamlit_handler)

    # Request-level chatter from the OpenAI client
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


@contextmanager
def log_execution_time(logger: logging.Logger, operation: str, **extra_fields):
    """
    Time the enclosed block. Success is logged at INFO, failure at WARNING
    (the caller decides whether it is an error) and the exception re-raised.

    Args:
        logger: Logger instance
        operation: Name of the operation, e.g. "append_message"
        **extra_fields: Additional fields to include in both records
    """
    logger.debug(f"Starting {operation}", extra={"operation": operation, **extra_fields})
    started = time.perf_counter()

    try:
        yield
    except Exception as e:
        logger.warning(f"Failed {operation}: {e}", extra={
            "operation": operation,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            "status": "error",
            "error_type": type(e).__name__,
            **extra_fields
        })
        raise

    logger.info(f"Completed {operation}", extra={
        "operation": operation,
        "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        "status": "success",
        **extra_fields
    })


def log_user_interaction(logger: logging.Logger, interaction_type: str, **details):
    """
    Log an intent forwarded by the presentation layer

    Args:
        logger: Logger instance
        interaction_type: e.g. "message_submitted", "enhance_requested"
        **details: Additional interaction details
    """
    logger.info(f"User interaction: {interaction_type}", extra={
        "event_type": "user_interaction",
        "interaction_type": interaction_type,
        **details
    })


def log_conversation_event(logger: logging.Logger, event_type: str, conversation_id: Optional[str], **details):
    """
    Log a conversation lifecycle event

    Args:
        logger: Logger instance
        event_type: e.g. "created", "message_added", "reconciled", "deleted"
        conversation_id: Conversation identifier
        **details: Additional event details
    """
    logger.info(f"Conversation {event_type}", extra={
        "event_type": "conversation_event",
        "conversation_event_type": event_type,
        "conversation_id": conversation_id,
        **details
    })


class ErrorTracker:
    """
    Receives every failure a session flow ends with. Keeps counts per
    (error type, context) and the most recent failures for diagnostics.
    """

    def __init__(self, logger: logging.Logger, history_size: int = 20):
        self.logger = logger
        self.error_counts: Dict[str, int] = {}
        self.recent: Deque[Dict[str, Any]] = deque(maxlen=history_size)

    def track_error(self, error: Exception, context: str = "", **extra_info):
        """
        Count and log `error`, with its traceback

        Args:
            error: Exception that ended the flow
            context: Where it happened, e.g. "conversation_session.send message"
            **extra_info: Identifiers useful when reading the log
        """
        error_type = type(error).__name__
        error_key = f"{error_type}:{context}"
        self.error_counts[error_key] = self.error_counts.get(error_key, 0) + 1

        self.recent.append({
            "error_type": error_type,
            "context": context,
            "message": str(error),
            "at": datetime.now().isoformat(),
        })

        self.logger.error(f"Error in {context}: {error}", extra={
            "event_type": "error",
            "error_type": error_type,
            "context": context,
            "error_count": self.error_counts[error_key],
            **extra_info
        }, exc_info=error)

    def get_error_summary(self) -> Dict[str, Any]:
        return {
            "total_errors": sum(self.error_counts.values()),
            "unique_errors": len(self.error_counts),
            "error_breakdown": dict(self.error_counts),
            "recent": list(self.recent),
        }

    def last_errors(self, limit: int = 5) -> List[Dict[str, Any]]:
        return list(self.recent)[-limit:]

    def reset(self) -> None:
        self.error_counts.clear()
        self.recent.clear()


# Global instances
_logger_setup = False
_error_tracker: Optional[ErrorTracker] = None


def initialize_logging(config: Optional[AppConfig] = None) -> ErrorTracker:
    """
    Configure logging once per process and return the error tracker

    Returns:
        ErrorTracker: Global error tracker instance
    """
    global _logger_setup

    if not _logger_setup:
        setup_logging(config)
        _logger_setup = True

    return get_error_tracker()


def get_error_tracker() -> ErrorTracker:
    """Global error tracker; does not touch handler configuration"""
    global _error_tracker
    if _error_tracker is None:
        _error_tracker = ErrorTracker(logging.getLogger(ERROR_LOGGER_NAME))
    return _error_tracker
