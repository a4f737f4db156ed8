"""
Structured logging infrastructure for DroneFit.

Provides JSON logging with:
- Multiple log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
- Rotating file handlers (daily rotation, 30-day retention)
- Separate error log file
- Performance tracking (latency metrics)
- Context tracking (session_id, question, mode, category)

Usage:
    from core.structured_logging import get_logger, log_answer, log_error

    logger = get_logger(__name__)
    logger.info("Answer registered", extra={"question_id": "purpose"})

    # Or use convenience functions:
    log_answer(session_id="abc", question_id="purpose", option_key="travel")
"""

import json
import logging
import sys
import time
import traceback
import uuid
from datetime import datetime, timezone
from functools import wraps
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Dict, Optional


ROOT_LOGGER_NAME = "dronefit"


# =============================================================================
# JSON Formatter
# =============================================================================

class JSONFormatter(logging.Formatter):
    """
    Formats log records as JSON for structured logging.

    Output format:
    {
        "timestamp": "2026-10-18T10:30:00.123456Z",
        "level": "INFO",
        "logger": "dronefit.core.diagnosis",
        "message": "Answer registered",
        "event": "answer_registered",
        "session_id": "abc123",
        ...
    }
    """

    # Fields passed via logger.info("msg", extra={...})
    EXTRA_FIELDS = [
        # Session
        "event", "session_id", "event_type",
        # Flow
        "question_id", "option_key", "mode", "previous_mode",
        "detail_segments", "answered_count", "active_count", "complete",
        "next_question_id",
        # Scoring
        "category", "score", "secondary", "answer_count",
        # Candidates
        "model_id", "alternatives", "note", "constraints",
        # Loader
        "path", "records_loaded", "records_skipped",
        # Error tracking
        "error_type", "stack_trace", "context",
        # Performance timing
        "elapsed_ms", "response_time_ms", "handler_ms", "session_duration_s", "function",
    ]

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in self.EXTRA_FIELDS:
            if hasattr(record, field):
                value = getattr(record, field)
                if value is not None:
                    log_data[field] = value

        if record.exc_info:
            log_data["error_type"] = record.exc_info[0].__name__ if record.exc_info[0] else None
            log_data["stack_trace"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable formatter for console output.

    Output format:
    2026-10-18 10:30:00 | INFO | dronefit.core.diagnosis | Answer registered | session_id=abc123
    """

    COLORS = {
        "DEBUG": "\033[36m",    # Cyan
        "INFO": "\033[32m",     # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",    # Red
        "CRITICAL": "\033[35m", # Magenta
        "RESET": "\033[0m",
    }

    CONTEXT_FIELDS = ["session_id", "event", "question_id", "response_time_ms"]

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for console."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname

        color = self.COLORS.get(level, "")
        reset = self.COLORS["RESET"]

        msg = f"{timestamp} | {color}{level:8}{reset} | {record.name} | {record.getMessage()}"

        context_parts = []
        for field in self.CONTEXT_FIELDS:
            if hasattr(record, field) and getattr(record, field) is not None:
                context_parts.append(f"{field}={getattr(record, field)}")

        if context_parts:
            msg += f" | {', '.join(context_parts)}"

        if record.exc_info:
            msg += f"\n{self.formatException(record.exc_info)}"

        return msg


# =============================================================================
# Logger Setup
# =============================================================================

_loggers: Dict[str, logging.Logger] = {}
_initialized = False


def setup_logging(
    log_dir: str = "logs",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    enable_console: bool = True,
    enable_file: bool = False,
    enable_error_log: bool = False,
) -> None:
    """
    Initialize the logging system.

    Creates (when enabled):
    - logs/dronefit.log (all logs, JSON, rotating daily, 30-day retention)
    - logs/errors.log (ERROR and above, rotating daily, 30-day retention)
    - Console output

    Args:
        log_dir: Directory for log files
        console_level: Minimum level for console output
        file_level: Minimum level for file output
        enable_console: Whether to output to console
        enable_file: Whether to write dronefit.log
        enable_error_log: Whether to write errors.log (ERROR and above)
    """
    global _initialized
    if _initialized:
        return

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    root_logger.handlers = []

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(ConsoleFormatter())
        root_logger.addHandler(console_handler)

    if enable_file or enable_error_log:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        if enable_file:
            file_handler = TimedRotatingFileHandler(
                filename=str(log_path / "dronefit.log"),
                when="midnight",
                interval=1,
                backupCount=30,
                encoding="utf-8",
            )
            file_handler.setLevel(file_level)
            file_handler.setFormatter(JSONFormatter())
            file_handler.suffix = "%Y-%m-%d"
            root_logger.addHandler(file_handler)

        if enable_error_log:
            error_handler = TimedRotatingFileHandler(
                filename=str(log_path / "errors.log"),
                when="midnight",
                interval=1,
                backupCount=30,
                encoding="utf-8",
            )
            error_handler.setLevel(logging.ERROR)
            error_handler.setFormatter(JSONFormatter())
            error_handler.suffix = "%Y-%m-%d"
            root_logger.addHandler(error_handler)

    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Module name (usually __name__)

    Returns:
        Logger under the dronefit namespace

    Example:
        logger = get_logger(__name__)
        logger.info("Evaluation complete", extra={"category": "hobby"})
    """
    # Don't auto-initialize here - app.py controls logging setup
    if name.startswith(f"{ROOT_LOGGER_NAME}."):
        logger_name = name
    else:
        logger_name = f"{ROOT_LOGGER_NAME}.{name}"

    if logger_name not in _loggers:
        _loggers[logger_name] = logging.getLogger(logger_name)

    return _loggers[logger_name]


# =============================================================================
# Context Manager for Session Tracking
# =============================================================================

class LogContext:
    """
    Context manager for tracking session-level logging context.

    Usage:
        with LogContext(session_id="abc123") as ctx:
            ctx.log_event("select_option", question_id="purpose")
            # ... do work ...
            ctx.log_response(complete=False)
    """

    def __init__(self, session_id: Optional[str] = None):
        self.session_id = session_id or str(uuid.uuid4())[:8]
        self.start_time = None
        self.logger = get_logger("context")

    def __enter__(self) -> "LogContext":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is not None:
            self.log_error(exc_val, exc_tb)
        return False  # Don't suppress exceptions

    def elapsed_ms(self) -> float:
        """Get elapsed time in milliseconds."""
        if self.start_time is None:
            return 0.0
        return (time.perf_counter() - self.start_time) * 1000

    def log_event(self, event_type: str, **extra) -> None:
        """Log an incoming user event."""
        self.logger.info(
            f"User event received: {event_type}",
            extra={
                "event": "user_event",
                "session_id": self.session_id,
                "event_type": event_type,
                **extra
            }
        )

    def log_response(self, **extra) -> None:
        """Log the render model being returned."""
        self.logger.info(
            "View rendered",
            extra={
                "event": "view_rendered",
                "session_id": self.session_id,
                "response_time_ms": round(self.elapsed_ms(), 2),
                **extra
            }
        )

    def log_error(self, error: Exception, tb=None) -> None:
        """Log an error."""
        self.logger.error(
            f"Error: {error}",
            extra={
                "event": "error",
                "session_id": self.session_id,
                "error_type": type(error).__name__,
                "stack_trace": "".join(traceback.format_tb(tb)) if tb else None,
            },
            exc_info=(type(error), error, tb) if tb else None
        )


# =============================================================================
# Convenience Functions
# =============================================================================

def log_event(
    session_id: str,
    event_type: str,
    question_id: Optional[str] = None,
    option_key: Optional[str] = None,
    **extra
) -> None:
    """
    Log a user event (select option, advance, back, reset).

    Args:
        session_id: Session identifier
        event_type: Event type value
        question_id: Question the event refers to
        option_key: Chosen option, for selections
        **extra: Additional fields to log
    """
    logger = get_logger("events")
    logger.info(
        f"User event: {event_type}",
        extra={
            "event": "user_event",
            "session_id": session_id,
            "event_type": event_type,
            "question_id": question_id,
            "option_key": option_key,
            **extra
        }
    )


def log_answer(
    session_id: Optional[str],
    question_id: str,
    option_key: str,
    **extra
) -> None:
    """
    Log a registered answer.

    Args:
        session_id: Session identifier (None outside a session)
        question_id: Answered question
        option_key: Chosen option
        **extra: Additional fields
    """
    logger = get_logger("answers")
    logger.debug(
        f"Answer registered: {question_id}={option_key}",
        extra={
            "event": "answer_registered",
            "session_id": session_id,
            "question_id": question_id,
            "option_key": option_key,
            **extra
        }
    )


def log_transition(
    session_id: Optional[str],
    previous_mode: str,
    mode: str,
    detail_segments: list,
    **extra
) -> None:
    """
    Log a flow mode or segment change.

    Args:
        session_id: Session identifier
        previous_mode: Mode before the transition
        mode: Mode after the transition
        detail_segments: Active detail segments after the transition
        **extra: Additional fields
    """
    logger = get_logger("transitions")
    logger.debug(
        f"Flow transition: {previous_mode} -> {mode}",
        extra={
            "event": "flow_transition",
            "session_id": session_id,
            "previous_mode": previous_mode,
            "mode": mode,
            "detail_segments": detail_segments,
            **extra
        }
    )


def log_evaluation(
    category: Optional[str],
    score: Optional[float],
    secondary: list,
    answer_count: int,
    session_id: Optional[str] = None,
    **extra
) -> None:
    """
    Log a scoring evaluation result.

    Args:
        category: Winning category (None when nothing is answered)
        score: Winning score
        secondary: Close-second category keys
        answer_count: Number of answers evaluated
        session_id: Session identifier
        **extra: Additional fields
    """
    logger = get_logger("scoring")
    logger.debug(
        f"Evaluation: {category} ({score})",
        extra={
            "event": "evaluation",
            "session_id": session_id,
            "category": category,
            "score": score,
            "secondary": secondary,
            "answer_count": answer_count,
            **extra
        }
    )


def log_selection(
    category: str,
    model_id: Optional[str],
    alternatives: list,
    note: Optional[str] = None,
    session_id: Optional[str] = None,
    **extra
) -> None:
    """
    Log a candidate selection result.

    Args:
        category: Category the selection was made for
        model_id: Primary product id (None when nothing resolved)
        alternatives: Alternative product ids, in order
        note: Advisory note, if any
        session_id: Session identifier
        **extra: Additional fields
    """
    logger = get_logger("candidates")
    logger.info(
        f"Candidates selected for {category}: {model_id}",
        extra={
            "event": "candidates_selected",
            "session_id": session_id,
            "category": category,
            "model_id": model_id,
            "alternatives": alternatives,
            "note": note,
            **extra
        }
    )


def log_error(
    session_id: Optional[str],
    error: Exception,
    context: Optional[str] = None,
    **extra
) -> None:
    """
    Log an error with full context.

    Args:
        session_id: Session identifier
        error: The exception
        context: What was happening
        **extra: Additional fields
    """
    logger = get_logger("error")
    logger.error(
        f"Error: {type(error).__name__}: {error}",
        extra={
            "event": "error",
            "session_id": session_id,
            "error_type": type(error).__name__,
            "stack_trace": traceback.format_exc(),
            "context": context,
            **extra
        },
        exc_info=True
    )


# =============================================================================
# Performance Timing Decorator
# =============================================================================

def timed(event_name: str, logger_name: str = "performance"):
    """
    Decorator to time function execution and log it.

    Usage:
        @timed("evaluation")
        def evaluate(question_set, answers):
            ...

    Args:
        event_name: Name of the event for logging
        logger_name: Logger to use
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                elapsed_ms = (time.perf_counter() - start) * 1000

                logger = get_logger(logger_name)
                logger.debug(
                    f"{event_name} completed",
                    extra={
                        "event": f"{event_name}_timing",
                        "elapsed_ms": round(elapsed_ms, 2),
                        "function": func.__name__,
                    }
                )
                return result
            except Exception as e:
                elapsed_ms = (time.perf_counter() - start) * 1000
                logger = get_logger(logger_name)
                logger.error(
                    f"{event_name} failed after {elapsed_ms:.2f}ms",
                    extra={
                        "event": f"{event_name}_error",
                        "elapsed_ms": round(elapsed_ms, 2),
                        "function": func.__name__,
                        "error_type": type(e).__name__,
                    },
                    exc_info=True
                )
                raise
        return wrapper
    return decorator


class Timer:
    """
    Context manager for timing code blocks.

    Usage:
        with Timer() as t:
            # ... do work ...
        print(f"Took {t.elapsed_ms}ms")
    """

    def __init__(self):
        self.start_time = None
        self.end_time = None
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args) -> None:
        self.end_time = time.perf_counter()
        self.elapsed_ms = (self.end_time - self.start_time) * 1000
