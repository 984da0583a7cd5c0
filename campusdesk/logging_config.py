"""
CampusDesk console - logging configuration
Plain text for interactive use, JSON lines when CAMPUSDESK_LOG_FORMAT=json
"""

import json
import logging
import os
import sys
import traceback
from contextvars import ContextVar
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional


# Session context for every log line emitted by the console
actor_id_var: ContextVar[str] = ContextVar('actor_id', default='')
actor_role_var: ContextVar[str] = ContextVar('actor_role', default='')


def set_actor(user_id: Optional[str], role: Optional[str]) -> None:
    actor_id_var.set(user_id or '')
    actor_role_var.set(role or '')


def clear_actor() -> None:
    set_actor(None, None)


class JSONFormatter(logging.Formatter):
    """One JSON object per line"""

    RESERVED = {
        'name', 'msg', 'args', 'created', 'filename', 'funcName', 'levelname',
        'levelno', 'lineno', 'module', 'msecs', 'pathname', 'process',
        'processName', 'relativeCreated', 'stack_info', 'exc_info', 'exc_text',
        'thread', 'threadName', 'message', 'taskName', 'actor_id', 'actor_role',
    }

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if actor_id_var.get():
            log_data["actor_id"] = actor_id_var.get()
            log_data["actor_role"] = actor_role_var.get()

        if record.exc_info and record.exc_info[0]:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        for key, value in record.__dict__.items():
            if key not in self.RESERVED and not key.startswith('_'):
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ContextualFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        record.actor_id = actor_id_var.get() or '-'
        record.actor_role = actor_role_var.get() or '-'
        return super().format(record)


class ConsoleLogger(logging.Logger):
    """Logger with helpers for the events the console cares about"""

    def log_transition(self, entity: str, entity_id: str, from_state: str,
                       to_state: str, **kwargs) -> None:
        self.info(
            f"{entity} {entity_id}: {from_state} → {to_state}",
            extra={
                "event_type": "transition",
                "entity": entity,
                "entity_id": entity_id,
                "from_state": from_state,
                "to_state": to_state,
                **kwargs
            }
        )

    def log_event_delivery(self, topic: str, delivered: bool,
                           error: Optional[str] = None, **kwargs) -> None:
        level = logging.DEBUG if delivered else logging.WARNING
        self.log(
            level,
            f"Event {topic}: {'delivered' if delivered else 'not delivered'}" +
            (f" - {error}" if error else ""),
            extra={
                "event_type": "event_delivery",
                "topic": topic,
                "delivered": delivered,
                "delivery_error": error,
                **kwargs
            }
        )

    def log_error_with_context(self, error: BaseException, context: str = None,
                               **kwargs) -> None:
        self.error(
            f"Error in {context}: {type(error).__name__}: {error}",
            exc_info=(type(error), error, error.__traceback__),
            extra={
                "event_type": "error",
                "error_type": type(error).__name__,
                "error_context": context,
                **kwargs
            }
        )


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None,
                  json_output: Optional[bool] = None) -> ConsoleLogger:
    """Configure the `campusdesk` logger; safe to call more than once"""
    level = level or os.getenv("CAMPUSDESK_LOG_LEVEL", "WARNING")
    log_file = log_file if log_file is not None else os.getenv("CAMPUSDESK_LOG_FILE", "")
    if json_output is None:
        json_output = os.getenv("CAMPUSDESK_LOG_FORMAT", "text") == "json"

    logging.setLoggerClass(ConsoleLogger)
    logger = logging.getLogger("campusdesk")
    logger.__class__ = ConsoleLogger
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.handlers.clear()

    if json_output:
        console_formatter = file_formatter = JSONFormatter()
    else:
        console_formatter = ContextualFormatter("%(levelname)-8s | %(message)s")
        file_formatter = ContextualFormatter(
            "%(asctime)s | %(levelname)-8s | [%(actor_role)s:%(actor_id)s] | "
            "%(name)s:%(lineno)d | %(message)s"
        )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(path, maxBytes=5 * 1024 * 1024, backupCount=3)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return logger


logger: ConsoleLogger = setup_logging()


__all__ = [
    'logger',
    'setup_logging',
    'set_actor',
    'clear_actor',
    'ConsoleLogger',
]
