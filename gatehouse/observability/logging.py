"""
Structured logging setup for gatehouse.
"""

import logging
import json
import sys
from datetime import datetime
from typing import Any, Optional


_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info', 'taskName', 'message'
}


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Extra fields passed through `extra=`
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def setup_logging(
    level: str = "INFO",
    format_type: str = "json",
    log_file: Optional[str] = None
) -> None:
    """
    Setup application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format_type: Format type (json, text)
        log_file: Optional log file path
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    if format_type == "json":
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger("uvicorn.access").disabled = True
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name."""
    return logging.getLogger(name)


class AuditLogger:
    """Security audit logging for guard transitions.

    Token values and passwords are never passed to this logger.
    """

    def __init__(self, logger_name: str = "gatehouse.audit"):
        self.logger = get_logger(logger_name)

    def log_login_attempt(
        self,
        guard: str,
        uid: str,
        success: bool,
        reason: Optional[str] = None
    ):
        """Log credential validation."""
        level = logging.INFO if success else logging.WARNING
        message = f"Login {'successful' if success else 'failed'} for {uid}"

        self.logger.log(
            level,
            message,
            extra={
                "guard": guard,
                "uid": uid,
                "success": success,
                "reason": reason,
                "event": "login_attempt"
            }
        )

    def log_login(
        self,
        guard: str,
        user_id: Any,
        remember_token_issued: bool
    ):
        """Log a session being established."""
        self.logger.info(
            f"User {user_id} logged in",
            extra={
                "guard": guard,
                "user_id": user_id,
                "remember_token_issued": remember_token_issued,
                "event": "login"
            }
        )

    def log_authenticate(
        self,
        guard: str,
        user_id: Any,
        via_remember: bool
    ):
        """Log a request being re-authenticated from the session or a remember token."""
        self.logger.debug(
            f"User {user_id} authenticated",
            extra={
                "guard": guard,
                "user_id": user_id,
                "via_remember": via_remember,
                "event": "authenticate"
            }
        )

    def log_logout(
        self,
        guard: str,
        user_id: Optional[Any] = None
    ):
        """Log a logout."""
        self.logger.info(
            "User logged out" if user_id is None else f"User {user_id} logged out",
            extra={
                "guard": guard,
                "user_id": user_id,
                "event": "logout"
            }
        )
