"""Structured logging with PII sanitization for Shoora Mail."""

import hashlib
import logging
import re
from pathlib import Path
from typing import Any, Optional

from shoora_mail.lib.config import app_config


class PIISanitizer:
    """Sanitize personally identifiable information from log messages."""

    # Regex patterns for PII detection
    EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b")
    SECRET_PATTERN = re.compile(r"(?i)\b(password|secret|pass)(['\"]?\s*[=:]\s*['\"]?)[^\s,'\"}]+")

    @classmethod
    def sanitize_email(cls, text: str) -> str:
        """Replace email addresses with sanitized version."""
        return cls.EMAIL_PATTERN.sub(lambda m: f"***@{m.group(0).split('@')[1]}", text)

    @classmethod
    def sanitize_secret(cls, text: str) -> str:
        """Mask values of password-like key/value pairs."""
        return cls.SECRET_PATTERN.sub(lambda m: f"{m.group(1)}{m.group(2)}***", text)

    @classmethod
    def sanitize(cls, text: str) -> str:
        """Apply all sanitization rules to text."""
        if not isinstance(text, str):
            text = str(text)

        text = cls.sanitize_email(text)
        text = cls.sanitize_secret(text)

        return text


class SanitizingFormatter(logging.Formatter):
    """Custom formatter that sanitizes PII from log records."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with PII sanitization."""
        # Sanitize the message
        if isinstance(record.msg, str):
            record.msg = PIISanitizer.sanitize(record.msg)

        # Sanitize args if present
        if record.args:
            sanitized_args = tuple(
                PIISanitizer.sanitize(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )
            record.args = sanitized_args

        return super().format(record)


def hash_address(address: str) -> str:
    """Short SHA-256 digest of an address for log correlation."""
    return hashlib.sha256(address.lower().encode()).hexdigest()[:12]


def setup_logger(
    name: str,
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Set up a logger with PII sanitization.

    Args:
        name: Logger name (usually __name__)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for file logging

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Set log level
    log_level = level or app_config.log_level
    logger.setLevel(getattr(logging, log_level.upper()))

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    # Create formatter with PII sanitization
    formatter = SanitizingFormatter(
        fmt=app_config.log_format,
        datefmt=app_config.log_date_format,
    )

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler (if log_file specified)
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get or create a logger for the given module.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    return setup_logger(name, log_file=app_config.log_file)


class StructuredLogger:
    """
    Structured logger for mailbox operations.

    Logs key=value fields per call with automatic PII sanitization. Holds no
    per-request state, so one instance is safe to share across threads.
    """

    def __init__(self, name: str):
        """
        Initialize structured logger.

        Args:
            name: Logger name
        """
        self.logger = get_logger(name)

    def _format_message(self, message: str, **kwargs: Any) -> str:
        """Append key=value fields to the message."""
        if kwargs:
            field_str = " | ".join(f"{k}={v}" for k, v in kwargs.items())
            return f"{message} | {field_str}"
        return message

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message with fields."""
        self.logger.debug(self._format_message(message, **kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message with fields."""
        self.logger.info(self._format_message(message, **kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message with fields."""
        self.logger.warning(self._format_message(message, **kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error message with fields."""
        self.logger.error(self._format_message(message, **kwargs))

    def log_operation(
        self,
        operation: str,
        folder: str,
        status: str,
        duration_ms: Optional[float] = None,
    ) -> None:
        """Log the outcome of one mailbox operation with timing information."""
        self.info(
            "Mailbox operation",
            operation=operation,
            folder=folder,
            status=status,
            duration_ms=f"{duration_ms:.2f}" if duration_ms is not None else None,
        )


# Module-level convenience function
def get_structured_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        StructuredLogger instance
    """
    return StructuredLogger(name)
