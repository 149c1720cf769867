"""
Structured JSON logging for the object store client.

Every log record carries:
- timestamp (ISO8601)
- level
- service
- event

Storage events add operation, bucket, key and duration_ms when known.

Usage:
    from objectstore.utils.logging import configure_logging, log_storage_request

    configure_logging('objectstore', 'INFO')
    log_storage_request(logger, operation='upload', bucket='assets', key='a.pdf')
"""
import logging
import sys
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

REDACTED = "***"


class StructuredLogger:
    """Structured JSON logger with mandatory fields."""

    _service_name = None
    _configured = False

    @classmethod
    def configure(cls, service_name: str, log_level: str = "INFO"):
        """
        Configure structured JSON logging for the application.

        Args:
            service_name: Service identifier added to every record
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        if cls._configured:
            return

        cls._service_name = service_name

        root_logger = logging.getLogger()
        root_logger.handlers = []

        formatter = jsonlogger.JsonFormatter(
            '%(timestamp)s %(levelname)s %(name)s %(message)s',
            timestamp=True,
            json_ensure_ascii=False
        )

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)

        root_logger.addHandler(handler)
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

        class ServiceFilter(logging.Filter):
            def filter(self, record):
                record.service = cls._service_name
                return True

        handler.addFilter(ServiceFilter())
        cls._configured = True

    @classmethod
    def reset(cls):
        """Allow configure() to run again (used by tests)."""
        cls._service_name = None
        cls._configured = False


def redact_secret(text: str, secret: Optional[str]) -> str:
    """Replace every occurrence of secret in text."""
    if not secret:
        return text
    return text.replace(secret, REDACTED)


def _build_log_extra(
    event: str,
    operation: str,
    bucket: Optional[str] = None,
    key: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
) -> Dict[str, Any]:
    extra = {
        "event": event,
        "operation": operation,
        **kwargs
    }

    if bucket:
        extra["bucket"] = bucket
    if key:
        extra["key"] = key
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)

    return extra


def log_storage_request(
    logger: logging.Logger,
    operation: str,
    bucket: Optional[str] = None,
    key: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log a successful storage operation.

    Args:
        logger: Logger instance
        operation: Operation name (start, upload, sign_url) (required)
        bucket: Optional bucket name
        key: Optional object key
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="storage_request",
        operation=operation,
        bucket=bucket,
        key=key,
        duration_ms=duration_ms,
        **kwargs
    )

    target = f"{bucket}/{key}" if key else bucket
    logger.info(f"Storage request: {operation} {target}", extra=extra)


def log_storage_failure(
    logger: logging.Logger,
    operation: str,
    error: str,
    bucket: Optional[str] = None,
    key: Optional[str] = None,
    duration_ms: Optional[float] = None,
    secret: Optional[str] = None,
    include_traceback: bool = False,
    **kwargs
):
    """
    Log a failed storage operation.

    The error text is scrubbed of the access key secret before it is
    written. Logging never suppresses the error; callers re-raise.

    Args:
        logger: Logger instance
        operation: Operation name (required)
        error: Error message (required)
        bucket: Optional bucket name
        key: Optional object key
        duration_ms: Optional duration in milliseconds
        secret: Secret to scrub from the error text
        include_traceback: Whether to include stack trace
        **kwargs: Additional fields
    """
    error = redact_secret(str(error), secret)
    extra = _build_log_extra(
        event="storage_failure",
        operation=operation,
        bucket=bucket,
        key=key,
        duration_ms=duration_ms,
        error=error,
        **kwargs
    )

    message = f"Storage failure: {operation} - {error}"

    if include_traceback and sys.exc_info()[0] is not None:
        logger.error(message, extra=extra, exc_info=True)
    else:
        logger.error(message, extra=extra)


def configure_logging(service_name: str, log_level: str = "INFO"):
    """Configure logging (alias for StructuredLogger.configure)."""
    StructuredLogger.configure(service_name, log_level)
