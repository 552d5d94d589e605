"""
Logging configuration for JLS.

Provides structured JSON logging and audit events for license
verification. Library code only emits records; configure_logging is for
the CLI and the HTTP service.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

# Context variable for correlating log lines of one verification request
correlation_id_var: ContextVar[str] = ContextVar('correlation_id', default='')


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs in a consistent JSON format suitable for
    log aggregation systems.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, timezone.utc)
        log_data = {
            "timestamp": created.strftime("%Y-%m-%dT%H:%M:%S.") + f"{created.microsecond // 1000:03d}Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        correlation_id = correlation_id_var.get()
        if correlation_id:
            log_data["correlation_id"] = correlation_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


class AuditLogger:
    """
    Specialized logger for license verification audit events.

    Failure kinds are logged distinctly so that a tampered license, an
    expired one and malformed input lead to different operational
    responses.
    """

    def __init__(self, name: str = "jls.audit"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        if not self._logger.isEnabledFor(level):
            return
        message = kwargs.pop("message", "")
        fields = {"event_type": event_type, **kwargs}
        self._logger.log(level, "%s: %s", event_type, message,
                         extra={"extra_fields": fields}, stacklevel=3)

    def verifier_initialized(self, algorithm: str, key_type: str, key_id: Optional[str] = None) -> None:
        self._log(
            logging.INFO,
            "VERIFIER_INITIALIZED",
            algorithm=algorithm,
            key_type=key_type,
            key_id=key_id,
            message=f"Verifier ready for {algorithm}"
        )

    def verification_succeeded(self, license_id: str, expiration_date: str) -> None:
        self._log(
            logging.INFO,
            "VERIFICATION_SUCCEEDED",
            license_id=license_id,
            expiration_date=expiration_date,
            message=f"License {license_id} verified"
        )

    def verification_failed(
        self,
        failure: str,
        reason: str,
        license_id: Optional[str] = None
    ) -> None:
        self._log(
            logging.WARNING,
            "VERIFICATION_FAILED",
            failure=failure,
            reason=reason,
            license_id=license_id,
            message=f"Verification failed: {failure}"
        )

    def security_event(
        self,
        event: str,
        severity: str = "medium",
        **details
    ) -> None:
        """Log a security-relevant event (tampering, algorithm confusion)."""
        level = {
            "low": logging.INFO,
            "medium": logging.WARNING,
            "high": logging.ERROR,
            "critical": logging.CRITICAL
        }.get(severity, logging.WARNING)

        self._log(
            level,
            "SECURITY_EVENT",
            security_event=event,
            severity=severity,
            **details,
            message=f"Security event: {event}"
        )


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting
        log_file: Optional file path for log output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    # stderr, so that CLI output on stdout stays machine-readable
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """
    Set the correlation ID for the current context.

    Returns:
        The correlation ID that was set (generated when None)
    """
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
    correlation_id_var.set(correlation_id)
    return correlation_id


def get_correlation_id() -> str:
    return correlation_id_var.get()


audit_log = AuditLogger()
