"""
Security Event Logging Module

Provides structured logging for security-related events including:
- Authentication failures (with the real cause, never shown to clients)
- Access control denials
- Rate limit rejections
- Validation failures

SECURITY: Ensures user-supplied data is sanitized before logging.
"""

import logging
import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass, field as dataclass_field

from log_utils import sanitize_for_logging


@dataclass
class SecurityEvent:
    """Structured security event for logging"""
    event_type: str  # e.g., LOGIN_FAILED, ACCESS_DENIED, RATE_LIMITED
    severity: str  # WARNING, ERROR, CRITICAL
    field_name: str = ""
    error_code: str = ""
    sanitized_input: str = ""  # First 50 chars, sanitized
    source: str = ""
    request_id: str = ""
    user_id: str = ""
    source_ip: str = ""
    additional_context: Dict[str, Any] = dataclass_field(default_factory=dict)
    timestamp: str = dataclass_field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp,
            'event_type': self.event_type,
            'severity': self.severity,
            'field': self.field_name,
            'error_code': self.error_code,
            'sanitized_input': self.sanitized_input,
            'source': self.source,
            'request_id': self.request_id,
            'user_id': self.user_id,
            'source_ip': self.source_ip,
            'context': self.additional_context
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


@dataclass
class RequestContext:
    """Who/where a security event came from"""
    request_id: str = ""
    user_id: str = ""
    source_ip: str = ""

    @classmethod
    def create(cls, request_id: Optional[str] = None, user_id: Any = "", source_ip: str = "") -> 'RequestContext':
        return cls(
            request_id=request_id or f"REQ-{uuid.uuid4().hex[:8]}",
            user_id=str(user_id) if user_id else "",
            source_ip=source_ip or ""
        )


class SecurityLogger:
    """Handles security event logging with structured output

    Features:
    - Separate security.log file
    - JSON-formatted events for easy parsing
    - Automatic sanitization of user-supplied data
    - Request ID correlation (context passed per call, handlers run concurrently)
    """

    def __init__(
        self,
        log_dir: str = "logs",
        log_level: int = logging.WARNING,
        enable_console: bool = False,
        enable_file: bool = True
    ):
        """Initialize security logger

        Args:
            log_dir: Directory for log files
            log_level: Minimum log level to record
            enable_console: Also output to console
            enable_file: Write to security.log file
        """
        self.log_dir = Path(log_dir)

        self.logger = logging.getLogger('security')
        self.logger.setLevel(log_level)
        self.logger.handlers.clear()

        formatter = logging.Formatter(
            '%(asctime)s - SECURITY - %(levelname)s - %(message)s'
        )

        if enable_file:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self.log_dir / "security.log", encoding='utf-8')
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

        if enable_console:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(log_level)
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

    def _sanitize_input(self, text: Any, max_length: int = 50) -> str:
        """Sanitize input for safe logging, truncated for security logs"""
        if not text:
            return ""
        sanitized = sanitize_for_logging(text)
        if len(sanitized) > max_length:
            return sanitized[:max_length] + "...(truncated)"
        return sanitized

    def _sanitize_context(self, context: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Sanitize all keys and string values in a context dictionary"""
        if not context:
            return {}

        sanitized = {}
        for key, value in context.items():
            safe_key = self._sanitize_input(str(key), max_length=100) if key else "unknown"

            if value is None or isinstance(value, (bool, int, float)):
                sanitized[safe_key] = value
            elif isinstance(value, dict):
                sanitized[safe_key] = self._sanitize_context(value)
            elif isinstance(value, (list, tuple)):
                sanitized[safe_key] = [
                    item if isinstance(item, (bool, int, float, type(None)))
                    else self._sanitize_input(str(item), max_length=200)
                    for item in value
                ]
            else:
                sanitized[safe_key] = self._sanitize_input(str(value), max_length=200)

        return sanitized

    def _emit(self, event: SecurityEvent) -> None:
        if event.severity == "CRITICAL":
            self.logger.critical(event.to_json())
        elif event.severity == "ERROR":
            self.logger.error(event.to_json())
        else:
            self.logger.warning(event.to_json())

    def log_security_event(
        self,
        event_type: str,
        severity: str = "WARNING",
        context: Optional[RequestContext] = None,
        field: str = "",
        error_code: str = "",
        input_value: Any = "",
        source: str = "",
        additional_context: Optional[Dict[str, Any]] = None
    ) -> SecurityEvent:
        """Log a generic security event

        Returns:
            The event as written (useful for tests)
        """
        context = context or RequestContext()
        event = SecurityEvent(
            event_type=event_type,
            severity=severity,
            field_name=field,
            error_code=error_code,
            sanitized_input=self._sanitize_input(input_value),
            source=source,
            request_id=context.request_id,
            user_id=context.user_id,
            source_ip=context.source_ip,
            additional_context=self._sanitize_context(additional_context)
        )
        self._emit(event)
        return event

    def log_login_failure(
        self,
        username: str,
        reason: str,
        context: Optional[RequestContext] = None
    ) -> SecurityEvent:
        """Record why a login failed (unknown user vs wrong password).

        The client only ever sees the generic message.
        """
        return self.log_security_event(
            event_type="LOGIN_FAILED",
            context=context,
            field="username",
            error_code=reason,
            input_value=username,
            source="api.routes.auth"
        )

    def log_access_denied(
        self,
        resource: str,
        resource_id: Any,
        context: Optional[RequestContext] = None
    ) -> SecurityEvent:
        return self.log_security_event(
            event_type="ACCESS_DENIED",
            context=context,
            error_code="FORBIDDEN",
            source="api.auth",
            additional_context={"resource": resource, "resource_id": resource_id}
        )

    def log_rate_limited(self, path: str, context: Optional[RequestContext] = None) -> SecurityEvent:
        return self.log_security_event(
            event_type="RATE_LIMITED",
            context=context,
            error_code="TOO_MANY_REQUESTS",
            input_value=path,
            source="api.middleware"
        )

    def log_validation_failure(
        self,
        field: str,
        error_code: str,
        input_value: Any,
        context: Optional[RequestContext] = None,
        source: str = "",
        additional_context: Optional[Dict[str, Any]] = None
    ) -> SecurityEvent:
        """Log a validation failure event

        Args:
            field: Field name that failed validation
            error_code: Error code for the failure
            input_value: The input that failed (will be sanitized)
            context: Request correlation data
            source: Source module/function
            additional_context: Additional context data (will be sanitized)
        """
        return self.log_security_event(
            event_type="VALIDATION_FAILED",
            context=context,
            field=field,
            error_code=error_code,
            input_value=input_value,
            source=source,
            additional_context=additional_context
        )


# Global security logger instance
_security_logger: Optional[SecurityLogger] = None


def get_security_logger(
    log_dir: str = "logs",
    enable_console: bool = False,
    enable_file: bool = True
) -> SecurityLogger:
    """Get or create the global security logger instance"""
    global _security_logger
    if _security_logger is None:
        _security_logger = SecurityLogger(
            log_dir=log_dir,
            enable_console=enable_console,
            enable_file=enable_file
        )
    return _security_logger


def reset_security_logger() -> None:
    """Reset the global security logger (for testing)"""
    global _security_logger
    _security_logger = None
