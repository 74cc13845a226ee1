"""
Standardized exception hierarchy for the CBT-I sleep engine
Provides rich context, consistent logging, and user-friendly error messages

Expected clinical conditions (rejected diary entries, sparse diary data,
borderline sleep efficiency) are returned as values. Exceptions here are
reserved for caller contract violations: unparseable input and bad settings.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class CBTIError(Exception):
    """
    Base exception for all sleep engine errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise CBTIError(
            message="Could not resolve diary times",
            user_id="patient-42",
            operation="calculate_sleep_metrics",
            context={"sleep_date": "2024-01-15"}
        )
    """

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An error occurred. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # 'message' is reserved by logging
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for API responses"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (Caller Input)
# ==========================================

class ValidationError(CBTIError):
    """
    Raised when caller input breaks the engine's input contract

    Examples:
    - ISI item scored outside 0-4
    - Missing questionnaire item

    Example:
        raise ValidationError(
            message="Item score must be between 0 and 4",
            field="severity_onset",
            value=7
        )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        kwargs.setdefault("user_message", f"Invalid {field}: {message}" if field else message)
        super().__init__(
            message=message,
            context={"field": field, "value": value},
            **kwargs
        )


class TimeFormatError(ValidationError, ValueError):
    """Wall-clock value is not a valid 24-hour HH:MM string"""

    def __init__(self, value: Any, field: Optional[str] = None, **kwargs):
        super().__init__(
            message=f"Invalid time format: {value!r} (expected HH:MM, 24-hour clock)",
            field=field or "time",
            value=value,
            user_message="Please enter the time as HH:MM, for example 22:30.",
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(CBTIError):
    """Engine configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The system is not properly configured. Please contact support.",
            context={"config_key": config_key},
            **kwargs
        )
