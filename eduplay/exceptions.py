"""
Standardized exception hierarchy for eduplay-core
Provides rich context, consistent logging, and parent-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class EduPlayError(Exception):
    """
    Base exception for all eduplay-core errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - Parent-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise EduPlayError(
            message="Failed to save progress record",
            child_id="child-1",
            operation="record_attempt",
            context={"activity_id": "counting-1"}
        )
    """

    def __init__(
        self,
        message: str,
        child_id: Optional[str] = None,
        account_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.child_id = child_id
        self.account_id = account_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "Something went wrong. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "child_id": self.child_id,
            "account_id": self.account_id,
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
        """Serialize exception for the presentation layer"""
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

class ValidationError(EduPlayError):
    """
    Raised when caller input fails validation

    Example:
        raise ValidationError(
            message="Age must be between 3 and 8",
            field="age",
            value=12
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
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value},
            **kwargs
        )

    @classmethod
    def from_pydantic(cls, error: Exception, **kwargs) -> "ValidationError":
        """Wrap a pydantic ValidationError, reporting its first failing field"""
        first = error.errors()[0]
        return cls(
            message=first["msg"],
            field=".".join(str(part) for part in first["loc"]) or None,
            value=first.get("input"),
            cause=error,
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(EduPlayError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        kwargs.setdefault("context", {"config_key": config_key})
        kwargs.setdefault("user_message", "The app is not properly configured. Please contact support.")
        super().__init__(message=message, **kwargs)


class CriteriaError(ConfigurationError):
    """
    Achievement criteria payload could not be parsed

    Evaluators catch this and treat the achievement as not satisfied, so a
    content-authoring mistake never blocks unrelated learning flows.
    """

    def __init__(
        self,
        message: str,
        achievement_id: Optional[str] = None,
        achievement_type: Optional[str] = None,
        payload: Optional[Any] = None,
        **kwargs
    ):
        self.achievement_id = achievement_id
        self.achievement_type = achievement_type
        self.payload = payload
        super().__init__(
            message=message,
            config_key="criteria",
            context={
                "achievement_id": achievement_id,
                "achievement_type": achievement_type,
                "payload": payload,
            },
            user_message="This achievement is not available right now.",
            **kwargs
        )


# ==========================================
# Subscription Errors
# ==========================================

class SubscriptionError(EduPlayError):
    """Base class for subscription lifecycle errors"""
    pass


class InvalidTransitionError(SubscriptionError):
    """Requested subscription transition is not valid from the current status"""

    def __init__(
        self,
        message: str,
        transition: Optional[str] = None,
        status: Optional[str] = None,
        **kwargs
    ):
        self.transition = transition
        self.status = status
        super().__init__(
            message=message,
            user_message="This subscription change can't be applied right now.",
            context={"transition": transition, "status": status},
            **kwargs
        )


# ==========================================
# Storage Errors
# ==========================================

class StorageError(EduPlayError):
    """
    Base class for persistence collaborator errors
    """
    pass


class RecordNotFoundError(StorageError):
    """Requested record does not exist"""

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(
            message=message,
            user_message=f"{record_type or 'Record'} not found.",
            context={"record_type": record_type, "record_id": record_id},
            **kwargs
        )
