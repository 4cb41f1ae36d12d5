"""Error Hierarchy — typed, categorized exceptions for all gateway failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Input errors (400-level) are recoverable by resubmission; backend errors are not
    - StorageError and PublishError are distinct: they leave the system in different states
    - to_response() never includes waveform samples or the hospital key
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    CONFIGURATION = "configuration"
    ENCODING = "encoding"
    STORAGE = "storage"
    MESSAGING = "messaging"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Identifiers attached to an error for reconciliation. Never holds samples."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    exam_type: str | None = None
    patient_id: str | None = None
    hospital_id: str | None = None
    object_key: str | None = None
    topic: str | None = None
    debug_info: dict[str, Any] | None = None


class ExamGatewayError(Exception):
    """Base exception for all gateway errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "exam_type": self.context.exam_type,
                    "object_key": self.context.object_key,
                    "topic": self.context.topic,
                },
            }
        }

    def log_fields(self) -> dict:
        """Fields for logger `extra=` — identifiers only."""
        fields = {
            "error_code": self.code,
            "exam_type": self.context.exam_type,
            "patient_id": self.context.patient_id,
            "hospital_id": self.context.hospital_id,
            "object_key": self.context.object_key,
            "topic": self.context.topic,
        }
        return {k: v for k, v in fields.items() if v is not None}


# ─── Input Errors (400-level) ───────────────────────────────────

class ExamValidationError(ExamGatewayError):
    """Payload violated one or more structural or physiological invariants."""
    def __init__(self, violations: list, context: ErrorContext | None = None):
        super().__init__(
            f"Exam payload failed validation ({len(violations)} violation(s))",
            "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.violations = violations

    def to_response(self) -> dict:
        response = super().to_response()
        response["error"]["details"] = [v.to_dict() for v in self.violations]
        return response


class AuthenticationError(ExamGatewayError):
    """Request credentials missing or rejected by the authentication gate."""
    def __init__(self, message: str = "Unauthorized", context: ErrorContext | None = None):
        super().__init__(
            message, "UNAUTHORIZED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


# ─── Deployment / Programmer Errors ─────────────────────────────

class ConfigurationError(ExamGatewayError):
    """Required deployment setting is missing or malformed."""
    def __init__(self, setting: str, message: str | None = None, context: ErrorContext | None = None):
        super().__init__(
            message or f"Missing required setting: {setting}",
            "CONFIGURATION_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.setting = setting


class EncodingError(ExamGatewayError):
    """A validated record could not be serialized. Indicates a bug."""
    def __init__(self, message: str, target: str, context: ErrorContext | None = None):
        super().__init__(
            f"Failed to encode {target}: {message}",
            "ENCODING_ERROR", ErrorCategory.ENCODING,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.target = target


# ─── Backend Errors ─────────────────────────────────────────────

class StorageError(ExamGatewayError):
    """Object store upload failed. Nothing was published."""
    def __init__(
        self,
        message: str,
        operation: str,
        cause: BaseException | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Object store {operation} failed: {message}",
            "STORAGE_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
        self.cause = cause


class PublishError(ExamGatewayError):
    """Notification publish failed after the durable object was written."""
    def __init__(
        self,
        message: str,
        topic: str,
        cause: BaseException | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.topic = ctx.topic or topic
        super().__init__(
            f"Publish to topic '{topic}' failed: {message}",
            "PUBLISH_ERROR", ErrorCategory.MESSAGING,
            ErrorSeverity.CRITICAL, ctx, 502,
        )
        self.topic = topic
        self.cause = cause
