"""Error Hierarchy — typed, categorized exceptions for all mini app failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Launch-data errors (400/401) are deterministic and never retried
    - Missing hash and bad signature share one public message (no verification oracle)
    - to_response() produces the REST envelope; no internal details leaked
    - Infrastructure errors keep their detail in `message` (logs) and answer with
      a fixed `context.user_message`

Design Decisions:
    - Single hierarchy with MiniAppError base: FastAPI global handler catches all
    - ErrorContext as dataclass: observability fields without coupling to logging
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
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: int | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class MiniAppError(Exception):
    """Base exception for all mini app errors."""

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
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
            }
        }


# ─── Launch Data Errors (400/401) ───────────────────────────────

class MissingInitDataError(MiniAppError):
    """Request carried no initData at all."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Missing initData", "MISSING_INIT_DATA", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )


class MalformedPayloadError(MiniAppError):
    """initData is not a valid urlencoded key/value string."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Malformed initData", "MALFORMED_PAYLOAD", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )


class InvalidSignatureError(MiniAppError):
    """Signature missing or not matching. Both cases look identical to the caller."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Invalid signature", "INVALID_SIGNATURE", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class InitDataExpiredError(MiniAppError):
    """Signature valid but auth_date outside the accepted window."""
    def __init__(self, max_age_seconds: int, context: ErrorContext | None = None):
        super().__init__(
            f"initData older than {max_age_seconds}s",
            "INIT_DATA_EXPIRED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )
        self.max_age_seconds = max_age_seconds


class MissingUserError(MiniAppError):
    """Verified payload has no user field."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Missing user in initData", "MISSING_USER", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )


class InvalidUserDataError(MiniAppError):
    """user field is not a JSON object with an integer id."""
    def __init__(self, reason: str = "Invalid user JSON", context: ErrorContext | None = None):
        super().__init__(
            reason, "INVALID_USER_DATA", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )


class UserNotFoundError(MiniAppError):
    """No record for the given user id."""
    def __init__(self, user_id: int, context: ErrorContext | None = None):
        super().__init__(
            f"User '{user_id}' not found",
            "USER_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.user_id = user_id


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StoreConflictError(MiniAppError):
    """Insert lost a uniqueness race. Recovered locally by updating instead."""
    def __init__(self, user_id: int, context: ErrorContext | None = None):
        super().__init__(
            f"User '{user_id}' already exists",
            "STORE_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.INFO, context, 409,
        )
        self.user_id = user_id


class DatabaseError(MiniAppError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.user_message = "Service temporarily unavailable"
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.operation = operation
