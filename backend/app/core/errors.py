"""Error Hierarchy: typed, categorized exceptions for every marketplace failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (4xx) are terminal for the request; GatewayError carries `retryable`
    - to_response() produces the REST envelope; no internal details leak into it

Design Decisions:
    - Single hierarchy with MarketplaceError base: the FastAPI global handler catches all
    - ErrorContext as dataclass: carries ids for observability without coupling to logging
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
    AUTHORIZATION = "authorization"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    PAYMENT = "payment"
    EXTERNAL_API = "external_api"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    job_id: str | None = None
    payment_id: str | None = None
    review_id: str | None = None
    user_id: str | None = None
    debug_info: dict[str, Any] | None = None


class MarketplaceError(Exception):
    """Base exception for all marketplace errors."""

    retryable: bool = False

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
                "retryable": self.retryable,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "job_id": self.context.job_id,
                    "payment_id": self.context.payment_id,
                    "review_id": self.context.review_id,
                },
            }
        }


# ─── Domain Errors (4xx) ─────────────────────────────────────────

class ValidationError(MarketplaceError):
    """Malformed input: budget ordering, coordinates, ratings, amounts."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field

    def to_response(self) -> dict:
        response = super().to_response()
        response["error"]["field"] = self.field
        return response


class NotFoundError(MarketplaceError):
    """Requested job, payment, review or user does not exist."""
    def __init__(
        self, resource_type: str, resource_id: object, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )
        self.resource_type = resource_type


class ForbiddenError(MarketplaceError):
    """Actor lacks the role or ownership the operation requires."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "FORBIDDEN", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )


class NotAvailableError(MarketplaceError):
    """Job is no longer open for acceptance."""
    def __init__(self, message: str = "Job is not available", context: ErrorContext | None = None):
        super().__init__(
            message, "NOT_AVAILABLE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 409,
        )


class InvalidStateError(MarketplaceError):
    """State machine precondition violated."""
    def __init__(
        self, message: str, current_state: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "INVALID_STATE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 409,
        )
        self.current_state = current_state


class ConflictError(MarketplaceError):
    """Duplicate review, duplicate dispute, duplicate payment intent."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )


class PaymentFailedError(MarketplaceError):
    """Gateway rejected the payment or reported a non-success status."""
    def __init__(
        self, message: str, gateway_status: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "PAYMENT_FAILED", ErrorCategory.PAYMENT,
            ErrorSeverity.ERROR, context, 402,
        )
        self.gateway_status = gateway_status


# ─── Infrastructure Errors (5xx) ─────────────────────────────────

class GatewayError(MarketplaceError):
    """Network, timeout or provider failure talking to the payment processor."""
    def __init__(
        self, message: str, operation: str, retryable: bool = True,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Payment gateway {operation} failed: {message}",
            "GATEWAY_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 502,
        )
        self.operation = operation
        self.retryable = retryable


class DatabaseError(MarketplaceError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
