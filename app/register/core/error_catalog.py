from dataclasses import dataclass
from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


class ErrorCatalog:
    NOT_FOUND = ErrorDefinition("NOT_FOUND", "Resource not found", status.HTTP_404_NOT_FOUND)
    SESSION_ALREADY_OPEN = ErrorDefinition(
        "SESSION_ALREADY_OPEN",
        "A register session is already open",
        status.HTTP_409_CONFLICT,
    )
    SESSION_NOT_OPEN = ErrorDefinition(
        "SESSION_NOT_OPEN",
        "No register session is open",
        status.HTTP_409_CONFLICT,
    )
    CART_EMPTY = ErrorDefinition(
        "CART_EMPTY",
        "Cart has no lines",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    PAYMENT_METHOD_REQUIRED = ErrorDefinition(
        "PAYMENT_METHOD_REQUIRED",
        "Payment method is required",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    INSUFFICIENT_CASH_TENDERED = ErrorDefinition(
        "INSUFFICIENT_CASH_TENDERED",
        "Cash tendered is less than the sale total",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    TICKET_UNAVAILABLE = ErrorDefinition(
        "TICKET_UNAVAILABLE",
        "Requested ticket quantity is not available",
        status.HTTP_409_CONFLICT,
    )
    COUPON_REJECTED = ErrorDefinition(
        "COUPON_REJECTED",
        "Coupon cannot be applied",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    COUPON_USES_EXHAUSTED = ErrorDefinition(
        "COUPON_USES_EXHAUSTED",
        "Coupon has no remaining uses",
        status.HTTP_409_CONFLICT,
    )
    CHECKOUT_FAILED = ErrorDefinition(
        "CHECKOUT_FAILED",
        "Sale could not be committed",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    DB_UNAVAILABLE = ErrorDefinition(
        "DB_UNAVAILABLE",
        "Database unavailable",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    LOCK_TIMEOUT = ErrorDefinition(
        "LOCK_TIMEOUT",
        "Lock wait timeout",
        status.HTTP_409_CONFLICT,
    )
    VALIDATION_ERROR = ErrorDefinition(
        "VALIDATION_ERROR",
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    INTERNAL_ERROR = ErrorDefinition(
        "INTERNAL_ERROR",
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    IDEMPOTENCY_KEY_REQUIRED = ErrorDefinition(
        "IDEMPOTENCY_KEY_REQUIRED",
        "Idempotency key required",
        status.HTTP_400_BAD_REQUEST,
    )
    IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD = ErrorDefinition(
        "IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD",
        "Idempotency key reused with different payload",
        status.HTTP_409_CONFLICT,
    )
    IDEMPOTENCY_REQUEST_IN_PROGRESS = ErrorDefinition(
        "IDEMPOTENCY_REQUEST_IN_PROGRESS",
        "Idempotency request already in progress",
        status.HTTP_409_CONFLICT,
    )
    IDEMPOTENCY_REPLAY = ErrorDefinition(
        "IDEMPOTENCY_REPLAY",
        "Idempotent replay",
        status.HTTP_200_OK,
    )


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None):
        self.error = error
        self.details = details
        super().__init__(error.message)
