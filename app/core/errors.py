"""
Application errors

Every error raised by the service layer derives from AppError and carries
the HTTP status it maps to, a short user-facing message and optional
structured details. Internal driver text never goes into `message`.
"""
from typing import Any, Dict, Optional


class AppError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.message = message or self.message
        self.details: Dict[str, Any] = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, **self.details}


class ValidationError(AppError):
    """Missing or malformed input"""
    status_code = 400
    message = "Invalid request"


class InvalidPrice(ValidationError):
    message = "Invalid unit price"


class InvalidStatusTransition(ValidationError):
    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot change reservation status from {current} to {requested}",
            current=current,
            requested=requested,
        )


class NotFound(AppError):
    status_code = 404
    message = "Not found"


class ProductNotFound(NotFound):
    message = "Product not found"


class CustomerNotFound(NotFound):
    message = "Customer not found"


class ReservationNotFound(NotFound):
    message = "Reservation not found"


class InsufficientStock(AppError):
    status_code = 409

    def __init__(self, available: int, requested: int, product_id: Optional[int] = None):
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock. Available: {available}, Requested: {requested}",
            available=available,
            requested=requested,
            product_id=product_id,
        )


class DailyLimitExceeded(AppError):
    status_code = 429

    def __init__(self, limit: int, used: int):
        super().__init__(
            f"Daily reservation limit reached ({limit} per day)",
            limit=limit,
            used=used,
        )


class DuplicateSubmission(AppError):
    """A transaction_id that was already recorded; callers echo the first result."""
    status_code = 200
    message = "Duplicate submission"

    def __init__(self, movement_id: int):
        self.movement_id = movement_id
        super().__init__(id=movement_id, duplicate=True)


class PersistenceError(AppError):
    status_code = 500
    message = "Internal server error"
