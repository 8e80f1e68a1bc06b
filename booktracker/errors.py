"""
Error taxonomy for the book tracker.

Services raise these instead of generic exceptions; the handlers registered
by :func:`register_error_handlers` turn them into JSON responses.

Usage:
    from booktracker.errors import NotFoundError, InsufficientStockError

    if batch is None:
        raise NotFoundError("Batch", batch_id)

    if count > batch.remaining_books:
        raise InsufficientStockError(batch.batch_name, count, batch.remaining_books)
"""

import logging
from typing import Any, Dict, Optional

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class BookTrackerError(Exception):
    """Base exception for all book tracker errors"""

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


class ValidationError(BookTrackerError):
    """A required field is missing or invalid"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class InsufficientStockError(BookTrackerError):
    """Allocation exceeds the remaining books of a batch"""

    status_code = 409

    def __init__(self, batch_name: str, requested: int, available: int):
        super().__init__(
            f"Insufficient books in batch {batch_name} (Available: {available})",
            code="INSUFFICIENT_STOCK",
            details={"batch_name": batch_name, "requested": requested, "available": available}
        )


class FormatError(BookTrackerError):
    """An import file is structurally invalid"""

    status_code = 400

    def __init__(self, message: str, missing_headers: Optional[list] = None):
        details = {"missing_headers": missing_headers} if missing_headers else {}
        super().__init__(message, code="FORMAT_ERROR", details=details)


class NotFoundError(BookTrackerError):
    """Reference to a batch, book, distribution or location that does not exist"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": str(resource_id)}
        )


class InvalidTransitionError(BookTrackerError):
    """A book status change that the lifecycle does not permit"""

    status_code = 409

    def __init__(self, book_number: str, current: str, target: str):
        super().__init__(
            f"Book {book_number} cannot move from {current} to {target}",
            code="INVALID_TRANSITION",
            details={"book_number": book_number, "current": current, "target": target}
        )


class AuthenticationError(BookTrackerError):
    """No logged-in user or valid bearer token"""

    status_code = 401

    def __init__(self, message: str = "Login required."):
        super().__init__(message, code="LOGIN_REQUIRED")


class PermissionDeniedError(BookTrackerError):
    """The current user's role may not perform this action"""

    status_code = 403

    def __init__(self, message: str = "You don't have permission to perform this action."):
        super().__init__(message, code="PERMISSION_DENIED")


def error_response(error: BookTrackerError):
    return jsonify({"error": error.to_dict()}), error.status_code


def register_error_handlers(app) -> None:
    """Render taxonomy errors and HTTP errors as JSON."""

    @app.errorhandler(BookTrackerError)
    def handle_book_tracker_error(error):
        if error.status_code >= 500:
            logger.error("Unhandled service error: %s", error.message)
        return error_response(error)

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({
            "error": {
                "code": error.name.upper().replace(" ", "_"),
                "message": error.description,
                "details": {},
            }
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        app.logger.exception("Unhandled error: %s", error)
        return error_response(BookTrackerError("An unexpected error occurred."))
