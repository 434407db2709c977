"""
Booking errors.

Every error is an expected condition the caller can recover from. The HTTP
layer turns them into JSON responses using ``status_code`` and ``to_dict()``.
"""

from typing import Any, Dict, Optional


class BookingError(Exception):
    """Base exception for booking engine errors."""

    status_code = 400

    def __init__(
        self,
        message: str,
        code: str = "BOOKING_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "code": self.code,
            "details": self.details,
        }


class InvalidInputError(BookingError):
    """Raised when a required field is missing or malformed."""

    def __init__(self, message: str = "Missing fields", details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="INVALID_INPUT", details=details)


class UnknownResourceTypeError(BookingError):
    """Raised when a resource type is not in the configured set."""

    def __init__(self, resource_type: str):
        super().__init__(
            message="Invalid booking type",
            code="UNKNOWN_RESOURCE_TYPE",
            details={"type": resource_type},
        )


class SlotOutOfRangeError(BookingError):
    """Raised when a time is not one of the type's hourly slots."""

    def __init__(self, resource_type: str, slot_time: str):
        super().__init__(
            message=f"Time {slot_time} is outside {resource_type} operating hours",
            code="SLOT_OUT_OF_RANGE",
            details={"type": resource_type, "time": slot_time},
        )


class SlotTakenError(BookingError):
    """Raised when another booking already occupies the slot."""

    def __init__(self, resource_type: str, booking_date, slot_time: str):
        super().__init__(
            message="Slot already booked",
            code="SLOT_TAKEN",
            details={
                "type": resource_type,
                "date": str(booking_date),
                "time": slot_time,
            },
        )


class BookingNotFoundError(BookingError):
    """Raised when no live booking has the requested id."""

    status_code = 404

    def __init__(self, booking_id: int):
        super().__init__(
            message="Appointment not found",
            code="NOT_FOUND",
            details={"id": booking_id},
        )
