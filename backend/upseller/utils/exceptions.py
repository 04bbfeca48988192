"""
Custom business exceptions for the API layer.

WHAT: Domain-specific exceptions that map to HTTP status codes
WHY: Consistent error handling across all API endpoints
HOW: Custom exception classes with error codes and messages
"""

from typing import Optional, List, Dict, Any


class BusinessException(Exception):
    """Base class for business logic exceptions."""

    def __init__(self, message: str, code: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details


class ListingNotFoundException(BusinessException):
    """Raised when a listing is not found."""

    def __init__(self, listing_id: str):
        super().__init__(
            message=f"Listing not found: {listing_id}",
            code="LISTING_NOT_FOUND",
            details={"listing_id": listing_id}
        )


class AppointmentNotFoundException(BusinessException):
    """Raised when an appointment is not found."""

    def __init__(self, appointment_id: str):
        super().__init__(
            message=f"Appointment not found: {appointment_id}",
            code="APPOINTMENT_NOT_FOUND",
            details={"appointment_id": appointment_id}
        )


class InvalidAppointmentTransitionException(BusinessException):
    """Raised when an appointment status change is not allowed."""

    def __init__(self, appointment_id: str, current_status: str, requested_status: str):
        super().__init__(
            message=(
                f"Appointment {appointment_id} cannot move from "
                f"{current_status} to {requested_status}"
            ),
            code="INVALID_APPOINTMENT_TRANSITION",
            details={
                "appointment_id": appointment_id,
                "current_status": current_status,
                "requested_status": requested_status
            }
        )


class InvalidModeException(BusinessException):
    """Raised for an unknown operating mode."""

    def __init__(self, mode: str):
        super().__init__(
            message="Invalid mode",
            code="INVALID_MODE",
            details={"mode": mode, "allowed": ["mock", "shadow"]}
        )


class ValidationException(BusinessException):
    """Raised for validation errors."""

    def __init__(self, message: str, field_errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details={"field_errors": field_errors} if field_errors else None
        )


class InviteNotFoundException(BusinessException):
    """Raised when a requested ICS invite does not exist."""

    def __init__(self, filename: str):
        super().__init__(
            message=f"Invite not found: {filename}",
            code="INVITE_NOT_FOUND",
            details={"filename": filename}
        )
