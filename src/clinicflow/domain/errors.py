"""
Domain-specific error types for business rule violations.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class SessionInvariantError(DomainError):
    """A session entry violates a structural invariant."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, "SESSION_INVARIANT_VIOLATION", details)


class InvalidSessionIndexError(DomainError):
    """Session index does not point into the session list."""

    def __init__(self, index: int, size: int) -> None:
        message = f"Session index {index} out of range (sessions: {size})"
        super().__init__(
            message, "INVALID_SESSION_INDEX", {"index": index, "size": size}
        )


class ServiceNotFoundError(DomainError):
    """Service not found in the catalog."""

    def __init__(self, service_id: str) -> None:
        message = f"Service with ID '{service_id}' not found"
        super().__init__(message, "SERVICE_NOT_FOUND", {"service_id": service_id})


class OrderNotFoundError(DomainError):
    """Order (package) not found for the patient."""

    def __init__(self, order_id: str) -> None:
        message = f"Order with ID '{order_id}' not found"
        super().__init__(message, "ORDER_NOT_FOUND", {"order_id": order_id})


class AppointmentNotFoundError(DomainError):
    """Appointment not found."""

    def __init__(self, appointment_id: str) -> None:
        message = f"Appointment with ID '{appointment_id}' not found"
        super().__init__(
            message, "APPOINTMENT_NOT_FOUND", {"appointment_id": appointment_id}
        )


class PackageUnavailableError(DomainError):
    """Package cannot take another session."""

    def __init__(self, package_key: str, reason: str) -> None:
        message = f"Package '{package_key}' is not available: {reason}"
        super().__init__(
            message,
            "PACKAGE_UNAVAILABLE",
            {"package_key": package_key, "reason": reason},
        )


class InvalidPriceError(DomainError):
    """Custom package price is not acceptable."""

    def __init__(self, package_key: str, price: Any) -> None:
        message = f"Invalid price for package '{package_key}': {price}"
        super().__init__(
            message, "INVALID_PRICE", {"package_key": package_key, "price": price}
        )


class AppointmentValidationError(DomainError):
    """Appointment form failed validation."""

    def __init__(self, errors: Dict[str, str]) -> None:
        fields = ", ".join(sorted(errors))
        message = f"Appointment form is invalid ({fields})"
        super().__init__(message, "INVALID_APPOINTMENT", {"errors": errors})
        self.errors = errors
