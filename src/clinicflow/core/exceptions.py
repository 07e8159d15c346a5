"""
Exception handling for Clinic-Flow application.

This module provides custom exception classes for the infrastructure
layers of the application following Clean Architecture principles.
Business rule violations live in ``clinicflow.domain.errors``.
"""

from typing import Any, Dict, Optional


class ClinicFlowException(Exception):
    """Base exception class for Clinic-Flow application."""

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


class OperationsCommitError(ClinicFlowException):
    """Raised when a session operations diff cannot be applied."""

    def __init__(
        self, appointment_id: str, message: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        self.appointment_id = appointment_id
        full_message = f"Failed to apply session operations to appointment '{appointment_id}': {message}"
        super().__init__(
            full_message,
            "OPERATIONS_COMMIT_FAILED",
            {"appointment_id": appointment_id, **(details or {})},
        )
