"""
Appointment status and package type enums.
"""

from enum import Enum


class AppointmentStatus(str, Enum):
    """Lifecycle status of an appointment."""

    RESERVED = "reserved"    # Booked, not yet attended
    ATTENDED = "attended"
    CANCELLED = "cancelled"  # Soft-deleted appointment; frees its session numbers
    NO_SHOW = "no_show"


class PackageType(str, Enum):
    """Whether a package group is backed by a persisted order."""

    EXISTING = "existing"
    NEW = "new"


class FormMode(str, Enum):
    """Appointment form authoring mode."""

    CREATE = "create"
    EDIT = "edit"
