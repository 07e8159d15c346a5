"""
Domain enums package.
"""

from .appointment import AppointmentStatus, FormMode, PackageType

__all__ = [
    "AppointmentStatus",
    "FormMode",
    "PackageType",
]
