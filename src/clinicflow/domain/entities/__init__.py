"""
Domain entities package.
"""

from .appointment import Appointment, AppointmentService
from .catalog import Order, OrderSession, Service
from .package_group import PackageGroup, SimulatedSession
from .session_entry import ExistingSession, NewSession, SessionEntry

__all__ = [
    "Appointment",
    "AppointmentService",
    "ExistingSession",
    "NewSession",
    "Order",
    "OrderSession",
    "PackageGroup",
    "Service",
    "SessionEntry",
    "SimulatedSession",
]
