"""
Domain services: the package session scheduling engine.
"""

from .compensation import (
    apply_session_compensation,
    handle_remove_session,
    renumber_new_sessions,
)
from .grouping import group_indices, package_key, simulate_packages
from .numbering import (
    compute_next_session_number,
    is_package_complete,
    next_free_number,
    package_total_sessions,
)
from .operations import build_operations

__all__ = [
    "apply_session_compensation",
    "build_operations",
    "compute_next_session_number",
    "group_indices",
    "handle_remove_session",
    "is_package_complete",
    "next_free_number",
    "package_key",
    "package_total_sessions",
    "renumber_new_sessions",
    "simulate_packages",
]
