"""
Session numbering within a package.

Numbers are found by probing upward from 1 over the set of occupied numbers.
Packages hold single-digit to low tens of sessions, so a linear probe is fine.
"""

from typing import Iterable, Optional, Sequence, Set

from ..entities.catalog import Order, Service
from ..entities.session_entry import SessionEntry


def next_free_number(occupied: Iterable[int]) -> int:
    """Smallest positive integer not in ``occupied``."""
    taken = set(occupied)
    number = 1
    while number in taken:
        number += 1
    return number


def form_occupied_numbers(entries: Sequence[SessionEntry], package_key: str) -> Set[int]:
    """Numbers held by active form sessions of a package.

    Existing sessions marked for deletion release their number.
    """
    return {
        e.session_number
        for e in entries
        if e.package_key == package_key and e.is_active
    }


def occupied_numbers(
    entries: Sequence[SessionEntry],
    package_key: str,
    order: Optional[Order] = None,
) -> Set[int]:
    """Numbers taken in a package by the form and by other persisted appointments.

    Persisted sessions mirrored in the form are accounted for through their
    form entry, so un-marking or marking them is reflected immediately.
    """
    occupied = form_occupied_numbers(entries, package_key)
    if order is not None:
        mirrored = {
            e.appointment_service_id for e in entries if e.appointment_service_id
        }
        occupied |= order.occupied_numbers(exclude_appointment_service_ids=mirrored)
    return occupied


def compute_next_session_number(
    entries: Sequence[SessionEntry],
    package_key: str,
    order: Optional[Order] = None,
) -> int:
    """Next available session number for a package."""
    return next_free_number(occupied_numbers(entries, package_key, order))


def package_total_sessions(
    service: Optional[Service],
    order: Optional[Order] = None,
    fallback: int = 0,
) -> int:
    """Configured size of a package: order size, else service default."""
    if order is not None and order.total_sessions:
        return order.total_sessions
    if service is not None and service.default_sessions:
        return service.default_sessions
    return fallback


def is_package_complete(next_number: int, total_sessions: int) -> bool:
    """A package is complete once the next number would exceed its size."""
    return next_number > total_sessions
