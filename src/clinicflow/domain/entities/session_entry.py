"""
Session entries planned in an appointment form.

A form session is either an ``ExistingSession`` mirroring a persisted
appointment service row, or a ``NewSession`` that has not been submitted.
Existing sessions are soft-deleted through ``marked_for_deletion``; new
sessions are removed from the list outright, so they carry no such flag.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Union

from ..errors import SessionInvariantError
from ..value_objects.package_key import PackageKey


def _validate_session_number(session_number, service_id: str) -> None:
    if isinstance(session_number, bool) or not isinstance(session_number, int):
        raise SessionInvariantError(
            f"Session for service '{service_id}' has no session number",
            {"service_id": service_id, "session_number": session_number},
        )
    if session_number < 1:
        raise SessionInvariantError(
            f"Session number must be positive, got {session_number}",
            {"service_id": service_id, "session_number": session_number},
        )


@dataclass(frozen=True)
class ExistingSession:
    """Session already persisted as an appointment service."""

    service_id: str
    order_id: str
    session_number: int
    appointment_service_id: str
    marked_for_deletion: bool = False

    def __post_init__(self) -> None:
        _validate_session_number(self.session_number, self.service_id)
        if not self.appointment_service_id:
            raise SessionInvariantError(
                "Existing session requires an appointment service ID",
                {"service_id": self.service_id},
            )
        if not self.order_id:
            raise SessionInvariantError(
                "Existing session requires an order ID",
                {"appointment_service_id": self.appointment_service_id},
            )

    @property
    def is_new(self) -> bool:
        return False

    @property
    def temp_package_id(self) -> Optional[str]:
        return None

    @property
    def is_active(self) -> bool:
        """Session survives submission."""
        return not self.marked_for_deletion

    @property
    def package_key(self) -> str:
        return PackageKey.for_order(self.order_id).value

    def toggled(self) -> "ExistingSession":
        return replace(self, marked_for_deletion=not self.marked_for_deletion)

    def kept(self) -> "ExistingSession":
        return replace(self, marked_for_deletion=False)


@dataclass(frozen=True)
class NewSession:
    """Session planned in the form, not yet submitted."""

    service_id: str
    session_number: int
    order_id: Optional[str] = None
    temp_package_id: Optional[str] = None

    def __post_init__(self) -> None:
        _validate_session_number(self.session_number, self.service_id)
        if self.order_id and self.temp_package_id:
            raise SessionInvariantError(
                "New session cannot belong to both an order and a temp package",
                {"order_id": self.order_id, "temp_package_id": self.temp_package_id},
            )

    @property
    def is_new(self) -> bool:
        return True

    @property
    def appointment_service_id(self) -> Optional[str]:
        return None

    @property
    def marked_for_deletion(self) -> bool:
        return False

    @property
    def is_active(self) -> bool:
        return True

    @property
    def package_key(self) -> str:
        return PackageKey.resolve(
            self.service_id, self.order_id, self.temp_package_id
        ).value

    def renumbered(self, session_number: int) -> "NewSession":
        return replace(self, session_number=session_number)

    def in_temp_package(self, temp_package_id: str) -> "NewSession":
        return replace(self, order_id=None, temp_package_id=temp_package_id)


SessionEntry = Union[ExistingSession, NewSession]
