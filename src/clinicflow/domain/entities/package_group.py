"""Derived package group views produced by the grouping strategy."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from ..enums.appointment import PackageType
from .session_entry import SessionEntry


@dataclass(frozen=True)
class SimulatedSession:
    """A form session placed in its package, with its position in the form list."""

    entry: SessionEntry
    original_index: int
    is_new: bool

    @property
    def session_number(self) -> int:
        return self.entry.session_number

    @property
    def marked_for_deletion(self) -> bool:
        return self.entry.marked_for_deletion


@dataclass(frozen=True)
class PackageGroup:
    """Sessions of one package as they will look after the form is saved."""

    id: str
    type: PackageType
    service_id: str
    service_name: str
    total_sessions: int
    sessions: List[SimulatedSession] = field(default_factory=list)
    order_id: Optional[str] = None
    order_created_at: Optional[datetime] = None
    final_price: Optional[float] = None
    has_new_sessions: bool = False
    has_pending_reservations: bool = False
    completed_sessions: int = 0
    cancelled_sessions: int = 0
    is_complete: bool = False

    @property
    def active_session_count(self) -> int:
        return sum(1 for s in self.sessions if not s.marked_for_deletion)
