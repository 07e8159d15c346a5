"""
Deletion and compensation reconciler.

Removing a new session deletes it from the list; removing an existing one
toggles its soft-delete flag. After every change, marked existing sessions
are paired against new sessions of the same package: the existing session
with the lowest number survives and the new session with the highest number
is dropped. Remaining new sessions are then renumbered to close gaps.
"""

import logging
from typing import Dict, Iterable, List, Sequence, Set

from ..entities.catalog import Order
from ..entities.session_entry import ExistingSession, NewSession, SessionEntry
from ..errors import InvalidSessionIndexError
from ..value_objects.package_key import PackageKey
from .grouping import group_indices
from .numbering import next_free_number

logger = logging.getLogger("clinicflow.scheduling")


def handle_remove_session(
    entries: Sequence[SessionEntry],
    index: int,
    orders: Iterable[Order] = (),
) -> List[SessionEntry]:
    """Remove (new) or toggle deletion of (existing) the session at ``index``."""
    if index < 0 or index >= len(entries):
        raise InvalidSessionIndexError(index, len(entries))

    target = entries[index]
    if isinstance(target, ExistingSession):
        updated = [e.toggled() if i == index else e for i, e in enumerate(entries)]
    else:
        updated = [e for i, e in enumerate(entries) if i != index]

    return apply_session_compensation(updated, orders)


def apply_session_compensation(
    entries: Sequence[SessionEntry],
    orders: Iterable[Order] = (),
) -> List[SessionEntry]:
    """Cancel out deletion/addition pairs per package, then renumber."""
    compensated = list(entries)
    to_remove = set()

    for key, indices in group_indices(compensated).items():
        marked = sorted(
            (
                i
                for i in indices
                if isinstance(compensated[i], ExistingSession)
                and compensated[i].marked_for_deletion
            ),
            key=lambda i: compensated[i].session_number,
        )
        new = sorted(
            (i for i in indices if isinstance(compensated[i], NewSession)),
            key=lambda i: compensated[i].session_number,
            reverse=True,
        )

        pairs = list(zip(marked, new))
        for marked_index, new_index in pairs:
            compensated[marked_index] = compensated[marked_index].kept()
            to_remove.add(new_index)

        if pairs:
            logger.debug(
                "Compensated %d deletion/addition pair(s) in package %s", len(pairs), key
            )

    if to_remove:
        compensated = [e for i, e in enumerate(compensated) if i not in to_remove]

    return renumber_new_sessions(compensated, orders)


def _persisted_numbers(
    entries: Sequence[SessionEntry], orders: Iterable[Order]
) -> Dict[str, Set[int]]:
    """Numbers held by other appointments' sessions, per existing-package key."""
    mirrored = {e.appointment_service_id for e in entries if e.appointment_service_id}
    return {
        PackageKey.for_order(order.id).value: order.occupied_numbers(
            exclude_appointment_service_ids=mirrored
        )
        for order in orders
    }


def renumber_new_sessions(
    entries: Sequence[SessionEntry],
    orders: Iterable[Order] = (),
) -> List[SessionEntry]:
    """Give new sessions the lowest numbers left free by kept existing sessions.

    When ``orders`` are given, numbers booked by other appointments of those
    orders stay reserved as well.
    """
    renumbered = list(entries)
    persisted = _persisted_numbers(renumbered, orders)

    for key, indices in group_indices(renumbered).items():
        occupied = set(persisted.get(key, ()))
        occupied.update(
            renumbered[i].session_number
            for i in indices
            if isinstance(renumbered[i], ExistingSession)
            and not renumbered[i].marked_for_deletion
        )
        for i in indices:
            entry = renumbered[i]
            if not isinstance(entry, NewSession):
                continue
            number = next_free_number(occupied)
            if number != entry.session_number:
                renumbered[i] = entry.renumbered(number)
            occupied.add(number)

    return renumbered
