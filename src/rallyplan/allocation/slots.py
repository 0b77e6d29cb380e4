"""Filling a single (building, shift) slot."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from rallyplan.config import ShiftTopology
from rallyplan.models import PlayerAssignment, PlayerRecord, SlotAssignment

from .eligibility import eligible_captains, eligible_players, occupied_ids, player_priority
from .normalize import normalized_march, normalized_rally


logger = logging.getLogger(__name__)


def select_captain(
    slot: SlotAssignment,
    roster: Sequence[PlayerRecord],
    topology: ShiftTopology,
    excluded_ids: Set[str],
) -> Optional[PlayerRecord]:
    candidates = eligible_captains(slot, roster, topology, excluded_ids)
    return candidates[0] if candidates else None


def pack_rally(candidates: Iterable[PlayerRecord], capacity: int) -> Tuple[PlayerAssignment, ...]:
    """Greedily commit candidates, in the given order, until ``capacity`` is used.

    The last player taken may be committed only partially; they still count
    as used for the shift.
    """

    assignments: List[PlayerAssignment] = []
    remaining = capacity
    for player in candidates:
        if remaining <= 0:
            break
        march = normalized_march(player)
        committed = min(march.value, remaining)
        assignments.append(
            PlayerAssignment(player=player, march=committed, was_normalized=march.was_adjusted)
        )
        remaining -= committed
    return tuple(assignments)


def fill_players(
    slot: SlotAssignment,
    roster: Sequence[PlayerRecord],
    other_slots: Sequence[SlotAssignment],
    topology: ShiftTopology,
) -> Tuple[PlayerAssignment, ...]:
    captain = slot.captain
    if captain is None or not captain.troop_types or slot.rally_size <= 0:
        return ()
    candidates = eligible_players(slot, other_slots, roster, topology, captain.player_id)
    candidates.sort(key=player_priority)
    return pack_rally(candidates, slot.rally_size)


def fill_slot(
    slot: SlotAssignment,
    roster: Sequence[PlayerRecord],
    other_slots: Sequence[SlotAssignment],
    topology: ShiftTopology,
) -> SlotAssignment:
    """Return ``slot`` with a captain (when one is free) and a packed rally.

    A captain already on the slot is kept together with its rally-size
    snapshot. A newly chosen captain brings their normalized rally size.
    """

    if slot.captain is None:
        taken = occupied_ids(other_slots, slot.shift, exclude=slot.key)
        captain = select_captain(slot, roster, topology, taken)
        if captain is None:
            logger.debug("No captain available for %s shift %d", slot.building_name, slot.shift)
            return slot.cleared()
        slot = slot.model_copy(
            update={"captain": captain, "rally_size": normalized_rally(captain).value}
        )

    players = fill_players(slot, roster, other_slots, topology)
    return slot.model_copy(update={"players": players})


__all__ = ["fill_players", "fill_slot", "pack_rally", "select_captain"]
