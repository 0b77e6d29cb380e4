"""Which roster players may legally fill a given slot."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Set, Tuple

from rallyplan.config import ShiftTopology
from rallyplan.models import PlayerRecord, SlotAssignment, SlotKey

from .normalize import normalized_march, normalized_rally


def is_available(player: PlayerRecord, shift: int, topology: ShiftTopology) -> bool:
    return bool(getattr(player, topology.availability_flag(shift)))


def shares_troop_type(player: PlayerRecord, captain: PlayerRecord) -> bool:
    return bool(player.troop_types & captain.troop_types)


def occupied_ids(
    slots: Iterable[SlotAssignment],
    shift: int,
    *,
    exclude: Optional[SlotKey] = None,
) -> Set[str]:
    """Ids used as captain or regular player by slots of ``shift``, skipping ``exclude``."""

    used: Set[str] = set()
    for slot in slots:
        if slot.shift != shift or slot.key == exclude:
            continue
        used |= slot.occupied_ids()
    return used


def player_priority(player: PlayerRecord) -> Tuple[int, int]:
    return (-player.troop_tier, -normalized_march(player).value)


def captain_priority(player: PlayerRecord) -> Tuple[int, int]:
    return (-player.troop_tier, -normalized_rally(player).value)


def resolve_captain(
    slot: SlotAssignment,
    roster: Sequence[PlayerRecord],
    captain_id: Optional[str] = None,
) -> Optional[PlayerRecord]:
    """Find the roster entry for the candidate captain, defaulting to the slot's captain."""

    if captain_id is None:
        if slot.captain is None:
            return None
        captain_id = slot.captain.player_id
    for player in roster:
        if player.player_id == captain_id:
            return player
    if slot.captain is not None and slot.captain.player_id == captain_id:
        return slot.captain
    return None


def eligible_players(
    slot: SlotAssignment,
    slots: Sequence[SlotAssignment],
    roster: Sequence[PlayerRecord],
    topology: ShiftTopology,
    captain_id: Optional[str] = None,
) -> List[PlayerRecord]:
    """Return roster players assignable to ``slot`` as regular players.

    Players already committed to another slot of the same shift are
    excluded, as is the candidate captain. When the candidate captain has at
    least one troop type, only players sharing one of them are kept. The
    result keeps roster order; callers sort by their own priority.
    """

    captain = resolve_captain(slot, roster, captain_id)
    candidate_id = captain_id
    if candidate_id is None and slot.captain is not None:
        candidate_id = slot.captain.player_id

    taken = occupied_ids(slots, slot.shift, exclude=slot.key)
    troop_filter = captain is not None and bool(captain.troop_types)

    eligible: List[PlayerRecord] = []
    for player in roster:
        if candidate_id is not None and player.player_id == candidate_id:
            continue
        if player.player_id in taken:
            continue
        if not is_available(player, slot.shift, topology):
            continue
        if troop_filter and not shares_troop_type(player, captain):
            continue
        eligible.append(player)
    return eligible


def eligible_captains(
    slot: SlotAssignment,
    roster: Sequence[PlayerRecord],
    topology: ShiftTopology,
    excluded_ids: Set[str],
) -> List[PlayerRecord]:
    """Captain-flagged players available for the slot's shift, best first."""

    candidates = [
        player
        for player in roster
        if player.is_captain
        and player.player_id not in excluded_ids
        and is_available(player, slot.shift, topology)
    ]
    candidates.sort(key=captain_priority)
    return candidates


__all__ = [
    "captain_priority",
    "eligible_captains",
    "eligible_players",
    "is_available",
    "occupied_ids",
    "player_priority",
    "resolve_captain",
    "shares_troop_type",
]
