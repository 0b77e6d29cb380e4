"""Interactive editing of a single slot.

The admin console edits one slot at a time: pick a captain, tick regular
players, adjust march and rally numbers, then save. Nothing here touches
any slot other than the one being edited, and nothing blocks a save because
of overflow; overflow is reported for the admin to decide.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from rallyplan.config import ShiftTopology
from rallyplan.models import PlayerAssignment, PlayerRecord, SlotAssignment

from .eligibility import (
    eligible_captains,
    eligible_players,
    is_available,
    occupied_ids,
    player_priority,
    resolve_captain,
    shares_troop_type,
)
from .normalize import normalized_march, normalized_rally


logger = logging.getLogger(__name__)


class SlotEditError(ValueError):
    """Raised when a slot edit cannot be saved."""


class SlotState(str, Enum):
    EMPTY = "empty"
    CAPTAIN_CHOSEN = "captain_chosen"
    PLAYERS_ASSIGNED = "players_assigned"


class EmptyPoolReason(str, Enum):
    NOT_AVAILABLE_FOR_SHIFT = "not_available_for_shift"
    ALL_COMMITTED = "all_committed"
    TROOP_MISMATCH = "troop_mismatch"


@dataclass(frozen=True)
class EligibilityNotice:
    reason: EmptyPoolReason
    message: str


@dataclass(frozen=True)
class OverflowReport:
    total_march: int
    rally_size: int

    @property
    def excess(self) -> int:
        return max(0, self.total_march - self.rally_size)

    @property
    def is_overflowing(self) -> bool:
        return self.total_march > self.rally_size

    @property
    def message(self) -> Optional[str]:
        if not self.is_overflowing:
            return None
        return f"Overflow by {self.excess} units ({self.total_march} / {self.rally_size})"


@dataclass(frozen=True)
class PlayerSelection:
    player_id: str
    march: int


@dataclass(frozen=True)
class SlotDraft:
    building_name: str
    shift: int
    captain_id: Optional[str] = None
    rally_size: int = 0
    selections: Tuple[PlayerSelection, ...] = ()

    @classmethod
    def from_slot(cls, slot: SlotAssignment) -> "SlotDraft":
        return cls(
            building_name=slot.building_name,
            shift=slot.shift,
            captain_id=slot.captain.player_id if slot.captain is not None else None,
            rally_size=slot.rally_size,
            selections=tuple(
                PlayerSelection(player_id=entry.player.player_id, march=entry.march)
                for entry in slot.players
            ),
        )

    @property
    def key(self) -> Tuple[str, int]:
        return (self.building_name, self.shift)

    @property
    def selected_ids(self) -> List[str]:
        return [selection.player_id for selection in self.selections]

    @property
    def total_march(self) -> int:
        return sum(selection.march for selection in self.selections)

    def overflow(self) -> OverflowReport:
        return OverflowReport(total_march=self.total_march, rally_size=self.rally_size)

    def toggle_player(self, player: PlayerRecord) -> "SlotDraft":
        if player.player_id in self.selected_ids:
            kept = tuple(s for s in self.selections if s.player_id != player.player_id)
            return replace(self, selections=kept)
        added = PlayerSelection(player_id=player.player_id, march=normalized_march(player).value)
        return replace(self, selections=self.selections + (added,))

    def set_march(self, player_id: str, march: int) -> "SlotDraft":
        if player_id not in self.selected_ids:
            raise SlotEditError(f"Player {player_id} is not selected in {self.building_name} shift {self.shift}")
        updated = tuple(
            PlayerSelection(player_id=s.player_id, march=march) if s.player_id == player_id else s
            for s in self.selections
        )
        return replace(self, selections=updated)

    def with_rally_size(self, rally_size: int) -> "SlotDraft":
        # Typed values are trusted as entered.
        return replace(self, rally_size=rally_size)


@dataclass(frozen=True)
class CaptainChange:
    draft: SlotDraft
    dropped_players: Tuple[str, ...]


def slot_state(slot: SlotAssignment) -> SlotState:
    if slot.captain is None:
        return SlotState.EMPTY
    if slot.players:
        return SlotState.PLAYERS_ASSIGNED
    return SlotState.CAPTAIN_CHOSEN


def overflow_for(slot: SlotAssignment) -> OverflowReport:
    return OverflowReport(total_march=slot.total_march, rally_size=slot.rally_size)


def _index(roster: Sequence[PlayerRecord]) -> Dict[str, PlayerRecord]:
    lookup: Dict[str, PlayerRecord] = {}
    for player in roster:
        lookup.setdefault(player.player_id, player)
    return lookup


def eligible_captains_for_slot(
    slot: SlotAssignment,
    slots: Sequence[SlotAssignment],
    roster: Sequence[PlayerRecord],
    topology: ShiftTopology,
    selected_player_ids: Sequence[str] = (),
) -> List[PlayerRecord]:
    """Captains the admin may pick for ``slot`` given the rest of its shift."""

    excluded = occupied_ids(slots, slot.shift, exclude=slot.key) | set(selected_player_ids)
    return eligible_captains(slot, roster, topology, excluded)


def eligible_players_for_slot(
    slot: SlotAssignment,
    slots: Sequence[SlotAssignment],
    roster: Sequence[PlayerRecord],
    topology: ShiftTopology,
    captain_id: Optional[str] = None,
) -> List[PlayerRecord]:
    players = eligible_players(slot, slots, roster, topology, captain_id)
    players.sort(key=player_priority)
    return players


def change_captain(
    draft: SlotDraft,
    captain_id: Optional[str],
    roster: Sequence[PlayerRecord],
) -> CaptainChange:
    """Switch the draft's captain and drop selections that no longer fit.

    Both the old and the new captain are removed from the regular
    selections. When the new captain has troop types, selected players
    sharing none of them are dropped and reported by name.
    """

    lookup = _index(roster)
    captain = lookup.get(captain_id) if captain_id else None
    rally_size = normalized_rally(captain).value if captain is not None else 0

    removed_ids = {draft.captain_id, captain_id}
    selections = [s for s in draft.selections if s.player_id not in removed_ids]

    dropped: List[str] = []
    if captain is not None and captain.troop_types:
        kept: List[PlayerSelection] = []
        for selection in selections:
            player = lookup.get(selection.player_id)
            if player is None:
                dropped.append(selection.player_id)
                continue
            if not shares_troop_type(player, captain):
                dropped.append(player.name)
                continue
            kept.append(selection)
        selections = kept

    if dropped:
        logger.info(
            "Captain change on %s shift %d dropped %d players: %s",
            draft.building_name,
            draft.shift,
            len(dropped),
            ", ".join(dropped),
        )

    updated = replace(
        draft,
        captain_id=captain_id or None,
        rally_size=rally_size,
        selections=tuple(selections),
    )
    return CaptainChange(draft=updated, dropped_players=tuple(dropped))


def commit_draft(draft: SlotDraft, roster: Sequence[PlayerRecord]) -> SlotAssignment:
    """Resolve a draft against the roster, failing loudly on unknown ids."""

    if not draft.captain_id:
        raise SlotEditError(f"Select a captain for {draft.building_name} shift {draft.shift}")
    lookup = _index(roster)
    captain = lookup.get(draft.captain_id)
    if captain is None:
        raise SlotEditError(f"Captain {draft.captain_id} not found in roster")

    players: List[PlayerAssignment] = []
    for selection in draft.selections:
        player = lookup.get(selection.player_id)
        if player is None:
            raise SlotEditError(f"Player with id {selection.player_id} not found in roster")
        players.append(
            PlayerAssignment(
                player=player,
                march=selection.march,
                was_normalized=normalized_march(player).was_adjusted,
            )
        )

    return SlotAssignment(
        building_name=draft.building_name,
        shift=draft.shift,
        captain=captain,
        rally_size=draft.rally_size,
        players=tuple(players),
    )


def _check_shift_conflicts(slots: Sequence[SlotAssignment], draft: SlotDraft) -> None:
    """Reject a draft that reuses an id committed elsewhere in its shift."""

    taken = occupied_ids(slots, draft.shift, exclude=draft.key)
    problems: List[str] = []
    if draft.captain_id and draft.captain_id in taken:
        problems.append(f"captain {draft.captain_id} is already assigned in shift {draft.shift}")
    for player_id in draft.selected_ids:
        if player_id == draft.captain_id:
            problems.append(f"player {player_id} is the captain of this slot")
        elif player_id in taken:
            problems.append(f"player {player_id} is already assigned in shift {draft.shift}")
    if problems:
        raise SlotEditError(
            f"Cannot save {draft.building_name} shift {draft.shift}: " + "; ".join(problems)
        )


def save_slot(
    slots: Sequence[SlotAssignment],
    draft: SlotDraft,
    roster: Sequence[PlayerRecord],
) -> Tuple[List[SlotAssignment], OverflowReport]:
    if not any(slot.key == draft.key for slot in slots):
        raise SlotEditError(f"No slot {draft.building_name!r} shift {draft.shift}")
    _check_shift_conflicts(slots, draft)
    committed = commit_draft(draft, roster)
    updated = [committed if slot.key == draft.key else slot for slot in slots]
    report = overflow_for(committed)
    if report.is_overflowing:
        logger.warning("Saved %s shift %d with overflow of %d", draft.building_name, draft.shift, report.excess)
    return updated, report


def explain_empty_captains(
    slot: SlotAssignment,
    slots: Sequence[SlotAssignment],
    roster: Sequence[PlayerRecord],
    topology: ShiftTopology,
    selected_player_ids: Sequence[str] = (),
) -> Optional[EligibilityNotice]:
    """Say why no captain can be offered, or ``None`` when some can."""

    available = [
        player for player in roster if player.is_captain and is_available(player, slot.shift, topology)
    ]
    if not available:
        return EligibilityNotice(
            reason=EmptyPoolReason.NOT_AVAILABLE_FOR_SHIFT,
            message=f"No captains registered for shift {slot.shift}.",
        )
    taken = occupied_ids(slots, slot.shift, exclude=slot.key)
    selected = set(selected_player_ids)
    if all(player.player_id in taken or player.player_id in selected for player in available):
        message = "No available captains for this shift. All captains are already assigned to other buildings."
        if any(player.player_id in selected for player in available):
            message = (
                "No available captains for this shift. The remaining captains are selected "
                "as players in this slot or assigned to other buildings."
            )
        return EligibilityNotice(reason=EmptyPoolReason.ALL_COMMITTED, message=message)
    return None


def explain_empty_players(
    slot: SlotAssignment,
    slots: Sequence[SlotAssignment],
    roster: Sequence[PlayerRecord],
    topology: ShiftTopology,
    captain_id: Optional[str] = None,
) -> Optional[EligibilityNotice]:
    """Say why the player pool is empty, or ``None`` when it is not."""

    if captain_id is None and slot.captain is not None:
        captain_id = slot.captain.player_id
    in_shift = [
        player
        for player in roster
        if player.player_id != captain_id and is_available(player, slot.shift, topology)
    ]
    if not in_shift:
        return EligibilityNotice(
            reason=EmptyPoolReason.NOT_AVAILABLE_FOR_SHIFT,
            message=f"No players registered for shift {slot.shift}.",
        )
    taken = occupied_ids(slots, slot.shift, exclude=slot.key)
    free = [player for player in in_shift if player.player_id not in taken]
    if not free:
        return EligibilityNotice(
            reason=EmptyPoolReason.ALL_COMMITTED,
            message="All players for this shift are already assigned to other buildings.",
        )
    captain = resolve_captain(slot, roster, captain_id)
    if captain is not None and captain.troop_types:
        if not any(shares_troop_type(player, captain) for player in free):
            kinds = ", ".join(sorted(captain.troop_types))
            return EligibilityNotice(
                reason=EmptyPoolReason.TROOP_MISMATCH,
                message=f"No free players share a troop type with the captain ({kinds}).",
            )
    return None


__all__ = [
    "CaptainChange",
    "EligibilityNotice",
    "EmptyPoolReason",
    "OverflowReport",
    "PlayerSelection",
    "SlotDraft",
    "SlotEditError",
    "SlotState",
    "change_captain",
    "commit_draft",
    "eligible_captains_for_slot",
    "eligible_players_for_slot",
    "explain_empty_captains",
    "explain_empty_players",
    "overflow_for",
    "save_slot",
    "slot_state",
]
