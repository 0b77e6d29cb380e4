"""Two-pass auto-assignment across every building and shift."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Dict, Iterable, List, Sequence, Set, Tuple

from rallyplan.config import ShiftTopology
from rallyplan.models import AttackPlayerSummary, PlayerRecord, SlotAssignment, SlotKey

from .normalize import normalized_rally
from .slots import fill_players, select_captain


logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class AllocationSummary:
    slots: int
    staffed_slots: int
    empty_slots: int
    assigned_players: int
    total_march: int
    total_rally: int
    overflowing_slots: Tuple[SlotKey, ...]


def empty_slots(topology: ShiftTopology) -> List[SlotAssignment]:
    return [
        SlotAssignment(building_name=building_name, shift=shift)
        for building_name, shift in topology.slots()
    ]


def align_slots(existing: Iterable[SlotAssignment], topology: ShiftTopology) -> List[SlotAssignment]:
    """Materialize every slot of ``topology``, reusing existing slots by key."""

    by_key: Dict[SlotKey, SlotAssignment] = {}
    for slot in existing:
        by_key.setdefault(slot.key, slot)
    dropped = set(by_key) - set(topology.slots())
    if dropped:
        logger.info("Dropping %d slots outside the current topology: %s", len(dropped), sorted(dropped))
    return [
        by_key.get(key) or SlotAssignment(building_name=key[0], shift=key[1])
        for key in topology.slots()
    ]


def assign_captains(
    slots: Sequence[SlotAssignment],
    roster: Sequence[PlayerRecord],
    topology: ShiftTopology,
) -> List[SlotAssignment]:
    """First pass: give every captainless slot the best captain still free in its shift.

    Regular players are cleared on every slot; captains already in place keep
    their rally-size snapshot.
    """

    used: Dict[int, Set[str]] = {}
    for slot in slots:
        if slot.captain is not None:
            used.setdefault(slot.shift, set()).add(slot.captain.player_id)

    result: List[SlotAssignment] = []
    for slot in slots:
        if slot.captain is not None:
            result.append(slot.model_copy(update={"players": ()}))
            continue
        taken = used.setdefault(slot.shift, set())
        captain = select_captain(slot, roster, topology, taken)
        if captain is None:
            logger.debug("No captain left for %s shift %d", slot.building_name, slot.shift)
            result.append(slot.cleared())
            continue
        taken.add(captain.player_id)
        logger.debug("Captain %s -> %s shift %d", captain.player_id, slot.building_name, slot.shift)
        result.append(
            slot.model_copy(
                update={
                    "captain": captain,
                    "rally_size": normalized_rally(captain).value,
                    "players": (),
                }
            )
        )
    return result


def assign_players(
    slots: Sequence[SlotAssignment],
    roster: Sequence[PlayerRecord],
    topology: ShiftTopology,
) -> List[SlotAssignment]:
    """Second pass: pack each captained slot's rally, in slot order.

    Every slot starts from an empty player list, so exclusions only see
    captains and the players packed earlier in this pass.
    """

    result = [slot.model_copy(update={"players": ()}) for slot in slots]
    for index, slot in enumerate(result):
        if slot.captain is None:
            continue
        others = result[:index] + result[index + 1:]
        players = fill_players(slot, roster, others, topology)
        result[index] = slot.model_copy(update={"players": players})
    return result


def auto_assign(
    slots: Sequence[SlotAssignment],
    roster: Sequence[PlayerRecord],
    topology: ShiftTopology,
) -> List[SlotAssignment]:
    """Assign captains then players across every slot of ``topology``.

    Returns a new slot list; the inputs are left untouched.
    """

    aligned = align_slots(slots, topology)
    preassigned = sum(1 for slot in aligned if slot.captain is not None)
    with_captains = assign_captains(aligned, roster, topology)
    result = assign_players(with_captains, roster, topology)

    summary = summarize(result)
    logger.info(
        "Auto-assigned %d/%d slots (%d kept captains) with %d players from a roster of %d",
        summary.staffed_slots,
        summary.slots,
        preassigned,
        summary.assigned_players,
        len(roster),
    )
    return result


def clear_slot(slots: Sequence[SlotAssignment], building_name: str, shift: int) -> List[SlotAssignment]:
    key = (building_name, shift)
    if not any(slot.key == key for slot in slots):
        raise KeyError(f"No slot {building_name!r} shift {shift}")
    return [slot.cleared() if slot.key == key else slot for slot in slots]


def clear_schedule(topology: ShiftTopology) -> List[SlotAssignment]:
    return empty_slots(topology)


def defense_pool(
    defense_players: Iterable[PlayerRecord],
    attack_players: Iterable[PlayerRecord],
    allow_attack_in_defense: bool,
) -> List[PlayerRecord]:
    """Players offered to the allocation engine, de-duplicated by id."""

    combined = list(defense_players)
    if allow_attack_in_defense:
        combined.extend(attack_players)
    seen: Set[str] = set()
    pool: List[PlayerRecord] = []
    for player in combined:
        if player.player_id in seen:
            continue
        seen.add(player.player_id)
        pool.append(player)
    return pool


def attack_pool(players: Iterable[PlayerRecord]) -> List[AttackPlayerSummary]:
    return [AttackPlayerSummary.from_player(player) for player in players if player.is_attack]


def summarize(slots: Sequence[SlotAssignment]) -> AllocationSummary:
    staffed = [slot for slot in slots if slot.captain is not None]
    return AllocationSummary(
        slots=len(slots),
        staffed_slots=len(staffed),
        empty_slots=len(slots) - len(staffed),
        assigned_players=sum(len(slot.players) for slot in slots),
        total_march=sum(slot.total_march for slot in slots),
        total_rally=sum(slot.rally_size for slot in staffed),
        overflowing_slots=tuple(slot.key for slot in slots if slot.total_march > slot.rally_size),
    )


__all__ = [
    "AllocationSummary",
    "align_slots",
    "assign_captains",
    "assign_players",
    "attack_pool",
    "auto_assign",
    "clear_schedule",
    "clear_slot",
    "defense_pool",
    "empty_slots",
    "summarize",
]
