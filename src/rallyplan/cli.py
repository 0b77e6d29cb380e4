"""Command-line interface for auto-assigning a roster to shift buildings."""

from __future__ import annotations

import argparse
import json
from datetime import date
from pathlib import Path
from typing import List, Sequence

from pydantic import ValidationError

from rallyplan.allocation import (
    attack_pool,
    auto_assign,
    defense_pool,
    overflow_for,
    summarize,
)
from rallyplan.allocation.normalize import normalized_rally
from rallyplan.config import default_shift_duration, get_topology
from rallyplan.config_loader import RosterProfile
from rallyplan.ingest import load_roster
from rallyplan.models import PlayerRecord, Schedule, ScheduleSettings, SlotAssignment


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Assign captains and players to shift buildings")
    parser.add_argument("roster", type=Path, help="Path to roster CSV or JSON")
    parser.add_argument(
        "--shift-duration",
        type=int,
        choices=(2, 4),
        default=None,
        help="Shift length in hours (4 gives two shifts, 2 gives four)",
    )
    parser.add_argument(
        "--building",
        action="append",
        default=[],
        help="Building name; repeat to override the default buildings",
    )
    parser.add_argument(
        "--allow-attack",
        action="store_true",
        help="Let attack-pool players fill defense slots",
    )
    parser.add_argument(
        "--existing",
        type=Path,
        default=None,
        help="Schedule JSON whose captains should be kept",
    )
    parser.add_argument(
        "--event-date",
        type=date.fromisoformat,
        default=None,
        help="Event date (YYYY-MM-DD); defaults to today or the existing schedule's date",
    )
    parser.add_argument(
        "--column",
        action="append",
        default=[],
        help="Roster CSV column mapping (e.g., march_size=March)",
    )
    parser.add_argument("--load-profile", type=Path, help="Load roster profile JSON", default=None)
    parser.add_argument("--save-profile", type=Path, help="Save roster profile JSON", default=None)
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("schedule.json"),
        help="Output schedule JSON path",
    )
    return parser.parse_args(argv)


def _parse_mapping(entries: list[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for entry in entries:
        if "=" not in entry:
            raise ValueError(f"Invalid mapping entry '{entry}', expected key=value")
        key, value = entry.split("=", 1)
        mapping[key.strip()] = value.strip()
    return mapping


def _load_existing(path: Path) -> Schedule:
    try:
        return Schedule.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise SystemExit(f"Invalid schedule file {path}: {exc}") from exc


def _describe_slot(slot: SlotAssignment) -> List[str]:
    if slot.captain is None:
        return [f"{slot.building_name} shift {slot.shift}: no captain"]
    rally = normalized_rally(slot.captain)
    rally_note = " [rally x1000]" if rally.was_adjusted and rally.value == slot.rally_size else ""
    lines = [
        f"{slot.building_name} shift {slot.shift}: {slot.captain.name} "
        f"({slot.total_march}/{slot.rally_size}, {len(slot.players)} players){rally_note}"
    ]
    for entry in slot.players:
        note = " [march x1000]" if entry.was_normalized else ""
        lines.append(f"    {entry.player.name}: {entry.march}{note}")
    report = overflow_for(slot)
    if report.is_overflowing:
        lines.append(f"    {report.message}")
    return lines


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)

    try:
        mapping = _parse_mapping(args.column)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc
    building_names = list(args.building)
    if args.load_profile:
        profile = RosterProfile.load(args.load_profile)
        mapping = profile.roster_mapping | mapping
        building_names = building_names or profile.building_names

    try:
        players, report = load_roster(args.roster, mapping=mapping or None)
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Could not load roster {args.roster}: {exc}") from exc
    print(f"Loaded {report.loaded_players}/{report.total_rows} roster rows")
    if report.skipped_rows:
        preview = "; ".join(report.skipped_rows[:5])
        more = len(report.skipped_rows) - 5
        suffix = f", +{more} more" if more > 0 else ""
        print(f"Skipped rows: {preview}{suffix}")

    if args.save_profile:
        RosterProfile(mapping, building_names).save(args.save_profile)
        print(f"Saved roster profile to {args.save_profile}")

    existing = _load_existing(args.existing) if args.existing else None
    shift_duration = args.shift_duration
    if shift_duration is None:
        shift_duration = existing.settings.shift_duration if existing else default_shift_duration()
    settings = ScheduleSettings(
        shift_duration=shift_duration,
        allow_attack_players_in_defense=args.allow_attack,
        tab_info=existing.settings.tab_info if existing else None,
    )
    try:
        topology = get_topology(settings.shift_duration, building_names or None)
    except (KeyError, ValueError) as exc:
        raise SystemExit(str(exc)) from exc

    defenders = [player for player in players if not player.is_attack]
    attackers: List[PlayerRecord] = [player for player in players if player.is_attack]
    roster = defense_pool(defenders, attackers, settings.allow_attack_players_in_defense)
    slots = auto_assign(existing.buildings if existing else [], roster, topology)

    event_date = args.event_date or (existing.event_date if existing else date.today())
    schedule = Schedule(
        schedule_id=existing.schedule_id if existing else None,
        event_date=event_date,
        buildings=tuple(slots),
        attack_players=tuple(attack_pool(players)),
        settings=settings,
        created_by=existing.created_by if existing else None,
    )
    payload = schedule.model_dump(by_alias=True, mode="json")
    args.output.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    for slot in slots:
        for line in _describe_slot(slot):
            print(line)
    summary = summarize(slots)
    print(
        f"Staffed {summary.staffed_slots}/{summary.slots} slots with "
        f"{summary.assigned_players} players ({summary.total_march}/{summary.total_rally} march)"
    )
    print(f"Wrote schedule to {args.output}")


if __name__ == "__main__":
    main()
