"""Helpers to load roster exports and emit canonical player records."""

from __future__ import annotations

import csv
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ValidationError

from rallyplan.models import PlayerRecord


logger = logging.getLogger(__name__)

DEFAULT_ROSTER_MAPPING = {
    "player_id": "id",
    "name": "name",
    "alliance": "alliance",
    "troop_tier": "troopTier",
    "troop_fighter": "troopFighter",
    "troop_shooter": "troopShooter",
    "troop_rider": "troopRider",
    "is_captain": "isCapitan",
    "march_size": "marchSize",
    "rally_size": "rallySize",
    "first_shift": "firstShift",
    "second_shift": "secondShift",
    "is_attack": "isAttack",
}

_TRUE_TOKENS = {"1", "true", "t", "yes", "y", "x"}
_FALSE_TOKENS = {"0", "false", "f", "no", "n"}


class RosterRow(BaseModel):
    raw_id: Optional[str] = None
    raw_name: str
    raw_alliance: str = ""
    raw_tier: str = ""
    raw_fighter: str = ""
    raw_shooter: str = ""
    raw_rider: str = ""
    raw_captain: str = ""
    raw_march: str = ""
    raw_rally: str = ""
    raw_first_shift: str = ""
    raw_second_shift: str = ""
    raw_attack: str = ""

    @classmethod
    def from_mapping(cls, row: Mapping[str, Optional[str]], mapping: Mapping[str, str]) -> "RosterRow":
        def extract(key: str, *, default: str = "") -> str:
            column = mapping.get(key, DEFAULT_ROSTER_MAPPING[key])
            value = row.get(column)
            return value.strip() if value is not None else default

        raw_id = extract("player_id")
        return cls(
            raw_id=raw_id or None,
            raw_name=extract("name"),
            raw_alliance=extract("alliance"),
            raw_tier=extract("troop_tier"),
            raw_fighter=extract("troop_fighter"),
            raw_shooter=extract("troop_shooter"),
            raw_rider=extract("troop_rider"),
            raw_captain=extract("is_captain"),
            raw_march=extract("march_size"),
            raw_rally=extract("rally_size"),
            raw_first_shift=extract("first_shift"),
            raw_second_shift=extract("second_shift"),
            raw_attack=extract("is_attack"),
        )


@dataclass
class RosterReport:
    total_rows: int = 0
    loaded_players: int = 0
    skipped_rows: List[str] = field(default_factory=list)


def _parse_int(raw: str) -> int:
    digits = re.sub(r"[^0-9]", "", raw)
    return int(digits) if digits else 0


def _parse_flag(raw: str) -> bool:
    text = raw.strip().lower()
    if not text:
        return False
    if text in _TRUE_TOKENS:
        return True
    if text in _FALSE_TOKENS:
        return False
    raise ValueError(f"flag '{raw}' is not a recognised yes/no value")


def load_roster_rows(path: Path, *, mapping: Mapping[str, str] | None = None) -> List[RosterRow]:
    mapping = mapping or DEFAULT_ROSTER_MAPPING
    with path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        return [RosterRow.from_mapping(row, mapping) for row in reader]


def rows_to_records(rows: Sequence[RosterRow]) -> Tuple[List[PlayerRecord], RosterReport]:
    report = RosterReport(total_rows=len(rows))
    records: List[PlayerRecord] = []
    for line, row in enumerate(rows, start=2):
        player_id = row.raw_id or row.raw_name
        if not player_id:
            logger.warning("Skipping roster row %d: no id or name", line)
            report.skipped_rows.append(f"row {line}: missing id and name")
            continue
        try:
            record = PlayerRecord(
                player_id=player_id,
                name=row.raw_name or player_id,
                alliance=row.raw_alliance,
                troop_tier=_parse_int(row.raw_tier),
                troop_fighter=_parse_flag(row.raw_fighter),
                troop_shooter=_parse_flag(row.raw_shooter),
                troop_rider=_parse_flag(row.raw_rider),
                is_captain=_parse_flag(row.raw_captain),
                march_size=_parse_int(row.raw_march),
                rally_size=_parse_int(row.raw_rally),
                first_shift=_parse_flag(row.raw_first_shift),
                second_shift=_parse_flag(row.raw_second_shift),
                is_attack=_parse_flag(row.raw_attack),
            )
        except (ValueError, ValidationError) as exc:
            logger.warning("Skipping roster row %d (%s): %s", line, player_id, exc)
            report.skipped_rows.append(f"row {line}: {player_id}: {exc}")
            continue
        records.append(record)
    report.loaded_players = len(records)
    return records, report


def load_roster_csv(
    path: Path,
    *,
    mapping: Mapping[str, str] | None = None,
) -> Tuple[List[PlayerRecord], RosterReport]:
    return rows_to_records(load_roster_rows(path, mapping=mapping))


def load_roster_json(path: Path) -> List[PlayerRecord]:
    """Load a JSON array of roster entries in the stored camelCase shape."""

    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON array of players")
    return [PlayerRecord.model_validate(entry) for entry in data]


def load_roster(
    path: Path,
    *,
    mapping: Mapping[str, str] | None = None,
) -> Tuple[List[PlayerRecord], RosterReport]:
    """Load a roster by file suffix (``.json`` or CSV)."""

    if path.suffix.lower() == ".json":
        records = load_roster_json(path)
        return records, RosterReport(total_rows=len(records), loaded_players=len(records))
    return load_roster_csv(path, mapping=mapping)
