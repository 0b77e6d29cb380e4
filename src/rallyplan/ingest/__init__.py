"""Input adapters that normalize raw roster exports."""

from .roster import (
    DEFAULT_ROSTER_MAPPING,
    RosterReport,
    RosterRow,
    load_roster,
    load_roster_csv,
    load_roster_json,
    load_roster_rows,
    rows_to_records,
)

__all__ = [
    "DEFAULT_ROSTER_MAPPING",
    "RosterReport",
    "RosterRow",
    "load_roster",
    "load_roster_csv",
    "load_roster_json",
    "load_roster_rows",
    "rows_to_records",
]
