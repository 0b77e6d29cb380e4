"""Domain models for rosters, slot assignments and schedules."""

from .assignment import PlayerAssignment, SlotAssignment, SlotKey
from .player import TROOP_TYPES, AttackPlayerSummary, PlayerRecord
from .schedule import Schedule, ScheduleSettings, TabInfo

__all__ = [
    "TROOP_TYPES",
    "AttackPlayerSummary",
    "PlayerAssignment",
    "PlayerRecord",
    "Schedule",
    "ScheduleSettings",
    "SlotAssignment",
    "SlotKey",
    "TabInfo",
]
