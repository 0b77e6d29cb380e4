"""Persisted schedule aggregate for one event date."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict

from .assignment import SlotAssignment
from .player import AttackPlayerSummary


class TabInfo(BaseModel):
    defense: Optional[str] = None
    attack: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class ScheduleSettings(BaseModel):
    shift_duration: Literal[2, 4] = 4
    allow_attack_players_in_defense: bool = False
    tab_info: Optional[TabInfo] = None

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    @field_validator("tab_info", mode="after")
    @classmethod
    def _drop_empty_tab_info(cls, value: Optional[TabInfo]) -> Optional[TabInfo]:
        if value is None:
            return None
        if not value.defense and not value.attack:
            return None
        return TabInfo(defense=value.defense or None, attack=value.attack or None)


class Schedule(BaseModel):
    schedule_id: Optional[str] = Field(default=None, alias="id")
    event_date: date
    buildings: Tuple[SlotAssignment, ...] = ()
    attack_players: Tuple[AttackPlayerSummary, ...] = ()
    settings: ScheduleSettings = Field(default_factory=ScheduleSettings)
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)
