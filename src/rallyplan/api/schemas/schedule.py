from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from rallyplan.models import AttackPlayerSummary, ScheduleSettings, SlotAssignment


class ScheduleRequest(BaseModel):
    buildings: List[SlotAssignment] = Field(default_factory=list)
    attack_players: List[AttackPlayerSummary] | None = None
    settings: ScheduleSettings = Field(default_factory=ScheduleSettings)
    created_by: str | None = None
