"""Canonical player models shared across ingest, allocation and storage."""

from __future__ import annotations

from datetime import datetime
from typing import FrozenSet, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict


TROOP_TYPES: tuple[str, ...] = ("fighter", "shooter", "rider")


class PlayerRecord(BaseModel):
    """Roster entry as registered by a guild member."""

    player_id: str = Field(..., min_length=1, alias="id")
    name: str
    alliance: str = ""
    troop_tier: int = Field(default=0, ge=0)
    troop_fighter: bool = False
    troop_shooter: bool = False
    troop_rider: bool = False
    is_captain: bool = Field(default=False, alias="isCapitan")
    march_size: int = 0
    rally_size: int = 0
    first_shift: bool = False
    second_shift: bool = False
    is_attack: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    @property
    def troop_types(self) -> FrozenSet[str]:
        flags = (self.troop_fighter, self.troop_shooter, self.troop_rider)
        return frozenset(kind for kind, flag in zip(TROOP_TYPES, flags) if flag)


class AttackPlayerSummary(BaseModel):
    """Informational attack-pool entry stored alongside a schedule."""

    player_id: str = Field(..., min_length=1, alias="id")
    name: str
    alliance: str = ""
    troop_tier: int = 0
    march_size: int = 0
    is_captain: bool = Field(default=False, alias="isCapitan")
    troop_fighter: bool = False
    troop_shooter: bool = False
    troop_rider: bool = False

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    @classmethod
    def from_player(cls, player: PlayerRecord) -> "AttackPlayerSummary":
        return cls(
            player_id=player.player_id,
            name=player.name,
            alliance=player.alliance,
            troop_tier=player.troop_tier,
            march_size=player.march_size,
            is_captain=player.is_captain,
            troop_fighter=player.troop_fighter,
            troop_shooter=player.troop_shooter,
            troop_rider=player.troop_rider,
        )
