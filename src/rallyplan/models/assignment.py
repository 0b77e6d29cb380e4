"""Per-slot assignment records produced by the allocation engine."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional, Set, Tuple

from pydantic import BaseModel, Field, SerializationInfo, field_serializer, field_validator
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict

from .player import PlayerRecord


SlotKey = Tuple[str, int]


class PlayerAssignment(BaseModel):
    """Regular player committed to a captain's rally."""

    player: PlayerRecord
    march: int
    was_normalized: bool = False

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class SlotAssignment(BaseModel):
    """Captain, rally snapshot and regular players for one (building, shift) slot.

    ``captain`` is ``None`` for an unassigned slot. Stored documents use an
    empty object under ``capitan`` for the same state, which is accepted on
    input and written back on output.
    """

    building_name: str = Field(..., min_length=1)
    shift: int = Field(..., ge=1)
    captain: Optional[PlayerRecord] = Field(default=None, alias="capitan")
    rally_size: int = 0
    players: Tuple[PlayerAssignment, ...] = ()

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    @field_validator("captain", mode="before")
    @classmethod
    def _empty_captain(cls, value: Any) -> Any:
        if isinstance(value, Mapping) and not value:
            return None
        return value

    @field_serializer("captain")
    def _serialize_captain(self, captain: Optional[PlayerRecord], info: SerializationInfo) -> dict:
        if captain is None:
            return {}
        return captain.model_dump(by_alias=info.by_alias, mode=info.mode)

    @property
    def key(self) -> SlotKey:
        return (self.building_name, self.shift)

    @property
    def has_captain(self) -> bool:
        return self.captain is not None

    @property
    def total_march(self) -> int:
        return sum(entry.march for entry in self.players)

    @property
    def remaining_capacity(self) -> int:
        return self.rally_size - self.total_march

    def player_ids(self) -> list[str]:
        return [entry.player.player_id for entry in self.players]

    def occupied_ids(self) -> Set[str]:
        """Ids this slot takes out of its shift: the captain plus every regular player."""

        ids = set(self.player_ids())
        if self.captain is not None:
            ids.add(self.captain.player_id)
        return ids

    def cleared(self) -> "SlotAssignment":
        return self.model_copy(update={"captain": None, "rally_size": 0, "players": ()})
