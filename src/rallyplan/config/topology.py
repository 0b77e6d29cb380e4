"""Slot topology: which buildings exist and how many shifts each one runs."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Sequence, Tuple

from rallyplan.models import SlotKey


logger = logging.getLogger(__name__)

DEFAULT_BUILDING_NAMES: Tuple[str, ...] = ("HUB", "North", "South", "West", "East")

_SHIFT_DURATION_ENV = "RALLYPLAN_SHIFT_DURATION"
_SHIFT_DURATION_DEFAULT = 4

# Shift duration in hours -> shifts per event day.
_SHIFT_COUNTS: Dict[int, int] = {
    4: 2,
    2: 4,
}


@dataclass(frozen=True)
class ShiftTopology:
    building_names: Tuple[str, ...]
    shift_count: int

    def __post_init__(self) -> None:
        if self.shift_count not in _SHIFT_COUNTS.values():
            raise ValueError(f"shift_count must be 2 or 4, got {self.shift_count!r}")
        if not self.building_names:
            raise ValueError("at least one building name is required")
        if len(set(self.building_names)) != len(self.building_names):
            raise ValueError(f"building names must be unique, got {self.building_names!r}")

    @property
    def shifts(self) -> range:
        return range(1, self.shift_count + 1)

    def slots(self) -> Iterator[SlotKey]:
        """Yield slot keys building-major, in configured building order."""

        for building_name in self.building_names:
            for shift in self.shifts:
                yield (building_name, shift)

    def availability_flag(self, shift: int) -> str:
        """Name of the roster flag that makes a player available for ``shift``.

        Registration only asks for the first or second half of the event, so
        with four shifts the first two map to ``first_shift`` and the last two
        to ``second_shift``.
        """

        if shift not in self.shifts:
            raise ValueError(f"shift {shift!r} outside 1..{self.shift_count}")
        return "first_shift" if shift <= self.shift_count // 2 else "second_shift"


def iter_shift_durations() -> Iterable[int]:
    return _SHIFT_COUNTS.keys()


def shift_count_for_duration(shift_duration: int) -> int:
    """Return the shifts per event for a duration in hours, raising KeyError if unsupported."""

    if shift_duration not in _SHIFT_COUNTS:
        raise KeyError(f"No shift layout configured for shift_duration={shift_duration!r}")
    return _SHIFT_COUNTS[shift_duration]


def get_topology(
    shift_duration: int,
    building_names: Optional[Sequence[str]] = None,
) -> ShiftTopology:
    names = tuple(building_names) if building_names else DEFAULT_BUILDING_NAMES
    return ShiftTopology(building_names=names, shift_count=shift_count_for_duration(shift_duration))


def default_shift_duration() -> int:
    raw = os.getenv(_SHIFT_DURATION_ENV)
    if raw is None:
        return _SHIFT_DURATION_DEFAULT
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", _SHIFT_DURATION_ENV, raw, _SHIFT_DURATION_DEFAULT)
        return _SHIFT_DURATION_DEFAULT
    if value not in _SHIFT_COUNTS:
        logger.warning("Unsupported %s=%d; using default %d", _SHIFT_DURATION_ENV, value, _SHIFT_DURATION_DEFAULT)
        return _SHIFT_DURATION_DEFAULT
    return value
