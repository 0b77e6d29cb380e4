"""Configuration helpers for buildings and shift layouts."""

from .topology import (
    DEFAULT_BUILDING_NAMES,
    ShiftTopology,
    default_shift_duration,
    get_topology,
    iter_shift_durations,
    shift_count_for_duration,
)

__all__ = [
    "DEFAULT_BUILDING_NAMES",
    "ShiftTopology",
    "default_shift_duration",
    "get_topology",
    "iter_shift_durations",
    "shift_count_for_duration",
]
