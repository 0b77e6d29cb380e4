"""Correction of march/rally sizes entered in thousands shorthand."""

from __future__ import annotations

from typing import NamedTuple

from rallyplan.models import PlayerRecord


ABBREVIATION_THRESHOLD = 100_000
ABBREVIATION_FACTOR = 1000


class Magnitude(NamedTuple):
    value: int
    was_adjusted: bool


def normalize_magnitude(raw: int) -> Magnitude:
    """Expand abbreviated input ("264" -> 264000); anything else passes through."""

    if 0 < raw < ABBREVIATION_THRESHOLD:
        return Magnitude(raw * ABBREVIATION_FACTOR, True)
    return Magnitude(raw, False)


def normalized_march(player: PlayerRecord) -> Magnitude:
    return normalize_magnitude(player.march_size)


def normalized_rally(player: PlayerRecord) -> Magnitude:
    return normalize_magnitude(player.rally_size)
