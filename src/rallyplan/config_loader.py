"""Persist and load roster column-mapping profiles for the CLI."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List


@dataclass
class RosterProfile:
    roster_mapping: Dict[str, str]
    building_names: List[str] = field(default_factory=list)

    @classmethod
    def load(cls, path: Path) -> "RosterProfile":
        data = json.loads(path.read_text(encoding="utf-8"))
        return cls(
            roster_mapping=data.get("roster_mapping", {}),
            building_names=list(data.get("building_names", [])),
        )

    def save(self, path: Path) -> None:
        payload = {
            "roster_mapping": self.roster_mapping,
            "building_names": self.building_names,
        }
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
