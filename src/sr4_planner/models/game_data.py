"""Static game-data table consumed by the engine.

Loaded once by the surrounding application; the engine only looks entries
up by exact name and tolerates names that are missing.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from sr4_planner.models.quality import QualityDefinition, SkillDefinition


@dataclass
class GameData:
    """Quality and skill definitions keyed by name."""

    qualities: dict[str, QualityDefinition] = field(default_factory=dict)
    skills: dict[str, SkillDefinition] = field(default_factory=dict)

    def quality(self, name: str) -> QualityDefinition | None:
        return self.qualities.get(name)

    def skill(self, name: str) -> SkillDefinition | None:
        return self.skills.get(name)

    @classmethod
    def from_definitions(
        cls,
        qualities: list[QualityDefinition] | None = None,
        skills: list[SkillDefinition] | None = None,
    ) -> "GameData":
        return cls(
            qualities={q.name: q for q in qualities or []},
            skills={s.name: s for s in skills or []},
        )

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "GameData":
        """Build from the converted Chummer JSON shape ({"qualities": [...], "skills": [...]})."""
        from sr4_planner.parser.quality_parser import parse_quality, parse_skill

        return cls.from_definitions(
            qualities=[parse_quality(q) for q in raw.get("qualities", [])],
            skills=[parse_skill(s) for s in raw.get("skills", [])],
        )

    @classmethod
    def from_json(cls, path: Path) -> "GameData":
        return cls.from_dict(json.loads(path.read_text(encoding="utf-8")))
