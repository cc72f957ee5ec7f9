"""Configuration knobs for the build engine.

Defaults match the SR4A core rulebook's 400 BP creation rules. House rules
may override point caps, availability limits, or the drain pairings.
"""

from dataclasses import dataclass, field

from sr4_planner.models.constants import GRADE_ESSENCE_MULTIPLIERS


def _default_exclusive_pairs() -> tuple[tuple[str, str], ...]:
    return (
        ("Magician", "Technomancer"),
        ("Adept", "Technomancer"),
        ("Mystic Adept", "Technomancer"),
        ("Immunity (Natural)", "Allergy"),
        ("Lucky", "Unlucky"),
    )


@dataclass(frozen=True, slots=True)
class BuildConfig:
    """Ruleset constants that aren't stored in game data."""

    positive_quality_bp_max: int = 35
    negative_quality_bp_max: int = 35
    attribute_bp_max: int = 200    # Half the build on attributes
    resources_bp_max: int = 50
    skill_max: int = 6             # Creation cap before Aptitude
    max_essence: float = 6.0
    contact_rating_min: int = 1
    contact_rating_max: int = 6
    restricted_gear_max_availability: int = 20
    drain_logic_traditions: tuple[str, ...] = ("hermetic", "chaos")
    grade_multipliers: dict[str, float] = field(
        default_factory=lambda: dict(GRADE_ESSENCE_MULTIPLIERS)
    )
    exclusive_pairs: tuple[tuple[str, str], ...] = field(
        default_factory=_default_exclusive_pairs
    )
    perception_skill: str = "Perception"
    dodge_skill: str = "Dodge"
    astral_initiative_dice: int = 2
    matrix_initiative_dice: int = 3

    def __post_init__(self) -> None:
        if self.contact_rating_min > self.contact_rating_max:
            raise ValueError(
                f"contact_rating_min ({self.contact_rating_min}) exceeds "
                f"contact_rating_max ({self.contact_rating_max})"
            )
        for name in ("positive_quality_bp_max", "negative_quality_bp_max",
                     "attribute_bp_max", "resources_bp_max", "skill_max"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")
        if self.max_essence <= 0:
            raise ValueError("max_essence must be positive")

    def grade_multiplier(self, grade: str) -> float:
        return self.grade_multipliers.get(grade, 1.0)
