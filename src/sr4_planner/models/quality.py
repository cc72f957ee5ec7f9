"""Quality definitions and their bonus effects.

Game data describes a quality's mechanics as a loose bag of optional
fields. The parser converts that bag into a tuple of the effect variants
below; the set is closed, and each variant declares how collisions with
other effects on the same target combine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union

from sr4_planner.models.constants import AugmentationKind, QualityCategory


class CombinePolicy(str, Enum):
    """How two effects on the same target fold together."""
    ADD = "add"
    MAX = "max"
    MIN = "min"
    PRODUCT = "product"
    UNION = "union"
    OR = "or"


class ScalarStat(str, Enum):
    """Additive untargeted bonuses. Values double as AggregateModifiers field names."""
    INITIATIVE = "initiative"
    INITIATIVE_PASSES = "initiative_passes"
    CONDITION_MONITOR = "condition_monitor"
    COMPOSURE = "composure"
    JUDGE_INTENTIONS = "judge_intentions"
    DAMAGE_RESISTANCE = "damage_resistance"
    DRAIN_RESISTANCE = "drain_resistance"
    NOTORIETY = "notoriety"
    REACH = "reach"
    UNARMED_DV = "unarmed_dv"
    RESTRICTED_ITEM_COUNT = "restricted_item_count"
    FREE_POSITIVE_QUALITY_BP = "free_positive_quality_bp"
    FREE_NEGATIVE_QUALITY_BP = "free_negative_quality_bp"
    NUYEN_MAX_BP = "nuyen_max_bp"


class PercentStat(str, Enum):
    LIFESTYLE_COST = "lifestyle_cost_percent"
    MOVEMENT = "movement_percent"
    SWIM = "swim_percent"


class QualityFlagName(str, Enum):
    UNEDUCATED = "uneducated"
    UNCOUTH = "uncouth"
    INFIRM = "infirm"
    SENSITIVE_SYSTEM = "sensitive_system"
    BLACK_MARKET_DISCOUNT = "black_market_discount"


# --- Attribute effects ------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AttributeBonus:
    """+value to a named attribute."""
    policy: ClassVar[CombinePolicy] = CombinePolicy.ADD
    attribute: str
    value: int


@dataclass(frozen=True, slots=True)
class AttributeFloor:
    """Minimum override; the highest floor wins."""
    policy: ClassVar[CombinePolicy] = CombinePolicy.MAX
    attribute: str
    value: int


@dataclass(frozen=True, slots=True)
class AttributeCeiling:
    """Hard cap; the tightest ceiling wins."""
    policy: ClassVar[CombinePolicy] = CombinePolicy.MIN
    attribute: str
    value: int


@dataclass(frozen=True, slots=True)
class SelectedAttributeBonus:
    """Bonus and/or ceiling shift to the attribute chosen when the quality was taken.

    Exceptional Attribute: ceiling_delta=+1. Impaired Attribute: ceiling_delta<0.
    """
    policy: ClassVar[CombinePolicy] = CombinePolicy.ADD
    bonus: int = 0
    ceiling_delta: int = 0


# --- Skill effects ----------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SkillBonus:
    policy: ClassVar[CombinePolicy] = CombinePolicy.ADD
    skill: str
    value: int


@dataclass(frozen=True, slots=True)
class SkillCeiling:
    """Hard cap on a skill rating; the tightest cap wins."""
    policy: ClassVar[CombinePolicy] = CombinePolicy.MIN
    skill: str
    value: int


@dataclass(frozen=True, slots=True)
class SelectedSkillBonus:
    """Aptitude-style effect on the skill chosen at selection time."""
    policy: ClassVar[CombinePolicy] = CombinePolicy.ADD
    bonus: int = 0
    ceiling_delta: int = 0


@dataclass(frozen=True, slots=True)
class SkillGroupBonus:
    policy: ClassVar[CombinePolicy] = CombinePolicy.ADD
    group: str
    value: int


@dataclass(frozen=True, slots=True)
class SkillCategoryBonus:
    policy: ClassVar[CombinePolicy] = CombinePolicy.ADD
    category: str
    value: int


# --- Untargeted effects -----------------------------------------------------


@dataclass(frozen=True, slots=True)
class StatBonus:
    policy: ClassVar[CombinePolicy] = CombinePolicy.ADD
    stat: ScalarStat
    value: int


@dataclass(frozen=True, slots=True)
class PercentModifier:
    """Percentages sum; +50 and +25 give +75, not 1.5 * 1.25."""
    policy: ClassVar[CombinePolicy] = CombinePolicy.ADD
    stat: PercentStat
    value: int


@dataclass(frozen=True, slots=True)
class EssenceMultiplier:
    policy: ClassVar[CombinePolicy] = CombinePolicy.PRODUCT
    kind: AugmentationKind
    factor: float


@dataclass(frozen=True, slots=True)
class EnableTab:
    policy: ClassVar[CombinePolicy] = CombinePolicy.UNION
    tab: str


@dataclass(frozen=True, slots=True)
class FlySpeed:
    policy: ClassVar[CombinePolicy] = CombinePolicy.MAX
    value: int


@dataclass(frozen=True, slots=True)
class Skillwire:
    policy: ClassVar[CombinePolicy] = CombinePolicy.MAX
    rating: int


@dataclass(frozen=True, slots=True)
class QualityFlag:
    policy: ClassVar[CombinePolicy] = CombinePolicy.OR
    flag: QualityFlagName


BonusEffect = Union[
    AttributeBonus, AttributeFloor, AttributeCeiling, SelectedAttributeBonus,
    SkillBonus, SkillCeiling, SelectedSkillBonus, SkillGroupBonus,
    SkillCategoryBonus, StatBonus, PercentModifier, EssenceMultiplier,
    EnableTab, FlySpeed, Skillwire, QualityFlag,
]


@dataclass(frozen=True, slots=True)
class QualityDefinition:
    """A quality entry from game data.

    *requires* is in CNF: every inner tuple is an OR-group, and every group
    must be satisfied by some quality the character holds.
    """
    name: str
    category: str = QualityCategory.POSITIVE.value
    bp: int = 0
    effects: tuple[BonusEffect, ...] = ()
    limit: int = 1
    requires: tuple[tuple[str, ...], ...] = ()
    forbids: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SkillDefinition:
    """A skill entry from game data."""
    name: str
    attribute: str
    category: str = ""
    group: str = ""
    allows_default: bool = True
    specializations: tuple[str, ...] = field(default=())
