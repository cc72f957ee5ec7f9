"""Fold every quality effect on a character into one AggregateModifiers.

Each selected quality is looked up in game data by its base name (the
" #2" instance suffix stripped). Each of its effects is resolved to the
AggregateModifiers field it lands on, then folded into a private
accumulator through the CombinePolicy the effect variant declares. The
accumulator is frozen into an AggregateModifiers on return; callers never
see it.

Quality order never changes the result: ADD/MAX/MIN/UNION/OR are order
independent on their own, and multiplier factors are sorted before the
product is taken so float rounding is stable too.

Map keys (attribute codes, skill names, groups, categories) are stored
lower-cased and looked up the same way.
"""

import math
import operator
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

import structlog

from sr4_planner.models.character import AttributeLimits, Character, CharacterQuality
from sr4_planner.models.constants import AugmentationKind
from sr4_planner.models.game_data import GameData
from sr4_planner.models.quality import (
    AttributeBonus,
    AttributeCeiling,
    AttributeFloor,
    BonusEffect,
    CombinePolicy,
    EnableTab,
    EssenceMultiplier,
    FlySpeed,
    PercentModifier,
    QualityFlag,
    SelectedAttributeBonus,
    SelectedSkillBonus,
    SkillBonus,
    SkillCategoryBonus,
    SkillCeiling,
    SkillGroupBonus,
    Skillwire,
    StatBonus,
)

logger = structlog.get_logger(__name__)

_INSTANCE_SUFFIX = re.compile(r"\s+#\d+$")

_MAP_FIELDS = (
    "attribute_bonuses",
    "attribute_floors",
    "attribute_ceilings",
    "attribute_ceiling_deltas",
    "skill_bonuses",
    "skill_ceilings",
    "skill_ceiling_deltas",
    "skill_group_bonuses",
    "skill_category_bonuses",
)

# PRODUCT and UNION collect members and are resolved in freeze().
_COMBINE: dict[CombinePolicy, Callable[[Any, Any], Any]] = {
    CombinePolicy.ADD: operator.add,
    CombinePolicy.MAX: max,
    CombinePolicy.MIN: min,
    CombinePolicy.OR: operator.or_,
}


def strip_instance_suffix(name: str) -> str:
    """'Aptitude #2' -> 'Aptitude'."""
    return _INSTANCE_SUFFIX.sub("", name)


def _key(name: str) -> str:
    return name.lower()


def _frozen_map(values: Mapping[str, int]) -> Mapping[str, int]:
    return MappingProxyType({_key(k): v for k, v in values.items()})


@dataclass(frozen=True, slots=True)
class AggregateModifiers:
    """Normalized, read-only fold of every quality effect on a character.

    Identity values: 0 for additive fields, 1.0 for multipliers, empty for
    maps and sets, False for flags. Two aggregates of the same character
    compare equal. Maps are read-only views keyed in lower case.
    """

    # Attributes
    attribute_bonuses: Mapping[str, int] = field(default_factory=dict)
    attribute_floors: Mapping[str, int] = field(default_factory=dict)
    attribute_ceilings: Mapping[str, int] = field(default_factory=dict)
    attribute_ceiling_deltas: Mapping[str, int] = field(default_factory=dict)

    # Skills
    skill_bonuses: Mapping[str, int] = field(default_factory=dict)
    skill_ceilings: Mapping[str, int] = field(default_factory=dict)
    skill_ceiling_deltas: Mapping[str, int] = field(default_factory=dict)
    skill_group_bonuses: Mapping[str, int] = field(default_factory=dict)
    skill_category_bonuses: Mapping[str, int] = field(default_factory=dict)

    # Additive scalars
    initiative: int = 0
    initiative_passes: int = 0
    condition_monitor: int = 0
    composure: int = 0
    judge_intentions: int = 0
    damage_resistance: int = 0
    drain_resistance: int = 0
    notoriety: int = 0
    reach: int = 0
    unarmed_dv: int = 0
    restricted_item_count: int = 0
    free_positive_quality_bp: int = 0
    free_negative_quality_bp: int = 0
    nuyen_max_bp: int = 0

    # Percentages (+50 means 150%)
    lifestyle_cost_percent: int = 0
    movement_percent: int = 0
    swim_percent: int = 0

    # Essence cost multipliers
    cyberware_essence_multiplier: float = 1.0
    bioware_essence_multiplier: float = 1.0

    # Capabilities
    enabled_tabs: frozenset[str] = frozenset()
    fly_speed: int = 0
    skillwire: int = 0

    # Flags
    uneducated: bool = False
    uncouth: bool = False
    infirm: bool = False
    sensitive_system: bool = False
    black_market_discount: bool = False

    def __post_init__(self) -> None:
        for name in _MAP_FIELDS:
            object.__setattr__(self, name, _frozen_map(getattr(self, name)))

    def essence_multiplier(self, kind: str) -> float:
        if kind == AugmentationKind.BIOWARE.value:
            return self.bioware_essence_multiplier
        return self.cyberware_essence_multiplier


class _Accumulator:
    """Mutable scratch space for aggregate()."""

    def __init__(self) -> None:
        self.maps: dict[str, dict[str, Any]] = {name: {} for name in _MAP_FIELDS}
        self.scalars: dict[str, Any] = {}
        self.factors: dict[str, list[float]] = {}
        self.members: dict[str, set[str]] = {}

    def fold(self, policy: CombinePolicy, field_name: str, key: str | None, value: Any) -> None:
        """Combine *value* into *field_name* (or one key of a map field)."""
        if policy is CombinePolicy.PRODUCT:
            self.factors.setdefault(field_name, []).append(value)
            return
        if policy is CombinePolicy.UNION:
            self.members.setdefault(field_name, set()).add(value)
            return
        if key is None:
            target, slot = self.scalars, field_name
        else:
            target, slot = self.maps[field_name], key
        combine = _COMBINE[policy]
        target[slot] = combine(target[slot], value) if slot in target else value

    def freeze(self) -> AggregateModifiers:
        return AggregateModifiers(
            **self.maps,
            **self.scalars,
            **{name: math.prod(sorted(f), start=1.0) for name, f in self.factors.items()},
            **{name: frozenset(m) for name, m in self.members.items()},
        )


_Target = tuple[str, str | None, Any]


def _selected(prefix: str, selection: str | None, bonus: int, ceiling_delta: int) -> list[_Target]:
    if not selection:
        return []
    key = _key(selection)
    targets: list[_Target] = []
    if bonus:
        targets.append((f"{prefix}_bonuses", key, bonus))
    if ceiling_delta:
        targets.append((f"{prefix}_ceiling_deltas", key, ceiling_delta))
    return targets


def _targets(effect: BonusEffect, instance: CharacterQuality) -> list[_Target]:
    """(field, map key or None, value) triples an effect lands on."""
    if isinstance(effect, AttributeBonus):
        return [("attribute_bonuses", _key(effect.attribute), effect.value)]
    if isinstance(effect, AttributeFloor):
        return [("attribute_floors", _key(effect.attribute), effect.value)]
    if isinstance(effect, AttributeCeiling):
        return [("attribute_ceilings", _key(effect.attribute), effect.value)]
    if isinstance(effect, SelectedAttributeBonus):
        return _selected("attribute", instance.selected_attribute, effect.bonus, effect.ceiling_delta)
    if isinstance(effect, SkillBonus):
        return [("skill_bonuses", _key(effect.skill), effect.value)]
    if isinstance(effect, SkillCeiling):
        return [("skill_ceilings", _key(effect.skill), effect.value)]
    if isinstance(effect, SelectedSkillBonus):
        return _selected("skill", instance.selected_skill, effect.bonus, effect.ceiling_delta)
    if isinstance(effect, SkillGroupBonus):
        return [("skill_group_bonuses", _key(effect.group), effect.value)]
    if isinstance(effect, SkillCategoryBonus):
        return [("skill_category_bonuses", _key(effect.category), effect.value)]
    if isinstance(effect, (StatBonus, PercentModifier)):
        return [(effect.stat.value, None, effect.value)]
    if isinstance(effect, EssenceMultiplier):
        return [(f"{effect.kind.value}_essence_multiplier", None, effect.factor)]
    if isinstance(effect, EnableTab):
        return [("enabled_tabs", None, effect.tab)]
    if isinstance(effect, FlySpeed):
        return [("fly_speed", None, effect.value)]
    if isinstance(effect, Skillwire):
        return [("skillwire", None, effect.rating)]
    if isinstance(effect, QualityFlag):
        return [(effect.flag.value, None, True)]
    return []


def aggregate(character: Character, game_data: GameData) -> AggregateModifiers:
    """Aggregate every quality effect on *character*.

    Total: qualities missing from *game_data* contribute nothing, and a
    selection-dependent effect on an instance with no selection is a no-op.
    """
    acc = _Accumulator()
    for instance in character.qualities:
        base_name = strip_instance_suffix(instance.name)
        definition = game_data.quality(base_name)
        if definition is None:
            logger.debug("quality_definition_missing", name=base_name)
            continue
        for effect in definition.effects:
            for field_name, key, value in _targets(effect, instance):
                acc.fold(effect.policy, field_name, key, value)
    return acc.freeze()


def effective_attribute_limits(
    code: str, limits: AttributeLimits, modifiers: AggregateModifiers,
) -> AttributeLimits:
    """Metatype limits after quality floors, ceiling deltas, and hard caps.

    Deltas shift both the natural and augmented maximum; a hard cap then
    clamps both.
    """
    code = _key(code)
    minimum = max(limits.min, modifiers.attribute_floors.get(code, limits.min))
    delta = modifiers.attribute_ceiling_deltas.get(code, 0)
    maximum = limits.max + delta
    aug = limits.aug + delta
    cap = modifiers.attribute_ceilings.get(code)
    if cap is not None:
        maximum = min(maximum, cap)
        aug = min(aug, cap)
    return AttributeLimits(min=minimum, max=maximum, aug=aug)


def effective_skill_max(skill: str, modifiers: AggregateModifiers, default_max: int = 6) -> int:
    """Creation cap for *skill*: default + additive deltas, then any hard cap."""
    skill = _key(skill)
    maximum = default_max + modifiers.skill_ceiling_deltas.get(skill, 0)
    cap = modifiers.skill_ceilings.get(skill)
    if cap is not None:
        maximum = min(maximum, cap)
    return maximum


def skill_bonus_for(
    skill: str,
    modifiers: AggregateModifiers,
    group: str = "",
    category: str = "",
) -> int:
    """Aggregate dice-pool bonus for a skill from skill, group, and category effects."""
    bonus = modifiers.skill_bonuses.get(_key(skill), 0)
    if group:
        bonus += modifiers.skill_group_bonuses.get(_key(group), 0)
    if category:
        bonus += modifiers.skill_category_bonuses.get(_key(category), 0)
    return bonus
