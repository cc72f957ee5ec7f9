"""Convert raw game-data records into typed quality and skill definitions.

Chummer's XML (and the JSON converted from it) describes quality bonuses as
an open bag of optional keys:

    {"specificattribute": [{"name": "BOD", "val": 1}],
     "selectskill": {"max": 1},
     "cyberwareessmultiplier": 0.9,
     "uneducated": true}

parse_quality_bonus() walks that bag once and emits the closed effect
variants from models.quality. Unknown keys are skipped; malformed values
raise ValueError.
"""

from typing import Any

import structlog

from sr4_planner.models.constants import AugmentationKind, QualityCategory
from sr4_planner.models.quality import (
    AttributeBonus,
    AttributeCeiling,
    AttributeFloor,
    BonusEffect,
    EnableTab,
    EssenceMultiplier,
    FlySpeed,
    PercentModifier,
    PercentStat,
    QualityDefinition,
    QualityFlag,
    QualityFlagName,
    ScalarStat,
    SelectedAttributeBonus,
    SelectedSkillBonus,
    SkillBonus,
    SkillCategoryBonus,
    SkillCeiling,
    SkillDefinition,
    SkillGroupBonus,
    Skillwire,
    StatBonus,
)

logger = structlog.get_logger(__name__)


# Raw key -> additive scalar stat.
_SCALAR_KEYS: dict[str, ScalarStat] = {
    "initiative": ScalarStat.INITIATIVE,
    "initiativepass": ScalarStat.INITIATIVE_PASSES,
    "conditionmonitor": ScalarStat.CONDITION_MONITOR,
    "composure": ScalarStat.COMPOSURE,
    "judgeintentions": ScalarStat.JUDGE_INTENTIONS,
    "damageresistance": ScalarStat.DAMAGE_RESISTANCE,
    "drainresist": ScalarStat.DRAIN_RESISTANCE,
    "notoriety": ScalarStat.NOTORIETY,
    "reach": ScalarStat.REACH,
    "unarmeddv": ScalarStat.UNARMED_DV,
    "restricteditemcount": ScalarStat.RESTRICTED_ITEM_COUNT,
    "freepositivequalities": ScalarStat.FREE_POSITIVE_QUALITY_BP,
    "freenegativequalities": ScalarStat.FREE_NEGATIVE_QUALITY_BP,
    "nuyenmaxbp": ScalarStat.NUYEN_MAX_BP,
}

_PERCENT_KEYS: dict[str, PercentStat] = {
    "lifestylecost": PercentStat.LIFESTYLE_COST,
    "movementpercent": PercentStat.MOVEMENT,
    "swimpercent": PercentStat.SWIM,
}

_MULTIPLIER_KEYS: dict[str, AugmentationKind] = {
    "cyberwareessmultiplier": AugmentationKind.CYBERWARE,
    "biowareessmultiplier": AugmentationKind.BIOWARE,
}

_FLAG_KEYS: dict[str, QualityFlagName] = {
    "uneducated": QualityFlagName.UNEDUCATED,
    "uncouth": QualityFlagName.UNCOUTH,
    "infirm": QualityFlagName.INFIRM,
    "sensitivesystem": QualityFlagName.SENSITIVE_SYSTEM,
    "blackmarketdiscount": QualityFlagName.BLACK_MARKET_DISCOUNT,
}

_STRUCTURED_KEYS = frozenset({
    "specificattribute", "selectattribute", "specificskill", "selectskill",
    "skillgroup", "skillcategory", "enabletab", "flyspeed", "skillwire",
})


def _as_int(value: Any, context: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{context}: expected a number, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{context}: expected a number, got {value!r}") from exc


def _as_float(value: Any, context: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{context}: expected a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{context}: expected a number, got {value!r}") from exc


def _as_list(value: Any) -> list[dict[str, Any]]:
    """XML-derived JSON collapses single-element lists into a bare object."""
    if isinstance(value, dict):
        return [value]
    return list(value)


def _parse_specific_attributes(entries: Any) -> list[BonusEffect]:
    effects: list[BonusEffect] = []
    for entry in _as_list(entries):
        code = str(entry["name"]).lower()
        if entry.get("val") is not None:
            effects.append(AttributeBonus(code, _as_int(entry["val"], f"{code}.val")))
        if entry.get("min") is not None:
            effects.append(AttributeFloor(code, _as_int(entry["min"], f"{code}.min")))
        if entry.get("max") is not None:
            effects.append(AttributeCeiling(code, _as_int(entry["max"], f"{code}.max")))
    return effects


def _parse_select_attribute(entry: dict[str, Any]) -> SelectedAttributeBonus:
    # selectattribute.min lowers the chosen attribute's maximum (Impaired
    # Attribute); selectattribute.max raises it (Exceptional Attribute).
    delta = 0
    if entry.get("max") is not None:
        delta += _as_int(entry["max"], "selectattribute.max")
    if entry.get("min") is not None:
        delta -= _as_int(entry["min"], "selectattribute.min")
    bonus = 0
    if entry.get("val") is not None:
        bonus = _as_int(entry["val"], "selectattribute.val")
    return SelectedAttributeBonus(bonus=bonus, ceiling_delta=delta)


def _parse_specific_skills(entries: Any) -> list[BonusEffect]:
    effects: list[BonusEffect] = []
    for entry in _as_list(entries):
        name = str(entry["name"])
        if entry.get("bonus") is not None:
            effects.append(SkillBonus(name, _as_int(entry["bonus"], f"{name}.bonus")))
        if entry.get("max") is not None:
            effects.append(SkillCeiling(name, _as_int(entry["max"], f"{name}.max")))
    return effects


def _parse_select_skill(entry: dict[str, Any]) -> SelectedSkillBonus:
    bonus = 0
    delta = 0
    if entry.get("bonus") is not None:
        bonus = _as_int(entry["bonus"], "selectskill.bonus")
    if entry.get("max") is not None:
        delta = _as_int(entry["max"], "selectskill.max")
    return SelectedSkillBonus(bonus=bonus, ceiling_delta=delta)


def parse_quality_bonus(raw: dict[str, Any] | None) -> tuple[BonusEffect, ...]:
    """Turn a raw bonus bag into a tuple of typed effects."""
    if not raw:
        return ()

    effects: list[BonusEffect] = []

    if "specificattribute" in raw:
        effects.extend(_parse_specific_attributes(raw["specificattribute"]))
    if "selectattribute" in raw:
        effects.append(_parse_select_attribute(raw["selectattribute"]))
    if "specificskill" in raw:
        effects.extend(_parse_specific_skills(raw["specificskill"]))
    if "selectskill" in raw:
        effects.append(_parse_select_skill(raw["selectskill"]))
    for entry in _as_list(raw.get("skillgroup") or []):
        if entry.get("bonus") is not None:
            name = str(entry["name"])
            effects.append(SkillGroupBonus(name, _as_int(entry["bonus"], f"{name}.bonus")))
    for entry in _as_list(raw.get("skillcategory") or []):
        if entry.get("bonus") is not None:
            name = str(entry["name"])
            effects.append(SkillCategoryBonus(name, _as_int(entry["bonus"], f"{name}.bonus")))
    if raw.get("enabletab"):
        effects.append(EnableTab(str(raw["enabletab"])))
    if raw.get("flyspeed") is not None:
        effects.append(FlySpeed(_as_int(raw["flyspeed"], "flyspeed")))
    if raw.get("skillwire") is not None:
        effects.append(Skillwire(_as_int(raw["skillwire"], "skillwire")))

    for key, value in raw.items():
        if value is None:
            continue
        if key in _SCALAR_KEYS:
            effects.append(StatBonus(_SCALAR_KEYS[key], _as_int(value, key)))
        elif key in _PERCENT_KEYS:
            effects.append(PercentModifier(_PERCENT_KEYS[key], _as_int(value, key)))
        elif key in _MULTIPLIER_KEYS:
            effects.append(EssenceMultiplier(_MULTIPLIER_KEYS[key], _as_float(value, key)))
        elif key in _FLAG_KEYS:
            if value:
                effects.append(QualityFlag(_FLAG_KEYS[key]))
        elif key not in _STRUCTURED_KEYS:
            logger.debug("unknown_bonus_key", key=key)

    return tuple(effects)


def _parse_requirements(raw: Any) -> tuple[tuple[str, ...], ...]:
    """Accept ["A", ["B", "C"]] meaning A AND (B OR C)."""
    if not raw:
        return ()
    clauses: list[tuple[str, ...]] = []
    for item in raw:
        if isinstance(item, str):
            clauses.append((item,))
        else:
            clauses.append(tuple(str(name) for name in item))
    return tuple(clauses)


def parse_quality(raw: dict[str, Any]) -> QualityDefinition:
    """Build a QualityDefinition from one game-data quality record."""
    name = raw.get("name")
    if not name:
        raise ValueError("quality record has no name")
    category = raw.get("category", QualityCategory.POSITIVE.value)
    if category not in (QualityCategory.POSITIVE.value, QualityCategory.NEGATIVE.value):
        raise ValueError(f"quality {name!r} has unknown category {category!r}")
    return QualityDefinition(
        name=str(name),
        category=category,
        bp=_as_int(raw.get("bp", 0), f"{name}.bp"),
        effects=parse_quality_bonus(raw.get("bonus")),
        limit=_as_int(raw.get("limit", 1), f"{name}.limit"),
        requires=_parse_requirements(raw.get("requires")),
        forbids=tuple(str(n) for n in raw.get("forbids", ())),
    )


def parse_skill(raw: dict[str, Any]) -> SkillDefinition:
    """Build a SkillDefinition from one game-data skill record."""
    name = raw.get("name")
    if not name:
        raise ValueError("skill record has no name")
    attribute = raw.get("attribute")
    if not attribute:
        raise ValueError(f"skill {name!r} has no governing attribute")
    return SkillDefinition(
        name=str(name),
        attribute=str(attribute).lower(),
        category=str(raw.get("category", "")),
        group=str(raw.get("skillgroup", "") or ""),
        allows_default=bool(raw.get("default", True)),
        specializations=tuple(str(s) for s in raw.get("specializations", ())),
    )
