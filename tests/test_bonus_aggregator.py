"""Tests for the bonus aggregator: combine policies, lookup, and order independence."""

import random

import pytest

from sr4_planner.engine.bonus_aggregator import (
    AggregateModifiers,
    aggregate,
    effective_attribute_limits,
    effective_skill_max,
    skill_bonus_for,
    strip_instance_suffix,
)
from sr4_planner.models.character import AttributeLimits, Character, CharacterQuality
from sr4_planner.models.constants import AugmentationKind
from sr4_planner.models.game_data import GameData
from sr4_planner.models.quality import (
    AttributeBonus,
    AttributeCeiling,
    AttributeFloor,
    CombinePolicy,
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
    SkillCategoryBonus,
    SkillCeiling,
    SkillGroupBonus,
    Skillwire,
    StatBonus,
)


def _data(*definitions: QualityDefinition) -> GameData:
    return GameData.from_definitions(qualities=list(definitions))


def _char(*names: str, **selection) -> Character:
    char = Character()
    char.qualities = [CharacterQuality(name, **selection) for name in names]
    return char


def _q(name: str, *effects) -> QualityDefinition:
    return QualityDefinition(name=name, effects=tuple(effects))


# --- Identity ---

def test_no_qualities_gives_identity():
    assert aggregate(Character(), GameData()) == AggregateModifiers()


def test_identity_values():
    mods = AggregateModifiers()
    assert mods.initiative == 0
    assert mods.cyberware_essence_multiplier == 1.0
    assert mods.enabled_tabs == frozenset()
    assert not mods.uneducated


# --- Lookup ---

def test_strip_instance_suffix():
    assert strip_instance_suffix("Aptitude #2") == "Aptitude"
    assert strip_instance_suffix("Aptitude") == "Aptitude"
    assert strip_instance_suffix("Ranked #1 Fan") == "Ranked #1 Fan"


def test_unknown_quality_contributes_nothing():
    assert aggregate(_char("Not In Data"), GameData()) == AggregateModifiers()


def test_suffixed_instance_uses_base_definition():
    data = _data(_q("Toughness", StatBonus(ScalarStat.DAMAGE_RESISTANCE, 1)))
    mods = aggregate(_char("Toughness #2"), data)
    assert mods.damage_resistance == 1


# --- ADD ---

def test_two_plus_one_attribute_bonuses_sum():
    """+1 AGI and +1 AGI -> +2."""
    data = _data(
        _q("A", AttributeBonus("agi", 1)),
        _q("B", AttributeBonus("agi", 1)),
    )
    mods = aggregate(_char("A", "B"), data)
    assert mods.attribute_bonuses == {"agi": 2}


def test_scalar_bonuses_sum():
    data = _data(
        _q("A", StatBonus(ScalarStat.INITIATIVE, 1)),
        _q("B", StatBonus(ScalarStat.INITIATIVE, 2)),
    )
    assert aggregate(_char("A", "B"), data).initiative == 3


def test_percentages_add_not_compound():
    """+50% and +25% -> +75%."""
    data = _data(
        _q("A", PercentModifier(PercentStat.MOVEMENT, 50)),
        _q("B", PercentModifier(PercentStat.MOVEMENT, 25)),
    )
    assert aggregate(_char("A", "B"), data).movement_percent == 75


def test_group_and_category_bonuses():
    data = _data(
        _q("A", SkillGroupBonus("Athletics", 1), SkillCategoryBonus("Social Active", 2)),
    )
    mods = aggregate(_char("A"), data)
    assert mods.skill_group_bonuses == {"athletics": 1}
    assert mods.skill_category_bonuses == {"social active": 2}


# --- MAX / MIN ---

def test_attribute_floor_highest_wins():
    data = _data(_q("A", AttributeFloor("str", 2)), _q("B", AttributeFloor("str", 3)))
    assert aggregate(_char("A", "B"), data).attribute_floors == {"str": 3}


def test_attribute_ceiling_tightest_wins():
    data = _data(_q("A", AttributeCeiling("str", 5)), _q("B", AttributeCeiling("str", 4)))
    assert aggregate(_char("A", "B"), data).attribute_ceilings == {"str": 4}


def test_fly_speed_and_skillwire_max_wins():
    data = _data(
        _q("A", FlySpeed(6), Skillwire(2)),
        _q("B", FlySpeed(4), Skillwire(3)),
    )
    mods = aggregate(_char("A", "B"), data)
    assert mods.fly_speed == 6
    assert mods.skillwire == 3


# --- PRODUCT ---

def test_essence_multipliers_multiply():
    """0.8 x 0.9 = 0.72."""
    data = _data(
        _q("A", EssenceMultiplier(AugmentationKind.CYBERWARE, 0.8)),
        _q("B", EssenceMultiplier(AugmentationKind.CYBERWARE, 0.9)),
    )
    mods = aggregate(_char("A", "B"), data)
    assert mods.cyberware_essence_multiplier == pytest.approx(0.72)
    assert mods.bioware_essence_multiplier == 1.0


# --- UNION / OR ---

def test_tabs_union_and_flags_or():
    data = _data(
        _q("A", EnableTab("adept"), QualityFlag(QualityFlagName.UNCOUTH)),
        _q("B", EnableTab("adept"), EnableTab("critter")),
    )
    mods = aggregate(_char("A", "B"), data)
    assert mods.enabled_tabs == frozenset({"adept", "critter"})
    assert mods.uncouth
    assert not mods.infirm


# --- Selection-dependent effects ---

def test_selected_skill_bonus_needs_selection():
    data = _data(_q("Aptitude", SelectedSkillBonus(ceiling_delta=1)))
    assert aggregate(_char("Aptitude"), data).skill_ceiling_deltas == {}


def test_selected_skill_bonus_targets_selection():
    data = _data(_q("Aptitude", SelectedSkillBonus(ceiling_delta=1)))
    mods = aggregate(_char("Aptitude", selected_skill="Pistols"), data)
    assert mods.skill_ceiling_deltas == {"pistols": 1}


def test_selected_attribute_bonus_targets_selection():
    data = _data(_q("Exceptional Attribute", SelectedAttributeBonus(ceiling_delta=1)))
    mods = aggregate(_char("Exceptional Attribute", selected_attribute="AGI"), data)
    assert mods.attribute_ceiling_deltas == {"agi": 1}


def test_skill_selection_matches_regardless_of_case():
    data = _data(
        _q("Focus", SelectedSkillBonus(bonus=2)),
        _q("Aptitude", SelectedSkillBonus(ceiling_delta=1)),
    )
    char = Character()
    char.qualities = [
        CharacterQuality("Focus", selected_skill="pistols"),
        CharacterQuality("Aptitude", selected_skill="PISTOLS"),
    ]
    mods = aggregate(char, data)
    assert skill_bonus_for("Pistols", mods) == 2
    assert effective_skill_max("Pistols", mods) == 7


def test_ceiling_override_and_delta_are_separate():
    data = _data(
        _q("Aptitude", SelectedSkillBonus(ceiling_delta=1)),
        _q("Cap", SkillCeiling("Pistols", 4)),
    )
    mods = aggregate(_char("Aptitude", "Cap", selected_skill="Pistols"), data)
    assert mods.skill_ceiling_deltas == {"pistols": 1}
    assert mods.skill_ceilings == {"pistols": 4}


# --- Determinism ---

def _rich_data() -> GameData:
    return _data(
        _q("A", AttributeBonus("agi", 1), EssenceMultiplier(AugmentationKind.CYBERWARE, 0.8)),
        _q("B", AttributeBonus("agi", 1), FlySpeed(4)),
        _q("C", EssenceMultiplier(AugmentationKind.CYBERWARE, 0.9), EnableTab("magic")),
        _q("D", AttributeCeiling("str", 5), EssenceMultiplier(AugmentationKind.CYBERWARE, 0.7)),
        _q("E", StatBonus(ScalarStat.NOTORIETY, 1), QualityFlag(QualityFlagName.INFIRM)),
    )


def test_reaggregation_is_value_equal():
    data = _rich_data()
    char = _char("A", "B", "C", "D", "E")
    assert aggregate(char, data) == aggregate(char, data)


def test_quality_order_does_not_matter():
    data = _rich_data()
    names = ["A", "B", "C", "D", "E"]
    expected = aggregate(_char(*names), data)
    rng = random.Random(4)
    for _ in range(20):
        rng.shuffle(names)
        assert aggregate(_char(*names), data) == expected


# --- Helpers ---

def test_effective_skill_max_delta_then_cap():
    mods = AggregateModifiers(skill_ceiling_deltas={"Pistols": 1}, skill_ceilings={"Pistols": 5})
    assert effective_skill_max("Pistols", mods) == 5
    assert effective_skill_max("Pistols", AggregateModifiers(skill_ceiling_deltas={"Pistols": 1})) == 7
    assert effective_skill_max("Dodge", mods) == 6


def test_effective_attribute_limits():
    mods = AggregateModifiers(
        attribute_floors={"bod": 2},
        attribute_ceiling_deltas={"bod": 1},
    )
    limits = effective_attribute_limits("bod", AttributeLimits(1, 6, 9), mods)
    assert limits == AttributeLimits(min=2, max=7, aug=10)


def test_effective_attribute_limits_hard_cap():
    mods = AggregateModifiers(attribute_ceilings={"str": 4})
    limits = effective_attribute_limits("str", AttributeLimits(1, 6, 9), mods)
    assert limits.max == 4
    assert limits.aug == 4


def test_skill_bonus_for_sums_sources():
    mods = AggregateModifiers(
        skill_bonuses={"Running": 1},
        skill_group_bonuses={"Athletics": 2},
        skill_category_bonuses={"Physical Active": 1},
    )
    assert skill_bonus_for("Running", mods, "Athletics", "Physical Active") == 4
    assert skill_bonus_for("Running", mods) == 1


# --- Read-only result ---

def test_modifier_maps_are_read_only():
    data = _data(_q("A", AttributeBonus("agi", 1)))
    mods = aggregate(_char("A"), data)
    with pytest.raises(TypeError):
        mods.attribute_bonuses["agi"] = 5
    with pytest.raises(TypeError):
        AggregateModifiers().skill_bonuses["pistols"] = 1
    assert AggregateModifiers().skill_bonuses == {}


def test_constructor_input_is_copied():
    bonuses = {"bod": 1}
    mods = AggregateModifiers(attribute_bonuses=bonuses)
    bonuses["bod"] = 4
    assert mods.attribute_bonuses == {"bod": 1}


# --- Declared policy drives the fold ---

def test_fold_follows_declared_policy(monkeypatch):
    data = _data(_q("A", FlySpeed(6)), _q("B", FlySpeed(4)))
    assert aggregate(_char("A", "B"), data).fly_speed == 6
    monkeypatch.setattr(FlySpeed, "policy", CombinePolicy.ADD)
    assert aggregate(_char("A", "B"), data).fly_speed == 10
