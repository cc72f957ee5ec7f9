"""Tests for DerivedStats: formula verification with known inputs."""

import pytest

from sr4_planner.engine.bonus_aggregator import AggregateModifiers
from sr4_planner.models.character import (
    AdeptPower,
    Armor,
    AttributeValue,
    Character,
    CharacterSkill,
    Cyberware,
    Lifestyle,
    MagicProfile,
    ResonanceProfile,
)
from sr4_planner.models.derived_stats import (
    DerivedStats,
    armor_total,
    calculate_all,
    dice_pool,
    wound_modifier,
)
from sr4_planner.models.game_data import GameData
from sr4_planner.models.quality import SkillDefinition


@pytest.fixture
def calc():
    """DerivedStats with default ruleset."""
    return DerivedStats()


def _char(**attrs: int) -> Character:
    char = Character()
    for code, base in attrs.items():
        char.attributes[code] = AttributeValue(base=base)
    return char


# --- Condition monitors ---

def test_physical_cm_bod_4(calc):
    """BOD 4: ceil(4/2) + 8 = 10."""
    assert calc.physical_cm(4) == 10


def test_physical_cm_bod_5(calc):
    """BOD 5: ceil(5/2) + 8 = 11."""
    assert calc.physical_cm(5) == 11


def test_stun_cm_wil_3(calc):
    """WIL 3: ceil(3/2) + 8 = 10."""
    assert calc.stun_cm(3) == 10


# --- Wound modifier ---

def test_wound_modifier_six_physical():
    """6 physical: -(2 + 0) = -2."""
    assert wound_modifier(6, 0) == -2


def test_wound_modifier_both_tracks():
    """5 physical, 4 stun: -(1 + 1) = -2."""
    assert wound_modifier(5, 4) == -2


def test_wound_modifier_undamaged():
    assert wound_modifier(0, 2) == 0


# --- Limits ---

def test_physical_limit(calc):
    """STR 4, BOD 3, REA 3: ceil((8+3+3)/3) = ceil(4.67) = 5."""
    assert calc.physical_limit(4, 3, 3) == 5


def test_mental_limit(calc):
    """LOG 3, INT 3, WIL 3: ceil(12/3) = 4."""
    assert calc.mental_limit(3, 3, 3) == 4


def test_social_limit_uses_floor_essence(calc):
    """CHA 3, WIL 3, ESS 5.4: ceil((6+3+5)/3) = ceil(4.67) = 5."""
    assert calc.social_limit(3, 3, 5.4) == 5


# --- Movement ---

def test_walk_and_run(calc):
    """AGI 3: walk 6, run 12."""
    assert calc.walk_speed(3) == 6
    assert calc.run_speed(3) == 12


def test_movement_percent(calc):
    """AGI 4, +50%: walk 8 * 1.5 = 12."""
    assert calc.walk_speed(4, 50) == 12


def test_swim_is_half_walk(calc):
    assert calc.swim_speed(8) == 4


def test_sprint_bonus_by_metatype(calc):
    assert calc.sprint_bonus("Elf") == 1
    assert calc.sprint_bonus("Night One (Elf)") == 1
    assert calc.sprint_bonus("Centaur") == 2
    assert calc.sprint_bonus("Human") == 0


# --- Magic ---

def test_drain_hermetic_uses_logic(calc):
    """Hermetic: WIL 4 + LOG 5 = 9."""
    assert calc.drain_resistance("Hermetic", 4, 5, 2) == 9


def test_drain_chaos_uses_logic(calc):
    assert calc.drain_resistance("Chaos Magic", 4, 5, 2) == 9


def test_drain_shamanic_uses_charisma(calc):
    """Shamanic: WIL 4 + CHA 2 = 6."""
    assert calc.drain_resistance("Shamanic", 4, 5, 2) == 6


# --- Armor ---

def test_layering_armor():
    """[8, 6, 4]: 8 + 3 + 2 = 13."""
    armor = [Armor("Jacket", ballistic=8), Armor("Vest", ballistic=6), Armor("Coat", ballistic=4)]
    assert armor_total(armor) == 13


def test_layering_sorts_descending():
    armor = [Armor("Coat", ballistic=4), Armor("Jacket", ballistic=8), Armor("Vest", ballistic=6)]
    assert armor_total(armor) == 13


def test_unequipped_armor_ignored():
    armor = [Armor("Jacket", ballistic=8), Armor("Spare", ballistic=6, equipped=False)]
    assert armor_total(armor) == 8


def test_impact_layering_independent():
    armor = [Armor("Jacket", ballistic=8, impact=2), Armor("Helmet", ballistic=1, impact=6)]
    assert armor_total(armor, "impact") == 7


def test_no_armor():
    assert armor_total([]) == 0


# --- Dice pools ---

def test_dice_pool_skill_plus_attribute():
    """Pistols 4 + AGI 5 + bonus 1 = 10."""
    char = _char(agi=5)
    char.skills = [CharacterSkill("Pistols", rating=4, bonus=1)]
    assert dice_pool(char, "Pistols", "agi") == 10


def test_dice_pool_with_wounds():
    char = _char(agi=5)
    char.skills = [CharacterSkill("Pistols", rating=4)]
    char.condition.physical_damage = 6
    assert dice_pool(char, "Pistols", "agi") == 7


def test_dice_pool_floors_at_zero():
    char = _char(agi=1)
    char.skills = [CharacterSkill("Pistols", rating=1)]
    char.condition.physical_damage = 9
    char.condition.stun_damage = 9
    assert dice_pool(char, "Pistols", "agi") == 0


def test_dice_pool_defaulting():
    """Absent skill, AGI 4: 4 - 1 = 3."""
    assert dice_pool(_char(agi=4), "Pistols", "agi") == 3


def test_dice_pool_defaulting_never_negative():
    char = _char()
    char.attributes["agi"] = AttributeValue(base=0)
    assert dice_pool(char, "Pistols", "agi") == 0


def test_dice_pool_no_default_allowed():
    data = GameData.from_definitions(
        skills=[SkillDefinition("Medicine", "log", allows_default=False)],
    )
    assert dice_pool(_char(log=5), "Medicine", game_data=data) == 0


def test_dice_pool_attribute_from_game_data():
    data = GameData.from_definitions(skills=[SkillDefinition("Perception", "int")])
    char = _char(int=4)
    char.skills = [CharacterSkill("Perception", rating=3)]
    assert dice_pool(char, "Perception", game_data=data) == 7


def test_dice_pool_aggregate_group_bonus():
    data = GameData.from_definitions(
        skills=[SkillDefinition("Running", "str", group="Athletics")],
    )
    mods = AggregateModifiers(skill_group_bonuses={"Athletics": 2}, skill_bonuses={"Running": 1})
    char = _char(str=3)
    char.skills = [CharacterSkill("Running", rating=2)]
    assert dice_pool(char, "Running", modifiers=mods, game_data=data) == 8


def test_dice_pool_skill_name_case_insensitive():
    char = _char(rea=3)
    char.skills = [CharacterSkill("dodge", rating=2)]
    assert dice_pool(char, "Dodge", "rea") == 5


def test_dice_pool_selected_skill_bonus_ignores_case():
    """Focus on 'pistols' still adds to Pistols: 3 + AGI 3 + 2 = 8."""
    mods = AggregateModifiers(skill_bonuses={"pistols": 2})
    char = _char(agi=3)
    char.skills = [CharacterSkill("Pistols", rating=3)]
    assert dice_pool(char, "Pistols", "agi", modifiers=mods) == 8


# --- calculate_all ---

def test_end_to_end_condition_and_wounds():
    """BOD 4 -> 10 boxes, WIL 3 -> 10 boxes; 6 physical -> -2 on every pool."""
    char = _char(bod=4, wil=3, agi=4)
    char.skills = [CharacterSkill("Pistols", rating=3)]
    stats = calculate_all(char)
    assert stats.physical_cm == 10
    assert stats.stun_cm == 10
    before = dice_pool(char, "Pistols", "agi")

    char.condition.physical_damage = 6
    stats = calculate_all(char)
    assert stats.wound_modifier == -2
    assert dice_pool(char, "Pistols", "agi") == before - 2


def test_calculate_all_applies_aggregate_attribute_bonus():
    char = _char(bod=4)
    stats = calculate_all(char, AggregateModifiers(attribute_bonuses={"bod": 2}))
    assert stats.effective_attributes["bod"] == 6
    assert stats.physical_cm == 11


def test_effective_attributes_are_read_only():
    stats = calculate_all(_char(bod=4))
    with pytest.raises(TypeError):
        stats.effective_attributes["bod"] = 9


def test_default_modifiers_are_not_shared():
    first = calculate_all(_char(bod=4))
    with pytest.raises(TypeError):
        AggregateModifiers().attribute_bonuses["bod"] = 5
    assert calculate_all(_char(bod=4)) == first
    assert first.physical_cm == 10


def test_calculate_all_condition_monitor_bonus():
    stats = calculate_all(_char(bod=4), AggregateModifiers(condition_monitor=1))
    assert stats.physical_cm == 11


def test_initiative_with_reflex_family():
    """REA 4 + INT 3 + max(wired 1, booster 2) = 9, dice 1 + 2 = 3."""
    char = _char(rea=4, int=3)
    char.equipment.cyberware = [
        Cyberware("Wired Reflexes", rating=1),
        Cyberware("Synaptic Booster", kind="bioware", rating=2),
    ]
    stats = calculate_all(char)
    assert stats.initiative == 9
    assert stats.initiative_dice == 3


def test_initiative_reaction_enhancers():
    """REA 3 + INT 3 + reaction enhancers 2 = 8, no extra dice."""
    char = _char(rea=3, int=3)
    char.equipment.cyberware = [Cyberware("Reaction Enhancers", rating=2)]
    stats = calculate_all(char)
    assert stats.initiative == 8
    assert stats.initiative_bonus == 2
    assert stats.initiative_dice == 1


def test_initiative_quality_passes():
    stats = calculate_all(_char(rea=3, int=3), AggregateModifiers(initiative=1, initiative_passes=1))
    assert stats.initiative == 7
    assert stats.initiative_dice == 2


def test_mundane_has_no_magic_stats():
    stats = calculate_all(_char())
    assert stats.drain_resistance == 0
    assert stats.astral_initiative == 0
    assert stats.astral_initiative_dice == 0
    assert stats.fading_resistance == 0
    assert stats.matrix_initiative == 0


def test_awakened_stats():
    char = _char(wil=4, log=5, int=3, mag=5)
    char.magic = MagicProfile(tradition="Hermetic", powers=[AdeptPower("Killing Hands")])
    stats = calculate_all(char, AggregateModifiers(drain_resistance=1))
    assert stats.drain_resistance == 10
    assert stats.astral_initiative == 6
    assert stats.astral_initiative_dice == 2


def test_technomancer_stats():
    char = _char(wil=4, int=3, res=5)
    char.resonance = ResonanceProfile(stream="Technoshaman")
    stats = calculate_all(char)
    assert stats.fading_resistance == 9
    assert stats.matrix_initiative == 8
    assert stats.matrix_initiative_dice == 3


def test_attribute_tests_take_wounds_resistance_does_not():
    char = _char(bod=4, str=3, cha=3, wil=3)
    char.equipment.armor = [Armor("Jacket", ballistic=8)]
    char.condition.stun_damage = 3
    stats = calculate_all(char)
    assert stats.composure == 5
    assert stats.lift_carry == 6
    assert stats.damage_resistance == 12


def test_unarmed_dv_and_reach():
    stats = calculate_all(_char(str=5), AggregateModifiers(unarmed_dv=1, reach=1))
    assert stats.unarmed_dv == 4
    assert stats.reach == 1


def test_lifestyle_cost_percent():
    char = _char()
    char.equipment.lifestyle = Lifestyle("Middle", monthly_cost=5000)
    stats = calculate_all(char, AggregateModifiers(lifestyle_cost_percent=10))
    assert stats.lifestyle_cost == 5500


def test_essence_cost_grade_and_quality_multiplier():
    """2.0 Alphaware (0.8) with 0.9 quality multiplier = 1.44."""
    char = _char()
    char.equipment.cyberware = [Cyberware("Cybereyes", grade="Alphaware", essence=2.0)]
    stats = calculate_all(char, AggregateModifiers(cyberware_essence_multiplier=0.9))
    assert stats.essence_cost == pytest.approx(1.44)


def test_bioware_multiplier_only_hits_bioware():
    char = _char()
    char.equipment.cyberware = [
        Cyberware("Datajack", essence=0.1),
        Cyberware("Muscle Toner", kind="bioware", essence=0.4),
    ]
    stats = calculate_all(char, AggregateModifiers(bioware_essence_multiplier=0.5))
    assert stats.essence_cost == pytest.approx(0.3)


def test_calculate_all_is_deterministic():
    char = _char(bod=5, agi=4, rea=3, str=3, cha=2, int=4, log=3, wil=3)
    assert calculate_all(char) == calculate_all(char)
