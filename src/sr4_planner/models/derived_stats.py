"""Derived stat calculator for SR4 characters.

Each formula method mirrors the SR4A core rulebook's calculation. Ruleset
constants (drain pairings, dice counts, named tests) come from BuildConfig;
formula structure is hardcoded here.

Effective attribute = resolver total (base + bonus) + aggregate quality
bonus. Implant attribute bonuses are recorded by the editor in
AttributeValue.bonus, so they are not added a second time.

References:
  - SR4A core rulebook, Condition Monitors (p.163) and Initiative (p.150)
  - SR4A optional limits rule
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from sr4_planner.engine.bonus_aggregator import AggregateModifiers, skill_bonus_for
from sr4_planner.engine.build_config import BuildConfig
from sr4_planner.models.attributes import has_attribute, total_of
from sr4_planner.models.augmentation import (
    INITIATIVE,
    INITIATIVE_DICE,
    collect_improvements,
    stacked_value,
)
from sr4_planner.models.character import Armor, Character, CharacterSkill
from sr4_planner.models.constants import AC, DamageType, PRIMARY_ATTRIBUTES, SPECIAL_ATTRIBUTES
from sr4_planner.models.game_data import GameData


# Metatype substring -> sprint bonus (metres per hit).
_SPRINT_BONUS: tuple[tuple[str, int], ...] = (
    ("elf", 1),
    ("centaur", 2),
)


def armor_total(armor: list[Armor], damage_type: str = DamageType.BALLISTIC.value) -> int:
    """Highest equipped rating + floor(v/2) for every other equipped item.

    Items are sorted descending per damage type, so the highest is never
    the one halved. [8, 6, 4] -> 8 + 3 + 2 = 13.
    """
    ratings = sorted(
        (getattr(a, damage_type) for a in armor if a.equipped),
        reverse=True,
    )
    if not ratings:
        return 0
    return ratings[0] + sum(r // 2 for r in ratings[1:])


def wound_modifier(physical_damage: int, stun_damage: int) -> int:
    """-(floor(physical/3) + floor(stun/3)); never positive."""
    return -(max(0, physical_damage) // 3 + max(0, stun_damage) // 3)


def effective_attributes(
    character: Character, modifiers: AggregateModifiers | None = None,
) -> dict[str, int]:
    """Resolver total + aggregate bonus for every attribute the character has."""
    if modifiers is None:
        modifiers = AggregateModifiers()
    codes = [c for c in PRIMARY_ATTRIBUTES if has_attribute(character, c)]
    codes += sorted(c for c in SPECIAL_ATTRIBUTES if has_attribute(character, c))
    return {
        code: max(0, total_of(character, code) + modifiers.attribute_bonuses.get(code, 0))
        for code in codes
    }


def _scale_percent(value: int, percent: int) -> int:
    """value * (100 + percent) / 100, rounded down."""
    return value * (100 + percent) // 100


def _find_skill(character: Character, name: str) -> CharacterSkill | None:
    lowered = name.lower()
    for skill in character.skills:
        if skill.name.lower() == lowered:
            return skill
    return None


class DerivedStats:
    """Computes derived stats from effective attributes."""

    def __init__(self, config: BuildConfig | None = None) -> None:
        self._config = config or BuildConfig()

    def physical_cm(self, body: int, bonus: int = 0) -> int:
        """Physical CM = ceil(BOD/2) + 8 + bonus."""
        return math.ceil(body / 2) + 8 + bonus

    def stun_cm(self, willpower: int) -> int:
        """Stun CM = ceil(WIL/2) + 8."""
        return math.ceil(willpower / 2) + 8

    def overflow(self, body: int) -> int:
        """Overflow boxes before death = BOD."""
        return body

    def initiative(self, reaction: int, intuition: int, bonus: int = 0) -> int:
        """Initiative = REA + INT + bonus."""
        return reaction + intuition + bonus

    def initiative_dice(self, augmented_dice: int = 0, extra_passes: int = 0) -> int:
        """Passes = 1 + best reflex augmentation + quality passes."""
        return 1 + augmented_dice + extra_passes

    def physical_limit(self, strength: int, body: int, reaction: int) -> int:
        """ceil((STR*2 + BOD + REA) / 3)."""
        return math.ceil((strength * 2 + body + reaction) / 3)

    def mental_limit(self, logic: int, intuition: int, willpower: int) -> int:
        """ceil((LOG*2 + INT + WIL) / 3)."""
        return math.ceil((logic * 2 + intuition + willpower) / 3)

    def social_limit(self, charisma: int, willpower: int, essence: float) -> int:
        """ceil((CHA*2 + WIL + floor(ESS)) / 3)."""
        return math.ceil((charisma * 2 + willpower + math.floor(essence)) / 3)

    def walk_speed(self, agility: int, percent: int = 0) -> int:
        """Walk = AGI * 2 metres/turn, scaled by movement percent."""
        return _scale_percent(agility * 2, percent)

    def run_speed(self, agility: int, percent: int = 0) -> int:
        """Run = AGI * 4 metres/turn, scaled by movement percent."""
        return _scale_percent(agility * 4, percent)

    def swim_speed(self, walk: int, percent: int = 0) -> int:
        """Swim = walk / 2, scaled by swim percent."""
        return _scale_percent(walk // 2, percent)

    def sprint_bonus(self, metatype: str) -> int:
        lowered = metatype.lower()
        for fragment, bonus in _SPRINT_BONUS:
            if fragment in lowered:
                return bonus
        return 0

    def drain_resistance(self, tradition: str, willpower: int, logic: int, charisma: int) -> int:
        """WIL + LOG for hermetic-style traditions, WIL + CHA otherwise."""
        lowered = tradition.lower()
        if any(t in lowered for t in self._config.drain_logic_traditions):
            return willpower + logic
        return willpower + charisma

    def astral_initiative(self, intuition: int) -> int:
        """Astral initiative = INT * 2."""
        return intuition * 2

    def matrix_initiative(self, intuition: int, resonance: int) -> int:
        """Hot-sim matrix initiative = INT + RES."""
        return intuition + resonance

    def fading_resistance(self, resonance: int, willpower: int) -> int:
        """Fading resistance = RES + WIL."""
        return resonance + willpower

    def unarmed_dv(self, strength: int, bonus: int = 0) -> int:
        """Unarmed DV = ceil(STR/2) + bonus."""
        return math.ceil(strength / 2) + bonus

    def essence_cost(self, character: Character, modifiers: AggregateModifiers) -> float:
        """Sum of essence * grade multiplier * quality multiplier over implants."""
        total = 0.0
        for implant in character.equipment.cyberware:
            total += (
                implant.essence
                * self._config.grade_multiplier(implant.grade)
                * modifiers.essence_multiplier(implant.kind)
            )
        return total


@dataclass(frozen=True)
class CharacterStats:
    """Complete computed stat snapshot for a character."""

    effective_attributes: Mapping[str, int] = field(default_factory=dict)

    # Condition monitors
    physical_cm: int = 0
    stun_cm: int = 0
    overflow: int = 0
    wound_modifier: int = 0

    # Initiative
    initiative: int = 0
    initiative_bonus: int = 0
    initiative_dice: int = 1

    # Movement
    walk_speed: int = 0
    run_speed: int = 0
    swim_speed: int = 0
    fly_speed: int = 0
    sprint_bonus: int = 0

    # Limits
    physical_limit: int = 0
    mental_limit: int = 0
    social_limit: int = 0

    # Combat
    armor_ballistic: int = 0
    armor_impact: int = 0
    defense: int = 0
    dodge: int = 0
    damage_resistance: int = 0
    unarmed_dv: int = 0
    reach: int = 0

    # Attribute-only tests
    composure: int = 0
    judge_intentions: int = 0
    memory: int = 0
    lift_carry: int = 0
    perception: int = 0

    # Magic (0 when mundane)
    drain_resistance: int = 0
    astral_initiative: int = 0
    astral_initiative_dice: int = 0

    # Matrix (0 unless emerged)
    fading_resistance: int = 0
    matrix_initiative: int = 0
    matrix_initiative_dice: int = 0

    # Bookkeeping
    notoriety: int = 0
    lifestyle_cost: int = 0
    essence_cost: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "effective_attributes", MappingProxyType(dict(self.effective_attributes)),
        )


def dice_pool(
    character: Character,
    skill: str,
    attribute: str | None = None,
    modifiers: AggregateModifiers | None = None,
    game_data: GameData | None = None,
) -> int:
    """Dice pool for a skill test, floored at 0.

    rating + attribute + skill bonus + aggregate bonuses + wound modifier.
    A skill the character lacks defaults to max(0, attribute - 1) if the
    skill allows defaulting, else 0. The governing attribute comes from
    game data when *attribute* is not given.
    """
    if modifiers is None:
        modifiers = AggregateModifiers()
    definition = game_data.skill(skill) if game_data is not None else None
    if attribute is None:
        attribute = definition.attribute if definition is not None else None
    attr_value = 0
    if attribute is not None:
        attribute = attribute.lower()
        attr_value = max(0, total_of(character, attribute) + modifiers.attribute_bonuses.get(attribute, 0))

    owned = _find_skill(character, skill)
    if owned is None:
        if definition is not None and not definition.allows_default:
            return 0
        return max(0, attr_value - 1)

    group = definition.group if definition is not None else ""
    category = definition.category if definition is not None else ""
    pool = (
        owned.rating
        + attr_value
        + owned.bonus
        + skill_bonus_for(owned.name, modifiers, group, category)
        + wound_modifier(character.condition.physical_damage, character.condition.stun_damage)
    )
    return max(0, pool)


def calculate_all(
    character: Character,
    modifiers: AggregateModifiers | None = None,
    game_data: GameData | None = None,
    config: BuildConfig | None = None,
) -> CharacterStats:
    """Compute every derived stat for a character.

    Total: never raises on a well-typed character. Missing magic or
    resonance sections zero their stats.
    """
    if modifiers is None:
        modifiers = AggregateModifiers()
    config = config or BuildConfig()
    calc = DerivedStats(config)

    attrs = effective_attributes(character, modifiers)
    body = attrs.get(AC.BODY.value, 0)
    agility = attrs.get(AC.AGILITY.value, 0)
    reaction = attrs.get(AC.REACTION.value, 0)
    strength = attrs.get(AC.STRENGTH.value, 0)
    charisma = attrs.get(AC.CHARISMA.value, 0)
    intuition = attrs.get(AC.INTUITION.value, 0)
    logic = attrs.get(AC.LOGIC.value, 0)
    willpower = attrs.get(AC.WILLPOWER.value, 0)
    resonance = attrs.get(AC.RESONANCE.value, 0)

    wound = wound_modifier(character.condition.physical_damage, character.condition.stun_damage)

    def test(pool: int) -> int:
        return max(0, pool + wound)

    # Reflex augmentations share one family (max wins); reaction enhancers add on top.
    improvements = collect_improvements(character)
    init_bonus = stacked_value([i for i in improvements if i.target == INITIATIVE])
    init_dice = stacked_value([i for i in improvements if i.target == INITIATIVE_DICE])

    armor = character.equipment.armor
    ballistic = armor_total(armor, DamageType.BALLISTIC.value)
    impact = armor_total(armor, DamageType.IMPACT.value)

    walk = calc.walk_speed(agility, modifiers.movement_percent)

    drain = 0
    astral_init = 0
    astral_dice = 0
    if character.magic is not None:
        drain = calc.drain_resistance(character.magic.tradition, willpower, logic, charisma)
        drain += modifiers.drain_resistance
        astral_init = calc.astral_initiative(intuition)
        astral_dice = config.astral_initiative_dice

    fading = 0
    matrix_init = 0
    matrix_dice = 0
    if character.resonance is not None:
        fading = calc.fading_resistance(resonance, willpower)
        matrix_init = calc.matrix_initiative(intuition, resonance)
        matrix_dice = config.matrix_initiative_dice

    lifestyle = character.equipment.lifestyle
    lifestyle_cost = 0
    if lifestyle is not None:
        lifestyle_cost = _scale_percent(lifestyle.monthly_cost, modifiers.lifestyle_cost_percent)

    return CharacterStats(
        effective_attributes=attrs,
        physical_cm=calc.physical_cm(body, modifiers.condition_monitor),
        stun_cm=calc.stun_cm(willpower),
        overflow=calc.overflow(body),
        wound_modifier=wound,
        initiative=calc.initiative(reaction, intuition, init_bonus + modifiers.initiative),
        initiative_bonus=init_bonus + modifiers.initiative,
        initiative_dice=calc.initiative_dice(init_dice, modifiers.initiative_passes),
        walk_speed=walk,
        run_speed=calc.run_speed(agility, modifiers.movement_percent),
        swim_speed=calc.swim_speed(walk, modifiers.swim_percent),
        fly_speed=modifiers.fly_speed,
        sprint_bonus=calc.sprint_bonus(character.identity.metatype),
        physical_limit=calc.physical_limit(strength, body, reaction),
        mental_limit=calc.mental_limit(logic, intuition, willpower),
        social_limit=calc.social_limit(charisma, willpower, character.essence),
        armor_ballistic=ballistic,
        armor_impact=impact,
        defense=test(reaction + intuition),
        dodge=dice_pool(character, config.dodge_skill, AC.REACTION.value, modifiers, game_data),
        damage_resistance=body + ballistic + modifiers.damage_resistance,
        unarmed_dv=calc.unarmed_dv(strength, modifiers.unarmed_dv),
        reach=modifiers.reach,
        composure=test(charisma + willpower + modifiers.composure),
        judge_intentions=test(charisma + intuition + modifiers.judge_intentions),
        memory=test(logic + willpower),
        lift_carry=test(body + strength),
        perception=dice_pool(character, config.perception_skill, AC.INTUITION.value, modifiers, game_data),
        drain_resistance=drain,
        astral_initiative=astral_init,
        astral_initiative_dice=astral_dice,
        fading_resistance=fading,
        matrix_initiative=matrix_init,
        matrix_initiative_dice=matrix_dice,
        notoriety=character.reputation.notoriety + modifiers.notoriety,
        lifestyle_cost=lifestyle_cost,
        essence_cost=calc.essence_cost(character, modifiers),
    )
