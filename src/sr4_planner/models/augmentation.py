"""Augmentation effects: cyberware, bioware, and adept powers.

Implants and powers are matched by case-insensitive substring against a
declarative table. Each match yields Improvement records; improvements in
the same (family, target) bucket do not stack (highest wins), different
buckets add. The initiative boosters (wired reflexes, synaptic booster,
move-by-wire, improved reflexes) share the "reflex" family so a character
never gets dice from two of them at once. Reaction enhancers add their
rating to initiative from a family of their own, on top of any booster.

Quality effects are not listed here; they flow through the bonus aggregator.
"""

from dataclasses import dataclass

from sr4_planner.models.character import Character


REFLEX_FAMILY = "reflex"
REACTION_ENHANCER_FAMILY = "reaction_enhancer"

# Improvement targets that are not attribute codes.
INITIATIVE = "initiative"
INITIATIVE_DICE = "initiative_dice"
ARMOR_BALLISTIC = "armor_ballistic"
ARMOR_IMPACT = "armor_impact"
DAMAGE_RESISTANCE = "damage_resistance"
MEMORY = "memory"


@dataclass(frozen=True, slots=True)
class EffectDefinition:
    """One target an item affects.

    The value is rating * multiplier unless *fixed* is set.
    """
    target: str
    multiplier: int = 1
    fixed: int | None = None
    conditional: str | None = None

    def value(self, rating: int) -> int:
        if self.fixed is not None:
            return self.fixed
        return rating * self.multiplier


@dataclass(frozen=True, slots=True)
class AugmentationEffect:
    patterns: tuple[str, ...]
    source: str
    effects: tuple[EffectDefinition, ...]
    family: str | None = None     # defaults to *source*


_REFLEX_EFFECTS = (EffectDefinition(INITIATIVE), EffectDefinition(INITIATIVE_DICE))
_ARMOR_EFFECTS = (EffectDefinition(ARMOR_BALLISTIC), EffectDefinition(ARMOR_IMPACT))

IMPLANT_EFFECTS: tuple[AugmentationEffect, ...] = (
    AugmentationEffect(("wired reflexes",), "cyberware", _REFLEX_EFFECTS, REFLEX_FAMILY),
    AugmentationEffect(("synaptic booster",), "bioware", _REFLEX_EFFECTS, REFLEX_FAMILY),
    AugmentationEffect(
        ("move-by-wire",), "cyberware",
        (EffectDefinition(INITIATIVE, multiplier=2), EffectDefinition(INITIATIVE_DICE)),
        REFLEX_FAMILY,
    ),
    AugmentationEffect(("move-by-wire",), "cyberware", (EffectDefinition("rea"),)),
    AugmentationEffect(("reaction enhancer",), "cyberware", (EffectDefinition("rea"),)),
    AugmentationEffect(
        ("reaction enhancer",), "cyberware", (EffectDefinition(INITIATIVE),), REACTION_ENHANCER_FAMILY,
    ),
    AugmentationEffect(
        ("muscle replacement",), "cyberware", (EffectDefinition("str"), EffectDefinition("agi")),
    ),
    AugmentationEffect(("dermal plating",), "cyberware", _ARMOR_EFFECTS),
    AugmentationEffect(("muscle toner",), "bioware", (EffectDefinition("agi"),)),
    AugmentationEffect(("muscle augmentation",), "bioware", (EffectDefinition("str"),)),
    AugmentationEffect(("cerebral booster",), "bioware", (EffectDefinition("log"),)),
    AugmentationEffect(("mnemonic enhancer",), "bioware", (EffectDefinition(MEMORY),)),
    AugmentationEffect(("orthoskin",), "bioware", _ARMOR_EFFECTS),
    AugmentationEffect(
        ("platelet factories",), "bioware", (EffectDefinition(DAMAGE_RESISTANCE, fixed=1),),
    ),
    AugmentationEffect(
        ("pain editor",), "bioware",
        (EffectDefinition(DAMAGE_RESISTANCE, fixed=2, conditional="Ignores wound modifiers"),),
    ),
)

ADEPT_POWER_EFFECTS: tuple[AugmentationEffect, ...] = (
    AugmentationEffect(("improved reflexes",), "adept_power", _REFLEX_EFFECTS, REFLEX_FAMILY),
    AugmentationEffect(
        ("combat sense",), "adept_power",
        (EffectDefinition("rea", conditional="Defense and surprise tests only"),),
    ),
    AugmentationEffect(("mystic armor",), "adept_power", _ARMOR_EFFECTS),
    AugmentationEffect(
        ("pain resistance",), "adept_power",
        (EffectDefinition(DAMAGE_RESISTANCE, conditional="Ignores wound modifiers"),),
    ),
)

# Bone lacing / density armor by material.
_BONE_MATERIAL_ARMOR: tuple[tuple[str, int], ...] = (
    ("plastic", 1),
    ("aluminum", 2),
    ("titanium", 3),
)


@dataclass(frozen=True, slots=True)
class Improvement:
    """A single stat modification contributed by an implant or power."""
    source: str
    family: str
    source_name: str
    target: str
    value: int
    conditional: str | None = None


@dataclass(frozen=True, slots=True)
class ImprovementSummary:
    target: str
    total: int
    sources: tuple[Improvement, ...]


def _matches(name: str, patterns: tuple[str, ...]) -> bool:
    lowered = name.lower()
    return any(p in lowered for p in patterns)


def _improvements_from_table(
    name: str, rating: int, table: tuple[AugmentationEffect, ...],
) -> list[Improvement]:
    out: list[Improvement] = []
    for entry in table:
        if not _matches(name, entry.patterns):
            continue
        family = entry.family or entry.source
        for effect in entry.effects:
            out.append(Improvement(
                source=entry.source,
                family=family,
                source_name=name,
                target=effect.target,
                value=effect.value(rating),
                conditional=effect.conditional,
            ))
    return out


def _bone_improvements(name: str) -> list[Improvement]:
    lowered = name.lower()
    if "bone lacing" not in lowered and "bone density" not in lowered:
        return []
    for material, armor in _BONE_MATERIAL_ARMOR:
        if material in lowered:
            return [
                Improvement("cyberware", "cyberware", name, ARMOR_BALLISTIC, armor),
                Improvement("cyberware", "cyberware", name, ARMOR_IMPACT, armor),
            ]
    return []


def collect_improvements(character: Character) -> list[Improvement]:
    """Every improvement granted by the character's implants and adept powers."""
    improvements: list[Improvement] = []
    for implant in character.equipment.cyberware:
        rating = implant.rating or 1
        improvements.extend(_improvements_from_table(implant.name, rating, IMPLANT_EFFECTS))
        improvements.extend(_bone_improvements(implant.name))
    if character.magic is not None:
        for power in character.magic.powers:
            level = power.level or 1
            improvements.extend(_improvements_from_table(power.name, level, ADEPT_POWER_EFFECTS))
    return improvements


def stacked_value(improvements: list[Improvement]) -> int:
    """Highest value per (family, target) bucket, summed across buckets."""
    best: dict[tuple[str, str], int] = {}
    for imp in improvements:
        key = (imp.family, imp.target)
        best[key] = max(best.get(key, 0), imp.value)
    return sum(best.values())


def improvements_for(character: Character, target: str) -> list[Improvement]:
    return [i for i in collect_improvements(character) if i.target == target]


def improvement_summary(character: Character, target: str) -> ImprovementSummary:
    """Stacked total for one target plus the contributing sources."""
    improvements = improvements_for(character, target)
    return ImprovementSummary(
        target=target,
        total=stacked_value(improvements),
        sources=tuple(improvements),
    )
