"""Character snapshot data model.

Represents everything the surrounding editor records about a Shadowrun 4
character: attributes and their metatype limits, skills, qualities,
equipment, contacts, magic/resonance, and build point bookkeeping.
This is the read-only input to the aggregator, calculator, and validator.
"""

from dataclasses import dataclass, field

from sr4_planner.models.constants import (
    AugmentationKind,
    CharacterStatus,
    CyberwareGrade,
    PRIMARY_ATTRIBUTES,
    QualityCategory,
)


@dataclass(slots=True)
class AttributeValue:
    """Purchased value plus flat bonus and karma-bought points."""
    base: int = 1
    bonus: int = 0
    karma: int = 0


@dataclass(slots=True)
class AttributeLimits:
    """Metatype bounds: minimum, natural maximum, augmented maximum."""
    min: int = 1
    max: int = 6
    aug: int = 9


def _default_attributes() -> dict[str, AttributeValue]:
    attributes = {code: AttributeValue() for code in PRIMARY_ATTRIBUTES}
    attributes["edg"] = AttributeValue(base=2)
    return attributes


def _default_limits() -> dict[str, AttributeLimits]:
    # Human limits; Edge runs 2-7 for humans.
    limits = {code: AttributeLimits() for code in PRIMARY_ATTRIBUTES}
    limits["edg"] = AttributeLimits(min=2, max=7, aug=7)
    limits["mag"] = AttributeLimits(min=0, max=6, aug=6)
    limits["res"] = AttributeLimits(min=0, max=6, aug=6)
    return limits


@dataclass(slots=True)
class CharacterSkill:
    name: str
    rating: int = 0
    specialization: str | None = None
    bonus: int = 0


@dataclass(slots=True)
class CharacterQuality:
    """A selected quality instance.

    Repeated instances carry a " #2" style suffix on the name; the
    definition is looked up by the stripped base name.
    """
    name: str
    category: str = QualityCategory.POSITIVE.value
    bp: int = 0
    rating: int = 1
    selected_skill: str | None = None
    selected_attribute: str | None = None


@dataclass(slots=True)
class Contact:
    name: str
    loyalty: int = 1
    connection: int = 1


# --- Equipment --------------------------------------------------------------


@dataclass(slots=True)
class Weapon:
    name: str
    category: str = ""
    reach: int = 0
    damage: str = ""
    cost: int = 0
    availability: str = ""


@dataclass(slots=True)
class Armor:
    name: str
    ballistic: int = 0
    impact: int = 0
    equipped: bool = True
    cost: int = 0
    availability: str = ""


@dataclass(slots=True)
class Cyberware:
    """An implant. Bioware shares the record and is told apart by *kind*."""
    name: str
    kind: str = AugmentationKind.CYBERWARE.value
    rating: int = 1
    grade: str = CyberwareGrade.STANDARD.value
    essence: float = 0.0        # standard-grade essence cost
    cost: int = 0
    availability: str = ""


@dataclass(slots=True)
class Gear:
    name: str
    rating: int = 0
    quantity: int = 1
    cost: int = 0
    availability: str = ""


@dataclass(slots=True)
class Lifestyle:
    name: str
    monthly_cost: int = 0
    months_prepaid: int = 1


@dataclass
class Equipment:
    weapons: list[Weapon] = field(default_factory=list)
    armor: list[Armor] = field(default_factory=list)
    cyberware: list[Cyberware] = field(default_factory=list)
    gear: list[Gear] = field(default_factory=list)
    lifestyle: Lifestyle | None = None


# --- Magic / Resonance ------------------------------------------------------


@dataclass(slots=True)
class AdeptPower:
    name: str
    points: float = 0.0
    level: int = 1


@dataclass
class MagicProfile:
    """Present only for awakened characters."""
    tradition: str = ""
    power_points: float = 0.0
    power_points_used: float = 0.0
    powers: list[AdeptPower] = field(default_factory=list)
    spells: list[str] = field(default_factory=list)


@dataclass
class ResonanceProfile:
    """Present only for technomancers."""
    stream: str = ""
    complex_forms: list[str] = field(default_factory=list)


# --- Bookkeeping ------------------------------------------------------------


@dataclass(slots=True)
class BuildPointAllocation:
    """Build points spent per category during creation."""
    metatype: int = 0
    attributes: int = 0
    skills: int = 0
    skill_groups: int = 0
    knowledge_skills: int = 0
    qualities: int = 0
    spells: int = 0
    complex_forms: int = 0
    contacts: int = 0
    resources: int = 0
    mentor: int = 0
    martial_arts: int = 0

    def total(self) -> int:
        return (
            self.metatype + self.attributes + self.skills + self.skill_groups
            + self.knowledge_skills + self.qualities + self.spells
            + self.complex_forms + self.contacts + self.resources
            + self.mentor + self.martial_arts
        )


@dataclass(slots=True)
class Identity:
    name: str = ""
    alias: str = ""
    metatype: str = "Human"
    metavariant: str | None = None


@dataclass(slots=True)
class ConditionMonitor:
    """Damage currently marked on each track."""
    physical_damage: int = 0
    stun_damage: int = 0


@dataclass(slots=True)
class Reputation:
    street_cred: int = 0
    notoriety: int = 0
    public_awareness: int = 0


@dataclass(slots=True)
class CharacterSettings:
    max_availability: int = 12
    allow_forbidden: bool = False


@dataclass
class Character:
    """A Shadowrun 4 character snapshot.

    Attribute maps are keyed by AttributeCode values ("bod", "agi", ...).
    Magic and Resonance appear in *attributes* only when the character is
    awakened or emerged.
    """

    identity: Identity = field(default_factory=Identity)
    status: str = CharacterStatus.CREATION.value

    attributes: dict[str, AttributeValue] = field(default_factory=_default_attributes)
    attribute_limits: dict[str, AttributeLimits] = field(default_factory=_default_limits)
    essence: float = 6.0

    skills: list[CharacterSkill] = field(default_factory=list)
    qualities: list[CharacterQuality] = field(default_factory=list)
    contacts: list[Contact] = field(default_factory=list)
    equipment: Equipment = field(default_factory=Equipment)

    magic: MagicProfile | None = None
    resonance: ResonanceProfile | None = None

    build_points: int = 400
    build_points_spent: BuildPointAllocation = field(default_factory=BuildPointAllocation)
    nuyen: int = 0

    condition: ConditionMonitor = field(default_factory=ConditionMonitor)
    reputation: Reputation = field(default_factory=Reputation)
    settings: CharacterSettings = field(default_factory=CharacterSettings)
