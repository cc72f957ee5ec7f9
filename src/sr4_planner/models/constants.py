"""SR4 attribute codes, augmentation grades, and validation severities.

Attribute codes follow the short forms used in Chummer data files. Only the
nine primary attributes plus Magic and Resonance are stored on a character;
Essence is tracked separately as a real number.
"""

from enum import Enum


class AttributeCode(str, Enum):
    """Attribute codes keyed into Character.attributes."""
    # Physical
    BODY = "bod"
    AGILITY = "agi"
    REACTION = "rea"
    STRENGTH = "str"

    # Mental
    CHARISMA = "cha"
    INTUITION = "int"
    LOGIC = "log"
    WILLPOWER = "wil"

    # Special
    EDGE = "edg"
    MAGIC = "mag"
    RESONANCE = "res"


AC = AttributeCode

ATTRIBUTE_NAMES: dict[str, str] = {
    "bod": "Body",
    "agi": "Agility",
    "rea": "Reaction",
    "str": "Strength",
    "cha": "Charisma",
    "int": "Intuition",
    "log": "Logic",
    "wil": "Willpower",
    "edg": "Edge",
    "mag": "Magic",
    "res": "Resonance",
}

# Attributes every character carries, in sheet order.
PRIMARY_ATTRIBUTES: tuple[str, ...] = (
    AC.BODY.value, AC.AGILITY.value, AC.REACTION.value, AC.STRENGTH.value,
    AC.CHARISMA.value, AC.INTUITION.value, AC.LOGIC.value, AC.WILLPOWER.value,
    AC.EDGE.value,
)

# Present only on awakened / emerged characters.
SPECIAL_ATTRIBUTES: frozenset[str] = frozenset({AC.MAGIC.value, AC.RESONANCE.value})


class QualityCategory(str, Enum):
    POSITIVE = "Positive"
    NEGATIVE = "Negative"


class CharacterStatus(str, Enum):
    """Creation-only rules (skill caps, availability) are skipped in career."""
    CREATION = "creation"
    CAREER = "career"


class AugmentationKind(str, Enum):
    CYBERWARE = "cyberware"
    BIOWARE = "bioware"


class CyberwareGrade(str, Enum):
    STANDARD = "Standard"
    ALPHAWARE = "Alphaware"
    BETAWARE = "Betaware"
    DELTAWARE = "Deltaware"
    USED = "Used"


# Essence multiplier per grade (SR4 core p.303).
GRADE_ESSENCE_MULTIPLIERS: dict[str, float] = {
    "Standard": 1.0,
    "Alphaware": 0.8,
    "Betaware": 0.7,
    "Deltaware": 0.5,
    "Used": 1.2,
}


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class DamageType(str, Enum):
    """Armor rating column used for layering."""
    BALLISTIC = "ballistic"
    IMPACT = "impact"
