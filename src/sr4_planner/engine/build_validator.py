"""Build validator: checks a character against the SR4 creation rules.

Runs a fixed, ordered battery of checks (identity, build points,
attributes, skills, qualities, magic, resonance, equipment, availability,
contacts). Every check runs even if an earlier one failed, and issues come
back in a stable order. Each code has one fixed severity, listed in
ISSUE_SEVERITY.

Quality-derived limits (Exceptional Attribute, Aptitude, Restricted Gear,
...) come from AggregateModifiers; pass one in, or the validator aggregates
the character against *game_data* itself.
"""

import math
from dataclasses import dataclass

import structlog

from sr4_planner.engine.bonus_aggregator import (
    AggregateModifiers,
    aggregate,
    effective_attribute_limits,
    effective_skill_max,
    strip_instance_suffix,
)
from sr4_planner.engine.build_config import BuildConfig
from sr4_planner.models.attributes import attribute_total, has_attribute
from sr4_planner.models.character import AttributeLimits, Character
from sr4_planner.models.constants import (
    AC,
    ATTRIBUTE_NAMES,
    CharacterStatus,
    PRIMARY_ATTRIBUTES,
    QualityCategory,
    Severity,
)
from sr4_planner.models.game_data import GameData
from sr4_planner.parser.availability import parse_availability

logger = structlog.get_logger(__name__)


ISSUE_SEVERITY: dict[str, Severity] = {
    # Identity
    "NO_NAME": Severity.WARNING,
    "NO_METATYPE": Severity.ERROR,
    # Build points
    "BP_OVERSPENT": Severity.ERROR,
    "POSITIVE_QUALITY_CAP": Severity.ERROR,
    "NEGATIVE_QUALITY_CAP": Severity.ERROR,
    "RESOURCES_CAP": Severity.ERROR,
    "ATTRIBUTE_BP_CAP": Severity.ERROR,
    # Attributes
    "ATTR_LIMITS_INVALID": Severity.ERROR,
    "ATTR_BELOW_MIN": Severity.ERROR,
    "ATTR_ABOVE_MAX": Severity.ERROR,
    "ATTR_ABOVE_AUG": Severity.ERROR,
    "MAG_ABOVE_MAX": Severity.ERROR,
    "RES_ABOVE_MAX": Severity.ERROR,
    "ESSENCE_NEGATIVE": Severity.ERROR,
    "MAG_EXCEEDS_ESSENCE": Severity.ERROR,
    "RES_EXCEEDS_ESSENCE": Severity.ERROR,
    # Skills
    "SKILL_ABOVE_MAX": Severity.ERROR,
    "SKILL_NEGATIVE": Severity.ERROR,
    "NO_PERCEPTION": Severity.WARNING,
    # Qualities
    "QUALITY_EXCLUSIVE": Severity.ERROR,
    "QUALITY_PREREQUISITE": Severity.ERROR,
    "QUALITY_LIMIT": Severity.ERROR,
    "MAGIC_NOT_INITIALIZED": Severity.WARNING,
    "RESONANCE_NOT_INITIALIZED": Severity.WARNING,
    # Magic
    "NO_TRADITION": Severity.WARNING,
    "POWER_POINTS_OVERSPENT": Severity.ERROR,
    "NO_POWERS": Severity.INFO,
    # Resonance
    "NO_STREAM": Severity.WARNING,
    "NO_COMPLEX_FORMS": Severity.INFO,
    # Equipment
    "NO_WEAPONS": Severity.INFO,
    "NO_ARMOR": Severity.WARNING,
    "NO_LIFESTYLE": Severity.WARNING,
    "NEGATIVE_NUYEN": Severity.ERROR,
    "ARMOR_RATING_NEGATIVE": Severity.ERROR,
    "CYBERWARE_RATING_INVALID": Severity.ERROR,
    # Availability
    "AVAIL_TOO_HIGH": Severity.ERROR,
    "FORBIDDEN_ITEM": Severity.ERROR,
    # Contacts
    "NO_CONTACTS": Severity.INFO,
    "CONTACT_LOYALTY_INVALID": Severity.ERROR,
    "CONTACT_CONNECTION_INVALID": Severity.ERROR,
}

_AWAKENED_QUALITIES = frozenset({"magician", "adept", "mystic adept"})


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """A single rule violation or advisory."""

    code: str
    severity: Severity
    category: str      # "Identity" | "Build Points" | "Attributes" | ...
    message: str
    detail: str = ""


@dataclass(frozen=True, slots=True)
class ValidationResult:
    valid: bool
    issues: tuple[ValidationIssue, ...]
    errors: int
    warnings: int
    info: int


def _issue(code: str, category: str, message: str, detail: str = "") -> ValidationIssue:
    return ValidationIssue(code, ISSUE_SEVERITY[code], category, message, detail)


class _Checks:
    """One validation pass over a character; each method is one check group."""

    def __init__(
        self,
        character: Character,
        game_data: GameData | None,
        modifiers: AggregateModifiers,
        config: BuildConfig,
    ) -> None:
        self.char = character
        self.game_data = game_data
        self.mods = modifiers
        self.cfg = config
        self.creation = character.status == CharacterStatus.CREATION.value
        self.quality_names = {
            strip_instance_suffix(q.name).lower() for q in character.qualities
        }

    # --- Identity ----------------------------------------------------------

    def identity(self) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        if not self.char.identity.name:
            issues.append(_issue(
                "NO_NAME", "Identity", "Character has no name",
                "Give your character a name",
            ))
        if not self.char.identity.metatype:
            issues.append(_issue(
                "NO_METATYPE", "Identity", "No metatype selected",
                "Select a metatype to continue",
            ))
        return issues

    # --- Build points ------------------------------------------------------

    def build_points(self) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        spent = self.char.build_points_spent
        total = spent.total()
        allowance = self.char.build_points
        if total > allowance:
            issues.append(_issue(
                "BP_OVERSPENT", "Build Points",
                f"Overspent by {total - allowance} BP",
                f"Total spent: {total}, Available: {allowance}, Overage: {total - allowance}",
            ))

        positive = sum(
            q.bp for q in self.char.qualities
            if q.category == QualityCategory.POSITIVE.value
        )
        positive_cap = self.cfg.positive_quality_bp_max + self.mods.free_positive_quality_bp
        if positive > positive_cap:
            issues.append(_issue(
                "POSITIVE_QUALITY_CAP", "Qualities",
                f"Positive qualities exceed {positive_cap} BP limit",
                f"Current: {positive} BP",
            ))

        negative = abs(sum(
            q.bp for q in self.char.qualities
            if q.category == QualityCategory.NEGATIVE.value
        ))
        negative_cap = self.cfg.negative_quality_bp_max + self.mods.free_negative_quality_bp
        if negative > negative_cap:
            issues.append(_issue(
                "NEGATIVE_QUALITY_CAP", "Qualities",
                f"Negative qualities exceed {negative_cap} BP limit",
                f"Current: {negative} BP",
            ))

        resources_cap = self.cfg.resources_bp_max + self.mods.nuyen_max_bp
        if spent.resources > resources_cap:
            issues.append(_issue(
                "RESOURCES_CAP", "Resources",
                f"Resources exceed {resources_cap} BP maximum",
                f"Current: {spent.resources} BP",
            ))

        if spent.attributes > self.cfg.attribute_bp_max:
            issues.append(_issue(
                "ATTRIBUTE_BP_CAP", "Attributes",
                f"Attributes exceed {self.cfg.attribute_bp_max} BP maximum",
                f"Current: {spent.attributes} BP",
            ))
        return issues

    # --- Attributes --------------------------------------------------------

    def _limits(self, code: str) -> AttributeLimits:
        declared = self.char.attribute_limits.get(code, AttributeLimits())
        return effective_attribute_limits(code, declared, self.mods)

    def attributes(self) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for code in PRIMARY_ATTRIBUTES:
            value = self.char.attributes.get(code)
            if value is None:
                continue
            label = code.upper()
            limits = self._limits(code)
            if limits.min > limits.max:
                issues.append(_issue(
                    "ATTR_LIMITS_INVALID", "Attributes",
                    f"{label} has inverted limits",
                    f"Minimum: {limits.min}, Maximum: {limits.max}",
                ))
                continue
            if value.base < limits.min:
                issues.append(_issue(
                    "ATTR_BELOW_MIN", "Attributes", f"{label} below minimum",
                    f"Current: {value.base}, Minimum: {limits.min}",
                ))
            if value.base > limits.max:
                issues.append(_issue(
                    "ATTR_ABOVE_MAX", "Attributes", f"{label} exceeds natural maximum",
                    f"Current: {value.base}, Maximum: {limits.max}",
                ))
            total = attribute_total(value) + self.mods.attribute_bonuses.get(code, 0)
            if total > limits.aug:
                issues.append(_issue(
                    "ATTR_ABOVE_AUG", "Attributes", f"{label} exceeds augmented maximum",
                    f"Current total: {total}, Augmented max: {limits.aug}",
                ))

        for code, over_code, exceeds_code in (
            (AC.MAGIC.value, "MAG_ABOVE_MAX", "MAG_EXCEEDS_ESSENCE"),
            (AC.RESONANCE.value, "RES_ABOVE_MAX", "RES_EXCEEDS_ESSENCE"),
        ):
            if not has_attribute(self.char, code):
                continue
            name = ATTRIBUTE_NAMES[code]
            value = self.char.attributes[code]
            total = attribute_total(value)
            limits = self._limits(code)
            if limits.min > limits.max:
                issues.append(_issue(
                    "ATTR_LIMITS_INVALID", "Attributes",
                    f"{code.upper()} has inverted limits",
                    f"Minimum: {limits.min}, Maximum: {limits.max}",
                ))
                continue
            if total > limits.aug:
                issues.append(_issue(
                    over_code, "Attributes", f"{name} exceeds maximum",
                    f"Current: {total}, Maximum: {limits.aug}",
                ))
            if self.char.essence < self.cfg.max_essence:
                ceiling = math.floor(self.char.essence)
                if total > ceiling:
                    issues.append(_issue(
                        exceeds_code, "Attributes", f"{name} cannot exceed Essence",
                        f"{name}: {total}, Max (floor of Essence): {ceiling}",
                    ))

        if self.char.essence < 0:
            issues.append(_issue(
                "ESSENCE_NEGATIVE", "Attributes", "Essence cannot be negative",
                f"Current: {self.char.essence:.2f}",
            ))
        return issues

    # --- Skills ------------------------------------------------------------

    def skills(self) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for skill in self.char.skills:
            if self.creation:
                maximum = effective_skill_max(skill.name, self.mods, self.cfg.skill_max)
                if skill.rating > maximum:
                    issues.append(_issue(
                        "SKILL_ABOVE_MAX", "Skills",
                        f"{skill.name} exceeds maximum rating of {maximum}",
                        f"Current rating: {skill.rating}",
                    ))
            if skill.rating < 0:
                issues.append(_issue(
                    "SKILL_NEGATIVE", "Skills", f"{skill.name} has negative rating",
                    f"Current rating: {skill.rating}",
                ))

        perception = self.cfg.perception_skill.lower()
        if not any(s.name.lower() == perception for s in self.char.skills):
            issues.append(_issue(
                "NO_PERCEPTION", "Skills", f"No {self.cfg.perception_skill} skill",
                "Consider adding Perception for awareness tests",
            ))
        return issues

    # --- Qualities ---------------------------------------------------------

    def _exclusive_pairs(self) -> list[tuple[str, str]]:
        """Configured pairs plus definition `forbids`, each unordered pair once."""
        seen: set[frozenset[str]] = set()
        pairs: list[tuple[str, str]] = []

        def add(a: str, b: str) -> None:
            key = frozenset((a.lower(), b.lower()))
            if len(key) == 2 and key not in seen:
                seen.add(key)
                pairs.append((a, b))

        for a, b in self.cfg.exclusive_pairs:
            add(a, b)
        if self.game_data is not None:
            for name in sorted({strip_instance_suffix(q.name) for q in self.char.qualities}):
                definition = self.game_data.quality(name)
                if definition is None:
                    continue
                for other in definition.forbids:
                    add(*sorted((definition.name, other)))
        return pairs

    def qualities(self) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        held = self.quality_names

        for a, b in self._exclusive_pairs():
            if a.lower() in held and b.lower() in held:
                issues.append(_issue(
                    "QUALITY_EXCLUSIVE", "Qualities", f"Cannot have both {a} and {b}",
                    "These qualities are mutually exclusive",
                ))

        if self.game_data is not None:
            counts: dict[str, int] = {}
            for q in self.char.qualities:
                base = strip_instance_suffix(q.name)
                counts[base] = counts.get(base, 0) + 1
            for name in sorted(counts):
                definition = self.game_data.quality(name)
                if definition is None:
                    continue
                for clause in definition.requires:
                    if not any(option.lower() in held for option in clause):
                        issues.append(_issue(
                            "QUALITY_PREREQUISITE", "Qualities",
                            f"{name} requires {_describe_clause(clause)}",
                            f"Missing: {', '.join(clause)}",
                        ))
                if counts[name] > definition.limit:
                    issues.append(_issue(
                        "QUALITY_LIMIT", "Qualities",
                        f"{name} taken more than {definition.limit} time(s)",
                        f"Current: {counts[name]}, Limit: {definition.limit}",
                    ))

        awakened = any(
            n in _AWAKENED_QUALITIES or n.startswith("aspected magician") for n in held
        )
        if awakened and not has_attribute(self.char, AC.MAGIC.value):
            issues.append(_issue(
                "MAGIC_NOT_INITIALIZED", "Magic",
                "Awakened quality selected but Magic not initialized",
                "Select a tradition in the Magic step",
            ))
        if any("technomancer" in n for n in held) and not has_attribute(self.char, AC.RESONANCE.value):
            issues.append(_issue(
                "RESONANCE_NOT_INITIALIZED", "Resonance",
                "Technomancer quality selected but Resonance not initialized",
                "Select a stream in the Magic step",
            ))
        return issues

    # --- Magic / Resonance -------------------------------------------------

    def magic(self) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        profile = self.char.magic
        if profile is None:
            return issues
        if not profile.tradition:
            issues.append(_issue(
                "NO_TRADITION", "Magic", "No magical tradition selected",
                "Select a tradition for your awakened character",
            ))
        if profile.power_points > 0:
            if profile.power_points_used > profile.power_points:
                issues.append(_issue(
                    "POWER_POINTS_OVERSPENT", "Magic", "Power points exceeded",
                    f"Used: {profile.power_points_used}, Available: {profile.power_points}",
                ))
            if profile.power_points_used == 0 and not profile.powers:
                issues.append(_issue(
                    "NO_POWERS", "Magic", "No adept powers selected",
                    "Consider selecting powers to use your power points",
                ))
        return issues

    def resonance(self) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        profile = self.char.resonance
        if profile is None:
            return issues
        if not profile.stream:
            issues.append(_issue(
                "NO_STREAM", "Resonance", "No technomancer stream selected",
                "Select a stream for your technomancer",
            ))
        if not profile.complex_forms:
            issues.append(_issue(
                "NO_COMPLEX_FORMS", "Resonance", "No complex forms selected",
                "Consider selecting complex forms for Matrix interactions",
            ))
        return issues

    # --- Equipment ---------------------------------------------------------

    def equipment(self) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        eq = self.char.equipment
        if not eq.weapons:
            issues.append(_issue(
                "NO_WEAPONS", "Equipment", "No weapons purchased",
                "Consider acquiring weapons for self-defense",
            ))
        if not eq.armor:
            issues.append(_issue(
                "NO_ARMOR", "Equipment", "No armor purchased",
                "Armor is recommended for survival",
            ))
        if eq.lifestyle is None:
            issues.append(_issue(
                "NO_LIFESTYLE", "Equipment", "No lifestyle selected",
                "A lifestyle is required for between-run survival",
            ))
        if self.char.nuyen < 0:
            issues.append(_issue(
                "NEGATIVE_NUYEN", "Equipment", "Negative nuyen balance",
                f"Current: {self.char.nuyen}¥",
            ))
        for item in eq.armor:
            if item.ballistic < 0 or item.impact < 0:
                issues.append(_issue(
                    "ARMOR_RATING_NEGATIVE", "Equipment",
                    f"{item.name} has a negative armor rating",
                    f"Ballistic: {item.ballistic}, Impact: {item.impact}",
                ))
        for implant in eq.cyberware:
            if implant.rating < 1:
                issues.append(_issue(
                    "CYBERWARE_RATING_INVALID", "Equipment",
                    f"{implant.name} has invalid rating",
                    f"Current: {implant.rating}",
                ))
        return issues

    # --- Availability ------------------------------------------------------

    def availability(self) -> list[ValidationIssue]:
        """Creation-only gear availability checks.

        Up to restricted_item_count items may exceed the normal maximum, as
        long as they stay at or below the restricted-gear ceiling.
        """
        issues: list[ValidationIssue] = []
        if not self.creation:
            return issues
        eq = self.char.equipment
        settings = self.char.settings
        allowance = self.mods.restricted_item_count
        items = [*eq.weapons, *eq.armor, *eq.cyberware, *eq.gear]
        for item in items:
            try:
                avail = parse_availability(item.availability)
            except ValueError:
                logger.debug("availability_unparsed", item=item.name, raw=item.availability)
                continue
            if avail.forbidden and not settings.allow_forbidden:
                issues.append(_issue(
                    "FORBIDDEN_ITEM", "Availability", f"{item.name} is forbidden",
                    f"Availability: {item.availability}",
                ))
            if avail.rating > settings.max_availability:
                if allowance > 0 and avail.rating <= self.cfg.restricted_gear_max_availability:
                    allowance -= 1
                    continue
                issues.append(_issue(
                    "AVAIL_TOO_HIGH", "Availability",
                    f"{item.name} exceeds maximum availability",
                    f"Availability: {avail.rating}, Maximum: {settings.max_availability}",
                ))
        return issues

    # --- Contacts ----------------------------------------------------------

    def contacts(self) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        low, high = self.cfg.contact_rating_min, self.cfg.contact_rating_max
        if not self.char.contacts and self.creation:
            issues.append(_issue(
                "NO_CONTACTS", "Contacts", "No contacts defined",
                "Contacts are useful for gathering information and acquiring items",
            ))
        for contact in self.char.contacts:
            if not low <= contact.loyalty <= high:
                issues.append(_issue(
                    "CONTACT_LOYALTY_INVALID", "Contacts",
                    f"{contact.name} has invalid loyalty rating",
                    f"Current: {contact.loyalty}, Valid: {low}-{high}",
                ))
            if not low <= contact.connection <= high:
                issues.append(_issue(
                    "CONTACT_CONNECTION_INVALID", "Contacts",
                    f"{contact.name} has invalid connection rating",
                    f"Current: {contact.connection}, Valid: {low}-{high}",
                ))
        return issues

    def run(self) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for check in (
            self.identity, self.build_points, self.attributes, self.skills,
            self.qualities, self.magic, self.resonance, self.equipment,
            self.availability, self.contacts,
        ):
            issues.extend(check())
        return issues


def _describe_clause(clause: tuple[str, ...]) -> str:
    if len(clause) == 1:
        return clause[0]
    return "one of: " + " OR ".join(clause)


def validate(
    character: Character,
    game_data: GameData | None = None,
    modifiers: AggregateModifiers | None = None,
    config: BuildConfig | None = None,
) -> ValidationResult:
    """Run every check against *character*."""
    config = config or BuildConfig()
    if modifiers is None:
        modifiers = aggregate(character, game_data) if game_data is not None else AggregateModifiers()

    issues = tuple(_Checks(character, game_data, modifiers, config).run())
    errors = sum(1 for i in issues if i.severity is Severity.ERROR)
    warnings = sum(1 for i in issues if i.severity is Severity.WARNING)
    info = sum(1 for i in issues if i.severity is Severity.INFO)
    logger.debug(
        "validation_complete",
        character=character.identity.name,
        errors=errors, warnings=warnings, info=info,
    )
    return ValidationResult(
        valid=errors == 0, issues=issues, errors=errors, warnings=warnings, info=info,
    )


def issues_with_severity(result: ValidationResult, severity: Severity) -> list[ValidationIssue]:
    return [i for i in result.issues if i.severity is severity]


def is_character_complete(
    character: Character,
    game_data: GameData | None = None,
    config: BuildConfig | None = None,
) -> bool:
    """True iff the character validates with zero errors."""
    return validate(character, game_data, config=config).valid
