"""Attribute resolution: totals and limit checks.

A pure lookup layer over Character.attributes. The essence ceiling on
Magic/Resonance is a validation rule and lives in the build validator.
"""

from sr4_planner.models.character import AttributeLimits, AttributeValue, Character


def attribute_total(value: AttributeValue) -> int:
    """Base + flat bonus, clamped at zero."""
    total = value.base + value.bonus
    if total < 0:
        return 0
    return total


def has_attribute(character: Character, code: str) -> bool:
    """True if *code* is present on the character (e.g. Magic on an awakened)."""
    return code in character.attributes


def total_of(character: Character, code: str) -> int:
    """Total value of an attribute on a character.

    Callers must check optional attributes (Magic, Resonance) with
    has_attribute() first; an absent code resolves to 0.
    """
    value = character.attributes.get(code)
    if value is None:
        return 0
    return attribute_total(value)


def is_within_limits(value: AttributeValue, limits: AttributeLimits) -> bool:
    """True iff limits.min <= total <= limits.max.

    A limits record with min > max is malformed and never contains a value.
    """
    if limits.min > limits.max:
        return False
    total = attribute_total(value)
    return limits.min <= total <= limits.max
