"""Enumeration types for the D&D 5E rules engine.

This module defines the closed vocabularies shared by effect content,
base facts and derived state: abilities, skills, proficiency categories,
priority tiers, stacking rules, movement and sense types, and resource
recharge types.

Values are the strings used in effect content, so enum members compare
equal to the raw content strings.
"""

from __future__ import annotations

from enum import StrEnum


class Ability(StrEnum):
    """D&D 5E ability scores.

    Values are the three-letter abbreviations used as keys throughout
    effect content. Lookup is lenient: ``Ability("strength")`` and
    ``Ability("str")`` both resolve to ``Ability.STR``.
    """

    STR = "STR"
    DEX = "DEX"
    CON = "CON"
    INT = "INT"
    WIS = "WIS"
    CHA = "CHA"

    @property
    def full_name(self) -> str:
        """Get the full name of the ability.

        Returns:
            Full ability name (e.g., 'Strength' for STR).
        """
        full_names = {
            Ability.STR: "Strength",
            Ability.DEX: "Dexterity",
            Ability.CON: "Constitution",
            Ability.INT: "Intelligence",
            Ability.WIS: "Wisdom",
            Ability.CHA: "Charisma",
        }
        return full_names[self]

    @classmethod
    def _missing_(cls, value: object) -> Ability | None:
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        for member in cls:
            if key in (member.value.lower(), member.full_name.lower()):
                return member
        return None


class Skill(StrEnum):
    """D&D 5E skills and their associated abilities.

    Lookup is lenient about spacing and case, so ``Skill("Animal Handling")``
    and ``Skill("animal-handling")`` both resolve to ``Skill.ANIMAL_HANDLING``.
    """

    # Strength skills
    ATHLETICS = "athletics"

    # Dexterity skills
    ACROBATICS = "acrobatics"
    SLEIGHT_OF_HAND = "sleight_of_hand"
    STEALTH = "stealth"

    # Intelligence skills
    ARCANA = "arcana"
    HISTORY = "history"
    INVESTIGATION = "investigation"
    NATURE = "nature"
    RELIGION = "religion"

    # Wisdom skills
    ANIMAL_HANDLING = "animal_handling"
    INSIGHT = "insight"
    MEDICINE = "medicine"
    PERCEPTION = "perception"
    SURVIVAL = "survival"

    # Charisma skills
    DECEPTION = "deception"
    INTIMIDATION = "intimidation"
    PERFORMANCE = "performance"
    PERSUASION = "persuasion"

    @property
    def ability(self) -> Ability:
        """Get the governing ability score for this skill.

        Returns:
            The Ability enum value associated with this skill.
        """
        skill_abilities: dict[Skill, Ability] = {
            # Strength
            Skill.ATHLETICS: Ability.STR,
            # Dexterity
            Skill.ACROBATICS: Ability.DEX,
            Skill.SLEIGHT_OF_HAND: Ability.DEX,
            Skill.STEALTH: Ability.DEX,
            # Intelligence
            Skill.ARCANA: Ability.INT,
            Skill.HISTORY: Ability.INT,
            Skill.INVESTIGATION: Ability.INT,
            Skill.NATURE: Ability.INT,
            Skill.RELIGION: Ability.INT,
            # Wisdom
            Skill.ANIMAL_HANDLING: Ability.WIS,
            Skill.INSIGHT: Ability.WIS,
            Skill.MEDICINE: Ability.WIS,
            Skill.PERCEPTION: Ability.WIS,
            Skill.SURVIVAL: Ability.WIS,
            # Charisma
            Skill.DECEPTION: Ability.CHA,
            Skill.INTIMIDATION: Ability.CHA,
            Skill.PERFORMANCE: Ability.CHA,
            Skill.PERSUASION: Ability.CHA,
        }
        return skill_abilities[self]

    @property
    def display_name(self) -> str:
        """Get human-readable skill name.

        Returns:
            Formatted skill name (e.g., 'Sleight Of Hand').
        """
        return self.value.replace("_", " ").title()

    @classmethod
    def _missing_(cls, value: object) -> Skill | None:
        if not isinstance(value, str):
            return None
        key = value.strip().lower().replace(" ", "_").replace("-", "_")
        return cls._value2member_map_.get(key)  # type: ignore[return-value]


class ProficiencyType(StrEnum):
    """Categories a proficiency grant can target."""

    ARMOR = "armor"
    WEAPON = "weapon"
    TOOL = "tool"
    LANGUAGE = "language"
    SAVING_THROW = "savingThrow"
    SKILL = "skill"

    @property
    def list_name(self) -> str:
        """Get the derived proficiency list this category writes to.

        Returns:
            Attribute name on ``DerivedProficiencies`` (e.g., 'weapons').
        """
        list_names = {
            ProficiencyType.ARMOR: "armor",
            ProficiencyType.WEAPON: "weapons",
            ProficiencyType.TOOL: "tools",
            ProficiencyType.LANGUAGE: "languages",
            ProficiencyType.SAVING_THROW: "saving_throws",
            ProficiencyType.SKILL: "skills",
        }
        return list_names[self]


class Edition(StrEnum):
    """Rules editions supported by effect content."""

    E2014 = "2014"
    E2024 = "2024"


class EditionFilter(StrEnum):
    """Edition gate carried by a sourced effect."""

    E2014 = "2014"
    E2024 = "2024"
    BOTH = "both"


class EffectPriority(StrEnum):
    """Priority tiers, listed in resolution order."""

    BASE = "base"
    ADDITIVE = "additive"
    MULTIPLICATIVE = "multiplicative"
    OVERRIDE = "override"
    FLAG = "flag"


class StackingRule(StrEnum):
    """How multiple contributions to the same numeric field combine.

    ``highest`` is an alias of ``max``. ``flag`` and ``sources`` only
    record provenance and leave numeric totals alone.
    """

    STACK = "stack"
    HIGHEST = "highest"
    MAX = "max"
    FLAG = "flag"
    SOURCES = "sources"


class BonusType(StrEnum):
    """Informational bonus categories."""

    ENHANCEMENT = "enhancement"
    ARMOR = "armor"
    SHIELD = "shield"
    NATURAL = "natural"
    DEFLECTION = "deflection"
    DODGE = "dodge"
    CIRCUMSTANCE = "circumstance"
    UNTYPED = "untyped"


class MovementType(StrEnum):
    """Movement modes."""

    WALK = "walk"
    FLY = "fly"
    SWIM = "swim"
    CLIMB = "climb"
    BURROW = "burrow"


class SenseType(StrEnum):
    """Special senses."""

    DARKVISION = "darkvision"
    BLINDSIGHT = "blindsight"
    TREMORSENSE = "tremorsense"
    TRUESIGHT = "truesight"


class ResourceType(StrEnum):
    """Recharge behaviour of a limited-use resource."""

    SPELL_SLOT = "spellSlot"
    PER_LONG_REST = "perLongRest"
    PER_SHORT_REST = "perShortRest"
    PER_TURN = "perTurn"
    UNLIMITED = "unlimited"


class SpellcastingType(StrEnum):
    """How a class or feature grants spells."""

    INNATE = "innate"
    KNOWN = "known"
    ALWAYS_PREPARED = "alwaysPrepared"
    PREPARED = "prepared"
    SPELLBOOK = "spellbook"


class SpellListType(StrEnum):
    """Spell list buckets on the derived spellcasting block."""

    CANTRIP = "cantrip"
    KNOWN = "known"
    ALWAYS_PREPARED = "alwaysPrepared"
    PREPARED = "prepared"


class RestrictionType(StrEnum):
    """Equipment restriction categories."""

    CANNOT_WEAR = "cannotWear"
    CANNOT_WIELD = "cannotWield"
    REQUIRES_ATTUNEMENT = "requiresAttunement"


class ChoiceType(StrEnum):
    """Kinds of player decision a choice effect asks for."""

    SELECT = "select"
    MULTISELECT = "multiselect"
    NUMBER = "number"
    TEXT = "text"


class DurationType(StrEnum):
    """Duration kinds for temporary effects."""

    PERMANENT = "permanent"
    ROUNDS = "rounds"
    MINUTES = "minutes"
    HOURS = "hours"
    UNTIL_LONG_REST = "untilLongRest"
    UNTIL_SHORT_REST = "untilShortRest"
    CONCENTRATION = "concentration"


class RestType(StrEnum):
    """Rest lengths for runtime resource recovery."""

    SHORT = "short"
    LONG = "long"


__all__ = [
    "Ability",
    "Skill",
    "ProficiencyType",
    "Edition",
    "EditionFilter",
    "EffectPriority",
    "StackingRule",
    "BonusType",
    "MovementType",
    "SenseType",
    "ResourceType",
    "SpellcastingType",
    "SpellListType",
    "RestrictionType",
    "ChoiceType",
    "DurationType",
    "RestType",
]
