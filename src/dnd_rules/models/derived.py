"""Derived state: the accumulator and output of one character evaluation.

A ``DerivedState`` is allocated fresh from ``BaseFacts`` for every run,
mutated in place by the effect applier and then finalized. It is never
shared between evaluations.

Numeric fields written from effect values are typed ``int | float``
because formulas may produce fractional results.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from dnd_rules.core.constants import (
    DEFAULT_MAX_ATTUNED_ITEMS,
    DEFAULT_PROFICIENCY_BONUS,
    PROFICIENCY_LEVEL_STEP,
)
from dnd_rules.models.enums import (
    Ability,
    ChoiceType,
    EffectPriority,
    ProficiencyType,
    ResourceType,
    Skill,
    SpellListType,
    StackingRule,
)


def calculate_modifier(score: int | float) -> int:
    """Calculate the ability modifier from an ability score.

    The modifier is calculated as: floor((score - 10) / 2)

    Args:
        score: The ability score.

    Returns:
        The ability modifier.

    Example:
        >>> calculate_modifier(10)
        0
        >>> calculate_modifier(19)
        4
    """
    return int((score - 10) // 2)


def calculate_proficiency_bonus(level: int) -> int:
    """Calculate the proficiency bonus for a total character level.

    Args:
        level: Total character level.

    Returns:
        floor((level - 1) / 4) + 2 (level 1 -> +2, level 17 -> +6).
    """
    return (level - 1) // PROFICIENCY_LEVEL_STEP + DEFAULT_PROFICIENCY_BONUS


def normalize_proficiency_value(prof_type: ProficiencyType, value: str) -> str:
    """Canonicalize a proficiency entry.

    Skill and saving throw entries are stored as enum values so
    'Animal Handling' and 'animal_handling' compare equal. Other
    categories are free-form and kept as given.

    Args:
        prof_type: Proficiency category.
        value: Raw entry from effect content.

    Returns:
        The canonical entry.
    """
    try:
        if prof_type == ProficiencyType.SKILL:
            return Skill(value).value
        if prof_type == ProficiencyType.SAVING_THROW:
            return Ability(value).value
    except ValueError:
        return value
    return value


class DerivedModel(BaseModel):
    """Base class for mutable derived-state records."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# Abilities, Saves & Skills
# =============================================================================


class DerivedAbility(DerivedModel):
    score: int | float
    modifier: int


class DerivedSave(DerivedModel):
    """Saving throw record.

    Attributes:
        proficient: Whether proficiency applies.
        bonus: Final bonus, written by the finalizer.
        effect_bonus: Bonus accumulated from effects.
        advantage: Source ids granting advantage.
        disadvantage: Source ids imposing disadvantage.
    """

    proficient: bool = False
    bonus: int | float = 0
    effect_bonus: int | float = 0
    advantage: list[str] = Field(default_factory=list)
    disadvantage: list[str] = Field(default_factory=list)


class DerivedSkill(DerivedModel):
    """Skill record. ``bonus`` is final, ``effect_bonus`` accumulated."""

    ability: Ability
    proficient: bool = False
    expertise: bool = False
    bonus: int | float = 0
    effect_bonus: int | float = 0


class DerivedProficiencies(DerivedModel):
    armor: list[str] = Field(default_factory=list)
    weapons: list[str] = Field(default_factory=list)
    tools: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    saving_throws: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)


class DerivedExpertise(DerivedModel):
    skills: list[str] = Field(default_factory=list)
    tools: list[str] = Field(default_factory=list)


# =============================================================================
# Combat Statistics
# =============================================================================


class ArmorClassContribution(DerivedModel):
    """One candidate AC value awaiting priority resolution."""

    source_id: str
    value: int | float
    priority: EffectPriority | None = None
    stacking: StackingRule | None = None


class HitPointContribution(DerivedModel):
    """One hit point maximum modifier awaiting resolution."""

    source_id: str
    value: int | float
    priority: EffectPriority | None = None
    stacking: StackingRule | None = None


class DerivedArmorClass(DerivedModel):
    value: int | float
    sources: list[str] = Field(default_factory=list)


class DerivedInitiative(DerivedModel):
    """Initiative record. ``bonus`` is final, ``effect_bonus`` accumulated."""

    bonus: int | float = 0
    effect_bonus: int | float = 0
    advantage: list[str] = Field(default_factory=list)
    disadvantage: list[str] = Field(default_factory=list)


class DerivedSense(DerivedModel):
    type: str
    range: int
    sources: list[str] = Field(default_factory=list)


# =============================================================================
# Spellcasting & Resources
# =============================================================================


class SpellSlotPool(DerivedModel):
    max: int | float = 0
    used: int = 0


class DerivedSpellcasting(DerivedModel):
    """Spellcasting block, created by a spellcasting ability effect."""

    ability: Ability
    save_dc: int = 0
    attack_bonus: int = 0
    slots: dict[int, SpellSlotPool] = Field(default_factory=dict)
    spells_known: list[str] = Field(default_factory=list)
    spells_prepared: list[str] = Field(default_factory=list)
    spells_always_prepared: list[str] = Field(default_factory=list)
    cantrips: list[str] = Field(default_factory=list)

    def spell_list(self, list_type: SpellListType) -> list[str]:
        """Get the spell list bucket for a list type.

        Args:
            list_type: Bucket to return.

        Returns:
            The mutable list backing that bucket.
        """
        buckets = {
            SpellListType.CANTRIP: self.cantrips,
            SpellListType.KNOWN: self.spells_known,
            SpellListType.ALWAYS_PREPARED: self.spells_always_prepared,
            SpellListType.PREPARED: self.spells_prepared,
        }
        return buckets[list_type]


class DerivedResource(DerivedModel):
    id: str
    max: int | float
    current: int | float
    type: ResourceType
    sources: list[str] = Field(default_factory=list)


# =============================================================================
# Features, Choices & Equipment
# =============================================================================


class DerivedFeature(DerivedModel):
    id: str
    name: str
    description: str = ""
    source: str


class DerivedChoiceOption(DerivedModel):
    value: str
    label: str
    description: str | None = None


class DerivedChoice(DerivedModel):
    """A choice surfaced to the caller.

    Attributes:
        resolved: True when ``BaseFacts.choices`` already holds an answer.
        selected: The recorded answer, if any.
    """

    id: str
    prompt: str
    type: ChoiceType
    source_id: str
    options: list[DerivedChoiceOption] = Field(default_factory=list)
    min: int | None = None
    max: int | None = None
    resolved: bool = False
    selected: int | str | list[str] | None = None


class DerivedEquipmentRestrictions(DerivedModel):
    cannot_wear: list[str] = Field(default_factory=list)
    cannot_wield: list[str] = Field(default_factory=list)
    requires_attunement: list[str] = Field(default_factory=list)


class DerivedAttunement(DerivedModel):
    attuned_items: list[str] = Field(default_factory=list)
    max_attuned_items: int = DEFAULT_MAX_ATTUNED_ITEMS


class ProvenanceEntry(DerivedModel):
    """Audit record of one effect evaluation outcome."""

    source_id: str
    effect_id: str
    applied: bool
    reason: str | None = None
    value: Any = None


# =============================================================================
# Derived State
# =============================================================================


class DerivedState(DerivedModel):
    """Fully computed character sheet plus its provenance log.

    ``ac_contributions`` and ``hp_contributions`` are scratch lists filled
    by the applier and consumed by the finalizer.
    """

    abilities: dict[Ability, DerivedAbility]
    proficiency_bonus: int
    proficiencies: DerivedProficiencies = Field(default_factory=DerivedProficiencies)
    expertise: DerivedExpertise = Field(default_factory=DerivedExpertise)
    saves: dict[Ability, DerivedSave]
    skills: dict[Skill, DerivedSkill]
    ac: DerivedArmorClass
    initiative: DerivedInitiative = Field(default_factory=DerivedInitiative)
    hit_points: int | float = 0
    speed: dict[str, int | float] = Field(default_factory=dict)
    senses: list[DerivedSense] = Field(default_factory=list)
    spellcasting: DerivedSpellcasting | None = None
    resources: dict[str, DerivedResource] = Field(default_factory=dict)
    features: list[DerivedFeature] = Field(default_factory=list)
    choices: list[DerivedChoice] = Field(default_factory=list)
    equipment_restrictions: DerivedEquipmentRestrictions = Field(
        default_factory=DerivedEquipmentRestrictions
    )
    attunement: DerivedAttunement = Field(default_factory=DerivedAttunement)
    tags: list[str] = Field(default_factory=list)
    applied_effects: list[ProvenanceEntry] = Field(default_factory=list)

    ac_contributions: list[ArmorClassContribution] = Field(default_factory=list)
    hp_contributions: list[HitPointContribution] = Field(default_factory=list)

    def modifier(self, ability: Ability) -> int:
        """Get the current modifier for an ability."""
        return self.abilities[ability].modifier

    def has_tag(self, tag: str) -> bool:
        """Check whether a tag is present."""
        return tag in self.tags

    def add_tag(self, tag: str) -> None:
        """Insert a tag, keeping the list free of duplicates."""
        if tag not in self.tags:
            self.tags.append(tag)

    def has_feature(self, feature_id: str) -> bool:
        """Check whether a feature id has been granted."""
        return any(feature.id == feature_id for feature in self.features)

    def is_proficient(self, prof_type: ProficiencyType | str, value: str) -> bool:
        """Check a categorized proficiency list for a value.

        Args:
            prof_type: Proficiency category (e.g. 'weapon', 'skill').
            value: Entry to look for.

        Returns:
            True if the category's list contains the value.
        """
        try:
            category = ProficiencyType(prof_type)
        except ValueError:
            return False
        entries: list[str] = getattr(self.proficiencies, category.list_name)
        return normalize_proficiency_value(category, value) in entries

    def applied_entries(self) -> list[ProvenanceEntry]:
        """Get provenance entries for effects that applied."""
        return [entry for entry in self.applied_effects if entry.applied]

    def skipped_entries(self) -> list[ProvenanceEntry]:
        """Get provenance entries for effects that did not apply."""
        return [entry for entry in self.applied_effects if not entry.applied]


__all__ = [
    "calculate_modifier",
    "calculate_proficiency_bonus",
    "normalize_proficiency_value",
    "DerivedModel",
    "DerivedAbility",
    "DerivedSave",
    "DerivedSkill",
    "DerivedProficiencies",
    "DerivedExpertise",
    "ArmorClassContribution",
    "HitPointContribution",
    "DerivedArmorClass",
    "DerivedInitiative",
    "DerivedSense",
    "SpellSlotPool",
    "DerivedSpellcasting",
    "DerivedResource",
    "DerivedFeature",
    "DerivedChoiceOption",
    "DerivedChoice",
    "DerivedEquipmentRestrictions",
    "DerivedAttunement",
    "ProvenanceEntry",
    "DerivedState",
]
