"""Pydantic V2 data contracts for the D&D 5E rules engine.

Submodules:
    enums: Enumeration types (Ability, Skill, StackingRule, EffectPriority, etc.)
    formulas: Formula expressions and the formula variable context.
    predicates: Predicate guards (simple facts and and/or/not composites).
    effects: Effect kinds, choices and sourced effect bundles.
    facts: Immutable base facts describing player choices.
    derived: Derived state accumulator and provenance log.
    state: Runtime character state for play-time resource tracking.

Example:
    >>> from dnd_rules.models import BaseFacts, SourcedEffect
    >>> bundle = SourcedEffect.model_validate({
    ...     "source_id": "species:elf",
    ...     "effect_id": "elf-darkvision",
    ...     "name": "Darkvision",
    ...     "effects": [{"kind": "sense", "sense_type": "darkvision", "range": 60}],
    ... })
"""

from __future__ import annotations

# =============================================================================
# Enumerations
# =============================================================================
from dnd_rules.models.enums import (
    Ability,
    BonusType,
    ChoiceType,
    DurationType,
    Edition,
    EditionFilter,
    EffectPriority,
    MovementType,
    ProficiencyType,
    ResourceType,
    RestrictionType,
    RestType,
    SenseType,
    Skill,
    SpellcastingType,
    SpellListType,
    StackingRule,
)

# =============================================================================
# Derived State
# =============================================================================
from dnd_rules.models.derived import (
    ArmorClassContribution,
    DerivedAbility,
    DerivedArmorClass,
    DerivedAttunement,
    DerivedChoice,
    DerivedChoiceOption,
    DerivedEquipmentRestrictions,
    DerivedExpertise,
    DerivedFeature,
    DerivedInitiative,
    DerivedProficiencies,
    DerivedResource,
    DerivedSave,
    DerivedSense,
    DerivedSkill,
    DerivedSpellcasting,
    DerivedState,
    HitPointContribution,
    ProvenanceEntry,
    SpellSlotPool,
    calculate_modifier,
    calculate_proficiency_bonus,
    normalize_proficiency_value,
)

# =============================================================================
# Formulas & Predicates
# =============================================================================
from dnd_rules.models.formulas import Formula, FormulaContext, Number, ValueOrFormula
from dnd_rules.models.predicates import (
    PREDICATE_TYPES,
    AbilityAtLeast,
    And,
    ClassIs,
    ClassLevelAtLeast,
    EditionIs,
    Equipped,
    HasCondition,
    HasFeat,
    HasFeature,
    HasProficiency,
    HasTag,
    LevelAtLeast,
    LevelAtMost,
    Not,
    Or,
    Predicate,
    SpeciesIs,
    UnknownPredicate,
)

# =============================================================================
# Effects
# =============================================================================
from dnd_rules.models.effects import (
    EFFECT_KINDS,
    AbilityScoreIncreaseEffect,
    ArmorClassEffect,
    ChoiceOption,
    ConditionEffect,
    ConditionImmunityEffect,
    DamageResistanceEffect,
    Duration,
    Effect,
    EffectBase,
    EffectChoice,
    EquipmentRestrictionEffect,
    GrantFeatureEffect,
    GrantProficiencyEffect,
    GrantSpellEffect,
    HitPointMaxEffect,
    HitPointsEffect,
    InitiativeBonusEffect,
    ResourceEffect,
    SaveAdvantageEffect,
    SaveBonusEffect,
    SavingThrowBonusEffect,
    SenseEffect,
    SkillBonusEffect,
    SkillExpertiseEffect,
    SkillProficiencyEffect,
    SourcedEffect,
    SpeedEffect,
    SpellcastingAbilityEffect,
    SpellSlotsEffect,
    TagEffect,
    TemporaryEffect,
    UnknownEffect,
)

# =============================================================================
# Facts & Runtime State
# =============================================================================
from dnd_rules.models.facts import AbilityScore, BaseFacts, ChoiceAnswer, Level
from dnd_rules.models.state import (
    ActionEconomy,
    ActiveCondition,
    CharacterState,
    ConcentrationState,
    SpellSlotState,
    StateUpdateResult,
    TrackedResource,
)


__all__ = [
    # Enums
    "Ability",
    "BonusType",
    "ChoiceType",
    "DurationType",
    "Edition",
    "EditionFilter",
    "EffectPriority",
    "MovementType",
    "ProficiencyType",
    "ResourceType",
    "RestrictionType",
    "RestType",
    "SenseType",
    "Skill",
    "SpellcastingType",
    "SpellListType",
    "StackingRule",
    # Formulas
    "Number",
    "Formula",
    "FormulaContext",
    "ValueOrFormula",
    # Predicates
    "Predicate",
    "PREDICATE_TYPES",
    "LevelAtLeast",
    "LevelAtMost",
    "HasTag",
    "EditionIs",
    "ClassIs",
    "ClassLevelAtLeast",
    "SpeciesIs",
    "AbilityAtLeast",
    "HasFeat",
    "HasFeature",
    "HasProficiency",
    "Equipped",
    "HasCondition",
    "And",
    "Or",
    "Not",
    "UnknownPredicate",
    # Effects
    "Effect",
    "EFFECT_KINDS",
    "EffectBase",
    "GrantProficiencyEffect",
    "AbilityScoreIncreaseEffect",
    "SaveAdvantageEffect",
    "SaveBonusEffect",
    "SavingThrowBonusEffect",
    "SkillProficiencyEffect",
    "SkillExpertiseEffect",
    "SkillBonusEffect",
    "ArmorClassEffect",
    "InitiativeBonusEffect",
    "SpeedEffect",
    "SenseEffect",
    "HitPointMaxEffect",
    "HitPointsEffect",
    "ResourceEffect",
    "SpellcastingAbilityEffect",
    "GrantSpellEffect",
    "SpellSlotsEffect",
    "GrantFeatureEffect",
    "TagEffect",
    "EquipmentRestrictionEffect",
    "ConditionEffect",
    "DamageResistanceEffect",
    "ConditionImmunityEffect",
    "UnknownEffect",
    "ChoiceOption",
    "EffectChoice",
    "SourcedEffect",
    "Duration",
    "TemporaryEffect",
    # Facts
    "AbilityScore",
    "Level",
    "ChoiceAnswer",
    "BaseFacts",
    # Derived state
    "calculate_modifier",
    "calculate_proficiency_bonus",
    "normalize_proficiency_value",
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
    # Runtime state
    "TrackedResource",
    "SpellSlotState",
    "ActiveCondition",
    "ConcentrationState",
    "ActionEconomy",
    "CharacterState",
    "StateUpdateResult",
]
