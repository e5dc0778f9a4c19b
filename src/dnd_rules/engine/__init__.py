"""Rules engine for the D&D 5E character sheet.

This module evaluates base facts plus sourced effects into a derived
character sheet, and manages play-time resources afterwards.

Submodules:
    formulas: Sandboxed arithmetic over character variables
    predicates: Guards deciding whether an effect applies
    phases: Ordering of sourced effects by source type
    applier: Effect handler registry and provenance recording
    finalizers: Saves, skills, spellcasting, AC, HP and initiative totals
    executor: The evaluation pipeline and the configured RulesEngine
    resources: Pure operations on runtime CharacterState
    validation: Content loading and authoring checks

Example:
    >>> from dnd_rules.engine import RulesEngine, initialize_character_state
    >>>
    >>> engine = RulesEngine()
    >>> derived = engine.evaluate(facts, effects)
    >>> state = initialize_character_state("char-1", derived)
"""

from __future__ import annotations

# =============================================================================
# Formulas & Predicates
# =============================================================================
from dnd_rules.engine.formulas import (
    FORMULA_FUNCTIONS,
    create_formula_context,
    evaluate_formula,
    parse_expression,
    resolve_variable,
)
from dnd_rules.engine.predicates import (
    PredicateContext,
    evaluate_predicate,
    evaluate_predicates,
)

# =============================================================================
# Scheduling & Application
# =============================================================================
from dnd_rules.engine.phases import (
    EXECUTION_PHASES,
    UNKNOWN_PHASE,
    ExecutionPhase,
    get_phase_for_source,
    group_effects_by_phase,
    schedule,
    sort_effects_by_priority,
)
from dnd_rules.engine.applier import (
    EffectApplication,
    EffectHandler,
    apply_effect,
    apply_sourced_effect,
    effect_handler,
    get_effect_handler,
    is_choice_answered,
    registered_effect_kinds,
    resolve_effect_value,
)
from dnd_rules.engine.finalizers import (
    finalize_armor_class,
    finalize_derived_state,
    finalize_hit_points,
    finalize_initiative,
    finalize_saving_throws,
    finalize_skills,
    finalize_spellcasting,
)

# =============================================================================
# Evaluation
# =============================================================================
from dnd_rules.engine.executor import (
    RulesEngine,
    calculate_modifier,
    calculate_proficiency_bonus,
    collect_pending_choices,
    evaluate_character,
    initialize_derived_state,
    recalculate_ability_modifiers,
)

# =============================================================================
# Runtime State & Content
# =============================================================================
from dnd_rules.engine.resources import (
    apply_rest,
    consume_resource,
    consume_spell_slot,
    gain_temp_hp,
    heal,
    initialize_character_state,
    restore_resource,
    restore_spell_slots,
    take_damage,
)
from dnd_rules.engine.validation import (
    ContentIssue,
    find_content_issues,
    load_sourced_effects,
)


__all__ = [
    # Formulas
    "FORMULA_FUNCTIONS",
    "parse_expression",
    "resolve_variable",
    "create_formula_context",
    "evaluate_formula",
    # Predicates
    "PredicateContext",
    "evaluate_predicates",
    "evaluate_predicate",
    # Phases
    "ExecutionPhase",
    "EXECUTION_PHASES",
    "UNKNOWN_PHASE",
    "get_phase_for_source",
    "group_effects_by_phase",
    "sort_effects_by_priority",
    "schedule",
    # Applier
    "EffectApplication",
    "EffectHandler",
    "effect_handler",
    "get_effect_handler",
    "registered_effect_kinds",
    "resolve_effect_value",
    "apply_sourced_effect",
    "apply_effect",
    "is_choice_answered",
    # Finalizers
    "finalize_derived_state",
    "finalize_saving_throws",
    "finalize_skills",
    "finalize_spellcasting",
    "finalize_armor_class",
    "finalize_hit_points",
    "finalize_initiative",
    # Executor
    "RulesEngine",
    "evaluate_character",
    "initialize_derived_state",
    "collect_pending_choices",
    "calculate_modifier",
    "calculate_proficiency_bonus",
    "recalculate_ability_modifiers",
    # Runtime state
    "initialize_character_state",
    "consume_resource",
    "restore_resource",
    "consume_spell_slot",
    "restore_spell_slots",
    "take_damage",
    "heal",
    "gain_temp_hp",
    "apply_rest",
    # Content
    "ContentIssue",
    "load_sourced_effects",
    "find_content_issues",
]
