"""Effect application: guards, dispatch and provenance.

For each sourced effect the applier checks the edition gate, resolves a
pending choice if there is one, then runs every effect whose predicates
hold through the handler registered for its ``kind``. Every outcome,
applied or not, appends one ``ProvenanceEntry`` to the derived state.

Handlers are registered with the ``effect_handler`` decorator. Adding an
effect kind means adding a model in ``dnd_rules.models.effects`` and one
decorated handler here; a kind with no handler is recorded as not
applied.

Example:
    >>> @effect_handler("tag")
    ... def apply_tag(application: EffectApplication, effect: TagEffect) -> None:
    ...     ...
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from dnd_rules.core.logging import get_logger
from dnd_rules.engine.formulas import create_formula_context, evaluate_formula
from dnd_rules.engine.predicates import PredicateContext, evaluate_predicates
from dnd_rules.models.derived import (
    ArmorClassContribution,
    DerivedFeature,
    DerivedResource,
    DerivedSense,
    DerivedSpellcasting,
    DerivedState,
    HitPointContribution,
    ProvenanceEntry,
    SpellSlotPool,
    calculate_modifier,
    normalize_proficiency_value,
)
from dnd_rules.models.effects import (
    AbilityScoreIncreaseEffect,
    ArmorClassEffect,
    ConditionEffect,
    ConditionImmunityEffect,
    DamageResistanceEffect,
    Effect,
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
)
from dnd_rules.models.enums import (
    Ability,
    EditionFilter,
    EffectPriority,
    ProficiencyType,
    RestrictionType,
    Skill,
    SpellcastingType,
    SpellListType,
    StackingRule,
)
from dnd_rules.models.facts import BaseFacts, ChoiceAnswer
from dnd_rules.models.formulas import Formula, Number, ValueOrFormula


logger = get_logger(__name__)


# =============================================================================
# Application Context
# =============================================================================


@dataclass
class EffectApplication:
    """Everything a handler needs to apply one effect of a sourced bundle.

    Attributes:
        facts: Base facts of the character.
        derived: Derived state being accumulated.
        sourced: The sourced effect the current effect belongs to.
        strict_formulas: Raise on malformed formulas instead of using 0.
    """

    facts: BaseFacts
    derived: DerivedState
    sourced: SourcedEffect
    strict_formulas: bool = False

    def resolve(self, value: ValueOrFormula) -> Number:
        """Resolve a literal or formula against the current state."""
        return resolve_effect_value(
            value, self.facts, self.derived, strict=self.strict_formulas
        )

    def applied(self, value: Any = None) -> None:
        """Record that an effect applied."""
        self.derived.applied_effects.append(
            ProvenanceEntry(
                source_id=self.sourced.source_id,
                effect_id=self.sourced.effect_id,
                applied=True,
                value=value,
            )
        )

    def skipped(self, reason: str) -> None:
        """Record that an effect did not apply, and why."""
        self.derived.applied_effects.append(
            ProvenanceEntry(
                source_id=self.sourced.source_id,
                effect_id=self.sourced.effect_id,
                applied=False,
                reason=reason,
            )
        )


# =============================================================================
# Handler Registry
# =============================================================================

EffectHandler = Callable[[EffectApplication, Any], None]
H = TypeVar("H", bound=EffectHandler)

# Global handler registry
_effect_handlers: dict[str, EffectHandler] = {}


def effect_handler(kind: str) -> Callable[[H], H]:
    """Decorator to register the handler for an effect kind.

    Args:
        kind: Effect ``kind`` tag the handler applies.

    Returns:
        Decorator that registers and returns the function unchanged.
    """

    def decorator(func: H) -> H:
        _effect_handlers[kind] = func
        return func

    return decorator


def get_effect_handler(kind: str) -> EffectHandler | None:
    """Get the handler registered for an effect kind."""
    return _effect_handlers.get(kind)


def registered_effect_kinds() -> list[str]:
    """Get all effect kinds that have a handler."""
    return sorted(_effect_handlers)


# =============================================================================
# Public API
# =============================================================================


def resolve_effect_value(
    value: ValueOrFormula,
    facts: BaseFacts,
    derived: DerivedState,
    *,
    strict: bool = False,
) -> Number:
    """Resolve a numeric effect field.

    Args:
        value: Literal number or formula.
        facts: Base facts of the character.
        derived: Derived state as accumulated so far.
        strict: Raise ``FormulaError`` on malformed formulas.

    Returns:
        The resolved number.
    """
    if isinstance(value, Formula):
        return evaluate_formula(value, create_formula_context(facts, derived), strict=strict)
    return value


def apply_sourced_effect(
    facts: BaseFacts,
    derived: DerivedState,
    sourced: SourcedEffect,
    *,
    strict_formulas: bool = False,
    record_choice_summary: bool = True,
) -> None:
    """Apply one sourced effect bundle to the derived state.

    Args:
        facts: Base facts of the character.
        derived: Derived state, mutated in place.
        sourced: Bundle to apply.
        strict_formulas: Raise on malformed formulas instead of using 0.
        record_choice_summary: Append a 'Choice: ...' entry after a resolved choice.
    """
    application = EffectApplication(facts, derived, sourced, strict_formulas)

    if sourced.edition not in (None, EditionFilter.BOTH) and sourced.edition != facts.edition:
        application.skipped(f"Edition mismatch (requires {sourced.edition})")
        return

    if sourced.choice is not None:
        _apply_choice(application, sourced.choice, record_choice_summary=record_choice_summary)
        return

    for effect in sourced.effects:
        _dispatch(application, effect)


def apply_effect(
    facts: BaseFacts,
    derived: DerivedState,
    sourced: SourcedEffect,
    effect: Effect,
    *,
    strict_formulas: bool = False,
) -> None:
    """Apply a single effect on behalf of a sourced bundle.

    The effect's predicates are checked first; a failing guard skips only
    this effect.

    Args:
        facts: Base facts of the character.
        derived: Derived state, mutated in place.
        sourced: Bundle the effect belongs to (used for provenance).
        effect: Effect to apply.
        strict_formulas: Raise on malformed formulas instead of using 0.
    """
    _dispatch(EffectApplication(facts, derived, sourced, strict_formulas), effect)


def is_choice_answered(answer: ChoiceAnswer | None) -> bool:
    """Check whether a recorded choice answer counts as made.

    None, empty strings and empty lists are pending; 0 is a valid answer.
    """
    return answer is not None and answer != "" and answer != []


def _dispatch(application: EffectApplication, effect: Effect) -> None:
    if effect.predicate and not evaluate_predicates(
        effect.predicate, PredicateContext(application.facts, application.derived)
    ):
        application.skipped("Predicate failed")
        return

    handler = _effect_handlers.get(effect.kind)
    if handler is None:
        logger.warning(
            "Unknown effect kind",
            kind=effect.kind,
            source_id=application.sourced.source_id,
            effect_id=application.sourced.effect_id,
        )
        application.skipped(f"Unknown effect kind: {effect.kind}")
        return

    handler(application, effect)


def _apply_choice(
    application: EffectApplication,
    choice: EffectChoice,
    *,
    record_choice_summary: bool,
) -> None:
    answer = application.facts.choices.get(choice.id)
    if not is_choice_answered(answer):
        application.skipped(f"Choice not made: {choice.id}")
        return

    selected = answer if isinstance(answer, list) else [str(answer)]
    for value in selected:
        option = choice.get_option(value)
        if option is None:
            if choice.options:
                application.skipped(f"Unknown option for {choice.id}: {value}")
            continue
        for effect in option.effects:
            _dispatch(application, effect)

    if record_choice_summary:
        application.applied(f"Choice: {json.dumps(answer, separators=(',', ':'))}")


def _combine(current: Number, value: Number, stacking: StackingRule | None) -> Number:
    """Combine a running total with a new contribution.

    ``stack`` (the default) sums; ``max``/``highest`` keep the larger;
    ``flag``/``sources`` leave the total unchanged.
    """
    if stacking is None or stacking == StackingRule.STACK:
        return current + value
    if stacking in (StackingRule.MAX, StackingRule.HIGHEST):
        return max(current, value)
    return current


def _insert_unique(target: list[str], values: list[str]) -> None:
    for value in values:
        if value not in target:
            target.append(value)


def recalculate_ability_modifiers(derived: DerivedState) -> None:
    """Recompute every ability modifier from its current score."""
    for ability_data in derived.abilities.values():
        ability_data.modifier = calculate_modifier(ability_data.score)


# =============================================================================
# Proficiencies & Abilities
# =============================================================================


@effect_handler("grantProficiency")
def apply_grant_proficiency(application: EffectApplication, effect: GrantProficiencyEffect) -> None:
    derived = application.derived
    values = [normalize_proficiency_value(effect.prof_type, value) for value in effect.values]
    _insert_unique(getattr(derived.proficiencies, effect.prof_type.list_name), values)

    if effect.prof_type == ProficiencyType.SKILL:
        for value in values:
            if value in Skill._value2member_map_:
                derived.skills[Skill(value)].proficient = True
    elif effect.prof_type == ProficiencyType.SAVING_THROW:
        for value in values:
            if value in Ability._value2member_map_:
                derived.saves[Ability(value)].proficient = True

    application.applied(list(effect.values))


@effect_handler("abilityScoreIncrease")
def apply_ability_score_increase(
    application: EffectApplication, effect: AbilityScoreIncreaseEffect
) -> None:
    value = application.resolve(effect.value)
    application.derived.abilities[effect.ability].score += value
    recalculate_ability_modifiers(application.derived)
    application.applied(f"+{value} {effect.ability}")


@effect_handler("saveAdvantage")
def apply_save_advantage(application: EffectApplication, effect: SaveAdvantageEffect) -> None:
    source_id = application.sourced.source_id
    for ability in effect.abilities:
        _insert_unique(application.derived.saves[ability].advantage, [source_id])
    application.applied(f"Advantage on {', '.join(effect.abilities)} saves")


def _apply_save_bonus(
    application: EffectApplication,
    abilities: list[Ability],
    value: Number,
    stacking: StackingRule | None,
) -> None:
    for ability in abilities:
        save = application.derived.saves[ability]
        save.effect_bonus = _combine(save.effect_bonus, value, stacking)
    application.applied(f"+{value} to {', '.join(abilities)} saves")


@effect_handler("saveBonus")
def apply_save_bonus(application: EffectApplication, effect: SaveBonusEffect) -> None:
    value = application.resolve(effect.value)
    _apply_save_bonus(application, list(effect.abilities), value, effect.stacking)


@effect_handler("savingThrowBonus")
def apply_saving_throw_bonus(application: EffectApplication, effect: SavingThrowBonusEffect) -> None:
    value = application.resolve(effect.value)
    abilities = list(Ability) if effect.ability == "all" else [Ability(effect.ability)]
    _apply_save_bonus(application, abilities, value, effect.stacking or StackingRule.STACK)


@effect_handler("skillProficiency")
def apply_skill_proficiency(application: EffectApplication, effect: SkillProficiencyEffect) -> None:
    derived = application.derived
    _insert_unique(derived.proficiencies.skills, [effect.skill.value])
    derived.skills[effect.skill].proficient = True
    application.applied(f"Proficiency in {effect.skill.display_name}")


@effect_handler("skillExpertise")
def apply_skill_expertise(application: EffectApplication, effect: SkillExpertiseEffect) -> None:
    derived = application.derived
    skill = derived.skills[effect.skill]

    # Expertise implies proficiency
    _insert_unique(derived.proficiencies.skills, [effect.skill.value])
    skill.proficient = True

    _insert_unique(derived.expertise.skills, [effect.skill.value])
    skill.expertise = True
    application.applied(f"Expertise in {effect.skill.display_name}")


@effect_handler("skillBonus")
def apply_skill_bonus(application: EffectApplication, effect: SkillBonusEffect) -> None:
    value = application.resolve(effect.value)
    skill = application.derived.skills[effect.skill]
    skill.effect_bonus = _combine(skill.effect_bonus, value, effect.stacking)
    application.applied(f"+{value} to {effect.skill.display_name}")


# =============================================================================
# Combat Statistics
# =============================================================================


@effect_handler("armorClass")
def apply_armor_class(application: EffectApplication, effect: ArmorClassEffect) -> None:
    value = application.resolve(effect.value)
    derived = application.derived
    source_id = application.sourced.source_id

    derived.ac.sources.append(source_id)
    derived.ac_contributions.append(
        ArmorClassContribution(
            source_id=source_id,
            value=value,
            priority=effect.priority,
            stacking=effect.stacking,
        )
    )
    application.applied(f"AC {value} ({effect.priority or EffectPriority.FLAG})")


@effect_handler("initiativeBonus")
def apply_initiative_bonus(application: EffectApplication, effect: InitiativeBonusEffect) -> None:
    value = application.resolve(effect.value)
    initiative = application.derived.initiative
    initiative.effect_bonus = _combine(initiative.effect_bonus, value, effect.stacking)
    application.applied(f"Initiative +{value}")


@effect_handler("speed")
def apply_speed(application: EffectApplication, effect: SpeedEffect) -> None:
    value = application.resolve(effect.value)
    speed = application.derived.speed
    movement = effect.movement_type.value
    current = speed.get(movement, 0)

    if effect.priority == EffectPriority.FLAG:
        speed[movement] = value
        application.applied(f"{movement} set to {value}ft (forced)")
    elif effect.stacking == StackingRule.STACK:
        speed[movement] = current + value
        application.applied(f"{movement} +{value}ft")
    elif value > current:
        speed[movement] = value
        application.applied(f"{movement} {value}ft")
    else:
        application.skipped(f"{movement} {value}ft (lower than current {current}ft)")


@effect_handler("sense")
def apply_sense(application: EffectApplication, effect: SenseEffect) -> None:
    source_id = application.sourced.source_id
    existing = next(
        (sense for sense in application.derived.senses if sense.type == effect.sense_type),
        None,
    )

    if existing is None:
        application.derived.senses.append(
            DerivedSense(type=effect.sense_type.value, range=effect.range, sources=[source_id])
        )
    elif effect.range > existing.range:
        existing.range = effect.range
        _insert_unique(existing.sources, [source_id])

    application.applied(f"{effect.sense_type} {effect.range}ft")


def _add_hit_point_contribution(
    application: EffectApplication,
    value: ValueOrFormula,
    priority: EffectPriority | None,
    stacking: StackingRule,
) -> None:
    resolved = application.resolve(value)
    application.derived.hp_contributions.append(
        HitPointContribution(
            source_id=application.sourced.source_id,
            value=resolved,
            priority=priority,
            stacking=stacking,
        )
    )
    sign = "+" if resolved > 0 else ""
    application.applied(f"HP Max modifier: {sign}{resolved}")


@effect_handler("hitPointMax")
def apply_hit_point_max(application: EffectApplication, effect: HitPointMaxEffect) -> None:
    _add_hit_point_contribution(application, effect.value, effect.priority, effect.stacking)


@effect_handler("hitPoints")
def apply_hit_points(application: EffectApplication, effect: HitPointsEffect) -> None:
    _add_hit_point_contribution(
        application, effect.value, effect.priority, effect.stacking or StackingRule.STACK
    )


# =============================================================================
# Resources & Spellcasting
# =============================================================================


@effect_handler("resource")
def apply_resource(application: EffectApplication, effect: ResourceEffect) -> None:
    value = application.resolve(effect.value)
    resources = application.derived.resources
    source_id = application.sourced.source_id
    resource = resources.get(effect.resource_id)

    if resource is None:
        resources[effect.resource_id] = DerivedResource(
            id=effect.resource_id,
            max=value,
            current=value,
            type=effect.resource_type,
            sources=[source_id],
        )
    else:
        if effect.stacking == StackingRule.STACK:
            resource.max += value
            resource.current += value
        elif effect.stacking in (StackingRule.MAX, StackingRule.HIGHEST):
            resource.max = max(resource.max, value)
            resource.current = resource.max
        _insert_unique(resource.sources, [source_id])

    application.applied(f"Resource: {effect.resource_id} ({value} {effect.resource_type})")


@effect_handler("spellcastingAbility")
def apply_spellcasting_ability(
    application: EffectApplication, effect: SpellcastingAbilityEffect
) -> None:
    derived = application.derived

    if derived.spellcasting is None:
        derived.spellcasting = DerivedSpellcasting(ability=effect.ability)
    elif derived.spellcasting.ability != effect.ability:
        # Multiclass casters keep the first spellcasting ability
        application.skipped(
            f"Spellcasting ability already set to {derived.spellcasting.ability}"
        )
        return

    application.applied(f"Spellcasting ability: {effect.ability}")


_SPELL_LIST_FOR_CASTING_TYPE: dict[SpellcastingType, SpellListType] = {
    SpellcastingType.ALWAYS_PREPARED: SpellListType.ALWAYS_PREPARED,
    SpellcastingType.PREPARED: SpellListType.PREPARED,
    SpellcastingType.KNOWN: SpellListType.KNOWN,
    SpellcastingType.INNATE: SpellListType.KNOWN,
    SpellcastingType.SPELLBOOK: SpellListType.KNOWN,
}


@effect_handler("grantSpell")
def apply_grant_spell(application: EffectApplication, effect: GrantSpellEffect) -> None:
    spellcasting = application.derived.spellcasting
    if spellcasting is None:
        application.skipped("No spellcasting ability set")
        return

    list_type = effect.spell_type
    if list_type is None and effect.spellcasting_type is not None:
        list_type = _SPELL_LIST_FOR_CASTING_TYPE[effect.spellcasting_type]
    if list_type is None:
        application.skipped("Unknown spell type")
        return

    _insert_unique(spellcasting.spell_list(list_type), [effect.spell_slug])
    application.applied(f"Granted spell: {effect.spell_slug} ({list_type})")


@effect_handler("spellSlots")
def apply_spell_slots(application: EffectApplication, effect: SpellSlotsEffect) -> None:
    spellcasting = application.derived.spellcasting
    if spellcasting is None:
        application.skipped("No spellcasting ability set")
        return

    value = application.resolve(effect.value)
    pool = spellcasting.slots.setdefault(effect.level, SpellSlotPool())
    pool.max = _combine(pool.max, value, effect.stacking)
    application.applied(f"Spell slots L{effect.level}: {value}")


# =============================================================================
# Features, Tags & Restrictions
# =============================================================================


@effect_handler("grantFeature")
def apply_grant_feature(application: EffectApplication, effect: GrantFeatureEffect) -> None:
    derived = application.derived
    if derived.has_feature(effect.feature_id):
        application.skipped(f"Feature already granted: {effect.feature_id}")
        return

    derived.features.append(
        DerivedFeature(
            id=effect.feature_id,
            name=effect.name,
            description=effect.description,
            source=application.sourced.source_id,
        )
    )
    application.applied(effect.name)


@effect_handler("tag")
def apply_tag(application: EffectApplication, effect: TagEffect) -> None:
    for tag in effect.tags:
        application.derived.add_tag(tag)
    application.applied(list(effect.tags))


@effect_handler("equipmentRestriction")
def apply_equipment_restriction(
    application: EffectApplication, effect: EquipmentRestrictionEffect
) -> None:
    restrictions = application.derived.equipment_restrictions
    targets = {
        RestrictionType.CANNOT_WEAR: restrictions.cannot_wear,
        RestrictionType.CANNOT_WIELD: restrictions.cannot_wield,
        RestrictionType.REQUIRES_ATTUNEMENT: restrictions.requires_attunement,
    }
    _insert_unique(targets[effect.restriction_type], list(effect.item_tags))
    application.applied(
        f"Equipment restriction: {effect.restriction_type} {', '.join(effect.item_tags)}"
    )


@effect_handler("condition")
def apply_condition(application: EffectApplication, effect: ConditionEffect) -> None:
    application.derived.add_tag(f"condition:{effect.condition}")
    application.applied(f"Condition: {effect.condition}")


@effect_handler("damageResistance")
def apply_damage_resistance(application: EffectApplication, effect: DamageResistanceEffect) -> None:
    application.derived.add_tag(f"resistance:{effect.damage_type}")
    application.applied(f"Damage resistance: {effect.damage_type}")


@effect_handler("conditionImmunity")
def apply_condition_immunity(
    application: EffectApplication, effect: ConditionImmunityEffect
) -> None:
    application.derived.add_tag(f"conditionImmune:{effect.condition}")
    application.applied(f"Condition immunity: {effect.condition}")


__all__ = [
    "EffectApplication",
    "EffectHandler",
    "effect_handler",
    "get_effect_handler",
    "registered_effect_kinds",
    "resolve_effect_value",
    "apply_sourced_effect",
    "apply_effect",
    "is_choice_answered",
    "recalculate_ability_modifiers",
]
