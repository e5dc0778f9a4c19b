"""Character evaluation orchestrator.

Runs one evaluation end to end:

1. Build a fresh ``DerivedState`` from the base facts.
2. Apply permanent sourced effects phase by phase.
3. Apply temporary effects, in the order given, after every phase.
4. Surface pending choices whose predicates currently hold.
5. Finalize saves, skills, spellcasting, AC, hit points and initiative.

Example:
    >>> from dnd_rules.engine import RulesEngine
    >>> engine = RulesEngine()
    >>> derived = engine.evaluate(facts, effects)
    >>> derived.ac.value
    15
"""

from __future__ import annotations

from collections.abc import Sequence

from dnd_rules.core.config import EngineSettings, get_settings
from dnd_rules.core.constants import BASE_ARMOR_CLASS, SHIELD_ITEM_SLUG
from dnd_rules.core.exceptions import EngineDisabledError
from dnd_rules.core.logging import evaluation_context, get_logger
from dnd_rules.engine.applier import (
    apply_sourced_effect,
    is_choice_answered,
    recalculate_ability_modifiers,
)
from dnd_rules.engine.finalizers import finalize_derived_state
from dnd_rules.engine.phases import schedule
from dnd_rules.engine.predicates import PredicateContext, evaluate_predicates
from dnd_rules.models.derived import (
    DerivedAbility,
    DerivedArmorClass,
    DerivedAttunement,
    DerivedChoice,
    DerivedChoiceOption,
    DerivedSave,
    DerivedSkill,
    DerivedState,
    calculate_modifier,
    calculate_proficiency_bonus,
)
from dnd_rules.models.effects import SourcedEffect, TemporaryEffect
from dnd_rules.models.enums import Ability, Skill
from dnd_rules.models.facts import BaseFacts


logger = get_logger(__name__)


def initialize_derived_state(
    facts: BaseFacts,
    *,
    max_attuned_items: int | None = None,
) -> DerivedState:
    """Build the starting derived state for an evaluation.

    Args:
        facts: Base facts of the character.
        max_attuned_items: Attunement slots; defaults to the model default.

    Returns:
        A derived state with abilities, proficiency bonus, empty saves and
        skills, AC of 10 + DEX modifier and the initial tag set.
    """
    abilities = {
        ability: DerivedAbility(score=score, modifier=calculate_modifier(score))
        for ability, score in facts.abilities.items()
    }
    dex_modifier = abilities[Ability.DEX].modifier

    tags = list(facts.tags)
    if facts.equipped_armor:
        tags.append("wearing-armor")
    if facts.equipped_weapons:
        tags.append("wielding-weapon")
    if SHIELD_ITEM_SLUG in facts.equipped_items:
        tags.append("wielding-shield")

    attunement = (
        DerivedAttunement(max_attuned_items=max_attuned_items)
        if max_attuned_items is not None
        else DerivedAttunement()
    )

    derived = DerivedState(
        abilities=abilities,
        proficiency_bonus=calculate_proficiency_bonus(facts.level),
        saves={ability: DerivedSave() for ability in Ability},
        skills={skill: DerivedSkill(ability=skill.ability) for skill in Skill},
        ac=DerivedArmorClass(value=BASE_ARMOR_CLASS + dex_modifier),
        attunement=attunement,
    )
    for tag in tags:
        derived.add_tag(tag)
    return derived


def collect_pending_choices(
    facts: BaseFacts,
    derived: DerivedState,
    effects: Sequence[SourcedEffect],
) -> list[DerivedChoice]:
    """Expose every choice whose predicates hold against the final state.

    Choices are listed once per id in input order. Resolved choices are
    included with ``resolved=True`` and the recorded answer so callers
    can display and change them.

    Args:
        facts: Base facts of the character.
        derived: Derived state after all effects were applied.
        effects: Permanent sourced effects of the run.

    Returns:
        The choices appended to ``derived.choices``.
    """
    context = PredicateContext(facts, derived)
    seen = {choice.id for choice in derived.choices}
    collected: list[DerivedChoice] = []

    for sourced in effects:
        choice = sourced.choice
        if choice is None or choice.id in seen:
            continue
        if not evaluate_predicates(choice.predicate, context):
            continue

        answer = facts.choices.get(choice.id)
        resolved = is_choice_answered(answer)
        collected.append(
            DerivedChoice(
                id=choice.id,
                prompt=choice.prompt,
                type=choice.type,
                source_id=sourced.source_id,
                options=[
                    DerivedChoiceOption(
                        value=option.value,
                        label=option.label,
                        description=option.description,
                    )
                    for option in choice.options
                ],
                min=choice.min,
                max=choice.max,
                resolved=resolved,
                selected=answer if resolved else None,
            )
        )
        seen.add(choice.id)

    derived.choices.extend(collected)
    return collected


def evaluate_character(
    facts: BaseFacts,
    effects: Sequence[SourcedEffect],
    temporary_effects: Sequence[TemporaryEffect] = (),
    *,
    settings: EngineSettings | None = None,
) -> DerivedState:
    """Evaluate a character from base facts and sourced effects.

    Guard failures and malformed content are recorded in
    ``applied_effects`` rather than raised.

    Args:
        facts: Base facts of the character.
        effects: Permanent sourced effects (species, class, items, ...).
        temporary_effects: Spells and conditions, applied after every phase.
        settings: Engine settings; read from ``get_settings()`` when omitted.

    Returns:
        The finalized derived state.

    Raises:
        FormulaError: Only when ``settings.strict_formulas`` is enabled.
    """
    engine_settings = settings if settings is not None else get_settings().engine

    with evaluation_context():
        logger.debug(
            "Evaluating character",
            class_slug=facts.class_slug,
            level=facts.level,
            effects=len(effects),
            temporary_effects=len(temporary_effects),
        )

        derived = initialize_derived_state(
            facts, max_attuned_items=engine_settings.max_attuned_items
        )

        def apply(sourced: SourcedEffect) -> None:
            apply_sourced_effect(
                facts,
                derived,
                sourced,
                strict_formulas=engine_settings.strict_formulas,
                record_choice_summary=engine_settings.record_choice_summary,
            )

        for phase_name, phase_effects in schedule(effects):
            logger.debug("Applying phase", phase=phase_name, effects=len(phase_effects))
            for sourced in phase_effects:
                apply(sourced)

        for temporary in temporary_effects:
            apply(temporary)

        collect_pending_choices(facts, derived, effects)
        finalize_derived_state(derived)

        logger.info(
            "Character evaluated",
            effects=len(effects) + len(temporary_effects),
            applied=len(derived.applied_entries()),
            skipped=len(derived.skipped_entries()),
            pending_choices=sum(1 for choice in derived.choices if not choice.resolved),
        )

    return derived


class RulesEngine:
    """Configured entry point for character evaluation.

    Attributes:
        settings: Engine settings used for every evaluation.

    Example:
        >>> engine = RulesEngine(EngineSettings(enabled=True))
        >>> if engine.is_enabled:
        ...     derived = engine.evaluate(facts, effects)
    """

    def __init__(self, settings: EngineSettings | None = None) -> None:
        """Initialize the engine.

        Args:
            settings: Engine settings; defaults to ``get_settings().engine``.
        """
        self.settings = settings if settings is not None else get_settings().engine

    @property
    def is_enabled(self) -> bool:
        """Check whether evaluation is switched on."""
        return self.settings.enabled

    def evaluate(
        self,
        facts: BaseFacts,
        effects: Sequence[SourcedEffect],
        temporary_effects: Sequence[TemporaryEffect] = (),
    ) -> DerivedState:
        """Evaluate a character with this engine's settings.

        Raises:
            EngineDisabledError: If the engine is disabled.
        """
        if not self.is_enabled:
            raise EngineDisabledError(
                "Rules engine is disabled",
                details={"setting": "DND_RULES_ENGINE_ENABLED"},
            )
        return evaluate_character(facts, effects, temporary_effects, settings=self.settings)


__all__ = [
    "RulesEngine",
    "evaluate_character",
    "initialize_derived_state",
    "collect_pending_choices",
    "calculate_modifier",
    "calculate_proficiency_bonus",
    "recalculate_ability_modifiers",
]
