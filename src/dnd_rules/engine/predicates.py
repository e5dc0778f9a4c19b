"""Predicate evaluation for conditional effects.

Simple predicates read base facts or the derived state accumulated so
far; composites recurse. An empty predicate list always holds.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from dnd_rules.core.logging import get_logger
from dnd_rules.models.derived import DerivedState
from dnd_rules.models.facts import BaseFacts
from dnd_rules.models.predicates import (
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
    PredicateBase,
    SpeciesIs,
)


logger = get_logger(__name__)


@dataclass(frozen=True)
class PredicateContext:
    """Facts and partially-derived state a predicate is evaluated against.

    Attributes:
        facts: Base facts of the character.
        derived: Derived state, or None before initialization.
    """

    facts: BaseFacts
    derived: DerivedState | None = None


def evaluate_predicates(predicates: Sequence[Predicate], context: PredicateContext) -> bool:
    """Evaluate a predicate list as a logical AND.

    Args:
        predicates: Predicates to check; empty means unconditional.
        context: Evaluation context.

    Returns:
        True if every predicate holds.
    """
    return all(evaluate_predicate(predicate, context) for predicate in predicates)


def evaluate_predicate(predicate: Predicate, context: PredicateContext) -> bool:
    """Evaluate a single predicate.

    Args:
        predicate: Predicate to check.
        context: Evaluation context.

    Returns:
        Whether the predicate holds. Unknown predicate types are false.
    """
    facts = context.facts
    derived = context.derived

    # Composites
    if isinstance(predicate, And):
        return evaluate_predicates(predicate.predicates, context)
    if isinstance(predicate, Or):
        return any(evaluate_predicate(nested, context) for nested in predicate.predicates)
    if isinstance(predicate, Not):
        if isinstance(predicate.predicate, list):
            return not evaluate_predicates(predicate.predicate, context)
        return not evaluate_predicate(predicate.predicate, context)

    # Facts
    if isinstance(predicate, LevelAtLeast):
        return facts.level >= predicate.value
    if isinstance(predicate, LevelAtMost):
        return facts.level <= predicate.value
    if isinstance(predicate, EditionIs):
        return facts.edition == predicate.value
    if isinstance(predicate, ClassIs):
        return facts.class_slug == predicate.slug
    if isinstance(predicate, ClassLevelAtLeast):
        return facts.class_level(predicate.class_slug) >= predicate.level
    if isinstance(predicate, SpeciesIs):
        return facts.species_slug == predicate.slug
    if isinstance(predicate, HasFeat):
        return predicate.feat_slug in facts.feats
    if isinstance(predicate, HasCondition):
        return predicate.condition in facts.conditions

    # Derived state, falling back to base facts where it has not been built yet
    if isinstance(predicate, AbilityAtLeast):
        if derived is not None and predicate.ability in derived.abilities:
            return derived.abilities[predicate.ability].score >= predicate.value
        return facts.abilities[predicate.ability] >= predicate.value
    if isinstance(predicate, HasFeature):
        return derived is not None and derived.has_feature(predicate.feature_slug)
    if isinstance(predicate, HasProficiency):
        return derived is not None and derived.is_proficient(predicate.prof_type, predicate.value)
    if isinstance(predicate, Equipped):
        return derived is not None and derived.has_tag(f"item:{predicate.item_tag}")
    if isinstance(predicate, HasTag):
        return derived is not None and derived.has_tag(predicate.tag)

    _log_unknown_predicate(predicate)
    return False


def _log_unknown_predicate(predicate: PredicateBase) -> None:
    logger.warning(
        "Unknown predicate type",
        type=getattr(predicate, "type", None),
        predicate=predicate.model_dump(),
    )


__all__ = [
    "PredicateContext",
    "evaluate_predicates",
    "evaluate_predicate",
]
