"""Content checks for sourced effect data.

Evaluation tolerates malformed content and records problems in the
provenance log. These helpers are for authoring time: load raw payloads
with a hard failure on invalid shapes, then list softer issues (unknown
kinds, unknown predicate types, bad formulas) without raising.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from dnd_rules.core.exceptions import ContentError, FormulaError
from dnd_rules.core.logging import get_logger
from dnd_rules.engine.formulas import VARIABLE_PATTERN, parse_expression
from dnd_rules.models.effects import EffectBase, SourcedEffect, UnknownEffect
from dnd_rules.models.formulas import Formula
from dnd_rules.models.predicates import And, Not, Or, PredicateBase, UnknownPredicate


logger = get_logger(__name__)

S = TypeVar("S", bound=SourcedEffect)


class ContentIssue(BaseModel):
    """A problem found in otherwise loadable content."""

    model_config = ConfigDict(frozen=True)

    source_id: str
    effect_id: str
    message: str


def load_sourced_effects(
    payload: Iterable[Mapping[str, Any]],
    model: type[S] = SourcedEffect,  # type: ignore[assignment]
) -> list[S]:
    """Validate raw mappings into sourced effect models.

    Args:
        payload: Raw sourced effect mappings, e.g. parsed JSON.
        model: Model to validate into (``SourcedEffect`` or ``TemporaryEffect``).

    Returns:
        The validated models, in input order.

    Raises:
        ContentError: On the first entry that fails validation.
    """
    loaded: list[S] = []
    for index, raw in enumerate(payload):
        try:
            loaded.append(model.model_validate(raw))
        except ValidationError as exc:
            raise ContentError(
                f"Invalid sourced effect at index {index}",
                source_id=raw.get("source_id") if isinstance(raw, Mapping) else None,
                effect_id=raw.get("effect_id") if isinstance(raw, Mapping) else None,
                details={"index": index, "errors": exc.errors(include_url=False)},
            ) from exc
    return loaded


def find_content_issues(effects: Sequence[SourcedEffect]) -> list[ContentIssue]:
    """List authoring problems in validated content.

    Checks every effect (including those inside choice options) for
    unknown kinds, unknown predicate types, formula variables that are
    used but not declared, and expressions that do not parse.

    Args:
        effects: Validated sourced effects.

    Returns:
        One issue per problem found, in content order.
    """
    issues = [
        ContentIssue(source_id=sourced.source_id, effect_id=sourced.effect_id, message=message)
        for sourced in effects
        for message in _sourced_issues(sourced)
    ]
    if issues:
        logger.info("Content issues found", count=len(issues))
    return issues


def _sourced_issues(sourced: SourcedEffect) -> Iterator[str]:
    nested = list(sourced.effects)
    if sourced.choice is not None:
        for predicate in _walk_predicates(sourced.choice.predicate):
            if isinstance(predicate, UnknownPredicate):
                yield f"Unknown predicate type: {predicate.type}"
        for option in sourced.choice.options:
            nested.extend(option.effects)

    for effect in nested:
        yield from _effect_issues(effect)


def _effect_issues(effect: EffectBase) -> Iterator[str]:
    if isinstance(effect, UnknownEffect):
        yield f"Unknown effect kind: {effect.kind}"

    for predicate in _walk_predicates(effect.predicate):
        if isinstance(predicate, UnknownPredicate):
            yield f"Unknown predicate type: {predicate.type}"

    for name in type(effect).model_fields:
        value = getattr(effect, name)
        if isinstance(value, Formula):
            yield from _formula_issues(value)


def _formula_issues(formula: Formula) -> Iterator[str]:
    declared = set(formula.variables)
    undeclared = [
        token for token in VARIABLE_PATTERN.findall(formula.expression) if token not in declared
    ]
    if undeclared:
        for token in undeclared:
            yield f"Undeclared formula variable {token} in '{formula.expression}'"
        return

    # Placeholder values of 1 keep divisions by a variable well-defined
    try:
        parse_expression(formula.expression, {name: 1 for name in declared})
    except FormulaError as exc:
        yield f"Invalid formula '{formula.expression}': {exc.message}"


def _walk_predicates(predicates: Iterable[PredicateBase]) -> Iterator[PredicateBase]:
    for predicate in predicates:
        yield predicate
        if isinstance(predicate, (And, Or)):
            yield from _walk_predicates(predicate.predicates)
        elif isinstance(predicate, Not):
            inner = predicate.predicate
            yield from _walk_predicates(inner if isinstance(inner, list) else [inner])


__all__ = [
    "ContentIssue",
    "load_sourced_effects",
    "find_content_issues",
]
