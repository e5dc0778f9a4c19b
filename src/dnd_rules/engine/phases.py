"""Phase scheduling for sourced effects.

Each sourced effect is placed into a phase by the prefix of its
``source_id``. Phases run in fixed order; within a phase effects are
sorted by ``source_id`` so repeated runs are reproducible. Effects whose
prefix matches no phase go into ``unknown``, which runs after every
named phase.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TypeVar

from dnd_rules.core.logging import get_logger
from dnd_rules.models.effects import SourcedEffect


logger = get_logger(__name__)

S = TypeVar("S", bound=SourcedEffect)


@dataclass(frozen=True)
class ExecutionPhase:
    """A named ordering bucket.

    Attributes:
        name: Phase name.
        source_types: ``source_id`` prefixes belonging to this phase.
        priority: Position in the run (lower runs earlier).
    """

    name: str
    source_types: tuple[str, ...]
    priority: int


EXECUTION_PHASES: tuple[ExecutionPhase, ...] = (
    ExecutionPhase("species", ("species:", "lineage:"), 1),
    ExecutionPhase("background", ("background:",), 2),
    ExecutionPhase("class", ("class:",), 3),
    ExecutionPhase("subclass", ("subclass:",), 4),
    ExecutionPhase("feats", ("feat:",), 5),
    ExecutionPhase("items", ("item:", "equipment:"), 6),
    ExecutionPhase("conditions", ("condition:",), 7),
    ExecutionPhase("temporary", ("spell:", "temporary:"), 8),
)
"""Named phases in execution order."""

UNKNOWN_PHASE = "unknown"
"""Bucket for effects whose source prefix matches no phase."""


def get_phase_for_source(source_id: str) -> str:
    """Get the phase name for a source identifier.

    Args:
        source_id: Provenance id such as 'class:wizard'.

    Returns:
        The phase name, or 'unknown'.
    """
    for phase in EXECUTION_PHASES:
        if source_id.startswith(phase.source_types):
            return phase.name
    return UNKNOWN_PHASE


def group_effects_by_phase(effects: Iterable[S]) -> dict[str, list[S]]:
    """Group sourced effects by phase, keeping input order within a group."""
    grouped: dict[str, list[S]] = {}
    for effect in effects:
        grouped.setdefault(get_phase_for_source(effect.source_id), []).append(effect)
    return grouped


def sort_effects_by_priority(effects: Iterable[S]) -> list[S]:
    """Order effects within a phase by ``source_id``.

    The sort is stable, so bundles sharing a source keep their input order.
    """
    return sorted(effects, key=lambda effect: effect.source_id)


def schedule(effects: Iterable[S]) -> list[tuple[str, list[S]]]:
    """Arrange sourced effects into ordered, non-empty phases.

    Args:
        effects: Permanent sourced effects in any order.

    Returns:
        (phase name, sorted effects) pairs in execution order, with the
        'unknown' bucket last.
    """
    grouped = group_effects_by_phase(effects)
    ordered: list[tuple[str, list[S]]] = []

    for phase in EXECUTION_PHASES:
        phase_effects = grouped.get(phase.name)
        if phase_effects:
            ordered.append((phase.name, sort_effects_by_priority(phase_effects)))

    unknown = grouped.get(UNKNOWN_PHASE)
    if unknown:
        logger.debug(
            "Effects with unrecognized source prefix",
            source_ids=sorted({effect.source_id for effect in unknown}),
        )
        ordered.append((UNKNOWN_PHASE, sort_effects_by_priority(unknown)))

    return ordered


__all__ = [
    "ExecutionPhase",
    "EXECUTION_PHASES",
    "UNKNOWN_PHASE",
    "get_phase_for_source",
    "group_effects_by_phase",
    "sort_effects_by_priority",
    "schedule",
]
