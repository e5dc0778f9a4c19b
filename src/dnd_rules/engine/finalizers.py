"""Finalization: turn accumulated contributions into final numbers.

Each pass recomputes its outputs from data already on the derived
state. Accumulated bonuses live in ``effect_bonus`` fields and are never
overwritten, so running the finalizer twice yields the same numbers. The
AC and HP contribution lists are consumed and cleared on the first run.
"""

from __future__ import annotations

import math

from dnd_rules.core.constants import BASE_ARMOR_CLASS, SPELL_SAVE_DC_BASE
from dnd_rules.core.logging import get_logger
from dnd_rules.models.derived import DerivedState
from dnd_rules.models.enums import Ability, EffectPriority, StackingRule
from dnd_rules.models.formulas import Number


logger = get_logger(__name__)


def finalize_derived_state(derived: DerivedState) -> None:
    """Run every finalization pass in order.

    Args:
        derived: Derived state, updated in place.
    """
    finalize_saving_throws(derived)
    finalize_skills(derived)
    finalize_spellcasting(derived)
    finalize_armor_class(derived)
    finalize_hit_points(derived)
    finalize_initiative(derived)


def finalize_saving_throws(derived: DerivedState) -> None:
    """Saving throw bonus = modifier + proficiency (if proficient) + effect bonuses."""
    for ability, save in derived.saves.items():
        save.proficient = save.proficient or ability.value in derived.proficiencies.saving_throws
        total = derived.modifier(ability) + save.effect_bonus
        if save.proficient:
            total += derived.proficiency_bonus
        save.bonus = total


def finalize_skills(derived: DerivedState) -> None:
    """Skill bonus = modifier + proficiency, doubled by expertise, + effect bonuses."""
    for skill in derived.skills.values():
        total = derived.modifier(skill.ability) + skill.effect_bonus
        if skill.proficient:
            total += derived.proficiency_bonus
        if skill.expertise:
            total += derived.proficiency_bonus
        skill.bonus = total


def finalize_spellcasting(derived: DerivedState) -> None:
    """Spell save DC = 8 + proficiency + modifier; attack bonus = proficiency + modifier."""
    spellcasting = derived.spellcasting
    if spellcasting is None:
        return

    modifier = derived.modifier(spellcasting.ability)
    spellcasting.save_dc = SPELL_SAVE_DC_BASE + derived.proficiency_bonus + modifier
    spellcasting.attack_bonus = derived.proficiency_bonus + modifier


_PRIORITY_ORDER: tuple[EffectPriority, ...] = (
    EffectPriority.BASE,
    EffectPriority.ADDITIVE,
    EffectPriority.MULTIPLICATIVE,
    EffectPriority.OVERRIDE,
    EffectPriority.FLAG,
)


def finalize_armor_class(derived: DerivedState) -> None:
    """Resolve AC contributions by priority tier.

    Starting from 10 + DEX modifier, tiers are applied in order:

    - base, additive: the highest value in the tier replaces the total.
    - multiplicative: each value multiplies the total (rounded down).
    - override: the last value replaces the total.
    - flag: each value combines by its stacking rule (default stack).

    Contributions without a priority are treated as flag. With no
    pending contributions an already-resolved AC is left alone.
    """
    contributions = derived.ac_contributions
    if not contributions:
        if not derived.ac.sources:
            derived.ac.value = BASE_ARMOR_CLASS + derived.modifier(Ability.DEX)
        return

    by_priority: dict[EffectPriority, list[Number]] = {priority: [] for priority in _PRIORITY_ORDER}
    flags: list[tuple[Number, StackingRule | None]] = []
    for contribution in contributions:
        priority = contribution.priority or EffectPriority.FLAG
        if priority == EffectPriority.FLAG:
            flags.append((contribution.value, contribution.stacking))
        else:
            by_priority[priority].append(contribution.value)

    total: Number = BASE_ARMOR_CLASS + derived.modifier(Ability.DEX)

    for priority in (EffectPriority.BASE, EffectPriority.ADDITIVE):
        if by_priority[priority]:
            total = max(by_priority[priority])

    for factor in by_priority[EffectPriority.MULTIPLICATIVE]:
        total = math.floor(total * factor)

    if by_priority[EffectPriority.OVERRIDE]:
        total = by_priority[EffectPriority.OVERRIDE][-1]

    for value, stacking in flags:
        if stacking in (StackingRule.MAX, StackingRule.HIGHEST):
            total = max(total, value)
        elif stacking is None or stacking == StackingRule.STACK:
            total += value

    logger.debug(
        "Armor class resolved",
        value=total,
        contributions=len(contributions),
        flags=len(flags),
    )
    derived.ac.value = total
    derived.ac_contributions = []


def finalize_hit_points(derived: DerivedState) -> None:
    """Fold hit point maximum modifiers into ``hit_points``.

    ``stack`` adds the value; ``max``/``highest`` keep the larger of the
    running total and the value.
    """
    for contribution in derived.hp_contributions:
        if contribution.stacking in (StackingRule.MAX, StackingRule.HIGHEST):
            derived.hit_points = max(derived.hit_points, contribution.value)
        elif contribution.stacking is None or contribution.stacking == StackingRule.STACK:
            derived.hit_points += contribution.value
    derived.hp_contributions = []


def finalize_initiative(derived: DerivedState) -> None:
    """Initiative bonus = DEX modifier + effect bonuses."""
    derived.initiative.bonus = derived.modifier(Ability.DEX) + derived.initiative.effect_bonus


__all__ = [
    "finalize_derived_state",
    "finalize_saving_throws",
    "finalize_skills",
    "finalize_spellcasting",
    "finalize_armor_class",
    "finalize_hit_points",
    "finalize_initiative",
]
