"""Formula models for computed effect values.

A formula is an arithmetic expression plus the explicit list of ``@``
variables it references. Only declared variables are substituted; the
expression itself is evaluated by the sandboxed parser in
``dnd_rules.engine.formulas``.

Supported variables:
    @abilities.<ABILITY>.modifier, @abilities.<ABILITY>.score,
    @abilities.<ABILITY> (score), @proficiencyBonus, @level,
    @classLevel.<slug> (also @classlevel.<slug>), @speed.<movement>,
    @spellslots.<level>.max, @spellslots.<level>.used
"""

from __future__ import annotations

from typing import TypeAlias

from pydantic import BaseModel, ConfigDict, Field

from dnd_rules.models.derived import DerivedAbility, SpellSlotPool
from dnd_rules.models.enums import Ability


Number: TypeAlias = int | float
"""Numeric value produced by literals and formulas."""


class Formula(BaseModel):
    """An arithmetic expression over declared character variables.

    Example:
        >>> Formula(
        ...     expression="10 + @abilities.DEX.modifier + @abilities.CON.modifier",
        ...     variables=["@abilities.DEX.modifier", "@abilities.CON.modifier"],
        ... )
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    expression: str = Field(min_length=1, description="Arithmetic expression")
    variables: list[str] = Field(
        default_factory=list,
        description="Variable tokens referenced by the expression",
    )


ValueOrFormula: TypeAlias = int | float | Formula
"""Numeric effect field: a literal or a formula resolved at apply time."""


class FormulaContext(BaseModel):
    """Read-only snapshot of character state that formulas can see."""

    model_config = ConfigDict(frozen=True)

    abilities: dict[Ability, DerivedAbility] = Field(default_factory=dict)
    proficiency_bonus: int = 0
    level: int = 0
    class_levels: dict[str, int] = Field(default_factory=dict)
    speed: dict[str, Number] = Field(default_factory=dict)
    spell_slots: dict[int, SpellSlotPool] = Field(default_factory=dict)


__all__ = [
    "Number",
    "Formula",
    "ValueOrFormula",
    "FormulaContext",
]
