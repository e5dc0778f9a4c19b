"""Base facts: the immutable player choices fed into one evaluation."""

from __future__ import annotations

from typing import Annotated, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dnd_rules.core.constants import (
    MAX_ABILITY_SCORE,
    MAX_CHARACTER_LEVEL,
    MIN_ABILITY_SCORE,
    MIN_CHARACTER_LEVEL,
)
from dnd_rules.models.enums import Ability, Edition


AbilityScore = Annotated[
    int,
    Field(ge=MIN_ABILITY_SCORE, le=MAX_ABILITY_SCORE, description="D&D ability score (1-30)"),
]
Level = Annotated[
    int,
    Field(ge=MIN_CHARACTER_LEVEL, le=MAX_CHARACTER_LEVEL, description="Character level (1-20)"),
]

ChoiceAnswer: TypeAlias = int | str | list[str]
"""A recorded answer: one option value, several values, or a number."""


class BaseFacts(BaseModel):
    """Player-chosen inputs describing a character.

    Created once per evaluation request and never mutated by the engine.

    Attributes:
        level: Total character level.
        class_slug: Primary class.
        class_levels: Levels per class track (multiclassing).
        subclass_slug: Subclass of the primary class, if chosen.
        species_slug: Species identifier.
        lineage_slug: Lineage or subrace identifier.
        background_slug: Background identifier.
        edition: Rules edition the character uses.
        abilities: Raw ability scores before any increases.
        choices: Answers keyed by choice id.
        equipped_armor: Slug of worn armor, if any.
        equipped_weapons: Slugs of wielded weapons.
        equipped_items: Slugs of other equipped items (e.g. 'shield').
        conditions: Active condition identifiers.
        tags: Initial tag set.
        feats: Feat slugs.
        resource_usage: Used counts keyed by resource id.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    level: Level
    class_slug: str
    class_levels: dict[str, int] = Field(default_factory=dict)
    subclass_slug: str | None = None
    species_slug: str
    lineage_slug: str | None = None
    background_slug: str
    edition: Edition = Edition.E2014

    abilities: dict[Ability, AbilityScore]

    choices: dict[str, ChoiceAnswer] = Field(default_factory=dict)

    equipped_armor: str | None = None
    equipped_weapons: list[str] = Field(default_factory=list)
    equipped_items: list[str] = Field(default_factory=list)

    conditions: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    feats: list[str] = Field(default_factory=list)

    resource_usage: dict[str, int] = Field(default_factory=dict)

    @field_validator("abilities")
    @classmethod
    def require_all_abilities(cls, value: dict[Ability, int]) -> dict[Ability, int]:
        """Ensure all six ability scores are supplied."""
        missing = [ability.value for ability in Ability if ability not in value]
        if missing:
            raise ValueError(f"Missing ability scores: {', '.join(missing)}")
        return value

    def class_level(self, class_slug: str) -> int:
        """Get the number of levels in a class track.

        Args:
            class_slug: Class to look up.

        Returns:
            Levels in that class, or 0.
        """
        return self.class_levels.get(class_slug, 0)


__all__ = [
    "AbilityScore",
    "Level",
    "ChoiceAnswer",
    "BaseFacts",
]
