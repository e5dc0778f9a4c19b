"""Runtime character state tracked during play.

``CharacterState`` holds the values that change at the table (current
hit points, spent resources and spell slots, action economy) and is
kept separate from the derived character sheet. Operations in
``dnd_rules.engine.resources`` never mutate a state; they return a
``StateUpdateResult`` carrying a fresh copy.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from dnd_rules.core.constants import DEFAULT_SPEED
from dnd_rules.models.enums import Ability, ResourceType


class TrackedResource(BaseModel):
    """Current and maximum uses of one limited resource."""

    current: int | float
    max: int | float
    restoration_type: ResourceType


class SpellSlotState(BaseModel):
    current: int | float
    max: int | float


class ActiveCondition(BaseModel):
    condition: str
    source: str | None = None
    duration: int | None = None
    save_dc: int | None = None
    save_ability: Ability | None = None


class ConcentrationState(BaseModel):
    active_effect: str | None = None
    source: str | None = None
    spell_level: int | None = None


class ActionEconomy(BaseModel):
    has_action: bool = True
    has_bonus_action: bool = True
    has_reaction: bool = True
    movement_remaining: int | float = DEFAULT_SPEED


class CharacterState(BaseModel):
    """Mutable play-time state of one character.

    Attributes:
        character_id: Identifier of the character this state belongs to.
        current_hp: Current hit points.
        max_hp: Maximum hit points.
        temp_hp: Temporary hit points (absorb damage first).
        resources: Tracked resources keyed by resource id.
        spell_slots: Slot pools keyed by spell level, or None for non-casters.
        conditions: Active conditions.
        concentration: Concentration tracking.
        action_economy: Remaining actions for the current turn.
        death_save_successes: Successful death saves (0-3).
        death_save_failures: Failed death saves (0-3).
        initiative: Rolled initiative, if in combat.
        exhaustion_level: Exhaustion level (0-6).
        has_inspiration: Whether the character holds inspiration.
    """

    model_config = ConfigDict(validate_assignment=False)

    character_id: str

    current_hp: int | float = 0
    max_hp: int | float = 0
    temp_hp: int | float = 0

    resources: dict[str, TrackedResource] = Field(default_factory=dict)
    spell_slots: dict[int, SpellSlotState] | None = None

    conditions: list[ActiveCondition] = Field(default_factory=list)
    concentration: ConcentrationState = Field(default_factory=ConcentrationState)
    action_economy: ActionEconomy = Field(default_factory=ActionEconomy)

    death_save_successes: int = Field(default=0, ge=0, le=3)
    death_save_failures: int = Field(default=0, ge=0, le=3)

    initiative: int | None = None
    exhaustion_level: int = Field(default=0, ge=0, le=6)
    has_inspiration: bool = False

    @property
    def is_unconscious(self) -> bool:
        """Check if the character is at 0 HP."""
        return self.current_hp <= 0


class StateUpdateResult(BaseModel):
    """Outcome of a runtime state operation.

    Attributes:
        state: The new state on success, the untouched input on failure.
        success: Whether the operation was performed.
        error: Failure description.
        changes: Human-readable change log.
    """

    state: CharacterState
    success: bool
    error: str | None = None
    changes: list[str] = Field(default_factory=list)


__all__ = [
    "TrackedResource",
    "SpellSlotState",
    "ActiveCondition",
    "ConcentrationState",
    "ActionEconomy",
    "CharacterState",
    "StateUpdateResult",
]
