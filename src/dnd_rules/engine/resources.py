"""Runtime resource operations on ``CharacterState``.

Every operation is pure: the input state is left untouched and the
returned ``StateUpdateResult`` carries a deep copy with the change
applied. Failures return ``success=False`` with the input state, or raise
``ResourceError`` when called with ``raise_on_error=True``.

Example:
    >>> state = initialize_character_state("char-1", derived)
    >>> result = consume_resource(state, "rage")
    >>> result.state.resources["rage"].current
    1
"""

from __future__ import annotations

from typing import Any, Literal

from dnd_rules.core.constants import DEFAULT_SPEED
from dnd_rules.core.exceptions import ResourceError
from dnd_rules.core.logging import get_logger
from dnd_rules.models.derived import DerivedState
from dnd_rules.models.enums import MovementType, ResourceType, RestType
from dnd_rules.models.state import (
    CharacterState,
    SpellSlotState,
    StateUpdateResult,
    TrackedResource,
)


logger = get_logger(__name__)

Amount = int | Literal["max"]


def initialize_character_state(character_id: str, derived: DerivedState) -> CharacterState:
    """Create the play-time state for a freshly evaluated character.

    Every resource and spell slot pool starts full, hit points start at
    the maximum, and movement equals walking speed (30 when unset).

    Args:
        character_id: Identifier of the character.
        derived: Finalized derived state.

    Returns:
        A new character state.
    """
    resources = {
        resource_id: TrackedResource(
            current=resource.max,
            max=resource.max,
            restoration_type=resource.type,
        )
        for resource_id, resource in derived.resources.items()
    }

    spell_slots: dict[int, SpellSlotState] | None = None
    if derived.spellcasting is not None:
        spell_slots = {
            level: SpellSlotState(current=pool.max, max=pool.max)
            for level, pool in derived.spellcasting.slots.items()
        }

    state = CharacterState(
        character_id=character_id,
        current_hp=derived.hit_points,
        max_hp=derived.hit_points,
        resources=resources,
        spell_slots=spell_slots,
    )
    state.action_economy.movement_remaining = (
        derived.speed.get(MovementType.WALK.value) or DEFAULT_SPEED
    )
    return state


def _failure(
    state: CharacterState,
    message: str,
    *,
    raise_on_error: bool,
    **error_context: Any,
) -> StateUpdateResult:
    if raise_on_error:
        raise ResourceError(message, **error_context)
    logger.debug("Resource operation failed", character_id=state.character_id, error=message)
    return StateUpdateResult(state=state, success=False, error=message)


def _restore_amount(current: int | float, maximum: int | float, amount: Amount) -> int | float:
    if amount == "max":
        return maximum
    return min(current + amount, maximum)


# =============================================================================
# Limited-use Resources
# =============================================================================


def consume_resource(
    state: CharacterState,
    resource_id: str,
    amount: int = 1,
    *,
    raise_on_error: bool = False,
) -> StateUpdateResult:
    """Spend uses of a tracked resource.

    Args:
        state: Current state.
        resource_id: Resource to spend (e.g. 'rage').
        amount: Uses to spend.
        raise_on_error: Raise ``ResourceError`` instead of returning a failure.

    Returns:
        The update result.

    Raises:
        ResourceError: If ``raise_on_error`` and the resource is missing or
            has too few uses left.
    """
    resource = state.resources.get(resource_id)
    if resource is None:
        return _failure(
            state,
            f"Resource '{resource_id}' does not exist on character",
            raise_on_error=raise_on_error,
            resource_id=resource_id,
        )

    remaining = resource.current - amount
    if remaining < 0:
        return _failure(
            state,
            f"Cannot consume {amount} of resource '{resource_id}': "
            f"only {resource.current} available (max {resource.max})",
            raise_on_error=raise_on_error,
            resource_id=resource_id,
            current=resource.current,
            maximum=resource.max,
            attempted=amount,
        )

    new_state = state.model_copy(deep=True)
    new_state.resources[resource_id].current = remaining
    return StateUpdateResult(
        state=new_state,
        success=True,
        changes=[f"Consumed {amount} {resource_id} ({resource.current} -> {remaining})"],
    )


def restore_resource(
    state: CharacterState,
    resource_id: str,
    amount: Amount = "max",
    *,
    raise_on_error: bool = False,
) -> StateUpdateResult:
    """Regain uses of a tracked resource, capped at its maximum.

    Args:
        state: Current state.
        resource_id: Resource to restore.
        amount: Uses to regain, or 'max' to refill.
        raise_on_error: Raise ``ResourceError`` for an unknown resource.

    Returns:
        The update result.
    """
    resource = state.resources.get(resource_id)
    if resource is None:
        return _failure(
            state,
            f"Resource '{resource_id}' does not exist on character",
            raise_on_error=raise_on_error,
            resource_id=resource_id,
        )

    restored = _restore_amount(resource.current, resource.max, amount)
    if restored == resource.current:
        return StateUpdateResult(
            state=state,
            success=True,
            changes=[f"Resource '{resource_id}' already at {resource.current}/{resource.max}"],
        )

    new_state = state.model_copy(deep=True)
    new_state.resources[resource_id].current = restored
    return StateUpdateResult(
        state=new_state,
        success=True,
        changes=[f"Restored {resource_id} ({resource.current} -> {restored})"],
    )


# =============================================================================
# Spell Slots
# =============================================================================


def consume_spell_slot(
    state: CharacterState,
    level: int,
    *,
    raise_on_error: bool = False,
) -> StateUpdateResult:
    """Expend one spell slot of the given level.

    Raises:
        ResourceError: If ``raise_on_error`` and the character cannot cast,
            has no slots of that level, or has none left.
    """
    if state.spell_slots is None:
        return _failure(
            state, "Character does not have spellcasting", raise_on_error=raise_on_error
        )

    slot = state.spell_slots.get(level)
    if slot is None:
        return _failure(
            state,
            f"Character does not have spell slots of level {level}",
            raise_on_error=raise_on_error,
            details={"level": level},
        )

    if slot.current <= 0:
        return _failure(
            state,
            f"No level {level} spell slots remaining (0/{slot.max})",
            raise_on_error=raise_on_error,
            current=slot.current,
            maximum=slot.max,
            attempted=1,
            details={"level": level},
        )

    new_state = state.model_copy(deep=True)
    slots = new_state.spell_slots or {}
    slots[level].current = slot.current - 1
    return StateUpdateResult(
        state=new_state,
        success=True,
        changes=[f"Consumed level {level} spell slot ({slot.current} -> {slot.current - 1})"],
    )


def restore_spell_slots(
    state: CharacterState,
    level: int | Literal["all"],
    amount: Amount = "max",
    *,
    raise_on_error: bool = False,
) -> StateUpdateResult:
    """Regain spell slots for one level or for every level.

    Args:
        state: Current state.
        level: Slot level to restore, or 'all'.
        amount: Slots to regain per level, or 'max' to refill.
        raise_on_error: Raise ``ResourceError`` instead of returning a failure.

    Returns:
        The update result.
    """
    if state.spell_slots is None:
        return _failure(
            state, "Character does not have spellcasting", raise_on_error=raise_on_error
        )
    if level != "all" and level not in state.spell_slots:
        return _failure(
            state,
            f"Character does not have spell slots of level {level}",
            raise_on_error=raise_on_error,
            details={"level": level},
        )

    new_state = state.model_copy(deep=True)
    slots = new_state.spell_slots or {}
    levels = sorted(slots) if level == "all" else [level]

    changes: list[str] = []
    for slot_level in levels:
        slot = slots[slot_level]
        previous = slot.current
        slot.current = _restore_amount(slot.current, slot.max, amount)
        if slot.current != previous:
            changes.append(f"Restored level {slot_level} slots ({previous} -> {slot.current})")

    return StateUpdateResult(
        state=new_state,
        success=True,
        changes=changes or ["Spell slots already at maximum"],
    )


# =============================================================================
# Hit Points
# =============================================================================


def take_damage(state: CharacterState, damage: int | float) -> StateUpdateResult:
    """Apply damage. Temporary hit points absorb damage first; HP stops at 0."""
    if damage <= 0:
        return StateUpdateResult(state=state, success=True, changes=["No damage taken"])

    new_state = state.model_copy(deep=True)
    changes: list[str] = []
    remaining = damage

    if new_state.temp_hp > 0:
        absorbed = min(new_state.temp_hp, remaining)
        new_state.temp_hp -= absorbed
        remaining -= absorbed
        changes.append(f"Lost {absorbed} temporary HP ({state.temp_hp} -> {new_state.temp_hp})")

    if remaining > 0:
        previous = new_state.current_hp
        new_state.current_hp = max(0, new_state.current_hp - remaining)
        changes.append(f"Took {remaining} damage ({previous} -> {new_state.current_hp} HP)")

    return StateUpdateResult(state=new_state, success=True, changes=changes)


def heal(state: CharacterState, healing: int | float) -> StateUpdateResult:
    """Restore hit points, capped at the maximum."""
    if healing <= 0:
        return StateUpdateResult(state=state, success=True, changes=["No healing applied"])

    new_state = state.model_copy(deep=True)
    previous = new_state.current_hp
    new_state.current_hp = min(new_state.current_hp + healing, new_state.max_hp)
    healed = new_state.current_hp - previous

    return StateUpdateResult(
        state=new_state,
        success=True,
        changes=(
            [f"Healed {healed} HP ({previous} -> {new_state.current_hp})"]
            if healed > 0
            else ["Already at maximum HP"]
        ),
    )


def gain_temp_hp(state: CharacterState, amount: int | float) -> StateUpdateResult:
    """Gain temporary hit points. They do not stack; the higher value is kept."""
    if amount <= 0:
        return StateUpdateResult(state=state, success=True, changes=["No temporary HP gained"])

    new_state = state.model_copy(deep=True)
    previous = new_state.temp_hp
    new_state.temp_hp = max(previous, amount)

    return StateUpdateResult(
        state=new_state,
        success=True,
        changes=(
            [f"Gained {amount} temporary HP ({previous} -> {new_state.temp_hp})"]
            if new_state.temp_hp > previous
            else [f"Temporary HP not changed (current {previous} >= new {amount})"]
        ),
    )


# =============================================================================
# Rests
# =============================================================================


def apply_rest(state: CharacterState, rest_type: RestType | str) -> StateUpdateResult:
    """Recover resources for a short or long rest.

    A short rest refills resources that recharge on a short rest. A long
    rest refills every resource and spell slot, restores hit points to
    the maximum and clears temporary hit points and death saves.

    Args:
        state: Current state.
        rest_type: 'short' or 'long'.

    Returns:
        The update result.
    """
    rest = RestType(rest_type)
    new_state = state.model_copy(deep=True)
    changes: list[str] = []

    for resource_id, resource in new_state.resources.items():
        if rest == RestType.SHORT and resource.restoration_type != ResourceType.PER_SHORT_REST:
            continue
        if resource.current != resource.max:
            changes.append(f"Restored {resource_id} ({resource.current} -> {resource.max})")
            resource.current = resource.max

    if rest == RestType.LONG:
        for level, slot in sorted((new_state.spell_slots or {}).items()):
            if slot.current != slot.max:
                changes.append(f"Restored level {level} slots ({slot.current} -> {slot.max})")
                slot.current = slot.max

        if new_state.current_hp != new_state.max_hp:
            changes.append(f"Restored HP ({new_state.current_hp} -> {new_state.max_hp})")
            new_state.current_hp = new_state.max_hp
        if new_state.temp_hp:
            changes.append("Temporary HP cleared")
            new_state.temp_hp = 0
        new_state.death_save_successes = 0
        new_state.death_save_failures = 0

    logger.debug(
        "Rest applied",
        character_id=state.character_id,
        rest_type=rest.value,
        changes=len(changes),
    )
    return StateUpdateResult(
        state=new_state,
        success=True,
        changes=changes or ["Nothing to restore"],
    )


__all__ = [
    "initialize_character_state",
    "consume_resource",
    "restore_resource",
    "consume_spell_slot",
    "restore_spell_slots",
    "take_damage",
    "heal",
    "gain_temp_hp",
    "apply_rest",
]
