"""Tests for runtime resource, hit point and rest operations."""

from __future__ import annotations

import pytest

from dnd_rules.core.exceptions import ResourceError
from dnd_rules.engine.resources import (
    apply_rest,
    consume_resource,
    consume_spell_slot,
    gain_temp_hp,
    heal,
    initialize_character_state,
    restore_resource,
    restore_spell_slots,
    take_damage,
)
from dnd_rules.models import CharacterState, DerivedState
from dnd_rules.models.derived import DerivedResource, DerivedSpellcasting, SpellSlotPool
from dnd_rules.models.enums import Ability, ResourceType, RestType
from dnd_rules.models.state import SpellSlotState, TrackedResource


@pytest.fixture
def state() -> CharacterState:
    """Provide a wounded level 3 caster with rage and channel divinity."""
    return CharacterState(
        character_id="char-1",
        current_hp=20,
        max_hp=30,
        temp_hp=5,
        resources={
            "rage": TrackedResource(current=1, max=3, restoration_type=ResourceType.PER_LONG_REST),
            "channel-divinity": TrackedResource(
                current=0, max=1, restoration_type=ResourceType.PER_SHORT_REST
            ),
        },
        spell_slots={
            1: SpellSlotState(current=0, max=4),
            2: SpellSlotState(current=2, max=2),
        },
        death_save_failures=2,
    )


class TestInitializeCharacterState:
    """Tests for building play-time state from derived state."""

    def test_full_pools(self, derived: DerivedState) -> None:
        """Test resources, slots and hit points start full."""
        derived.hit_points = 12
        derived.speed["walk"] = 25
        derived.resources["rage"] = DerivedResource(
            id="rage", max=2, current=2, type=ResourceType.PER_LONG_REST
        )
        derived.spellcasting = DerivedSpellcasting(
            ability=Ability.WIS, slots={1: SpellSlotPool(max=2, used=1)}
        )

        state = initialize_character_state("char-1", derived)

        assert (state.current_hp, state.max_hp) == (12, 12)
        assert state.resources["rage"].current == 2
        assert state.resources["rage"].restoration_type is ResourceType.PER_LONG_REST
        assert state.spell_slots is not None
        assert state.spell_slots[1].current == 2
        assert state.action_economy.movement_remaining == 25

    def test_non_caster(self, derived: DerivedState) -> None:
        """Test non-casters get no slot table and default movement."""
        state = initialize_character_state("char-1", derived)
        assert state.spell_slots is None
        assert state.action_economy.movement_remaining == 30


class TestResources:
    """Tests for spending and regaining resources."""

    def test_consume(self, state: CharacterState) -> None:
        """Test spending leaves the input untouched."""
        result = consume_resource(state, "rage")
        assert result.success
        assert result.state.resources["rage"].current == 0
        assert state.resources["rage"].current == 1
        assert result.changes == ["Consumed 1 rage (1 -> 0)"]

    def test_consume_too_many(self, state: CharacterState) -> None:
        """Test overspending fails without changes."""
        result = consume_resource(state, "rage", 2)
        assert not result.success
        assert result.state is state
        assert result.error == "Cannot consume 2 of resource 'rage': only 1 available (max 3)"

    def test_consume_missing_raises(self, state: CharacterState) -> None:
        """Test unknown resources raise on request."""
        with pytest.raises(ResourceError) as exc_info:
            consume_resource(state, "ki", raise_on_error=True)
        assert str(exc_info.value).startswith("Resource 'ki' does not exist on character")
        assert exc_info.value.details["resource_id"] == "ki"

    def test_restore_amount_is_capped(self, state: CharacterState) -> None:
        """Test restoring more than the maximum stops at the maximum."""
        result = restore_resource(state, "rage", 5)
        assert result.state.resources["rage"].current == 3
        assert result.changes == ["Restored rage (1 -> 3)"]

    def test_restore_full(self, state: CharacterState) -> None:
        """Test restoring an already full resource is a no-op."""
        full = restore_resource(state, "rage").state
        result = restore_resource(full, "rage")
        assert result.success
        assert result.state is full
        assert result.changes == ["Resource 'rage' already at 3/3"]


class TestSpellSlots:
    """Tests for spell slot usage."""

    def test_consume(self, state: CharacterState) -> None:
        """Test one slot is spent."""
        result = consume_spell_slot(state, 2)
        assert result.state.spell_slots is not None
        assert result.state.spell_slots[2].current == 1
        assert result.changes == ["Consumed level 2 spell slot (2 -> 1)"]

    @pytest.mark.parametrize(
        ("level", "error"),
        [
            (1, "No level 1 spell slots remaining (0/4)"),
            (3, "Character does not have spell slots of level 3"),
        ],
    )
    def test_consume_failures(self, state: CharacterState, level: int, error: str) -> None:
        """Test empty or missing slot levels fail."""
        result = consume_spell_slot(state, level)
        assert not result.success
        assert result.error == error

    def test_non_caster(self) -> None:
        """Test characters without spellcasting cannot use slots."""
        fighter = CharacterState(character_id="char-2", current_hp=10, max_hp=10)
        with pytest.raises(ResourceError, match="Character does not have spellcasting"):
            consume_spell_slot(fighter, 1, raise_on_error=True)
        assert not restore_spell_slots(fighter, "all").success

    def test_restore_one_level(self, state: CharacterState) -> None:
        """Test partial restoration of a level."""
        result = restore_spell_slots(state, 1, 2)
        assert result.state.spell_slots is not None
        assert result.state.spell_slots[1].current == 2
        assert result.changes == ["Restored level 1 slots (0 -> 2)"]

    def test_restore_all(self, state: CharacterState) -> None:
        """Test restoring every level only reports changed levels."""
        result = restore_spell_slots(state, "all")
        assert result.changes == ["Restored level 1 slots (0 -> 4)"]
        again = restore_spell_slots(result.state, "all")
        assert again.changes == ["Spell slots already at maximum"]


class TestHitPoints:
    """Tests for damage, healing and temporary hit points."""

    def test_temp_hp_absorbs_first(self, state: CharacterState) -> None:
        """Test temporary hit points soak damage before HP."""
        result = take_damage(state, 8)
        assert result.state.temp_hp == 0
        assert result.state.current_hp == 17
        assert result.changes == [
            "Lost 5 temporary HP (5 -> 0)",
            "Took 3 damage (20 -> 17 HP)",
        ]

    def test_damage_floors_at_zero(self, state: CharacterState) -> None:
        """Test HP never goes negative."""
        result = take_damage(state, 100)
        assert result.state.current_hp == 0
        assert result.state.is_unconscious

    def test_no_damage(self, state: CharacterState) -> None:
        """Test zero damage changes nothing."""
        result = take_damage(state, 0)
        assert result.state is state
        assert result.changes == ["No damage taken"]

    def test_heal_is_capped(self, state: CharacterState) -> None:
        """Test healing stops at the maximum."""
        result = heal(state, 15)
        assert result.state.current_hp == 30
        assert result.changes == ["Healed 10 HP (20 -> 30)"]
        assert heal(result.state, 5).changes == ["Already at maximum HP"]

    def test_temp_hp_does_not_stack(self, state: CharacterState) -> None:
        """Test only a higher temporary HP value replaces the current one."""
        assert gain_temp_hp(state, 3).changes == [
            "Temporary HP not changed (current 5 >= new 3)"
        ]
        result = gain_temp_hp(state, 8)
        assert result.state.temp_hp == 8
        assert result.changes == ["Gained 8 temporary HP (5 -> 8)"]


class TestRests:
    """Tests for short and long rests."""

    def test_short_rest(self, state: CharacterState) -> None:
        """Test a short rest refills only short-rest resources."""
        result = apply_rest(state, RestType.SHORT)
        new = result.state
        assert new.resources["channel-divinity"].current == 1
        assert new.resources["rage"].current == 1
        assert new.current_hp == 20
        assert result.changes == ["Restored channel-divinity (0 -> 1)"]

    def test_long_rest(self, state: CharacterState) -> None:
        """Test a long rest refills everything and clears temporary state."""
        result = apply_rest(state, "long")
        new = result.state
        assert new.resources["rage"].current == 3
        assert new.spell_slots is not None
        assert new.spell_slots[1].current == 4
        assert new.current_hp == 30
        assert new.temp_hp == 0
        assert new.death_save_failures == 0
        assert result.changes == [
            "Restored rage (1 -> 3)",
            "Restored channel-divinity (0 -> 1)",
            "Restored level 1 slots (0 -> 4)",
            "Restored HP (20 -> 30)",
            "Temporary HP cleared",
        ]

    def test_nothing_to_restore(self) -> None:
        """Test a rested character reports no changes."""
        rested = CharacterState(character_id="char-3", current_hp=10, max_hp=10)
        assert apply_rest(rested, "short").changes == ["Nothing to restore"]

    def test_invalid_rest_type(self, state: CharacterState) -> None:
        """Test unknown rest types are rejected."""
        with pytest.raises(ValueError):
            apply_rest(state, "nap")
