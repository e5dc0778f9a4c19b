"""Tests for effect, predicate and sourced effect models."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

from dnd_rules.models.effects import (
    ArmorClassEffect,
    Effect,
    GrantSpellEffect,
    SavingThrowBonusEffect,
    SourcedEffect,
    SpellSlotsEffect,
    TemporaryEffect,
    UnknownEffect,
)
from dnd_rules.models.enums import (
    Ability,
    DurationType,
    EditionFilter,
    EffectPriority,
    SpellListType,
    StackingRule,
)
from dnd_rules.models.formulas import Formula
from dnd_rules.models.predicates import (
    And,
    HasTag,
    LevelAtLeast,
    Not,
    Predicate,
    UnknownPredicate,
)


effect_adapter: TypeAdapter[Effect] = TypeAdapter(Effect)
predicate_adapter: TypeAdapter[Predicate] = TypeAdapter(Predicate)


class TestEffectUnion:
    """Tests for kind-discriminated effect validation."""

    def test_known_kind(self) -> None:
        """Test a known kind validates into its model."""
        effect = effect_adapter.validate_python(
            {"kind": "armorClass", "value": 16, "priority": "additive"}
        )
        assert isinstance(effect, ArmorClassEffect)
        assert effect.value == 16
        assert effect.priority is EffectPriority.ADDITIVE

    def test_formula_value(self) -> None:
        """Test numeric fields accept formulas."""
        effect = effect_adapter.validate_python(
            {
                "kind": "armorClass",
                "value": {
                    "expression": "10 + @abilities.DEX.modifier",
                    "variables": ["@abilities.DEX.modifier"],
                },
            }
        )
        assert isinstance(effect.value, Formula)
        assert effect.value.variables == ["@abilities.DEX.modifier"]

    def test_unknown_kind_is_preserved(self) -> None:
        """Test an unrecognized kind validates into UnknownEffect with its fields."""
        effect = effect_adapter.validate_python({"kind": "teleport", "range": 30})
        assert isinstance(effect, UnknownEffect)
        assert effect.kind == "teleport"
        assert effect.model_extra == {"range": 30}

    def test_known_kind_with_bad_fields_fails(self) -> None:
        """Test a known kind with missing fields is still a validation error."""
        with pytest.raises(ValidationError):
            effect_adapter.validate_python({"kind": "armorClass"})

    def test_saving_throw_bonus_all(self) -> None:
        """Test savingThrowBonus accepts 'all' or an ability."""
        every = effect_adapter.validate_python(
            {"kind": "savingThrowBonus", "ability": "all", "value": 1}
        )
        one = effect_adapter.validate_python(
            {"kind": "savingThrowBonus", "ability": "wisdom", "value": 1}
        )
        assert isinstance(every, SavingThrowBonusEffect)
        assert every.ability == "all"
        assert one.ability is Ability.WIS

    def test_stacking_defaults(self) -> None:
        """Test default stacking rules per kind."""
        slots = effect_adapter.validate_python({"kind": "spellSlots", "level": 1, "value": 2})
        armor = effect_adapter.validate_python({"kind": "armorClass", "value": 2})
        assert isinstance(slots, SpellSlotsEffect)
        assert slots.stacking is StackingRule.STACK
        assert armor.stacking is None

    @pytest.mark.parametrize("level", [0, 10])
    def test_spell_slot_level_bounds(self, level: int) -> None:
        """Test spell slot levels are limited to 1-9."""
        with pytest.raises(ValidationError):
            effect_adapter.validate_python({"kind": "spellSlots", "level": level, "value": 1})

    def test_grant_spell_list_type(self) -> None:
        """Test grantSpell parses its list type."""
        effect = effect_adapter.validate_python(
            {"kind": "grantSpell", "spell_slug": "guidance", "spell_type": "cantrip"}
        )
        assert isinstance(effect, GrantSpellEffect)
        assert effect.spell_type is SpellListType.CANTRIP


class TestPredicateUnion:
    """Tests for type-discriminated predicate validation."""

    def test_simple_predicate(self) -> None:
        """Test a simple predicate validates into its model."""
        predicate = predicate_adapter.validate_python({"type": "levelAtLeast", "value": 3})
        assert predicate == LevelAtLeast(value=3)

    def test_nested_composites(self) -> None:
        """Test and/not nest recursively."""
        predicate = predicate_adapter.validate_python(
            {
                "type": "and",
                "predicates": [
                    {"type": "hasTag", "tag": "rage"},
                    {"type": "not", "predicate": [{"type": "hasTag", "tag": "wearing-armor"}]},
                ],
            }
        )
        assert isinstance(predicate, And)
        assert isinstance(predicate.predicates[0], HasTag)
        negated = predicate.predicates[1]
        assert isinstance(negated, Not)
        assert isinstance(negated.predicate, list)

    def test_not_accepts_single_predicate(self) -> None:
        """Test not accepts one predicate as well as a list."""
        predicate = predicate_adapter.validate_python(
            {"type": "not", "predicate": {"type": "hasTag", "tag": "wielding-shield"}}
        )
        assert isinstance(predicate, Not)
        assert isinstance(predicate.predicate, HasTag)

    def test_unknown_type_is_preserved(self) -> None:
        """Test an unrecognized type validates into UnknownPredicate."""
        predicate = predicate_adapter.validate_python({"type": "moonPhase", "phase": "full"})
        assert isinstance(predicate, UnknownPredicate)
        assert predicate.type == "moonPhase"


class TestSourcedEffect:
    """Tests for SourcedEffect and TemporaryEffect."""

    def test_minimal(self) -> None:
        """Test a sourced effect with defaults."""
        sourced = SourcedEffect(source_id="species:elf", effect_id="darkvision", name="Darkvision")
        assert sourced.effects == []
        assert sourced.choice is None
        assert sourced.edition is None

    @pytest.mark.parametrize("field", ["source_id", "effect_id"])
    def test_ids_must_be_non_empty(self, field: str) -> None:
        """Test empty identifiers are rejected."""
        data = {"source_id": "class:fighter", "effect_id": "second-wind", "name": "Second Wind"}
        data[field] = ""
        with pytest.raises(ValidationError):
            SourcedEffect.model_validate(data)

    def test_choice_lookup(self) -> None:
        """Test options are found by value."""
        sourced = SourcedEffect.model_validate(
            {
                "source_id": "class:fighter",
                "effect_id": "fighting-style",
                "name": "Fighting Style",
                "edition": "both",
                "choice": {
                    "id": "fighter-fighting-style",
                    "prompt": "Choose a fighting style",
                    "options": [
                        {
                            "value": "defense",
                            "label": "Defense",
                            "effects": [{"kind": "armorClass", "value": 1}],
                        }
                    ],
                },
            }
        )
        assert sourced.edition is EditionFilter.BOTH
        assert sourced.choice is not None
        option = sourced.choice.get_option("defense")
        assert option is not None
        assert isinstance(option.effects[0], ArmorClassEffect)
        assert sourced.choice.get_option("archery") is None

    def test_models_are_frozen(self) -> None:
        """Test sourced effects cannot be mutated."""
        sourced = SourcedEffect(source_id="feat:alert", effect_id="alert", name="Alert")
        with pytest.raises(ValidationError):
            sourced.name = "Changed"  # type: ignore[misc]

    def test_temporary_effect_duration(self) -> None:
        """Test temporary effects carry a duration."""
        temporary = TemporaryEffect.model_validate(
            {
                "source_id": "spell:bless",
                "effect_id": "bless",
                "name": "Bless",
                "duration": {"type": "concentration", "count": 10},
            }
        )
        assert temporary.duration.type is DurationType.CONCENTRATION
        assert temporary.duration.count == 10
        assert isinstance(temporary, SourcedEffect)
