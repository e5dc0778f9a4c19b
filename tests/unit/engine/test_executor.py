"""Tests for the evaluation orchestrator."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from structlog.testing import capture_logs

from dnd_rules.core.config import EngineSettings
from dnd_rules.core.exceptions import EngineDisabledError, FormulaError
from dnd_rules.engine.executor import (
    RulesEngine,
    collect_pending_choices,
    evaluate_character,
    initialize_derived_state,
)
from dnd_rules.models import BaseFacts, SourcedEffect, TemporaryEffect
from dnd_rules.models.enums import Ability


@pytest.fixture
def unarmored_defense(
    make_sourced: Callable[..., SourcedEffect],
    formula: Callable[..., dict[str, Any]],
) -> SourcedEffect:
    """Provide barbarian unarmored defense guarded on wearing no armor."""
    return make_sourced(
        "class:barbarian",
        [
            {
                "kind": "armorClass",
                "value": formula(
                    "10 + @abilities.DEX.modifier + @abilities.CON.modifier",
                    "@abilities.DEX.modifier",
                    "@abilities.CON.modifier",
                ),
                "priority": "additive",
                "predicate": [{"type": "not", "predicate": {"type": "hasTag", "tag": "wearing-armor"}}],
            }
        ],
        effect_id="unarmored-defense",
    )


@pytest.fixture
def dex_increase(make_sourced: Callable[..., SourcedEffect]) -> SourcedEffect:
    """Provide a species +2 DEX increase."""
    return make_sourced(
        "species:elf",
        [{"kind": "abilityScoreIncrease", "ability": "DEX", "value": 2}],
        effect_id="elf-asi",
    )


def _temporary(source_id: str, effects: list[dict[str, Any]]) -> TemporaryEffect:
    return TemporaryEffect.model_validate(
        {
            "source_id": source_id,
            "effect_id": source_id.split(":", 1)[-1],
            "name": source_id,
            "effects": effects,
            "duration": {"type": "rounds", "count": 10},
        }
    )


class TestInitializeDerivedState:
    """Tests for the starting derived state."""

    def test_baseline(self, sample_facts: BaseFacts) -> None:
        """Test abilities, proficiency bonus and unarmored AC."""
        derived = initialize_derived_state(sample_facts)
        assert derived.abilities[Ability.STR].modifier == 3
        assert derived.proficiency_bonus == 2
        assert derived.ac.value == 12
        assert len(derived.saves) == 6
        assert len(derived.skills) == 18
        assert derived.applied_effects == []

    def test_equipment_tags(self, make_facts: Callable[..., BaseFacts]) -> None:
        """Test equipment seeds the armor, weapon and shield tags."""
        facts = make_facts(
            tags=["heroic", "heroic"],
            equipped_armor="chain-mail",
            equipped_weapons=["longsword"],
            equipped_items=["shield"],
        )
        derived = initialize_derived_state(facts)
        assert derived.tags == ["heroic", "wearing-armor", "wielding-weapon", "wielding-shield"]

    def test_attunement_slots(self, sample_facts: BaseFacts) -> None:
        """Test attunement slots default to 3 and can be overridden."""
        assert initialize_derived_state(sample_facts).attunement.max_attuned_items == 3
        derived = initialize_derived_state(sample_facts, max_attuned_items=5)
        assert derived.attunement.max_attuned_items == 5


class TestEvaluateCharacter:
    """Tests for full evaluations."""

    def test_species_applies_before_class(
        self,
        sample_facts: BaseFacts,
        engine_settings: EngineSettings,
        unarmored_defense: SourcedEffect,
        dex_increase: SourcedEffect,
    ) -> None:
        """Test phase order regardless of input order."""
        derived = evaluate_character(
            sample_facts, [unarmored_defense, dex_increase], settings=engine_settings
        )
        assert derived.abilities[Ability.DEX].score == 16
        assert derived.ac.value == 14
        assert [entry.effect_id for entry in derived.applied_effects] == [
            "elf-asi",
            "unarmored-defense",
        ]

    def test_armor_blocks_unarmored_defense(
        self,
        make_facts: Callable[..., BaseFacts],
        engine_settings: EngineSettings,
        unarmored_defense: SourcedEffect,
    ) -> None:
        """Test predicates see equipment tags."""
        facts = make_facts(equipped_armor="leather")
        derived = evaluate_character(facts, [unarmored_defense], settings=engine_settings)
        assert derived.ac.value == 12
        assert derived.applied_effects[0].reason == "Predicate failed"

    def test_deterministic(
        self,
        sample_facts: BaseFacts,
        engine_settings: EngineSettings,
        make_sourced: Callable[..., SourcedEffect],
        unarmored_defense: SourcedEffect,
        dex_increase: SourcedEffect,
    ) -> None:
        """Test identical inputs in any order give identical output."""
        effects = [
            unarmored_defense,
            dex_increase,
            make_sourced("feat:alert", [{"kind": "initiativeBonus", "value": 5}]),
            make_sourced("background:soldier", [{"kind": "skillProficiency", "skill": "athletics"}]),
        ]
        forward = evaluate_character(sample_facts, effects, settings=engine_settings)
        backward = evaluate_character(sample_facts, effects[::-1], settings=engine_settings)
        assert forward.model_dump() == backward.model_dump()

    def test_temporary_effects_apply_last(
        self,
        sample_facts: BaseFacts,
        engine_settings: EngineSettings,
        make_sourced: Callable[..., SourcedEffect],
    ) -> None:
        """Test temporaries run after every phase and in the order given."""
        item = make_sourced(
            "item:blessed-blade",
            [
                {
                    "kind": "tag",
                    "tags": ["glowing"],
                    "predicate": [{"type": "hasTag", "tag": "blessed"}],
                }
            ],
        )
        temporaries = [
            _temporary("spell:bless", [{"kind": "tag", "tags": ["blessed"]}]),
            _temporary("spell:shield", [{"kind": "armorClass", "value": 5, "priority": "flag"}]),
        ]

        derived = evaluate_character(sample_facts, [item], temporaries, settings=engine_settings)

        assert "glowing" not in derived.tags
        assert "blessed" in derived.tags
        assert derived.ac.value == 17
        assert [entry.source_id for entry in derived.applied_effects] == [
            "item:blessed-blade",
            "spell:bless",
            "spell:shield",
        ]

    def test_finalizes(
        self,
        sample_facts: BaseFacts,
        engine_settings: EngineSettings,
        make_sourced: Callable[..., SourcedEffect],
    ) -> None:
        """Test saves, skills and spellcasting are finalized."""
        effects = [
            make_sourced(
                "class:cleric",
                [
                    {"kind": "spellcastingAbility", "ability": "WIS"},
                    {"kind": "grantProficiency", "prof_type": "savingThrow", "values": ["WIS"]},
                    {"kind": "skillProficiency", "skill": "insight"},
                    {"kind": "hitPoints", "value": 9},
                ],
            )
        ]
        derived = evaluate_character(sample_facts, effects, settings=engine_settings)

        assert derived.spellcasting is not None
        assert derived.spellcasting.save_dc == 11
        assert derived.saves[Ability.WIS].bonus == 3
        assert derived.skills["insight"].bonus == 3
        assert derived.hit_points == 9
        assert derived.initiative.bonus == 2

    def test_strict_formulas(
        self,
        sample_facts: BaseFacts,
        make_sourced: Callable[..., SourcedEffect],
    ) -> None:
        """Test strict mode surfaces malformed formulas."""
        effects = [
            make_sourced(
                "feat:broken",
                [{"kind": "initiativeBonus", "value": {"expression": "2 +", "variables": []}}],
            )
        ]
        lenient = evaluate_character(sample_facts, effects, settings=EngineSettings())
        assert lenient.initiative.bonus == 2

        with pytest.raises(FormulaError):
            evaluate_character(sample_facts, effects, settings=EngineSettings(strict_formulas=True))

    @pytest.mark.parametrize(
        "expression",
        ["(" * 3000 + "1" + ")" * 3000, "1" + "0" * 400 + " / 3"],
    )
    def test_runaway_formula_does_not_abort(
        self,
        sample_facts: BaseFacts,
        make_sourced: Callable[..., SourcedEffect],
        expression: str,
    ) -> None:
        """Test one unusable formula leaves the rest of the evaluation intact."""
        effects = [
            make_sourced(
                "feat:cursed",
                [
                    {"kind": "initiativeBonus", "value": {"expression": expression, "variables": []}},
                    {"kind": "tag", "tags": ["cursed"]},
                ],
            )
        ]
        derived = evaluate_character(sample_facts, effects, settings=EngineSettings())

        assert derived.initiative.bonus == 2
        assert "cursed" in derived.tags

    def test_uses_global_settings(
        self,
        sample_facts: BaseFacts,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test settings come from the environment when not passed."""
        monkeypatch.setenv("DND_RULES_ENGINE_MAX_ATTUNED_ITEMS", "4")
        derived = evaluate_character(sample_facts, [])
        assert derived.attunement.max_attuned_items == 4

    def test_logs_summary(
        self,
        sample_facts: BaseFacts,
        engine_settings: EngineSettings,
        make_sourced: Callable[..., SourcedEffect],
    ) -> None:
        """Test one summary log line per evaluation."""
        effects = [
            make_sourced("feat:alert", [{"kind": "initiativeBonus", "value": 5}]),
            make_sourced("item:wand", [{"kind": "teleport"}]),
        ]
        with capture_logs() as logs:
            evaluate_character(sample_facts, effects, settings=engine_settings)

        summary = next(log for log in logs if log["event"] == "Character evaluated")
        assert summary["log_level"] == "info"
        assert summary["applied"] == 1
        assert summary["skipped"] == 1


class TestPendingChoices:
    """Tests for choice collection."""

    @pytest.fixture
    def choices(self, make_sourced: Callable[..., SourcedEffect]) -> list[SourcedEffect]:
        """Provide a skill choice, a gated feat choice and a duplicate id."""
        skill_choice = {
            "id": "fighter-skills",
            "prompt": "Choose two skills",
            "type": "multiselect",
            "min": 2,
            "max": 2,
            "options": [
                {"value": "athletics", "label": "Athletics"},
                {"value": "survival", "label": "Survival"},
            ],
        }
        return [
            make_sourced("class:fighter", effect_id="skills", choice=skill_choice),
            make_sourced("class:fighter", effect_id="skills-again", choice=skill_choice),
            make_sourced(
                "class:fighter",
                effect_id="asi",
                choice={
                    "id": "fighter-asi-4",
                    "prompt": "Ability score improvement",
                    "predicate": [{"type": "levelAtLeast", "value": 4}],
                },
            ),
        ]

    def test_pending_choice_listed(
        self,
        sample_facts: BaseFacts,
        engine_settings: EngineSettings,
        choices: list[SourcedEffect],
    ) -> None:
        """Test open choices appear once, gated ones not at all."""
        derived = evaluate_character(sample_facts, choices, settings=engine_settings)

        [choice] = derived.choices
        assert choice.id == "fighter-skills"
        assert choice.resolved is False
        assert choice.selected is None
        assert [option.value for option in choice.options] == ["athletics", "survival"]
        assert (choice.min, choice.max) == (2, 2)

    def test_resolved_choice_listed(
        self,
        make_facts: Callable[..., BaseFacts],
        choices: list[SourcedEffect],
    ) -> None:
        """Test answered choices are listed with their answer."""
        facts = make_facts(level=4, choices={"fighter-skills": ["athletics", "survival"]})
        derived = initialize_derived_state(facts)

        collected = collect_pending_choices(facts, derived, choices)

        assert [choice.id for choice in collected] == ["fighter-skills", "fighter-asi-4"]
        assert collected[0].resolved is True
        assert collected[0].selected == ["athletics", "survival"]
        assert collected[1].resolved is False
        assert derived.choices == collected


class TestRulesEngine:
    """Tests for the RulesEngine entry point."""

    def test_evaluate(self, sample_facts: BaseFacts, engine_settings: EngineSettings) -> None:
        """Test an enabled engine evaluates."""
        engine = RulesEngine(engine_settings)
        assert engine.is_enabled
        assert engine.evaluate(sample_facts, []).ac.value == 12

    def test_disabled(self, sample_facts: BaseFacts) -> None:
        """Test a disabled engine refuses to evaluate."""
        engine = RulesEngine(EngineSettings(enabled=False))
        with pytest.raises(EngineDisabledError) as exc_info:
            engine.evaluate(sample_facts, [])
        assert exc_info.value.details["setting"] == "DND_RULES_ENGINE_ENABLED"

    def test_disabled_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the engine reads its switch from the environment."""
        monkeypatch.setenv("DND_RULES_ENGINE_ENABLED", "false")
        assert RulesEngine().is_enabled is False
