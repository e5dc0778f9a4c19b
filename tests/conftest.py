"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the D&D 5E rules engine test suite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from dnd_rules.core.config import EngineSettings, clear_settings_cache
from dnd_rules.models import BaseFacts, DerivedState, SourcedEffect
from dnd_rules.engine.executor import initialize_derived_state


if TYPE_CHECKING:
    from collections.abc import Callable, Generator


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "DND_RULES_DEBUG": "true",
        "DND_RULES_LOG_LEVEL": "DEBUG",
        "DND_RULES_ENGINE_STRICT_FORMULAS": "true",
        "DND_RULES_ENGINE_MAX_ATTUNED_ITEMS": "5",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def engine_settings() -> EngineSettings:
    """Provide explicit engine settings independent of the environment."""
    return EngineSettings(
        enabled=True,
        strict_formulas=False,
        record_choice_summary=True,
        max_attuned_items=3,
    )


# =============================================================================
# Fact Fixtures
# =============================================================================


@pytest.fixture
def sample_abilities() -> dict[str, int]:
    """Provide sample ability scores.

    Returns:
        Scores keyed by ability abbreviation (modifiers +3 +2 +1 +0 +1 -1).
    """
    return {
        "STR": 16,
        "DEX": 14,
        "CON": 13,
        "INT": 10,
        "WIS": 12,
        "CHA": 8,
    }


@pytest.fixture
def make_facts(sample_abilities: dict[str, int]) -> Callable[..., BaseFacts]:
    """Build BaseFacts for a level 1 human fighter, with overrides.

    Returns:
        Factory accepting BaseFacts field overrides.
    """

    def factory(**overrides: Any) -> BaseFacts:
        data: dict[str, Any] = {
            "level": 1,
            "class_slug": "fighter",
            "class_levels": {"fighter": overrides.get("level", 1)},
            "species_slug": "human",
            "background_slug": "soldier",
            "abilities": dict(sample_abilities),
        }
        data.update(overrides)
        return BaseFacts.model_validate(data)

    return factory


@pytest.fixture
def sample_facts(make_facts: Callable[..., BaseFacts]) -> BaseFacts:
    """Provide a level 1 fighter."""
    return make_facts()


@pytest.fixture
def derived(sample_facts: BaseFacts) -> DerivedState:
    """Provide a fresh derived state for the sample fighter."""
    return initialize_derived_state(sample_facts)


# =============================================================================
# Effect Fixtures
# =============================================================================


@pytest.fixture
def make_sourced() -> Callable[..., SourcedEffect]:
    """Build a SourcedEffect from raw effect mappings.

    Returns:
        Factory taking a source id, a list of raw effects and extra fields.
    """

    def factory(
        source_id: str,
        effects: list[dict[str, Any]] | None = None,
        **extra: Any,
    ) -> SourcedEffect:
        data: dict[str, Any] = {
            "source_id": source_id,
            "effect_id": extra.pop("effect_id", f"{source_id.split(':', 1)[-1]}-effect"),
            "name": extra.pop("name", source_id),
            "effects": effects or [],
        }
        data.update(extra)
        return SourcedEffect.model_validate(data)

    return factory


@pytest.fixture
def formula() -> Callable[..., dict[str, Any]]:
    """Build a raw formula mapping, declaring every variable it lists.

    Returns:
        Factory taking an expression and its variable tokens.
    """

    def factory(expression: str, *variables: str) -> dict[str, Any]:
        return {"expression": expression, "variables": list(variables)}

    return factory
