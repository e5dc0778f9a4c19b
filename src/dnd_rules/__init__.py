"""D&D 5E rules engine.

Evaluates a character from immutable base facts and declarative effect
content into a derived character sheet with a full provenance log.

ARCHITECTURE:
- Content is data (SourcedEffect bundles of typed effects)
- Effects are applied in fixed phases, guarded by predicates and choices
- Every apply/skip outcome is recorded; malformed content never aborts a run

Example:
    >>> from dnd_rules import BaseFacts, RulesEngine, SourcedEffect
    >>>
    >>> facts = BaseFacts(
    ...     level=3,
    ...     class_slug="wizard",
    ...     species_slug="elf",
    ...     background_slug="sage",
    ...     abilities={"STR": 8, "DEX": 14, "CON": 12, "INT": 16, "WIS": 13, "CHA": 10},
    ... )
    >>> derived = RulesEngine().evaluate(facts, effects)
    >>> derived.spellcasting.save_dc
    13

Modules:
    core: Configuration, logging, and base exceptions.
    models: Pydantic V2 data contracts (facts, effects, derived state).
    engine: Evaluation pipeline and runtime resource operations.
"""

from __future__ import annotations

# Core
from dnd_rules.core.config import EngineSettings, Settings, get_settings
from dnd_rules.core.exceptions import DndRulesError
from dnd_rules.core.logging import configure_logging, get_logger

# Models
from dnd_rules.models import (
    BaseFacts,
    CharacterState,
    DerivedState,
    Formula,
    SourcedEffect,
    TemporaryEffect,
)

# Engine
from dnd_rules.engine import (
    RulesEngine,
    evaluate_character,
    initialize_character_state,
)


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "DndRulesError",
    "Settings",
    "EngineSettings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "BaseFacts",
    "SourcedEffect",
    "TemporaryEffect",
    "Formula",
    "DerivedState",
    "CharacterState",
    # Engine
    "RulesEngine",
    "evaluate_character",
    "initialize_character_state",
]
