"""Rules constants for the D&D 5E rules engine.

These are the arithmetic constants of the 5E core rules. Everything that
varies per class, species or item lives in effect content, not here.
"""

from __future__ import annotations

# =============================================================================
# Ability Scores
# =============================================================================

MIN_ABILITY_SCORE = 1
"""Minimum ability score."""

MAX_ABILITY_SCORE = 30
"""Maximum ability score for any creature."""

# =============================================================================
# Levels & Proficiency (PHB p.15)
# =============================================================================

MIN_CHARACTER_LEVEL = 1
"""Minimum character level."""

MAX_CHARACTER_LEVEL = 20
"""Maximum character level in D&D 5E."""

DEFAULT_PROFICIENCY_BONUS = 2
"""Proficiency bonus for level 1-4 characters."""

PROFICIENCY_LEVEL_STEP = 4
"""Levels between proficiency bonus increases."""

# =============================================================================
# Combat Constants
# =============================================================================

BASE_ARMOR_CLASS = 10
"""Unarmored AC before the DEX modifier is added."""

SPELL_SAVE_DC_BASE = 8
"""Base of the spell save DC (8 + proficiency + ability modifier)."""

DEFAULT_SPEED = 30
"""Walking speed assumed for runtime state when none was derived."""

MAX_SPELL_LEVEL = 9
"""Highest spell slot level."""

# =============================================================================
# Miscellaneous
# =============================================================================

DEFAULT_MAX_ATTUNED_ITEMS = 3
"""Number of attunement slots a character starts with."""

SHIELD_ITEM_SLUG = "shield"
"""Equipped item slug that marks a character as wielding a shield."""


__all__ = [
    "MIN_ABILITY_SCORE",
    "MAX_ABILITY_SCORE",
    "MIN_CHARACTER_LEVEL",
    "MAX_CHARACTER_LEVEL",
    "DEFAULT_PROFICIENCY_BONUS",
    "PROFICIENCY_LEVEL_STEP",
    "BASE_ARMOR_CLASS",
    "SPELL_SAVE_DC_BASE",
    "DEFAULT_SPEED",
    "MAX_SPELL_LEVEL",
    "DEFAULT_MAX_ATTUNED_ITEMS",
    "SHIELD_ITEM_SLUG",
]
