"""Configuration management for the D&D 5E rules engine.

This module provides centralized configuration management using
pydantic-settings, supporting environment variables, .env files, and
runtime overrides.

The engine never reads these settings at import time. Callers build a
``RulesEngine`` with an explicit ``EngineSettings`` value, or let
``evaluate_character`` fall back to ``get_settings().engine`` per call.

Example:
    >>> from dnd_rules.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.engine.enabled
    True

Environment Variables:
    DND_RULES_ENGINE_ENABLED: Enable the rules engine (true/false)
    DND_RULES_ENGINE_STRICT_FORMULAS: Raise on malformed formulas
    DND_RULES_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from dnd_rules.core.exceptions import ConfigurationError


class EngineSettings(BaseSettings):
    """Configuration for effect evaluation.

    Attributes:
        enabled: Whether the rules engine is active for this process.
        max_attuned_items: Attunement slots seeded into every derived state.
        strict_formulas: Raise FormulaError instead of degrading to 0.
        record_choice_summary: Log a summary provenance entry per resolved choice.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_RULES_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    enabled: bool = Field(
        default=True,
        description="Enable the rules engine",
    )
    max_attuned_items: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum number of attuned magic items",
    )
    strict_formulas: bool = Field(
        default=False,
        description="Raise on malformed formulas instead of returning 0",
    )
    record_choice_summary: bool = Field(
        default=True,
        description="Record a provenance entry summarising each resolved choice",
    )


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        app_version: Application version string.
        debug: Enable debug mode.
        log_level: Application logging level.
        engine: Effect evaluation settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_RULES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="D&D 5E Rules Engine",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    engine: EngineSettings = Field(default_factory=EngineSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production mode.

        Returns:
            True if not in debug mode.
        """
        return not self.debug


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access.

    This is primarily useful for testing or when environment variables
    have changed at runtime.
    """
    get_settings.cache_clear()


__all__ = [
    "EngineSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
