"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        DndRulesError: Base exception for all rules engine errors.
        RulesEngineError: Effect evaluation errors.
        FormulaError: Malformed formula expressions (strict mode only).
        ContentError: Structurally unusable effect content.
        EngineDisabledError: Evaluation requested from a disabled engine.
        ResourceError: Runtime resource operation failures.
        ConfigurationError: Configuration-related errors.

    Configuration:
        Settings: Main application settings class.
        EngineSettings: Effect evaluation settings.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        configure_logging_from_settings: Set up logging from Settings.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
        evaluation_context: Tag logs with an evaluation id.
"""

from __future__ import annotations

from dnd_rules.core.config import (
    EngineSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from dnd_rules.core.exceptions import (
    ConfigurationError,
    ContentError,
    DndRulesError,
    EngineDisabledError,
    FormulaError,
    ResourceError,
    RulesEngineError,
)
from dnd_rules.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    configure_logging_from_settings,
    evaluation_context,
    get_logger,
)


__all__ = [
    # Base exception
    "DndRulesError",
    # Rules engine exceptions
    "RulesEngineError",
    "FormulaError",
    "ContentError",
    "EngineDisabledError",
    # Runtime exceptions
    "ResourceError",
    # Configuration exceptions
    "ConfigurationError",
    # Configuration
    "Settings",
    "EngineSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
    "bind_context",
    "clear_context",
    "evaluation_context",
]
