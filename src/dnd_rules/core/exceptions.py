"""Custom exception hierarchy for the D&D 5E rules engine.

All exceptions inherit from DndRulesError, enabling unified error handling
at the application boundary while preserving domain-specific context.

The evaluation pipeline itself does not raise for guard failures or
malformed content: those are recorded in the provenance log. Exceptions
are reserved for API boundaries (configuration, disabled engine, strict
formula checking and runtime resource operations).

Example:
    >>> from dnd_rules.core.exceptions import FormulaError
    >>> raise FormulaError("Unexpected token ')'", expression="(1 + 2))")
"""

from __future__ import annotations

from typing import Any


class DndRulesError(Exception):
    """Base exception for all rules engine errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        """Return a detailed string representation of the exception."""
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Rules Engine Domain Exceptions
# =============================================================================


class RulesEngineError(DndRulesError):
    """Base exception for all effect evaluation errors."""


class FormulaError(RulesEngineError):
    """Raised when a formula expression cannot be parsed or evaluated.

    The evaluator catches this internally and degrades to 0 unless
    strict formula checking is enabled.
    """

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize formula error with expression context.

        Args:
            message: Human-readable error description.
            expression: The formula expression that failed.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if expression is not None:
            combined_details["expression"] = expression
        super().__init__(message, details=combined_details)


class ContentError(RulesEngineError):
    """Raised when effect content is structurally unusable.

    Used by content authoring checks; evaluation records these problems
    in provenance instead of raising.
    """

    def __init__(
        self,
        message: str,
        *,
        source_id: str | None = None,
        effect_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize content error with provenance context.

        Args:
            message: Human-readable error description.
            source_id: Source identifier of the offending sourced effect.
            effect_id: Effect identifier within the source.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if source_id:
            combined_details["source_id"] = source_id
        if effect_id:
            combined_details["effect_id"] = effect_id
        super().__init__(message, details=combined_details)


class EngineDisabledError(RulesEngineError):
    """Raised when a disabled engine is asked to evaluate a character."""


# =============================================================================
# Runtime State Exceptions
# =============================================================================


class ResourceError(DndRulesError):
    """Raised when a runtime resource operation cannot be performed.

    This covers spending more uses than are available, touching a resource
    the character does not have, or using spell slots without spellcasting.
    """

    def __init__(
        self,
        message: str,
        *,
        resource_id: str | None = None,
        current: int | None = None,
        maximum: int | None = None,
        attempted: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize resource error with usage context.

        Args:
            message: Human-readable error description.
            resource_id: Identifier of the resource involved.
            current: Current value of the resource.
            maximum: Maximum value of the resource.
            attempted: Amount the caller tried to spend.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if resource_id:
            combined_details["resource_id"] = resource_id
        if current is not None:
            combined_details["current"] = current
        if maximum is not None:
            combined_details["maximum"] = maximum
        if attempted is not None:
            combined_details["attempted"] = attempted
        super().__init__(message, details=combined_details)


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationError(DndRulesError):
    """Raised when application configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


__all__ = [
    # Base exception
    "DndRulesError",
    # Rules engine exceptions
    "RulesEngineError",
    "FormulaError",
    "ContentError",
    "EngineDisabledError",
    # Runtime state exceptions
    "ResourceError",
    # Configuration exceptions
    "ConfigurationError",
]
