"""Custom exception hierarchy for wargame-odds.

All exceptions inherit from WargameOddsError so that a host application
can handle every engine failure at one boundary while still keeping the
domain-specific context attached to each error.

Example:
    >>> from wargame_odds.core.exceptions import DiceError
    >>> raise DiceError("Black is not a defense die", color="black", die_class="defense")
"""

from __future__ import annotations

from typing import Any


class WargameOddsError(Exception):
    """Base exception for all wargame-odds errors.

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
# Configuration & Validation Exceptions
# =============================================================================


class ConfigurationError(WargameOddsError):
    """Raised when application or simulation settings are invalid."""

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


class ValidationError(WargameOddsError):
    """Raised when an attack configuration fails validation.

    Wraps pydantic's validation failure at the boundary so callers only
    need to catch package exceptions.
    """

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with field context.

        Args:
            message: Human-readable error description.
            field_name: Name of the field that failed validation.
            invalid_value: The value that failed validation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if invalid_value is not None:
            combined_details["invalid_value"] = invalid_value
        super().__init__(message, details=combined_details)


# =============================================================================
# Engine Domain Exceptions
# =============================================================================


class EngineError(WargameOddsError):
    """Base exception for attack resolution and aggregation errors."""


class DiceError(EngineError):
    """Raised when a die colour is used outside its die class chain."""

    def __init__(
        self,
        message: str,
        *,
        color: str | None = None,
        die_class: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize dice error with die context.

        Args:
            message: Human-readable error description.
            color: The offending die colour.
            die_class: Attack or defense.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if color:
            combined_details["color"] = color
        if die_class:
            combined_details["die_class"] = die_class
        super().__init__(message, details=combined_details)


class ResolutionError(EngineError):
    """Raised when a pipeline step cannot complete."""

    def __init__(
        self,
        message: str,
        *,
        step: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if step:
            combined_details["step"] = step
        super().__init__(message, details=combined_details)


class AggregationError(EngineError):
    """Base exception for statistical aggregation failures."""


class EnumerationLimitError(AggregationError):
    """Raised when exact enumeration would exceed the configured outcome limit."""

    def __init__(
        self,
        message: str,
        *,
        outcomes: int | None = None,
        limit: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize enumeration limit error.

        Args:
            message: Human-readable error description.
            outcomes: Number of outcomes visited when the guard tripped.
            limit: The configured maximum.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if outcomes is not None:
            combined_details["outcomes"] = outcomes
        if limit is not None:
            combined_details["limit"] = limit
        super().__init__(message, details=combined_details)


class EvaluationCancelledError(AggregationError):
    """Raised when a caller abandons an in-flight sampling run.

    No partial statistics are ever returned alongside this error.
    """

    def __init__(
        self,
        message: str,
        *,
        completed: int | None = None,
        requested: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if completed is not None:
            combined_details["completed"] = completed
        if requested is not None:
            combined_details["requested"] = requested
        super().__init__(message, details=combined_details)


__all__ = [
    # Base exception
    "WargameOddsError",
    # Configuration exceptions
    "ConfigurationError",
    "ValidationError",
    # Engine exceptions
    "EngineError",
    "DiceError",
    "ResolutionError",
    "AggregationError",
    "EnumerationLimitError",
    "EvaluationCancelledError",
]
