"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        WargameOddsError: Base exception for all application errors.
        ConfigurationError: Configuration-related errors.
        ValidationError: Attack configuration validation errors.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        ensure_logging: Configure from settings unless already configured.
        get_logger: Get a configured logger instance.
"""

from __future__ import annotations

from wargame_odds.core.config import (
    Settings,
    SimulationSettings,
    clear_settings_cache,
    get_settings,
)
from wargame_odds.core.exceptions import (
    AggregationError,
    ConfigurationError,
    DiceError,
    EngineError,
    EnumerationLimitError,
    EvaluationCancelledError,
    ResolutionError,
    ValidationError,
    WargameOddsError,
)
from wargame_odds.core.logging import (
    configure_from_settings,
    configure_logging,
    ensure_logging,
    get_logger,
)


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
    # Configuration
    "Settings",
    "SimulationSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "configure_from_settings",
    "ensure_logging",
    "get_logger",
]
