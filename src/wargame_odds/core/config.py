"""Configuration management for wargame-odds.

This module provides centralized configuration management using
pydantic-settings, supporting environment variables, .env files, and
runtime overrides.

Example:
    >>> from wargame_odds.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.simulation.default_iterations)
    20000

Environment Variables:
    WARGAME_ODDS_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    WARGAME_ODDS_LOG_JSON: Emit JSON logs instead of console output
    WARGAME_ODDS_SIM_DEFAULT_ITERATIONS: Trials per sampling evaluation
    WARGAME_ODDS_SIM_CHUNK_SIZE: Trials per sampling chunk
    WARGAME_ODDS_SIM_WORKERS: Worker processes for sampling
    WARGAME_ODDS_SIM_SEED: Optional seed for reproducible sampling
    WARGAME_ODDS_SIM_EXACT_MAX_OUTCOMES: Leaf limit for exact enumeration
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wargame_odds.core.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_EXACT_MAX_OUTCOMES,
    DEFAULT_ITERATIONS,
)
from wargame_odds.core.exceptions import ConfigurationError


class SimulationSettings(BaseSettings):
    """Configuration for the statistical aggregator.

    Attributes:
        default_iterations: Trials run by the sampling evaluator when the
            caller does not pass an explicit count.
        chunk_size: Trials per chunk; progress and cancellation are checked
            between chunks.
        workers: Number of worker processes. 1 runs chunks inline.
        seed: Optional seed making sampling runs reproducible.
        exact_max_outcomes: Maximum number of enumerated leaves before the
            exact evaluator gives up.
        reroll_strategy: Default reroll strategy for attack contexts built
            from untyped mappings.
    """

    model_config = SettingsConfigDict(
        env_prefix="WARGAME_ODDS_SIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_iterations: int = Field(
        default=DEFAULT_ITERATIONS,
        ge=1,
        le=10_000_000,
        description="Trials per sampling evaluation",
    )
    chunk_size: int = Field(
        default=DEFAULT_CHUNK_SIZE,
        ge=1,
        description="Trials per sampling chunk",
    )
    workers: int = Field(
        default=1,
        ge=1,
        le=64,
        description="Worker processes for sampling",
    )
    seed: int | None = Field(
        default=None,
        description="Seed for reproducible sampling",
    )
    exact_max_outcomes: int = Field(
        default=DEFAULT_EXACT_MAX_OUTCOMES,
        ge=1,
        description="Leaf limit for exact enumeration",
    )
    reroll_strategy: Literal["conservative", "aggressive"] = Field(
        default="conservative",
        description="Default reroll strategy",
    )

    @model_validator(mode="after")
    def clamp_chunk_size(self) -> "SimulationSettings":
        """Shrink chunk_size to default_iterations when it is larger.

        Returns:
            Self with chunk_size no larger than default_iterations.
        """
        if self.chunk_size > self.default_iterations:
            self.chunk_size = self.default_iterations
        return self


class Settings(BaseSettings):
    """Main application settings.

    Attributes:
        app_name: Application name.
        app_version: Application version string.
        debug: Enable debug mode.
        log_level: Application logging level.
        log_json: Render logs as JSON.
        simulation: Aggregator settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="WARGAME_ODDS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="wargame-odds",
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
    log_json: bool = Field(
        default=False,
        description="Emit JSON logs",
    )

    simulation: SimulationSettings = Field(default_factory=SimulationSettings)

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
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "SimulationSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
