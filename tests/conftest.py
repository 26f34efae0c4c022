"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the wargame-odds test suite.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

import pytest

from wargame_odds.models import (
    AttackContext,
    AttackerProfile,
    DefenderProfile,
    DieClass,
    DieColor,
    Face,
)


if TYPE_CHECKING:
    from collections.abc import Generator


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from wargame_odds.core.config import clear_settings_cache

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
        "WARGAME_ODDS_DEBUG": "true",
        "WARGAME_ODDS_LOG_LEVEL": "DEBUG",
        "WARGAME_ODDS_SIM_DEFAULT_ITERATIONS": "5000",
        "WARGAME_ODDS_SIM_SEED": "11",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


# =============================================================================
# Dice Fixtures
# =============================================================================


class QueuedDiceSource:
    """Dice source returning scripted faces, one entry per pool roll.

    Rolls of zero dice never consume an entry, matching the real sources.

    Attributes:
        calls: ``(color, die_class, count)`` of every non-empty roll.
    """

    def __init__(self, rolls: Iterable[Iterable[Face]]) -> None:
        self._rolls = [tuple(faces) for faces in rolls]
        self.calls: list[tuple[DieColor, DieClass, int]] = []

    def roll_pool(self, color: DieColor, die_class: DieClass, count: int) -> tuple[Face, ...]:
        if count <= 0:
            return ()
        if not self._rolls:
            raise AssertionError(f"Unexpected roll of {count} {color} {die_class} dice")
        faces = self._rolls.pop(0)
        if len(faces) != count:
            raise AssertionError(f"Scripted {len(faces)} faces for a roll of {count} dice")
        self.calls.append((color, die_class, count))
        return faces

    @property
    def exhausted(self) -> bool:
        return not self._rolls


@pytest.fixture
def queued_dice() -> type[QueuedDiceSource]:
    """Provide the scripted dice source class.

    Returns:
        QueuedDiceSource, to be built with the rolls a test expects.
    """
    return QueuedDiceSource


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def white_attacker() -> AttackerProfile:
    """Five white attack dice, no keywords."""
    return AttackerProfile(white_dice=5)


@pytest.fixture
def white_defender() -> DefenderProfile:
    """White defense die, no keywords."""
    return DefenderProfile(die=DieColor.WHITE)


@pytest.fixture
def basic_context(white_attacker: AttackerProfile, white_defender: DefenderProfile) -> AttackContext:
    """Five white dice against a white defense die with no keywords."""
    return AttackContext(attacker=white_attacker, defender=white_defender)
