"""Tests for logging configuration."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
import structlog

from wargame_odds.core.config import Settings
from wargame_odds.core.logging import (
    configure_from_settings,
    configure_logging,
    ensure_logging,
    get_logger,
)
from wargame_odds.engine.aggregate import evaluate
from wargame_odds.models import (
    AttackContext,
    AttackerProfile,
    DefenderProfile,
    DieColor,
    EvaluationMode,
    EvaluationOptions,
)


if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Restore structlog defaults after each test."""
    structlog.reset_defaults()
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


def _records(out: str) -> list[dict]:
    return [json.loads(line) for line in out.splitlines() if line.startswith("{")]


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_records(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that JSON output carries the app context and fields."""
        configure_logging(level="INFO", json_format=True)

        get_logger("tests").info("Sampling finished", trials=3)

        record = _records(capsys.readouterr().out)[-1]
        assert record["event"] == "Sampling finished"
        assert record["trials"] == 3
        assert record["app"] == "wargame_odds"
        assert record["level"] == "info"

    def test_level_filter(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that records below the level are dropped."""
        configure_logging(level="WARNING", json_format=True)

        get_logger("tests").info("quiet")

        assert "quiet" not in capsys.readouterr().out

    def test_from_explicit_settings(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test configuring from a settings object."""
        configure_from_settings(Settings(log_level="ERROR", log_json=True))

        logger = get_logger("tests")
        logger.warning("dropped")
        logger.error("kept")

        out = capsys.readouterr().out
        assert "dropped" not in out
        assert _records(out)[-1]["event"] == "kept"

    def test_from_environment(
        self,
        capsys: pytest.CaptureFixture[str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test configuring from environment settings."""
        monkeypatch.setenv("WARGAME_ODDS_LOG_JSON", "true")
        monkeypatch.setenv("WARGAME_ODDS_LOG_LEVEL", "ERROR")
        configure_from_settings()

        get_logger("tests").error("kept")

        assert _records(capsys.readouterr().out)[-1]["event"] == "kept"


class TestEnsureLogging:
    """Tests for lazy configuration."""

    def test_configures_once(self) -> None:
        """Test that only the first call configures structlog."""
        assert ensure_logging() is True
        assert structlog.is_configured()
        assert ensure_logging() is False

    def test_keeps_host_configuration(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that an existing configuration is left alone."""
        configure_logging(level="ERROR", json_format=True)

        assert ensure_logging() is False
        get_logger("tests").info("quiet")

        assert "quiet" not in capsys.readouterr().out

    def test_evaluate_binds_mode(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that evaluation records carry the evaluation mode."""
        configure_logging(level="INFO", json_format=True)
        context = AttackContext(
            attacker=AttackerProfile(white_dice=1),
            defender=DefenderProfile(die=DieColor.WHITE),
        )

        evaluate(context, EvaluationOptions(mode=EvaluationMode.EXACT))

        records = _records(capsys.readouterr().out)
        finished = [r for r in records if r["event"] == "Exact enumeration finished"]
        assert finished
        assert finished[0]["evaluation_mode"] == "exact"
        assert "evaluation_mode" not in structlog.contextvars.get_contextvars()
