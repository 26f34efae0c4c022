"""Tests for attack configuration and result schemas."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from wargame_odds.core.exceptions import ValidationError
from wargame_odds.models import (
    AttackContext,
    AttackerProfile,
    AttackSurge,
    AttackType,
    CoverType,
    DefenderProfile,
    DieColor,
    EvaluationMode,
    EvaluationOptions,
    Face,
    GuardianProfile,
    RerollStrategy,
)


class TestEnums:
    """Tests for enum helpers."""

    def test_attack_surge_face(self) -> None:
        """Test the face an attack surge chart converts to."""
        assert AttackSurge.HIT.face == Face.HIT
        assert AttackSurge.CRITICAL.face == Face.CRITICAL

    def test_cover_values(self) -> None:
        """Test the numeric cover of each category."""
        assert [cover.value_int for cover in CoverType] == [0, 1, 2]

    def test_attack_type_categories(self) -> None:
        """Test ranged and melee membership of attack types."""
        assert AttackType.ALL.is_ranged and AttackType.ALL.is_melee
        assert AttackType.RANGED.is_ranged and not AttackType.RANGED.is_melee
        assert not AttackType.OVERRUN.is_ranged and not AttackType.OVERRUN.is_melee


class TestAttackerProfile:
    """Tests for AttackerProfile."""

    def test_defaults(self) -> None:
        """Test that an empty attacker has no dice or keywords."""
        attacker = AttackerProfile()

        assert attacker.dice_count == 0
        assert attacker.surge == AttackSurge.NONE
        assert attacker.pierce == 0

    def test_dice_count(self) -> None:
        """Test the total of all dice colours."""
        assert AttackerProfile(red_dice=1, black_dice=2, white_dice=3).dice_count == 6

    def test_negative_rejected(self) -> None:
        """Test that negative counts are rejected."""
        with pytest.raises(PydanticValidationError):
            AttackerProfile(aim_tokens=-1)

    def test_unknown_field_rejected(self) -> None:
        """Test that misspelled keywords are not silently ignored."""
        with pytest.raises(PydanticValidationError):
            AttackerProfile(peirce=1)

    def test_frozen(self) -> None:
        """Test that profiles are immutable."""
        attacker = AttackerProfile(red_dice=1)
        with pytest.raises(PydanticValidationError):
            attacker.red_dice = 2


class TestDefenderProfile:
    """Tests for DefenderProfile and GuardianProfile."""

    def test_die_required(self) -> None:
        """Test that the defense die colour has no default."""
        with pytest.raises(PydanticValidationError):
            DefenderProfile()

    def test_black_defense_die_rejected(self) -> None:
        """Test that only white and red defense dice exist."""
        with pytest.raises(PydanticValidationError):
            DefenderProfile(die=DieColor.BLACK)
        with pytest.raises(PydanticValidationError):
            DefenderProfile(die=DieColor.RED, cover_die=DieColor.BLACK)
        with pytest.raises(PydanticValidationError):
            GuardianProfile(guardian=1, die=DieColor.BLACK)

    def test_miniatures_at_least_one(self) -> None:
        """Test that a unit has at least one miniature."""
        with pytest.raises(PydanticValidationError):
            DefenderProfile(die=DieColor.RED, miniatures=0)

    def test_nested_guardian(self) -> None:
        """Test a defender with a guardian ally."""
        defender = DefenderProfile(
            die=DieColor.RED,
            guardian=GuardianProfile(guardian=2, die=DieColor.WHITE, uncanny_luck=1),
        )

        assert defender.guardian is not None
        assert defender.guardian.guardian == 2


class TestAttackContext:
    """Tests for AttackContext construction."""

    @pytest.fixture
    def payload(self) -> dict[str, object]:
        """Untyped attack configuration."""
        return {
            "attacker": {"red_dice": 2, "surge": "critical", "pierce": 1},
            "defender": {"die": "white", "cover": "heavy", "dodge_tokens": 1},
            "attack_type": "ranged",
        }

    def test_defaults(self) -> None:
        """Test context defaults."""
        context = AttackContext(attacker=AttackerProfile(), defender=DefenderProfile(die=DieColor.RED))

        assert context.attack_type == AttackType.ALL
        assert context.reroll_strategy == RerollStrategy.CONSERVATIVE
        assert context.attacker_points is None

    def test_from_mapping(self, payload: dict[str, object]) -> None:
        """Test building a context from untyped data."""
        context = AttackContext.from_mapping(payload)

        assert context.attacker.surge == AttackSurge.CRITICAL
        assert context.defender.cover == CoverType.HEAVY
        assert context.attack_type == AttackType.RANGED
        assert context.reroll_strategy == RerollStrategy.CONSERVATIVE

    def test_from_mapping_strategy_setting(
        self,
        payload: dict[str, object],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test that the configured reroll strategy fills a missing one."""
        monkeypatch.setenv("WARGAME_ODDS_SIM_REROLL_STRATEGY", "aggressive")

        context = AttackContext.from_mapping(payload)

        assert context.reroll_strategy == RerollStrategy.AGGRESSIVE

    def test_from_mapping_invalid(self, payload: dict[str, object]) -> None:
        """Test that invalid data raises the package ValidationError."""
        payload["attacker"] = {"red_dice": -1}

        with pytest.raises(ValidationError) as exc_info:
            AttackContext.from_mapping(payload)

        assert exc_info.value.details["field_name"] == "attacker.red_dice"
        assert exc_info.value.details["invalid_value"] == -1
        assert exc_info.value.details["error_count"] == 1


class TestEvaluationOptions:
    """Tests for EvaluationOptions."""

    def test_defaults(self) -> None:
        """Test that options default to sampling with settings fallbacks."""
        options = EvaluationOptions()

        assert options.mode == EvaluationMode.SAMPLE
        assert options.iterations is None

    def test_iterations_positive(self) -> None:
        """Test that zero iterations are rejected."""
        with pytest.raises(PydanticValidationError):
            EvaluationOptions(iterations=0)
