"""Integration tests for complete attack evaluations.

Tests configurations end to end, from untyped input to statistics.
"""

from __future__ import annotations

import math

import pytest

from wargame_odds import AttackContext, AttackerProfile, DefenderProfile, GuardianProfile, evaluate
from wargame_odds.models import (
    AttackSurge,
    AttackType,
    CoverType,
    DefenseSurge,
    DieColor,
    EvaluationMode,
    EvaluationOptions,
)


EXACT = EvaluationOptions(mode=EvaluationMode.EXACT)


class TestAttackFlow:
    """Test complete attack scenarios."""

    def test_ranged_exchange(self) -> None:
        """Evaluate a ranged attack from form data to efficiency ratios."""
        context = AttackContext.from_mapping(
            {
                "attacker": {"red_dice": 1, "black_dice": 1, "aim_tokens": 1, "surge": "hit"},
                "defender": {"die": "red", "cover": "light", "dodge_tokens": 1, "wounds": 2},
                "attack_type": "ranged",
                "attacker_points": 60,
                "defender_points": 80,
            }
        )

        stats = evaluate(context, EXACT)

        assert sum(stats.defender.distribution) == pytest.approx(1.0)
        assert stats.defender.maximum <= 2
        assert 0.0 < stats.suppression_probability < 1.0
        assert stats.efficiency.wounds_per_point == pytest.approx(stats.defender.mean / 60)
        assert stats.efficiency.efficiency_ratio == pytest.approx(stats.defender.mean / 2 * 80 / 60)

    def test_sampling_converges(self) -> None:
        """Sampled and exact means agree for a keyword-heavy attack."""
        context = AttackContext(
            attacker=AttackerProfile(red_dice=1, black_dice=1, aim_tokens=1, pierce=1, critical=1),
            defender=DefenderProfile(
                die=DieColor.RED,
                surge=DefenseSurge.BLOCK,
                cover=CoverType.LIGHT,
                dodge_tokens=1,
            ),
            attack_type=AttackType.RANGED,
        )

        exact = evaluate(context, EXACT)
        sampled = evaluate(context, EvaluationOptions(iterations=20_000, seed=17))

        assert sampled.defender.mean == pytest.approx(exact.defender.mean, abs=0.05)
        assert sampled.suppression_probability == pytest.approx(exact.suppression_probability, abs=0.02)

    def test_guardian_channel(self) -> None:
        """A guardian takes wounds in its own channel."""
        context = AttackContext(
            attacker=AttackerProfile(red_dice=3, pierce=1),
            defender=DefenderProfile(
                die=DieColor.WHITE,
                guardian=GuardianProfile(guardian=1, die=DieColor.RED),
            ),
            attack_type=AttackType.RANGED,
        )

        stats = evaluate(context, EXACT)

        assert stats.guardian.maximum == 1
        assert stats.guardian.mean > 0
        assert stats.defender.maximum == 3

    def test_melee_reflection(self) -> None:
        """Djem So wounds a melee attacker that rolled a blank."""
        context = AttackContext(
            attacker=AttackerProfile(white_dice=2),
            defender=DefenderProfile(die=DieColor.RED, djem_so_mastery=True),
            attack_type=AttackType.MELEE,
        )

        stats = evaluate(context, EXACT)

        assert stats.reflection.maximum == 1
        assert stats.reflection.mean > 0
        assert stats.suppression_probability == 0.0

    def test_heavy_cover_reduces_wounds(self) -> None:
        """More cover never helps the attacker."""
        attacker = AttackerProfile(black_dice=3, surge=AttackSurge.HIT)
        open_ground = AttackContext(attacker=attacker, defender=DefenderProfile(die=DieColor.WHITE))
        heavy = AttackContext(
            attacker=attacker,
            defender=DefenderProfile(die=DieColor.WHITE, cover=CoverType.HEAVY),
        )

        assert evaluate(heavy, EXACT).defender.mean < evaluate(open_ground, EXACT).defender.mean

    def test_at_least_monotone(self) -> None:
        """Cumulative tables never increase."""
        context = AttackContext(
            attacker=AttackerProfile(red_dice=2, white_dice=2),
            defender=DefenderProfile(die=DieColor.RED),
        )

        at_least = evaluate(context, EXACT).defender.at_least

        assert all(a >= b - 1e-12 for a, b in zip(at_least, at_least[1:]))
        assert math.isnan(evaluate(context, EXACT).efficiency.wounds_per_point)
