"""Tests for the dice model, upgrade chains and dice sources."""

from __future__ import annotations

import math
import random

import pytest

from wargame_odds.core.constants import ATTACK_DIE_SIDES, DEFENSE_DIE_SIDES
from wargame_odds.core.exceptions import DiceError
from wargame_odds.engine.dice import (
    FACE_TABLES,
    BranchingDiceSource,
    RandomDiceSource,
    apply_four_phase,
    downgrade,
    face_probabilities,
    pool_outcomes,
    roll_die,
    upgrade,
)
from wargame_odds.models.enums import DieClass, DieColor, Face


A, D = DieClass.ATTACK, DieClass.DEFENSE
W, B, R = DieColor.WHITE, DieColor.BLACK, DieColor.RED


class TestFaceProbabilities:
    """Tests for the face tables."""

    @pytest.mark.parametrize(
        ("color", "die_class", "expected"),
        [
            (R, A, {Face.CRITICAL: 1 / 8, Face.SURGE: 1 / 8, Face.HIT: 5 / 8, Face.BLANK: 1 / 8}),
            (B, A, {Face.CRITICAL: 1 / 8, Face.SURGE: 1 / 8, Face.HIT: 3 / 8, Face.BLANK: 3 / 8}),
            (W, A, {Face.CRITICAL: 1 / 8, Face.SURGE: 1 / 8, Face.HIT: 1 / 8, Face.BLANK: 5 / 8}),
            (R, D, {Face.BLOCK: 3 / 6, Face.SURGE: 1 / 6, Face.BLANK: 2 / 6}),
            (W, D, {Face.BLOCK: 1 / 6, Face.SURGE: 1 / 6, Face.BLANK: 4 / 6}),
        ],
    )
    def test_tables(self, color: DieColor, die_class: DieClass, expected: dict[Face, float]) -> None:
        """Test the probability mass of every die."""
        probabilities = face_probabilities(color, die_class)

        assert probabilities == pytest.approx(expected)
        assert sum(probabilities.values()) == pytest.approx(1.0)

    def test_sides(self) -> None:
        """Test that attack dice have 8 faces and defense dice 6."""
        sides = {A: ATTACK_DIE_SIDES, D: DEFENSE_DIE_SIDES}
        for (die_class, _), faces in FACE_TABLES.items():
            assert len(faces) == sides[die_class]

    def test_black_defense_die_rejected(self) -> None:
        """Test that there is no black defense die."""
        with pytest.raises(DiceError) as exc_info:
            face_probabilities(B, D)

        assert exc_info.value.details["color"] == "black"

    def test_roll_die_in_table(self) -> None:
        """Test that rolled faces come from the die's table."""
        rng = random.Random(3)
        faces = {roll_die(W, D, rng) for _ in range(200)}

        assert faces <= {Face.BLOCK, Face.SURGE, Face.BLANK}


class TestUpgradeChain:
    """Tests for upgrade and downgrade."""

    def test_attack_chain(self) -> None:
        """Test stepping along white, black, red."""
        assert upgrade(W, A) == B
        assert upgrade(B, A) == R
        assert downgrade(R, A) == B
        assert downgrade(B, A) == W

    def test_clamped_at_ends(self) -> None:
        """Test that the chain ends are no-ops."""
        assert upgrade(R, A) == R
        assert downgrade(W, A) == W
        assert upgrade(R, D) == R
        assert downgrade(W, D) == W

    def test_defense_chain_skips_black(self) -> None:
        """Test that defense dice go straight from white to red."""
        assert upgrade(W, D) == R
        assert downgrade(R, D) == W

    def test_off_chain_colour(self) -> None:
        """Test that black is not on the defense chain."""
        with pytest.raises(DiceError):
            upgrade(B, D)


class TestFourPhase:
    """Tests for the ordered upgrade and downgrade phases."""

    def test_downgrades_strongest_first(self) -> None:
        """Test that downgrades land on the strongest die."""
        pool = apply_four_phase((W, R, B), A, attacker_down=1)

        assert pool == (W, B, B)

    def test_upgrades_weakest_first(self) -> None:
        """Test that upgrades land on the weakest die."""
        pool = apply_four_phase((R, W, B), A, attacker_up=1)

        assert pool == (R, B, B)

    def test_one_step_per_phase(self) -> None:
        """Test that a phase moves each die at most once."""
        pool = apply_four_phase((W,), A, attacker_up=2)

        assert pool == (B,)

    def test_phases_stack(self) -> None:
        """Test that later phases see the earlier phases' result."""
        pool = apply_four_phase((W,), A, attacker_up=1, defender_up=1)

        assert pool == (R,)

    def test_down_before_up(self) -> None:
        """Test that downgrades run before upgrades."""
        pool = apply_four_phase((R, R), A, defender_down=1, attacker_up=1)

        assert sorted(pool) == sorted((R, R))

    def test_defense_pool(self) -> None:
        """Test the two-colour defense chain."""
        pool = apply_four_phase((W, W, W), D, attacker_up=2, defender_down=1)

        assert pool.count(R) == 2
        assert pool.count(W) == 1


class TestPoolOutcomes:
    """Tests for multinomial pool outcomes."""

    def test_sums_to_one(self) -> None:
        """Test that outcome probabilities sum to one."""
        outcomes = pool_outcomes(B, A, 4)

        assert math.fsum(p for _, p in outcomes) == pytest.approx(1.0)

    def test_outcome_count(self) -> None:
        """Test the number of face multisets of 3 dice with 4 faces."""
        assert len(pool_outcomes(R, A, 3)) == math.comb(3 + 4 - 1, 4 - 1)

    def test_most_likely_first(self) -> None:
        """Test that outcomes are sorted by probability."""
        probabilities = [p for _, p in pool_outcomes(W, D, 3)]

        assert probabilities == sorted(probabilities, reverse=True)

    def test_single_die_matches_table(self) -> None:
        """Test that one die reproduces its face probabilities."""
        outcomes = {faces[0]: p for faces, p in pool_outcomes(R, D, 1)}

        assert outcomes == pytest.approx(face_probabilities(R, D))


class TestDiceSources:
    """Tests for the random and branching dice sources."""

    def test_random_source_reproducible(self) -> None:
        """Test that equal seeds give equal rolls."""
        first = RandomDiceSource(random.Random(9)).roll_pool(R, A, 6)
        second = RandomDiceSource(random.Random(9)).roll_pool(R, A, 6)

        assert first == second
        assert len(first) == 6

    def test_branching_default_path(self) -> None:
        """Test that an empty prefix takes the most likely outcome."""
        source = BranchingDiceSource()
        faces = source.roll_pool(W, D, 2)

        assert faces == pool_outcomes(W, D, 2)[0][0]
        assert source.probability == pytest.approx(pool_outcomes(W, D, 2)[0][1])

    def test_zero_dice_do_not_branch(self) -> None:
        """Test that an empty roll consumes no choice."""
        source = BranchingDiceSource()

        assert source.roll_pool(W, D, 0) == ()
        assert source.unexplored() == []
        assert source.probability == 1.0

    def test_unexplored_siblings(self) -> None:
        """Test the sibling prefixes opened by a path."""
        source = BranchingDiceSource()
        source.roll_pool(W, D, 1)
        source.roll_pool(W, D, 1)

        assert source.unexplored() == [(1,), (2,), (0, 1), (0, 2)]

    def test_prefix_replayed(self) -> None:
        """Test that a prefix picks the listed outcomes."""
        source = BranchingDiceSource((2,))
        faces = source.roll_pool(R, D, 1)

        assert faces == pool_outcomes(R, D, 1)[2][0]
        assert source.unexplored() == []

    def test_full_walk_probability(self) -> None:
        """Test that a depth-first walk covers all the probability mass."""
        total = 0.0
        pending: list[tuple[int, ...]] = [()]
        while pending:
            source = BranchingDiceSource(pending.pop())
            source.roll_pool(B, A, 2)
            source.roll_pool(W, D, 1)
            total += source.probability
            pending.extend(source.unexplored())

        assert total == pytest.approx(1.0)
