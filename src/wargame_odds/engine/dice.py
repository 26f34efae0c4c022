"""Dice model and upgrade chain.

This module holds the immutable face tables of every die colour, the
single-die roll primitive, the colour chains used for upgrading and
downgrading dice, and the dice sources the attack pipeline draws from:
a seeded random source for sampling and a branching source that walks
every pool outcome for exact enumeration.
"""

from __future__ import annotations

import math
import random
from collections import Counter
from collections.abc import Sequence
from functools import lru_cache
from typing import Protocol

from wargame_odds.core.exceptions import DiceError
from wargame_odds.models.enums import DieClass, DieColor, Face


_B, _H, _C, _S, _K = Face.BLANK, Face.HIT, Face.CRITICAL, Face.SURGE, Face.BLOCK

FACE_TABLES: dict[tuple[DieClass, DieColor], tuple[Face, ...]] = {
    (DieClass.ATTACK, DieColor.RED): (_C, _S, _H, _H, _H, _H, _H, _B),
    (DieClass.ATTACK, DieColor.BLACK): (_C, _S, _H, _H, _H, _B, _B, _B),
    (DieClass.ATTACK, DieColor.WHITE): (_C, _S, _H, _B, _B, _B, _B, _B),
    (DieClass.DEFENSE, DieColor.RED): (_K, _K, _K, _S, _B, _B),
    (DieClass.DEFENSE, DieColor.WHITE): (_K, _S, _B, _B, _B, _B),
}
"""Faces printed on each die; every face is equally likely."""

CHAINS: dict[DieClass, tuple[DieColor, ...]] = {
    DieClass.ATTACK: (DieColor.WHITE, DieColor.BLACK, DieColor.RED),
    DieClass.DEFENSE: (DieColor.WHITE, DieColor.RED),
}
"""Colour order per die class, weakest first."""


def _faces(color: DieColor, die_class: DieClass) -> tuple[Face, ...]:
    try:
        return FACE_TABLES[(die_class, color)]
    except KeyError:
        raise DiceError(
            f"No {die_class} die in {color}",
            color=str(color),
            die_class=str(die_class),
        ) from None


def face_probabilities(color: DieColor, die_class: DieClass) -> dict[Face, float]:
    """Categorical probability mass of one die.

    Args:
        color: Die colour.
        die_class: Attack or defense.

    Returns:
        Mapping of face to probability, in face-table order.

    Raises:
        DiceError: If the colour has no die in this class.
    """
    faces = _faces(color, die_class)
    return {face: count / len(faces) for face, count in Counter(faces).items()}


def roll_die(color: DieColor, die_class: DieClass, rng: random.Random) -> Face:
    """Roll a single die.

    Args:
        color: Die colour.
        die_class: Attack or defense.
        rng: Random source owned by the caller.

    Returns:
        The face rolled.
    """
    faces = _faces(color, die_class)
    return faces[rng.randrange(len(faces))]


def _step(color: DieColor, die_class: DieClass, offset: int) -> DieColor:
    chain = CHAINS[die_class]
    if color not in chain:
        raise DiceError(
            f"{color} is not on the {die_class} chain",
            color=str(color),
            die_class=str(die_class),
        )
    index = min(max(chain.index(color) + offset, 0), len(chain) - 1)
    return chain[index]


def upgrade(color: DieColor, die_class: DieClass) -> DieColor:
    """Move one step up the colour chain; no-op at the top."""
    return _step(color, die_class, 1)


def downgrade(color: DieColor, die_class: DieClass) -> DieColor:
    """Move one step down the colour chain; no-op at the bottom."""
    return _step(color, die_class, -1)


def _shift_pool(
    pool: tuple[DieColor, ...],
    die_class: DieClass,
    count: int,
    offset: int,
) -> tuple[DieColor, ...]:
    # Downgrades land on the strongest dice, upgrades on the weakest.
    # Each die is visited once, so a phase moves a die at most one step.
    chain = CHAINS[die_class]
    order = sorted(
        range(len(pool)),
        key=lambda i: chain.index(pool[i]),
        reverse=offset < 0,
    )
    result = list(pool)
    moved = 0
    for index in order:
        if moved >= count:
            break
        shifted = _step(result[index], die_class, offset)
        if shifted != result[index]:
            result[index] = shifted
            moved += 1
    return tuple(result)


def apply_four_phase(
    pool: tuple[DieColor, ...],
    die_class: DieClass,
    *,
    attacker_down: int = 0,
    defender_down: int = 0,
    attacker_up: int = 0,
    defender_up: int = 0,
) -> tuple[DieColor, ...]:
    """Apply dice upgrades and downgrades in their fixed phase order.

    The order is attacker downgrades, defender downgrades, attacker
    upgrades, defender upgrades.

    Args:
        pool: Colours of the unrolled dice.
        die_class: Chain the colours belong to.
        attacker_down: Dice downgraded by attacker effects.
        defender_down: Dice downgraded by defender effects.
        attacker_up: Dice upgraded by attacker effects.
        defender_up: Dice upgraded by defender effects.

    Returns:
        The new pool composition.
    """
    for count, offset in (
        (attacker_down, -1),
        (defender_down, -1),
        (attacker_up, 1),
        (defender_up, 1),
    ):
        if count > 0:
            pool = _shift_pool(pool, die_class, count, offset)
    return pool


@lru_cache(maxsize=1024)
def pool_outcomes(
    color: DieColor,
    die_class: DieClass,
    count: int,
) -> tuple[tuple[tuple[Face, ...], float], ...]:
    """Every distinct result of rolling ``count`` identical dice.

    Results are multisets of faces with their multinomial probability,
    most likely first.

    Args:
        color: Die colour.
        die_class: Attack or defense.
        count: Number of dice rolled.

    Returns:
        Tuple of ``(faces, probability)`` pairs summing to 1.
    """
    masses = list(face_probabilities(color, die_class).items())
    outcomes: list[tuple[tuple[Face, ...], float]] = []

    def split(index: int, remaining: int, counts: list[int]) -> None:
        if index == len(masses) - 1:
            counts = [*counts, remaining]
            ways = math.factorial(count)
            probability = 1.0
            for (_, mass), n in zip(masses, counts):
                ways //= math.factorial(n)
                probability *= mass**n
            faces = tuple(face for (face, _), n in zip(masses, counts) for _ in range(n))
            outcomes.append((faces, ways * probability))
            return
        for n in range(remaining, -1, -1):
            split(index + 1, remaining - n, [*counts, n])

    split(0, count, [])
    outcomes.sort(key=lambda item: item[1], reverse=True)
    return tuple(outcomes)


class DiceSource(Protocol):
    """Anything the attack pipeline can roll dice from."""

    def roll_pool(self, color: DieColor, die_class: DieClass, count: int) -> tuple[Face, ...]:
        """Roll ``count`` dice of one colour and return their faces."""
        ...


class RandomDiceSource:
    """Dice source backed by a caller-owned ``random.Random``.

    Example:
        >>> source = RandomDiceSource(random.Random(7))
        >>> source.roll_pool(DieColor.RED, DieClass.ATTACK, 3)
    """

    def __init__(self, rng: random.Random) -> None:
        self._rng = rng

    def roll_pool(self, color: DieColor, die_class: DieClass, count: int) -> tuple[Face, ...]:
        return tuple(roll_die(color, die_class, self._rng) for _ in range(count))


class BranchingDiceSource:
    """Dice source replaying one path through the tree of pool outcomes.

    Each non-empty ``roll_pool`` call is one branching point. Choices are
    taken from ``prefix`` while it lasts and default to the first outcome
    afterwards; :meth:`unexplored` then lists the sibling prefixes that a
    depth-first enumeration still has to visit.

    Attributes:
        probability: Product of the probabilities of every outcome taken.
    """

    def __init__(self, prefix: Sequence[int] = ()) -> None:
        self._prefix = tuple(prefix)
        self._choices: list[int] = []
        self._widths: list[int] = []
        self.probability = 1.0

    def roll_pool(self, color: DieColor, die_class: DieClass, count: int) -> tuple[Face, ...]:
        if count <= 0:
            return ()
        outcomes = pool_outcomes(color, die_class, count)
        depth = len(self._choices)
        index = self._prefix[depth] if depth < len(self._prefix) else 0
        faces, probability = outcomes[index]
        self._choices.append(index)
        self._widths.append(len(outcomes))
        self.probability *= probability
        return faces

    def unexplored(self) -> list[tuple[int, ...]]:
        """Prefixes of the sibling branches opened by this path."""
        siblings: list[tuple[int, ...]] = []
        for depth in range(len(self._prefix), len(self._choices)):
            head = tuple(self._choices[:depth])
            siblings.extend(head + (alt,) for alt in range(1, self._widths[depth]))
        return siblings


__all__ = [
    "FACE_TABLES",
    "CHAINS",
    "face_probabilities",
    "roll_die",
    "upgrade",
    "downgrade",
    "apply_four_phase",
    "pool_outcomes",
    "DiceSource",
    "RandomDiceSource",
    "BranchingDiceSource",
]
