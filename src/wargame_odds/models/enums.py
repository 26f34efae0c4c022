"""Enumeration types for wargame-odds.

This module defines the die faces and colours, surge charts, cover
categories, attack types and strategy selectors used by the attack
resolution engine.
"""

from __future__ import annotations

from enum import StrEnum


class DieClass(StrEnum):
    """Whether a die belongs to the attack or the defense chain."""

    ATTACK = "attack"
    DEFENSE = "defense"


class DieColor(StrEnum):
    """Die colours.

    Attack dice come in all three colours; defense dice only in white
    and red.
    """

    WHITE = "white"
    BLACK = "black"
    RED = "red"


class Face(StrEnum):
    """Named die face results."""

    BLANK = "blank"
    HIT = "hit"
    CRITICAL = "critical"
    SURGE = "surge"
    BLOCK = "block"


class AttackSurge(StrEnum):
    """What an attack surge converts to on the attacker's surge chart."""

    NONE = "none"
    HIT = "hit"
    CRITICAL = "critical"

    @property
    def face(self) -> Face:
        """Face produced by the chart conversion.

        Returns:
            HIT or CRITICAL, or BLANK when the chart has no conversion.
        """
        return {
            AttackSurge.NONE: Face.BLANK,
            AttackSurge.HIT: Face.HIT,
            AttackSurge.CRITICAL: Face.CRITICAL,
        }[self]


class DefenseSurge(StrEnum):
    """What a defense surge converts to on the defender's surge chart."""

    NONE = "none"
    BLOCK = "block"


class CoverType(StrEnum):
    """Baseline cover category of the defender."""

    NONE = "none"
    LIGHT = "light"
    HEAVY = "heavy"

    @property
    def value_int(self) -> int:
        """Numeric cover value of the category (0, 1 or 2)."""
        return {CoverType.NONE: 0, CoverType.LIGHT: 1, CoverType.HEAVY: 2}[self]


class AttackType(StrEnum):
    """Attack category configured for one resolution.

    ALL counts as both ranged and melee for keyword eligibility;
    OVERRUN counts as neither.
    """

    ALL = "all"
    RANGED = "ranged"
    MELEE = "melee"
    OVERRUN = "overrun"

    @property
    def is_ranged(self) -> bool:
        return self in (AttackType.ALL, AttackType.RANGED)

    @property
    def is_melee(self) -> bool:
        return self in (AttackType.ALL, AttackType.MELEE)


class RerollStrategy(StrEnum):
    """Which attack results the attacker rerolls with aim tokens.

    CONSERVATIVE rerolls blanks and surges that will not be converted.
    AGGRESSIVE also rerolls hits that Armor would cancel anyway.
    """

    CONSERVATIVE = "conservative"
    AGGRESSIVE = "aggressive"


class EvaluationMode(StrEnum):
    """Statistical aggregation strategy."""

    SAMPLE = "sample"
    EXACT = "exact"


__all__ = [
    "DieClass",
    "DieColor",
    "Face",
    "AttackSurge",
    "DefenseSurge",
    "CoverType",
    "AttackType",
    "RerollStrategy",
    "EvaluationMode",
]
