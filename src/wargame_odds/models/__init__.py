"""Pydantic V2 schemas for wargame-odds.

Submodules:
    enums: Die faces and colours, surge charts, cover, attack types.
    profiles: Attacker, defender and guardian profiles, attack context.
    results: Trial outcomes, aggregate statistics, evaluation options.

Example:
    >>> from wargame_odds.models import AttackContext, AttackerProfile, DefenderProfile
    >>> from wargame_odds.models import AttackType, CoverType, DieColor
    >>> context = AttackContext(
    ...     attacker=AttackerProfile(black_dice=4, pierce=1),
    ...     defender=DefenderProfile(die=DieColor.RED, cover=CoverType.LIGHT),
    ...     attack_type=AttackType.RANGED,
    ... )
"""

from __future__ import annotations

# =============================================================================
# Enumerations
# =============================================================================
from wargame_odds.models.enums import (
    AttackSurge,
    AttackType,
    CoverType,
    DefenseSurge,
    DieClass,
    DieColor,
    EvaluationMode,
    Face,
    RerollStrategy,
)

# =============================================================================
# Profiles
# =============================================================================
from wargame_odds.models.profiles import (
    AttackContext,
    AttackerProfile,
    DefenderProfile,
    GuardianProfile,
)

# =============================================================================
# Results
# =============================================================================
from wargame_odds.models.results import (
    WOUND_CHANNELS,
    AggregateStatistics,
    ChannelStatistics,
    EvaluationOptions,
    PointEfficiency,
    TrialOutcome,
    WoundChannel,
)


__all__ = [
    # Enums
    "AttackSurge",
    "AttackType",
    "CoverType",
    "DefenseSurge",
    "DieClass",
    "DieColor",
    "EvaluationMode",
    "Face",
    "RerollStrategy",
    # Profiles
    "AttackContext",
    "AttackerProfile",
    "DefenderProfile",
    "GuardianProfile",
    # Results
    "WOUND_CHANNELS",
    "AggregateStatistics",
    "ChannelStatistics",
    "EvaluationOptions",
    "PointEfficiency",
    "TrialOutcome",
    "WoundChannel",
]
