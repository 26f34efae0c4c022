"""Rules and engine constants for wargame-odds.

This module defines the fixed numbers of the attack procedure and the
defaults of the statistical aggregator.
"""

from __future__ import annotations

# =============================================================================
# Dice
# =============================================================================

ATTACK_DIE_SIDES = 8
"""Faces on every attack die."""

DEFENSE_DIE_SIDES = 6
"""Faces on every defense die."""

# =============================================================================
# Cover
# =============================================================================

MAX_COVER = 2
"""Heavy cover; improvements are capped here before reductions apply."""

MIN_COVER = 0

# =============================================================================
# Keyword magnitudes
# =============================================================================

DICE_PER_AIM_TOKEN = 2
"""Dice rerolled (or converted with Marksman) per aim token before Precise X."""

BACKUP_CANCELLATIONS = 2
"""Hits cancelled by Backup against ranged attacks."""

DEFLECT_WOUNDS = 1
"""Wounds suffered by the attacker when Deflect triggers (without Shien Mastery)."""

DJEM_SO_WOUNDS = 1
"""Wounds suffered by a melee attacker when Djem So Mastery triggers."""

MAKASHI_PIERCE_COST = 1
"""Pierce given up to switch off Immune: Pierce and Impervious."""

DUELIST_AIM_COST = 1
"""Leftover aim tokens an attacking Duelist spends to gain Pierce 1."""

# =============================================================================
# Aggregation defaults
# =============================================================================

DEFAULT_ITERATIONS = 20_000
"""Trials run by the sampling evaluator when none are requested."""

DEFAULT_CHUNK_SIZE = 1_000
"""Trials per sampling chunk."""

DEFAULT_EXACT_MAX_OUTCOMES = 2_000_000
"""Enumerated leaves allowed before exact evaluation gives up."""


__all__ = [
    # Dice
    "ATTACK_DIE_SIDES",
    "DEFENSE_DIE_SIDES",
    # Cover
    "MAX_COVER",
    "MIN_COVER",
    # Keywords
    "DICE_PER_AIM_TOKEN",
    "BACKUP_CANCELLATIONS",
    "DEFLECT_WOUNDS",
    "DJEM_SO_WOUNDS",
    "MAKASHI_PIERCE_COST",
    "DUELIST_AIM_COST",
    # Aggregation
    "DEFAULT_ITERATIONS",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_EXACT_MAX_OUTCOMES",
]
