"""Attack resolution engine.

Submodules:
    dice: Face tables, upgrade chains and dice sources.
    state: Trial state and resource budget records.
    eligibility: Which keywords apply to which attack types.
    cover: Cover value and cover pool resolution.
    keywords: The modifier catalog, one function per keyword family.
    pipeline: The ordered attack steps and single-trial resolution.
    aggregate: Sampling and exact evaluators producing statistics.

Example:
    >>> from wargame_odds.engine import evaluate, resolve_attack
    >>> outcome = resolve_attack(context, random.Random(3))
    >>> stats = evaluate(context)
    >>> print(stats.defender.mean, stats.suppression_probability)
"""

from __future__ import annotations

# =============================================================================
# Dice
# =============================================================================
from wargame_odds.engine.dice import (
    BranchingDiceSource,
    DiceSource,
    RandomDiceSource,
    apply_four_phase,
    downgrade,
    face_probabilities,
    pool_outcomes,
    roll_die,
    upgrade,
)

# =============================================================================
# Cover
# =============================================================================
from wargame_odds.engine.cover import determine_cover_value, roll_cover_pool

# =============================================================================
# Pipeline
# =============================================================================
from wargame_odds.engine.pipeline import ATTACK_STEPS, resolve_attack, run_steps
from wargame_odds.engine.state import ResourceBudget, RolledDie, TrialState

# =============================================================================
# Aggregation
# =============================================================================
from wargame_odds.engine.aggregate import (
    Evaluator,
    ExactEvaluator,
    SamplingEvaluator,
    WoundHistograms,
    evaluate,
    merge_histograms,
)


__all__ = [
    # Dice
    "BranchingDiceSource",
    "DiceSource",
    "RandomDiceSource",
    "apply_four_phase",
    "downgrade",
    "face_probabilities",
    "pool_outcomes",
    "roll_die",
    "upgrade",
    # Cover
    "determine_cover_value",
    "roll_cover_pool",
    # Pipeline
    "ATTACK_STEPS",
    "resolve_attack",
    "run_steps",
    "ResourceBudget",
    "RolledDie",
    "TrialState",
    # Aggregation
    "Evaluator",
    "ExactEvaluator",
    "SamplingEvaluator",
    "WoundHistograms",
    "evaluate",
    "merge_histograms",
]
