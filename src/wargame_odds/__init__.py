"""wargame-odds - attack odds for a tabletop miniatures wargame.

Resolves one attack between an attacker and a defender profile through
the full sequence of dice, cover, keywords and tokens, and aggregates
many resolutions (or every possible one) into wound statistics.

Example:
    >>> from wargame_odds import AttackContext, AttackerProfile, DefenderProfile, evaluate
    >>> from wargame_odds.models import DieColor, EvaluationMode, EvaluationOptions
    >>>
    >>> context = AttackContext(
    ...     attacker=AttackerProfile(red_dice=2, black_dice=2, aim_tokens=1),
    ...     defender=DefenderProfile(die=DieColor.RED, dodge_tokens=1),
    ... )
    >>> stats = evaluate(context, EvaluationOptions(mode=EvaluationMode.EXACT))
    >>> print(stats.defender.mean)

Modules:
    core: Configuration, logging, and base exceptions.
    models: Pydantic V2 profiles and result schemas.
    engine: Dice, cover, keyword catalog, pipeline and aggregation.
"""

from __future__ import annotations

# Core
from wargame_odds.core.config import Settings, get_settings
from wargame_odds.core.exceptions import WargameOddsError
from wargame_odds.core.logging import configure_logging, get_logger

# Models
from wargame_odds.models.profiles import (
    AttackContext,
    AttackerProfile,
    DefenderProfile,
    GuardianProfile,
)
from wargame_odds.models.results import AggregateStatistics, EvaluationOptions, TrialOutcome

# Engine
from wargame_odds.engine.aggregate import evaluate
from wargame_odds.engine.pipeline import resolve_attack


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "WargameOddsError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "AttackContext",
    "AttackerProfile",
    "DefenderProfile",
    "GuardianProfile",
    "AggregateStatistics",
    "EvaluationOptions",
    "TrialOutcome",
    # Engine
    "evaluate",
    "resolve_attack",
]
