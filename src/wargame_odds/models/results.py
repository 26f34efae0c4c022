"""Result schemas produced by the attack resolution engine.

A single resolution yields a :class:`TrialOutcome`; the aggregator folds
many of them (or the full enumeration) into :class:`AggregateStatistics`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from wargame_odds.models.enums import EvaluationMode


@dataclass(frozen=True)
class TrialOutcome:
    """Outcome of one resolved attack.

    Attributes:
        wounds_to_defender: Unblocked hits and crits on the defender.
        wounds_to_guardian: Intercepted hits the guardian's roll left unblocked.
        reflection_wounds: Wounds the attacker suffers (Deflect, Shien, Djem So).
        secondary_wounds: Defender wounds beyond its wound capacity.
        defender_suppressed: Whether the defender gains suppression.
    """

    wounds_to_defender: int = 0
    wounds_to_guardian: int = 0
    reflection_wounds: int = 0
    secondary_wounds: int = 0
    defender_suppressed: bool = False


WoundChannel = Literal["defender", "guardian", "reflection", "secondary"]

WOUND_CHANNELS: tuple[WoundChannel, ...] = ("defender", "guardian", "reflection", "secondary")


class EvaluationOptions(BaseModel):
    """Options for :func:`wargame_odds.engine.aggregate.evaluate`.

    Attributes:
        mode: Sampling or exact enumeration.
        iterations: Trials to sample; falls back to settings when unset.
        seed: Seed for reproducible sampling; falls back to settings.
        workers: Worker processes; falls back to settings.
        chunk_size: Trials per chunk; falls back to settings.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    mode: EvaluationMode = EvaluationMode.SAMPLE
    iterations: Annotated[int, Field(ge=1)] | None = None
    seed: int | None = None
    workers: Annotated[int, Field(ge=1)] | None = None
    chunk_size: Annotated[int, Field(ge=1)] | None = None


class ChannelStatistics(BaseModel):
    """Distributional summary of one wound channel.

    Attributes:
        mean: Expected wounds.
        median: Smallest wound count whose cumulative probability reaches 0.5.
        mode: Most likely wound count.
        minimum: Smallest wound count with nonzero probability.
        maximum: Largest wound count with nonzero probability.
        std_dev: Standard deviation of wounds.
        distribution: Probability of exactly ``i`` wounds at index ``i``.
        at_least: Probability of ``i`` or more wounds at index ``i``.
    """

    model_config = ConfigDict(frozen=True)

    mean: float
    median: int
    mode: int
    minimum: int
    maximum: int
    std_dev: float
    distribution: list[float]
    at_least: list[float]


class PointEfficiency(BaseModel):
    """Point-cost ratios derived from the defender wound channel.

    Every ratio is ``nan`` when its denominator is zero or missing.

    Attributes:
        wounds_per_point: Expected wounds per attacker point.
        points_per_wound: Attacker points spent per expected wound.
        efficiency_ratio: Defender points destroyed per attacker point.
    """

    model_config = ConfigDict(frozen=True)

    wounds_per_point: float
    points_per_wound: float
    efficiency_ratio: float


class AggregateStatistics(BaseModel):
    """Statistics over many resolutions of one attack context.

    Attributes:
        source: Whether the numbers were sampled or enumerated exactly.
        trials: Trials sampled, or leaves enumerated.
        defender: Wounds to the main defender.
        guardian: Wounds to the guardian.
        reflection: Wounds reflected onto the attacker.
        secondary: Defender wounds beyond its capacity.
        suppression_probability: Probability that the defender is suppressed.
        efficiency: Point-cost ratios.
    """

    model_config = ConfigDict(frozen=True)

    source: EvaluationMode
    trials: int
    defender: ChannelStatistics
    guardian: ChannelStatistics
    reflection: ChannelStatistics
    secondary: ChannelStatistics
    suppression_probability: float
    efficiency: PointEfficiency

    def channel(self, name: WoundChannel) -> ChannelStatistics:
        """Look up a channel by name."""
        return getattr(self, name)


__all__ = [
    "TrialOutcome",
    "WoundChannel",
    "WOUND_CHANNELS",
    "EvaluationOptions",
    "ChannelStatistics",
    "PointEfficiency",
    "AggregateStatistics",
]
