"""Statistical aggregation of attack resolutions.

Two interchangeable evaluators turn an :class:`AttackContext` into
:class:`AggregateStatistics`:

* :class:`SamplingEvaluator` runs the pipeline many times with seeded
  random sources, in chunks that may be spread over worker processes.
* :class:`ExactEvaluator` walks every branch of pool outcomes and weights
  each resolved attack by its probability.

Both fill the same :class:`WoundHistograms` and summarize it the same
way, so their results only differ in ``source``.

Example:
    >>> from wargame_odds.engine.aggregate import evaluate
    >>> from wargame_odds.models import EvaluationMode, EvaluationOptions
    >>> stats = evaluate(context, EvaluationOptions(mode=EvaluationMode.EXACT))
    >>> print(stats.defender.mean, stats.defender.at_least[1])
"""

from __future__ import annotations

import math
import random
from abc import ABC, abstractmethod
from collections.abc import Callable
from concurrent.futures import Future, ProcessPoolExecutor, as_completed
from itertools import zip_longest

import numpy as np
import structlog

from wargame_odds.core.config import get_settings
from wargame_odds.core.exceptions import (
    AggregationError,
    EnumerationLimitError,
    EvaluationCancelledError,
)
from wargame_odds.core.logging import ensure_logging, get_logger
from wargame_odds.engine.dice import BranchingDiceSource, RandomDiceSource
from wargame_odds.engine.pipeline import resolve_attack
from wargame_odds.models.enums import EvaluationMode
from wargame_odds.models.profiles import AttackContext
from wargame_odds.models.results import (
    WOUND_CHANNELS,
    AggregateStatistics,
    ChannelStatistics,
    EvaluationOptions,
    PointEfficiency,
    TrialOutcome,
)


logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]
CancelCallback = Callable[[], bool]


# =============================================================================
# Histograms
# =============================================================================


class WoundHistograms:
    """Weighted wound counts per channel.

    Sampling adds every trial with weight 1; exact enumeration adds every
    leaf with its probability. A worker owns its histograms until they
    are merged.

    Attributes:
        bins: Weight of each wound count, per channel.
        suppressed: Weight of trials that suppressed the defender.
        total: Sum of all weights.
        trials: Number of outcomes added.
    """

    def __init__(self) -> None:
        self.bins: dict[str, list[float]] = {channel: [] for channel in WOUND_CHANNELS}
        self.suppressed = 0.0
        self.total = 0.0
        self.trials = 0

    def add(self, outcome: TrialOutcome, weight: float = 1.0) -> None:
        values = (
            outcome.wounds_to_defender,
            outcome.wounds_to_guardian,
            outcome.reflection_wounds,
            outcome.secondary_wounds,
        )
        for channel, value in zip(WOUND_CHANNELS, values):
            bins = self.bins[channel]
            if value >= len(bins):
                bins.extend([0.0] * (value + 1 - len(bins)))
            bins[value] += weight
        if outcome.defender_suppressed:
            self.suppressed += weight
        self.total += weight
        self.trials += 1

    def merge(self, other: "WoundHistograms") -> "WoundHistograms":
        """Elementwise sum of two histograms; order does not matter."""
        merged = WoundHistograms()
        for channel in WOUND_CHANNELS:
            merged.bins[channel] = [
                a + b for a, b in zip_longest(self.bins[channel], other.bins[channel], fillvalue=0.0)
            ]
        merged.suppressed = self.suppressed + other.suppressed
        merged.total = self.total + other.total
        merged.trials = self.trials + other.trials
        return merged


def merge_histograms(first: WoundHistograms, second: WoundHistograms) -> WoundHistograms:
    return first.merge(second)


# =============================================================================
# Statistics
# =============================================================================


def channel_statistics(bins: list[float], total: float) -> ChannelStatistics:
    """Summarize one channel's weighted wound counts.

    Args:
        bins: Weight of each wound count.
        total: Total weight of the evaluation.

    Returns:
        Mean, median, mode, range, spread and the mass/cumulative tables.
    """
    if total <= 0 or not any(bins):
        pmf = np.array([1.0])
    else:
        pmf = np.asarray(bins, dtype=float) / total
        pmf = np.trim_zeros(pmf, "b")

    values = np.arange(len(pmf))
    mean = float(pmf @ values)
    variance = float(pmf @ (values - mean) ** 2)
    cdf = np.cumsum(pmf)
    median = int(min(np.searchsorted(cdf, 0.5 - 1e-12), len(pmf) - 1))
    support = np.flatnonzero(pmf > 0)
    at_least = np.cumsum(pmf[::-1])[::-1]

    return ChannelStatistics(
        mean=mean,
        median=median,
        mode=int(np.argmax(pmf)),
        minimum=int(support[0]),
        maximum=int(support[-1]),
        std_dev=math.sqrt(max(variance, 0.0)),
        distribution=pmf.tolist(),
        at_least=at_least.tolist(),
    )


def _ratio(numerator: float | None, denominator: float | None) -> float:
    if numerator is None or denominator is None or denominator == 0:
        return math.nan
    if math.isnan(numerator) or math.isnan(denominator):
        return math.nan
    return numerator / denominator


def point_efficiency(mean_wounds: float, context: AttackContext) -> PointEfficiency:
    """Point-cost ratios for the defender wound channel.

    ``efficiency_ratio`` is the share of the defender's points destroyed
    per attacker point, which needs the defender's wound capacity.
    Missing or zero denominators give ``nan``.
    """
    attacker_points = context.attacker_points
    defender_points = context.defender_points
    capacity = context.defender.wounds or None

    destroyed = _ratio(mean_wounds * defender_points, capacity) if defender_points is not None else math.nan
    return PointEfficiency(
        wounds_per_point=_ratio(mean_wounds, attacker_points),
        points_per_wound=_ratio(attacker_points, mean_wounds),
        efficiency_ratio=_ratio(destroyed, attacker_points),
    )


def summarize(
    histograms: WoundHistograms,
    context: AttackContext,
    source: EvaluationMode,
) -> AggregateStatistics:
    """Turn accumulated histograms into reportable statistics.

    Raises:
        AggregationError: If the histograms hold no weight.
    """
    if histograms.total <= 0:
        raise AggregationError(
            "Cannot summarize histograms without any recorded trials",
            details={"trials": histograms.trials, "total": histograms.total},
        )
    channels = {
        channel: channel_statistics(histograms.bins[channel], histograms.total)
        for channel in WOUND_CHANNELS
    }
    return AggregateStatistics(
        source=source,
        trials=histograms.trials,
        suppression_probability=histograms.suppressed / histograms.total,
        efficiency=point_efficiency(channels["defender"].mean, context),
        **channels,
    )


# =============================================================================
# Evaluators
# =============================================================================


class Evaluator(ABC):
    """Strategy turning an attack context into aggregate statistics."""

    @abstractmethod
    def evaluate(self, context: AttackContext) -> AggregateStatistics:
        """Evaluate ``context``."""


def sample_chunk(context: AttackContext, seed: int, count: int) -> WoundHistograms:
    """Run ``count`` trials with one random source seeded by ``seed``.

    Top-level so worker processes can unpickle it.
    """
    dice = RandomDiceSource(random.Random(seed))
    histograms = WoundHistograms()
    for _ in range(count):
        histograms.add(resolve_attack(context, dice))
    return histograms


class SamplingEvaluator(Evaluator):
    """Monte Carlo evaluator.

    Iterations are split into chunks. Each chunk owns a random source
    seeded from a ``numpy.random.SeedSequence`` spawned off the requested
    seed, so a seeded run gives the same histograms whatever the worker
    count. Progress is reported and cancellation polled between chunks.

    Example:
        >>> evaluator = SamplingEvaluator(iterations=50_000, seed=7, workers=4)
        >>> stats = evaluator.evaluate(context)
    """

    def __init__(
        self,
        *,
        iterations: int | None = None,
        seed: int | None = None,
        workers: int | None = None,
        chunk_size: int | None = None,
        on_progress: ProgressCallback | None = None,
        should_cancel: CancelCallback | None = None,
    ) -> None:
        """Initialize the sampler, falling back to simulation settings.

        Args:
            iterations: Trials to run.
            seed: Seed for reproducible runs; fresh entropy when None.
            workers: Worker processes; 1 runs inline.
            chunk_size: Trials per chunk.
            on_progress: Called with ``(done, total)`` after each chunk.
            should_cancel: Polled between chunks; True abandons the run.
        """
        simulation = get_settings().simulation
        self.iterations = iterations or simulation.default_iterations
        self.seed = seed if seed is not None else simulation.seed
        self.workers = workers or simulation.workers
        self.chunk_size = min(chunk_size or simulation.chunk_size, self.iterations)
        self._on_progress = on_progress
        self._should_cancel = should_cancel

    def chunks(self) -> list[tuple[int, int]]:
        """``(seed, trials)`` for every chunk of this run."""
        full, remainder = divmod(self.iterations, self.chunk_size)
        sizes = [self.chunk_size] * full + ([remainder] if remainder else [])
        children = np.random.SeedSequence(self.seed).spawn(len(sizes))
        return [
            (int(child.generate_state(1, dtype=np.uint64)[0]), size)
            for child, size in zip(children, sizes)
        ]

    def _check_cancelled(self, done: int) -> None:
        if self._should_cancel is not None and self._should_cancel():
            logger.info("Sampling cancelled", completed=done, requested=self.iterations)
            raise EvaluationCancelledError(
                "Sampling was cancelled before completion",
                completed=done,
                requested=self.iterations,
            )

    def _report(self, done: int) -> None:
        logger.debug("Sampling progress", completed=done, requested=self.iterations)
        if self._on_progress is not None:
            self._on_progress(done, self.iterations)

    def evaluate(self, context: AttackContext) -> AggregateStatistics:
        chunks = self.chunks()
        logger.info(
            "Sampling started",
            iterations=self.iterations,
            chunks=len(chunks),
            workers=self.workers,
            seeded=self.seed is not None,
        )

        histograms = WoundHistograms()
        done = 0
        if self.workers == 1:
            for seed, count in chunks:
                self._check_cancelled(done)
                histograms = histograms.merge(sample_chunk(context, seed, count))
                done += count
                self._report(done)
        else:
            with ProcessPoolExecutor(max_workers=self.workers) as executor:
                futures: dict[Future[WoundHistograms], int] = {
                    executor.submit(sample_chunk, context, seed, count): count
                    for seed, count in chunks
                }
                try:
                    for future in as_completed(futures):
                        self._check_cancelled(done)
                        histograms = histograms.merge(future.result())
                        done += futures[future]
                        self._report(done)
                except EvaluationCancelledError:
                    for future in futures:
                        future.cancel()
                    raise

        stats = summarize(histograms, context, EvaluationMode.SAMPLE)
        logger.info("Sampling finished", trials=stats.trials, mean_wounds=stats.defender.mean)
        return stats


class ExactEvaluator(Evaluator):
    """Exact evaluator enumerating every branch of pool outcomes.

    Each roll of a pool is one branching point over the multisets of
    faces that pool can show. Strategy choices (what to reroll, where to
    spend tokens) stay deterministic, so only dice branch.
    """

    def __init__(self, *, max_outcomes: int | None = None) -> None:
        self.max_outcomes = max_outcomes or get_settings().simulation.exact_max_outcomes

    def evaluate(self, context: AttackContext) -> AggregateStatistics:
        logger.info("Exact enumeration started", max_outcomes=self.max_outcomes)
        histograms = WoundHistograms()
        pending: list[tuple[int, ...]] = [()]
        while pending:
            source = BranchingDiceSource(pending.pop())
            outcome = resolve_attack(context, source)
            histograms.add(outcome, source.probability)
            if histograms.trials > self.max_outcomes:
                logger.warning(
                    "Exact enumeration limit reached",
                    outcomes=histograms.trials,
                    limit=self.max_outcomes,
                )
                raise EnumerationLimitError(
                    "Attack has too many dice outcomes to enumerate exactly",
                    outcomes=histograms.trials,
                    limit=self.max_outcomes,
                )
            pending.extend(source.unexplored())

        stats = summarize(histograms, context, EvaluationMode.EXACT)
        logger.info("Exact enumeration finished", outcomes=stats.trials, mean_wounds=stats.defender.mean)
        return stats


def evaluate(
    context: AttackContext,
    options: EvaluationOptions | None = None,
    *,
    on_progress: ProgressCallback | None = None,
    should_cancel: CancelCallback | None = None,
) -> AggregateStatistics:
    """Evaluate an attack context with the evaluator ``options`` selects.

    Logging is configured from settings on first use unless the host
    already configured structlog; every record of the run carries
    ``evaluation_mode``.

    Args:
        context: Attack configuration.
        options: Mode and sampling parameters; sampling with settings
            defaults when None.
        on_progress: Sampling progress callback.
        should_cancel: Sampling cancellation poll.

    Returns:
        Aggregate statistics of the attack.
    """
    ensure_logging()
    options = options or EvaluationOptions()
    evaluator: Evaluator
    if options.mode == EvaluationMode.EXACT:
        evaluator = ExactEvaluator()
    else:
        evaluator = SamplingEvaluator(
            iterations=options.iterations,
            seed=options.seed,
            workers=options.workers,
            chunk_size=options.chunk_size,
            on_progress=on_progress,
            should_cancel=should_cancel,
        )
    with structlog.contextvars.bound_contextvars(evaluation_mode=options.mode.value):
        return evaluator.evaluate(context)


__all__ = [
    "WoundHistograms",
    "merge_histograms",
    "channel_statistics",
    "point_efficiency",
    "summarize",
    "Evaluator",
    "sample_chunk",
    "SamplingEvaluator",
    "ExactEvaluator",
    "evaluate",
]
