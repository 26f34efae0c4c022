"""Attack-resolution pipeline.

:data:`ATTACK_STEPS` lists the steps of one attack in the order they
always run. Each step folds a fixed sequence of keyword functions from
:mod:`wargame_odds.engine.keywords` over the trial state and the
resource budget; :func:`resolve_attack` runs the whole list once and
returns the :class:`TrialOutcome`.

Example:
    >>> import random
    >>> from wargame_odds.engine.pipeline import resolve_attack
    >>> outcome = resolve_attack(context, random.Random(42))
    >>> print(outcome.wounds_to_defender, outcome.defender_suppressed)
"""

from __future__ import annotations

import random
from collections.abc import Callable, Sequence
from dataclasses import replace

from wargame_odds.engine import keywords
from wargame_odds.engine.cover import determine_cover_value, roll_cover_pool
from wargame_odds.engine.dice import DiceSource, RandomDiceSource, apply_four_phase
from wargame_odds.engine.eligibility import keyword_active
from wargame_odds.engine.keywords import Transition
from wargame_odds.engine.state import (
    ResourceBudget,
    TrialState,
    convert_faces,
    count_faces,
    remove_faces,
)
from wargame_odds.models.enums import DefenseSurge, DieClass, Face
from wargame_odds.models.profiles import AttackContext
from wargame_odds.models.results import TrialOutcome


Step = Callable[[AttackContext, TrialState, ResourceBudget, DiceSource], Transition]
Keyword = Callable[[AttackContext, TrialState, ResourceBudget], Transition]


def _fold(
    functions: Sequence[Keyword],
    context: AttackContext,
    state: TrialState,
    budget: ResourceBudget,
) -> Transition:
    for function in functions:
        state, budget = function(context, state, budget)
    return state, budget


def initial_budget(context: AttackContext) -> ResourceBudget:
    """Token and Pierce budget at the start of a resolution."""
    attacker, defender = context.attacker, context.defender
    return ResourceBudget(
        aim=attacker.aim_tokens,
        attack_surge=attacker.surge_tokens,
        dodge=defender.dodge_tokens,
        shield=defender.shield_tokens,
        defense_surge=defender.surge_tokens,
        pierce=attacker.pierce,
    )


# =============================================================================
# Attack steps
# =============================================================================


def form_pool(context: AttackContext, state: TrialState, budget: ResourceBudget, dice: DiceSource) -> Transition:
    return _fold((keywords.spray, keywords.makashi_mastery), context, state, budget)


def modify_attack_pool(
    context: AttackContext, state: TrialState, budget: ResourceBudget, dice: DiceSource
) -> Transition:
    attacker, defender = context.attacker, context.defender
    pool = apply_four_phase(
        state.attack_pool,
        DieClass.ATTACK,
        attacker_down=attacker.downgrade_attack,
        defender_down=defender.downgrade_attack,
        attacker_up=attacker.upgrade_attack,
        defender_up=defender.upgrade_attack,
    )
    return replace(state, attack_pool=pool), budget


def roll_attack(context: AttackContext, state: TrialState, budget: ResourceBudget, dice: DiceSource) -> Transition:
    rolled = keywords.roll_colors(state.attack_pool, DieClass.ATTACK, dice)
    return replace(state, attack_dice=rolled), budget


def reroll_attack(context: AttackContext, state: TrialState, budget: ResourceBudget, dice: DiceSource) -> Transition:
    state, budget = keywords.aim_rerolls(context, state, budget, dice)
    return keywords.marksman(context, state, budget)


def convert_attack_surges(
    context: AttackContext, state: TrialState, budget: ResourceBudget, dice: DiceSource
) -> Transition:
    return _fold(
        (
            keywords.attack_surge_chart,
            keywords.attack_surge_tokens,
            keywords.critical_x,
            keywords.jedi_hunter,
            keywords.drop_attack_surges,
        ),
        context,
        state,
        budget,
    )


def cover_and_dodge(context: AttackContext, state: TrialState, budget: ResourceBudget, dice: DiceSource) -> Transition:
    defender = context.defender
    cover_value = determine_cover_value(context)
    cancelled = roll_cover_pool(
        count_faces(state.attack_dice, Face.HIT),
        cover_value,
        defender.low_profile,
        dice,
        defender.cover_die,
    )
    current, removed = remove_faces(state.attack_dice, Face.HIT, cancelled)
    state = replace(state, attack_dice=current, cover_value=cover_value, cover_cancelled=removed)
    return keywords.dodge(context, state, budget)


def modify_attack_dice(
    context: AttackContext, state: TrialState, budget: ResourceBudget, dice: DiceSource
) -> Transition:
    return _fold(
        (
            keywords.ion,
            keywords.armor,
            keywords.impact,
            keywords.shields,
            keywords.backup,
            keywords.downgrade_criticals,
            keywords.ram,
            keywords.attacker_duelist,
            keywords.lethal,
        ),
        context,
        state,
        budget,
    )


def guardian(context: AttackContext, state: TrialState, budget: ResourceBudget, dice: DiceSource) -> Transition:
    """Let a Guardian ally intercept hits and roll its own defense.

    The guardian spends from the same Pierce budget the main defender
    faces afterwards, and suffers one wound per intercepted hit its roll
    fails to block.
    """
    attacker, defender = context.attacker, context.defender
    profile = defender.guardian
    if profile is None or profile.guardian == 0 or not keyword_active("guardian", context.attack_type):
        return state, budget

    remaining, intercepted = remove_faces(state.attack_dice, Face.HIT, profile.guardian)
    if intercepted == 0:
        return state, budget

    pool = apply_four_phase(
        (profile.die,) * intercepted,
        DieClass.DEFENSE,
        attacker_down=attacker.downgrade_defense,
        defender_down=defender.downgrade_defense,
        attacker_up=attacker.upgrade_defense,
        defender_up=defender.upgrade_defense,
    )
    pool += (profile.die,) * keywords.defense_extra_dice(context, state, budget, impervious=profile.impervious)
    rolled = keywords.roll_colors(pool, DieClass.DEFENSE, dice)

    surges_useful = profile.surge == DefenseSurge.BLOCK or profile.surge_tokens > 0
    rolled = keywords.reroll_defense(
        rolled,
        dice,
        uncanny_luck=profile.uncanny_luck,
        full_reroll=profile.soresu_mastery and keyword_active("soresu_mastery", context.attack_type),
        surges_useful=surges_useful,
    )

    if profile.surge == DefenseSurge.BLOCK:
        rolled, _ = convert_faces(rolled, Face.SURGE, Face.BLOCK)
    rolled, _ = convert_faces(rolled, Face.SURGE, Face.BLOCK, profile.surge_tokens)
    rolled, _ = convert_faces(rolled, Face.SURGE, Face.BLANK)

    immune = profile.immune_pierce and not state.makashi_used
    rolled, budget, pierced = keywords.pierce(rolled, budget, immune=immune)

    blocks = count_faces(rolled, Face.BLOCK)
    state = replace(
        state,
        attack_dice=remaining,
        guardian_dice=rolled,
        guardian_intercepted=intercepted,
        pierce_on_guardian=pierced,
        guardian_wounds=max(0, intercepted - blocks),
    )
    return state, budget


def gather_defense(context: AttackContext, state: TrialState, budget: ResourceBudget, dice: DiceSource) -> Transition:
    attacker, defender = context.attacker, context.defender
    results = count_faces(state.attack_dice, Face.HIT, Face.CRITICAL)
    if results == 0:
        return replace(state, defense_pool=(), defense_dice=()), budget

    pool = apply_four_phase(
        (defender.die,) * results,
        DieClass.DEFENSE,
        attacker_down=attacker.downgrade_defense,
        defender_down=defender.downgrade_defense,
        attacker_up=attacker.upgrade_defense,
        defender_up=defender.upgrade_defense,
    )
    extra = keywords.defense_extra_dice(
        context,
        state,
        budget,
        impervious=defender.impervious,
        danger_sense=defender.danger_sense,
        suppression=defender.suppression_tokens,
    )
    pool += (defender.die,) * extra
    rolled = keywords.roll_colors(pool, DieClass.DEFENSE, dice)
    return replace(state, defense_pool=pool, defense_dice=rolled), budget


def reroll_defense(context: AttackContext, state: TrialState, budget: ResourceBudget, dice: DiceSource) -> Transition:
    defender = context.defender
    if not state.defense_dice:
        return state, budget
    surges_useful = (
        defender.surge == DefenseSurge.BLOCK
        or budget.defense_surge > 0
        or keywords.deflect_active(context, state)
        or keywords.block_active(context, state)
    )
    rolled = keywords.reroll_defense(
        state.defense_dice,
        dice,
        uncanny_luck=defender.uncanny_luck,
        full_reroll=defender.soresu_mastery and keyword_active("soresu_mastery", context.attack_type),
        surges_useful=surges_useful,
    )
    return replace(state, defense_dice=rolled), budget


def convert_defense_surges(
    context: AttackContext, state: TrialState, budget: ResourceBudget, dice: DiceSource
) -> Transition:
    state = replace(state, defense_surges=count_faces(state.defense_dice, Face.SURGE))
    state, budget = _fold(
        (
            keywords.defense_surge_chart,
            keywords.defense_surge_tokens,
            keywords.deflect,
            keywords.block,
        ),
        context,
        state,
        budget,
    )
    current, _ = convert_faces(state.defense_dice, Face.SURGE, Face.BLANK)
    return replace(state, defense_dice=current), budget


def modify_defense_dice(
    context: AttackContext, state: TrialState, budget: ResourceBudget, dice: DiceSource
) -> Transition:
    immune = keywords.pierce_immune(context, state)
    current, budget, pierced = keywords.pierce(state.defense_dice, budget, immune=immune)
    return replace(state, defense_dice=current, pierce_on_defender=pierced), budget


def compare_results(context: AttackContext, state: TrialState, budget: ResourceBudget, dice: DiceSource) -> Transition:
    wounds = max(0, state.hits + state.crits - state.blocks)
    capacity = context.defender.wounds
    reflection = keywords.deflect_wounds(context, state) + keywords.djem_so_wounds(context, state)
    return (
        replace(
            state,
            wounds=wounds,
            secondary_wounds=max(0, wounds - capacity) if capacity else 0,
            reflection_wounds=reflection,
        ),
        budget,
    )


def assign_suppression(
    context: AttackContext, state: TrialState, budget: ResourceBudget, dice: DiceSource
) -> Transition:
    capacity = context.defender.wounds
    survived = capacity == 0 or state.wounds < capacity
    suppressed = context.attack_type.is_ranged and state.results_rolled > 0 and survived
    return replace(state, suppressed=suppressed), budget


ATTACK_STEPS: tuple[tuple[str, Step], ...] = (
    ("form_pool", form_pool),
    ("modify_attack_pool", modify_attack_pool),
    ("roll_attack", roll_attack),
    ("reroll_attack", reroll_attack),
    ("convert_attack_surges", convert_attack_surges),
    ("cover_and_dodge", cover_and_dodge),
    ("modify_attack_dice", modify_attack_dice),
    ("guardian", guardian),
    ("gather_defense", gather_defense),
    ("reroll_defense", reroll_defense),
    ("convert_defense_surges", convert_defense_surges),
    ("modify_defense_dice", modify_defense_dice),
    ("compare_results", compare_results),
    ("assign_suppression", assign_suppression),
)
"""Every step of one attack, in resolution order."""


def run_steps(
    context: AttackContext,
    dice: DiceSource,
    steps: Sequence[tuple[str, Step]] = ATTACK_STEPS,
) -> tuple[TrialState, ResourceBudget]:
    """Fold ``steps`` over a fresh state and budget.

    Returns:
        The final trial state and budget, for callers that need more than
        the outcome.
    """
    state = TrialState()
    budget = initial_budget(context)
    for _, step in steps:
        state, budget = step(context, state, budget, dice)
    return state, budget


def resolve_attack(context: AttackContext, rng: random.Random | DiceSource) -> TrialOutcome:
    """Resolve one attack.

    Args:
        context: Attack configuration.
        rng: A ``random.Random`` owned by the caller, or any dice source.

    Returns:
        The outcome of this trial.
    """
    dice = RandomDiceSource(rng) if isinstance(rng, random.Random) else rng
    state, _ = run_steps(context, dice)
    return TrialOutcome(
        wounds_to_defender=state.wounds,
        wounds_to_guardian=state.guardian_wounds,
        reflection_wounds=state.reflection_wounds,
        secondary_wounds=state.secondary_wounds,
        defender_suppressed=state.suppressed,
    )


__all__ = [
    "Step",
    "ATTACK_STEPS",
    "initial_budget",
    "run_steps",
    "resolve_attack",
]
