"""Modifier catalog.

One small function per keyword family. Every function takes the attack
context, the current :class:`TrialState` and the :class:`ResourceBudget`
and returns updated copies of both; the ones that roll dice also take a
:class:`DiceSource`. The pipeline decides the order they run in.
"""

from __future__ import annotations

from dataclasses import replace

from wargame_odds.core.constants import (
    BACKUP_CANCELLATIONS,
    DEFLECT_WOUNDS,
    DICE_PER_AIM_TOKEN,
    DJEM_SO_WOUNDS,
    DUELIST_AIM_COST,
    MAKASHI_PIERCE_COST,
)
from wargame_odds.core.exceptions import ResolutionError
from wargame_odds.engine.dice import CHAINS, DiceSource
from wargame_odds.engine.eligibility import keyword_active
from wargame_odds.engine.state import (
    Dice,
    ResourceBudget,
    RolledDie,
    TrialState,
    convert_faces,
    count_faces,
    remove_faces,
)
from wargame_odds.models.enums import (
    AttackSurge,
    DefenseSurge,
    DieClass,
    DieColor,
    Face,
    RerollStrategy,
)
from wargame_odds.models.profiles import AttackContext


Transition = tuple[TrialState, ResourceBudget]


# =============================================================================
# Dice helpers
# =============================================================================


def roll_colors(
    pool: tuple[DieColor, ...],
    die_class: DieClass,
    dice: DiceSource,
) -> Dice:
    """Roll a pool of mixed colours, strongest colour first."""
    rolled: list[RolledDie] = []
    for color in reversed(CHAINS[die_class]):
        count = pool.count(color)
        if count == 0:
            continue
        faces = dice.roll_pool(color, die_class, count)
        if len(faces) != count:
            raise ResolutionError(
                f"Dice source returned {len(faces)} faces for {count} dice",
                step="roll",
                details={"color": str(color), "die_class": str(die_class)},
            )
        rolled.extend(RolledDie(color, face) for face in faces)
    return tuple(rolled)


def reroll_dice(
    current: Dice,
    indexes: list[int],
    die_class: DieClass,
    dice: DiceSource,
) -> Dice:
    """Reroll the dice at ``indexes`` and mark them as rerolled."""
    result = list(current)
    for color in reversed(CHAINS[die_class]):
        targets = [i for i in indexes if current[i].color == color]
        if not targets:
            continue
        faces = dice.roll_pool(color, die_class, len(targets))
        for index, face in zip(targets, faces, strict=True):
            result[index] = RolledDie(color, face, rerolled=True)
    return tuple(result)


def _strongest_first(current: Dice, die_class: DieClass, indexes: list[int]) -> list[int]:
    chain = CHAINS[die_class]
    return sorted(indexes, key=lambda i: chain.index(current[i].color), reverse=True)


def _faces_at(current: Dice, face: Face) -> list[int]:
    return [i for i, die in enumerate(current) if die.face == face]


# =============================================================================
# Pool formation
# =============================================================================


def spray(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    """Build the attack pool, multiplied by defending miniatures with Spray."""
    attacker = context.attacker
    multiplier = context.defender.miniatures if attacker.spray else 1
    pool = (
        (DieColor.RED,) * (attacker.red_dice * multiplier)
        + (DieColor.BLACK,) * (attacker.black_dice * multiplier)
        + (DieColor.WHITE,) * (attacker.white_dice * multiplier)
    )
    return replace(state, attack_pool=pool), budget


def makashi_mastery(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    """Give up 1 Pierce to switch off Immune: Pierce and Impervious.

    Only used when the defender actually has one of them.
    """
    attacker, defender = context.attacker, context.defender
    if not attacker.makashi_mastery or not keyword_active("makashi_mastery", context.attack_type):
        return state, budget
    if not (defender.immune_pierce or defender.impervious) or budget.pierce < MAKASHI_PIERCE_COST:
        return state, budget
    budget = replace(budget, pierce=budget.pierce - MAKASHI_PIERCE_COST)
    return replace(state, makashi_used=True), budget


# =============================================================================
# Attack rerolls
# =============================================================================


def jedi_hunter_active(context: AttackContext) -> bool:
    return context.attacker.jedi_hunter and context.defender.force_user


def surge_capacity(context: AttackContext, budget: ResourceBudget) -> int | None:
    """Surges the attacker can still convert; None when unlimited."""
    attacker = context.attacker
    if attacker.surge != AttackSurge.NONE or jedi_hunter_active(context):
        return None
    return budget.attack_surge + attacker.critical


def armor_wasted_hits(context: AttackContext, current: Dice) -> int:
    """Hits that Armor X will cancel regardless of anything else."""
    return min(context.defender.armor, count_faces(current, Face.HIT))


def reroll_candidates(context: AttackContext, current: Dice, budget: ResourceBudget) -> list[int]:
    """Attack dice worth rerolling, most valuable reroll first.

    Blanks come first, then surges nothing will convert, then (with the
    aggressive strategy) hits Armor would cancel.
    """
    blanks = _strongest_first(current, DieClass.ATTACK, _faces_at(current, Face.BLANK))

    surges = _strongest_first(current, DieClass.ATTACK, _faces_at(current, Face.SURGE))
    capacity = surge_capacity(context, budget)
    excess = [] if capacity is None else surges[: max(0, len(surges) - capacity)]

    wasted: list[int] = []
    if context.reroll_strategy == RerollStrategy.AGGRESSIVE:
        hits = _strongest_first(current, DieClass.ATTACK, _faces_at(current, Face.HIT))
        wasted = hits[: armor_wasted_hits(context, current)]

    return blanks + excess + wasted


def aim_rerolls(
    context: AttackContext,
    state: TrialState,
    budget: ResourceBudget,
    dice: DiceSource,
) -> Transition:
    """Spend aim tokens to reroll 2 + Precise X dice each."""
    attacker = context.attacker
    if attacker.marksman:
        return state, budget

    per_token = DICE_PER_AIM_TOKEN + attacker.precise
    current = state.attack_dice
    while budget.aim > 0:
        candidates = reroll_candidates(context, current, budget)[:per_token]
        if not candidates:
            break
        budget, _ = budget.spend("aim", 1)
        current = reroll_dice(current, candidates, DieClass.ATTACK, dice)
    return replace(state, attack_dice=current), budget


def marksman(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    """Spend aim tokens to change results instead of rerolling them.

    Each token changes up to 2 + Precise X results: hits Armor would
    cancel become crits first, then blanks become hits.
    """
    attacker = context.attacker
    if not attacker.marksman:
        return state, budget

    per_token = DICE_PER_AIM_TOKEN + attacker.precise
    current = state.attack_dice
    while budget.aim > 0:
        current_next, promoted = convert_faces(
            current, Face.HIT, Face.CRITICAL, min(armor_wasted_hits(context, current), per_token)
        )
        current_next, filled = convert_faces(current_next, Face.BLANK, Face.HIT, per_token - promoted)
        if promoted + filled == 0:
            break
        budget, _ = budget.spend("aim", 1)
        current = current_next
    return replace(state, attack_dice=current), budget


# =============================================================================
# Attack surge conversion
# =============================================================================


def attack_surge_chart(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    surge = context.attacker.surge
    if surge == AttackSurge.NONE:
        return state, budget
    current, _ = convert_faces(state.attack_dice, Face.SURGE, surge.face)
    return replace(state, attack_dice=current), budget


def attack_surge_tokens(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    """Surge tokens turn surges into hits.

    Tokens are only spent on surges that Critical X and Jedi Hunter
    will not reach.
    """
    surges = count_faces(state.attack_dice, Face.SURGE)
    reach = surges if jedi_hunter_active(context) else context.attacker.critical
    budget, spent = budget.spend("attack_surge", max(0, surges - reach))
    current, _ = convert_faces(state.attack_dice, Face.SURGE, Face.HIT, spent)
    return replace(state, attack_dice=current), budget


def critical_x(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    current, _ = convert_faces(state.attack_dice, Face.SURGE, Face.CRITICAL, context.attacker.critical)
    return replace(state, attack_dice=current), budget


def jedi_hunter(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    """Surge to crit while attacking a force user."""
    if not jedi_hunter_active(context):
        return state, budget
    current, _ = convert_faces(state.attack_dice, Face.SURGE, Face.CRITICAL)
    return replace(state, attack_dice=current), budget


def drop_attack_surges(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    """Unconverted surges count as blanks from here on."""
    current, _ = convert_faces(state.attack_dice, Face.SURGE, Face.BLANK)
    results = count_faces(current, Face.HIT, Face.CRITICAL)
    return replace(state, attack_dice=current, results_rolled=results), budget


# =============================================================================
# Dodge
# =============================================================================


def _dodge_triggers(context: AttackContext) -> bool:
    defender = context.defender
    return (
        (defender.deflect and keyword_active("deflect", context.attack_type))
        or defender.block
        or (defender.duelist and keyword_active("defender_duelist", context.attack_type))
    )


def dodge(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    """Spend dodge tokens to cancel hits, and crits with Outmaneuver.

    High Velocity forbids dodging. A single dodge is still spent with
    nothing to cancel when Deflect, Block or Duelist would use it.
    """
    attacker, defender = context.attacker, context.defender
    if attacker.high_velocity and keyword_active("high_velocity", context.attack_type):
        return state, budget

    current = state.attack_dice
    budget, spent = budget.spend("dodge", count_faces(current, Face.HIT))
    current, cancelled = remove_faces(current, Face.HIT, spent)

    if defender.outmaneuver:
        budget, spent_crits = budget.spend("dodge", count_faces(current, Face.CRITICAL))
        current, crits_cancelled = remove_faces(current, Face.CRITICAL, spent_crits)
        spent += spent_crits
        cancelled += crits_cancelled

    if spent == 0 and _dodge_triggers(context) and count_faces(current, Face.CRITICAL) > 0:
        budget, spent = budget.spend("dodge", 1)

    return (
        replace(
            state,
            attack_dice=current,
            dodge_spent=state.dodge_spent or spent > 0,
            dodge_cancelled=state.dodge_cancelled + cancelled,
        ),
        budget,
    )


# =============================================================================
# Modify attack dice
# =============================================================================


def ion(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    """Each hit or crit flips one shield token, up to Ion X."""
    results = count_faces(state.attack_dice, Face.HIT, Face.CRITICAL)
    budget, _ = budget.spend("shield", min(context.attacker.ion, results))
    return state, budget


def armor(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    current, _ = remove_faces(state.attack_dice, Face.HIT, context.defender.armor)
    return replace(state, attack_dice=current), budget


def impact(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    """Hits to crits, up to Impact X, only against Armor."""
    if context.defender.armor == 0:
        return state, budget
    current, _ = convert_faces(state.attack_dice, Face.HIT, Face.CRITICAL, context.attacker.impact)
    return replace(state, attack_dice=current), budget


def shields(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    """Shield tokens cancel crits first, then hits."""
    current = state.attack_dice
    for face in (Face.CRITICAL, Face.HIT):
        budget, spent = budget.spend("shield", count_faces(current, face))
        current, _ = remove_faces(current, face, spent)
    return replace(state, attack_dice=current), budget


def backup(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    if not context.defender.backup or not keyword_active("backup", context.attack_type):
        return state, budget
    current, _ = remove_faces(state.attack_dice, Face.HIT, BACKUP_CANCELLATIONS)
    return replace(state, attack_dice=current), budget


def downgrade_criticals(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    if not context.defender.downgrade_criticals:
        return state, budget
    current, _ = convert_faces(state.attack_dice, Face.CRITICAL, Face.HIT)
    return replace(state, attack_dice=current), budget


def ram(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    """After moving, change up to Ram X results to crits, blanks first."""
    attacker = context.attacker
    if not attacker.moved or attacker.ram == 0:
        return state, budget
    current, changed = convert_faces(state.attack_dice, Face.BLANK, Face.CRITICAL, attacker.ram)
    current, _ = convert_faces(current, Face.HIT, Face.CRITICAL, attacker.ram - changed)
    return replace(state, attack_dice=current), budget


def lethal(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    """Leftover aim tokens buy Pierce 1 each, up to Lethal X."""
    budget, spent = budget.spend("aim", context.attacker.lethal)
    return state, budget.grant("pierce", spent)


def attacker_duelist(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    """Pierce 1 in melee for an aim token of its own.

    Tokens already spent on rerolls or conversions do not count, so the
    activation needs a leftover token.
    """
    if not context.attacker.duelist or not keyword_active("attacker_duelist", context.attack_type):
        return state, budget
    budget, spent = budget.spend("aim", DUELIST_AIM_COST)
    return state, budget.grant("pierce", spent)


# =============================================================================
# Defense dice
# =============================================================================


def defense_extra_dice(
    context: AttackContext,
    state: TrialState,
    budget: ResourceBudget,
    *,
    impervious: bool,
    danger_sense: int = 0,
    suppression: int = 0,
) -> int:
    """Extra defense dice from Danger Sense X and Impervious."""
    extra = min(danger_sense, suppression)
    if impervious and not state.makashi_used:
        extra += budget.pierce + budget.pierce_spent
    return extra


def defense_reroll_candidates(current: Dice, *, surges_useful: bool) -> list[int]:
    """Failed defense dice not rerolled yet, red dice first."""
    failed = [
        i
        for i, die in enumerate(current)
        if not die.rerolled and (die.face == Face.BLANK or (die.face == Face.SURGE and not surges_useful))
    ]
    return _strongest_first(current, DieClass.DEFENSE, failed)


def reroll_defense(
    current: Dice,
    dice: DiceSource,
    *,
    uncanny_luck: int,
    full_reroll: bool,
    surges_useful: bool,
) -> Dice:
    """Uncanny Luck X rerolls up to X failures; a full reroll then takes the rest.

    No die is rerolled twice.
    """
    if uncanny_luck > 0:
        targets = defense_reroll_candidates(current, surges_useful=surges_useful)[:uncanny_luck]
        current = reroll_dice(current, targets, DieClass.DEFENSE, dice)
    if full_reroll:
        targets = defense_reroll_candidates(current, surges_useful=surges_useful)
        current = reroll_dice(current, targets, DieClass.DEFENSE, dice)
    return current


def deflect_active(context: AttackContext, state: TrialState) -> bool:
    return (
        context.defender.deflect
        and keyword_active("deflect", context.attack_type)
        and state.dodge_spent
    )


def block_active(context: AttackContext, state: TrialState) -> bool:
    return context.defender.block and state.dodge_spent


def defense_surge_chart(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    if context.defender.surge != DefenseSurge.BLOCK:
        return state, budget
    current, _ = convert_faces(state.defense_dice, Face.SURGE, Face.BLOCK)
    return replace(state, defense_dice=current), budget


def defense_surge_tokens(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    """Surge tokens turn surges into blocks unless a free grant will."""
    if deflect_active(context, state) or block_active(context, state):
        return state, budget
    budget, spent = budget.spend("defense_surge", count_faces(state.defense_dice, Face.SURGE))
    current, _ = convert_faces(state.defense_dice, Face.SURGE, Face.BLOCK, spent)
    return replace(state, defense_dice=current), budget


def deflect(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    """Surge to block after dodging a ranged attack.

    Triggers on any surge rolled, before other conversions, so the
    attacker can be wounded even when the chart already blocked it.
    """
    if not deflect_active(context, state):
        return state, budget
    current, _ = convert_faces(state.defense_dice, Face.SURGE, Face.BLOCK)
    triggered = state.defense_surges > 0
    return replace(state, defense_dice=current, deflect_triggered=triggered), budget


def block(context: AttackContext, state: TrialState, budget: ResourceBudget) -> Transition:
    if not block_active(context, state):
        return state, budget
    current, _ = convert_faces(state.defense_dice, Face.SURGE, Face.BLOCK)
    return replace(state, defense_dice=current), budget


def pierce_immune(context: AttackContext, state: TrialState) -> bool:
    """Whether the main defender ignores Pierce for this attack."""
    defender = context.defender
    attack_type = context.attack_type
    return (
        (defender.immune_pierce and not state.makashi_used)
        or (defender.immune_melee_pierce and keyword_active("immune_melee_pierce", attack_type))
        or (defender.duelist and keyword_active("defender_duelist", attack_type) and state.dodge_spent)
    )


def pierce(current: Dice, budget: ResourceBudget, *, immune: bool) -> tuple[Dice, ResourceBudget, int]:
    """Spend the Pierce budget cancelling blocks; cancelled blocks read as blanks.

    Returns:
        The new dice, the new budget and the blocks cancelled.
    """
    if immune:
        return current, budget, 0
    budget, spent = budget.spend("pierce", count_faces(current, Face.BLOCK))
    current, _ = convert_faces(current, Face.BLOCK, Face.BLANK, spent)
    return current, budget, spent


# =============================================================================
# Reflection
# =============================================================================


def deflect_wounds(context: AttackContext, state: TrialState) -> int:
    """Wounds Deflect (or Shien Mastery, one per surge) reflects onto the attacker."""
    if not state.deflect_triggered or context.attacker.immune_deflect:
        return 0
    if context.defender.shien_mastery:
        return state.defense_surges
    return DEFLECT_WOUNDS


def djem_so_wounds(context: AttackContext, state: TrialState) -> int:
    """One wound to a melee attacker whose pool still shows a blank."""
    if not context.defender.djem_so_mastery or not keyword_active("djem_so_mastery", context.attack_type):
        return 0
    return DJEM_SO_WOUNDS if count_faces(state.attack_dice, Face.BLANK) > 0 else 0


__all__ = [
    "Transition",
    "roll_colors",
    "reroll_dice",
    # Pool formation
    "spray",
    "makashi_mastery",
    # Attack rerolls
    "jedi_hunter_active",
    "surge_capacity",
    "armor_wasted_hits",
    "reroll_candidates",
    "aim_rerolls",
    "marksman",
    # Attack surges
    "attack_surge_chart",
    "attack_surge_tokens",
    "critical_x",
    "jedi_hunter",
    "drop_attack_surges",
    # Dodge
    "dodge",
    # Modify attack dice
    "ion",
    "armor",
    "impact",
    "shields",
    "backup",
    "downgrade_criticals",
    "ram",
    "attacker_duelist",
    "lethal",
    # Defense dice
    "defense_extra_dice",
    "defense_reroll_candidates",
    "reroll_defense",
    "deflect_active",
    "block_active",
    "defense_surge_chart",
    "defense_surge_tokens",
    "deflect",
    "block",
    "pierce_immune",
    "pierce",
    # Reflection
    "deflect_wounds",
    "djem_so_wounds",
]
