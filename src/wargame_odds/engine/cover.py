"""Cover resolution.

Cover is a number between 0 and 2. Improvements are added to the
baseline category and capped before reductions are subtracted; the
result is then rolled as a secondary pool of defense dice, one per hit,
that cancel hits before the main defense roll.
"""

from __future__ import annotations

from wargame_odds.core.constants import MAX_COVER, MIN_COVER
from wargame_odds.engine.dice import DiceSource
from wargame_odds.engine.eligibility import keyword_active
from wargame_odds.models.enums import DieClass, DieColor, Face
from wargame_odds.models.profiles import AttackContext


def cover_ignored(context: AttackContext) -> bool:
    """Whether an attacker keyword strips the defender's cover entirely.

    Blast is negated by the defender's Immune: Blast; Death From Above
    has no matching immunity.
    """
    attacker, defender = context.attacker, context.defender
    blast = attacker.blast and not defender.immune_blast
    return blast or attacker.death_from_above


def determine_cover_value(context: AttackContext) -> int:
    """Resolve the numeric cover value of the defender.

    Args:
        context: Attack configuration.

    Returns:
        Cover value in [0, 2].
    """
    if cover_ignored(context):
        return MIN_COVER

    defender = context.defender
    value = defender.cover.value_int
    if defender.suppressed:
        value += 1
    if keyword_active("cover_x", context.attack_type):
        value += defender.cover_x
    value += defender.smoke_tokens
    value = min(value, MAX_COVER)

    value -= context.attacker.sharpshooter
    return max(value, MIN_COVER)


def roll_cover_pool(
    hit_count: int,
    cover_value: int,
    low_profile: bool,
    dice: DiceSource,
    die_color: DieColor | None = None,
) -> int:
    """Roll the cover pool and count the hits it cancels.

    Args:
        hit_count: Hit results (not crits) facing the cover pool.
        cover_value: Resolved cover value.
        low_profile: Replace one cover die with an automatic cancellation.
        dice: Source the cover dice are rolled from.
        die_color: Cover die colour; white when None.

    Returns:
        Hits cancelled, never more than ``hit_count``.
    """
    if hit_count <= 0 or cover_value <= 0:
        return 0

    pool = hit_count
    cancelled = 0
    if low_profile and pool > 0:
        pool -= 1
        cancelled += 1

    faces = dice.roll_pool(die_color or DieColor.WHITE, DieClass.DEFENSE, pool)
    for face in faces:
        if face == Face.BLOCK or (face == Face.SURGE and cover_value == MAX_COVER):
            cancelled += 1
    return min(cancelled, hit_count)


__all__ = [
    "cover_ignored",
    "determine_cover_value",
    "roll_cover_pool",
]
