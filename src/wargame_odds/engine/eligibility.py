"""Attack-type eligibility filter for keywords.

Some keywords only work against ranged attacks, others only in melee.
A keyword that is absent from :data:`KEYWORD_ATTACK_TYPES` applies to
every attack type.
"""

from __future__ import annotations

from wargame_odds.models.enums import AttackType


RANGED_TYPES = frozenset({AttackType.ALL, AttackType.RANGED})
MELEE_TYPES = frozenset({AttackType.ALL, AttackType.MELEE})

KEYWORD_ATTACK_TYPES: dict[str, frozenset[AttackType]] = {
    # Defender
    "cover_x": RANGED_TYPES,
    "backup": RANGED_TYPES,
    "guardian": RANGED_TYPES,
    "deflect": RANGED_TYPES,
    "soresu_mastery": RANGED_TYPES,
    "djem_so_mastery": MELEE_TYPES,
    "immune_melee_pierce": MELEE_TYPES,
    "defender_duelist": MELEE_TYPES,
    # Attacker
    "attacker_duelist": MELEE_TYPES,
    "makashi_mastery": MELEE_TYPES,
    "high_velocity": RANGED_TYPES,
}


def keyword_active(keyword: str, attack_type: AttackType) -> bool:
    """Whether ``keyword`` may apply to an attack of ``attack_type``.

    Args:
        keyword: Keyword name as listed in KEYWORD_ATTACK_TYPES.
        attack_type: Configured attack type.

    Returns:
        False when the attack type excludes the keyword.
    """
    allowed = KEYWORD_ATTACK_TYPES.get(keyword)
    return allowed is None or attack_type in allowed


__all__ = [
    "RANGED_TYPES",
    "MELEE_TYPES",
    "KEYWORD_ATTACK_TYPES",
    "keyword_active",
]
