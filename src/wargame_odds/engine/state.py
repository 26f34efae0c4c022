"""Trial state and resource budgets threaded through the attack pipeline.

Both records are frozen; every pipeline step returns new instances built
with :func:`dataclasses.replace`, so a resolution is a pure function of
its context and the dice it draws.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from wargame_odds.models.enums import DieColor, Face


@dataclass(frozen=True)
class RolledDie:
    """One rolled die.

    Attributes:
        color: Colour it was rolled in.
        face: Current face, after any conversion.
        rerolled: Whether the die has already been rerolled.
    """

    color: DieColor
    face: Face
    rerolled: bool = False


Dice = tuple[RolledDie, ...]


def count_faces(dice: Iterable[RolledDie], *faces: Face) -> int:
    """Number of dice currently showing any of ``faces``."""
    return sum(1 for die in dice if die.face in faces)


def convert_faces(dice: Dice, source: Face, target: Face, limit: int | None = None) -> tuple[Dice, int]:
    """Change up to ``limit`` dice showing ``source`` to ``target``.

    Args:
        dice: Current dice.
        source: Face to change.
        target: Face to change it to.
        limit: Maximum dice changed; all of them when None.

    Returns:
        The new dice and the number of dice changed.
    """
    changed = 0
    result: list[RolledDie] = []
    for die in dice:
        if die.face == source and (limit is None or changed < limit):
            result.append(replace(die, face=target))
            changed += 1
        else:
            result.append(die)
    return tuple(result), changed


def remove_faces(dice: Dice, face: Face, limit: int) -> tuple[Dice, int]:
    """Cancel up to ``limit`` dice showing ``face`` by removing them from the pool."""
    removed = 0
    result: list[RolledDie] = []
    for die in dice:
        if die.face == face and removed < limit:
            removed += 1
            continue
        result.append(die)
    return tuple(result), removed


@dataclass(frozen=True)
class TrialState:
    """Partial result of one attack resolution.

    Attributes:
        attack_pool: Colours of the attack dice before rolling.
        attack_dice: Rolled attack dice; cancelled results are removed.
        results_rolled: Hits and crits after surge conversion, before any
            cancellation (suppression checks this).
        makashi_used: Immune: Pierce and Impervious are switched off.
        cover_value: Resolved cover value.
        cover_cancelled: Hits cancelled by the cover pool.
        dodge_spent: At least one dodge token was spent.
        dodge_cancelled: Results cancelled by dodge tokens.
        guardian_dice: Defense dice rolled by the guardian.
        guardian_intercepted: Hits taken by the guardian.
        defense_pool: Colours of the main defense dice before rolling.
        defense_dice: Rolled main defense dice.
        defense_surges: Surges in the main defense roll before conversion.
        deflect_triggered: Deflect converted surges in this roll.
        pierce_on_guardian: Guardian blocks cancelled by Pierce.
        pierce_on_defender: Defender blocks cancelled by Pierce.
        wounds: Wounds to the main defender.
        guardian_wounds: Wounds to the guardian.
        reflection_wounds: Wounds suffered by the attacker.
        secondary_wounds: Wounds beyond the defender's capacity.
        suppressed: Suppression assigned to the defender.
    """

    attack_pool: tuple[DieColor, ...] = ()
    attack_dice: Dice = ()
    results_rolled: int = 0
    makashi_used: bool = False
    cover_value: int = 0
    cover_cancelled: int = 0
    dodge_spent: bool = False
    dodge_cancelled: int = 0
    guardian_dice: Dice = ()
    guardian_intercepted: int = 0
    defense_pool: tuple[DieColor, ...] = ()
    defense_dice: Dice = ()
    defense_surges: int = 0
    deflect_triggered: bool = False
    pierce_on_guardian: int = 0
    pierce_on_defender: int = 0
    wounds: int = 0
    guardian_wounds: int = 0
    reflection_wounds: int = 0
    secondary_wounds: int = 0
    suppressed: bool = False

    @property
    def hits(self) -> int:
        return count_faces(self.attack_dice, Face.HIT)

    @property
    def crits(self) -> int:
        return count_faces(self.attack_dice, Face.CRITICAL)

    @property
    def blocks(self) -> int:
        return count_faces(self.defense_dice, Face.BLOCK)


@dataclass(frozen=True)
class ResourceBudget:
    """Consumable tokens and the Pierce pool of one resolution.

    Spending never goes below zero: each ``spend`` returns the new budget
    and the amount actually spent.

    Attributes:
        aim: Attacker aim tokens left.
        aim_spent: Aim tokens spent so far.
        attack_surge: Attacker surge tokens left.
        dodge: Defender dodge tokens left.
        shield: Defender shield tokens left.
        defense_surge: Defender surge tokens left.
        pierce: Pierce left to cancel blocks.
        pierce_spent: Pierce spent so far, across guardian and defender.
    """

    aim: int = 0
    aim_spent: int = 0
    attack_surge: int = 0
    dodge: int = 0
    shield: int = 0
    defense_surge: int = 0
    pierce: int = 0
    pierce_spent: int = 0

    def spend(self, resource: str, amount: int) -> tuple["ResourceBudget", int]:
        """Spend up to ``amount`` of ``resource``.

        Args:
            resource: Field name of the budget entry.
            amount: Requested amount; negative requests spend nothing.

        Returns:
            The new budget and the amount actually spent.
        """
        available = getattr(self, resource)
        spent = min(max(amount, 0), available)
        changes = {resource: available - spent}
        if resource == "aim":
            changes["aim_spent"] = self.aim_spent + spent
        elif resource == "pierce":
            changes["pierce_spent"] = self.pierce_spent + spent
        return replace(self, **changes), spent

    def grant(self, resource: str, amount: int) -> "ResourceBudget":
        """Add ``amount`` to ``resource`` (Lethal and Duelist buy Pierce this way)."""
        return replace(self, **{resource: getattr(self, resource) + max(amount, 0)})


__all__ = [
    "RolledDie",
    "Dice",
    "count_faces",
    "convert_faces",
    "remove_faces",
    "TrialState",
    "ResourceBudget",
]
