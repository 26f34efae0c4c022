"""Pydantic V2 schemas for attack configurations.

This module defines the combatant profiles consumed by the attack
resolution engine. Every count, token and keyword magnitude is a
nonnegative integer; malformed input is rejected here, before any
dice are rolled.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic import ValidationError as PydanticValidationError

from wargame_odds.core.config import get_settings
from wargame_odds.core.exceptions import ValidationError
from wargame_odds.models.enums import (
    AttackSurge,
    AttackType,
    CoverType,
    DefenseSurge,
    DieColor,
    RerollStrategy,
)


NonNegative = Annotated[int, Field(ge=0)]

_DEFENSE_COLORS = (DieColor.WHITE, DieColor.RED)


def _check_defense_color(value: DieColor | None) -> DieColor | None:
    if value is not None and value not in _DEFENSE_COLORS:
        raise ValueError(f"{value} is not a defense die colour")
    return value


class AttackerProfile(BaseModel):
    """Attacking unit: dice pool, surge chart, tokens and keywords.

    Attributes:
        red_dice: Red attack dice in the pool.
        black_dice: Black attack dice in the pool.
        white_dice: White attack dice in the pool.
        surge: Attack surge chart.
        aim_tokens: Aim tokens available for rerolls and purchases.
        surge_tokens: Tokens converting one surge to a hit each.
        pierce: Pierce X.
        impact: Impact X (hits to crits against Armor).
        critical: Critical X (surges to crits).
        sharpshooter: Sharpshooter X (cover reduction).
        lethal: Lethal X (aim tokens bought into Pierce).
        precise: Precise X (extra dice per aim token).
        ram: Ram X (results to crits after moving).
        ion: Ion X (shield tokens flipped).
        moved: Whether the unit moved before attacking.
        blast: Defender cannot use cover.
        death_from_above: Defender cannot use cover against the elevated attacker.
        high_velocity: Defender cannot spend dodge tokens.
        spray: Dice multiplied by defending miniatures.
        marksman: Aim tokens convert results instead of rerolling them.
        makashi_mastery: Trade 1 Pierce to switch off Immune: Pierce and Impervious.
        duelist: Spending an aim token in melee grants Pierce 1.
        jedi_hunter: Surge to crit against force users.
        immune_deflect: No reflection wounds from Deflect or Shien Mastery.
        downgrade_attack: Own attack dice downgraded.
        upgrade_attack: Own attack dice upgraded.
        downgrade_defense: Defender's dice downgraded.
        upgrade_defense: Defender's dice upgraded by attacker effects.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    red_dice: NonNegative = 0
    black_dice: NonNegative = 0
    white_dice: NonNegative = 0
    surge: AttackSurge = Field(default=AttackSurge.NONE, description="Attack surge chart")

    # Tokens
    aim_tokens: NonNegative = 0
    surge_tokens: NonNegative = 0

    # Numeric keywords
    pierce: NonNegative = 0
    impact: NonNegative = 0
    critical: NonNegative = 0
    sharpshooter: NonNegative = 0
    lethal: NonNegative = 0
    precise: NonNegative = 0
    ram: NonNegative = 0
    ion: NonNegative = 0

    # Toggles
    moved: bool = False
    blast: bool = False
    death_from_above: bool = False
    high_velocity: bool = False
    spray: bool = False
    marksman: bool = False
    makashi_mastery: bool = False
    duelist: bool = False
    jedi_hunter: bool = False
    immune_deflect: bool = False

    # Dice modifiers
    downgrade_attack: NonNegative = 0
    upgrade_attack: NonNegative = 0
    downgrade_defense: NonNegative = 0
    upgrade_defense: NonNegative = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def dice_count(self) -> int:
        """Total attack dice before any multiplier."""
        return self.red_dice + self.black_dice + self.white_dice


class GuardianProfile(BaseModel):
    """Nearby allied unit intercepting hits with Guardian X.

    Attributes:
        guardian: Hits the guardian may intercept.
        die: Defense die colour of the guardian.
        surge: Defense surge chart of the guardian.
        surge_tokens: Defense surge tokens of the guardian.
        uncanny_luck: Uncanny Luck X.
        soresu_mastery: Reroll the whole failed pool against ranged attacks.
        impervious: Extra dice equal to the Pierce in play.
        immune_pierce: Pierce cannot cancel the guardian's blocks.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    guardian: NonNegative = Field(default=0, description="Guardian X")
    die: DieColor = Field(description="Defense die colour")
    surge: DefenseSurge = Field(default=DefenseSurge.NONE, description="Defense surge chart")
    surge_tokens: NonNegative = 0
    uncanny_luck: NonNegative = 0
    soresu_mastery: bool = False
    impervious: bool = False
    immune_pierce: bool = False

    @field_validator("die")
    @classmethod
    def validate_defense_color(cls, value: DieColor) -> DieColor:
        """Reject colours that are not on the defense chain."""
        return _check_defense_color(value)


class DefenderProfile(BaseModel):
    """Defending unit: defense die, surge chart, cover, tokens and keywords.

    Attributes:
        die: Defense die colour.
        surge: Defense surge chart.
        cover: Baseline cover category.
        miniatures: Miniatures in the defending unit (Spray multiplier).
        wounds: Total wound capacity of the unit; 0 leaves it untracked.
        dodge_tokens: Tokens cancelling one hit each.
        surge_tokens: Tokens converting one surge to a block each.
        shield_tokens: Tokens cancelling one hit or crit each.
        suppression_tokens: Suppression on the unit (Danger Sense).
        smoke_tokens: Each improves cover by 1.
        suppressed: Suppressed units improve cover by 1.
        cover_x: Cover X against ranged attacks.
        armor: Armor X, hits cancelled.
        danger_sense: Danger Sense X, extra dice per suppression token.
        uncanny_luck: Uncanny Luck X, defense dice rerolled.
        low_profile: One cover die becomes an automatic cancellation.
        backup: Cancel up to two hits against ranged attacks.
        downgrade_criticals: Every crit becomes a hit.
        outmaneuver: Dodge tokens may cancel crits.
        immune_pierce: Pierce cannot cancel blocks.
        immune_melee_pierce: Pierce cannot cancel blocks in melee.
        immune_blast: Blast does not strip cover.
        impervious: Extra defense dice equal to the Pierce in play.
        deflect: Surge to block after dodging a ranged attack; reflects wounds.
        shien_mastery: Deflect reflects one wound per surge.
        block: Surge to block after spending a dodge token.
        soresu_mastery: Reroll failed defense dice against ranged attacks.
        djem_so_mastery: Melee attackers with a blank suffer a wound.
        duelist: Spending a dodge in melee grants Immune: Pierce.
        force_user: Target of Jedi Hunter.
        cover_die: Colour rolled for the cover pool; white when unset.
        downgrade_attack: Attacker's dice downgraded.
        upgrade_attack: Attacker's dice upgraded by defender effects.
        downgrade_defense: Own defense dice downgraded.
        upgrade_defense: Own defense dice upgraded.
        guardian: Optional intercepting ally.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    die: DieColor = Field(description="Defense die colour")
    surge: DefenseSurge = Field(default=DefenseSurge.NONE, description="Defense surge chart")
    cover: CoverType = Field(default=CoverType.NONE, description="Baseline cover")
    miniatures: Annotated[int, Field(ge=1, description="Defending miniatures")] = 1
    wounds: NonNegative = Field(default=0, description="Wound capacity, 0 = untracked")

    # Tokens
    dodge_tokens: NonNegative = 0
    surge_tokens: NonNegative = 0
    shield_tokens: NonNegative = 0
    suppression_tokens: NonNegative = 0
    smoke_tokens: NonNegative = 0
    suppressed: bool = False

    # Numeric keywords
    cover_x: NonNegative = 0
    armor: NonNegative = 0
    danger_sense: NonNegative = 0
    uncanny_luck: NonNegative = 0

    # Toggles
    low_profile: bool = False
    backup: bool = False
    downgrade_criticals: bool = False
    outmaneuver: bool = False
    immune_pierce: bool = False
    immune_melee_pierce: bool = False
    immune_blast: bool = False
    impervious: bool = False
    deflect: bool = False
    shien_mastery: bool = False
    block: bool = False
    soresu_mastery: bool = False
    djem_so_mastery: bool = False
    duelist: bool = False
    force_user: bool = False

    cover_die: DieColor | None = None

    # Dice modifiers
    downgrade_attack: NonNegative = 0
    upgrade_attack: NonNegative = 0
    downgrade_defense: NonNegative = 0
    upgrade_defense: NonNegative = 0

    guardian: GuardianProfile | None = None

    @field_validator("die", "cover_die")
    @classmethod
    def validate_defense_color(cls, value: DieColor | None) -> DieColor | None:
        """Reject colours that are not on the defense chain."""
        return _check_defense_color(value)


class AttackContext(BaseModel):
    """One fully-populated attack configuration.

    Immutable for the duration of a resolution.

    Attributes:
        attacker: Attacking unit.
        defender: Defending unit.
        attack_type: Attack category gating keyword eligibility.
        reroll_strategy: Aim reroll eligibility policy.
        attacker_points: Point cost of the attacker, for efficiency ratios.
        defender_points: Point cost of the defender, for efficiency ratios.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    attacker: AttackerProfile
    defender: DefenderProfile
    attack_type: AttackType = Field(default=AttackType.ALL, description="Attack category")
    reroll_strategy: RerollStrategy = Field(
        default=RerollStrategy.CONSERVATIVE,
        description="Aim reroll eligibility policy",
    )
    attacker_points: NonNegative | None = None
    defender_points: NonNegative | None = None

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "AttackContext":
        """Build a context from an untyped mapping (form data, JSON).

        Args:
            data: Nested mapping with ``attacker`` and ``defender`` entries.

        Returns:
            The validated context.

        Raises:
            ValidationError: If any field is missing or out of range.
        """
        payload = dict(data)
        if "reroll_strategy" not in payload:
            payload["reroll_strategy"] = get_settings().simulation.reroll_strategy
        try:
            return cls.model_validate(payload)
        except PydanticValidationError as exc:
            first = exc.errors()[0]
            field_name = ".".join(str(part) for part in first["loc"])
            raise ValidationError(
                f"Invalid attack configuration: {first['msg']}",
                field_name=field_name,
                invalid_value=first.get("input"),
                details={"error_count": exc.error_count()},
            ) from exc


__all__ = [
    "AttackerProfile",
    "GuardianProfile",
    "DefenderProfile",
    "AttackContext",
]
