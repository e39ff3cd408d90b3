from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from idlecore.bignum import ONE, ZERO, BigNum, NumberLike
from idlecore.formatting import format_number, format_percent


class EffectType(Enum):
    AUTO_GENERATION_MULTIPLIER = "auto_generation_multiplier"
    PER_CODE_TIME_BONUS = "per_code_time_bonus"
    MINIGAME_TIME_BONUS = "minigame_time_bonus"
    GRANT_RESOURCE = "grant_resource"
    ENABLE_AUTOMATION = "enable_automation"
    GAP_WIDTH_BONUS = "gap_width_bonus"
    WALL_SPACING_BONUS = "wall_spacing_bonus"
    MOVE_SPEED_BONUS = "move_speed_bonus"
    CENTER_BIAS = "center_bias"
    TIME_BONUS = "time_bonus"
    CODE_LENGTH_REDUCTION = "code_length_reduction"
    DAMAGE_MULTIPLIER_BONUS = "damage_multiplier_bonus"
    HEALTH_BONUS = "health_bonus"


class EffectMode(Enum):
    ADDITIVE = auto()
    COMPOUNDING = auto()


class Stacking(Enum):
    """How several upgrades with the same effect type combine."""

    SUM = auto()
    PRODUCT = auto()

    @property
    def identity(self) -> BigNum:
        return ZERO if self is Stacking.SUM else ONE

    def combine(self, left: BigNum, right: BigNum) -> BigNum:
        if self is Stacking.SUM:
            return left.add(right)
        return left.mul(right)


DEFAULT_STACKING: dict[EffectType, Stacking] = {
    EffectType.AUTO_GENERATION_MULTIPLIER: Stacking.PRODUCT,
}


@dataclass
class EffectDef:
    """Effect an upgrade exerts as a function of its level.

    Additive effects evaluate to ``base + per_level * level`` and compounding
    ones to ``base * per_level ** level``. Level 0 always evaluates to the
    stacking identity so an unowned upgrade never changes an aggregate.
    """

    type: EffectType
    base: NumberLike = 0
    per_level: NumberLike = 0
    mode: EffectMode = EffectMode.ADDITIVE
    stacking: Stacking | None = None
    description: str = ""

    def __post_init__(self) -> None:
        self.base = BigNum(self.base)
        self.per_level = BigNum(self.per_level)
        if self.stacking is None:
            self.stacking = DEFAULT_STACKING.get(self.type, Stacking.SUM)

    @property
    def identity(self) -> BigNum:
        return self.stacking.identity

    def evaluate(self, level: int) -> BigNum:
        if level <= 0:
            return self.identity
        if self.mode is EffectMode.COMPOUNDING:
            return self.base.mul(self.per_level.pow(level))
        return self.base.add(self.per_level.mul(level))

    def describe(self, level: int) -> str:
        """Render the description template for *level*.

        Templates may use ``{value}``, ``{percent}`` and ``{level}``.
        """
        value = self.evaluate(level)
        template = self.description or "{value}"
        return template.format(
            value=format_number(value, precision=2),
            percent=format_percent(value),
            level=level,
        )


class Effect:
    """Convenience constructors for common effect patterns."""

    @staticmethod
    def multiplier(type: EffectType, per_level: NumberLike, description: str = "") -> EffectDef:
        """Starts at 1x and adds *per_level* per level; multiplies with others."""
        return EffectDef(
            type=type,
            base=1,
            per_level=per_level,
            stacking=Stacking.PRODUCT,
            description=description,
        )

    @staticmethod
    def additive(
        type: EffectType,
        per_level: NumberLike,
        base: NumberLike = 0,
        description: str = "",
    ) -> EffectDef:
        """Flat bonus growing by *per_level* per level; sums with others."""
        return EffectDef(
            type=type,
            base=base,
            per_level=per_level,
            stacking=Stacking.SUM,
            description=description,
        )

    @staticmethod
    def compounding(
        type: EffectType,
        growth: NumberLike,
        base: NumberLike = 1,
        description: str = "",
    ) -> EffectDef:
        """``base * growth ** level``; multiplies with others."""
        return EffectDef(
            type=type,
            base=base,
            per_level=growth,
            mode=EffectMode.COMPOUNDING,
            stacking=Stacking.PRODUCT,
            description=description,
        )

    @staticmethod
    def flag(type: EffectType, value: NumberLike = 1, description: str = "") -> EffectDef:
        """Constant *value* once owned, for one-time upgrades."""
        return EffectDef(type=type, base=value, per_level=0, description=description)
