from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from idlecore.bignum import ONE, ZERO, BigNum, NumberLike
from idlecore.currency import Resource

if TYPE_CHECKING:
    from idlecore.definition import GameDefinition
    from idlecore.state import GameState

# (resource, base_rate, multiplier, state) -> final rate
CustomRateFn = Callable[[Resource, BigNum, BigNum, "GameState"], BigNum]


@dataclass(frozen=True)
class GenerationBreakdown:
    """How a resource's passive rate is built up, for display."""

    resource: Resource
    contributions: dict[str, BigNum] = field(default_factory=dict)
    base_rate: BigNum = ZERO
    multiplier: BigNum = ONE
    final_rate: BigNum = ZERO


class ProductionPipeline:
    """Turns minigame top scores into per-second generation rates.

    Rates are derived from state on every call; nothing is cached, so a new
    score or upgrade shows up in the very next query.
    """

    def __init__(self, definition: GameDefinition) -> None:
        self.definition = definition
        self._custom: dict[Resource, CustomRateFn] = {}

    def set_custom(self, resource: Resource, fn: CustomRateFn) -> None:
        """Register a custom final-rate function for a specific resource."""
        self._custom[resource] = fn

    def contributions(self, resource: Resource, state: GameState) -> dict[str, BigNum]:
        """Per-minigame share of the base rate for *resource*."""
        config = self.definition.config
        result: dict[str, BigNum] = {}
        for minigame_id in config.generating_minigames:
            mdef = self.definition.get_minigame(minigame_id)
            if mdef is None or mdef.primary_resource is not resource:
                continue
            record = state.minigames.get(minigame_id)
            if record is None or not record.top_scores:
                result[minigame_id] = ZERO
                continue
            total = BigNum.sum(record.top_scores)
            result[minigame_id] = total.div(config.score_to_rate_divisor)
        return result

    def base_rate(self, resource: Resource, state: GameState) -> BigNum:
        return BigNum.sum(self.contributions(resource, state).values())

    def compute_rate(
        self, resource: Resource, state: GameState, multiplier: NumberLike = 1
    ) -> BigNum:
        """Final rate = base rate * multiplier."""
        base = self.base_rate(resource, state)
        mult = BigNum(multiplier)
        if resource in self._custom:
            return self._custom[resource](resource, base, mult, state)
        return base.mul(mult)

    def breakdown(
        self, resource: Resource, state: GameState, multiplier: NumberLike = 1
    ) -> GenerationBreakdown:
        contributions = self.contributions(resource, state)
        return GenerationBreakdown(
            resource=resource,
            contributions=contributions,
            base_rate=BigNum.sum(contributions.values()),
            multiplier=BigNum(multiplier),
            final_rate=self.compute_rate(resource, state, multiplier),
        )


def calculate_generation_over_time(rate: NumberLike, seconds: NumberLike | float) -> BigNum:
    """Amount produced by *rate* per second over *seconds*."""
    if isinstance(seconds, float):
        seconds = BigNum.from_float(seconds)
    return BigNum(rate).mul(seconds)
