from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from idlecore.bignum import ZERO, BigNum, NumberLike
from idlecore.cost_scaling import CostScaling
from idlecore.currency import Resource
from idlecore.effect import EffectDef


class UpgradeCategory(Enum):
    SCALING = "scaling"
    LINEAR = "linear"
    ONE_TIME = "one_time"
    DUAL_CURRENCY = "dual_currency"


@dataclass
class UpgradeDef:
    """Static definition of a purchasable upgrade.

    ``max_level`` of 0 means unlimited. Minigame-local upgrades name their
    owning minigame in ``minigame_id``; their levels live in that minigame's
    record instead of the global upgrade map.
    """

    id: str
    display_name: str = ""
    description: str = ""
    category: UpgradeCategory = UpgradeCategory.SCALING
    cost_resource: Resource = Resource.MONEY
    base_cost: NumberLike = 0
    growth_rate: NumberLike = "1.15"
    cost_increment: NumberLike = 0
    secondary_resource: Resource | None = None
    secondary_base_cost: NumberLike = 0
    secondary_growth_rate: NumberLike = 1
    effect: EffectDef | None = None
    max_level: int = 0
    minigame_id: str | None = None
    grant_resource: Resource | None = None
    grant_amount: NumberLike = 0
    enables_automation: str | None = None

    cost_scaling: CostScaling = field(init=False, repr=False, compare=False)
    secondary_scaling: CostScaling | None = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.display_name:
            self.display_name = self.id
        self.base_cost = BigNum(self.base_cost)
        self.growth_rate = BigNum(self.growth_rate)
        self.cost_increment = BigNum(self.cost_increment)
        self.secondary_base_cost = BigNum(self.secondary_base_cost)
        self.secondary_growth_rate = BigNum(self.secondary_growth_rate)
        self.grant_amount = BigNum(self.grant_amount)

        if self.category is UpgradeCategory.ONE_TIME:
            self.max_level = 1
            self.cost_scaling = CostScaling.fixed()
        elif self.category is UpgradeCategory.LINEAR:
            self.cost_scaling = CostScaling.linear(self.cost_increment)
        else:
            self.cost_scaling = CostScaling.exponential(self.growth_rate)

        if self.category is UpgradeCategory.DUAL_CURRENCY:
            self.secondary_scaling = CostScaling.exponential(self.secondary_growth_rate)
        else:
            self.secondary_scaling = None

    def cost_at(self, level: int) -> dict[Resource, BigNum]:
        """Price of going from *level* to *level* + 1, per resource."""
        costs = {self.cost_resource: self.cost_scaling.compute(self.base_cost, level)}
        if self.secondary_scaling is not None and self.secondary_resource is not None:
            secondary = self.secondary_scaling.compute(self.secondary_base_cost, level)
            costs[self.secondary_resource] = (
                costs.get(self.secondary_resource, ZERO).add(secondary)
            )
        return costs

    def bulk_cost(self, level: int, count: int) -> dict[Resource, BigNum]:
        """Summed price of *count* consecutive levels starting at *level*."""
        total: dict[Resource, BigNum] = {}
        for offset in range(max(count, 0)):
            for resource, amount in self.cost_at(level + offset).items():
                total[resource] = total.get(resource, ZERO).add(amount)
        return total

    def is_maxed(self, level: int) -> bool:
        return self.max_level > 0 and level >= self.max_level

    def levels_remaining(self, level: int) -> int | None:
        """Levels still purchasable, or None when unlimited."""
        if self.max_level <= 0:
            return None
        return max(self.max_level - level, 0)


@dataclass(frozen=True)
class UpgradeStatus:
    """Read-only snapshot of an upgrade for display."""

    id: str
    display_name: str
    description: str
    category: UpgradeCategory
    level: int
    max_level: int
    next_cost: dict[Resource, BigNum]
    effect_description: str
    can_afford: bool
    is_maxed: bool
    minigame_id: str | None = None
