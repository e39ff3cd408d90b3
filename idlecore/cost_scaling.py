from __future__ import annotations

from typing import Callable

from idlecore.bignum import ZERO, BigNum, NumberLike

# Upper bound on levels examined by calculate_affordable_levels when the
# caller gives no limit.
DEFAULT_AFFORDABLE_LIMIT = 10_000


class CostScaling:
    """Determines how an upgrade's cost changes with its level."""

    def __init__(self, fn: Callable[[BigNum, int], BigNum]) -> None:
        self._fn = fn

    def compute(self, base_cost: NumberLike, level: int) -> BigNum:
        return self._fn(BigNum(base_cost), level)

    @classmethod
    def fixed(cls) -> CostScaling:
        """Cost never changes."""
        return cls(lambda base, _level: base)

    @classmethod
    def exponential(cls, growth_rate: NumberLike = "1.15") -> CostScaling:
        """Cost = base * growth_rate^level."""
        gr = BigNum(growth_rate)
        return cls(lambda base, level: calculate_cost(base, gr, level))

    @classmethod
    def linear(cls, increment: NumberLike) -> CostScaling:
        """Cost = base + increment * level."""
        inc = BigNum(increment)
        return cls(lambda base, level: calculate_linear_cost(base, inc, level))

    @classmethod
    def custom(cls, fn: Callable[[BigNum, int], BigNum]) -> CostScaling:
        """Arbitrary cost function."""
        return cls(fn)


def calculate_cost(base_cost: NumberLike, growth_rate: NumberLike, level: int) -> BigNum:
    """Cost of buying the next level when *level* are already owned."""
    return BigNum(base_cost).mul(BigNum(growth_rate).pow(level))


def calculate_linear_cost(base_cost: NumberLike, increment: NumberLike, level: int) -> BigNum:
    return BigNum(base_cost).add(BigNum(increment).mul(level))


def calculate_bulk_cost(
    base_cost: NumberLike,
    growth_rate: NumberLike,
    current_level: int,
    count: int,
) -> BigNum:
    """Total cost of buying *count* levels starting from *current_level*.

    This is the literal sum of the single-level costs, so it always agrees
    with buying one level at a time.
    """
    if count <= 0:
        return ZERO
    return BigNum.sum(
        calculate_cost(base_cost, growth_rate, current_level + i) for i in range(count)
    )


def calculate_affordable_levels(
    base_cost: NumberLike,
    growth_rate: NumberLike,
    current_level: int,
    available: NumberLike,
    limit: int | None = None,
) -> int:
    """Largest n such that calculate_bulk_cost(..., n) <= available."""
    budget = BigNum(available)
    cap = DEFAULT_AFFORDABLE_LIMIT if limit is None else limit
    spent = ZERO
    levels = 0
    while levels < cap:
        spent = spent.add(calculate_cost(base_cost, growth_rate, current_level + levels))
        if spent > budget:
            break
        levels += 1
    return levels
