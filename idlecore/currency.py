from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from idlecore.bignum import ZERO, BigNum, NumberLike

logger = logging.getLogger(__name__)


class Resource(Enum):
    """The three balances the economy tracks."""

    MONEY = "money"
    TECHNIQUE = "technique"
    RENOWN = "renown"


@dataclass
class ResourceBalance:
    """Mutable balance for one resource."""

    current: BigNum = ZERO
    lifetime: BigNum = ZERO


class ResourceLedger:
    """Owns every resource balance.

    ``current`` never drops below zero and ``lifetime`` never decreases. All
    mutation goes through ``add`` and the ``try_subtract`` family.
    """

    def __init__(self) -> None:
        self._balances: dict[Resource, ResourceBalance] = {
            r: ResourceBalance() for r in Resource
        }

    def balance(self, resource: Resource) -> ResourceBalance:
        return self._balances[resource]

    def get(self, resource: Resource) -> BigNum:
        return self._balances[resource].current

    def lifetime(self, resource: Resource) -> BigNum:
        return self._balances[resource].lifetime

    def add(self, resource: Resource, amount: NumberLike) -> None:
        """Credit *amount* to current and lifetime."""
        amount = _non_negative(amount)
        bal = self._balances[resource]
        bal.current = bal.current.add(amount)
        bal.lifetime = bal.lifetime.add(amount)

    def can_afford(self, resource: Resource, amount: NumberLike) -> bool:
        return self._balances[resource].current.gte(_non_negative(amount))

    def can_afford_all(self, costs: Mapping[Resource, NumberLike]) -> bool:
        return all(self.can_afford(r, amount) for r, amount in costs.items())

    def try_subtract(self, resource: Resource, amount: NumberLike) -> bool:
        """Deduct *amount* if affordable. Lifetime is untouched."""
        amount = _non_negative(amount)
        bal = self._balances[resource]
        if not bal.current.gte(amount):
            return False
        bal.current = bal.current.sub(amount).max(ZERO)
        return True

    def try_subtract_all(self, costs: Mapping[Resource, NumberLike]) -> bool:
        """Deduct every cost or none of them."""
        costs = {r: _non_negative(amount) for r, amount in costs.items()}
        if not self.can_afford_all(costs):
            return False

        deducted: list[tuple[Resource, BigNum]] = []
        for resource, amount in costs.items():
            if not self.try_subtract(resource, amount):
                logger.error(
                    "Deduction of %s %s failed after affordability check; refunding",
                    amount,
                    resource.value,
                )
                for r, paid in deducted:
                    bal = self._balances[r]
                    bal.current = bal.current.add(paid)
                return False
            deducted.append((resource, amount))
        return True

    def restore(
        self, resource: Resource, current: NumberLike, lifetime: NumberLike
    ) -> None:
        """Overwrite a balance wholesale, as when loading a save."""
        current = _non_negative(current)
        lifetime = BigNum(lifetime).max(current)
        self._balances[resource] = ResourceBalance(current=current, lifetime=lifetime)

    def reset(self) -> None:
        for r in Resource:
            self._balances[r] = ResourceBalance()


def _non_negative(amount: NumberLike) -> BigNum:
    n = BigNum(amount)
    if n.is_negative():
        raise ValueError(f"Amount must not be negative, got {n}")
    return n
