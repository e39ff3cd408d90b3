from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from idlecore.currency import Resource, ResourceLedger
from idlecore.subsystem import Subsystem

if TYPE_CHECKING:
    from idlecore.definition import GameDefinition
    from idlecore.state import GameState

logger = logging.getLogger(__name__)

# (ledger, level of the enabling upgrade) -> whether the action ran
AutomationAction = Callable[[ResourceLedger, int], bool]


@dataclass
class AutomationState:
    """Persisted state of one automation."""

    enabled: bool = False
    last_triggered: float = 0


@dataclass
class AutomationDef:
    """A periodic action unlocked by an upgrade."""

    id: str
    display_name: str = ""
    description: str = ""
    interval_ms: int = 60_000
    enabled_by_upgrade: str = ""
    action: AutomationAction | None = None

    def __post_init__(self) -> None:
        if not self.display_name:
            self.display_name = self.id
        if self.interval_ms <= 0:
            raise ValueError(f"Automation {self.id!r} needs a positive interval")


def summarize_books(ledger: ResourceLedger, level: int) -> bool:
    """Convert $10 into technique points equal to the upgrade level."""
    if not ledger.try_subtract(Resource.MONEY, 10):
        return False
    ledger.add(Resource.TECHNIQUE, max(1, level))
    return True


class AutomationRunner(Subsystem):
    """Fires enabled automations on their interval."""

    def __init__(self, definition: GameDefinition) -> None:
        self.definition = definition

    def tick(self, state: GameState, now_ms: float) -> None:
        for adef in self.definition.automations:
            auto = state.automations.get(adef.id)
            if auto is None or not auto.enabled:
                continue
            if auto.last_triggered <= 0:
                # First sighting after the unlock starts the interval clock.
                auto.last_triggered = now_ms
                continue
            if now_ms - auto.last_triggered >= adef.interval_ms:
                self.fire(adef, state)
                # Updated even on failure so a broke player isn't retried every frame.
                auto.last_triggered = now_ms

    def fire(self, adef: AutomationDef, state: GameState) -> bool:
        if adef.action is None:
            return False
        level = state.upgrades.get(adef.enabled_by_upgrade, 0)
        ran = adef.action(state.ledger, level)
        logger.debug("Automation %s %s", adef.id, "ran" if ran else "skipped")
        return ran

    def offline_triggers(
        self, state: GameState, elapsed_ms: float, efficiency: float
    ) -> dict[str, int]:
        """Number of times each enabled automation would have fired while away."""
        triggers: dict[str, int] = {}
        for adef in self.definition.automations:
            auto = state.automations.get(adef.id)
            if auto is None or not auto.enabled:
                continue
            count = math.floor(elapsed_ms * efficiency / adef.interval_ms)
            if count > 0:
                triggers[adef.id] = count
        return triggers

    def run_offline(
        self, state: GameState, triggers: dict[str, int], now_ms: float
    ) -> dict[str, int]:
        """Execute queued offline triggers, stopping each at its first failure.

        Returns how many times each automation actually ran.
        """
        executed: dict[str, int] = {}
        for adef in self.definition.automations:
            count = triggers.get(adef.id, 0)
            if count <= 0:
                continue
            ran = 0
            for _ in range(count):
                if not self.fire(adef, state):
                    break
                ran += 1
            executed[adef.id] = ran
            auto = state.automations.get(adef.id)
            if auto is not None:
                auto.last_triggered = now_ms
        return executed
