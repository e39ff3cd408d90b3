from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from idlecore.automation import AutomationState
from idlecore.bignum import BigNum
from idlecore.currency import Resource, ResourceLedger
from idlecore.minigame import MinigameRecord

if TYPE_CHECKING:
    from idlecore.definition import GameDefinition

SAVE_VERSION = "3.0.0"


@dataclass
class Settings:
    offline_progress_enabled: bool = True


@dataclass
class Stats:
    total_play_time_ms: float = 0
    total_offline_time_ms: float = 0


class GameState:
    """Mutable runtime container holding everything a save captures.

    Built empty, or from a definition so every minigame and automation has a
    record from the start.
    """

    def __init__(self, definition: GameDefinition | None = None) -> None:
        self.version: str = SAVE_VERSION
        self.last_saved: int = 0
        self.last_played: int = 0
        self.player_name: str = ""
        self.ledger = ResourceLedger()
        self.minigames: dict[str, MinigameRecord] = {}
        self.upgrades: dict[str, int] = {}
        self.automations: dict[str, AutomationState] = {}
        self.settings = Settings()
        self.stats = Stats()

        if definition is not None:
            self.fill_defaults(definition)

    def fill_defaults(self, definition: GameDefinition) -> None:
        """Add records for any minigame or automation the state doesn't know yet."""
        for mdef in definition.minigames:
            if mdef.id not in self.minigames:
                self.minigames[mdef.id] = MinigameRecord(unlocked=mdef.unlocked_by_default)
        for adef in definition.automations:
            if adef.id not in self.automations:
                self.automations[adef.id] = AutomationState()

    def resource(self, resource: Resource) -> BigNum:
        return self.ledger.get(resource)

    def upgrade_level(self, upgrade_id: str, minigame_id: str | None = None) -> int:
        if minigame_id is None:
            return self.upgrades.get(upgrade_id, 0)
        record = self.minigames.get(minigame_id)
        return record.upgrades.get(upgrade_id, 0) if record else 0

    def set_upgrade_level(
        self, upgrade_id: str, level: int, minigame_id: str | None = None
    ) -> None:
        if minigame_id is None:
            self.upgrades[upgrade_id] = level
            return
        record = self.minigames.setdefault(minigame_id, MinigameRecord())
        record.upgrades[upgrade_id] = level

    def add_play_time(self, delta_ms: float) -> None:
        self.stats.total_play_time_ms += delta_ms

    def add_offline_time(self, delta_ms: float) -> None:
        self.stats.total_offline_time_ms += delta_ms
