from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from idlecore.automation import AutomationRunner, AutomationState
from idlecore.bignum import ZERO, BigNum, NumberLike
from idlecore.cost_scaling import DEFAULT_AFFORDABLE_LIMIT
from idlecore.currency import Resource
from idlecore.definition import GameDefinition
from idlecore.effect import DEFAULT_STACKING, EffectType, Stacking
from idlecore.formatting import format_resource
from idlecore.minigame import insert_score
from idlecore.pipeline import CustomRateFn, GenerationBreakdown, ProductionPipeline
from idlecore.state import GameState
from idlecore.upgrade import UpgradeDef, UpgradeStatus

if TYPE_CHECKING:
    from idlecore.subsystem import Subsystem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurchaseResult:
    """Outcome of a purchase attempt."""

    success: bool
    upgrade_id: str = ""
    levels: int = 0
    new_level: int = 0
    cost_paid: dict[Resource, BigNum] = field(default_factory=dict)
    reason: str = ""


class GameRuntime:
    """Authoritative economy logic processor."""

    def __init__(self, definition: GameDefinition, state: GameState | None = None) -> None:
        errors = definition.validate()
        if errors:
            raise ValueError(
                "Invalid GameDefinition:\n" + "\n".join(f"  - {e}" for e in errors)
            )

        self.definition = definition
        self.config = definition.config
        self.state = state if state is not None else GameState(definition)
        self.state.fill_defaults(definition)
        self.pipeline = ProductionPipeline(definition)
        self.automations = AutomationRunner(definition)
        self._subsystems: list[Subsystem] = [self.automations]

    # ── Core loop ────────────────────────────────────────────────────

    def run_subsystems(self, now_ms: float) -> None:
        """Tick automations and any registered subsystem."""
        for sub in self._subsystems:
            sub.tick(self.state, now_ms)

    def load_state(self, state: GameState) -> None:
        """Replace the whole state, as after a load or import."""
        state.fill_defaults(self.definition)
        self.state = state

    def new_game(self, player_name: str = "") -> GameState:
        self.state = GameState(self.definition)
        self.state.player_name = player_name
        return self.state

    # ── Player actions ───────────────────────────────────────────────

    def purchase(self, upgrade_id: str) -> bool:
        """Buy one level of an upgrade. Returns True on success."""
        return self.try_purchase(upgrade_id).success

    def try_purchase(self, upgrade_id: str, count: int = 1) -> PurchaseResult:
        """Buy *count* levels atomically, or nothing."""
        udef = self.definition.get_upgrade(upgrade_id)
        if udef is None:
            return self._refuse(upgrade_id, f"Unknown upgrade: {upgrade_id!r}")
        if count < 1:
            return self._refuse(upgrade_id, "Count must be at least 1")

        level = self.get_level(upgrade_id)
        if udef.is_maxed(level):
            return self._refuse(upgrade_id, "Already at max level")
        remaining = udef.levels_remaining(level)
        if remaining is not None and count > remaining:
            return self._refuse(upgrade_id, f"Only {remaining} level(s) left")

        cost = udef.bulk_cost(level, count)
        if not self.state.ledger.try_subtract_all(cost):
            return self._refuse(upgrade_id, "Cannot afford")

        new_level = level + count
        self.state.set_upgrade_level(upgrade_id, new_level, udef.minigame_id)

        if udef.grant_resource is not None and udef.grant_amount.is_positive():
            self.state.ledger.add(udef.grant_resource, udef.grant_amount.mul(count))

        if udef.enables_automation is not None and level == 0:
            auto = self.state.automations.setdefault(
                udef.enables_automation, AutomationState()
            )
            auto.enabled = True
            auto.last_triggered = 0
            logger.info("Automation %s enabled", udef.enables_automation)

        logger.debug("Purchased %s x%d -> level %d", upgrade_id, count, new_level)
        return PurchaseResult(
            success=True,
            upgrade_id=upgrade_id,
            levels=count,
            new_level=new_level,
            cost_paid=cost,
        )

    def purchase_bulk(self, upgrade_id: str, count: int) -> bool:
        return self.try_purchase(upgrade_id, count).success

    # ── Minigame interface ───────────────────────────────────────────

    def report_score(self, minigame_id: str, score: NumberLike) -> bool:
        """Record a finished run's score. Returns False for unknown or locked minigames."""
        record = self.state.minigames.get(minigame_id)
        if self.definition.get_minigame(minigame_id) is None or record is None:
            logger.warning("Score reported for unknown minigame %r", minigame_id)
            return False
        if not record.unlocked:
            logger.warning("Score reported for locked minigame %r", minigame_id)
            return False
        value = BigNum(score)
        if value.is_negative():
            raise ValueError(f"Score must not be negative, got {value}")
        record.top_scores = insert_score(
            record.top_scores, value, self.config.max_top_scores
        )
        return True

    def is_unlocked(self, minigame_id: str) -> bool:
        record = self.state.minigames.get(minigame_id)
        return record is not None and record.unlocked

    def unlock_minigame(self, minigame_id: str) -> bool:
        if self.definition.get_minigame(minigame_id) is None:
            return False
        self.state.fill_defaults(self.definition)
        self.state.minigames[minigame_id].unlocked = True
        return True

    def increment_play_count(self, minigame_id: str) -> int:
        record = self.state.minigames.get(minigame_id)
        if record is None:
            return 0
        record.play_count += 1
        return record.play_count

    # ── Queries ──────────────────────────────────────────────────────

    def get_state(self) -> GameState:
        """Return live reference to game state."""
        return self.state

    def get_level(self, upgrade_id: str) -> int:
        udef = self.definition.get_upgrade(upgrade_id)
        if udef is None:
            return 0
        return self.state.upgrade_level(upgrade_id, udef.minigame_id)

    def next_cost(self, upgrade_id: str) -> dict[Resource, BigNum]:
        udef = self.definition.get_upgrade(upgrade_id)
        if udef is None:
            return {}
        return udef.cost_at(self.get_level(upgrade_id))

    def bulk_cost(self, upgrade_id: str, count: int) -> dict[Resource, BigNum]:
        udef = self.definition.get_upgrade(upgrade_id)
        if udef is None:
            return {}
        return udef.bulk_cost(self.get_level(upgrade_id), count)

    def max_affordable(self, upgrade_id: str) -> int:
        """Most levels the current balances could buy in one go."""
        udef = self.definition.get_upgrade(upgrade_id)
        if udef is None:
            return 0
        level = self.get_level(upgrade_id)
        remaining = udef.levels_remaining(level)
        limit = DEFAULT_AFFORDABLE_LIMIT if remaining is None else remaining

        ledger = self.state.ledger
        spent: dict[Resource, BigNum] = {}
        levels = 0
        while levels < limit:
            for resource, amount in udef.cost_at(level + levels).items():
                spent[resource] = spent.get(resource, ZERO).add(amount)
            if not ledger.can_afford_all(spent):
                break
            levels += 1
        return levels

    def aggregate_effect(self, effect_type: EffectType) -> BigNum:
        """Combine every owned upgrade's effect of *effect_type*."""
        stacking = DEFAULT_STACKING.get(effect_type, Stacking.SUM)
        total = stacking.identity
        for udef in self.definition.upgrades:
            eff = udef.effect
            if eff is None or eff.type is not effect_type:
                continue
            total = eff.stacking.combine(total, eff.evaluate(self.get_level(udef.id)))
        return total

    def get_display_info(self, upgrade_id: str) -> UpgradeStatus | None:
        udef = self.definition.get_upgrade(upgrade_id)
        if udef is None:
            return None
        return self._status(udef)

    def get_all_display_info(self, minigame_id: str | None = None) -> list[UpgradeStatus]:
        """Status of every global upgrade, or of one minigame's upgrades."""
        if minigame_id is None:
            upgrades = self.definition.global_upgrades()
        else:
            upgrades = self.definition.upgrades_for_minigame(minigame_id)
        return [self._status(u) for u in upgrades]

    def get_current_rate(self, resource: Resource = Resource.MONEY) -> BigNum:
        """Per-second passive rate of *resource* right now."""
        multiplier = self.aggregate_effect(EffectType.AUTO_GENERATION_MULTIPLIER)
        return self.pipeline.compute_rate(resource, self.state, multiplier)

    def get_all_rates(self) -> dict[Resource, BigNum]:
        return {r: self.get_current_rate(r) for r in Resource}

    def get_generation_breakdown(
        self, resource: Resource = Resource.MONEY
    ) -> GenerationBreakdown:
        multiplier = self.aggregate_effect(EffectType.AUTO_GENERATION_MULTIPLIER)
        return self.pipeline.breakdown(resource, self.state, multiplier)

    def compute_time_to_afford(self, upgrade_id: str) -> float | None:
        """Seconds until affordable at current rates. None if impossible."""
        udef = self.definition.get_upgrade(upgrade_id)
        if udef is None or udef.is_maxed(self.get_level(upgrade_id)):
            return None

        max_time = 0.0
        for resource, amount in self.next_cost(upgrade_id).items():
            current = self.state.ledger.get(resource)
            if current >= amount:
                continue
            rate = self.get_current_rate(resource)
            if not rate.is_positive():
                return None
            t = amount.sub(current).div(rate).to_float()
            max_time = max(max_time, t)
        return max_time

    # ── Extension points ─────────────────────────────────────────────

    def set_production_pipeline(self, resource: Resource, fn: CustomRateFn) -> None:
        self.pipeline.set_custom(resource, fn)

    def add_subsystem(self, subsystem: Subsystem) -> None:
        self._subsystems.append(subsystem)

    # ── Private helpers ──────────────────────────────────────────────

    def _status(self, udef: UpgradeDef) -> UpgradeStatus:
        level = self.get_level(udef.id)
        maxed = udef.is_maxed(level)
        cost = {} if maxed else udef.cost_at(level)
        if udef.effect is not None:
            effect_text = udef.effect.describe(max(level, 1))
        elif udef.grant_resource is not None:
            effect_text = "+" + format_resource(udef.grant_resource, udef.grant_amount)
        else:
            effect_text = ""
        return UpgradeStatus(
            id=udef.id,
            display_name=udef.display_name,
            description=udef.description,
            category=udef.category,
            level=level,
            max_level=udef.max_level,
            next_cost=cost,
            effect_description=effect_text,
            can_afford=not maxed and self.state.ledger.can_afford_all(cost),
            is_maxed=maxed,
            minigame_id=udef.minigame_id,
        )

    def _refuse(self, upgrade_id: str, reason: str) -> PurchaseResult:
        logger.debug("Purchase of %s refused: %s", upgrade_id, reason)
        return PurchaseResult(success=False, upgrade_id=upgrade_id, reason=reason)
