from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

from idlecore.automation import AutomationDef
from idlecore.currency import Resource
from idlecore.effect import EffectType
from idlecore.minigame import MinigameDef
from idlecore.upgrade import UpgradeCategory, UpgradeDef


@dataclass
class EngineConfig:
    """Tunable engine constants."""

    score_to_rate_divisor: int = 100
    generating_minigames: tuple[str, ...] = ("code-breaker",)
    max_offline_seconds: int = 8 * 60 * 60
    offline_efficiency: float = 0.5
    modal_min_seconds: int = 60
    auto_save_interval_ms: int = 30_000
    max_delta_ms: int = 1000
    display_interval_ms: int = 1000
    default_growth_rate: str = "1.15"
    max_save_slots: int = 3
    max_top_scores: int = 5
    storage_key_prefix: str = "hacker-incremental"

    def __post_init__(self) -> None:
        self.generating_minigames = tuple(self.generating_minigames)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> EngineConfig:
        """Build a config from plain keys, rejecting unknown ones."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown engine config keys: {', '.join(unknown)}")
        return cls(**dict(data))

    @classmethod
    def from_toml(cls, path: str | Path) -> EngineConfig:
        """Load the ``[engine]`` table of a TOML file."""
        with open(path, "rb") as f:
            doc = tomllib.load(f)
        return cls.from_mapping(doc.get("engine", {}))

    def validate(self) -> list[str]:
        errors: list[str] = []
        if self.score_to_rate_divisor <= 0:
            errors.append("score_to_rate_divisor must be positive")
        if not 0 <= self.offline_efficiency <= 1:
            errors.append("offline_efficiency must be between 0 and 1")
        if self.max_offline_seconds < 0:
            errors.append("max_offline_seconds must not be negative")
        if self.max_delta_ms <= 0:
            errors.append("max_delta_ms must be positive")
        if self.display_interval_ms <= 0:
            errors.append("display_interval_ms must be positive")
        if self.auto_save_interval_ms <= 0:
            errors.append("auto_save_interval_ms must be positive")
        if self.max_save_slots <= 0:
            errors.append("max_save_slots must be positive")
        if self.max_top_scores <= 0:
            errors.append("max_top_scores must be positive")
        return errors


@dataclass
class GameDefinition:
    """Complete static content of the economy: minigames, upgrades, automations."""

    name: str = "Untitled"
    config: EngineConfig = field(default_factory=EngineConfig)
    minigames: list[MinigameDef] = field(default_factory=list)
    upgrades: list[UpgradeDef] = field(default_factory=list)
    automations: list[AutomationDef] = field(default_factory=list)

    # Lookup dicts built in __post_init__
    _minigames_by_id: dict[str, MinigameDef] = field(
        default_factory=dict, init=False, repr=False
    )
    _upgrades_by_id: dict[str, UpgradeDef] = field(
        default_factory=dict, init=False, repr=False
    )
    _automations_by_id: dict[str, AutomationDef] = field(
        default_factory=dict, init=False, repr=False
    )

    def __post_init__(self) -> None:
        self._minigames_by_id = {m.id: m for m in self.minigames}
        self._upgrades_by_id = {u.id: u for u in self.upgrades}
        self._automations_by_id = {a.id: a for a in self.automations}

    def get_minigame(self, id: str) -> MinigameDef | None:
        return self._minigames_by_id.get(id)

    def get_upgrade(self, id: str) -> UpgradeDef | None:
        return self._upgrades_by_id.get(id)

    def get_automation(self, id: str) -> AutomationDef | None:
        return self._automations_by_id.get(id)

    def upgrades_for_minigame(self, minigame_id: str) -> list[UpgradeDef]:
        return [u for u in self.upgrades if u.minigame_id == minigame_id]

    def global_upgrades(self) -> list[UpgradeDef]:
        return [u for u in self.upgrades if u.minigame_id is None]

    def validate(self) -> list[str]:
        """Check for common definition errors. Returns list of error messages."""
        errors: list[str] = list(self.config.validate())
        minigame_ids = {m.id for m in self.minigames}
        automation_ids = {a.id for a in self.automations}

        for kind, items in (
            ("minigame", self.minigames),
            ("upgrade", self.upgrades),
            ("automation", self.automations),
        ):
            seen: set[str] = set()
            for item in items:
                if item.id in seen:
                    errors.append(f"Duplicate {kind} ID: {item.id!r}")
                seen.add(item.id)

        for mid in self.config.generating_minigames:
            if mid not in minigame_ids:
                errors.append(f"Generating minigame {mid!r} is not defined")

        for u in self.upgrades:
            if u.minigame_id is not None and u.minigame_id not in minigame_ids:
                errors.append(
                    f"Upgrade {u.id!r} references unknown minigame {u.minigame_id!r}"
                )
            if u.category is UpgradeCategory.DUAL_CURRENCY:
                if u.secondary_resource is None:
                    errors.append(f"Dual-currency upgrade {u.id!r} has no secondary resource")
                elif u.secondary_resource is u.cost_resource:
                    errors.append(
                        f"Dual-currency upgrade {u.id!r} uses {u.cost_resource.value!r} twice"
                    )
            elif u.secondary_resource is not None:
                errors.append(f"Upgrade {u.id!r} has a secondary cost but is {u.category.value}")
            if u.max_level < 0:
                errors.append(f"Upgrade {u.id!r} has negative max_level")
            if u.enables_automation is not None:
                if u.enables_automation not in automation_ids:
                    errors.append(
                        f"Upgrade {u.id!r} enables unknown automation {u.enables_automation!r}"
                    )
                if u.minigame_id is not None:
                    errors.append(f"Minigame upgrade {u.id!r} cannot enable automations")
            if u.effect is not None and u.effect.type is EffectType.GRANT_RESOURCE:
                if u.grant_resource is None:
                    errors.append(f"Upgrade {u.id!r} grants nothing")
            if u.grant_resource is not None and not isinstance(u.grant_resource, Resource):
                errors.append(f"Upgrade {u.id!r} grants an unknown resource")

        upgrade_ids = {u.id for u in self.upgrades}
        for a in self.automations:
            if a.enabled_by_upgrade not in upgrade_ids:
                errors.append(
                    f"Automation {a.id!r} is enabled by unknown upgrade {a.enabled_by_upgrade!r}"
                )
            if a.action is None:
                errors.append(f"Automation {a.id!r} has no action")

        return errors
