"""Hacker Incremental game content: minigames, upgrades and automations."""

from __future__ import annotations

from idlecore.automation import AutomationDef, summarize_books
from idlecore.currency import Resource
from idlecore.definition import EngineConfig, GameDefinition
from idlecore.effect import Effect, EffectType
from idlecore.minigame import MinigameDef
from idlecore.upgrade import UpgradeCategory, UpgradeDef

TP = Resource.TECHNIQUE


def _minigame_upgrade(
    id: str,
    display_name: str,
    description: str,
    minigame_id: str,
    base_cost: int,
    cost_increment: int,
    effect_type: EffectType,
    per_level: str,
    effect_text: str,
    max_level: int = 0,
) -> UpgradeDef:
    return UpgradeDef(
        id=id,
        display_name=display_name,
        description=description,
        category=UpgradeCategory.LINEAR,
        cost_resource=TP,
        base_cost=base_cost,
        cost_increment=cost_increment,
        effect=Effect.additive(effect_type, per_level, description=effect_text),
        max_level=max_level,
        minigame_id=minigame_id,
    )


def define_game(config: EngineConfig | None = None) -> GameDefinition:
    minigames = [
        MinigameDef("code-breaker", "Code Breaker", Resource.MONEY),
        MinigameDef("code-runner", "Code Runner", TP),
        MinigameDef("botnet-defense", "Botnet Defense", TP),
    ]

    upgrades = [
        # Equipment
        UpgradeDef(
            id="auto-typer",
            display_name="Auto-Typer",
            description="Automated typing software. Increases passive money generation by 5% per level.",
            base_cost=100,
            growth_rate="1.15",
            effect=Effect.multiplier(
                EffectType.AUTO_GENERATION_MULTIPLIER, "0.05", "{percent} generation"
            ),
        ),
        UpgradeDef(
            id="better-keyboard",
            display_name="Better Keyboard",
            description="Mechanical keyboard with faster response. Adds +0.3s per code attempt per level.",
            base_cost=250,
            growth_rate="1.15",
            effect=Effect.additive(
                EffectType.PER_CODE_TIME_BONUS, "0.3", description="+{value}s per code"
            ),
        ),
        UpgradeDef(
            id="coffee-machine",
            display_name="Coffee Machine",
            description="Fresh coffee keeps you sharp. Adds 10 seconds to every minigame.",
            category=UpgradeCategory.ONE_TIME,
            base_cost=500,
            effect=Effect.flag(
                EffectType.MINIGAME_TIME_BONUS, 10, description="+{value}s time"
            ),
        ),
        # Consumables
        UpgradeDef(
            id="training-manual",
            display_name="Training Manual",
            description="Study hacking techniques. Grants +1 TP per purchase.",
            base_cost=10,
            growth_rate=1,
            grant_resource=TP,
            grant_amount=1,
        ),
        # Hardware
        UpgradeDef(
            id="book-summarizer",
            display_name="Book Summarizer",
            description=(
                "AI-powered tool that summarizes training materials. "
                "Every 60s, converts $10 into TP equal to upgrade level."
            ),
            category=UpgradeCategory.DUAL_CURRENCY,
            base_cost=100,
            growth_rate="1.5",
            secondary_resource=TP,
            secondary_base_cost=10,
            secondary_growth_rate="1.5",
            max_level=10,
            enables_automation="book-summarizer",
        ),
        # Code Runner
        _minigame_upgrade(
            "gap-expander", "Gap Expander",
            "Widens the gap in code walls.",
            "code-runner", 10, 5, EffectType.GAP_WIDTH_BONUS, "10", "+{value}px gap width",
        ),
        _minigame_upgrade(
            "buffer-overflow", "Buffer Overflow",
            "Overflows the code buffer, adding more space between walls.",
            "code-runner", 10, 10, EffectType.WALL_SPACING_BONUS, "15", "+{value}px wall spacing",
        ),
        _minigame_upgrade(
            "overclock", "Overclock",
            "Overclocks your processor for faster reflexes.",
            "code-runner", 10, 5, EffectType.MOVE_SPEED_BONUS, "25", "+{value}px/s move speed",
        ),
        _minigame_upgrade(
            "central-router", "Central Router",
            "Routes data packets through central channels, making gaps appear closer to the middle.",
            "code-runner", 100, 50, EffectType.CENTER_BIAS, "0.3", "{percent} center bias",
            max_level=3,
        ),
        # Code Breaker
        _minigame_upgrade(
            "timing-exploit", "Timing Exploit",
            "Exploits clock synchronization flaws to buy more time for each code.",
            "code-breaker", 10, 10, EffectType.TIME_BONUS, "500", "+{value}ms per code",
            max_level=10,
        ),
        _minigame_upgrade(
            "entropy-reducer", "Entropy Reducer",
            "Pre-analyzes encryption patterns so codes start shorter.",
            "code-breaker", 100, 100, EffectType.CODE_LENGTH_REDUCTION, "1",
            "-{value} starting length",
            max_level=4,
        ),
        # Botnet Defense
        _minigame_upgrade(
            "payload-amplifier", "Payload Amplifier",
            "Injects more potent payloads into your attacks.",
            "botnet-defense", 10, 10, EffectType.DAMAGE_MULTIPLIER_BONUS, "0.1",
            "+{percent} damage",
            max_level=10,
        ),
        _minigame_upgrade(
            "redundant-systems", "Redundant Systems",
            "Adds backup systems to your network node.",
            "botnet-defense", 100, 100, EffectType.HEALTH_BONUS, "1", "+{value} HP",
            max_level=10,
        ),
    ]

    automations = [
        AutomationDef(
            id="book-summarizer",
            display_name="Book Summarizer",
            description="Converts $10 into TP every 60 seconds.",
            interval_ms=60_000,
            enabled_by_upgrade="book-summarizer",
            action=summarize_books,
        ),
    ]

    return GameDefinition(
        name="Hacker Incremental",
        config=config or EngineConfig(),
        minigames=minigames,
        upgrades=upgrades,
        automations=automations,
    )
