"""MCP server wrapping GameRuntime for interactive AI playtesting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from mcp.server.fastmcp import FastMCP

from idlecore.bignum import BigNum
from idlecore.clock import ManualScheduler
from idlecore.currency import Resource
from idlecore.definition import GameDefinition
from idlecore.errors import InvalidNumberError
from idlecore.export import export_save
from idlecore.formatting import format_number, format_rate, format_resource, format_time
from idlecore.offline import preview_offline_earnings
from idlecore.runtime import GameRuntime
from idlecore.tick import TickEngine
from idlecore.upgrade import UpgradeStatus

# Maximum seconds per wait() call (24 hours)
_MAX_WAIT = 86400
# Maximum levels per purchase() call
_MAX_BULK = 100


@dataclass
class _GameHolder:
    """Holds the active runtime and the simulated clock driving it."""

    definition: GameDefinition
    runtime: GameRuntime
    scheduler: ManualScheduler
    engine: TickEngine


def _new_holder(definition: GameDefinition, runtime: GameRuntime | None = None) -> _GameHolder:
    runtime = runtime or GameRuntime(definition)
    # One frame per clamped delta; wait() covers long spans without dropping time.
    scheduler = ManualScheduler(frame_ms=definition.config.max_delta_ms)
    engine = TickEngine(runtime, scheduler)
    engine.start()
    # The first frame only sets the delta baseline.
    scheduler.advance(scheduler.frame_ms)
    return _GameHolder(definition, runtime, scheduler, engine)


def _amounts(amounts: dict[Resource, BigNum]) -> dict[str, str]:
    return {r.value: str(a) for r, a in amounts.items()}


def _parse_resource(name: str) -> Resource | None:
    try:
        return Resource(name)
    except ValueError:
        return None


def _status_dict(status: UpgradeStatus, time_to_afford: float | None) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "id": status.id,
        "display_name": status.display_name,
        "category": status.category.value,
        "level": status.level,
        "next_cost": _amounts(status.next_cost),
        "affordable": status.can_afford,
        "maxed": status.is_maxed,
        "effect": status.effect_description,
        "time_to_afford": round(time_to_afford, 2) if time_to_afford is not None else None,
    }
    if status.max_level:
        entry["max_level"] = status.max_level
    if status.minigame_id is not None:
        entry["minigame_id"] = status.minigame_id
    return entry


# ── Tool logic functions (testable without MCP protocol) ────────────


def _tool_get_game_info(holder: _GameHolder) -> dict[str, Any]:
    defn = holder.definition
    return {
        "name": defn.name,
        "resources": [r.value for r in Resource],
        "minigames": [
            {
                "id": m.id,
                "display_name": m.display_name,
                "primary_resource": m.primary_resource.value,
                "generates_passive_income": m.id in defn.config.generating_minigames,
            }
            for m in defn.minigames
        ],
        "upgrades": [
            {"id": u.id, "display_name": u.display_name, "minigame_id": u.minigame_id}
            for u in defn.upgrades
        ],
        "automations": [
            {"id": a.id, "display_name": a.display_name, "interval_ms": a.interval_ms}
            for a in defn.automations
        ],
    }


def _tool_get_game_state(holder: _GameHolder) -> dict[str, Any]:
    runtime = holder.runtime
    state = runtime.get_state()
    resources = {}
    for resource in Resource:
        rate = runtime.get_current_rate(resource)
        resources[resource.value] = {
            "current": str(state.ledger.get(resource)),
            "display": format_resource(resource, state.ledger.get(resource)),
            "lifetime": str(state.ledger.lifetime(resource)),
            "rate": str(rate),
            "rate_display": format_rate(rate),
        }
    minigames = {
        mid: {
            "unlocked": rec.unlocked,
            "top_scores": [str(s) for s in rec.top_scores],
            "play_count": rec.play_count,
        }
        for mid, rec in state.minigames.items()
    }
    return {
        "player_name": state.player_name,
        "play_time": format_time(state.stats.total_play_time_ms / 1000),
        "resources": resources,
        "minigames": minigames,
        "automations": {
            aid: {"enabled": auto.enabled} for aid, auto in state.automations.items()
        },
    }


def _tool_get_upgrades(
    holder: _GameHolder, minigame_id: str | None = None
) -> dict[str, Any]:
    if minigame_id is not None and holder.definition.get_minigame(minigame_id) is None:
        return {"error": f"Unknown minigame: {minigame_id!r}"}
    runtime = holder.runtime
    return {
        "upgrades": [
            _status_dict(s, runtime.compute_time_to_afford(s.id))
            for s in runtime.get_all_display_info(minigame_id)
        ]
    }


def _tool_get_upgrade_info(holder: _GameHolder, upgrade_id: str) -> dict[str, Any]:
    udef = holder.definition.get_upgrade(upgrade_id)
    if udef is None:
        return {"error": f"Unknown upgrade: {upgrade_id!r}"}
    runtime = holder.runtime
    status = runtime.get_display_info(upgrade_id)
    result = _status_dict(status, runtime.compute_time_to_afford(upgrade_id))
    result["description"] = udef.description
    result["max_affordable"] = runtime.max_affordable(upgrade_id)
    if udef.effect is not None:
        result["effect_type"] = udef.effect.type.value
        result["effect_value"] = str(udef.effect.evaluate(status.level))
    if udef.enables_automation is not None:
        result["enables_automation"] = udef.enables_automation
    return result


def _tool_purchase(holder: _GameHolder, upgrade_id: str, count: int = 1) -> dict[str, Any]:
    if count < 1:
        return {"error": "Count must be at least 1"}
    if count > _MAX_BULK:
        return {"error": f"Count cannot exceed {_MAX_BULK}"}
    if holder.definition.get_upgrade(upgrade_id) is None:
        return {"error": f"Unknown upgrade: {upgrade_id!r}"}

    result = holder.runtime.try_purchase(upgrade_id, count)
    if not result.success:
        return {"success": False, "reason": result.reason}
    return {
        "success": True,
        "upgrade_id": upgrade_id,
        "new_level": result.new_level,
        "cost_paid": _amounts(result.cost_paid),
    }


def _tool_report_score(holder: _GameHolder, minigame_id: str, score: str) -> dict[str, Any]:
    try:
        value = BigNum(score)
    except InvalidNumberError:
        return {"error": f"Score is not a number: {score!r}"}
    if value.is_negative():
        return {"error": "Score must not be negative"}

    runtime = holder.runtime
    before = runtime.get_current_rate(Resource.MONEY)
    if not runtime.report_score(minigame_id, value):
        return {"success": False, "reason": f"Minigame {minigame_id!r} is unknown or locked"}
    runtime.increment_play_count(minigame_id)
    record = runtime.state.minigames[minigame_id]
    return {
        "success": True,
        "top_scores": [str(s) for s in record.top_scores],
        "money_rate_before": str(before),
        "money_rate_after": str(runtime.get_current_rate(Resource.MONEY)),
    }


def _tool_wait(holder: _GameHolder, seconds: float) -> dict[str, Any]:
    if seconds <= 0:
        return {"error": "Seconds must be positive"}
    if seconds > _MAX_WAIT:
        return {"error": f"Cannot wait more than {_MAX_WAIT} seconds (24h) per call"}

    ledger = holder.runtime.state.ledger
    before = {r: ledger.get(r) for r in Resource}
    holder.scheduler.advance(seconds * 1000)
    return {
        "waited": seconds,
        "earned": {r.value: str(ledger.get(r).sub(before[r])) for r in Resource},
        "balances": {r.value: format_resource(r, ledger.get(r)) for r in Resource},
    }


def _tool_get_generation_breakdown(holder: _GameHolder, resource: str = "money") -> dict[str, Any]:
    res = _parse_resource(resource)
    if res is None:
        return {"error": f"Unknown resource: {resource!r}"}
    breakdown = holder.runtime.get_generation_breakdown(res)
    return {
        "resource": res.value,
        "contributions": {mid: str(v) for mid, v in breakdown.contributions.items()},
        "base_rate": str(breakdown.base_rate),
        "multiplier": str(breakdown.multiplier),
        "final_rate": str(breakdown.final_rate),
        "final_rate_display": format_rate(breakdown.final_rate),
    }


def _tool_preview_offline(holder: _GameHolder, seconds: float) -> dict[str, Any]:
    if seconds < 0:
        return {"error": "Seconds must not be negative"}
    config = holder.definition.config
    preview = preview_offline_earnings(holder.runtime, seconds)
    return {
        "seconds": seconds,
        "capped": seconds > config.max_offline_seconds,
        "efficiency": config.offline_efficiency,
        "earnings": {
            r.value: {"raw": str(raw), "adjusted": str(adjusted), "display": format_number(adjusted)}
            for r, (raw, adjusted) in preview.items()
        },
    }


def _tool_export_save(holder: _GameHolder) -> dict[str, Any]:
    return {"export": export_save(holder.runtime.state)}


def _tool_new_game(holder: _GameHolder, player_name: str = "") -> dict[str, Any]:
    holder.engine.destroy()
    fresh = _new_holder(holder.definition)
    fresh.runtime.state.player_name = player_name
    holder.runtime = fresh.runtime
    holder.scheduler = fresh.scheduler
    holder.engine = fresh.engine
    return {"success": True, "message": "Game reset to initial state"}


# ── Server factory ──────────────────────────────────────────────────


def create_server(definition: GameDefinition) -> FastMCP:
    """Create an MCP server wrapping a GameRuntime for the given definition."""
    holder = _new_holder(definition)

    mcp = FastMCP(
        name=f"idlecore: {definition.name}",
    )

    @mcp.tool()
    def get_game_info() -> dict[str, Any]:
        """Get static game overview: resources, minigames, upgrades, automations."""
        return _tool_get_game_info(holder)

    @mcp.tool()
    def get_game_state() -> dict[str, Any]:
        """Get current balances, rates, minigame records and automation flags."""
        return _tool_get_game_state(holder)

    @mcp.tool()
    def get_upgrades(minigame_id: str | None = None) -> dict[str, Any]:
        """List global upgrades, or one minigame's upgrades, with costs and time-to-afford."""
        return _tool_get_upgrades(holder, minigame_id)

    @mcp.tool()
    def get_upgrade_info(upgrade_id: str) -> dict[str, Any]:
        """Get detailed info for a single upgrade: cost, effect, max affordable levels."""
        return _tool_get_upgrade_info(holder, upgrade_id)

    @mcp.tool()
    def purchase(upgrade_id: str, count: int = 1) -> dict[str, Any]:
        """Buy one or more levels of an upgrade (max 100). All or nothing."""
        return _tool_purchase(holder, upgrade_id, count)

    @mcp.tool()
    def report_score(minigame_id: str, score: str) -> dict[str, Any]:
        """Record a finished minigame run's score (decimal string)."""
        return _tool_report_score(holder, minigame_id, score)

    @mcp.tool()
    def wait(seconds: float) -> dict[str, Any]:
        """Advance game time by the given seconds (max 86400) of active play."""
        return _tool_wait(holder, seconds)

    @mcp.tool()
    def get_generation_breakdown(resource: str = "money") -> dict[str, Any]:
        """Show how a resource's passive rate is built from top scores and multipliers."""
        return _tool_get_generation_breakdown(holder, resource)

    @mcp.tool()
    def preview_offline(seconds: float) -> dict[str, Any]:
        """Estimate earnings for an absence of the given length."""
        return _tool_preview_offline(holder, seconds)

    @mcp.tool()
    def export_save() -> dict[str, Any]:
        """Export the current game as a portable save string."""
        return _tool_export_save(holder)

    @mcp.tool()
    def new_game(player_name: str = "") -> dict[str, Any]:
        """Reset the game to initial state."""
        return _tool_new_game(holder, player_name)

    return mcp
