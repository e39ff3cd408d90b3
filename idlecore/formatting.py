from __future__ import annotations

from typing import TYPE_CHECKING

from idlecore.bignum import BigNum, NumberLike
from idlecore.currency import Resource

if TYPE_CHECKING:
    from idlecore.runtime import GameRuntime

SUFFIXES: tuple[str, ...] = (
    "", "K", "M", "B", "T", "Qa", "Qi", "Sx", "Sp", "Oc", "No", "Dc",
    "UDc", "DDc", "TDc", "QaDc", "QiDc", "SxDc", "SpDc", "OcDc", "NoDc", "Vg",
)

_RESOURCE_TEMPLATES: dict[Resource, str] = {
    Resource.MONEY: "${}",
    Resource.TECHNIQUE: "{} TP",
    Resource.RENOWN: "{} RP",
}


def format_number(value: NumberLike, precision: int = 2) -> str:
    """Format a number for display with a magnitude suffix.

    999 -> "999", 1234567 -> "1.23M", 1.5e15 -> "1.50Qa". Past the end of
    the suffix table the scientific form is used, as it is for non-zero
    values too small to show at *precision*.
    """
    n = BigNum(value)
    if n.is_zero():
        return "0"
    if n.is_negative():
        return "-" + format_number(n.neg(), precision)

    d = n.to_decimal()
    if d < 1000:
        rounded = round(d, precision)
        if rounded.is_zero():
            return format_scientific(n, precision)
        if rounded < 1000:
            if d == d.to_integral_value():
                return f"{int(d):,}"
            text = f"{rounded:,.{precision}f}"
            if "." in text:
                text = text.rstrip("0").rstrip(".")
            return text

    index = d.adjusted() // 3
    mantissa = d.scaleb(-3 * index)
    # 999.999K rounds up to the next suffix.
    if round(mantissa, precision) >= 1000:
        index += 1
        mantissa = d.scaleb(-3 * index)
    if index < len(SUFFIXES):
        return f"{mantissa:.{precision}f}{SUFFIXES[index]}"
    return format_scientific(n, precision)


def format_scientific(value: NumberLike, precision: int = 2) -> str:
    """Mantissa and base-10 exponent, e.g. "1.23e100"."""
    n = BigNum(value)
    if n.is_zero():
        return "0"
    d = n.to_decimal()
    exponent = d.adjusted()
    mantissa = d.scaleb(-exponent)
    if abs(round(mantissa, precision)) >= 10:
        exponent += 1
        mantissa = d.scaleb(-exponent)
    return f"{mantissa:.{precision}f}e{exponent}"


def format_percent(value: NumberLike, precision: int = 0) -> str:
    """0.15 -> "15%"."""
    d = BigNum(value).to_decimal() * 100
    return f"{d:.{precision}f}%"


def format_resource(resource: Resource, value: NumberLike) -> str:
    return _RESOURCE_TEMPLATES[resource].format(format_number(value))


def format_rate(value: NumberLike) -> str:
    return f"{format_number(value)}/sec"


def format_time(seconds: float) -> str:
    """Full duration with seconds: "2h 30m 15s"."""
    if seconds < 60:
        return f"{int(seconds)}s"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)

    parts: list[str] = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


def format_duration(seconds: float) -> str:
    """Coarse time-away text: "2h 30m", "2h", "45m", "30s"."""
    if seconds < 60:
        return f"{int(seconds)}s"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    if hours > 0:
        return f"{hours}h {minutes}m" if minutes > 0 else f"{hours}h"
    return f"{minutes}m"


def format_relative_time(timestamp_ms: float, now_ms: float) -> str:
    """How long ago *timestamp_ms* was: "Just now", "5m ago", "3d ago"."""
    elapsed = int((now_ms - timestamp_ms) // 1000)
    if elapsed < 60:
        return "Just now"
    minutes = elapsed // 60
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    days = hours // 24
    if days < 30:
        return f"{days}d ago"
    months = days // 30
    if months < 12:
        return f"{months}mo ago"
    return f"{months // 12}y ago"


def format_status_report(runtime: GameRuntime) -> str:
    """Format the current game state for console output."""
    state = runtime.state
    lines: list[str] = []

    title = f" {runtime.definition.name} "
    lines.append("=" * 20 + title + "=" * 20)
    if state.player_name:
        lines.append(f"Player: {state.player_name}")
    lines.append(f"Play time: {format_time(state.stats.total_play_time_ms / 1000)}")
    lines.append(
        f"Offline time: {format_time(state.stats.total_offline_time_ms / 1000)}"
    )
    lines.append("")

    lines.append("RESOURCES:")
    for resource in Resource:
        amount = format_resource(resource, state.ledger.get(resource))
        rate = format_rate(runtime.get_current_rate(resource))
        lines.append(f"  {resource.value:.<20s} {amount} ({rate})")
    lines.append("")

    lines.append("MINIGAMES:")
    for mdef in runtime.definition.minigames:
        record = state.minigames[mdef.id]
        status = "unlocked" if record.unlocked else "locked"
        best = format_number(record.top_scores[0]) if record.top_scores else "-"
        lines.append(
            f"  {mdef.id:.<20s} {status}, best {best}, played {record.play_count}x"
        )
    lines.append("")

    owned = [
        (udef, runtime.get_level(udef.id))
        for udef in runtime.definition.upgrades
        if runtime.get_level(udef.id) > 0
    ]
    lines.append("UPGRADES:")
    if owned:
        for udef, level in owned:
            lines.append(f"  {udef.display_name:.<30s} level {level}")
    else:
        lines.append("  (none)")

    return "\n".join(lines)
