from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from idlecore.bignum import BigNum
from idlecore.clock import wall_clock_ms
from idlecore.currency import Resource
from idlecore.formatting import format_duration
from idlecore.pipeline import calculate_generation_over_time

if TYPE_CHECKING:
    from idlecore.runtime import GameRuntime

logger = logging.getLogger(__name__)

# Absences shorter than this are ignored entirely.
MIN_OFFLINE_SECONDS = 1


@dataclass(frozen=True)
class OfflineProgressResult:
    """Catch-up award for the time the game was closed.

    ``elapsed_seconds`` is the capped time that earned anything;
    ``total_seconds_away`` is the real absence.
    """

    was_calculated: bool = False
    should_show_modal: bool = False
    was_capped: bool = False
    elapsed_seconds: float = 0.0
    total_seconds_away: float = 0.0
    efficiency: float = 0.0
    earnings: dict[Resource, BigNum] = field(default_factory=dict)
    automation_triggers: dict[str, int] = field(default_factory=dict)
    formatted_time_away: str = ""
    calculated_at: float = 0.0


EMPTY_RESULT = OfflineProgressResult()


def calculate_offline_progress(
    runtime: GameRuntime,
    last_played: float | None = None,
    now: float | None = None,
) -> OfflineProgressResult:
    """Work out what the player earned while away, without applying it."""
    state = runtime.state
    config = runtime.config
    if not state.settings.offline_progress_enabled:
        return EMPTY_RESULT

    last = state.last_played if last_played is None else last_played
    if not last:
        return EMPTY_RESULT
    now = wall_clock_ms() if now is None else now

    total_seconds = max(0.0, (now - last) / 1000)
    if total_seconds < MIN_OFFLINE_SECONDS:
        return EMPTY_RESULT

    was_capped = total_seconds > config.max_offline_seconds
    effective = min(total_seconds, config.max_offline_seconds)
    efficiency = config.offline_efficiency
    eff = BigNum.from_float(efficiency)

    earnings: dict[Resource, BigNum] = {}
    for resource, rate in runtime.get_all_rates().items():
        amount = calculate_generation_over_time(rate, float(effective)).mul(eff)
        if amount.is_positive():
            earnings[resource] = amount

    triggers = runtime.automations.offline_triggers(state, effective * 1000, efficiency)

    return OfflineProgressResult(
        was_calculated=True,
        should_show_modal=total_seconds >= config.modal_min_seconds,
        was_capped=was_capped,
        elapsed_seconds=effective,
        total_seconds_away=total_seconds,
        efficiency=efficiency,
        earnings=earnings,
        automation_triggers=triggers,
        formatted_time_away=format_duration(total_seconds),
        calculated_at=now,
    )


def apply_offline_progress(
    runtime: GameRuntime, result: OfflineProgressResult | None
) -> bool:
    """Credit a calculated result to the ledger. Returns whether anything was applied.

    A ``None`` or uncalculated result is a no-op, which is what makes a
    cleared pending result safe to apply twice.
    """
    if result is None or not result.was_calculated:
        return False

    state = runtime.state
    for resource, amount in result.earnings.items():
        if amount.is_positive():
            state.ledger.add(resource, amount)
    executed = runtime.automations.run_offline(
        state, result.automation_triggers, result.calculated_at
    )
    state.add_offline_time(result.elapsed_seconds * 1000)

    logger.info(
        "Applied offline progress: away %s (%.0fs effective%s), earned %s",
        result.formatted_time_away,
        result.elapsed_seconds,
        ", capped" if result.was_capped else "",
        {r.value: str(a) for r, a in result.earnings.items()},
    )
    if executed:
        logger.info("Offline automation runs: %s", executed)
    return True


def process_offline_progress(
    runtime: GameRuntime, now: float | None = None
) -> OfflineProgressResult:
    """Calculate, and apply at once when the absence is too short for a modal."""
    result = calculate_offline_progress(runtime, now=now)
    if result.was_calculated and not result.should_show_modal:
        apply_offline_progress(runtime, result)
    return result


def preview_offline_earnings(
    runtime: GameRuntime, seconds: float
) -> dict[Resource, tuple[BigNum, BigNum]]:
    """Raw and efficiency-adjusted earnings for a hypothetical absence."""
    capped = min(seconds, runtime.config.max_offline_seconds)
    eff = BigNum.from_float(runtime.config.offline_efficiency)
    preview: dict[Resource, tuple[BigNum, BigNum]] = {}
    for resource, rate in runtime.get_all_rates().items():
        raw = calculate_generation_over_time(rate, float(capped))
        preview[resource] = (raw, raw.mul(eff))
    return preview


class OfflineProgressSession:
    """Holds a result awaiting the player's confirmation.

    ``confirm`` clears the pending result before applying it, so a second
    confirmation (a double click on the modal) awards nothing.
    """

    def __init__(self, runtime: GameRuntime) -> None:
        self.runtime = runtime
        self.pending: OfflineProgressResult | None = None

    def begin(self, now: float | None = None) -> OfflineProgressResult:
        if self.pending is not None:
            logger.warning("Offline progress already pending; keeping the first result")
            return self.pending
        result = process_offline_progress(self.runtime, now=now)
        if result.should_show_modal:
            self.pending = result
        return result

    def confirm(self) -> bool:
        result, self.pending = self.pending, None
        if result is None:
            logger.warning("No pending offline progress to confirm")
        return apply_offline_progress(self.runtime, result)

    def discard(self) -> None:
        self.pending = None
