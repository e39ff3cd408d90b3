from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Callable, Mapping

from idlecore.bignum import ZERO, BigNum
from idlecore.currency import Resource

if TYPE_CHECKING:
    from idlecore.clock import Scheduler
    from idlecore.runtime import GameRuntime

logger = logging.getLogger(__name__)

RateCallback = Callable[[dict[Resource, BigNum]], None]


class TickPhase(Enum):
    STOPPED = auto()
    RUNNING = auto()
    PAUSED = auto()


@dataclass(frozen=True)
class TickState:
    """Everything the tick loop carries between frames.

    ``epoch`` changes on every start and stop so a callback queued by an
    earlier run can tell it is stale.
    """

    phase: TickPhase = TickPhase.STOPPED
    last_frame_ms: float | None = None
    accumulators: Mapping[Resource, BigNum] = field(default_factory=dict)
    since_display_ms: float = 0.0
    epoch: int = 0


# ── Pure transitions ─────────────────────────────────────────────────


def start(state: TickState) -> TickState:
    if state.phase is not TickPhase.STOPPED:
        return state
    return TickState(phase=TickPhase.RUNNING, epoch=state.epoch + 1)


def stop(state: TickState) -> TickState:
    if state.phase is TickPhase.STOPPED:
        return state
    return replace(state, phase=TickPhase.STOPPED, last_frame_ms=None, epoch=state.epoch + 1)


def pause(state: TickState) -> TickState:
    if state.phase is not TickPhase.RUNNING:
        return state
    return replace(state, phase=TickPhase.PAUSED)


def resume(state: TickState) -> TickState:
    if state.phase is not TickPhase.PAUSED:
        return state
    # Time spent paused is not generation time.
    return replace(state, phase=TickPhase.RUNNING, last_frame_ms=None)


def frame_delta(state: TickState, now_ms: float, max_delta_ms: float) -> tuple[float, TickState]:
    """Clamped milliseconds since the previous frame, and the re-baselined state."""
    if state.last_frame_ms is None:
        delta = 0.0
    else:
        delta = min(max(now_ms - state.last_frame_ms, 0.0), max_delta_ms)
    return delta, replace(state, last_frame_ms=now_ms)


def accumulate(
    state: TickState, rates: Mapping[Resource, BigNum], delta_ms: float
) -> tuple[TickState, dict[Resource, BigNum]]:
    """Add ``rate * delta`` to each fractional balance and split off whole units.

    Returns the new state and the whole units to commit per resource.
    """
    if delta_ms <= 0:
        return state, {}
    delta_s = BigNum.from_float(delta_ms).div(1000)
    accumulators = dict(state.accumulators)
    commits: dict[Resource, BigNum] = {}
    for resource, rate in rates.items():
        if not rate.is_positive():
            continue
        total = accumulators.get(resource, ZERO).add(rate.mul(delta_s))
        whole = total.floor()
        if whole.is_positive():
            commits[resource] = whole
            total = total.sub(whole)
        accumulators[resource] = total
    return replace(state, accumulators=accumulators), commits


def advance_display(
    state: TickState, delta_ms: float, interval_ms: float
) -> tuple[TickState, bool]:
    """Advance the display timer; True when a rate publication is due.

    The overshoot past the interval carries into the next period.
    """
    elapsed = state.since_display_ms + delta_ms
    if elapsed >= interval_ms:
        return replace(state, since_display_ms=elapsed % interval_ms), True
    return replace(state, since_display_ms=elapsed), False


# ── Engine ───────────────────────────────────────────────────────────


class TickEngine:
    """Integrates passive generation into the ledger on a scheduler.

    Generation is accumulated in fractional form and committed to the ledger
    in whole units only, so balances and lifetime counters stay integral.
    """

    def __init__(self, runtime: GameRuntime, scheduler: Scheduler) -> None:
        self.runtime = runtime
        self.scheduler = scheduler
        self._state = TickState()
        self._handle: Any = None
        self._subscribers: dict[int, RateCallback] = {}
        self._next_subscriber = 0
        self._last_published: dict[Resource, BigNum] | None = None
        self._destroyed = False

    # ── Lifecycle ────────────────────────────────────────────────────

    @property
    def tick_state(self) -> TickState:
        return self._state

    @property
    def phase(self) -> TickPhase:
        return self._state.phase

    def is_running(self) -> bool:
        return self._state.phase is not TickPhase.STOPPED

    def is_paused(self) -> bool:
        return self._state.phase is TickPhase.PAUSED

    def start(self) -> None:
        if self._destroyed:
            logger.warning("Tick engine was destroyed; start ignored")
            return
        if self._state.phase is not TickPhase.STOPPED:
            logger.warning("Tick engine already running")
            return
        self._state = start(self._state)
        self._last_published = None
        self._schedule()
        logger.info("Tick engine started")

    def stop(self) -> None:
        if self._state.phase is TickPhase.STOPPED:
            return
        if self._handle is not None:
            self.scheduler.cancel(self._handle)
            self._handle = None
        self._state = stop(self._state)
        logger.info("Tick engine stopped")

    def pause(self) -> None:
        self._state = pause(self._state)

    def resume(self) -> None:
        self._state = resume(self._state)

    def destroy(self) -> None:
        self.stop()
        self._subscribers.clear()
        self._destroyed = True

    # ── Rate publication ─────────────────────────────────────────────

    def subscribe(self, callback: RateCallback) -> Callable[[], None]:
        """Receive rates on the display cadence. Returns an unsubscribe function."""
        key = self._next_subscriber
        self._next_subscriber += 1
        self._subscribers[key] = callback

        def unsubscribe() -> None:
            self._subscribers.pop(key, None)

        return unsubscribe

    def force_rate_update(self) -> None:
        """Publish current rates now, whether or not they changed."""
        self._publish(force=True)

    def _publish(self, force: bool) -> None:
        rates = self.runtime.get_all_rates()
        if not force and rates == self._last_published:
            return
        self._last_published = rates
        for callback in list(self._subscribers.values()):
            try:
                callback(dict(rates))
            except Exception:
                logger.exception("Rate subscriber %r failed", callback)

    # ── Loop ─────────────────────────────────────────────────────────

    def _schedule(self) -> None:
        epoch = self._state.epoch
        self._handle = self.scheduler.schedule_next(lambda: self._on_frame(epoch))

    def _on_frame(self, epoch: int) -> None:
        if epoch != self._state.epoch or self._state.phase is TickPhase.STOPPED:
            return
        try:
            self._run_frame()
        finally:
            # A failing frame must not end the loop.
            if epoch == self._state.epoch and self._state.phase is not TickPhase.STOPPED:
                self._schedule()

    def _run_frame(self) -> None:
        config = self.runtime.config
        delta, self._state = frame_delta(
            self._state, self.scheduler.now(), config.max_delta_ms
        )

        if self._state.phase is TickPhase.RUNNING and delta > 0:
            self._state, commits = accumulate(
                self._state, self.runtime.get_all_rates(), delta
            )
            ledger = self.runtime.state.ledger
            for resource, amount in commits.items():
                ledger.add(resource, amount)
            self.runtime.state.add_play_time(delta)
            self.runtime.run_subsystems(self.scheduler.wall_time())

        self._state, due = advance_display(self._state, delta, config.display_interval_ms)
        if due:
            self._publish(force=False)
