from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from idlecore.bignum import ZERO, BigNum
from idlecore.clock import wall_clock_ms
from idlecore.currency import Resource
from idlecore.errors import IdleCoreError
from idlecore.export import export_save, import_save
from idlecore.persistence.serialize import dumps, loads
from idlecore.persistence.storage import StorageAdapter
from idlecore.state import GameState

if TYPE_CHECKING:
    from idlecore.clock import Scheduler
    from idlecore.runtime import GameRuntime

logger = logging.getLogger(__name__)

NO_SLOT = -1


@dataclass(frozen=True)
class SaveSlotMetadata:
    """Summary of a slot for slot pickers; derived from the stored save."""

    slot_index: int
    is_empty: bool = True
    is_corrupt: bool = False
    player_name: str = ""
    last_played: float = 0
    total_play_time_ms: float = 0
    money: BigNum = ZERO


@dataclass(frozen=True)
class SaveResult:
    success: bool
    slot_index: int
    error: str = ""


@dataclass(frozen=True)
class LoadResult:
    success: bool
    slot_index: int
    state: GameState | None = None
    seconds_since_last_play: float = 0.0
    error: str = ""


class SaveManager:
    """Slot-based persistence for a runtime's state.

    Failures never propagate: every operation returns a result record and
    leaves the runtime's current state alone when it fails.
    """

    def __init__(
        self,
        runtime: GameRuntime,
        storage: StorageAdapter,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.runtime = runtime
        self.storage = storage
        self.scheduler = scheduler
        self.config = runtime.config
        self.active_slot = NO_SLOT
        self._now: Callable[[], float] = (
            scheduler.wall_time if scheduler is not None else wall_clock_ms
        )
        self._initialized = False
        self._destroyed = False
        self._auto_save_handle: Any = None
        self._auto_save_generation = 0

    # ── Lifecycle ────────────────────────────────────────────────────

    def init(self) -> list[SaveSlotMetadata]:
        """Scan the slots once. A second call is logged and ignored."""
        if self._initialized:
            logger.warning("Save manager already initialized")
            return self.get_all_slot_metadata()
        self._initialized = True
        slots = self.get_all_slot_metadata()
        used = [m.slot_index for m in slots if not m.is_empty]
        logger.info("Save manager ready; %d of %d slots in use", len(used), len(slots))
        return slots

    def destroy(self) -> None:
        if self._destroyed:
            return
        self.stop_auto_save()
        self._destroyed = True
        logger.info("Save manager destroyed")

    # ── Slots ────────────────────────────────────────────────────────

    def slot_key(self, slot_index: int) -> str:
        return f"{self.config.storage_key_prefix}-slot-{slot_index}"

    def is_valid_slot(self, slot_index: int) -> bool:
        return 0 <= slot_index < self.config.max_save_slots

    def set_active_slot(self, slot_index: int) -> bool:
        if not self.is_valid_slot(slot_index):
            return False
        self.active_slot = slot_index
        return True

    def has_slot_data(self, slot_index: int) -> bool:
        if not self.is_valid_slot(slot_index):
            return False
        try:
            return self.storage.has_item(self.slot_key(slot_index))
        except IdleCoreError as exc:
            logger.warning("Could not check slot %d: %s", slot_index, exc)
            return False

    def get_slot_metadata(self, slot_index: int) -> SaveSlotMetadata:
        try:
            raw = self.storage.get_item(self.slot_key(slot_index))
        except IdleCoreError as exc:
            logger.warning("Could not read slot %d: %s", slot_index, exc)
            return SaveSlotMetadata(slot_index, is_empty=False, is_corrupt=True)
        if raw is None:
            return SaveSlotMetadata(slot_index)
        try:
            state = loads(raw)
        except IdleCoreError:
            return SaveSlotMetadata(slot_index, is_empty=False, is_corrupt=True)
        return SaveSlotMetadata(
            slot_index=slot_index,
            is_empty=False,
            player_name=state.player_name,
            last_played=state.last_played,
            total_play_time_ms=state.stats.total_play_time_ms,
            money=state.ledger.get(Resource.MONEY),
        )

    def get_all_slot_metadata(self) -> list[SaveSlotMetadata]:
        return [self.get_slot_metadata(i) for i in range(self.config.max_save_slots)]

    def delete_slot(self, slot_index: int) -> bool:
        if not self.is_valid_slot(slot_index):
            return False
        try:
            self.storage.remove_item(self.slot_key(slot_index))
        except IdleCoreError as exc:
            logger.warning("Could not delete slot %d: %s", slot_index, exc)
            return False
        if self.active_slot == slot_index:
            self.active_slot = NO_SLOT
        logger.info("Deleted slot %d", slot_index)
        return True

    # ── Save / load ──────────────────────────────────────────────────

    def save(self, slot_index: int | None = None) -> SaveResult:
        slot = self.active_slot if slot_index is None else slot_index
        if not self.is_valid_slot(slot):
            return SaveResult(False, slot, f"Invalid slot index: {slot}")

        state = self.runtime.state
        now = int(self._now())
        state.last_saved = now
        state.last_played = now
        try:
            self.storage.set_item(self.slot_key(slot), dumps(state))
        except IdleCoreError as exc:
            logger.warning("Save to slot %d failed: %s", slot, exc)
            return SaveResult(False, slot, str(exc))
        self.active_slot = slot
        logger.info("Saved to slot %d", slot)
        return SaveResult(True, slot)

    def quick_save(self) -> SaveResult:
        if self.active_slot == NO_SLOT:
            return SaveResult(False, NO_SLOT, "No active slot")
        return self.save(self.active_slot)

    def load(self, slot_index: int) -> LoadResult:
        if not self.is_valid_slot(slot_index):
            return LoadResult(False, slot_index, error=f"Invalid slot index: {slot_index}")
        try:
            raw = self.storage.get_item(self.slot_key(slot_index))
        except IdleCoreError as exc:
            logger.warning("Load from slot %d failed: %s", slot_index, exc)
            return LoadResult(False, slot_index, error=str(exc))
        if raw is None:
            return LoadResult(False, slot_index, error="No save data found")
        try:
            state = loads(raw)
        except IdleCoreError as exc:
            logger.warning("Slot %d holds an unusable save: %s", slot_index, exc)
            return LoadResult(False, slot_index, error=f"Save data failed validation: {exc}")
        return self._adopt(state, slot_index)

    def start_new_game(self, slot_index: int, player_name: str = "") -> SaveResult:
        if not self.is_valid_slot(slot_index):
            return SaveResult(False, slot_index, f"Invalid slot index: {slot_index}")
        self.runtime.new_game(player_name)
        self.active_slot = slot_index
        return self.save(slot_index)

    def save_on_hide(self) -> SaveResult | None:
        """Flush when the game is hidden or closing."""
        if self._destroyed or self.active_slot == NO_SLOT:
            return None
        return self.quick_save()

    # ── Export / import ──────────────────────────────────────────────

    def export_save(self) -> str:
        return export_save(self.runtime.state)

    def import_save(self, text: str, target_slot: int | None = None) -> LoadResult:
        """Import an exported string into *target_slot*, or the first empty slot."""
        if target_slot is None:
            empty = [m.slot_index for m in self.get_all_slot_metadata() if m.is_empty]
            if not empty:
                return LoadResult(False, NO_SLOT, error="All slots are full")
            slot = empty[0]
        elif not self.is_valid_slot(target_slot):
            return LoadResult(False, target_slot, error=f"Invalid slot index: {target_slot}")
        else:
            slot = target_slot

        try:
            state = import_save(text)
        except IdleCoreError as exc:
            logger.warning("Import rejected: %s", exc)
            return LoadResult(False, slot, error=f"Imported data failed validation: {exc}")

        previous_state, previous_slot = self.runtime.state, self.active_slot
        result = self._adopt(state, slot)
        saved = self.save(slot)
        if not saved.success:
            # The import only counts once it is on disk.
            self.runtime.load_state(previous_state)
            self.active_slot = previous_slot
            return LoadResult(False, slot, error=saved.error)
        logger.info("Imported save into slot %d", slot)
        return result

    # ── Auto-save ────────────────────────────────────────────────────

    def start_auto_save(self, interval_ms: int | None = None) -> bool:
        if self.scheduler is None:
            raise RuntimeError("Auto-save needs a scheduler")
        if self._auto_save_handle is not None:
            logger.warning("Auto-save already running")
            return False
        interval = interval_ms or self.config.auto_save_interval_ms
        self._auto_save_generation += 1
        self._schedule_auto_save(self._auto_save_generation, interval)
        return True

    def stop_auto_save(self) -> None:
        if self._auto_save_handle is None:
            return
        if self.scheduler is not None:
            self.scheduler.cancel(self._auto_save_handle)
        self._auto_save_handle = None
        self._auto_save_generation += 1

    @property
    def auto_save_running(self) -> bool:
        return self._auto_save_handle is not None

    def _schedule_auto_save(self, generation: int, interval: int) -> None:
        def run() -> None:
            if generation != self._auto_save_generation or self._destroyed:
                return
            if self.active_slot != NO_SLOT:
                result = self.quick_save()
                if result.success:
                    logger.debug("Auto-save completed")
            self._schedule_auto_save(generation, interval)

        self._auto_save_handle = self.scheduler.schedule_next(run, interval)

    # ── Private helpers ──────────────────────────────────────────────

    def _adopt(self, state: GameState, slot_index: int) -> LoadResult:
        now = self._now()
        seconds_away = max(0.0, (now - state.last_played) / 1000) if state.last_played else 0.0
        self.runtime.load_state(state)
        self.active_slot = slot_index
        logger.info("Loaded slot %d (version %s)", slot_index, state.version)
        return LoadResult(
            True,
            slot_index,
            state=state,
            seconds_since_last_play=seconds_away,
        )
