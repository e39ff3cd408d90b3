"""Tests for the slot save manager."""
import logging

import pytest

from idlecore.catalog import define_game
from idlecore.clock import ManualScheduler
from idlecore.currency import Resource
from idlecore.errors import StorageError
from idlecore.persistence import MemoryStorage, SaveManager
from idlecore.runtime import GameRuntime

MONEY = Resource.MONEY
WALL_START = 1_700_000_000_000


class FailingStorage(MemoryStorage):
    def set_item(self, key, value):
        raise StorageError("write", key, "disk full")


@pytest.fixture
def scheduler():
    return ManualScheduler(wall_start_ms=WALL_START, frame_ms=1000)


@pytest.fixture
def manager(scheduler):
    runtime = GameRuntime(define_game())
    return SaveManager(runtime, MemoryStorage(), scheduler)


class TestSlots:
    def test_init_lists_empty_slots(self, manager):
        slots = manager.init()
        assert [m.slot_index for m in slots] == [0, 1, 2]
        assert all(m.is_empty for m in slots)

    def test_second_init_warns(self, manager, caplog):
        manager.init()
        with caplog.at_level(logging.WARNING):
            manager.init()
        assert "already initialized" in caplog.text

    def test_slot_key(self, manager):
        assert manager.slot_key(2) == "hacker-incremental-slot-2"

    def test_set_active_slot_validates(self, manager):
        assert not manager.set_active_slot(3)
        assert manager.set_active_slot(2)
        assert manager.active_slot == 2

    def test_metadata(self, manager):
        manager.runtime.state.player_name = "neo"
        manager.runtime.state.ledger.add(MONEY, 1234)
        manager.runtime.state.add_play_time(60_000)
        manager.save(1)
        meta = manager.get_slot_metadata(1)
        assert not meta.is_empty
        assert meta.player_name == "neo"
        assert meta.money == 1234
        assert meta.total_play_time_ms == 60_000
        assert meta.last_played == WALL_START
        assert manager.has_slot_data(1)
        assert not manager.has_slot_data(0)

    def test_corrupt_slot_metadata(self, manager):
        manager.storage.set_item(manager.slot_key(0), "{broken")
        meta = manager.get_slot_metadata(0)
        assert meta.is_corrupt
        assert not meta.is_empty

    def test_delete_slot(self, manager):
        manager.save(0)
        assert manager.delete_slot(0)
        assert manager.active_slot == -1
        assert not manager.has_slot_data(0)
        assert not manager.delete_slot(7)


class TestSaveLoad:
    def test_save_stamps_times(self, manager):
        result = manager.save(0)
        assert result.success
        assert manager.runtime.state.last_saved == WALL_START
        assert manager.runtime.state.last_played == WALL_START
        assert manager.active_slot == 0

    def test_save_invalid_slot(self, manager):
        result = manager.save(5)
        assert not result.success
        assert "Invalid slot index" in result.error

    def test_quick_save_needs_active_slot(self, manager):
        result = manager.quick_save()
        assert not result.success
        assert result.error == "No active slot"

    def test_storage_failure_is_reported(self, scheduler):
        manager = SaveManager(GameRuntime(define_game()), FailingStorage(), scheduler)
        result = manager.save(0)
        assert not result.success
        assert "disk full" in result.error

    def test_load_restores_state(self, manager, scheduler):
        manager.runtime.state.ledger.add(MONEY, 500)
        manager.runtime.report_score("code-breaker", 300)
        manager.save(0)
        manager.runtime.new_game()
        scheduler.jump(5_000)

        result = manager.load(0)
        assert result.success
        assert result.seconds_since_last_play == pytest.approx(5.0)
        assert manager.runtime.state is result.state
        assert manager.runtime.state.ledger.get(MONEY) == 500
        assert manager.runtime.get_current_rate(MONEY) == 3

    def test_load_empty_slot(self, manager):
        result = manager.load(1)
        assert not result.success
        assert result.error == "No save data found"

    def test_load_corrupt_slot_keeps_current_state(self, manager):
        before = manager.runtime.state
        manager.storage.set_item(manager.slot_key(0), '{"version": "3.0.0"}')
        result = manager.load(0)
        assert not result.success
        assert "failed validation" in result.error
        assert manager.runtime.state is before

    def test_load_out_of_range_timestamp_fails_closed(self, manager):
        manager.save(0)
        raw = manager.storage.get_item(manager.slot_key(0))
        manager.storage.set_item(
            manager.slot_key(0),
            raw.replace(f'"lastPlayed":{WALL_START}', f'"lastPlayed":{10**400}'),
        )
        before = manager.runtime.state
        result = manager.load(0)
        assert not result.success
        assert "out of range" in result.error
        assert manager.runtime.state is before

    def test_start_new_game(self, manager):
        manager.runtime.state.ledger.add(MONEY, 999)
        result = manager.start_new_game(1, "trinity")
        assert result.success
        assert manager.active_slot == 1
        assert manager.runtime.state.player_name == "trinity"
        assert manager.runtime.state.ledger.get(MONEY) == 0
        assert manager.get_slot_metadata(1).player_name == "trinity"


class TestExportImport:
    def test_import_into_first_empty_slot(self, manager):
        manager.runtime.state.player_name = "neo"
        manager.save(0)
        text = manager.export_save()

        result = manager.import_save(text)
        assert result.success
        assert result.slot_index == 1
        assert manager.active_slot == 1
        assert manager.get_slot_metadata(1).player_name == "neo"

    def test_import_when_full(self, manager):
        for slot in range(3):
            manager.save(slot)
        result = manager.import_save(manager.export_save())
        assert not result.success
        assert result.error == "All slots are full"

    def test_import_into_named_slot(self, manager):
        manager.runtime.state.ledger.add(MONEY, 42)
        text = manager.export_save()
        manager.runtime.new_game()
        result = manager.import_save(text, 2)
        assert result.success
        assert manager.runtime.state.ledger.get(MONEY) == 42

    def test_import_keeps_state_when_write_fails(self, manager, scheduler):
        manager.runtime.state.ledger.add(MONEY, 999)
        text = manager.export_save()

        failing = SaveManager(GameRuntime(define_game()), FailingStorage(), scheduler)
        failing.runtime.state.ledger.add(MONEY, 5)
        before = failing.runtime.state
        result = failing.import_save(text, 0)
        assert not result.success
        assert "disk full" in result.error
        assert failing.runtime.state is before
        assert failing.runtime.state.ledger.get(MONEY) == 5
        assert failing.active_slot == -1

    def test_import_garbage(self, manager):
        before = manager.runtime.state
        result = manager.import_save("!!! not base64 !!!")
        assert not result.success
        assert "failed validation" in result.error
        assert manager.runtime.state is before
        assert not manager.has_slot_data(0)


class TestAutoSave:
    def test_auto_save_runs_on_interval(self, manager, scheduler):
        manager.set_active_slot(0)
        assert manager.start_auto_save(5_000)
        scheduler.advance(4_999)
        assert not manager.has_slot_data(0)
        scheduler.advance(1)
        assert manager.has_slot_data(0)
        assert manager.auto_save_running

    def test_auto_save_keeps_rescheduling(self, manager, scheduler):
        manager.set_active_slot(0)
        manager.start_auto_save(5_000)
        scheduler.advance(15_000)
        assert manager.runtime.state.last_saved == WALL_START + 15_000

    def test_second_start_is_ignored(self, manager):
        assert manager.start_auto_save()
        assert not manager.start_auto_save()

    def test_stop(self, manager, scheduler):
        manager.set_active_slot(0)
        manager.start_auto_save(5_000)
        manager.stop_auto_save()
        assert not manager.auto_save_running
        scheduler.advance(10_000)
        assert not manager.has_slot_data(0)

    def test_needs_scheduler(self):
        manager = SaveManager(GameRuntime(define_game()), MemoryStorage())
        with pytest.raises(RuntimeError):
            manager.start_auto_save()


class TestShutdown:
    def test_save_on_hide(self, manager):
        assert manager.save_on_hide() is None
        manager.set_active_slot(0)
        assert manager.save_on_hide().success

    def test_destroy(self, manager, scheduler):
        manager.set_active_slot(0)
        manager.start_auto_save(5_000)
        manager.destroy()
        manager.destroy()
        assert not manager.auto_save_running
        assert manager.save_on_hide() is None
        scheduler.advance(10_000)
        assert not manager.has_slot_data(0)
