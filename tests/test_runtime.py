"""Tests for runtime module."""
import pytest

from idlecore.bignum import BigNum
from idlecore.catalog import define_game
from idlecore.currency import Resource
from idlecore.effect import EffectType
from idlecore.runtime import GameRuntime

MONEY = Resource.MONEY
TP = Resource.TECHNIQUE


@pytest.fixture
def runtime() -> GameRuntime:
    return GameRuntime(define_game())


class TestPurchase:
    def test_purchase_deducts_and_levels_up(self, runtime):
        runtime.state.ledger.add(MONEY, 100)
        assert runtime.purchase("auto-typer")
        assert runtime.get_level("auto-typer") == 1
        assert runtime.state.ledger.get(MONEY) == 0
        assert runtime.state.ledger.lifetime(MONEY) == 100
        assert runtime.next_cost("auto-typer") == {MONEY: BigNum(115)}

    def test_cannot_afford(self, runtime):
        runtime.state.ledger.add(MONEY, 99)
        result = runtime.try_purchase("auto-typer")
        assert not result.success
        assert result.reason == "Cannot afford"
        assert runtime.get_level("auto-typer") == 0
        assert runtime.state.ledger.get(MONEY) == 99

    def test_unknown_upgrade(self, runtime):
        result = runtime.try_purchase("warp-drive")
        assert not result.success
        assert "Unknown upgrade" in result.reason

    def test_bulk_purchase_is_atomic(self, runtime):
        runtime.state.ledger.add(MONEY, 214)
        assert not runtime.purchase_bulk("auto-typer", 2)
        assert runtime.get_level("auto-typer") == 0
        assert runtime.state.ledger.get(MONEY) == 214

        runtime.state.ledger.add(MONEY, 1)
        result = runtime.try_purchase("auto-typer", 2)
        assert result.success
        assert result.new_level == 2
        assert result.cost_paid == {MONEY: BigNum(215)}
        assert runtime.state.ledger.get(MONEY) == 0

    def test_one_time_upgrade_caps_at_one(self, runtime):
        runtime.state.ledger.add(MONEY, 1000)
        assert runtime.purchase("coffee-machine")
        result = runtime.try_purchase("coffee-machine")
        assert result.reason == "Already at max level"
        assert runtime.state.ledger.get(MONEY) == 500

    def test_bulk_beyond_max_level(self, runtime):
        runtime.state.ledger.add(TP, 10_000)
        result = runtime.try_purchase("central-router", 4)
        assert not result.success
        assert result.reason == "Only 3 level(s) left"
        assert runtime.try_purchase("central-router", 3).success
        assert runtime.state.ledger.get(TP) == 10_000 - (100 + 150 + 200)

    def test_minigame_upgrade_levels_live_in_minigame_record(self, runtime):
        runtime.state.ledger.add(TP, 10)
        assert runtime.purchase("gap-expander")
        assert runtime.state.minigames["code-runner"].upgrades == {"gap-expander": 1}
        assert "gap-expander" not in runtime.state.upgrades
        assert runtime.get_level("gap-expander") == 1

    def test_dual_currency_needs_both(self, runtime):
        runtime.state.ledger.add(MONEY, 1000)
        assert not runtime.purchase("book-summarizer")
        assert runtime.state.ledger.get(MONEY) == 1000

        runtime.state.ledger.add(TP, 10)
        assert runtime.purchase("book-summarizer")
        assert runtime.state.ledger.get(MONEY) == 900
        assert runtime.state.ledger.get(TP) == 0

    def test_enabling_upgrade_turns_automation_on(self, runtime):
        runtime.state.ledger.add(MONEY, 100)
        runtime.state.ledger.add(TP, 10)
        runtime.purchase("book-summarizer")
        auto = runtime.state.automations["book-summarizer"]
        assert auto.enabled
        assert auto.last_triggered == 0

    def test_grant_upgrade(self, runtime):
        runtime.state.ledger.add(MONEY, 20)
        assert runtime.purchase_bulk("training-manual", 2)
        assert runtime.state.ledger.get(TP) == 2
        assert runtime.state.ledger.get(MONEY) == 0
        assert runtime.get_level("training-manual") == 2

    def test_count_must_be_positive(self, runtime):
        assert not runtime.try_purchase("auto-typer", 0).success


class TestScores:
    def test_report_score_keeps_top_five(self, runtime):
        for score in [10, 50, 30, 70, 20, 60]:
            assert runtime.report_score("code-breaker", score)
        top = runtime.state.minigames["code-breaker"].top_scores
        assert top == [70, 60, 50, 30, 20]

    def test_unknown_minigame(self, runtime):
        assert not runtime.report_score("pong", 100)

    def test_locked_minigame(self, runtime):
        runtime.state.minigames["botnet-defense"].unlocked = False
        assert not runtime.report_score("botnet-defense", 100)
        assert runtime.unlock_minigame("botnet-defense")
        assert runtime.is_unlocked("botnet-defense")
        assert runtime.report_score("botnet-defense", 100)

    def test_negative_score_rejected(self, runtime):
        with pytest.raises(ValueError):
            runtime.report_score("code-breaker", -5)

    def test_play_count(self, runtime):
        assert runtime.increment_play_count("code-breaker") == 1
        assert runtime.increment_play_count("code-breaker") == 2
        assert runtime.increment_play_count("pong") == 0


class TestQueries:
    def test_time_to_afford(self, runtime):
        runtime.report_score("code-breaker", 1000)
        assert runtime.compute_time_to_afford("auto-typer") == pytest.approx(10.0)
        runtime.state.ledger.add(MONEY, 100)
        assert runtime.compute_time_to_afford("auto-typer") == 0.0

    def test_time_to_afford_without_income(self, runtime):
        assert runtime.compute_time_to_afford("auto-typer") is None
        # TP is never generated passively.
        assert runtime.compute_time_to_afford("gap-expander") is None

    def test_time_to_afford_maxed(self, runtime):
        runtime.state.ledger.add(MONEY, 500)
        runtime.purchase("coffee-machine")
        assert runtime.compute_time_to_afford("coffee-machine") is None

    def test_max_affordable(self, runtime):
        assert runtime.max_affordable("auto-typer") == 0
        runtime.state.ledger.add(MONEY, 215)
        assert runtime.max_affordable("auto-typer") == 2
        runtime.state.ledger.add(MONEY, 10_000)
        assert runtime.max_affordable("coffee-machine") == 1
        assert runtime.max_affordable("nope") == 0

    def test_bulk_cost(self, runtime):
        assert runtime.bulk_cost("auto-typer", 2) == {MONEY: BigNum(215)}
        assert runtime.bulk_cost("nope", 2) == {}

    def test_aggregate_effect(self, runtime):
        assert runtime.aggregate_effect(EffectType.MINIGAME_TIME_BONUS) == 0
        assert runtime.aggregate_effect(EffectType.AUTO_GENERATION_MULTIPLIER) == 1
        runtime.state.ledger.add(MONEY, 500)
        runtime.purchase("coffee-machine")
        assert runtime.aggregate_effect(EffectType.MINIGAME_TIME_BONUS) == 10

    def test_display_info(self, runtime):
        runtime.state.ledger.add(MONEY, 100)
        info = runtime.get_display_info("auto-typer")
        assert info.level == 0
        assert info.can_afford
        assert not info.is_maxed
        assert info.next_cost == {MONEY: BigNum(100)}
        assert info.effect_description == "105% generation"
        assert runtime.get_display_info("nope") is None

    def test_display_info_maxed(self, runtime):
        runtime.state.ledger.add(MONEY, 500)
        runtime.purchase("coffee-machine")
        info = runtime.get_display_info("coffee-machine")
        assert info.is_maxed
        assert info.next_cost == {}
        assert not info.can_afford

    def test_display_info_for_grant(self, runtime):
        assert runtime.get_display_info("training-manual").effect_description == "+1 TP"

    def test_all_display_info(self, runtime):
        assert len(runtime.get_all_display_info()) == 5
        ids = [s.id for s in runtime.get_all_display_info("botnet-defense")]
        assert ids == ["payload-amplifier", "redundant-systems"]

    def test_all_rates(self, runtime):
        runtime.report_score("code-breaker", 200)
        assert runtime.get_all_rates() == {MONEY: 2, TP: 0, Resource.RENOWN: 0}


class TestLifecycle:
    def test_new_game(self, runtime):
        runtime.state.ledger.add(MONEY, 100)
        state = runtime.new_game("trinity")
        assert runtime.state is state
        assert state.player_name == "trinity"
        assert state.ledger.get(MONEY) == 0
        assert set(state.minigames) == {"code-breaker", "code-runner", "botnet-defense"}

    def test_load_state_fills_missing_records(self, runtime):
        from idlecore.state import GameState

        bare = GameState()
        runtime.load_state(bare)
        assert runtime.state is bare
        assert "code-breaker" in bare.minigames
        assert "book-summarizer" in bare.automations

    def test_custom_subsystem_runs(self, runtime):
        from idlecore.subsystem import Subsystem

        calls = []

        class Recorder(Subsystem):
            def tick(self, state, now_ms):
                calls.append(now_ms)

        runtime.add_subsystem(Recorder())
        runtime.run_subsystems(1234)
        assert calls == [1234]
