"""Tests for pipeline module."""
import pytest

from idlecore.bignum import BigNum
from idlecore.catalog import define_game
from idlecore.currency import Resource
from idlecore.pipeline import calculate_generation_over_time
from idlecore.runtime import GameRuntime

MONEY = Resource.MONEY
TP = Resource.TECHNIQUE


@pytest.fixture
def runtime() -> GameRuntime:
    return GameRuntime(define_game())


def test_no_scores_no_rate(runtime):
    assert runtime.get_current_rate(MONEY) == 0
    assert runtime.pipeline.contributions(MONEY, runtime.state) == {"code-breaker": 0}


def test_rate_is_sum_of_top_scores_over_divisor(runtime):
    runtime.report_score("code-breaker", 100)
    runtime.report_score("code-breaker", 50)
    assert runtime.get_current_rate(MONEY) == BigNum("1.5")


def test_non_generating_minigames_do_not_produce(runtime):
    runtime.report_score("code-runner", 10_000)
    assert runtime.get_current_rate(TP) == 0
    assert runtime.get_current_rate(MONEY) == 0


def test_multiplier_applies(runtime):
    runtime.report_score("code-breaker", 150)
    runtime.state.ledger.add(MONEY, 100)
    assert runtime.purchase("auto-typer")
    assert runtime.get_current_rate(MONEY) == BigNum("1.575")


def test_rate_reflects_new_scores_immediately(runtime):
    runtime.report_score("code-breaker", 100)
    assert runtime.get_current_rate() == 1
    runtime.report_score("code-breaker", 400)
    assert runtime.get_current_rate() == 5


def test_breakdown(runtime):
    runtime.report_score("code-breaker", 1000)
    breakdown = runtime.get_generation_breakdown(MONEY)
    assert breakdown.contributions == {"code-breaker": BigNum(10)}
    assert breakdown.base_rate == 10
    assert breakdown.multiplier == 1
    assert breakdown.final_rate == 10


def test_custom_pipeline(runtime):
    runtime.report_score("code-breaker", 100)
    runtime.set_production_pipeline(MONEY, lambda r, base, mult, state: base.mul(mult).mul(3))
    assert runtime.get_current_rate(MONEY) == 3
    assert runtime.get_generation_breakdown(MONEY).final_rate == 3


def test_generating_minigames_come_from_config():
    defn = define_game()
    defn.config.generating_minigames = ("code-breaker", "code-runner")
    runtime = GameRuntime(defn)
    runtime.report_score("code-runner", 500)
    assert runtime.get_current_rate(TP) == 5


def test_generation_over_time():
    assert calculate_generation_over_time(BigNum("1.5"), 10.0) == 15
    assert calculate_generation_over_time(2, 3) == 6
