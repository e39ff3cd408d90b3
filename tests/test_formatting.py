"""Tests for formatting module."""
import pytest

from idlecore.bignum import BigNum
from idlecore.catalog import define_game
from idlecore.currency import Resource
from idlecore.formatting import (
    format_duration,
    format_number,
    format_percent,
    format_rate,
    format_relative_time,
    format_resource,
    format_scientific,
    format_status_report,
    format_time,
)
from idlecore.runtime import GameRuntime


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, "0"),
        (999, "999"),
        ("12.5", "12.5"),
        ("0.123", "0.12"),
        (1000, "1.00K"),
        (1500000, "1.50M"),
        (2500000000, "2.50B"),
        ("1e12", "1.00T"),
        ("1.5e15", "1.50Qa"),
        (-1000, "-1.00K"),
    ],
)
def test_format_number(value, expected):
    assert format_number(value) == expected


def test_format_number_precision():
    assert format_number(1234567, 1) == "1.2M"


def test_format_number_falls_back_to_scientific():
    assert format_number("1e100") == "1.00e100"


@pytest.mark.parametrize(
    "value, expected",
    [
        (999_999, "1.00M"),
        (999_999_999, "1.00B"),
        ("999.999", "1.00K"),
        (999_994, "999.99K"),
    ],
)
def test_format_number_rounds_up_to_next_suffix(value, expected):
    assert format_number(value) == expected


def test_format_number_tiny_values_are_not_zero():
    assert format_number("0.001") == "1.00e-3"
    assert format_number("-0.001") == "-1.00e-3"


def test_format_scientific():
    assert format_scientific("123456") == "1.23e5"
    assert format_scientific("9.999e5") == "1.00e6"
    assert format_scientific(0) == "0"


def test_format_percent():
    assert format_percent("0.15") == "15%"
    assert format_percent("1.05") == "105%"
    assert format_percent("0.125", 1) == "12.5%"


def test_format_resource_and_rate():
    assert format_resource(Resource.MONEY, 1500) == "$1.50K"
    assert format_resource(Resource.TECHNIQUE, 12) == "12 TP"
    assert format_resource(Resource.RENOWN, 3) == "3 RP"
    assert format_rate(BigNum("2.5")) == "2.5/sec"


def test_format_time():
    assert format_time(45) == "45s"
    assert format_time(60) == "1m"
    assert format_time(9015) == "2h 30m 15s"
    assert format_time(7200) == "2h"


def test_format_duration():
    assert format_duration(30) == "30s"
    assert format_duration(45 * 60) == "45m"
    assert format_duration(2 * 3600) == "2h"
    assert format_duration(2 * 3600 + 30 * 60 + 59) == "2h 30m"


def test_format_relative_time():
    now = 10_000_000_000
    assert format_relative_time(now - 30_000, now) == "Just now"
    assert format_relative_time(now - 5 * 60_000, now) == "5m ago"
    assert format_relative_time(now - 3 * 3_600_000, now) == "3h ago"
    assert format_relative_time(now - 2 * 86_400_000, now) == "2d ago"
    assert format_relative_time(now - 65 * 86_400_000, now) == "2mo ago"
    assert format_relative_time(now - 400 * 86_400_000, now) == "1y ago"


def test_status_report_lists_sections():
    runtime = GameRuntime(define_game())
    runtime.state.player_name = "neo"
    runtime.report_score("code-breaker", 1000)
    report = format_status_report(runtime)
    assert "Hacker Incremental" in report
    assert "Player: neo" in report
    assert "RESOURCES:" in report
    assert "(10/sec)" in report
    assert "UPGRADES:" in report
    assert "(none)" in report
