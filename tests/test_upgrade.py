"""Tests for upgrade module."""
from idlecore.bignum import BigNum
from idlecore.currency import Resource
from idlecore.upgrade import UpgradeCategory, UpgradeDef

MONEY = Resource.MONEY
TP = Resource.TECHNIQUE


def test_display_name_defaults_to_id():
    assert UpgradeDef("auto-typer").display_name == "auto-typer"


def test_scaling_cost():
    u = UpgradeDef("u", base_cost=100)
    assert u.cost_at(0) == {MONEY: BigNum(100)}
    assert u.cost_at(1) == {MONEY: BigNum(115)}


def test_one_time_forces_single_level_and_fixed_cost():
    u = UpgradeDef("u", category=UpgradeCategory.ONE_TIME, base_cost=500, max_level=7)
    assert u.max_level == 1
    assert u.cost_at(0) == {MONEY: BigNum(500)}
    assert not u.is_maxed(0)
    assert u.is_maxed(1)


def test_linear_cost():
    u = UpgradeDef(
        "u",
        category=UpgradeCategory.LINEAR,
        cost_resource=TP,
        base_cost=10,
        cost_increment=5,
    )
    assert u.cost_at(0) == {TP: BigNum(10)}
    assert u.cost_at(2) == {TP: BigNum(20)}


def test_dual_currency_cost():
    u = UpgradeDef(
        "u",
        category=UpgradeCategory.DUAL_CURRENCY,
        base_cost=100,
        growth_rate="1.5",
        secondary_resource=TP,
        secondary_base_cost=10,
        secondary_growth_rate="1.5",
    )
    assert u.cost_at(0) == {MONEY: BigNum(100), TP: BigNum(10)}
    assert u.cost_at(1) == {MONEY: BigNum(150), TP: BigNum(15)}
    assert u.bulk_cost(0, 2) == {MONEY: BigNum(250), TP: BigNum(25)}


def test_bulk_cost_zero_levels():
    assert UpgradeDef("u", base_cost=100).bulk_cost(0, 0) == {}


def test_levels_remaining():
    unlimited = UpgradeDef("u", base_cost=1)
    assert unlimited.levels_remaining(50) is None
    assert not unlimited.is_maxed(10**6)

    capped = UpgradeDef("u", base_cost=1, max_level=10)
    assert capped.levels_remaining(7) == 3
    assert capped.levels_remaining(12) == 0
