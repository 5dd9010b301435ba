from __future__ import annotations
from decimal import Decimal

import pytest

from computations import RESOLVERS, SplitResolutionError, apportion, progressive_weights, resolve
from models import Member, SplitEntry, SplitStrategy

D = Decimal


def _amounts(resolution):
    return {s.member_id: s.amount for s in resolution.splits}


def _total(resolution):
    return sum((s.amount for s in resolution.splits), D("0"))


def test_every_strategy_has_a_resolver():
    assert set(RESOLVERS) == set(SplitStrategy)


def test_apportion_gives_remainder_to_earliest_positions():
    assert apportion(D("100.00"), [D(1)] * 3) == [D("33.34"), D("33.33"), D("33.33")]
    assert apportion(D("0.05"), [D(1)] * 4) == [D("0.02"), D("0.01"), D("0.01"), D("0.01")]


def test_apportion_prefers_largest_fraction_over_position():
    # quotas 3.333.., 6.666.. -> 3.33 and 6.67 (second has the larger fraction)
    assert apportion(D("10.00"), [D(1), D(2)]) == [D("3.33"), D("6.67")]


def test_apportion_rejects_zero_or_negative_weights():
    with pytest.raises(SplitResolutionError):
        apportion(D("10.00"), [D(0), D(0)])
    with pytest.raises(SplitResolutionError):
        apportion(D("10.00"), [D(1), D(-1)])


def test_equal_split_uses_member_id_order(roster):
    members = [roster[2], roster[0], roster[1]]  # c, a, b
    res = resolve(SplitStrategy.EQUAL, D("100"), members)
    assert [s.member_id for s in res.splits] == ["a", "b", "c"]
    assert _amounts(res) == {"a": D("33.34"), "b": D("33.33"), "c": D("33.33")}
    assert _total(res) == D("100.00")


@pytest.mark.parametrize("amount,n", [("0.01", 3), ("10.00", 7), ("999999.99", 13), ("10000000", 6)])
def test_equal_split_is_exact(amount, n):
    members = [Member(f"m{i:02d}", f"M{i}") for i in range(n)]
    res = resolve(SplitStrategy.EQUAL, D(amount), members)
    assert _total(res) == D(amount)
    assert max(s.amount for s in res.splits) - min(s.amount for s in res.splits) <= D("0.01")


def test_percentage_split(roster):
    splits = [SplitEntry("a", percentage=40), SplitEntry("b", percentage="60")]
    res = resolve(SplitStrategy.PERCENTAGE, D("500"), roster[:2], splits)
    assert _amounts(res) == {"a": D("200.00"), "b": D("300.00")}
    assert res.splits[0].percentage == D("40")


def test_percentage_missing_entry_raises(roster):
    with pytest.raises(SplitResolutionError, match="No percentage given for Ben"):
        resolve(SplitStrategy.PERCENTAGE, D("500"), roster[:2], [SplitEntry("a", percentage=100)])


def test_custom_split_absorbs_one_cent_residual_into_largest_share(roster):
    splits = [
        SplitEntry("a", amount="333.33"),
        SplitEntry("b", amount="333.33"),
        SplitEntry("c", amount="333.33"),
    ]
    res = resolve(SplitStrategy.CUSTOM, D("1000"), roster[:3], splits)
    assert _amounts(res) == {"a": D("333.34"), "b": D("333.33"), "c": D("333.33")}


def test_custom_split_beyond_tolerance_raises(roster):
    splits = [SplitEntry("a", amount=600), SplitEntry("b", amount=500)]
    with pytest.raises(SplitResolutionError):
        resolve(SplitStrategy.CUSTOM, D("1000"), roster[:2], splits)


def test_shares_split(roster):
    splits = [SplitEntry("a", shares=1), SplitEntry("b", shares=2)]
    res = resolve(SplitStrategy.SHARES, D("90"), roster[:2], splits)
    assert _amounts(res) == {"a": D("30.00"), "b": D("60.00")}


def test_weighted_split_falls_back_to_roster_weight_then_one(roster):
    # a has roster weight 2, b has none -> 1, c given 3 on the entry
    splits = [SplitEntry("c", weight="3")]
    res = resolve(SplitStrategy.WEIGHTED, D("60"), roster[:3], splits)
    assert _amounts(res) == {"a": D("20.00"), "b": D("10.00"), "c": D("30.00")}


def test_income_proportional_split(roster):
    res = resolve(SplitStrategy.INCOME_PROPORTIONAL, D("90"), [roster[0], roster[1]])
    assert res.strategy is SplitStrategy.INCOME_PROPORTIONAL
    assert _amounts(res) == {"a": D("60.00"), "b": D("30.00")}
    assert res.warnings == ()


def test_income_split_without_income_falls_back_to_equal(roster):
    res = resolve(SplitStrategy.INCOME_PROPORTIONAL, D("90"), roster[:3])
    assert res.strategy is SplitStrategy.EQUAL
    assert _amounts(res) == {"a": D("30.00"), "b": D("30.00"), "c": D("30.00")}
    assert len(res.warnings) == 1
    assert "Chen" in res.warnings[0]
    assert "equal split" in res.warnings[0]


def test_income_progressive_burdens_higher_incomes_more(roster):
    members = [roster[0], roster[1], roster[3]]  # 60k, 30k, 45k
    progressive = _amounts(resolve(SplitStrategy.INCOME_PROGRESSIVE, D("1000"), members))
    proportional = _amounts(resolve(SplitStrategy.INCOME_PROPORTIONAL, D("1000"), members))

    assert sum(progressive.values()) == D("1000.00")
    assert progressive["a"] > progressive["d"] > progressive["b"]
    assert progressive["a"] > proportional["a"]
    assert progressive["b"] < proportional["b"]
    assert progressive["a"] >= D("1000") / 3


def test_income_progressive_with_equal_incomes_is_equal_split():
    members = [Member(i, i.upper(), income=D("40000")) for i in ("x", "y", "z")]
    res = resolve(SplitStrategy.INCOME_PROGRESSIVE, D("100"), members)
    assert _amounts(res) == {"x": D("33.34"), "y": D("33.33"), "z": D("33.33")}


def test_progressive_weights_are_monotonic():
    weights = progressive_weights([D(10), D(20), D(40)], D("1.3"), 28)
    assert weights[0] < weights[1] < weights[2]


def test_adjustment_split(roster):
    splits = [
        SplitEntry("a", adjustment="10", adjustment_reason="extra drinks"),
        SplitEntry("b", adjustment="-10"),
    ]
    res = resolve(SplitStrategy.ADJUSTMENT, D("90"), roster[:3], splits)
    assert _amounts(res) == {"a": D("40.00"), "b": D("20.00"), "c": D("30.00")}
    assert res.splits[0].adjustment_reason == "extra drinks"


def test_adjustment_uses_equal_remainder_policy_for_base(roster):
    res = resolve(SplitStrategy.ADJUSTMENT, D("100"), roster[:3], [])
    assert _amounts(res) == {"a": D("33.34"), "b": D("33.33"), "c": D("33.33")}


def test_adjustment_can_produce_negative_share(roster):
    splits = [SplitEntry("a", adjustment=20), SplitEntry("b", adjustment=-20)]
    res = resolve(SplitStrategy.ADJUSTMENT, D("30"), roster[:2], splits)
    assert _amounts(res) == {"a": D("35.00"), "b": D("-5.00")}


def test_resolve_without_members_raises():
    with pytest.raises(SplitResolutionError):
        resolve(SplitStrategy.EQUAL, D("10"), [])


def test_apportion_handles_extreme_weight_exponents():
    assert apportion(D("10.00"), [D("1"), D("1e-1000000")]) == [D("10.00"), D("0.00")]
    assert apportion(D("10.00"), [D("1e60"), D("1e60")]) == [D("5.00"), D("5.00")]


def test_roster_weight_given_as_int():
    members = [Member("a", "Asha", weight=2), Member("b", "Ben", weight=1.5)]
    res = resolve(SplitStrategy.WEIGHTED, D("70"), members)
    assert _amounts(res) == {"a": D("40.00"), "b": D("30.00")}
    assert res.splits[0].weight == D("2")


def test_roster_income_given_as_float():
    members = [Member("a", "Asha", income=60000.0), Member("b", "Ben", income=20000.0)]
    assert _amounts(resolve(SplitStrategy.INCOME_PROPORTIONAL, D("100"), members)) == \
        {"a": D("75.00"), "b": D("25.00")}
    progressive = _amounts(resolve(SplitStrategy.INCOME_PROGRESSIVE, D("100"), members))
    assert progressive["a"] > D("75.00")
    assert sum(progressive.values()) == D("100.00")
