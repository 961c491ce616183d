# tests/test_tier_ladder.py
import pytest

from rentwise.domain.errors import TierOrderError
from rentwise.domain.units import FloorplanTrend
from rentwise.services.engine import TierLadder, price_unit

from .fixtures.pricing import quiet_unit, standard_config


def _trends(**bedrooms):
    return {
        code: FloorplanTrend(code=code, trending=0.95, current=0.95, bedrooms=beds)
        for code, beds in bedrooms.items()
    }


def _priced(code, rent):
    unit, ctx = quiet_unit(unit_id=f"{code}-1", code=code, rent=rent)
    return price_unit(unit, standard_config(), ctx)


def test_order_by_bedrooms_then_code():
    trends = _trends(B2=2, A1=1, S0=0, A2=1)
    ladder = TierLadder(["B2", "A2", "S0", "A1"], trends)
    assert ladder.order == ["S0", "A1", "A2", "B2"]


def test_unknown_trend_sorts_as_studio():
    ladder = TierLadder(["A1", "X"], _trends(A1=1))
    assert ladder.order == ["X", "A1"]
    assert ladder.bedrooms("X") == 0


def test_lowest_tier_has_no_lower_reference():
    ladder = TierLadder(["S0", "A1"], _trends(S0=0, A1=1))
    assert ladder.lower_tier("S0") == []
    assert ladder.lower_reference_for("S0") is None


def test_lower_reference_requires_finalized_tier():
    ladder = TierLadder(["S0", "A1"], _trends(S0=0, A1=1))
    with pytest.raises(TierOrderError, match="S0"):
        ladder.lower_reference_for("A1")


def test_tier_order_error_is_a_value_error():
    assert issubclass(TierOrderError, ValueError)


def test_lower_reference_is_max_of_lower_tier():
    ladder = TierLadder(["A1", "A2", "B2"], _trends(A1=1, A2=1, B2=2))
    ladder.record("A1", [_priced("A1", 1400)])
    ladder.record("A2", [_priced("A2", 1550)])

    assert ladder.lower_tier("B2") == ["A1", "A2"]
    assert ladder.lower_reference_for("B2") == max(
        _priced("A1", 1400).reference_rent, _priced("A2", 1550).reference_rent
    )


def test_lower_tier_skips_missing_bedroom_counts():
    ladder = TierLadder(["S0", "C3"], _trends(S0=0, C3=3))
    assert ladder.lower_tier("C3") == ["S0"]


def test_same_tier_floorplans_do_not_gate_each_other():
    ladder = TierLadder(["A1", "A2"], _trends(A1=1, A2=1))
    assert ladder.lower_reference_for("A2") is None


def test_record_unknown_floorplan():
    ladder = TierLadder(["S0"], _trends(S0=0))
    with pytest.raises(KeyError):
        ladder.record("ZZ", [])
