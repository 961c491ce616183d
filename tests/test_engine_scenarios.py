# tests/test_engine_scenarios.py
import pytest

from rentwise.services.engine import price_all_units, price_unit

from .fixtures.pricing import (
    carry_forward,
    floor_clamp,
    high_vacancy,
    inside_band_strong_conversion,
    inside_band_weak_conversion,
    quiet_unit,
    standard_config,
    tier_gap,
)


def _types(result):
    return [r.type for r in result.reasons]


def test_high_vacancy_is_capped_at_five_percent(pricing_cfg):
    unit, ctx = high_vacancy()

    res = price_unit(unit, pricing_cfg, ctx)

    assert res.baseline_rent == pytest.approx(1425)
    assert res.reference_rent == 1425
    assert res.flags.cap_clamped
    assert res.flags.trend_down
    assert not res.flags.trend_up
    assert not res.flags.floor_clamped
    assert "communityBias" in _types(res)
    assert res.delta.previous == 1500
    assert res.delta.dollar_change == pytest.approx(-75)
    assert res.delta.percent_change == pytest.approx(-5.0)


def test_inside_band_strong_conversion_nudges_up(pricing_cfg):
    unit, ctx = inside_band_strong_conversion()

    res = price_unit(unit, pricing_cfg, ctx)

    assert 1800 <= res.baseline_rent <= 1820
    assert res.flags.inside_comfort_band
    assert res.flags.conversion_nudge_up
    assert not res.flags.conversion_nudge_down
    # amenity is added on top of every term
    assert res.price_for(14) == round(res.baseline_rent) + 50
    assert "amenity" in _types(res)
    assert res.diagnostics.conversion_ratio == pytest.approx(0.35)


def test_inside_band_weak_conversion_nudges_down(pricing_cfg):
    unit, ctx = inside_band_weak_conversion()

    res = price_unit(unit, pricing_cfg, ctx)

    assert 1780 <= res.baseline_rent < 1800
    assert res.flags.conversion_nudge_down
    assert res.price_for(14) == pytest.approx(round(res.baseline_rent - 25), abs=1)


def test_floor_clamp_with_vacancy_discount(pricing_cfg):
    unit, ctx = floor_clamp()

    res = price_unit(unit, pricing_cfg, ctx)

    assert res.baseline_rent == pytest.approx(1080)
    assert res.flags.cap_clamped
    assert res.flags.floor_clamped
    assert res.flags.carry_forward_used
    assert res.flags.vacancy_discount
    assert res.diagnostics.vacancy_discount == pytest.approx(0.10)
    assert res.price_for(14) == 972
    assert res.delta.previous == 1000
    assert _types(res).index("cap") < _types(res).index("floor")


def test_carry_forward_is_the_starting_point(pricing_cfg):
    unit, ctx = carry_forward()

    res = price_unit(unit, pricing_cfg, ctx)

    assert res.flags.carry_forward_used
    assert res.diagnostics.starting_point_source == "carryForward"
    assert res.delta.previous == 1450
    assert 1448 <= res.baseline_rent <= 1453


def test_tier_gap_between_studio_and_one_bed(pricing_cfg):
    units, ctx = tier_gap()

    out = price_all_units(units, pricing_cfg, ctx)

    s0 = out.unit_pricing["S101"]
    a1 = out.unit_pricing["A101"]
    assert out.tier_order == ("S0", "A1")
    assert a1.reference_rent - s0.reference_rent >= 150
    assert a1.flags.tier_gap_enforced
    assert not s0.flags.tier_gap_enforced
    assert "tierGap" in _types(a1)


def test_tier_gap_ignored_when_pricing_one_unit(pricing_cfg):
    units, ctx = tier_gap()
    a1 = price_unit(units[1], pricing_cfg, ctx)
    assert not a1.flags.tier_gap_enforced


def test_manual_override_replaces_move():
    cfg = standard_config(trend_override_pct_by_fp={"B2": 0.02})
    unit, ctx = quiet_unit(rent=2000)

    res = price_unit(unit, cfg, ctx)

    assert res.baseline_rent == pytest.approx(2040)
    assert res.flags.manual_override
    assert "override" in _types(res)


def test_missing_trend_keeps_starting_point(pricing_cfg):
    unit, ctx = quiet_unit(rent=2000)
    ctx = ctx.model_copy(update={"floorplan_trends": {}})

    res = price_unit(unit, pricing_cfg, ctx)

    assert res.baseline_rent == pytest.approx(2000)
    assert res.diagnostics.trend_direction == 0
    assert not res.flags.trend_up and not res.flags.trend_down


def test_no_rent_anywhere_uses_fallback(pricing_cfg):
    unit, ctx = quiet_unit(rent=0)
    ctx = ctx.model_copy(update={"starting_rents": {}, "floorplan_trends": {}})

    res = price_unit(unit, pricing_cfg, ctx)

    assert res.diagnostics.starting_point_source == "fallback"
    assert res.baseline_rent == pytest.approx(1000)


def test_term_menu_and_flags(pricing_cfg):
    unit, ctx = quiet_unit(rent=2000)

    res = price_unit(unit, pricing_cfg, ctx)

    assert [tp.term for tp in res.term_pricing] == list(range(2, 15))
    assert res.reference_term == 14
    assert res.flags.short_term_premium
    assert not res.flags.over_cap_premium
    assert res.price_for(2) == round(res.baseline_rent * 1.08)
    assert res.price_for(99) is None


def test_reason_order_follows_pipeline(pricing_cfg):
    unit, ctx = floor_clamp()
    types = _types(price_unit(unit, pricing_cfg, ctx))

    # trend first, then starting point, then clamps, then term-level adjustments
    assert types[0] == "trend"
    assert types.index("carryForward") < types.index("cap") < types.index("vacancyAge")


def test_same_inputs_same_result(pricing_cfg):
    unit, ctx = high_vacancy()
    assert price_unit(unit, pricing_cfg, ctx) == price_unit(unit, pricing_cfg, ctx)


def test_portfolio_floorplan_summary(pricing_cfg):
    units, ctx = tier_gap()

    out = price_all_units(units, pricing_cfg, ctx)

    fp = out.floorplan_pricing["A1"]
    assert fp.label == "A1 - 1x1"
    assert fp.bedrooms == 1
    assert fp.total_units == 1
    assert fp.vacant_units == 1
    assert fp.on_notice_units == 0
    assert out.as_of == ctx.evaluation_date
    assert out.config_snapshot is pricing_cfg


def test_duplicate_unit_ids_are_rejected(pricing_cfg):
    units, ctx = tier_gap()
    twin = units[0].model_copy(update={"floorplan_code": "A1", "current_rent": 1300})

    with pytest.raises(ValueError, match="duplicate unit_id: S101"):
        price_all_units([*units, twin], pricing_cfg, ctx)
