# tests/fixtures/pricing.py

from datetime import date

from rentwise.domain.context import PricingContext
from rentwise.domain.policy import PricingConfig
from rentwise.domain.units import (
    CarryForwardBaseline,
    CommunityMetrics,
    FloorplanTrend,
    LeadsAppsData,
    UnitState,
)

JAN_15 = date(2025, 1, 15)

STANDARD_SEASONALITY = [1.0, 1.0, 1.05, 1.08, 1.10, 1.12, 1.10, 1.08, 1.05, 1.02, 1.0, 1.0]


def standard_config(**overrides) -> PricingConfig:
    """
    Standard operator policy: 'standard' response, 93-96% band, 5% weekly cap,
    90% floor, per-floorplan gaps and buffers, seasonality on.
    """
    base = dict(
        price_response="standard",
        comfort_target=0.95,
        band_low=0.93,
        band_high=0.96,
        max_weekly_decrease=0.05,
        min_floor_vs_current_rent=0.90,
        min_gap_to_next_tier={"S0": 100, "A1": 150, "B2": 100},
        stop_down_buffer={"S0": 50, "A1": 75, "B2": 50},
        reference_term=14,
        seasonality_enabled=True,
        seasonality_multipliers=list(STANDARD_SEASONALITY),
    )
    base.update(overrides)
    return PricingConfig(**base)


def _trend(code: str, trending: float, bedrooms: int, current: float | None = None) -> FloorplanTrend:
    return FloorplanTrend(
        code=code,
        trending=trending,
        current=trending if current is None else current,
        band_low=0.93,
        band_high=0.96,
        bedrooms=bedrooms,
    )


def _community(trending: float, current: float | None = None) -> CommunityMetrics:
    return CommunityMetrics(
        trending_occupancy=trending,
        current_occupancy=trending if current is None else current,
        target=0.95,
    )


# ---------------------------------------------------------------------
# High vacancy: large down move, capped at 5%
# ---------------------------------------------------------------------

def high_vacancy():
    unit = UnitState(
        unit_id="A101",
        floorplan_code="A1",
        floorplan_label="A1 - 1x1",
        status="vacant",
        current_rent=1500,
        vacant_days=15,
    )
    context = PricingContext(
        floorplan_trends={"A1": _trend("A1", 0.75, 1, current=0.76)},
        community_metrics=_community(0.80, current=0.82),
        starting_rents={"A1": 1500},
        evaluation_date=JAN_15,
    )
    return unit, context


# ---------------------------------------------------------------------
# Inside the band, strong / weak conversion
# ---------------------------------------------------------------------

def inside_band_strong_conversion():
    unit = UnitState(
        unit_id="B201",
        floorplan_code="B2",
        floorplan_label="B2 - 2x2",
        status="vacant",
        current_rent=1800,
        vacant_days=10,
        amenity_adj=50,
    )
    context = PricingContext(
        floorplan_trends={"B2": _trend("B2", 0.94, 2)},
        community_metrics=_community(0.94),
        leads_apps={"B2": LeadsAppsData(leads=100, apps=35, days_tracked=30)},
        starting_rents={"B2": 1800},
        evaluation_date=JAN_15,
    )
    return unit, context


def inside_band_weak_conversion():
    unit = UnitState(
        unit_id="B202",
        floorplan_code="B2",
        floorplan_label="B2 - 2x2",
        status="vacant",
        current_rent=1800,
        vacant_days=5,
        amenity_adj=-25,
    )
    context = PricingContext(
        floorplan_trends={"B2": _trend("B2", 0.95, 2)},
        community_metrics=_community(0.95),
        leads_apps={"B2": LeadsAppsData(leads=100, apps=8, days_tracked=30)},
        starting_rents={"B2": 1800},
        evaluation_date=JAN_15,
    )
    return unit, context


# ---------------------------------------------------------------------
# Floor clamp: carry-forward below current rent, long vacancy
# ---------------------------------------------------------------------

def floor_clamp():
    unit = UnitState(
        unit_id="S101",
        floorplan_code="S0",
        floorplan_label="S0 - Studio",
        status="vacant",
        current_rent=1200,
        vacant_days=90,
    )
    context = PricingContext(
        floorplan_trends={"S0": _trend("S0", 0.70, 0, current=0.72)},
        community_metrics=_community(0.75, current=0.77),
        starting_rents={"S0": 1000},
        carry_forward={
            "S101": CarryForwardBaseline(
                unit_id="S101",
                floorplan_code="S0",
                prior_approved_rent=1000,
                prior_approved_date=date(2025, 1, 8),
                term=14,
            )
        },
        evaluation_date=JAN_15,
    )
    return unit, context


# ---------------------------------------------------------------------
# Carry-forward: prior approved rent above current rent
# ---------------------------------------------------------------------

def carry_forward():
    unit = UnitState(
        unit_id="A102",
        floorplan_code="A1",
        floorplan_label="A1 - 1x1",
        status="occupied",
        current_rent=1400,
    )
    context = PricingContext(
        floorplan_trends={"A1": _trend("A1", 0.95, 1)},
        community_metrics=_community(0.93),
        carry_forward={
            "A102": CarryForwardBaseline(
                unit_id="A102",
                floorplan_code="A1",
                prior_approved_rent=1450,
                prior_approved_date=date(2025, 1, 1),
                term=14,
            )
        },
        starting_rents={"A1": 1400},
        evaluation_date=date(2025, 2, 15),
    )
    return unit, context


# ---------------------------------------------------------------------
# Tier gap: S0 and A1 priced too close together
# ---------------------------------------------------------------------

def tier_gap():
    units = [
        UnitState(
            unit_id="S101",
            floorplan_code="S0",
            floorplan_label="S0 - Studio",
            status="vacant",
            current_rent=1200,
        ),
        UnitState(
            unit_id="A101",
            floorplan_code="A1",
            floorplan_label="A1 - 1x1",
            status="vacant",
            current_rent=1250,
        ),
    ]
    context = PricingContext(
        floorplan_trends={
            "S0": _trend("S0", 0.94, 0),
            "A1": _trend("A1", 0.94, 1),
        },
        community_metrics=_community(0.94),
        starting_rents={"S0": 1200, "A1": 1250},
        evaluation_date=JAN_15,
    )
    return units, context


# ---------------------------------------------------------------------
# Inside the band, nothing else going on
# ---------------------------------------------------------------------

def quiet_unit(
    unit_id: str = "B201",
    code: str = "B2",
    rent: float = 2000,
    trending: float = 0.94,
    evaluation_date: date = JAN_15,
    **unit_fields,
):
    unit = UnitState(
        unit_id=unit_id,
        floorplan_code=code,
        floorplan_label=f"{code} - test",
        status=unit_fields.pop("status", "vacant"),
        current_rent=rent,
        **unit_fields,
    )
    context = PricingContext(
        floorplan_trends={code: _trend(code, trending, 2)},
        community_metrics=_community(trending),
        starting_rents={code: rent},
        evaluation_date=evaluation_date,
    )
    return unit, context
