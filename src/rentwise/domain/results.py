from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Literal, Optional

from rentwise.domain.policy import PricingConfig

ReasonType = Literal[
    "trend",
    "communityBias",
    "conversion",
    "override",
    "carryForward",
    "cap",
    "floor",
    "buffer",
    "tierGap",
    "shortTerm",
    "overCap",
    "seasonality",
    "vacancyAge",
    "amenity",
]

StartingPointSource = Literal["carryForward", "currentRent", "startingRent", "fallback"]


@dataclass(frozen=True)
class PriceReason:
    type: ReasonType
    description: str        # human readable
    value: float            # fraction for % moves, dollars for clamps
    applied: bool = True


@dataclass(frozen=True)
class PriceFlags:
    trend_up: bool = False              # occupancy above band => push rent up
    trend_down: bool = False            # occupancy below band => pull rent down
    inside_comfort_band: bool = False
    conversion_nudge_up: bool = False
    conversion_nudge_down: bool = False
    manual_override: bool = False
    carry_forward_used: bool = False
    short_term_premium: bool = False
    over_cap_premium: bool = False
    seasonal_uplift: bool = False
    vacancy_discount: bool = False
    cap_clamped: bool = False
    floor_clamped: bool = False
    buffer_guardrail: bool = False
    tier_gap_enforced: bool = False


@dataclass(frozen=True)
class PriceDelta:
    previous: float         # starting point (carry-forward or current rent)
    proposed: float         # reference rent
    dollar_change: float
    percent_change: float   # 2.5 == +2.5%


@dataclass(frozen=True)
class TermPrice:
    term: int
    price: float
    note: str
    reasons: tuple[PriceReason, ...] = ()


@dataclass(frozen=True)
class PricingDiagnostics:
    trend_direction: int            # -1, 0, +1
    trend_magnitude: float          # signed fraction
    conversion_ratio: Optional[float]
    vacancy_discount: float
    starting_point_source: StartingPointSource


@dataclass(frozen=True)
class UnitPricingResult:
    unit_id: str
    floorplan_code: str

    baseline_rent: float            # finalized baseline before term adjustments
    reference_term: int
    reference_rent: float           # price at the reference term

    delta: PriceDelta
    term_pricing: tuple[TermPrice, ...]

    reasons: tuple[PriceReason, ...]
    flags: PriceFlags
    diagnostics: PricingDiagnostics

    def price_for(self, term: int) -> float | None:
        for tp in self.term_pricing:
            if tp.term == term:
                return tp.price
        return None


@dataclass(frozen=True)
class FloorplanPricingResult:
    code: str
    label: str
    bedrooms: int

    baseline_rent: float
    reference_term: int

    trending: float
    trend_direction: int
    trend_magnitude: float

    total_units: int
    vacant_units: int
    on_notice_units: int

    term_pricing: tuple[TermPrice, ...]
    reasons: tuple[PriceReason, ...]
    flags: PriceFlags


@dataclass(frozen=True)
class PortfolioPricingResult:
    unit_pricing: dict[str, UnitPricingResult]
    floorplan_pricing: dict[str, FloorplanPricingResult]
    as_of: date
    config_snapshot: PricingConfig
    tier_order: tuple[str, ...] = field(default=())
