# src/rentwise/services/engine.py
from __future__ import annotations

from typing import Iterable, Optional, Sequence

from rentwise.adapters.logging_utils import get_logger
from rentwise.domain.context import PricingContext
from rentwise.domain.errors import TierOrderError
from rentwise.domain.policy import PricingConfig
from rentwise.domain.results import (
    FloorplanPricingResult,
    PortfolioPricingResult,
    PriceDelta,
    PriceFlags,
    PriceReason,
    PricingDiagnostics,
    UnitPricingResult,
)
from rentwise.domain.units import FloorplanTrend, UnitState
from rentwise.services.guardrails import enforce_guardrails, resolve_starting_point
from rentwise.services.movement import compute_conversion_nudge, compute_trend_move
from rentwise.services.term_pricing import expand_terms, vacancy_age_discount

logger = get_logger(__name__)


# ---------------------------------------------------------------------
# Rule order (fixed):
#   trend move -> conversion nudge (inside band) -> starting point
#   -> cap -> floor -> buffer -> tier gap -> term expansion
#
# Everything here is a pure function of (unit, config, context): no clock,
# no randomness, no shared state.
# ---------------------------------------------------------------------


def price_unit(
    unit: UnitState,
    config: PricingConfig,
    context: PricingContext,
    lower_tier_reference_rent: Optional[float] = None,
) -> UnitPricingResult:
    code = unit.floorplan_code
    reasons: list[PriceReason] = []

    # 1) trend move
    trend = compute_trend_move(code, context, config)
    reasons.extend(trend.reasons)

    # 2) conversion steering (inside the comfort band only)
    conv = compute_conversion_nudge(code, trend.inside_band, context, config)
    reasons.extend(conv.reasons)

    move = trend.magnitude + conv.nudge

    override = config.trend_override_pct_by_fp.get(code)
    if override is not None:
        reasons.append(
            PriceReason(
                type="override",
                description=f"Manual override {override * 100:+.1f}% replaces computed move {move * 100:+.2f}%",
                value=override,
            )
        )
        move = override

    # 3) starting point (carry-forward first)
    start = resolve_starting_point(unit, config, context)
    reasons.extend(start.reasons)

    vac_discount, vac_reason = vacancy_age_discount(unit.vacant_days, config)

    # 4) guardrails
    guarded = enforce_guardrails(
        move,
        start,
        unit,
        config,
        context,
        lower_tier_reference_rent=lower_tier_reference_rent,
        vacancy_discount=vac_discount,
    )
    reasons.extend(guarded.reasons)
    baseline = guarded.baseline

    # 5) term menu
    if vac_reason is not None:
        reasons.append(vac_reason)
    if unit.amenity_adj:
        reasons.append(
            PriceReason(
                type="amenity",
                description=f"Amenity adjustment {'+' if unit.amenity_adj >= 0 else '-'}${abs(unit.amenity_adj):.0f} per term",
                value=unit.amenity_adj,
            )
        )

    menu = expand_terms(
        baseline,
        config,
        context.evaluation_date,
        vacancy_discount=vac_discount,
        amenity_adj=unit.amenity_adj,
    )

    flags = PriceFlags(
        trend_up=trend.direction > 0,
        trend_down=trend.direction < 0,
        inside_comfort_band=trend.inside_band,
        conversion_nudge_up=conv.nudge > 0,
        conversion_nudge_down=conv.nudge < 0,
        manual_override=override is not None,
        carry_forward_used=start.source == "carryForward",
        short_term_premium=menu.any_short_term,
        over_cap_premium=menu.any_over_cap,
        seasonal_uplift=menu.any_seasonal,
        vacancy_discount=vac_discount > 0,
        cap_clamped=guarded.cap_clamped,
        floor_clamped=guarded.floor_clamped,
        buffer_guardrail=guarded.buffer_guardrail,
        tier_gap_enforced=guarded.tier_gap_enforced,
    )

    previous = start.value
    proposed = menu.reference_rent
    delta = PriceDelta(
        previous=previous,
        proposed=proposed,
        dollar_change=proposed - previous,
        percent_change=((proposed - previous) / previous) * 100 if previous > 0 else 0.0,
    )

    return UnitPricingResult(
        unit_id=unit.unit_id,
        floorplan_code=code,
        baseline_rent=baseline,
        reference_term=config.reference_term,
        reference_rent=proposed,
        delta=delta,
        term_pricing=menu.terms,
        reasons=tuple(reasons),
        flags=flags,
        diagnostics=PricingDiagnostics(
            trend_direction=trend.direction,
            trend_magnitude=trend.magnitude,
            conversion_ratio=conv.ratio,
            vacancy_discount=vac_discount,
            starting_point_source=start.source,
        ),
    )


def price_floorplan(
    units: Sequence[UnitState],
    config: PricingConfig,
    context: PricingContext,
    lower_tier_reference_rent: Optional[float] = None,
) -> list[UnitPricingResult]:
    return [price_unit(u, config, context, lower_tier_reference_rent) for u in units]


class TierLadder:
    """
    Ascending bedroom tiers for tier-gap enforcement.

    Floorplans sharing a bedroom count form one tier; a tier's lower neighbour
    is the nearest tier with fewer bedrooms. Asking for the lower reference of
    a tier whose neighbour is not finalized yet is a caller bug.
    """

    def __init__(self, floorplan_codes: Iterable[str], trends: dict[str, FloorplanTrend]):
        self._bedrooms: dict[str, int] = {}
        for code in floorplan_codes:
            trend = trends.get(code)
            self._bedrooms[code] = trend.bedrooms if trend is not None else 0
        self._finalized: dict[str, float] = {}

    @property
    def order(self) -> list[str]:
        return sorted(self._bedrooms, key=lambda c: (self._bedrooms[c], c))

    def bedrooms(self, code: str) -> int:
        return self._bedrooms[code]

    def lower_tier(self, code: str) -> list[str]:
        beds = self._bedrooms[code]
        lower = [b for b in set(self._bedrooms.values()) if b < beds]
        if not lower:
            return []
        nearest = max(lower)
        return sorted(c for c, b in self._bedrooms.items() if b == nearest)

    def lower_reference_for(self, code: str) -> Optional[float]:
        lower_codes = self.lower_tier(code)
        if not lower_codes:
            return None
        missing = [c for c in lower_codes if c not in self._finalized]
        if missing:
            raise TierOrderError(
                f"cannot price {code}: lower tier {', '.join(missing)} not finalized yet"
            )
        return max(self._finalized[c] for c in lower_codes)

    def record(self, code: str, results: Sequence[UnitPricingResult]) -> None:
        if code not in self._bedrooms:
            raise KeyError(f"unknown floorplan: {code}")
        if results:
            self._finalized[code] = max(r.reference_rent for r in results)


def _count_status(units: Sequence[UnitState], needle: str) -> int:
    return sum(1 for u in units if needle in u.status.lower())


def price_all_units(
    units: Sequence[UnitState],
    config: PricingConfig,
    context: PricingContext,
) -> PortfolioPricingResult:
    """
    Price a whole portfolio, floorplan by floorplan in ascending tier order.
    """
    seen: set[str] = set()
    by_fp: dict[str, list[UnitState]] = {}
    for unit in units:
        if unit.unit_id in seen:
            raise ValueError(f"duplicate unit_id: {unit.unit_id}")
        seen.add(unit.unit_id)
        by_fp.setdefault(unit.floorplan_code, []).append(unit)

    ladder = TierLadder(by_fp.keys(), context.floorplan_trends)

    unit_pricing: dict[str, UnitPricingResult] = {}
    floorplan_pricing: dict[str, FloorplanPricingResult] = {}

    for code in ladder.order:
        fp_units = by_fp[code]
        lower_ref = ladder.lower_reference_for(code)

        results = price_floorplan(fp_units, config, context, lower_ref)
        ladder.record(code, results)
        for r in results:
            unit_pricing[r.unit_id] = r

        trend = context.floorplan_trends.get(code)
        move = compute_trend_move(code, context, config)
        first = results[0]
        floorplan_pricing[code] = FloorplanPricingResult(
            code=code,
            label=fp_units[0].floorplan_label or code,
            bedrooms=ladder.bedrooms(code),
            baseline_rent=first.baseline_rent,
            reference_term=config.reference_term,
            trending=trend.trending if trend is not None else 0.0,
            trend_direction=move.direction,
            trend_magnitude=move.magnitude,
            total_units=len(fp_units),
            vacant_units=_count_status(fp_units, "vacant"),
            on_notice_units=_count_status(fp_units, "notice"),
            term_pricing=first.term_pricing,
            reasons=move.reasons,
            flags=first.flags,
        )

    logger.info(
        "portfolio_priced",
        extra={
            "context": {
                "as_of": context.evaluation_date.isoformat(),
                "units": len(unit_pricing),
                "floorplans": ladder.order,
            }
        },
    )

    return PortfolioPricingResult(
        unit_pricing=unit_pricing,
        floorplan_pricing=floorplan_pricing,
        as_of=context.evaluation_date,
        config_snapshot=config,
        tier_order=tuple(ladder.order),
    )
