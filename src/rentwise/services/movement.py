# src/rentwise/services/movement.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from rentwise.domain.context import PricingContext
from rentwise.domain.policy import PricingConfig
from rentwise.domain.results import PriceReason
from rentwise.domain.units import FloorplanTrend

# 5pp away from the band midpoint => x = 1
DEVIATION_SCALE_PP = 5.0
TANH_STEEPNESS = 1.4

# Inside the comfort band the trend move is damped so conversion can steer
INSIDE_BAND_DAMPING = 0.10

# Community bias: amplify only when the site agrees in direction
COMMUNITY_BIAS_THRESHOLD_PP = 1.0
COMMUNITY_BIAS_SLOPE = 0.15
COMMUNITY_BIAS_CAP = 0.30


@dataclass(frozen=True)
class TrendMove:
    direction: int              # -1, 0, +1
    magnitude: float            # signed fraction, 0.05 == +5%
    inside_band: bool
    bias_multiplier: float
    reasons: tuple[PriceReason, ...]


@dataclass(frozen=True)
class ConversionNudge:
    nudge: float                # signed fraction
    ratio: Optional[float]
    reasons: tuple[PriceReason, ...]


NO_MOVE = TrendMove(direction=0, magnitude=0.0, inside_band=False, bias_multiplier=1.0, reasons=())


def comfort_band(trend: FloorplanTrend, config: PricingConfig) -> tuple[float, float]:
    low = trend.band_low if trend.band_low is not None else config.band_low
    high = trend.band_high if trend.band_high is not None else config.band_high
    return low, high


def is_inside_band(trend: FloorplanTrend | None, config: PricingConfig) -> bool:
    if trend is None:
        return False
    low, high = comfort_band(trend, config)
    return low <= trend.trending <= high


def compute_trend_move(
    floorplan_code: str,
    context: PricingContext,
    config: PricingConfig,
) -> TrendMove:
    """
    Band-relative directional move for one floorplan.

    Deviation of trending occupancy from the band midpoint (in pp) is scaled
    by 5pp and passed through tanh, so the move saturates at the
    price-response ceiling instead of growing without bound.
    """
    trend = context.floorplan_trends.get(floorplan_code)
    if trend is None:
        return NO_MOVE

    low, high = comfort_band(trend, config)
    low_pp = low * 100
    high_pp = high * 100
    mid_pp = (low_pp + high_pp) / 2

    occ_pp = trend.trending * 100
    dev_pp = occ_pp - mid_pp
    sign = -1 if dev_pp < 0 else (1 if dev_pp > 0 else 0)

    x = abs(dev_pp) / DEVIATION_SCALE_PP
    mag = config.max_move * math.tanh(TANH_STEEPNESS * x)

    inside = is_inside_band(trend, config)
    if inside:
        mag *= INSIDE_BAND_DAMPING

    comm = context.community_metrics
    delta_site_pp = (comm.trending_occupancy - comm.target) * 100
    bias_mult = 1.0
    if not inside:
        agrees = (delta_site_pp > COMMUNITY_BIAS_THRESHOLD_PP and sign > 0) or (
            delta_site_pp < -COMMUNITY_BIAS_THRESHOLD_PP and sign < 0
        )
        if agrees:
            bias_mult = 1 + min(COMMUNITY_BIAS_SLOPE * abs(delta_site_pp), COMMUNITY_BIAS_CAP)

    mag *= bias_mult
    if sign < 0:
        mag = -mag

    reasons: list[PriceReason] = []
    if mag != 0:
        dir_str = "up" if mag > 0 else "down"
        reasons.append(
            PriceReason(
                type="trend",
                description=(
                    f"Trend {dir_str} {abs(mag) * 100:.1f}% "
                    f"(occ: {occ_pp:.1f}% vs mid: {mid_pp:.1f}%)"
                ),
                value=mag,
            )
        )
        if bias_mult != 1.0:
            reasons.append(
                PriceReason(
                    type="communityBias",
                    description=(
                        f"Community bias {(bias_mult - 1) * 100:.1f}% "
                        f"(site: {comm.trending_occupancy * 100:.1f}% vs {comm.target * 100:.1f}%)"
                    ),
                    value=bias_mult - 1,
                )
            )

    return TrendMove(
        direction=sign,
        magnitude=mag,
        inside_band=inside,
        bias_multiplier=bias_mult,
        reasons=tuple(reasons),
    )


def compute_conversion_nudge(
    floorplan_code: str,
    inside_band: bool,
    context: PricingContext,
    config: PricingConfig,
) -> ConversionNudge:
    """Inside the band only: small nudge from the apps / leads ratio."""
    if not inside_band:
        return ConversionNudge(nudge=0.0, ratio=None, reasons=())

    data = context.leads_apps.get(floorplan_code)
    if data is None or data.leads <= 0:
        return ConversionNudge(nudge=0.0, ratio=None, reasons=())

    steering = config.conversion
    ratio = data.apps / data.leads
    window = f"{data.days_tracked or steering.lookback_days}d"

    if ratio > steering.strong_threshold:
        nudge = steering.nudge
        reason = PriceReason(
            type="conversion",
            description=(
                f"Strong conversion {ratio * 100:.1f}% over {window} "
                f"-> nudge up +{nudge * 100:.1f}%"
            ),
            value=nudge,
        )
    elif ratio < steering.weak_threshold:
        nudge = -steering.nudge
        reason = PriceReason(
            type="conversion",
            description=(
                f"Weak conversion {ratio * 100:.1f}% over {window} "
                f"-> nudge down {nudge * 100:.1f}%"
            ),
            value=nudge,
        )
    else:
        return ConversionNudge(nudge=0.0, ratio=ratio, reasons=())

    return ConversionNudge(nudge=nudge, ratio=ratio, reasons=(reason,))
