# src/rentwise/services/guardrails.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional

from rentwise.adapters.logging_utils import get_logger
from rentwise.domain.context import PricingContext
from rentwise.domain.policy import PricingConfig
from rentwise.domain.results import PriceReason, StartingPointSource
from rentwise.domain.units import UnitState
from rentwise.services.term_pricing import (
    baseline_for_reference_rent,
    project_reference_rent,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class StartingPoint:
    value: float
    source: StartingPointSource
    # Last baseline published for this unit; the stop-decrease buffer hangs off it
    published: float
    reasons: tuple[PriceReason, ...]


@dataclass(frozen=True)
class GuardrailOutcome:
    baseline: float
    reasons: tuple[PriceReason, ...]
    cap_clamped: bool = False
    floor_clamped: bool = False
    buffer_guardrail: bool = False
    tier_gap_enforced: bool = False


def resolve_starting_point(
    unit: UnitState,
    config: PricingConfig,
    context: PricingContext,
) -> StartingPoint:
    """
    Where this run starts from, in priority order:
      1. carry-forward baseline (if enabled and positive)
      2. current rent from the rent roll
      3. the floorplan's seed rent
      4. config.fallback_starting_rent
    """
    if config.flags.enable_carry_forward:
        cf = context.carry_forward.get(unit.unit_id)
        if cf is not None and cf.prior_approved_rent > 0:
            rent = cf.prior_approved_rent
            return StartingPoint(
                value=rent,
                source="carryForward",
                published=rent,
                reasons=(
                    PriceReason(
                        type="carryForward",
                        description=f"Using prior approved rent ${round(rent)} ({cf.prior_approved_date.isoformat()})",
                        value=rent,
                    ),
                ),
            )

    if unit.current_rent > 0:
        rent = unit.current_rent
        return StartingPoint(
            value=rent,
            source="currentRent",
            published=rent,
            reasons=(
                PriceReason(type="carryForward", description=f"Using current rent ${round(rent)}", value=rent),
            ),
        )

    seed = context.starting_rents.get(unit.floorplan_code, 0.0)
    if seed > 0:
        return StartingPoint(
            value=seed,
            source="startingRent",
            published=seed,
            reasons=(
                PriceReason(
                    type="carryForward",
                    description=f"Using starting rent ${round(seed)} (fallback)",
                    value=seed,
                ),
            ),
        )

    rent = config.fallback_starting_rent
    return StartingPoint(
        value=rent,
        source="fallback",
        published=rent,
        reasons=(
            PriceReason(
                type="carryForward",
                description=f"No rent on file; using default ${round(rent)}",
                value=rent,
            ),
        ),
    )


def enforce_guardrails(
    move: float,
    start: StartingPoint,
    unit: UnitState,
    config: PricingConfig,
    context: PricingContext,
    *,
    lower_tier_reference_rent: Optional[float] = None,
    vacancy_discount: float = 0.0,
) -> GuardrailOutcome:
    """
    Turn a signed move into a finalized baseline.

    The order is fixed: cap -> floor -> buffer -> tier gap. Each clamp that
    fires is recorded as a reason; nothing is applied silently.
    """
    reasons: List[PriceReason] = []
    code = unit.floorplan_code

    candidate = start.value * (1 + move)

    # ------------------------------------------------------------------
    # 1) Directional cap (decreases only)
    # ------------------------------------------------------------------
    cap_clamped = False
    min_allowed = start.value * (1 - config.max_weekly_decrease)
    if candidate < min_allowed:
        reasons.append(
            PriceReason(
                type="cap",
                description=(
                    f"Capped to max {config.max_weekly_decrease * 100:.0f}% decrease "
                    f"(was ${round(candidate)}, capped to ${round(min_allowed)})"
                ),
                value=min_allowed - candidate,
            )
        )
        candidate = min_allowed
        cap_clamped = True

    # ------------------------------------------------------------------
    # 2) Absolute floor
    # ------------------------------------------------------------------
    floor_clamped = False
    floor_basis = unit.current_rent if unit.current_rent > 0 else start.value
    min_floor = max(config.absolute_floor, floor_basis * config.min_floor_vs_current_rent)
    if candidate < min_floor:
        reasons.append(
            PriceReason(
                type="floor",
                description=(
                    f"Floored to {config.min_floor_vs_current_rent * 100:.0f}% of current rent "
                    f"(was ${round(candidate)}, floored to ${round(min_floor)})"
                ),
                value=min_floor - candidate,
            )
        )
        candidate = min_floor
        floor_clamped = True

    # ------------------------------------------------------------------
    # 3) Stop-decrease buffer vs last published baseline
    # ------------------------------------------------------------------
    buffer_hit = False
    buffer = float(config.stop_down_buffer.get(code, 0.0))
    if buffer > 0:
        min_buffered = start.published - buffer
        if candidate < min_buffered:
            reasons.append(
                PriceReason(
                    type="buffer",
                    description=(
                        f"Buffer guardrail: kept >= ${round(min_buffered)} "
                        f"(published ${round(start.published)} - ${round(buffer)})"
                    ),
                    value=min_buffered - candidate,
                )
            )
            candidate = min_buffered
            buffer_hit = True

    # ------------------------------------------------------------------
    # 4) Minimum gap to the next lower tier (raise only)
    # ------------------------------------------------------------------
    gap_enforced = False
    if lower_tier_reference_rent is not None:
        gap = float(config.min_gap_to_next_tier.get(code, 0.0))
        required = math.ceil(lower_tier_reference_rent + gap - 1e-9)
        projected = project_reference_rent(
            candidate,
            config,
            context.evaluation_date,
            vacancy_discount=vacancy_discount,
            amenity_adj=unit.amenity_adj,
        )
        if projected < required:
            raised = baseline_for_reference_rent(
                required,
                config,
                context.evaluation_date,
                vacancy_discount=vacancy_discount,
                amenity_adj=unit.amenity_adj,
            )
            if raised > candidate:
                reasons.append(
                    PriceReason(
                        type="tierGap",
                        description=(
                            f"Enforced ${round(gap)} min gap to lower tier "
                            f"(lower ref ${round(lower_tier_reference_rent)}, "
                            f"was ${round(candidate)}, raised to ${round(raised)})"
                        ),
                        value=raised - candidate,
                    )
                )
                candidate = raised
                gap_enforced = True

    if reasons:
        logger.debug(
            "unit_guardrails_fired",
            extra={
                "context": {
                    "unit_id": unit.unit_id,
                    "floorplan": code,
                    "clamps": [r.type for r in reasons],
                    "baseline": candidate,
                }
            },
        )

    return GuardrailOutcome(
        baseline=candidate,
        reasons=tuple(reasons),
        cap_clamped=cap_clamped,
        floor_clamped=floor_clamped,
        buffer_guardrail=buffer_hit,
        tier_gap_enforced=gap_enforced,
    )
