# src/rentwise/services/term_pricing.py
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Optional

from rentwise.domain.policy import PricingConfig
from rentwise.domain.results import PriceReason, TermPrice

SEASONALITY_MIN = 0.8
SEASONALITY_MAX = 1.2


@dataclass(frozen=True)
class TermMenu:
    terms: tuple[TermPrice, ...]
    reference_rent: float
    any_short_term: bool
    any_over_cap: bool
    any_seasonal: bool


def round_price(value: float) -> float:
    """Half-up to whole dollars, never negative."""
    return float(max(0, math.floor(value + 0.5)))


def short_term_premium(term: int, config: PricingConfig) -> float:
    st = config.short_term
    if term >= st.cutoff_term:
        return 0.0
    return max(0.0, st.start - (term - st.anchor_term) * st.taper)


def over_cap_premium(term: int, config: PricingConfig) -> float:
    return float(config.over_cap_premiums.get(term, 0.0))


def end_month_index(evaluation_date: date, term: int) -> int:
    """0-based calendar month in which a lease signed today for `term` months ends."""
    return (evaluation_date.month - 1 + term) % 12


def seasonality_uplift(term: int, evaluation_date: date, config: PricingConfig) -> float:
    """
    Positive-only uplift for the lease end month.

    Applies only to terms carrying a positive over-cap premium.
    """
    if not config.seasonality_enabled:
        return 0.0
    if over_cap_premium(term, config) <= 0:
        return 0.0

    idx = end_month_index(evaluation_date, term)
    multipliers = config.seasonality_multipliers
    mult = multipliers[idx] if idx < len(multipliers) else 1.0
    uplift = min(SEASONALITY_MAX, max(SEASONALITY_MIN, mult)) - 1
    return uplift if uplift > 0 else 0.0


def vacancy_age_discount(
    vacant_days: int,
    config: PricingConfig,
) -> tuple[float, Optional[PriceReason]]:
    va = config.vacancy_age
    if not va.enabled or vacant_days <= va.threshold_days:
        return 0.0, None

    days_over = vacant_days - va.threshold_days
    discount = min(days_over * va.discount_per_day, va.max_discount)
    reason = PriceReason(
        type="vacancyAge",
        description=f"Vacancy age discount {discount * 100:.1f}% ({vacant_days} days vacant)",
        value=-discount,
    )
    return discount, reason


def term_factor(term: int, evaluation_date: date, config: PricingConfig) -> float:
    """Combined premium factor for one term, before the vacancy discount."""
    return (
        1
        + short_term_premium(term, config)
        + over_cap_premium(term, config)
        + seasonality_uplift(term, evaluation_date, config)
    )


def project_reference_rent(
    baseline: float,
    config: PricingConfig,
    evaluation_date: date,
    *,
    vacancy_discount: float = 0.0,
    amenity_adj: float = 0.0,
) -> float:
    """Unrounded reference-term price for a candidate baseline."""
    factor = term_factor(config.reference_term, evaluation_date, config)
    return baseline * factor * (1 - vacancy_discount) + amenity_adj


def baseline_for_reference_rent(
    target: float,
    config: PricingConfig,
    evaluation_date: date,
    *,
    vacancy_discount: float = 0.0,
    amenity_adj: float = 0.0,
) -> float:
    """Inverse of project_reference_rent."""
    factor = term_factor(config.reference_term, evaluation_date, config)
    scale = factor * (1 - vacancy_discount)
    if scale <= 0:
        return target
    return (target - amenity_adj) / scale


def _fmt(pct: float) -> str:
    return f"{'+' if pct >= 0 else '-'}{abs(pct) * 100:.1f}%"


def expand_terms(
    baseline: float,
    config: PricingConfig,
    evaluation_date: date,
    *,
    vacancy_discount: float = 0.0,
    amenity_adj: float = 0.0,
) -> TermMenu:
    """
    Expand one finalized baseline into a price per configured term.

    Premiums add into one factor, the vacancy discount scales it, and the
    result is rounded once at the very end.
    """
    prices: list[TermPrice] = []
    reference_rent = 0.0
    any_short = any_over = any_seas = False

    for term in config.available_terms:
        short_pct = short_term_premium(term, config)
        over_pct = over_cap_premium(term, config)
        seas_pct = seasonality_uplift(term, evaluation_date, config)

        reasons: list[PriceReason] = []
        parts: list[str] = []
        if short_pct > 0:
            any_short = True
            reasons.append(
                PriceReason(type="shortTerm", description=f"Short-term premium {_fmt(short_pct)}", value=short_pct)
            )
            parts.append(f"Short: {_fmt(short_pct)}")
        if over_pct != 0:
            any_over = any_over or over_pct > 0
            reasons.append(
                PriceReason(type="overCap", description=f"Over-cap premium {_fmt(over_pct)}", value=over_pct)
            )
            parts.append(f"Over cap: {_fmt(over_pct)}")
        if seas_pct > 0:
            any_seas = True
            reasons.append(
                PriceReason(type="seasonality", description=f"Seasonal uplift {_fmt(seas_pct)}", value=seas_pct)
            )
            parts.append(f"Seasonal: {_fmt(seas_pct)}")
        if vacancy_discount:
            parts.append(f"Vacancy: {_fmt(-vacancy_discount)}")
        if amenity_adj:
            parts.append(f"Amenity: {'+' if amenity_adj >= 0 else '-'}${abs(amenity_adj):.0f}")

        raw = baseline * (1 + short_pct + over_pct + seas_pct) * (1 - vacancy_discount) + amenity_adj
        price = round_price(raw)

        prices.append(
            TermPrice(
                term=term,
                price=price,
                note=" + ".join(parts) if parts else "Base price",
                reasons=tuple(reasons),
            )
        )
        if term == config.reference_term:
            reference_rent = price

    return TermMenu(
        terms=tuple(prices),
        reference_rent=reference_rent,
        any_short_term=any_short,
        any_over_cap=any_over,
        any_seasonal=any_seas,
    )
