# src/rentwise/domain/policy.py
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Price response style => maximum trend move
PriceResponse = Literal["fast", "standard", "gentle"]

MAX_MOVE_BY_RESPONSE: dict[str, float] = {
    "fast": 0.08,
    "standard": 0.05,
    "gentle": 0.03,
}

DEFAULT_TERMS = [2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14]


def _check_fraction(v: float, name: str) -> float:
    if not (0.0 <= v <= 1.0):
        raise ValueError(f"{name} must be between 0 and 1")
    return v


class VacancyAgePricing(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    discount_per_day: float = Field(default=0.002, description="0.002 = 0.2% per day")
    max_discount: float = 0.10
    threshold_days: int = 30

    @field_validator("discount_per_day", "max_discount")
    @classmethod
    def _fraction(cls, v: float) -> float:
        return _check_fraction(v, "vacancy discount")

    @field_validator("max_discount")
    @classmethod
    def _below_full_discount(cls, v: float) -> float:
        # baseline_for_reference_rent divides by (1 - max_discount)
        if v >= 1.0:
            raise ValueError("max_discount must be below 1")
        return v


class ShortTermPremium(BaseModel):
    """+8% at the anchor term, -1pt per month, 0% at/after the cutoff."""
    model_config = ConfigDict(frozen=True)

    start: float = 0.08
    taper: float = 0.01
    anchor_term: int = 2
    cutoff_term: int = 10


class ConversionSteering(BaseModel):
    model_config = ConfigDict(frozen=True)

    strong_threshold: float = 0.30
    weak_threshold: float = 0.10
    nudge: float = 0.005
    lookback_days: int = 30

    @model_validator(mode="after")
    def _thresholds_ordered(self) -> "ConversionSteering":
        if self.weak_threshold > self.strong_threshold:
            raise ValueError("weak_threshold must not exceed strong_threshold")
        return self


class PricingFlags(BaseModel):
    model_config = ConfigDict(frozen=True)

    enable_carry_forward: bool = True
    enable_simulation: bool = False


class PricingConfig(BaseModel):
    """
    Policy knobs for one pricing run. Immutable; build a new one per run.
    """
    model_config = ConfigDict(frozen=True)

    price_response: PriceResponse = "standard"

    # Comfort band (fallback when a floorplan trend carries none)
    comfort_target: float = 0.95
    band_low: float = 0.93
    band_high: float = 0.96

    # Caps and floors
    max_weekly_decrease: float = Field(default=0.05, description="0.05 = at most 5% down per run")
    min_floor_vs_current_rent: float = 0.90
    absolute_floor: float = 500.0

    # Per-floorplan dollar amounts
    min_gap_to_next_tier: dict[str, float] = Field(default_factory=dict)
    stop_down_buffer: dict[str, float] = Field(default_factory=dict)

    # Terms
    reference_term: int = 14
    available_terms: list[int] = Field(default_factory=lambda: list(DEFAULT_TERMS))
    short_term: ShortTermPremium = Field(default_factory=ShortTermPremium)
    over_cap_premiums: dict[int, float] = Field(default_factory=dict)

    vacancy_age: VacancyAgePricing = Field(default_factory=VacancyAgePricing)

    # Seasonality: month index 0..11 => multiplier (1.05 = +5%)
    seasonality_enabled: bool = False
    seasonality_multipliers: list[float] = Field(default_factory=lambda: [1.0] * 12)

    # Manual per-floorplan move overrides (0.02 = +2%)
    trend_override_pct_by_fp: dict[str, float] = Field(default_factory=dict)

    conversion: ConversionSteering = Field(default_factory=ConversionSteering)

    # Used only when a unit has no carry-forward, no current rent and no seed rent
    fallback_starting_rent: float = 1000.0

    flags: PricingFlags = Field(default_factory=PricingFlags)

    @field_validator(
        "comfort_target",
        "band_low",
        "band_high",
        "max_weekly_decrease",
        "min_floor_vs_current_rent",
    )
    @classmethod
    def _fraction(cls, v: float) -> float:
        return _check_fraction(v, "fractional setting")

    @field_validator("available_terms")
    @classmethod
    def _valid_terms(cls, v: list[int]) -> list[int]:
        if not v:
            raise ValueError("available_terms must not be empty")
        if any(t <= 0 for t in v):
            raise ValueError("available_terms must be positive month counts")
        if len(set(v)) != len(v):
            raise ValueError("available_terms must not contain duplicates")
        return sorted(v)

    @field_validator("seasonality_multipliers")
    @classmethod
    def _twelve_months_max(cls, v: list[float]) -> list[float]:
        if len(v) > 12:
            raise ValueError("seasonality_multipliers holds at most 12 months")
        return v

    @model_validator(mode="after")
    def _reference_term_offered(self) -> "PricingConfig":
        if self.reference_term not in self.available_terms:
            raise ValueError(
                f"reference_term {self.reference_term} is not in available_terms"
            )
        if self.band_low > self.band_high:
            raise ValueError("band_low must not exceed band_high")
        return self

    @property
    def max_move(self) -> float:
        return MAX_MOVE_BY_RESPONSE[self.price_response]
