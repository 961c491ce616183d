# src/rentwise/domain/units.py
from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UnitState(BaseModel):
    """
    One row of the rent roll, already normalized by the ingestion layer.

    The engine only reads it; it is never mutated during a pricing run.
    """
    model_config = ConfigDict(frozen=True)

    unit_id: str
    floorplan_code: str
    floorplan_label: str = ""
    status: str = Field(..., description="e.g. 'vacant', 'occupied (on-notice)'")
    current_rent: float = 0.0

    lease_end_date: date | None = None
    prelease_start_date: date | None = None
    move_in_date: date | None = None

    vacant_days: int = 0
    amenity_adj: float = Field(default=0.0, description="Flat dollar adjustment per term")

    @field_validator("vacant_days")
    @classmethod
    def _non_negative_days(cls, v: int) -> int:
        if v < 0:
            raise ValueError("vacant_days must be >= 0")
        return v


class FloorplanTrend(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    trending: float = Field(..., description="0..1, e.g. 0.86 = 86%")
    current: float = Field(..., description="0..1")

    # Comfort band; falls back to PricingConfig.band_low / band_high when unset
    band_low: float | None = None
    band_high: float | None = None

    bedrooms: int = 0


class CommunityMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    trending_occupancy: float
    current_occupancy: float
    target: float = 0.95


class LeadsAppsData(BaseModel):
    """Leads / applications for one floorplan over a lookback window."""
    model_config = ConfigDict(frozen=True)

    leads: int = 0
    apps: int = 0
    days_tracked: int | None = None


class CarryForwardBaseline(BaseModel):
    """
    The rent approved in a previous run.

    Once present for a unit it, not the seed rent, is where the next run starts.
    """
    model_config = ConfigDict(frozen=True)

    unit_id: str
    floorplan_code: str
    prior_approved_rent: float
    prior_approved_date: date
    term: int = 14
