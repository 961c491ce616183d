# src/rentwise/domain/context.py
from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from rentwise.domain.units import (
    CarryForwardBaseline,
    CommunityMetrics,
    FloorplanTrend,
    LeadsAppsData,
)


class PricingContext(BaseModel):
    """
    Everything the engine may look at besides the unit and the policy.

    Supplied whole by the caller for each run; the engine never reaches
    outside of it (no storage, no clock).
    """
    model_config = ConfigDict(frozen=True)

    floorplan_trends: dict[str, FloorplanTrend] = Field(default_factory=dict)
    community_metrics: CommunityMetrics

    # Optional inputs; absence never raises
    leads_apps: dict[str, LeadsAppsData] = Field(default_factory=dict)
    carry_forward: dict[str, CarryForwardBaseline] = Field(default_factory=dict)

    # Seed rents by floorplan code (fallback when there is no carry-forward / rent)
    starting_rents: dict[str, float] = Field(default_factory=dict)

    evaluation_date: date
