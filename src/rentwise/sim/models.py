# src/rentwise/sim/models.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SimState(str, Enum):
    OCCUPIED = "OCCUPIED"
    ON_NOTICE = "ON_NOTICE"
    ON_NOTICE_RENTED = "ON_NOTICE_RENTED"
    VACANT_NOT_READY = "VACANT_NOT_READY"
    VACANT_READY = "VACANT_READY"
    PRELEASED = "PRELEASED"
    OFFLINE = "OFFLINE"


@dataclass
class SimulatedUnit:
    """Mutated in place, and only by UnitSimulator.tick()."""
    unit_id: str
    floorplan_code: str
    current_rent: float
    lease_end_date: Optional[date]
    move_in_date: Optional[date] = None
    notice_date: Optional[date] = None
    prelease_start: Optional[date] = None
    vacant_days: int = 0
    state: SimState = SimState.OCCUPIED


class TransitionConfig(BaseModel):
    """Daily transition probabilities for one floorplan."""
    model_config = ConfigDict(frozen=True)

    floorplan_code: str
    p_notice: float = 0.02
    p_prelease: float = 0.03
    p_make_ready: float = 0.10
    # Unset: readiness comes only from the p_make_ready draw
    max_make_ready_days: Optional[int] = Field(default=None, gt=0)
    # ON_NOTICE units with no prelease vacate at lease end when set
    vacate_at_lease_end: bool = False

    @field_validator("p_notice", "p_prelease", "p_make_ready")
    @classmethod
    def _probability(cls, v: float) -> float:
        if not (0.0 <= v <= 1.0):
            raise ValueError("probabilities must be between 0 and 1")
        return v


class FloorplanSeed(BaseModel):
    """How many units of a floorplan to seed, and around what rent."""
    model_config = ConfigDict(frozen=True)

    code: str
    count: int = Field(..., ge=0)
    starting_rent: float
    bedrooms: int = 0
    label: str = ""
