# src/rentwise/analysis/box_score.py

from __future__ import annotations
from dataclasses import asdict, dataclass
from datetime import date
from typing import Sequence

import pandas as pd

from rentwise.sim.models import SimState, SimulatedUnit

STATUSES = ("occupied", "on_notice", "preleased", "vacant", "offline")


def classify_unit(unit: SimulatedUnit, today: date) -> str:
    """Map a simulator state onto the rent-roll status the engine reads."""
    state = unit.state
    if state is SimState.OCCUPIED:
        return "occupied"
    if state is SimState.ON_NOTICE:
        return "on_notice"
    if state is SimState.ON_NOTICE_RENTED:
        if unit.prelease_start is not None and today >= unit.prelease_start:
            return "preleased"
        return "on_notice"
    if state in (SimState.VACANT_NOT_READY, SimState.VACANT_READY):
        return "vacant"
    if state is SimState.PRELEASED:
        return "preleased"
    return "offline"


@dataclass(frozen=True)
class BoxScore:
    total_units: int
    occupied: int
    vacant: int
    on_notice: int
    preleased: int
    offline: int

    # preleased units whose current resident has not moved out yet
    preleased_in_place: int

    rentable_units: int
    occupancy_rate: float           # 0..1, physically occupied
    projected_occupancy: float      # 0..1, occupied + preleased


def _clamp01(x: float) -> float:
    return float(min(1.0, max(0.0, x)))


def compute_box_score(units: Sequence[SimulatedUnit], today: date) -> BoxScore:
    """
    Counts and occupancy for a set of simulated units.

    Offline units are excluded from the rentable denominator. Rates are 0
    when nothing is rentable.
    """
    statuses = [classify_unit(u, today) for u in units]
    counts = {s: statuses.count(s) for s in STATUSES}

    in_place = sum(
        1
        for u, s in zip(units, statuses)
        if s == "preleased" and u.state is SimState.ON_NOTICE_RENTED
    )

    rentable = len(units) - counts["offline"]
    if rentable > 0:
        current = (counts["occupied"] + counts["on_notice"] + in_place) / rentable
        projected = (counts["occupied"] + counts["preleased"]) / rentable
    else:
        current = projected = 0.0

    return BoxScore(
        total_units=len(units),
        occupied=counts["occupied"],
        vacant=counts["vacant"],
        on_notice=counts["on_notice"],
        preleased=counts["preleased"],
        offline=counts["offline"],
        preleased_in_place=in_place,
        rentable_units=rentable,
        occupancy_rate=_clamp01(current),
        projected_occupancy=_clamp01(projected),
    )


def floorplan_box_scores(units: Sequence[SimulatedUnit], today: date) -> pd.DataFrame:
    """
    One box score row per floorplan, indexed by floorplan code (sorted).

    Columns are the BoxScore fields.
    """
    by_fp: dict[str, list[SimulatedUnit]] = {}
    for u in units:
        by_fp.setdefault(u.floorplan_code, []).append(u)

    rows = []
    for code in sorted(by_fp):
        row = asdict(compute_box_score(by_fp[code], today))
        row["floorplan_code"] = code
        rows.append(row)

    columns = ["floorplan_code", *BoxScore.__dataclass_fields__.keys()]
    df = pd.DataFrame(rows, columns=columns)
    return df.set_index("floorplan_code")
