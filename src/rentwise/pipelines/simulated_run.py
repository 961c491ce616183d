# src/rentwise/pipelines/simulated_run.py

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd
from loguru import logger

from rentwise.adapters.config import AppConfig, config as app_config
from rentwise.analysis.box_score import BoxScore, classify_unit, compute_box_score, floorplan_box_scores
from rentwise.domain.context import PricingContext
from rentwise.domain.policy import PricingConfig
from rentwise.domain.ports import BaselineRepository
from rentwise.domain.units import (
    CarryForwardBaseline,
    CommunityMetrics,
    FloorplanTrend,
    LeadsAppsData,
    UnitState,
)
from rentwise.services.engine import price_all_units
from rentwise.sim.models import FloorplanSeed, TransitionConfig
from rentwise.sim.simulator import UnitSimulator, create_initial_units

HISTORY_COLUMNS = [
    "day",
    "date",
    "unit_id",
    "floorplan_code",
    "status",
    "starting_point",
    "baseline_rent",
    "reference_rent",
]


# ---------------------------
# 1. SIMULATED DATA PROVIDER
# ---------------------------

class SimulatedPortfolio:
    """
    A seeded property that stands in for a live rent roll.

    Wraps a UnitSimulator and presents its units, box score and occupancy
    trends in the shapes the pricing engine consumes.
    """

    def __init__(
        self,
        floorplans: Sequence[FloorplanSeed],
        seed: Optional[int] = None,
        *,
        start_date: date,
        settings: AppConfig = app_config,
    ) -> None:
        self._floorplans = {fp.code: fp for fp in floorplans}
        seed = settings.SIM_SEED if seed is None else seed

        transition_configs = [
            TransitionConfig(
                floorplan_code=fp.code,
                p_notice=settings.SIM_P_NOTICE,
                p_prelease=settings.SIM_P_PRELEASE,
                p_make_ready=settings.SIM_P_MAKE_READY,
                max_make_ready_days=settings.SIM_MAX_MAKE_READY_DAYS,
                vacate_at_lease_end=settings.SIM_VACATE_AT_LEASE_END,
            )
            for fp in floorplans
        ]

        self.simulator = UnitSimulator(
            seed,
            create_initial_units(floorplans, seed, start_date=start_date),
            transition_configs,
            start_date=start_date,
            strict=settings.SIM_STRICT_FLOORPLANS,
        )

        logger.info(
            "Simulated portfolio created",
            seed=seed,
            start_date=start_date.isoformat(),
            floorplans=sorted(self._floorplans),
            units=len(self.simulator.units()),
        )

    @property
    def current_date(self) -> date:
        return self.simulator.current_date

    @property
    def starting_rents(self) -> Dict[str, float]:
        return {code: fp.starting_rent for code, fp in self._floorplans.items()}

    def units(self) -> List[UnitState]:
        today = self.simulator.current_date
        out: List[UnitState] = []
        for u in self.simulator.units():
            fp = self._floorplans.get(u.floorplan_code)
            label = fp.label if fp is not None and fp.label else f"{u.floorplan_code} - Simulated"
            out.append(
                UnitState(
                    unit_id=u.unit_id,
                    floorplan_code=u.floorplan_code,
                    floorplan_label=label,
                    status=classify_unit(u, today),
                    current_rent=u.current_rent,
                    lease_end_date=u.lease_end_date,
                    prelease_start_date=u.prelease_start,
                    move_in_date=u.move_in_date,
                    vacant_days=u.vacant_days,
                )
            )
        return out

    def box_score(self) -> BoxScore:
        return compute_box_score(self.simulator.units(), self.simulator.current_date)

    def floorplan_box_scores(self) -> pd.DataFrame:
        return floorplan_box_scores(self.simulator.units(), self.simulator.current_date)

    def build_context(
        self,
        config: PricingConfig,
        baselines: Optional[Mapping[str, CarryForwardBaseline]] = None,
        leads_apps: Optional[Mapping[str, LeadsAppsData]] = None,
    ) -> PricingContext:
        """
        Engine context for today: projected occupancy is the trend,
        physical occupancy is the current figure.
        """
        per_fp = self.floorplan_box_scores()
        trends: Dict[str, FloorplanTrend] = {}
        for code, row in per_fp.iterrows():
            fp = self._floorplans.get(code)
            trends[code] = FloorplanTrend(
                code=code,
                trending=float(row["projected_occupancy"]),
                current=float(row["occupancy_rate"]),
                bedrooms=fp.bedrooms if fp is not None else 0,
            )

        box = self.box_score()
        return PricingContext(
            floorplan_trends=trends,
            community_metrics=CommunityMetrics(
                trending_occupancy=box.projected_occupancy,
                current_occupancy=box.occupancy_rate,
                target=config.comfort_target,
            ),
            leads_apps=dict(leads_apps or {}),
            carry_forward=dict(baselines or {}),
            starting_rents=self.starting_rents,
            evaluation_date=self.simulator.current_date,
        )

    def advance_days(self, days: int) -> None:
        if days < 0:
            raise ValueError("days must be >= 0")
        self.simulator.advance(days)


# ---------------------------
# 2. CARRY-FORWARD RUN
# ---------------------------

def run_carry_forward(
    portfolio: SimulatedPortfolio,
    config: PricingConfig,
    repository: BaselineRepository,
    days: int,
    leads_apps: Optional[Mapping[str, LeadsAppsData]] = None,
) -> pd.DataFrame:
    """
    Advance the portfolio one day at a time and reprice it each day,
    starting every run from the baselines approved the day before.

    Returns one history row per unit per day (see HISTORY_COLUMNS).
    """
    logger.info(
        "Starting carry-forward run",
        days=days,
        start_date=portfolio.current_date.isoformat(),
        price_response=config.price_response,
    )

    rows: List[Dict[str, Any]] = []
    for day in range(1, days + 1):
        portfolio.advance_days(1)
        context = portfolio.build_context(config, repository.load(), leads_apps)
        result = price_all_units(portfolio.units(), config, context)

        approved = repository.approve(result.unit_pricing.values(), approved_on=context.evaluation_date)

        status_by_unit = {u.unit_id: u.status for u in portfolio.units()}
        for unit_id, r in result.unit_pricing.items():
            rows.append(
                {
                    "day": day,
                    "date": context.evaluation_date,
                    "unit_id": unit_id,
                    "floorplan_code": r.floorplan_code,
                    "status": status_by_unit.get(unit_id, ""),
                    "starting_point": r.delta.previous,
                    "baseline_rent": r.baseline_rent,
                    "reference_rent": r.reference_rent,
                }
            )

        logger.debug(
            "Carry-forward day priced",
            day=day,
            date=context.evaluation_date.isoformat(),
            approved=approved,
        )

    history = pd.DataFrame(rows, columns=HISTORY_COLUMNS)
    logger.info("Carry-forward run completed", days=days, rows=len(history))
    return history


def summarize_run(history: pd.DataFrame) -> Dict[str, Any]:
    """
    Day-over-day movement of each unit's reference rent.

    Keys:
      - days, units
      - max_abs_daily_change, mean_abs_daily_change, p95_abs_daily_change
      - first_mean_reference_rent, last_mean_reference_rent
    """
    if history.empty:
        return {
            "days": 0,
            "units": 0,
            "max_abs_daily_change": 0.0,
            "mean_abs_daily_change": 0.0,
            "p95_abs_daily_change": 0.0,
            "first_mean_reference_rent": None,
            "last_mean_reference_rent": None,
        }

    df = history.sort_values(["unit_id", "day"])
    changes = df.groupby("unit_id")["reference_rent"].diff().dropna().to_numpy(dtype=float)
    abs_changes = np.abs(changes)

    first_day = int(df["day"].min())
    last_day = int(df["day"].max())

    def mean_on(day: int) -> float:
        return float(df.loc[df["day"] == day, "reference_rent"].mean())

    return {
        "days": int(df["day"].nunique()),
        "units": int(df["unit_id"].nunique()),
        "max_abs_daily_change": float(abs_changes.max()) if abs_changes.size else 0.0,
        "mean_abs_daily_change": float(abs_changes.mean()) if abs_changes.size else 0.0,
        "p95_abs_daily_change": float(np.percentile(abs_changes, 95)) if abs_changes.size else 0.0,
        "first_mean_reference_rent": mean_on(first_day),
        "last_mean_reference_rent": mean_on(last_day),
    }
