# src/rentwise/sim/simulator.py
from __future__ import annotations

import calendar
import copy
from datetime import date, timedelta
from typing import Iterable, Sequence

from rentwise.adapters.logging_utils import get_logger
from rentwise.sim.models import FloorplanSeed, SimState, SimulatedUnit, TransitionConfig
from rentwise.sim.prng import DEFAULT_SEED, ParkMillerRandom

logger = get_logger(__name__)

LEASE_MONTHS = 12


def add_months(d: date, months: int) -> date:
    """Calendar month arithmetic; the day is clamped to the target month's length."""
    idx = d.month - 1 + months
    year = d.year + idx // 12
    month = idx % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


class UnitSimulator:
    """
    Advances synthetic units through the occupancy lifecycle, one day per tick.

    Units are processed in list order and every draw comes from a single
    ParkMillerRandom, so the same seed and tick count reproduce the exact same
    trajectory. Drive it from one caller only.
    """

    def __init__(
        self,
        seed: int = DEFAULT_SEED,
        units: Iterable[SimulatedUnit] = (),
        transition_configs: Iterable[TransitionConfig] = (),
        *,
        start_date: date,
        strict: bool = False,
    ) -> None:
        self._seed = seed
        self._prng = ParkMillerRandom(seed)
        self._start_date = start_date
        self._current_date = start_date
        self._tick_count = 0

        self._initial_units = [copy.deepcopy(u) for u in units]
        self._units = [copy.deepcopy(u) for u in self._initial_units]
        self._configs = {c.floorplan_code: c for c in transition_configs}

        unmatched = sorted({u.floorplan_code for u in self._units} - set(self._configs))
        if unmatched:
            if strict:
                raise ValueError(
                    f"no transition config for floorplan(s): {', '.join(unmatched)}"
                )
            logger.warning(
                "sim_floorplans_without_config",
                extra={"context": {"floorplans": unmatched}},
            )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def seed(self) -> int:
        return self._seed

    @property
    def current_date(self) -> date:
        return self._current_date

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def units(self) -> list[SimulatedUnit]:
        return [copy.deepcopy(u) for u in self._units]

    # ------------------------------------------------------------------
    # Driving
    # ------------------------------------------------------------------
    def tick(self) -> None:
        today = self._current_date + timedelta(days=1)
        self._current_date = today
        self._tick_count += 1

        for unit in self._units:
            self._process_unit(unit, today)

    def advance(self, days: int) -> None:
        for _ in range(days):
            self.tick()

    def reset(self, seed: int | None = None) -> None:
        """Back to the initial units and start date, optionally with a new seed."""
        if seed is not None:
            self._seed = seed
        self._prng.reset(self._seed)
        self._current_date = self._start_date
        self._tick_count = 0
        self._units = [copy.deepcopy(u) for u in self._initial_units]

    def take_offline(self, unit_id: str) -> None:
        self._find(unit_id).state = SimState.OFFLINE

    def clear_offline(self, unit_id: str, state: SimState = SimState.VACANT_NOT_READY) -> None:
        unit = self._find(unit_id)
        if unit.state is not SimState.OFFLINE:
            raise ValueError(f"unit {unit_id} is not offline")
        unit.state = state
        unit.vacant_days = 0

    def _find(self, unit_id: str) -> SimulatedUnit:
        for unit in self._units:
            if unit.unit_id == unit_id:
                return unit
        raise KeyError(unit_id)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def _process_unit(self, unit: SimulatedUnit, today: date) -> None:
        cfg = self._configs.get(unit.floorplan_code)
        if cfg is None:
            return

        state = unit.state

        if state is SimState.OCCUPIED:
            if self._prng.boolean(cfg.p_notice):
                unit.state = SimState.ON_NOTICE
                unit.notice_date = today

        elif state is SimState.ON_NOTICE:
            if self._prng.boolean(cfg.p_prelease):
                unit.state = SimState.ON_NOTICE_RENTED
                unit.prelease_start = today
            elif (
                cfg.vacate_at_lease_end
                and unit.lease_end_date is not None
                and today >= unit.lease_end_date
            ):
                unit.state = SimState.VACANT_NOT_READY
                unit.vacant_days = 0
                unit.lease_end_date = None

        elif state is SimState.ON_NOTICE_RENTED:
            if unit.lease_end_date is not None and today >= unit.lease_end_date:
                unit.state = SimState.VACANT_READY
                unit.vacant_days = 0
                unit.lease_end_date = None

        elif state is SimState.VACANT_NOT_READY:
            made_ready = self._prng.boolean(cfg.p_make_ready)
            unit.vacant_days += 1
            ceiling = cfg.max_make_ready_days
            if made_ready or (ceiling is not None and unit.vacant_days >= ceiling):
                unit.state = SimState.VACANT_READY

        elif state is SimState.VACANT_READY:
            p_move_in = min(0.05 + self._prng.random() * 0.10, 0.5)
            if self._prng.boolean(p_move_in):
                self._start_lease(unit, today)
            else:
                unit.vacant_days += 1

        elif state is SimState.PRELEASED:
            if unit.prelease_start is not None and today >= unit.prelease_start:
                self._start_lease(unit, today)

        # OFFLINE stays put until clear_offline()

    @staticmethod
    def _start_lease(unit: SimulatedUnit, today: date) -> None:
        unit.state = SimState.OCCUPIED
        unit.move_in_date = today
        unit.lease_end_date = add_months(today, LEASE_MONTHS)
        unit.notice_date = None
        unit.prelease_start = None
        unit.vacant_days = 0


def create_initial_units(
    floorplans: Sequence[FloorplanSeed],
    seed: int = DEFAULT_SEED,
    *,
    start_date: date,
) -> list[SimulatedUnit]:
    """
    Seed an all-occupied property: leases started 30-180 days ago, rents
    within $50 of the floorplan's starting rent.
    """
    prng = ParkMillerRandom(seed)
    units: list[SimulatedUnit] = []

    for fp in floorplans:
        for i in range(fp.count):
            days_ago = prng.randint(30, 180)
            lease_start = start_date - timedelta(days=days_ago)
            units.append(
                SimulatedUnit(
                    unit_id=f"{fp.code}-{i + 1:03d}",
                    floorplan_code=fp.code,
                    current_rent=fp.starting_rent + prng.randint(-50, 50),
                    lease_end_date=add_months(lease_start, LEASE_MONTHS),
                    move_in_date=lease_start,
                    state=SimState.OCCUPIED,
                )
            )

    return units
