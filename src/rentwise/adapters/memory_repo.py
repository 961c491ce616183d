from datetime import date
from typing import Iterable

from rentwise.domain.ports import BaselineRepository
from rentwise.domain.results import UnitPricingResult
from rentwise.domain.units import CarryForwardBaseline


class InMemoryBaselineRepository(BaselineRepository):
    def __init__(self, baselines: Iterable[CarryForwardBaseline] = ()) -> None:
        self._items: dict[str, CarryForwardBaseline] = {b.unit_id: b for b in baselines}

    def load(self) -> dict[str, CarryForwardBaseline]:
        return dict(self._items)

    def get(self, unit_id: str) -> CarryForwardBaseline | None:
        return self._items.get(unit_id)

    def approve(
        self,
        results: Iterable[UnitPricingResult],
        *,
        approved_on: date,
    ) -> int:
        """Store each result's pre-premium baseline as that unit's next starting point."""
        n = 0
        for r in results:
            self._items[r.unit_id] = CarryForwardBaseline(
                unit_id=r.unit_id,
                floorplan_code=r.floorplan_code,
                prior_approved_rent=r.baseline_rent,
                prior_approved_date=approved_on,
                term=r.reference_term,
            )
            n += 1
        return n

    def clear(self) -> None:
        self._items.clear()
