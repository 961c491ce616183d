# src/rentwise/domain/ports.py
from __future__ import annotations

from datetime import date
from typing import Iterable, Protocol

from rentwise.domain.results import UnitPricingResult
from rentwise.domain.units import CarryForwardBaseline


# ----------------------------
# Carry-forward baseline storage
# ----------------------------

class BaselineRepository(Protocol):
    def load(self) -> dict[str, CarryForwardBaseline]:
        ...

    def get(self, unit_id: str) -> CarryForwardBaseline | None:
        ...

    def approve(
        self,
        results: Iterable[UnitPricingResult],
        *,
        approved_on: date,
    ) -> int:
        ...
