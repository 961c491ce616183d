# tests/conftest.py
from datetime import date

import pytest

from rentwise.adapters.config import AppConfig
from rentwise.sim.models import FloorplanSeed

from .fixtures.pricing import standard_config


@pytest.fixture
def pricing_cfg():
    return standard_config()


@pytest.fixture
def sim_settings():
    # Explicit values so RENTWISE_* variables in the shell can't leak in
    return AppConfig(
        SIM_SEED=12345,
        SIM_P_NOTICE=0.02,
        SIM_P_PRELEASE=0.03,
        SIM_P_MAKE_READY=0.10,
        SIM_MAX_MAKE_READY_DAYS=None,
        SIM_VACATE_AT_LEASE_END=False,
        SIM_STRICT_FLOORPLANS=False,
    )


@pytest.fixture
def property_floorplans():
    return [
        FloorplanSeed(code="S0", count=4, starting_rent=1200, bedrooms=0, label="S0 - Studio"),
        FloorplanSeed(code="A1", count=6, starting_rent=1400, bedrooms=1, label="A1 - 1x1"),
        FloorplanSeed(code="B2", count=4, starting_rent=1900, bedrooms=2, label="B2 - 2x2"),
    ]


@pytest.fixture
def sim_start():
    return date(2025, 1, 1)
