# src/rentwise/adapters/config.py
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    # App & logging
    ENV: str = Field(default="dev")
    LOG_LEVEL: str = Field(default="INFO")

    # -----------------------------
    # Simulator defaults
    # -----------------------------
    SIM_SEED: int = Field(default=12345)

    # Daily transition probabilities applied to every simulated floorplan
    SIM_P_NOTICE: float = Field(default=0.02)
    SIM_P_PRELEASE: float = Field(default=0.03)
    SIM_P_MAKE_READY: float = Field(default=0.10)

    # Optional ceiling on make-ready days; unset leaves it to SIM_P_MAKE_READY
    SIM_MAX_MAKE_READY_DAYS: Optional[int] = Field(default=None)

    # If true, a unit on notice with no prelease moves out at lease end
    SIM_VACATE_AT_LEASE_END: bool = Field(default=False)

    # If true, a simulated unit without a transition config is an error
    SIM_STRICT_FLOORPLANS: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_prefix="RENTWISE_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "SIM_P_NOTICE",
        "SIM_P_PRELEASE",
        "SIM_P_MAKE_READY",
        mode="before",
    )
    @classmethod
    def _to_probability(cls, v: Any) -> Any:
        if v is None:
            return v
        if isinstance(v, str):
            v = v.strip().replace("%", "")
        try:
            f = float(v)
        except Exception as err:
            raise ValueError("probability must be numeric or percent-like") from err
        if f > 1.0:
            f = f / 100.0
        if f < 0:
            raise ValueError("probability must be non-negative")
        return f

    @field_validator("SIM_MAX_MAKE_READY_DAYS", mode="before")
    @classmethod
    def _days_positive(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        n = int(v)
        if n <= 0:
            raise ValueError("SIM_MAX_MAKE_READY_DAYS must be > 0")
        return n


config = AppConfig()
