"""Mini README: Centralised configuration for RoverPilot.

Structure:
    * RoverPilotSettings - settings model read from ``ROVERPILOT_*`` variables.
    * get_settings - cached accessor so validation runs once per process.

Usage:
    Import ``get_settings`` wherever a tunable is needed: route pacing,
    transport endpoints, or the control surface bind address. Tests build
    ``RoverPilotSettings(...)`` directly with overrides instead of touching
    the environment.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RoverPilotSettings(BaseSettings):
    """Runtime configuration for the rover control centre."""

    model_config = SettingsConfigDict(
        env_prefix="ROVERPILOT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = Field(
        "development",
        description="Environment label controlling debug toggles and logging levels.",
    )
    log_level: str = Field("INFO", description="Root logging level name.")
    interface_host: str = Field(
        "0.0.0.0",
        description="Network interface for the control surface to bind to.",
    )
    interface_port: int = Field(8000, ge=1, le=65535)

    interpolation_steps: int = Field(
        50,
        ge=1,
        description="Interpolation steps per route segment (each segment yields steps + 1 samples).",
    )
    step_interval_seconds: float = Field(
        0.05,
        ge=0.0,
        description="Pause between position samples while a route is running.",
    )
    default_center_lat: float = Field(61.05871, ge=-90.0, le=90.0)
    default_center_lng: float = Field(28.18871, ge=-180.0, le=180.0)

    network_host: str = Field("192.168.4.1", description="Vehicle address for the socket transport.")
    network_port: int = Field(3333, ge=1, le=65535)
    network_timeout_seconds: float = Field(5.0, gt=0.0)

    short_range_name_prefix: str = Field(
        "CAR-",
        description="Advertised device name prefix accepted during short-range discovery.",
    )
    short_range_service_uuid: Optional[str] = Field(
        None,
        description="Service identifier a paired device must advertise; unset accepts any.",
    )
    short_range_scan_seconds: float = Field(2.0, gt=0.0)

    relay_url: str = Field(
        "http://localhost:3001/command",
        description="Endpoint accepting JSON commands for the HTTP relay transport.",
    )
    relay_timeout_seconds: float = Field(3.0, gt=0.0)

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        """Accept any casing for level names."""

        return value.strip().upper() or "INFO"


@lru_cache()
def get_settings() -> RoverPilotSettings:
    """Return cached settings, ensuring consistent configuration across modules."""

    return RoverPilotSettings()
