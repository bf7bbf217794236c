"""Application configuration and settings management."""

from typing import Any, Literal

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="EVFLEET_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "EV Fleet Route Tracking"
    api_base_url: str = Field(
        default="http://localhost:8080",
        description="Base URL of the fleet console backend (persistence and optimization endpoints).",
    )
    request_timeout_seconds: float = Field(default=30.0, gt=0.0)
    connect_timeout_seconds: float = Field(default=10.0, gt=0.0)
    driver_refresh_interval_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Polling interval for the driver view. The dispatcher view refreshes on demand only.",
    )

    depot_code: str = Field(default="DEPOT")
    depot_latitude: float = Field(default=21.0285, ge=-90.0, le=90.0)
    depot_longitude: float = Field(default=105.8542, ge=-180.0, le=180.0)

    default_charging_mode: Literal["FULL_RECHARGE", "BATTERY_SWAP"] = "BATTERY_SWAP"
    battery_swap_time_hours: float = Field(default=5 / 60, ge=0.0)
    optimize_parallel: bool = True

    route_colors: tuple[str, ...] = Field(
        default=("#3b82f6", "#10b981", "#f59e0b", "#ef4444", "#8b5cf6"),
        description="Palette cycled over route polylines on the map.",
    )
    log_level: str = Field(default="INFO")

    @field_validator("api_base_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: Any) -> str:
        return str(value).rstrip("/")

    @field_validator("route_colors", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
