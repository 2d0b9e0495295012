"""
OEE Monitor - Configuration

Settings are read from environment variables (and an optional ``.env`` file)
through pydantic-settings. Shift reference data lives here too: the default
catalog is a ``NAME=HH:MM-HH:MM`` list, parsed by the shift window service.
"""

import os
from functools import lru_cache
from typing import Annotated, List

from pydantic import Field, validator
from pydantic_settings import BaseSettings, NoDecode

from oee_monitor.services.shift_window import parse_shift_catalog, parse_time_of_day
from oee_monitor.utils.exceptions import ShiftConfigurationError

ENVIRONMENTS = ("development", "staging", "production")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """OEE Monitor settings."""

    # Service
    APP_NAME: str = "OEE Monitor API"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development", env="ENVIRONMENT")
    DEBUG: bool = Field(default=False, env="DEBUG")
    HOST: str = Field(default="0.0.0.0", env="HOST")
    PORT: int = Field(default=8000, env="PORT")
    LOG_LEVEL: str = Field(default="INFO", env="LOG_LEVEL")
    # comma separated in the environment, not JSON
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default=["http://localhost:3000"],
        env="ALLOWED_ORIGINS"
    )

    # Shifts
    SHIFT_CATALOG: str = Field(
        default="A=06:00-14:00,B=14:00-22:00,C=22:00-06:00",
        env="SHIFT_CATALOG",
        description="Default catalog for requests that carry no shifts"
    )
    DEFAULT_SHIFT_START: str = Field(default="06:00", env="DEFAULT_SHIFT_START")
    DEFAULT_SHIFT_END: str = Field(default="14:00", env="DEFAULT_SHIFT_END")

    # Reports
    TIMELINE_INTERVAL_MINUTES: int = Field(default=15, gt=0, env="TIMELINE_INTERVAL_MINUTES")
    TREND_DAYS: int = Field(default=7, gt=0, env="TREND_DAYS")
    RESULT_DECIMALS: int = Field(default=2, ge=0, env="RESULT_DECIMALS")
    RECENT_DOWNTIME_LIMIT: int = Field(default=10, gt=0, env="RECENT_DOWNTIME_LIMIT")
    RECENT_COUNT_LIMIT: int = Field(default=20, gt=0, env="RECENT_COUNT_LIMIT")

    ENABLE_METRICS: bool = Field(default=True, env="ENABLE_METRICS")

    @validator("ALLOWED_ORIGINS", pre=True)
    def split_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @validator("ENVIRONMENT")
    def check_environment(cls, v):
        if v not in ENVIRONMENTS:
            raise ValueError(f"ENVIRONMENT must be one of {list(ENVIRONMENTS)}")
        return v

    @validator("LOG_LEVEL")
    def check_log_level(cls, v):
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {list(LOG_LEVELS)}")
        return level

    @validator("DEFAULT_SHIFT_START", "DEFAULT_SHIFT_END")
    def check_time_of_day(cls, v):
        v = v.strip()
        parse_time_of_day(v)
        return v

    @validator("SHIFT_CATALOG")
    def check_shift_catalog(cls, v):
        try:
            parse_shift_catalog(v)
        except ShiftConfigurationError as e:
            raise ValueError(e.message) from e
        return v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Per-environment defaults, applied unless the variable is set explicitly
ENVIRONMENT_DEFAULTS = {
    "development": {"DEBUG": True, "LOG_LEVEL": "DEBUG"},
    "staging": {"DEBUG": False, "LOG_LEVEL": "INFO"},
    "production": {"DEBUG": False, "LOG_LEVEL": "WARNING", "ALLOWED_ORIGINS": []},
}


@lru_cache()
def get_settings() -> Settings:
    """Settings for the environment named by ``ENVIRONMENT``."""
    environment = os.getenv("ENVIRONMENT", "development")
    overrides = {
        name: value
        for name, value in ENVIRONMENT_DEFAULTS.get(environment, {}).items()
        if name not in os.environ
    }
    return Settings(**overrides)


settings = get_settings()
