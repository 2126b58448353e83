"""Runtime settings, read from ``SCHEDULER_*`` environment variables."""

from __future__ import annotations

import os
from datetime import timedelta
from typing import Literal

from pydantic import BaseModel, Field, field_validator

_PREFIX = "SCHEDULER_"


class Settings(BaseModel):
    search_horizon_days: int = Field(default=7, gt=0)
    max_alternatives: int = Field(default=3, gt=0)
    max_tail_steps: int = Field(default=1000, gt=0)
    lock_timeout_seconds: float = Field(default=5.0, gt=0)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @property
    def search_horizon(self) -> timedelta:
        return timedelta(days=self.search_horizon_days)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        """Build settings from the environment, ignoring unset variables."""
        env = os.environ if environ is None else environ
        values = {
            name: env[_PREFIX + name.upper()]
            for name in cls.model_fields
            if _PREFIX + name.upper() in env
        }
        return cls(**values)


def get_settings() -> Settings:
    return Settings.from_env()
