"""
Application configuration utilities.

This module defines the ``Settings`` class used for environment variables
and provides helpers to load the YAML file holding the forecasting
parameters and seasonal factors.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any, Dict, Optional

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..models.schemas import ForecastConfig

LOGGER = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Configuration loaded from environment variables or a .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Location of the forecasting parameters
    demand_config_path: str = "configs/forecast.yaml"


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    """Return a cached instance of ``Settings``.

    Using a cache ensures that environment variables are only read once.
    """
    return Settings()


def load_yaml(file_path: str) -> dict:
    """Load a YAML file from the given path and return its contents.

    If the file does not exist, an empty dictionary is returned.
    """
    if not os.path.exists(file_path):
        return {}
    with open(file_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_forecast_config(file_path: Optional[str] = None) -> ForecastConfig:
    """Build a validated ``ForecastConfig`` from YAML.

    Missing keys fall back to the model defaults; a missing file yields the
    default configuration.  Invalid values raise ``pydantic.ValidationError``.
    """
    path = file_path or get_settings().demand_config_path
    raw: Dict[str, Any] = load_yaml(path)
    if not raw:
        LOGGER.info("No forecast configuration found at %s; using defaults", path)
        return ForecastConfig()

    # Allow the parameters to sit under a top-level ``forecast`` key.
    payload = raw.get("forecast", raw)
    config = ForecastConfig.model_validate(payload)
    LOGGER.info(
        "Loaded forecast configuration from %s (%d seasonal factors)",
        path,
        len(config.seasonal_factors),
    )
    return config
