r"""demand_engine\__init__.py

Demand forecasting engine: Holt-Winters smoothing with calendar seasonality,
confidence scoring, influence factors and forecast-shape grouping."""

from importlib import import_module
from typing import Any

__all__ = [
    "DemandForecast",
    "DemandForecastEngine",
    "ExternalFactor",
    "ForecastConfig",
    "ForecastPoint",
    "InfluenceFactor",
    "ProductTrend",
    "SalesObservation",
    "SeasonalFactor",
]

_LOCATIONS = {
    "DemandForecastEngine": "demand_engine.services.forecasting_service",
}


def __getattr__(name: str) -> Any:
    if name in __all__:
        module = import_module(_LOCATIONS.get(name, "demand_engine.models.schemas"))
        value = getattr(module, name)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
