r"""demand_engine\services\forecasting_service.py

Demand forecasting engine for perishable goods with weekly and calendar
seasonality.

The engine composes the pure modelling steps (outlier filtering, trend
regression, Holt-Winters smoothing, confidence scoring and influence
extraction) per product.  It owns exactly two pieces of mutable state: the
``ForecastConfig`` and a table of the most recent ``ProductTrend`` per
product.  Callers construct and hold an engine instance; nothing is shared
through module globals.
"""

from __future__ import annotations

import logging
import threading
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from ..core.config import load_forecast_config
from ..models.schemas import (
    DemandForecast,
    ExternalFactor,
    ForecastConfig,
    ProductTrend,
    SalesObservation,
    SeasonalFactor,
)
from .confidence import score_confidence
from .grouping import group_by_demand_pattern
from .holt_winters import forecast_points
from .influence import influencing_factors
from .outliers import remove_outliers
from .seasonality import product_category
from .trend import estimate_trend

LOGGER = logging.getLogger(__name__)


def observations_frame(observations: Iterable[SalesObservation]) -> pd.DataFrame:
    """Return a frame with ``product_id``, ``date`` and the original record in ``obs``."""

    records = list(observations)
    return pd.DataFrame(
        {
            "product_id": pd.Series([o.product_id for o in records], dtype="string"),
            "date": pd.to_datetime(pd.Series([o.date for o in records], dtype="object")),
            "obs": pd.Series(records, dtype="object"),
        }
    )


class DemandForecastEngine:
    """Generate per-product demand forecasts and group products by pattern."""

    def __init__(
        self,
        config: Optional[ForecastConfig] = None,
        external_factors: Optional[Iterable[ExternalFactor]] = None,
    ) -> None:
        # Private copy; callers may build several engines from one config.
        self.config: ForecastConfig = (
            config.model_copy(deep=True) if config is not None else ForecastConfig()
        )
        self.external_factors: List[ExternalFactor] = list(external_factors or [])
        self._trends: Dict[str, ProductTrend] = {}
        self._trends_lock = threading.Lock()

    @classmethod
    def from_yaml(cls, path: Optional[str] = None) -> "DemandForecastEngine":
        """Build an engine from the YAML configuration file."""
        return cls(config=load_forecast_config(path))

    # ------------------------------------------------------------------
    # Configuration surface

    def update_config(self, **changes: Any) -> ForecastConfig:
        """Merge ``changes`` into the configuration.

        The merged configuration is validated as a whole; on failure the
        current configuration is left untouched.
        """

        unknown = set(changes) - set(ForecastConfig.model_fields)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")

        merged = self.config.model_dump()
        merged.update(changes)
        self.config = ForecastConfig.model_validate(merged)
        LOGGER.info("Forecast configuration updated: %s", sorted(changes))
        return self.config

    def add_seasonal_factor(self, factor: SeasonalFactor | Mapping[str, Any]) -> SeasonalFactor:
        """Add ``factor``, replacing any existing factor with the same name."""

        factor = SeasonalFactor.model_validate(factor)
        remaining = [f for f in self.config.seasonal_factors if f.name != factor.name]
        self.config = self.config.model_copy(update={"seasonal_factors": [*remaining, factor]})
        LOGGER.info(
            "Seasonal factor %s set: %s..%s x%.2f",
            factor.name,
            factor.start_date,
            factor.end_date,
            factor.impact_multiplier,
        )
        return factor

    def remove_seasonal_factor(self, name: str) -> bool:
        """Remove the factor called ``name``; return whether one was removed."""

        before = len(self.config.seasonal_factors)
        remaining = [f for f in self.config.seasonal_factors if f.name != name]
        self.config = self.config.model_copy(update={"seasonal_factors": remaining})
        removed = len(remaining) < before
        if removed:
            LOGGER.info("Seasonal factor %s removed", name)
        return removed

    def set_external_factors(self, factors: Iterable[ExternalFactor | Mapping[str, Any]]) -> None:
        """Replace the single-day external factors supplied by a collaborator."""
        self.external_factors = [ExternalFactor.model_validate(f) for f in factors]
        LOGGER.info("%d external factors loaded", len(self.external_factors))

    def product_trends(self) -> Dict[str, ProductTrend]:
        """Return a copy of the most recent trend per product."""
        with self._trends_lock:
            return dict(self._trends)

    # ------------------------------------------------------------------
    # Forecasting

    def _product_history(self, frame: pd.DataFrame, product_id: str) -> List[SalesObservation]:
        rows = frame.loc[frame["product_id"] == product_id]
        if rows.empty:
            return []
        rows = rows.sort_values("date", kind="stable")
        window_start = rows["date"].iloc[-1] - pd.Timedelta(days=self.config.history_window_days - 1)
        rows = rows.loc[rows["date"] >= window_start]
        return list(rows["obs"])

    def _forecast_from_frame(
        self, product_id: str, frame: pd.DataFrame, as_of: date
    ) -> Optional[DemandForecast]:
        config = self.config
        history = self._product_history(frame, product_id)
        cleaned = remove_outliers(history, config.outlier_detection_threshold)

        if len(cleaned) < config.minimum_data_points:
            LOGGER.info(
                "Skipping %s: %d usable observations, %d required",
                product_id,
                len(cleaned),
                config.minimum_data_points,
            )
            return None

        fit = estimate_trend(cleaned)
        trend = fit.as_product_trend(product_id)
        with self._trends_lock:
            self._trends[product_id] = trend

        category = product_category(product_id, config.category_separator)
        points = forecast_points(
            cleaned,
            config,
            category,
            external_factors=self.external_factors,
            as_of=as_of,
        )
        factors = influencing_factors(
            cleaned, trend, config.seasonal_factors, category, as_of=as_of
        )
        confidence = score_confidence(
            cleaned, fit.confidence, config.minimum_data_points, as_of=as_of
        )

        LOGGER.info(
            "Forecast %s horizon=%d confidence=%.2f trend=%.2f (%s)",
            product_id,
            len(points),
            confidence.score,
            trend.trend_coefficient,
            fit.outcome,
        )
        return DemandForecast(
            product_id=product_id,
            forecast_points=points,
            confidence_score=min(1.0, max(0.0, confidence.score)),
            influencing_factors=factors,
        )

    def generate_forecast(
        self,
        product_id: str,
        observations: Iterable[SalesObservation],
        as_of: Optional[date] = None,
    ) -> Optional[DemandForecast]:
        """Return the forecast for ``product_id`` or ``None`` when data is insufficient."""

        return self._forecast_from_frame(
            product_id, observations_frame(observations), as_of or date.today()
        )

    def generate_bulk_forecasts(
        self,
        product_ids: Sequence[str],
        observations: Iterable[SalesObservation],
        as_of: Optional[date] = None,
    ) -> Dict[str, DemandForecast]:
        """Forecast every id independently; ids without a forecast are omitted."""

        frame = observations_frame(observations)
        as_of = as_of or date.today()
        forecasts: Dict[str, DemandForecast] = {}
        for product_id in dict.fromkeys(product_ids):
            forecast = self._forecast_from_frame(product_id, frame, as_of)
            if forecast is not None:
                forecasts[product_id] = forecast

        LOGGER.info("Bulk forecast produced %d of %d products", len(forecasts), len(product_ids))
        return forecasts

    def group_products(self, forecasts: Mapping[str, DemandForecast]) -> Dict[str, List[str]]:
        """Group products with similar forecast shapes."""
        return group_by_demand_pattern(forecasts)
