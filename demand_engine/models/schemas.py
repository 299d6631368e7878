r"""demand_engine\models\schemas.py

Pydantic models shared by the forecasting services.

Observations flow in as ``SalesObservation`` records, configuration lives in
``ForecastConfig`` and results leave the engine as ``DemandForecast``
objects.  Using typed models keeps the collaborators that feed and consume
the engine in agreement about the shape of the data.
"""

from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, model_validator


class SalesObservation(BaseModel):
    """One historical sales record for a product."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    date: date
    quantity: int = Field(..., ge=0, description="Units sold on the date")
    unit_price: float = Field(..., ge=0.0, description="Unit price charged on the date")


class SeasonalFactor(BaseModel):
    """A named, date-ranged multiplicative demand adjustment."""

    name: str = Field(..., min_length=1)
    start_date: date
    end_date: date = Field(..., description="Inclusive last day of the factor")
    impact_multiplier: float = Field(..., gt=0.0, description="1.0 means no effect")
    affected_categories: Optional[List[str]] = Field(
        None, description="Category keys the factor applies to; None applies to all"
    )

    @model_validator(mode="after")
    def _check_range(self) -> "SeasonalFactor":
        if self.start_date > self.end_date:
            raise ValueError(
                f"start_date ({self.start_date}) must be on or before end_date ({self.end_date})"
            )
        return self

    def is_active_on(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def applies_to(self, category: str) -> bool:
        return self.affected_categories is None or category in self.affected_categories


class ExternalFactor(BaseModel):
    """A single-day adjustment such as a heat wave or a public holiday."""

    kind: Literal["weather", "holiday", "event"]
    name: str
    date: date
    impact_multiplier: float = Field(..., gt=0.0)
    description: Optional[str] = None


class ProductTrend(BaseModel):
    """Trend summary cached per product after each forecast run."""

    product_id: str
    trend_coefficient: float = Field(..., ge=-1.0, le=1.0)
    confidence_score: float = Field(..., ge=0.0, le=1.0)


class ForecastConfig(BaseModel):
    """Tunable parameters of the forecasting engine."""

    model_config = ConfigDict(validate_assignment=True)

    history_window_days: int = Field(365, gt=0)
    forecast_horizon_days: int = Field(90, gt=0)
    minimum_data_points: int = Field(30, gt=0)
    smoothing_alpha: float = Field(0.2, ge=0.0, le=1.0, description="Level smoothing")
    smoothing_beta: float = Field(0.1, ge=0.0, le=1.0, description="Trend smoothing")
    smoothing_gamma: float = Field(0.1, ge=0.0, le=1.0, description="Seasonal smoothing")
    outlier_detection_threshold: float = Field(
        2.5, gt=0.0, description="Allowed deviation from the mean, in standard deviations"
    )
    seasonal_factors: List[SeasonalFactor] = Field(default_factory=list)
    category_separator: str = Field("-", min_length=1)


class ForecastPoint(BaseModel):
    """A single day in a demand forecast."""

    date: date
    expected_quantity: int = Field(..., ge=0)
    lower_bound: int = Field(..., ge=0)
    upper_bound: int = Field(..., ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "ForecastPoint":
        if not self.lower_bound <= self.expected_quantity <= self.upper_bound:
            raise ValueError("bounds must enclose expected_quantity")
        return self


class InfluenceFactor(BaseModel):
    """A named, signed contributor to forecast demand."""

    factor: str
    impact: float = Field(..., ge=-1.0, le=1.0)


class DemandForecast(BaseModel):
    """A forecast for one product over the configured horizon."""

    product_id: str
    forecast_points: List[ForecastPoint]
    confidence_score: float = Field(..., ge=0.0, le=1.0)
    influencing_factors: List[InfluenceFactor] = Field(default_factory=list)

    @property
    def horizon_days(self) -> int:
        return len(self.forecast_points)

    @property
    def frame(self) -> pd.DataFrame:
        """Return the forecast points as a ``pd.DataFrame`` indexed by date."""
        columns = ["date", "expected_quantity", "lower_bound", "upper_bound"]
        df = pd.DataFrame([point.model_dump() for point in self.forecast_points], columns=columns)
        return df.set_index("date")
