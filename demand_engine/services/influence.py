r"""demand_engine\services\influence.py

Extract the named factors that push forecast demand up or down."""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from ..models.schemas import InfluenceFactor, ProductTrend, SalesObservation, SeasonalFactor

TREND_FACTOR = "Historical trend"
PRICE_FACTOR = "Price sensitivity"
SEASONAL_PREFIX = "Seasonality: "

MIN_POINTS_FOR_PRICE_CORRELATION = 10
PRICE_CORRELATION_THRESHOLD = 0.3


def _clamp_unit(value: float) -> float:
    return min(1.0, max(-1.0, value))


def price_quantity_correlation(history: Sequence[SalesObservation]) -> float:
    """Pearson correlation between unit price and quantity; 0 when either is constant."""

    prices = np.array([point.unit_price for point in history], dtype=float)
    quantities = np.array([point.quantity for point in history], dtype=float)
    n = len(history)

    numerator = n * float((prices * quantities).sum()) - float(prices.sum()) * float(quantities.sum())
    spread = (n * float((prices**2).sum()) - float(prices.sum()) ** 2) * (
        n * float((quantities**2).sum()) - float(quantities.sum()) ** 2
    )
    if spread <= 0.0:
        return 0.0
    return _clamp_unit(numerator / float(np.sqrt(spread)))


def upcoming_seasonal_factors(
    seasonal_factors: Sequence[SeasonalFactor], category: str, as_of: date
) -> List[SeasonalFactor]:
    """Factors active between ``as_of`` and one calendar month later that match ``category``."""

    horizon_end = (pd.Timestamp(as_of) + pd.DateOffset(months=1)).date()
    return [
        factor
        for factor in seasonal_factors
        if factor.start_date <= horizon_end
        and factor.end_date >= as_of
        and factor.applies_to(category)
    ]


def influencing_factors(
    history: Sequence[SalesObservation],
    trend: Optional[ProductTrend],
    seasonal_factors: Sequence[SeasonalFactor],
    category: str,
    as_of: Optional[date] = None,
) -> List[InfluenceFactor]:
    """Return trend, seasonal and price factors, in that order."""

    as_of = as_of or date.today()
    factors: List[InfluenceFactor] = []

    if trend is not None:
        factors.append(InfluenceFactor(factor=TREND_FACTOR, impact=trend.trend_coefficient))

    for factor in upcoming_seasonal_factors(seasonal_factors, category, as_of):
        factors.append(
            InfluenceFactor(
                factor=f"{SEASONAL_PREFIX}{factor.name}",
                impact=_clamp_unit(factor.impact_multiplier - 1.0),
            )
        )

    if len(history) >= MIN_POINTS_FOR_PRICE_CORRELATION:
        correlation = price_quantity_correlation(history)
        if abs(correlation) > PRICE_CORRELATION_THRESHOLD:
            # Higher prices with lower demand read as positive sensitivity.
            factors.append(InfluenceFactor(factor=PRICE_FACTOR, impact=-correlation))

    return factors
