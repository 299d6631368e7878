r"""demand_engine\services\trend.py

Linear trend estimation over a cleaned, date-sorted demand series.

The trend is an ordinary least-squares fit of quantity against the
positional index.  The slope is squashed into ``[-1, 1]`` so it can be
reported as an influence factor, and the fit's R² doubles as the trend
confidence.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence

import numpy as np

from ..models.schemas import ProductTrend, SalesObservation

TrendOutcome = Literal["fitted", "insufficient_data", "zero_variance"]


@dataclass(frozen=True, slots=True)
class TrendFit:
    """Result of a trend regression together with how it was obtained."""

    coefficient: float
    r_squared: float
    slope: float
    intercept: float
    outcome: TrendOutcome

    @property
    def confidence(self) -> float:
        return min(1.0, max(0.0, self.r_squared))

    def as_product_trend(self, product_id: str) -> ProductTrend:
        return ProductTrend(
            product_id=product_id,
            trend_coefficient=self.coefficient,
            confidence_score=self.confidence,
        )


def estimate_trend(history: Sequence[SalesObservation]) -> TrendFit:
    """Fit ``quantity ~ index`` and return the normalised trend.

    * fewer than two points: ``insufficient_data`` with a zero trend;
    * a constant series has no variance to explain, so R² is reported as 0
      with outcome ``zero_variance``.
    """

    n = len(history)
    if n < 2:
        return TrendFit(0.0, 0.0, 0.0, float(history[0].quantity) if n else 0.0, "insufficient_data")

    x = np.arange(n, dtype=float)
    y = np.array([point.quantity for point in history], dtype=float)

    sum_x = float(x.sum())
    sum_y = float(y.sum())
    sum_xy = float((x * y).sum())
    sum_xx = float((x * x).sum())

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n

    ss_total = float(((y - y.mean()) ** 2).sum())
    if ss_total == 0.0:
        return TrendFit(0.0, 0.0, 0.0, float(y[0]), "zero_variance")

    coefficient = slope / max(1.0, abs(slope))
    ss_residual = float(((y - (intercept + slope * x)) ** 2).sum())
    r_squared = 1.0 - ss_residual / ss_total
    return TrendFit(coefficient, r_squared, slope, intercept, "fitted")
