r"""demand_engine\services\holt_winters.py

Triple exponential smoothing (Holt-Winters style) with a weekly season.

The model keeps a level, an additive trend and seven multiplicative
weekday indices.  Coefficients are fixed by configuration rather than
fitted, which keeps the forecast explainable and cheap to recompute.
Configured calendar factors are applied on top of the smoothed forecast.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, List, Literal, Optional, Sequence

import numpy as np

from ..models.schemas import ExternalFactor, ForecastConfig, ForecastPoint, SalesObservation
from .confidence import score_confidence
from .seasonality import seasonal_multiplier

LOGGER = logging.getLogger(__name__)

SEASON_LENGTH = 7

# Trend confidence assumed when sizing the forecast interval.
INTERVAL_TREND_CONFIDENCE = 0.7

SeasonalOutcome = Literal["estimated", "insufficient_data", "flat_seasonality"]


@dataclass(slots=True)
class SeasonalState:
    """Smoothing state after consuming the historical series."""

    level: float
    trend: float = 0.0
    seasonal: List[float] = field(default_factory=lambda: [1.0] * SEASON_LENGTH)
    outcome: SeasonalOutcome = "insufficient_data"

    def project(self, step: int, slot: int) -> float:
        return (self.level + step * self.trend) * self.seasonal[slot]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def initial_seasonal_indices(quantities: Sequence[float]) -> tuple[List[float], SeasonalOutcome]:
    """Seed weekday indices from same-slot averages normalised to a mean of 1.

    At least two full seasons are required; otherwise every slot is 1.0.
    """

    if len(quantities) < 2 * SEASON_LENGTH:
        return [1.0] * SEASON_LENGTH, "insufficient_data"

    values = np.asarray(quantities, dtype=float)
    slot_means = np.array([values[slot::SEASON_LENGTH].mean() for slot in range(SEASON_LENGTH)])
    overall = float(slot_means.mean())
    if overall == 0.0:
        return [1.0] * SEASON_LENGTH, "flat_seasonality"
    return [float(v) for v in slot_means / overall], "estimated"


def fit_holt_winters(
    quantities: Sequence[float], alpha: float, beta: float, gamma: float
) -> SeasonalState:
    """Run the level/trend/seasonal recursion over the history.

    A zero seasonal index or a zero level would make the update divide by
    zero; in that case the affected term keeps its previous value.
    """

    if not quantities:
        raise ValueError("history must contain at least one observation")

    seasonal, outcome = initial_seasonal_indices(quantities)
    state = SeasonalState(level=float(quantities[0]), seasonal=seasonal, outcome=outcome)

    for i in range(1, len(quantities)):
        slot = i % SEASON_LENGTH
        y = float(quantities[i])
        previous = state.level

        index = state.seasonal[slot]
        deseasonalised = y / index if index != 0.0 else previous + state.trend
        new_level = alpha * deseasonalised + (1 - alpha) * (previous + state.trend)

        state.trend = beta * (new_level - previous) + (1 - beta) * state.trend
        if new_level != 0.0:
            state.seasonal[slot] = gamma * (y / new_level) + (1 - gamma) * index
        state.level = new_level

    return state


def forecast_points(
    history: Sequence[SalesObservation],
    config: ForecastConfig,
    category: str,
    external_factors: Optional[Iterable[ExternalFactor]] = None,
    as_of: Optional[date] = None,
) -> List[ForecastPoint]:
    """Return ``forecast_horizon_days`` points starting the day after the last observation.

    ``history`` must already be cleaned and sorted ascending by date.
    """

    quantities = [point.quantity for point in history]
    state = fit_holt_winters(
        quantities,
        config.smoothing_alpha,
        config.smoothing_beta,
        config.smoothing_gamma,
    )

    # The interval width uses a fixed trend confidence rather than the
    # series' own R², so bounds do not tighten with a better trend fit.
    interval_confidence = score_confidence(
        history,
        INTERVAL_TREND_CONFIDENCE,
        config.minimum_data_points,
        as_of=as_of,
    ).score
    spread = (1.0 - interval_confidence) * 0.5

    externals = list(external_factors or ())
    last_date = history[-1].date
    n = len(history)
    points: List[ForecastPoint] = []
    for step in range(1, config.forecast_horizon_days + 1):
        day = last_date + timedelta(days=step)
        slot = (n + step - 1) % SEASON_LENGTH

        value = state.project(step, slot)
        value *= seasonal_multiplier(day, category, config.seasonal_factors, externals)
        expected = round_half_up(max(0.0, value))

        half_width = expected * spread
        points.append(
            ForecastPoint(
                date=day,
                expected_quantity=expected,
                lower_bound=max(0, round_half_up(expected - half_width)),
                upper_bound=round_half_up(expected + half_width),
            )
        )

    LOGGER.debug(
        "Holt-Winters state level=%.3f trend=%.3f seasonal=%s (%s)",
        state.level,
        state.trend,
        [round(v, 3) for v in state.seasonal],
        state.outcome,
    )
    return points
