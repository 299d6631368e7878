r"""demand_engine\services\confidence.py

Composite confidence score for a demand forecast."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Literal, Optional, Sequence

import numpy as np

from ..models.schemas import SalesObservation

LOGGER = logging.getLogger(__name__)

VOLUME_WEIGHT = 0.30
CONSISTENCY_WEIGHT = 0.25
TREND_WEIGHT = 0.25
RECENCY_WEIGHT = 0.20

# Recency decays linearly to zero over this many days without data.
RECENCY_DECAY_DAYS = 30.0

ConfidenceOutcome = Literal["scored", "zero_mean", "no_history"]


@dataclass(frozen=True, slots=True)
class ConfidenceBreakdown:
    """Individual sub-scores, each in ``[0, 1]``."""

    volume: float
    consistency: float
    trend: float
    recency: float
    outcome: ConfidenceOutcome = "scored"

    @property
    def score(self) -> float:
        return (
            VOLUME_WEIGHT * self.volume
            + CONSISTENCY_WEIGHT * self.consistency
            + TREND_WEIGHT * self.trend
            + RECENCY_WEIGHT * self.recency
        )


def score_confidence(
    history: Sequence[SalesObservation],
    trend_confidence: float,
    minimum_data_points: int,
    as_of: Optional[date] = None,
) -> ConfidenceBreakdown:
    """Combine data volume, consistency, trend fit and recency.

    ``history`` must be sorted by date.  A series whose mean quantity is zero
    has an undefined coefficient of variation; its consistency is scored 0
    and the breakdown is tagged ``zero_mean``.
    """

    if not history:
        return ConfidenceBreakdown(0.0, 0.0, 0.0, 0.0, "no_history")

    as_of = as_of or date.today()
    quantities = np.array([point.quantity for point in history], dtype=float)

    volume = min(1.0, len(history) / (2 * minimum_data_points))

    mean = float(np.mean(quantities))
    outcome: ConfidenceOutcome = "scored"
    if mean > 0:
        cov = float(np.std(quantities)) / mean
        consistency = max(0.0, 1.0 - min(1.0, cov / 2.0))
    else:
        consistency = 0.0
        outcome = "zero_mean"

    trend = min(1.0, max(0.0, trend_confidence))

    days_since_last = (as_of - history[-1].date).days
    recency = min(1.0, max(0.0, 1.0 - days_since_last / RECENCY_DECAY_DAYS))

    breakdown = ConfidenceBreakdown(volume, consistency, trend, recency, outcome)
    LOGGER.debug(
        "Confidence %.2f (volume=%.2f consistency=%.2f trend=%.2f recency=%.2f)",
        breakdown.score,
        volume,
        consistency,
        trend,
        recency,
    )
    return breakdown
