r"""demand_engine\services\outliers.py"""

from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np

from ..models.schemas import SalesObservation

LOGGER = logging.getLogger(__name__)

# Below this many points the spread estimate is too noisy to act on.
MIN_POINTS_FOR_OUTLIER_DETECTION = 4


def remove_outliers(
    history: Sequence[SalesObservation], threshold: float
) -> List[SalesObservation]:
    """Drop observations further than ``threshold`` standard deviations from the mean.

    Uses the population standard deviation of ``quantity``.  Series with fewer
    than four points are returned unchanged.  The input is never mutated and
    the relative order of the kept observations is preserved.
    """

    if len(history) < MIN_POINTS_FOR_OUTLIER_DETECTION:
        return list(history)

    quantities = np.array([point.quantity for point in history], dtype=float)
    mean = float(np.mean(quantities))
    # ``np.std`` defaults to population std (ddof=0) which we use here
    limit = threshold * float(np.std(quantities))

    kept = [point for point in history if abs(point.quantity - mean) <= limit]
    dropped = len(history) - len(kept)
    if dropped:
        LOGGER.debug(
            "Removed %d outlier(s) from %d observations (mean=%.2f, limit=%.2f)",
            dropped,
            len(history),
            mean,
            limit,
        )
    return kept
