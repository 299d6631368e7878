r"""demand_engine\services\grouping.py

Greedy single-pass clustering of products by forecast shape."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping

import numpy as np

from ..models.schemas import DemandForecast

LOGGER = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 0.7


def _normalised_curve(forecast: DemandForecast) -> np.ndarray:
    curve = np.array([p.expected_quantity for p in forecast.forecast_points], dtype=float)
    peak = float(curve.max()) if curve.size else 0.0
    if peak <= 0.0:
        return np.zeros_like(curve)
    return curve / peak


def forecast_similarity(first: DemandForecast, second: DemandForecast) -> float:
    """Return ``1 - RMS distance`` between peak-normalised curves, floored at 0.

    Forecasts over different horizons are not comparable and score 0.  A
    zero-demand curve is only similar to another zero-demand curve.
    """

    if first.horizon_days != second.horizon_days or first.horizon_days == 0:
        return 0.0

    a = _normalised_curve(first)
    b = _normalised_curve(second)
    if (a.max() == 0.0) != (b.max() == 0.0):
        return 0.0
    distance = float(np.sqrt(np.mean((a - b) ** 2)))
    return max(0.0, 1.0 - distance)


def group_by_demand_pattern(
    forecasts: Mapping[str, DemandForecast],
    threshold: float = SIMILARITY_THRESHOLD,
) -> Dict[str, List[str]]:
    """Group products whose forecast curves are more similar than ``threshold``.

    Products are visited in the mapping's iteration order; each product ends
    up in exactly one group.  Groups are labelled "Group 1", "Group 2", ...
    in creation order.
    """

    items = list(forecasts.items())
    assigned: set[str] = set()
    groups: Dict[str, List[str]] = {}

    for i, (product_id, forecast) in enumerate(items):
        if product_id in assigned:
            continue
        assigned.add(product_id)
        members = [product_id]

        for other_id, other in items[i + 1 :]:
            if other_id in assigned:
                continue
            if forecast_similarity(forecast, other) > threshold:
                members.append(other_id)
                assigned.add(other_id)

        groups[f"Group {len(groups) + 1}"] = members

    LOGGER.info("Grouped %d products into %d demand patterns", len(items), len(groups))
    return groups
