r"""demand_engine\services\seasonality.py

Calendar-based demand multipliers.

Configured seasonal factors cover date ranges and may be restricted to
product categories; external factors (weather, holidays) cover a single
day and apply to every category.  All matching factors compose
multiplicatively, so simultaneous promotions compound.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from ..models.schemas import ExternalFactor, SeasonalFactor


def product_category(product_id: str, separator: str = "-") -> str:
    """Return the category key encoded before the first ``separator``."""
    return product_id.split(separator, 1)[0]


def seasonal_multiplier(
    day: date,
    category: str,
    seasonal_factors: Iterable[SeasonalFactor],
    external_factors: Optional[Iterable[ExternalFactor]] = None,
) -> float:
    """Multiply together every factor active on ``day`` for ``category``."""

    multiplier = 1.0
    for factor in seasonal_factors:
        if factor.is_active_on(day) and factor.applies_to(category):
            multiplier *= factor.impact_multiplier

    for external in external_factors or ():
        if external.date == day:
            multiplier *= external.impact_multiplier

    return multiplier
