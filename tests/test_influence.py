from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from demand_engine.models.schemas import ProductTrend, SalesObservation, SeasonalFactor
from demand_engine.services.influence import (
    PRICE_FACTOR,
    TREND_FACTOR,
    influencing_factors,
    price_quantity_correlation,
)


AS_OF = date(2024, 11, 20)


def _history(quantities: list[int], prices: list[float] | None = None) -> list[SalesObservation]:
    prices = prices or [5.0] * len(quantities)
    return [
        SalesObservation(
            product_id="bolos-1",
            date=AS_OF - timedelta(days=len(quantities) - i),
            quantity=q,
            unit_price=p,
        )
        for i, (q, p) in enumerate(zip(quantities, prices))
    ]


def _factor(name: str, start: date, end: date, multiplier: float, categories=None) -> SeasonalFactor:
    return SeasonalFactor(
        name=name,
        start_date=start,
        end_date=end,
        impact_multiplier=multiplier,
        affected_categories=categories,
    )


def test_factors_are_ordered_trend_seasonal_price() -> None:
    history = _history(list(range(20, 8, -1)), prices=[1.0 + 0.5 * i for i in range(12)])
    trend = ProductTrend(product_id="bolos-1", trend_coefficient=-0.4, confidence_score=0.9)
    factors = [_factor("Natal", date(2024, 12, 1), date(2024, 12, 25), 1.8, ["bolos"])]

    result = influencing_factors(history, trend, factors, "bolos", as_of=AS_OF)

    assert [f.factor for f in result] == [TREND_FACTOR, "Seasonality: Natal", PRICE_FACTOR]
    assert result[0].impact == pytest.approx(-0.4)
    assert result[1].impact == pytest.approx(0.8)
    assert result[2].impact == pytest.approx(1.0)


def test_seasonal_window_is_one_calendar_month() -> None:
    factors = [
        _factor("active", date(2024, 11, 1), date(2024, 11, 30), 1.2),
        _factor("soon", date(2024, 12, 20), date(2024, 12, 24), 1.3),
        _factor("too-late", date(2024, 12, 21), date(2024, 12, 31), 1.4),
        _factor("past", date(2024, 10, 1), date(2024, 11, 19), 1.5),
        _factor("other-category", date(2024, 11, 1), date(2024, 11, 30), 1.6, ["tortas"]),
    ]

    result = influencing_factors(_history([10] * 5), None, factors, "bolos", as_of=AS_OF)

    assert [f.factor for f in result] == ["Seasonality: active", "Seasonality: soon"]


def test_seasonal_impact_is_clamped() -> None:
    factors = [
        _factor("huge", date(2024, 11, 1), date(2024, 11, 30), 3.0),
        _factor("slump", date(2024, 11, 1), date(2024, 11, 30), 0.5),
    ]

    result = influencing_factors(_history([10] * 5), None, factors, "bolos", as_of=AS_OF)

    assert [f.impact for f in result] == [pytest.approx(1.0), pytest.approx(-0.5)]


def test_price_sensitivity_requires_ten_points() -> None:
    prices = [1.0 + i for i in range(9)]
    history = _history(list(range(30, 21, -1)), prices=prices)

    result = influencing_factors(history, None, [], "bolos", as_of=AS_OF)

    assert all(f.factor != PRICE_FACTOR for f in result)


def test_constant_price_has_no_correlation() -> None:
    history = _history([10, 12, 9, 14, 11, 13, 10, 12, 9, 15])

    assert price_quantity_correlation(history) == 0.0
    assert influencing_factors(history, None, [], "bolos", as_of=AS_OF) == []


def test_price_rising_with_demand_reports_negative_sensitivity() -> None:
    history = _history(list(range(10, 22)), prices=[2.0 + 0.1 * i for i in range(12)])

    result = influencing_factors(history, None, [], "bolos", as_of=AS_OF)

    assert len(result) == 1
    assert result[0].factor == PRICE_FACTOR
    assert result[0].impact == pytest.approx(-1.0)
