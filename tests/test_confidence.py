from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from demand_engine.models.schemas import SalesObservation
from demand_engine.services.confidence import score_confidence


START = date(2024, 5, 1)


def _history(quantities: list[int]) -> list[SalesObservation]:
    return [
        SalesObservation(product_id="doces-1", date=START + timedelta(days=i), quantity=q, unit_price=3.5)
        for i, q in enumerate(quantities)
    ]


def test_weighted_sum_of_sub_scores() -> None:
    history = _history([10] * 30)

    breakdown = score_confidence(history, 0.8, minimum_data_points=30, as_of=history[-1].date)

    assert breakdown.volume == pytest.approx(0.5)
    assert breakdown.consistency == pytest.approx(1.0)
    assert breakdown.recency == pytest.approx(1.0)
    assert breakdown.score == pytest.approx(0.3 * 0.5 + 0.25 * 1.0 + 0.25 * 0.8 + 0.2 * 1.0)


def test_score_is_bounded_for_assorted_series() -> None:
    series = [[1], [0, 0, 0], [100, 0, 100, 0], [5, 5, 6, 4, 500], list(range(60))]
    for quantities in series:
        history = _history(quantities)
        for trend_confidence in (0.0, 0.5, 1.0):
            for lag in (-10, 0, 15, 90):
                score = score_confidence(
                    history, trend_confidence, 30, as_of=history[-1].date + timedelta(days=lag)
                ).score
                assert 0.0 <= score <= 1.0


def test_zero_mean_series_is_tagged() -> None:
    history = _history([0] * 10)

    breakdown = score_confidence(history, 0.0, 5, as_of=history[-1].date)

    assert breakdown.outcome == "zero_mean"
    assert breakdown.consistency == 0.0


def test_recency_decays_over_thirty_days() -> None:
    history = _history([10] * 10)
    last = history[-1].date

    assert score_confidence(history, 0.0, 5, as_of=last + timedelta(days=15)).recency == pytest.approx(0.5)
    assert score_confidence(history, 0.0, 5, as_of=last + timedelta(days=45)).recency == 0.0


def test_volatile_series_scores_lower_consistency() -> None:
    steady = score_confidence(_history([10, 11, 9, 10]), 0.5, 5, as_of=START)
    volatile = score_confidence(_history([1, 40, 2, 35]), 0.5, 5, as_of=START)

    assert volatile.consistency < steady.consistency


def test_empty_history_scores_zero() -> None:
    breakdown = score_confidence([], 1.0, 5)

    assert breakdown.outcome == "no_history"
    assert breakdown.score == 0.0
