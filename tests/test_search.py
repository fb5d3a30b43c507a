from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from caseforecast import search as search_module
from caseforecast.errors import ModelFitError
from caseforecast.search import (
    STATUS_DEGENERATE,
    STATUS_FAILED,
    STATUS_OK,
    EvaluationRecord,
    cross_validate_order,
    rank_records,
    rolling_origin_folds,
    search_orders,
)
from tests.conftest import make_daily


def _naive_forecast(window, order) -> float:
    return float(window[-1])


def test_rolling_origin_folds_reserve_the_holdout() -> None:
    assert list(rolling_origin_folds(10, 3)) == [3, 4, 5, 6, 7, 8]
    assert list(rolling_origin_folds(10, 3, holdout=0)) == list(range(3, 10))
    assert list(rolling_origin_folds(4, 3, holdout=1)) == []


@pytest.mark.parametrize("init_window, holdout", [(0, 1), (3, -1)])
def test_rolling_origin_folds_validate_arguments(init_window: int, holdout: int) -> None:
    with pytest.raises(ValueError):
        list(rolling_origin_folds(10, init_window, holdout))


def test_cross_validate_order_scores_one_step_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(search_module, "one_step_forecast", _naive_forecast)
    values = np.array([10, 12, 15, 19, 24, 30, 37, 45], dtype=float)

    record = cross_validate_order(values, (1, 1, 0), init_window=4, holdout=1)

    # folds k=4..6 predict values[k] with values[k-1]
    errors = values[4:7] - values[3:6]
    assert record.status == STATUS_OK
    assert record.n_folds == 3
    assert record.rmse == pytest.approx(np.sqrt(np.mean(errors ** 2)))
    assert record.mae == pytest.approx(np.mean(np.abs(errors)))


def test_search_is_deterministic_for_a_single_candidate(drifting_walk: pd.Series) -> None:
    series = drifting_walk.iloc[:30]

    first = search_orders(series, d=1, p_range=(1, 1), q_range=(0, 0), init_window=8)
    second = search_orders(series, d=1, p_range=(1, 1), q_range=(0, 0), init_window=8)

    assert len(first.table) == 1
    assert first.table.loc[0, "status"] == STATUS_OK
    assert first.table.loc[0, "n_folds"] == 30 - 1 - 8
    assert np.isfinite(first.table.loc[0, "rmse"])
    assert first.table.loc[0, "rmse"] == second.table.loc[0, "rmse"]
    assert first.best_order == (1, 1, 0)


def test_failing_candidate_does_not_abort_the_search(monkeypatch: pytest.MonkeyPatch) -> None:
    def flaky(window, order):
        if order == (2, 1, 0):
            raise np.linalg.LinAlgError("singular matrix")
        return float(window[-1])

    monkeypatch.setattr(search_module, "one_step_forecast", flaky)
    series = make_daily(np.arange(20) * 3.0 + 5)

    result = search_orders(series, d=1, p_range=(1, 2), q_range=(0, 0), init_window=5)
    table = result.table.set_index("p")

    assert len(result.table) == 2
    assert table.loc[1, "status"] == STATUS_OK
    assert table.loc[2, "status"] == STATUS_FAILED
    assert np.isinf(table.loc[2, "rmse"])
    assert "singular matrix" in table.loc[2, "error"]
    assert result.best_order == (1, 1, 0)


def test_non_finite_forecast_fails_the_candidate(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(search_module, "one_step_forecast", lambda window, order: float("nan"))

    record = cross_validate_order(np.arange(12.0), (1, 0, 0), init_window=4)

    assert record.status == STATUS_FAILED
    assert np.isinf(record.rmse)


def test_windows_too_short_for_the_order_are_degenerate() -> None:
    series = make_daily([3, 5, 8, 12, 17, 23, 30, 38])

    result = search_orders(series, d=1, p_range=(4, 4), q_range=(4, 4), init_window=3)

    row = result.table.iloc[0]
    assert row["status"] == STATUS_DEGENERATE
    assert row["n_folds"] == 0
    assert np.isinf(row["rmse"])
    with pytest.raises(ModelFitError):
        result.best_order


def test_short_folds_are_skipped_not_failed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(search_module, "one_step_forecast", _naive_forecast)

    # ARIMA(2,1,1) needs 1 + 2 + 1 + 2 = 6 observations
    record = cross_validate_order(np.arange(12.0), (2, 1, 1), init_window=3, holdout=1)

    assert record.status == STATUS_OK
    assert record.n_folds == len(range(6, 11))


def test_ties_prefer_the_simpler_order() -> None:
    records = [
        EvaluationRecord(p=2, d=1, q=1, rmse=1.0, mae=1.0, n_folds=5),
        EvaluationRecord(p=1, d=1, q=1, rmse=1.0, mae=1.0, n_folds=5),
        EvaluationRecord(p=4, d=1, q=0, rmse=float("inf"), mae=float("inf"), n_folds=0,
                         status=STATUS_FAILED, error="boom"),
        EvaluationRecord(p=1, d=1, q=0, rmse=1.0, mae=1.0, n_folds=5),
        EvaluationRecord(p=3, d=1, q=0, rmse=0.5, mae=0.4, n_folds=5),
    ]

    table = rank_records(records)

    assert list(zip(table["p"], table["q"])) == [(3, 0), (1, 0), (1, 1), (2, 1), (4, 0)]


def test_rmse_grid_is_p_by_q(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(search_module, "one_step_forecast", _naive_forecast)

    result = search_orders(np.arange(30.0), d=1, p_range=(1, 3), q_range=(0, 1), init_window=8)
    grid = result.rmse_grid()

    assert grid.shape == (3, 2)
    assert list(grid.index) == [1, 2, 3]
    assert list(grid.columns) == [0, 1]


@pytest.mark.parametrize("p_range, q_range", [((2, 1), (0, 0)), ((-1, 1), (0, 0)), ((1, 1), (2, 0))])
def test_search_orders_rejects_bad_ranges(p_range, q_range) -> None:
    with pytest.raises(ValueError):
        search_orders(np.arange(20.0), d=1, p_range=p_range, q_range=q_range)


def test_parallel_search_matches_serial(drifting_walk: pd.Series) -> None:
    series = drifting_walk.iloc[:25]

    serial = search_orders(series, d=1, p_range=(1, 2), q_range=(0, 0), init_window=10)
    parallel = search_orders(series, d=1, p_range=(1, 2), q_range=(0, 0), init_window=10, max_workers=2)

    pd.testing.assert_frame_equal(serial.table, parallel.table)
