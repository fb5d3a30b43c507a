from __future__ import annotations

from types import SimpleNamespace

import numpy as np
import pandas as pd
import pytest

from caseforecast.diagnostics import FittedModel, fit_arima
from caseforecast.errors import ModelFitError
from caseforecast.forecast import FORECAST_COLUMNS, forecast, score_forecast
from tests.conftest import make_daily


@pytest.fixture()
def fitted_walk(drifting_walk: pd.Series) -> FittedModel:
    return fit_arima(drifting_walk, (1, 1, 0))


def test_forecast_has_one_row_per_day_after_training(
    fitted_walk: FittedModel, drifting_walk: pd.Series
) -> None:
    fc = forecast(fitted_walk, horizon=7)

    expected = pd.date_range(drifting_walk.index[-1] + pd.Timedelta(days=1), periods=7, freq="D")
    assert list(fc.columns) == FORECAST_COLUMNS
    assert len(fc) == 7
    assert list(fc["date"]) == list(expected)
    assert (fc["date"].diff().dropna() == pd.Timedelta(days=1)).all()


def test_forecast_interval_brackets_point(fitted_walk: FittedModel) -> None:
    fc = forecast(fitted_walk, horizon=5, level=0.8)

    assert (fc["lower"] <= fc["point"]).all()
    assert (fc["point"] <= fc["upper"]).all()
    assert (fc["level"] == 0.8).all()


def test_wider_level_gives_wider_interval(fitted_walk: FittedModel) -> None:
    narrow = forecast(fitted_walk, horizon=3, level=0.8)
    wide = forecast(fitted_walk, horizon=3, level=0.95)

    assert ((wide["upper"] - wide["lower"]) > (narrow["upper"] - narrow["lower"])).all()


def test_forecast_clips_negative_counts() -> None:
    rng = np.random.default_rng(5)
    declining = make_daily(np.linspace(30, 2, 40) + rng.normal(0, 0.3, 40).clip(-1, 1) + 1)
    fitted = fit_arima(declining, (1, 1, 0))

    raw = forecast(fitted, horizon=7, clip_negative=False)
    clipped = forecast(fitted, horizon=7)

    assert (raw["lower"] < 0).any()
    assert (clipped[["point", "lower", "upper"]] >= 0).all().all()


@pytest.mark.parametrize("horizon", [0, -3, 2.5, True])
def test_forecast_rejects_bad_horizon(fitted_walk: FittedModel, horizon) -> None:
    with pytest.raises(ValueError):
        forecast(fitted_walk, horizon=horizon)


@pytest.mark.parametrize("level", [0.0, 1.0, 1.5])
def test_forecast_rejects_bad_level(fitted_walk: FittedModel, level: float) -> None:
    with pytest.raises(ValueError):
        forecast(fitted_walk, level=level)


def test_forecast_failure_is_a_model_fit_error(drifting_walk: pd.Series) -> None:
    def explode(steps):
        raise np.linalg.LinAlgError("not positive definite")

    fitted = FittedModel(
        order=(1, 1, 0),
        params=pd.Series(dtype=float),
        residuals=pd.Series(dtype=float),
        aic=0.0,
        bic=0.0,
        series=drifting_walk,
        results=SimpleNamespace(get_forecast=explode),
    )

    with pytest.raises(ModelFitError) as excinfo:
        forecast(fitted, horizon=3)

    assert excinfo.value.order == (1, 1, 0)


def test_score_forecast_against_actuals() -> None:
    dates = pd.date_range("2020-05-01", periods=4, freq="D")
    fc = pd.DataFrame({
        "date": dates,
        "point": [10.0, 12.0, 14.0, 16.0],
        "lower": [8.0, 9.0, 10.0, 11.0],
        "upper": [12.0, 15.0, 18.0, 21.0],
        "level": 0.95,
    })
    actual = pd.Series([11.0, 12.0, 20.0, 16.0], index=dates)

    scores = score_forecast(fc, actual)

    assert scores["n"] == 4
    assert scores["mae"] == pytest.approx((1 + 0 + 6 + 0) / 4)
    assert scores["rmse"] == pytest.approx(np.sqrt((1 + 0 + 36 + 0) / 4))
    assert scores["coverage"] == pytest.approx(0.75)
    assert scores["mean_width"] == pytest.approx((4 + 6 + 8 + 10) / 4)


def test_score_forecast_needs_overlap() -> None:
    fc = pd.DataFrame({
        "date": pd.date_range("2020-05-01", periods=2, freq="D"),
        "point": [1.0, 2.0], "lower": [0.0, 1.0], "upper": [2.0, 3.0], "level": 0.95,
    })
    actual = pd.Series([1.0], index=pd.DatetimeIndex(["2021-01-01"]))

    with pytest.raises(ValueError):
        score_forecast(fc, actual)
