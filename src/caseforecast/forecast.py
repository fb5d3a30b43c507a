from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from caseforecast.diagnostics import FittedModel
from caseforecast.errors import ModelFitError
from caseforecast.metrics import compute_point_metrics, coverage, mean_width
from caseforecast.utils import step_date

logger = logging.getLogger(__name__)

FORECAST_COLUMNS = ["date", "point", "lower", "upper", "level"]


def forecast(
    fitted: FittedModel,
    horizon: int = 7,
    level: float = 0.95,
    clip_negative: bool = True,
) -> pd.DataFrame:
    """Forecast *horizon* days past the last training date.

    Returns one row per day with the point forecast and the central
    prediction interval at *level*.  With *clip_negative* the point and both
    bounds are floored at zero, since case counts cannot be negative.
    """
    if isinstance(horizon, bool) or not isinstance(horizon, (int, np.integer)) or horizon < 1:
        raise ValueError(f"horizon must be a positive integer, got {horizon!r}")
    if not 0 < level < 1:
        raise ValueError(f"level must be in (0, 1), got {level!r}")

    try:
        fc = fitted.results.get_forecast(steps=int(horizon))
        point = np.asarray(fc.predicted_mean, dtype=np.float64)
        ci = np.asarray(fc.conf_int(alpha=1 - level), dtype=np.float64)
    except Exception as exc:
        raise ModelFitError(fitted.order, exc) from exc

    if not np.all(np.isfinite(point)):
        raise ModelFitError(fitted.order, "non-finite point forecast")

    lower, upper = ci[:, 0], ci[:, 1]
    if clip_negative:
        point, lower, upper = (np.clip(a, 0.0, None) for a in (point, lower, upper))

    start = step_date(fitted.series.index, 1)
    out = pd.DataFrame({
        "date": pd.date_range(start, periods=int(horizon), freq="D"),
        "point": point,
        "lower": lower,
        "upper": upper,
        "level": level,
    }, columns=FORECAST_COLUMNS)
    logger.info(
        "ARIMA%s forecast %s .. %s at %.0f%%",
        fitted.order, out["date"].iloc[0].date(), out["date"].iloc[-1].date(), level * 100,
    )
    return out


def score_forecast(forecast_df: pd.DataFrame, actual: pd.Series) -> dict[str, float]:
    """Score a forecast against observed values on matching dates."""
    joined = forecast_df.set_index("date").join(actual.rename("actual"), how="inner")
    if joined.empty:
        raise ValueError("No observed values overlap the forecast dates.")
    mae, rmse, mse = compute_point_metrics(joined["actual"], joined["point"])
    return {
        "n": int(len(joined)),
        "mae": mae,
        "rmse": rmse,
        "mse": mse,
        "coverage": coverage(joined["actual"], joined["lower"], joined["upper"]),
        "mean_width": mean_width(joined["lower"], joined["upper"]),
    }
