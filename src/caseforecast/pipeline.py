"""Run the forecasting stages in order: stationarity → order search →
full fit and diagnostics → forecast."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd

from caseforecast.diagnostics import DiagnosticReport, FittedModel, diagnose, fit_arima
from caseforecast.errors import NonStationaryError
from caseforecast.forecast import forecast
from caseforecast.search import OrderSearchResult, search_orders
from caseforecast.series import validate_series
from caseforecast.stationarity import StationarityResult, make_stationary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineConfig:
    alpha: float = 0.05
    max_d: int = 2
    p_range: tuple[int, int] = (1, 4)
    q_range: tuple[int, int] = (0, 4)
    init_window: int = 3
    holdout: int = 1
    diagnostic_lags: int = 10
    horizon: int = 7
    level: float = 0.95
    clip_negative: bool = True
    require_stationary: bool = False
    max_workers: int | None = None


@dataclass(frozen=True)
class PipelineResult:
    stationarity: StationarityResult
    search: OrderSearchResult
    fitted: FittedModel
    diagnostics: DiagnosticReport
    forecast: pd.DataFrame


def run_pipeline(series: pd.Series, config: PipelineConfig | None = None) -> PipelineResult:
    """Select, fit, check and forecast an ARIMA model for *series*.

    Raises:
        SeriesValidationError: *series* is not a clean daily count series.
        NonStationaryError: ``config.require_stationary`` is set and no
            differencing order up to ``config.max_d`` is stationary.
        ModelFitError: no candidate could be scored, or the chosen order
            fails to fit or forecast.
    """
    config = config or PipelineConfig()
    series = validate_series(series)
    logger.info(
        "Pipeline on %d days [%s, %s]",
        len(series), series.index[0].date(), series.index[-1].date(),
    )

    stationarity = make_stationary(series, alpha=config.alpha, max_d=config.max_d)
    if not stationarity.converged and config.require_stationary:
        raise NonStationaryError(config.max_d, stationarity.p_value)

    search = search_orders(
        series,
        d=stationarity.d,
        p_range=config.p_range,
        q_range=config.q_range,
        init_window=config.init_window,
        holdout=config.holdout,
        max_workers=config.max_workers,
    )
    order = search.best_order

    fitted = fit_arima(series, order)
    report = diagnose(fitted, lags=config.diagnostic_lags, alpha=config.alpha)
    fc = forecast(fitted, horizon=config.horizon, level=config.level,
                  clip_negative=config.clip_negative)

    return PipelineResult(
        stationarity=stationarity,
        search=search,
        fitted=fitted,
        diagnostics=report,
        forecast=fc,
    )
