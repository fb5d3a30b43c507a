"""Full-sample ARIMA fit and residual diagnostics.

A well-specified model leaves residuals that look like white noise: no
significant autocorrelation at any lag and large Ljung-Box p-values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd
from statsmodels.stats.diagnostic import acorr_ljungbox
from statsmodels.tsa.stattools import acf, pacf

from caseforecast.arima import Order, fit_arima_results, min_window
from caseforecast.errors import ModelFitError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FittedModel:
    order: Order
    params: pd.Series
    residuals: pd.Series
    aic: float
    bic: float
    series: pd.Series
    results: Any = field(repr=False)


@dataclass(frozen=True)
class DiagnosticReport:
    order: Order
    coefficients: pd.Series
    residuals: pd.Series
    correlation: pd.DataFrame
    ljung_box: pd.DataFrame
    adequate: bool


def fit_arima(series: pd.Series, order: Order) -> FittedModel:
    """Fit ARIMA(p, d, q) with drift to every observation of *series*.

    The first ``d`` residuals come from the diffuse initialisation of the
    integrated part and are dropped.

    Raises:
        ModelFitError: when the series is too short for *order* or the
            estimation fails.
    """
    if len(series) < min_window(order):
        raise ModelFitError(
            order, f"{len(series)} observations, need at least {min_window(order)}"
        )
    try:
        results = fit_arima_results(series, order)
    except Exception as exc:
        raise ModelFitError(order, exc) from exc

    params = pd.Series(np.asarray(results.params), index=results.model.param_names)
    if not np.all(np.isfinite(params.to_numpy(dtype=np.float64))):
        raise ModelFitError(order, f"non-finite coefficients {params.to_dict()}")

    resid = pd.Series(np.asarray(results.resid), index=series.index).iloc[order[1]:]
    logger.info(
        "Fitted ARIMA%s on %d obs: AIC=%.2f BIC=%.2f", order, len(series), results.aic, results.bic,
    )
    return FittedModel(
        order=order,
        params=params,
        residuals=resid,
        aic=float(results.aic),
        bic=float(results.bic),
        series=series,
        results=results,
    )


def residual_correlation(residuals: pd.Series, lags: int = 10) -> pd.DataFrame:
    """ACF and PACF of *residuals* for lags ``1..lags`` with the approximate
    95% white-noise bound ``1.96 / sqrt(n)``.

    PACF needs ``lags < n // 2``; *lags* is lowered to fit short series.
    """
    values = np.asarray(residuals, dtype=np.float64)
    n = len(values)
    lags = min(lags, n // 2 - 1)
    if lags < 1:
        raise ValueError(f"{n} residuals are too few for autocorrelation.")

    r = acf(values, nlags=lags, fft=False)[1:]
    pr = pacf(values, nlags=lags, method="ywm")[1:]
    bound = 1.96 / np.sqrt(n)
    return pd.DataFrame({
        "lag": np.arange(1, lags + 1),
        "acf": r,
        "pacf": pr,
        "bound": bound,
        "significant": np.abs(r) > bound,
    })


def ljung_box(
    residuals: pd.Series,
    lags: int = 10,
    model_df: int = 0,
    alpha: float = 0.05,
) -> pd.DataFrame:
    """Ljung-Box test for every lag ``1..lags``.

    ``white_noise`` is *True* where the p-value exceeds *alpha*.  Lags not
    larger than *model_df* have no degrees of freedom and get NaN p-values.
    """
    values = np.asarray(residuals, dtype=np.float64)
    values = values[np.isfinite(values)]
    lags = min(lags, len(values) - 1)
    if lags < 1:
        raise ValueError(f"{len(values)} residuals are too few for a Ljung-Box test.")

    lb = acorr_ljungbox(values, lags=list(range(1, lags + 1)), model_df=model_df)
    return pd.DataFrame({
        "lag": np.arange(1, lags + 1),
        "lb_stat": lb["lb_stat"].to_numpy(dtype=np.float64),
        "lb_pvalue": lb["lb_pvalue"].to_numpy(dtype=np.float64),
        "white_noise": (lb["lb_pvalue"] > alpha).to_numpy(),
    })


def diagnose(fitted: FittedModel, lags: int = 10, alpha: float = 0.05) -> DiagnosticReport:
    correlation = residual_correlation(fitted.residuals, lags=lags)
    lb = ljung_box(fitted.residuals, lags=lags, alpha=alpha)
    adequate = bool(lb["white_noise"].all())

    if not adequate:
        failing = lb.loc[~lb["white_noise"], "lag"].tolist()
        logger.warning(
            "ARIMA%s residuals autocorrelated (Ljung-Box p <= %.2f at lags %s).",
            fitted.order, alpha, failing,
        )
    else:
        logger.info("ARIMA%s residuals pass Ljung-Box up to lag %d.", fitted.order, len(lb))

    return DiagnosticReport(
        order=fitted.order,
        coefficients=fitted.params,
        residuals=fitted.residuals,
        correlation=correlation,
        ljung_box=lb,
        adequate=adequate,
    )
