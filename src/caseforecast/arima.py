from __future__ import annotations

import warnings

import numpy as np
from statsmodels.tools.sm_exceptions import ConvergenceWarning
from statsmodels.tsa.arima.model import ARIMA

Order = tuple[int, int, int]


def drift_trend(d: int) -> list[int]:
    """Trend polynomial for a constant in the ``d``-times differenced
    series: an intercept when ``d == 0``, a drift when ``d == 1``, and so on.
    Lower-order terms are removed by the differencing itself."""
    return [0] * d + [1]


def min_window(order: Order) -> int:
    """Smallest training window that can identify ARIMA(p, d, q) with a
    drift term: ``d`` observations are lost to differencing and the rest
    must exceed the ``p + q + 1`` mean parameters."""
    p, d, q = order
    return d + p + q + 2


def fit_arima_results(endog, order: Order):
    """Fit ARIMA(p, d, q) with drift, silencing statsmodels estimation
    chatter.  Errors propagate to the caller."""
    with warnings.catch_warnings():
        warnings.filterwarnings("ignore", category=UserWarning, module="statsmodels")
        warnings.filterwarnings("ignore", category=ConvergenceWarning)
        warnings.filterwarnings("ignore", category=RuntimeWarning)
        model = ARIMA(endog, order=order, trend=drift_trend(order[1]))
        return model.fit()


def one_step_forecast(endog, order: Order) -> float:
    res = fit_arima_results(np.asarray(endog, dtype=np.float64), order)
    return float(np.asarray(res.forecast(steps=1))[0])
