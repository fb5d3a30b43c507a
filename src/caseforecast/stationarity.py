"""Difference a series until an Augmented Dickey-Fuller test rejects the
unit-root null, up to a fixed cap on the differencing order."""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass

import numpy as np
import pandas as pd
from statsmodels.tsa.stattools import adfuller

from caseforecast.errors import NonStationaryWarning, SeriesValidationError
from caseforecast.series import difference

logger = logging.getLogger(__name__)

DEFAULT_ALPHA = 0.05
DEFAULT_MAX_D = 2


@dataclass(frozen=True)
class UnitRootResult:
    statistic: float
    p_value: float
    n_lags: int
    n_obs: int

    def is_stationary(self, alpha: float = DEFAULT_ALPHA) -> bool:
        return bool(self.p_value < alpha)


@dataclass(frozen=True)
class StationarityResult:
    """Outcome of `make_stationary`.

    ``tests[i]`` is the unit-root test of the series differenced ``i`` times,
    so ``tests[d]`` is the test that ended the loop.
    """

    series: pd.Series
    d: int
    converged: bool
    tests: tuple[UnitRootResult, ...]

    @property
    def p_value(self) -> float:
        return self.tests[-1].p_value


def unit_root_test(series: pd.Series) -> UnitRootResult:
    """Augmented Dickey-Fuller test with a constant term and AIC lag
    selection.  A constant series has no unit root and is reported with a
    statistic of ``-inf`` and a p-value of 0."""
    values = np.asarray(series, dtype=np.float64)
    if len(values) and np.ptp(values) == 0:
        return UnitRootResult(statistic=float("-inf"), p_value=0.0, n_lags=0, n_obs=len(values))

    try:
        stat, p_value, n_lags, n_obs, *_ = adfuller(values, regression="c", autolag="AIC")
    except (ValueError, np.linalg.LinAlgError) as exc:
        raise SeriesValidationError(
            [f"unit-root test failed on {len(values)} observations: {exc}"]
        ) from exc

    return UnitRootResult(
        statistic=float(stat),
        p_value=float(p_value),
        n_lags=int(n_lags),
        n_obs=int(n_obs),
    )


def make_stationary(
    series: pd.Series,
    alpha: float = DEFAULT_ALPHA,
    max_d: int = DEFAULT_MAX_D,
) -> StationarityResult:
    """Difference *series* until it tests stationary at level *alpha*.

    When ``max_d`` passes are not enough the last differenced series is
    returned with ``converged=False`` and a `NonStationaryWarning` is issued.
    """
    if max_d < 0:
        raise ValueError(f"max_d must be >= 0, got {max_d}")

    current = series
    tests: list[UnitRootResult] = []
    for d in range(max_d + 1):
        if d:
            current = difference(current)
        result = unit_root_test(current)
        tests.append(result)
        logger.info(
            "d=%d: ADF statistic=%.4f, p-value=%.4g (%d obs)",
            d, result.statistic, result.p_value, len(current),
        )
        if result.is_stationary(alpha):
            return StationarityResult(series=current, d=d, converged=True, tests=tuple(tests))

    logger.warning(
        "Series not stationary after d=%d (p-value=%.4g >= %.2f); continuing with d=%d.",
        max_d, tests[-1].p_value, alpha, max_d,
    )
    warnings.warn(
        f"stationarity not reached within max_d={max_d}",
        NonStationaryWarning,
        stacklevel=2,
    )
    return StationarityResult(series=current, d=max_d, converged=False, tests=tuple(tests))
