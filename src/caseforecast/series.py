"""Daily case-count series: validation, differencing and integration.

A *time series* here is a ``pandas.Series`` of non-negative counts indexed by
a gap-free, strictly increasing daily ``DatetimeIndex``.  Every function
returns a new series; inputs are never modified.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from caseforecast.errors import SeriesValidationError
from caseforecast.utils import check_missing_dates

logger = logging.getLogger(__name__)


def validate_series(series: pd.Series) -> pd.Series:
    """Check the time series invariants and return a float copy with a daily
    frequency attached.

    All violations are collected and raised together as a
    `SeriesValidationError`.
    """
    if len(series) == 0:
        raise SeriesValidationError(["series is empty"])
    if not isinstance(series.index, pd.DatetimeIndex):
        raise SeriesValidationError(
            [f"index must be a DatetimeIndex, got {type(series.index).__name__}"]
        )

    problems: list[str] = []
    index = series.index

    if index.has_duplicates:
        dupes = index[index.duplicated()].unique()
        problems.append(f"duplicate dates: {[d.date() for d in dupes[:5]]}")
    if (index != index.normalize()).any():
        problems.append("timestamps must fall at midnight, one observation per day")
    if not index.is_monotonic_increasing:
        problems.append("dates are not strictly increasing")
    elif not index.has_duplicates:
        missing = check_missing_dates(index)
        if missing:
            problems.append(f"{len(missing)} missing day(s), first {missing[0].date()}")

    values = pd.to_numeric(series, errors="coerce")
    n_nan = int(values.isna().sum())
    if n_nan:
        problems.append(f"{n_nan} missing or non-numeric value(s)")
    n_inf = int(np.isinf(values.astype(np.float64)).sum())
    if n_inf:
        problems.append(f"{n_inf} infinite count(s)")
    n_negative = int((values < 0).sum())
    if n_negative:
        problems.append(f"{n_negative} negative count(s)")

    if problems:
        raise SeriesValidationError(problems)

    out = values.astype(np.float64).copy()
    out.index = pd.DatetimeIndex(index, freq="D")
    return out


def difference(series: pd.Series, order: int = 1) -> pd.Series:
    """Difference *series* ``order`` times, dropping the undefined leading
    element on each pass."""
    if order < 0:
        raise ValueError(f"order must be >= 0, got {order}")
    if order and order >= len(series):
        raise ValueError(
            f"Cannot difference {len(series)} observations {order} time(s)."
        )

    out = series.copy()
    for _ in range(order):
        out = out.diff().iloc[1:]
    return out


def integrate(differenced: pd.Series, head: pd.Series) -> pd.Series:
    """Undo `difference`.

    *head* holds the first ``d`` observations of the original level series,
    where ``d`` is the number of differencing passes.  The result is indexed
    by ``head.index`` followed by ``differenced.index``.
    """
    d = len(head)
    head_values = head.to_numpy(dtype=np.float64)

    values = differenced.to_numpy(dtype=np.float64)
    # walk back up one level at a time; level i starts at the i-th difference
    # of the head
    for level in reversed(range(d)):
        start = np.diff(head_values[: level + 1], n=level)[0]
        values = np.concatenate([[start], start + np.cumsum(values)])

    return pd.Series(values, index=head.index.append(differenced.index), name=differenced.name)
