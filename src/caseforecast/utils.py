from __future__ import annotations

import logging

import pandas as pd

logger = logging.getLogger(__name__)


def step_date(index: pd.DatetimeIndex, k: int) -> pd.Timestamp:
    """Return the day *k* steps after the last date of *index* (daily
    sampling).  Negative *k* steps back from the first date instead."""
    if len(index) == 0:
        raise ValueError("Cannot step from an empty index.")
    if k >= 0:
        return index[-1] + pd.Timedelta(days=k)
    return index[0] + pd.Timedelta(days=k)


def check_missing_dates(index: pd.DatetimeIndex) -> list[pd.Timestamp]:
    """Compare *index* against the full daily range it spans and return any
    missing calendar days."""
    if len(index) == 0:
        return []
    expected = pd.date_range(index.min(), index.max(), freq="D")
    missing = expected.difference(index)

    if len(missing):
        logger.info(
            "Index spans [%s, %s] with %d of %d days present.",
            index.min().date(), index.max().date(),
            len(expected) - len(missing), len(expected),
        )
        logger.warning("Missing dates: %s", [d.date() for d in missing[:10]])
    return list(missing)
