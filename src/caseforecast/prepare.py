"""Shape raw case rows into one daily series per region and attach
population and area reference data."""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from caseforecast.series import validate_series
from caseforecast.sources.base import DataSource

logger = logging.getLogger(__name__)


def prepare_series(
    df: pd.DataFrame,
    region: str | None,
    time_col: str = "date",
    value_col: str = "numconf",
    entity_col: str | None = "prname",
) -> pd.Series:
    """Extract a validated daily series for *region*.

    Rows reported twice for the same day keep the larger count, which is the
    later revision for cumulative totals.  Remaining gaps or negative counts
    raise `SeriesValidationError`.
    """
    if entity_col is not None:
        if region is None:
            raise ValueError(f"region is required when entity_col={entity_col!r}")
        df = df[df[entity_col] == region]
        if df.empty:
            raise ValueError(f"No rows for region {region!r}.")

    dates = pd.to_datetime(df[time_col]).dt.normalize()
    counts = pd.to_numeric(df[value_col], errors="coerce")
    series = counts.groupby(dates.to_numpy()).max().sort_index()

    n_dupes = len(df) - len(series)
    if n_dupes:
        logger.info("%s: collapsed %d same-day duplicate rows.", region, n_dupes)

    series.index = pd.DatetimeIndex(series.index)
    series.index.name = time_col
    series.name = value_col
    return validate_series(series)


def load_region_series(
    source: DataSource,
    region: str | None,
    start=None,
    end=None,
) -> pd.Series:
    df = source.fetch(start=start, end=end)
    return prepare_series(
        df,
        region,
        time_col=source.time_col,
        value_col=source.value_col,
        entity_col=source.entity_col,
    )


def join_reference(
    df: pd.DataFrame,
    reference: pd.DataFrame,
    on: str = "prname",
    value_col: str = "numconf",
    population_col: str = "population",
    area_col: str = "area",
) -> pd.DataFrame:
    """Left-join *reference* (one row per region) onto case rows and derive
    ``per_100k`` (cases per 100,000 residents) and ``density`` (residents
    per unit area)."""
    if reference[on].duplicated().any():
        raise ValueError(f"reference has duplicate {on!r} values")

    out = df.merge(reference[[on, population_col, area_col]], on=on, how="left")

    unmatched = sorted(out.loc[out[population_col].isna(), on].dropna().unique().tolist())
    if unmatched:
        logger.warning("No reference data for %s.", unmatched)

    population = out[population_col].astype(np.float64)
    area = out[area_col].astype(np.float64)
    out["per_100k"] = out[value_col] / population * 100_000
    out["density"] = population / area.where(area > 0)
    return out
