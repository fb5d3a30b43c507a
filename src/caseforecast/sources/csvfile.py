from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from caseforecast.sources.base import DataSource

logger = logging.getLogger(__name__)


class CsvCaseSource(DataSource):
    """Case counts from a CSV file in the Public Health Agency of Canada
    layout (one row per province per report date).

    Args:
        path: CSV file.
        time_col: Report date column.
        value_col: Case count column, e.g. ``numconf`` (cumulative confirmed)
            or ``numtoday`` (new cases).
        entity_col: Region column, or *None* for a single series.
        dayfirst: Passed to ``pandas.to_datetime`` for ambiguous dates.
    """

    def __init__(
        self,
        path: str | Path,
        time_col: str = "date",
        value_col: str = "numconf",
        entity_col: str | None = "prname",
        dayfirst: bool = False,
    ) -> None:
        self._path = Path(path)
        if not self._path.exists():
            raise FileNotFoundError(f"Case count file not found: {self._path}")
        self._time_col = time_col
        self._value_col = value_col
        self._entity_col = entity_col
        self._dayfirst = dayfirst

    @property
    def time_col(self) -> str:
        return self._time_col

    @property
    def value_col(self) -> str:
        return self._value_col

    @property
    def entity_col(self) -> str | None:
        return self._entity_col

    def fetch(self, start=None, end=None) -> pd.DataFrame:
        df = pd.read_csv(self._path)
        required = [self._time_col, self._value_col] + (
            [self._entity_col] if self._entity_col else []
        )
        missing = [c for c in required if c not in df.columns]
        if missing:
            raise ValueError(f"{self._path.name} lacks column(s) {missing}")

        df[self._time_col] = pd.to_datetime(df[self._time_col], dayfirst=self._dayfirst)
        if start is not None:
            df = df[df[self._time_col] >= pd.Timestamp(start)]
        if end is not None:
            df = df[df[self._time_col] <= pd.Timestamp(end)]

        logger.info(
            "Read %d rows from %s, %s range [%s, %s]",
            len(df), self._path.name, self._time_col,
            df[self._time_col].min(), df[self._time_col].max(),
        )
        return df.reset_index(drop=True)
