from __future__ import annotations
from abc import ABC, abstractmethod
import pandas as pd


class DataSource(ABC):
    """Interface that any case-count source must satisfy.

    Must name two columns:
        1. ``time_col`` (report date) and,
        2. ``value_col`` (case count).
        3. (Optional) ``entity_col`` for panel data, e.g. province.

    Furthermore, implementors must provide ``fetch``, returning the rows
    between two dates with ``time_col`` parsed as datetimes.
    """

    @property
    @abstractmethod
    def time_col(self) -> str:
        """Report date column name."""
        pass

    @property
    @abstractmethod
    def value_col(self) -> str:
        """Case count column name."""
        pass

    @property
    def entity_col(self) -> str | None:
        """Optional entity column for panel data (e.g. province). Defaults to None."""
        return None

    @abstractmethod
    def fetch(
        self, start: str | pd.Timestamp | None = None, end: str | pd.Timestamp | None = None,
    ) -> pd.DataFrame:
        """Fetch rows for *start* … *end* (inclusive, either may be open)."""
        pass

    def entities(self) -> list[str]:
        """Distinct entity values, or an empty list for single-entity data."""
        if self.entity_col is None:
            return []
        return sorted(self.fetch()[self.entity_col].dropna().unique().tolist())
