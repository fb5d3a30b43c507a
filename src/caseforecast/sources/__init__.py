from caseforecast.sources.base import DataSource
from caseforecast.sources.csvfile import CsvCaseSource

__all__ = ["DataSource", "CsvCaseSource"]
