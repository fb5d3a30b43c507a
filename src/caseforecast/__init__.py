"""caseforecast: Box-Jenkins ARIMA forecasting for daily case counts.

::

    from caseforecast import PipelineConfig, run_pipeline
    from caseforecast.prepare import load_region_series
    from caseforecast.sources import CsvCaseSource

    series = load_region_series(CsvCaseSource("covid19.csv"), region="Ontario")
    result = run_pipeline(series, PipelineConfig(horizon=7))
    result.search.table.head()
    result.forecast
"""

from caseforecast.errors import (
    CaseForecastError,
    ModelFitError,
    NonStationaryError,
    NonStationaryWarning,
    SeriesValidationError,
)
from caseforecast.pipeline import PipelineConfig, PipelineResult, run_pipeline

__all__ = [
    "CaseForecastError",
    "ModelFitError",
    "NonStationaryError",
    "NonStationaryWarning",
    "SeriesValidationError",
    "PipelineConfig",
    "PipelineResult",
    "run_pipeline",
]
__version__ = "0.1.0"
