from __future__ import annotations


class CaseForecastError(Exception):
    """Base class for every error raised by caseforecast."""


class SeriesValidationError(CaseForecastError, ValueError):
    """The input series breaks one of the time series invariants.

    Args:
        problems: Human-readable descriptions, one per violated invariant.
    """

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("Invalid series: " + "; ".join(self.problems))


class NonStationaryError(CaseForecastError):
    """Raised when stationarity is required but was not reached."""

    def __init__(self, max_d: int, p_value: float) -> None:
        self.max_d = max_d
        self.p_value = p_value
        super().__init__(
            f"Series not stationary after {max_d} differencing passes "
            f"(last ADF p-value={p_value:.4f})."
        )


class NonStationaryWarning(UserWarning):
    pass


class ModelFitError(CaseForecastError, RuntimeError):
    """An ARIMA model could not be estimated or could not forecast.

    Args:
        order: The ``(p, d, q)`` order involved, or *None* when the failure
            is not tied to one order.
        cause: The underlying exception or a short reason.
    """

    def __init__(
        self,
        order: tuple[int, int, int] | None,
        cause: BaseException | str,
    ) -> None:
        self.order = order
        self.cause = cause
        where = f"ARIMA{order}" if order is not None else "ARIMA"
        super().__init__(f"{where} failed: {cause}")
