from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest


def make_daily(values, start: str = "2020-03-01", name: str = "numconf") -> pd.Series:
    index = pd.date_range(start, periods=len(values), freq="D", name="date")
    return pd.Series(np.asarray(values, dtype=float), index=index, name=name)


@pytest.fixture()
def white_noise() -> pd.Series:
    rng = np.random.default_rng(0)
    return make_daily(50 + rng.standard_normal(200))


@pytest.fixture()
def drifting_walk() -> pd.Series:
    """Strictly increasing, cumulative-count-like series."""
    rng = np.random.default_rng(7)
    steps = rng.normal(loc=5.0, scale=2.0, size=60).clip(min=0.5)
    return make_daily(100 + np.cumsum(steps))


@pytest.fixture()
def ar1_series() -> pd.Series:
    rng = np.random.default_rng(1)
    n = 400
    x = np.zeros(n)
    for t in range(1, n):
        x[t] = 0.6 * x[t - 1] + rng.standard_normal()
    return make_daily(20 + x)


@pytest.fixture()
def cases_frame() -> pd.DataFrame:
    dates = pd.date_range("2020-04-01", periods=10, freq="D")
    rows = []
    for i, d in enumerate(dates):
        rows.append({"prname": "Ontario", "date": d.strftime("%Y-%m-%d"), "numconf": 100 + 10 * i})
        rows.append({"prname": "Quebec", "date": d.strftime("%Y-%m-%d"), "numconf": 200 + 20 * i})
    return pd.DataFrame(rows)
