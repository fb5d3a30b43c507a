from __future__ import annotations

import numpy as np


def compute_point_metrics(y_true, y_pred) -> tuple[float, float, float]:
    """Calculate MAE, RMSE, MSE."""
    err = np.asarray(y_true, dtype=np.float64) - np.asarray(y_pred, dtype=np.float64)
    if err.size == 0:
        return float("inf"), float("inf"), float("inf")
    mae = float(np.mean(np.abs(err)))
    mse = float(np.mean(err ** 2))
    return mae, float(np.sqrt(mse)), mse


def coverage(y_true, lower, upper) -> float:
    """Calculate empirical coverage."""
    y_true, lower, upper = (np.asarray(a, dtype=np.float64) for a in (y_true, lower, upper))
    return float(np.mean((y_true >= lower) & (y_true <= upper)))


def mean_width(lower, upper) -> float:
    """Calculate mean interval width."""
    return float(np.mean(np.asarray(upper, dtype=np.float64) - np.asarray(lower, dtype=np.float64)))
