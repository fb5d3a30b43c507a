"""Rolling-origin cross-validation over a grid of ARIMA orders.

For every ``(p, q)`` pair the model is refit from scratch on each growing
window ``[0, k)`` and scored on its one-step-ahead forecast of observation
``k``.  Candidates are ranked by RMSE of those forecasts.
"""

from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor
from dataclasses import asdict, dataclass
from itertools import product
from typing import Iterator

import numpy as np
import pandas as pd
from tqdm import tqdm

from caseforecast.arima import Order, min_window, one_step_forecast
from caseforecast.errors import ModelFitError
from caseforecast.metrics import compute_point_metrics

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_FAILED = "failed"
STATUS_DEGENERATE = "degenerate"

TABLE_COLUMNS = ["p", "d", "q", "rmse", "mae", "n_folds", "status", "error"]


@dataclass(frozen=True)
class EvaluationRecord:
    p: int
    d: int
    q: int
    rmse: float
    mae: float
    n_folds: int
    status: str = STATUS_OK
    error: str | None = None

    @property
    def order(self) -> Order:
        return (self.p, self.d, self.q)


@dataclass(frozen=True)
class OrderSearchResult:
    """Ranked cross-validation table.

    Rows are sorted by ``rmse`` ascending; ties go to the simpler model
    (lower ``p + q``), then to lower ``p``.  Failed and degenerate candidates
    carry ``rmse = inf`` and sort last.
    """

    table: pd.DataFrame

    @property
    def best(self) -> pd.Series:
        finite = self.table[np.isfinite(self.table["rmse"])]
        if finite.empty:
            raise ModelFitError(None, "no candidate order produced a finite RMSE")
        return finite.iloc[0]

    @property
    def best_order(self) -> Order:
        row = self.best
        return (int(row["p"]), int(row["d"]), int(row["q"]))

    def rmse_grid(self) -> pd.DataFrame:
        """RMSE pivoted to a p-by-q grid."""
        return self.table.pivot(index="p", columns="q", values="rmse").sort_index()


# ── folds ──────────────────────────────────────────────────────────────────


def rolling_origin_folds(n_obs: int, init_window: int, holdout: int = 1) -> Iterator[int]:
    """Yield the forecast origins ``k`` of a growing-window split.

    Fold ``k`` trains on observations ``[0, k)`` and is scored on
    observation ``k``.  The last *holdout* observations are never scored.
    """
    if init_window < 1:
        raise ValueError(f"init_window must be >= 1, got {init_window}")
    if holdout < 0:
        raise ValueError(f"holdout must be >= 0, got {holdout}")
    yield from range(init_window, n_obs - holdout)


# ── single order ───────────────────────────────────────────────────────────


def cross_validate_order(
    series,
    order: Order,
    init_window: int = 3,
    holdout: int = 1,
) -> EvaluationRecord:
    """Score one ARIMA order by one-step rolling-origin cross-validation.

    Folds whose window is too short for *order* are skipped.  Any fold that
    fails to fit, or forecasts a non-finite value, fails the whole order.
    """
    values = np.asarray(series, dtype=np.float64)
    p, d, q = order
    needed = min_window(order)

    trues, preds = [], []
    skipped = 0
    for k in rolling_origin_folds(len(values), init_window, holdout):
        if k < needed:
            skipped += 1
            continue
        try:
            pred = one_step_forecast(values[:k], order)
            if not np.isfinite(pred):
                raise ValueError(f"non-finite forecast {pred!r}")
        except Exception as exc:
            logger.debug("ARIMA%s fold k=%d failed: %s", order, k, exc)
            return EvaluationRecord(
                p=p, d=d, q=q,
                rmse=float("inf"), mae=float("inf"),
                n_folds=len(preds),
                status=STATUS_FAILED,
                error=f"fold k={k}: {exc}",
            )
        preds.append(pred)
        trues.append(values[k])

    if not preds:
        logger.debug("ARIMA%s: all %d folds shorter than %d obs.", order, skipped, needed)
        return EvaluationRecord(
            p=p, d=d, q=q,
            rmse=float("inf"), mae=float("inf"),
            n_folds=0,
            status=STATUS_DEGENERATE,
            error=f"every window shorter than {needed} observations",
        )

    mae, rmse, _ = compute_point_metrics(np.array(trues), np.array(preds))
    return EvaluationRecord(p=p, d=d, q=q, rmse=rmse, mae=mae, n_folds=len(preds))


def _evaluate(args: tuple) -> EvaluationRecord:
    return cross_validate_order(*args)


# ── grid ───────────────────────────────────────────────────────────────────


def rank_records(records: list[EvaluationRecord]) -> pd.DataFrame:
    table = pd.DataFrame([asdict(r) for r in records], columns=TABLE_COLUMNS)
    table["_complexity"] = table["p"] + table["q"]
    table = table.sort_values(["rmse", "_complexity", "p"], kind="mergesort")
    return table.drop(columns="_complexity").reset_index(drop=True)


def search_orders(
    series,
    d: int,
    p_range: tuple[int, int] = (1, 4),
    q_range: tuple[int, int] = (0, 4),
    init_window: int = 3,
    holdout: int = 1,
    max_workers: int | None = None,
) -> OrderSearchResult:
    """Cross-validate every ARIMA(p, d, q) with ``p`` and ``q`` in the
    inclusive ranges and rank them.

    Args:
        series: Level (undifferenced) observations; differencing of order
            *d* happens inside each model.
        d: Differencing order, fixed for every candidate.
        p_range: Inclusive ``(p_min, p_max)``.
        q_range: Inclusive ``(q_min, q_max)``.
        init_window: Length of the first training window.
        holdout: Trailing observations excluded from scoring.
        max_workers: Evaluate candidates in that many worker processes.
            *None* or 1 runs in-process.
    """
    p_min, p_max = p_range
    q_min, q_max = q_range
    if p_min < 0 or q_min < 0 or p_min > p_max or q_min > q_max:
        raise ValueError(f"invalid ranges p={p_range}, q={q_range}")

    orders = [(p, d, q) for p, q in product(range(p_min, p_max + 1), range(q_min, q_max + 1))]
    values = np.asarray(series, dtype=np.float64)
    jobs = [(values, order, init_window, holdout) for order in orders]
    logger.info(
        "Searching %d orders over %d observations (d=%d, init_window=%d).",
        len(orders), len(values), d, init_window,
    )

    if max_workers is None or max_workers <= 1:
        records = [_evaluate(job) for job in tqdm(jobs, desc="Order search", unit="order")]
    else:
        with ProcessPoolExecutor(max_workers=max_workers) as pool:
            records = list(tqdm(pool.map(_evaluate, jobs), total=len(jobs),
                                desc="Order search", unit="order"))

    for record in records:
        if record.status != STATUS_OK:
            logger.warning("ARIMA%s %s: %s", record.order, record.status, record.error)

    result = OrderSearchResult(table=rank_records(records))
    top = result.table.iloc[0]
    logger.info(
        "Top candidate ARIMA(%d,%d,%d) RMSE=%.4f",
        top["p"], top["d"], top["q"], top["rmse"],
    )
    return result
