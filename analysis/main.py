import argparse
import logging
from pathlib import Path

import pandas as pd
from loguru import logger

from analysis import config
from analysis.plots import (
    PDFWriter,
    plot_differencing,
    plot_ljung_box,
    plot_residual_diagnostics,
    plot_rmse_heatmap,
    plot_series_and_forecast,
)
from caseforecast import run_pipeline
from caseforecast.forecast import score_forecast
from caseforecast.prepare import join_reference, prepare_series
from caseforecast.sources import CsvCaseSource


class InterceptHandler(logging.Handler):
    """Forward standard library log records (the caseforecast package) to loguru."""

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def route_std_logging(level=logging.INFO):
    root = logging.getLogger()
    if not any(isinstance(h, InterceptHandler) for h in root.handlers):
        root.addHandler(InterceptHandler())
    root.setLevel(level)


def region_summary(cases: pd.DataFrame, reference_path: Path, entity_col: str, value_col: str):
    """Latest count per region with population-scaled rates."""
    reference = pd.read_csv(reference_path)
    latest = (
        cases.sort_values(config.TIME_COL)
        .groupby(entity_col, as_index=False)
        .last()
    )
    return join_reference(latest, reference, on=entity_col, value_col=value_col)


def main(region, data_path, output_dir, horizon, backtest=False, workers=None):
    """
    Select, check and forecast an ARIMA model for one region.
    Outputs:
      - search_table.csv
      - ljung_box.csv
      - forecast.csv
      - backtest.csv (with --backtest)
      - region_summary.csv (when the reference file exists)
      - report.pdf
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    sink = logger.add(output_dir / "forecast.log", mode="w")
    route_std_logging()
    try:
        return _run(region, data_path, output_dir, horizon, backtest, workers)
    finally:
        logger.remove(sink)


def _run(region, data_path, output_dir, horizon, backtest, workers):
    source = CsvCaseSource(
        data_path,
        time_col=config.TIME_COL,
        value_col=config.VALUE_COL,
        entity_col=config.ENTITY_COL,
    )
    cases = source.fetch(start=config.START_DATE, end=config.END_DATE)
    available = sorted(cases[config.ENTITY_COL].dropna().unique().tolist())
    if region not in available:
        raise SystemExit(f"Unknown region {region!r}. Available: {available}")

    series = prepare_series(
        cases,
        region,
        time_col=config.TIME_COL,
        value_col=config.VALUE_COL,
        entity_col=config.ENTITY_COL,
    )
    logger.info(f"{region}: {len(series)} days, {series.index[0].date()} to {series.index[-1].date()}")

    pipeline_config = config.pipeline_config(horizon=horizon, max_workers=workers)

    if backtest:
        train, test = series.iloc[:-horizon], series.iloc[-horizon:]
        held_out = run_pipeline(train, pipeline_config)
        scores = score_forecast(held_out.forecast, test)
        logger.info(
            f"Backtest ARIMA{held_out.fitted.order} on last {horizon} days | "
            f"MAE: {scores['mae']:.2f} | RMSE: {scores['rmse']:.2f} | "
            f"coverage: {scores['coverage']:.2f}"
        )
        pd.DataFrame([{"order": str(held_out.fitted.order), **scores}]).to_csv(
            output_dir / "backtest.csv", index=False
        )

    result = run_pipeline(series, pipeline_config)
    order = result.fitted.order

    logger.info(f"d={result.stationarity.d} (converged={result.stationarity.converged})")
    logger.info(f"Best ARIMA{order} | CV RMSE: {result.search.best['rmse']:.4f}")
    logger.info(f"Coefficients:\n{result.fitted.params.to_string()}")
    if not result.diagnostics.adequate:
        logger.warning(f"ARIMA{order} residuals fail Ljung-Box at some lags.")

    result.search.table.to_csv(output_dir / "search_table.csv", index=False)
    result.diagnostics.ljung_box.to_csv(output_dir / "ljung_box.csv", index=False)
    result.forecast.to_csv(output_dir / "forecast.csv", index=False)

    if config.REFERENCE_PATH.exists():
        summary = region_summary(cases, config.REFERENCE_PATH, config.ENTITY_COL, config.VALUE_COL)
        summary.to_csv(output_dir / "region_summary.csv", index=False)
    else:
        logger.warning(f"Reference file {config.REFERENCE_PATH} missing, skipping region summary.")

    pdf = PDFWriter(output_dir / "report.pdf")
    pdf.save_fig(plot_differencing(series, result.stationarity, region))
    pdf.save_fig(plot_rmse_heatmap(result.search))
    pdf.save_fig(plot_residual_diagnostics(result.diagnostics, lags=config.LB_LAGS))
    pdf.save_fig(plot_ljung_box(result.diagnostics.ljung_box, alpha=config.ALPHA))
    pdf.save_fig(plot_series_and_forecast(series, result.forecast, region, order))
    pdf.close()

    logger.info(f"Saved outputs to: {output_dir}")
    return result


def _parse():
    p = argparse.ArgumentParser(description="ARIMA case-count forecast for one region.")
    p.add_argument("--region", type=str, default=config.REGION)
    p.add_argument("--data", type=Path, default=config.DATA_PATH)
    p.add_argument("--outdir", type=Path, default=config.OUTPUT_DIR)
    p.add_argument("--horizon", type=int, default=config.HORIZON)
    p.add_argument("--workers", type=int, default=None)
    p.add_argument("--backtest", action="store_true")
    return p.parse_args()


if __name__ == "__main__":
    args = _parse()
    main(
        region=args.region,
        data_path=args.data,
        output_dir=args.outdir,
        horizon=args.horizon,
        backtest=args.backtest,
        workers=args.workers,
    )
