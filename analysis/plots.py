import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns
from matplotlib.backends.backend_pdf import PdfPages
from statsmodels.graphics.tsaplots import plot_acf, plot_pacf

from caseforecast.series import difference

C0 = plt.rcParams['axes.prop_cycle'].by_key()['color'][0]  # observed
C1 = plt.rcParams['axes.prop_cycle'].by_key()['color'][1]  # ARIMA


class PDFWriter:
    def __init__(self, path):
        self.pdf = PdfPages(path)

    def save_fig(self, fig):
        self.pdf.savefig(fig)
        plt.close(fig)

    def close(self):
        self.pdf.close()


def plot_series_and_forecast(series, forecast_df, region, order, tail: int = 90):
    fig = plt.figure(figsize=(14, 6))

    observed = series.iloc[-tail:] if tail else series
    plt.plot(observed.index, observed.values, color=C0, linewidth=2.0, label="Observed")
    plt.plot(
        forecast_df["date"],
        forecast_df["point"],
        color=C1,
        linestyle="--",
        linewidth=2,
        label=f"ARIMA{order}",
    )
    level = int(round(forecast_df["level"].iloc[0] * 100))
    plt.fill_between(
        forecast_df["date"],
        forecast_df["lower"],
        forecast_df["upper"],
        color=C1,
        alpha=0.15,
        label=f"{level}% interval",
    )

    plt.title(f"{region}: {len(forecast_df)}-day forecast, ARIMA{order}")
    plt.xlabel("Date")
    plt.ylabel("Cases")
    plt.legend()
    plt.grid(True, linestyle="--", alpha=0.5)
    plt.tight_layout()
    return fig


def plot_differencing(series, stationarity, region):
    """One panel per tested differencing order, titled with its ADF p-value."""
    n = len(stationarity.tests)
    fig, axes = plt.subplots(n, 1, figsize=(12, 2.8 * n), squeeze=False)

    for d, test in enumerate(stationarity.tests):
        level = difference(series, d)
        ax = axes[d, 0]
        ax.plot(level.index, level.values, color=C0 if d == 0 else C1)
        ax.set_title(f"{region}: d={d} (ADF p={test.p_value:.3g})")
        ax.grid(True, linestyle="--", alpha=0.4)

    plt.tight_layout()
    return fig


def plot_residual_diagnostics(report, lags: int = 10):
    resid = report.residuals
    lags = min(lags, len(resid) // 2 - 1)

    fig = plt.figure(figsize=(12, 8))

    ax1 = plt.subplot(2, 2, (1, 2))
    ax1.plot(resid.index, resid.values, color=C1)
    ax1.axhline(0.0, color="gray", linestyle="--", linewidth=1)
    ax1.set_title(f"ARIMA{report.order} residuals")

    ax2 = plt.subplot(2, 2, 3)
    plot_acf(resid.values, lags=lags, ax=ax2, zero=False)
    ax2.set_title("Residual ACF")

    ax3 = plt.subplot(2, 2, 4)
    plot_pacf(resid.values, lags=lags, ax=ax3, zero=False, method="ywm")
    ax3.set_title("Residual PACF")

    plt.tight_layout()
    return fig


def plot_ljung_box(lb, alpha: float = 0.05):
    fig, ax = plt.subplots(figsize=(10, 4))
    ax.bar(lb["lag"], lb["lb_pvalue"], color=np.where(lb["white_noise"], C0, C1))
    ax.axhline(alpha, color="gray", linestyle="--", linewidth=1)
    ax.set_ylim(0, 1.05)
    ax.set_xlabel("Lag")
    ax.set_ylabel("Ljung-Box p-value")
    ax.set_title("Residual whiteness")
    ax.grid(True, linestyle="--", alpha=0.4)
    plt.tight_layout()
    return fig


def plot_rmse_heatmap(search):
    grid = search.rmse_grid()
    fig, ax = plt.subplots(figsize=(8, 6))

    sns.heatmap(
        grid.replace(np.inf, np.nan),
        annot=True,
        fmt=".1f",
        cmap="viridis_r",
        cbar_kws={"label": "CV RMSE"},
        ax=ax,
    )
    p, d, q = search.best_order
    ax.set_title(f"One-step CV RMSE by order (d={d}, best p={p}, q={q})")
    ax.set_xlabel("q")
    ax.set_ylabel("p")

    plt.tight_layout()
    return fig
