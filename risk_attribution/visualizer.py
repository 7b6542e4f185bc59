"""Matplotlib-based visualization for portfolio risk attribution."""

from __future__ import annotations

from pathlib import Path

import matplotlib
matplotlib.use("Agg")  # non-interactive backend for CI / headless
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
import numpy as np

from risk_attribution.attribution import AttributionReport, RiskAttributor


# ------------------------------------------------------------------
# Style defaults
# ------------------------------------------------------------------

COLORS = {
    "primary": "#1a73e8",
    "secondary": "#34a853",
    "danger": "#ea4335",
    "warning": "#fbbc05",
    "neutral": "#5f6368",
    "bg": "#fafafa",
}


def _apply_style(ax: plt.Axes) -> None:
    ax.set_facecolor(COLORS["bg"])
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.tick_params(labelsize=9)


# ------------------------------------------------------------------
# Individual charts
# ------------------------------------------------------------------


def plot_weight_vs_risk(
    report: AttributionReport,
    output: str | Path | None = None,
) -> plt.Figure:
    """Side-by-side bars of capital weight and share of risk per asset."""
    fig, ax = plt.subplots(figsize=(10, 5))
    _apply_style(ax)

    x = np.arange(len(report.tickers))
    width = 0.38
    ax.bar(x - width / 2, report.weights * 100, width, color=COLORS["primary"], label="Weight")
    ax.bar(x + width / 2, report.percentages, width, color=COLORS["danger"], label="Risk contribution")
    ax.axhline(0, color=COLORS["neutral"], linewidth=0.8)

    ax.set_xticks(x)
    ax.set_xticklabels(report.tickers, rotation=45, ha="right")
    ax.set_title("Capital Weight vs. Risk Contribution", fontsize=13, fontweight="bold")
    ax.set_ylabel("Share of portfolio (%)")
    ax.yaxis.set_major_formatter(mticker.FuncFormatter(lambda v, _: f"{v:.0f}%"))
    ax.legend(fontsize=9)
    fig.tight_layout()

    if output:
        fig.savefig(str(output), dpi=150, bbox_inches="tight")
    return fig


def plot_risk_contributions(
    report: AttributionReport,
    output: str | Path | None = None,
) -> plt.Figure:
    """Absolute volatility contribution per asset; bars sum to portfolio volatility."""
    fig, ax = plt.subplots(figsize=(10, 5))
    _apply_style(ax)

    colors = [COLORS["secondary"] if v < 0 else COLORS["primary"] for v in report.absolute]
    ax.barh(report.tickers, report.absolute * 100, color=colors)
    ax.axvline(0, color=COLORS["neutral"], linewidth=0.8)

    ax.set_title(
        f"Volatility Contribution (total {report.portfolio_volatility * 100:.2f}%)",
        fontsize=13,
        fontweight="bold",
    )
    ax.set_xlabel("Contribution to volatility (%)")
    ax.invert_yaxis()
    fig.tight_layout()

    if output:
        fig.savefig(str(output), dpi=150, bbox_inches="tight")
    return fig


def plot_correlation_matrix(
    tickers: list[str],
    corr: np.ndarray,
    output: str | Path | None = None,
) -> plt.Figure:
    """Heatmap of asset return correlations."""
    n = len(tickers)
    fig, ax = plt.subplots(figsize=(8, 6))

    cax = ax.matshow(corr, cmap="RdYlGn", vmin=-1, vmax=1)
    fig.colorbar(cax, ax=ax, fraction=0.046, pad=0.04)

    ax.set_xticks(range(n))
    ax.set_yticks(range(n))
    ax.set_xticklabels(tickers, rotation=45, ha="left", fontsize=9)
    ax.set_yticklabels(tickers, fontsize=9)

    for i in range(n):
        for j in range(n):
            ax.text(j, i, f"{corr[i, j]:.2f}", ha="center", va="center", fontsize=8)

    ax.set_title("Asset Return Correlation Matrix", fontsize=13, fontweight="bold", pad=40)
    fig.tight_layout()

    if output:
        fig.savefig(str(output), dpi=150, bbox_inches="tight")
    return fig


# ------------------------------------------------------------------
# Full dashboard
# ------------------------------------------------------------------


def generate_dashboard(
    attributor: RiskAttributor,
    report: AttributionReport,
    output_dir: str | Path = "output",
) -> list[Path]:
    """Generate all charts and save to output_dir. Returns list of file paths."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    paths_saved: list[Path] = []

    charts = [
        ("weight_vs_risk.png", lambda: plot_weight_vs_risk(report, output=out / "weight_vs_risk.png")),
        ("risk_contributions.png", lambda: plot_risk_contributions(report, output=out / "risk_contributions.png")),
        ("correlation.png", lambda: plot_correlation_matrix(report.tickers, attributor.correlation(), output=out / "correlation.png")),
    ]

    for name, fn in charts:
        fn()
        plt.close("all")
        paths_saved.append(out / name)

    return paths_saved
