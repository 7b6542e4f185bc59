"""Command-line interface for portfolio risk attribution."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import structlog
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from risk_attribution.attribution import RiskAttributor
from risk_attribution.data_loader import load_portfolio
from risk_attribution.errors import RiskAttributionError
from risk_attribution.logging_config import configure_logging
from risk_attribution.lookback import DEFAULT_HORIZONS, LookbackPolicy
from risk_attribution.report import build_report_data, export_html, export_json
from risk_attribution.visualizer import generate_dashboard


console = Console()
logger = structlog.get_logger(__name__)


def _parse_budgets(value: str) -> list[float]:
    try:
        return [float(v) for v in value.split(",") if v.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Budgets must be comma-separated numbers, got {value!r}"
        ) from None


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected a number, got {value!r}") from None
    if not number > 0 or number == float("inf"):
        raise argparse.ArgumentTypeError(f"Expected a positive number, got {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="risk-attribution",
        description="Decompose portfolio volatility into per-asset risk contributions.",
    )

    parser.add_argument(
        "--weights", "-w",
        type=str,
        default="data/weights.csv",
        help="Path to weights CSV with columns ticker,weight (default: data/weights.csv)",
    )
    parser.add_argument(
        "--prices", "-p",
        type=str,
        default="data/historical_prices.csv",
        help="Path to historical prices CSV (default: data/historical_prices.csv)",
    )
    parser.add_argument(
        "--lookback", "-l",
        type=str,
        default="5y",
        choices=sorted(DEFAULT_HORIZONS),
        help="Lookback horizon (default: 5y)",
    )
    parser.add_argument(
        "--min-sample",
        type=int,
        default=20,
        help="Minimum observations required in the lookback window (default: 20)",
    )
    parser.add_argument(
        "--periods-per-year",
        type=int,
        default=252,
        help="Annualization factor; 0 keeps daily units (default: 252)",
    )
    parser.add_argument(
        "--optimize",
        action="store_true",
        help="Also compute risk-budget weights (equal risk contribution by default)",
    )
    parser.add_argument(
        "--budgets",
        type=_parse_budgets,
        default=None,
        help="Comma-separated target risk budgets in percent, e.g. 50,30,20 (implies --optimize)",
    )
    parser.add_argument(
        "--target-vol",
        type=_positive_float,
        default=None,
        help="Scale risk-budget weights to this annualized volatility, e.g. 0.10 (implies --optimize)",
    )
    parser.add_argument(
        "--risk-free-rate",
        type=float,
        default=0.0,
        help="Risk-free rate for the budget Sharpe ratio (default: 0)",
    )
    parser.add_argument(
        "--output-dir", "-o",
        type=str,
        default="output",
        help="Output directory for reports and charts (default: output/)",
    )
    parser.add_argument(
        "--no-charts",
        action="store_true",
        help="Skip chart generation",
    )
    parser.add_argument(
        "--json-only",
        action="store_true",
        help="Output JSON report only (no HTML, no charts)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        help="Log level for diagnostic output (default: WARNING)",
    )

    return parser


def run(args: argparse.Namespace) -> None:
    """Execute the full attribution pipeline."""
    console.print(Panel.fit(
        "[bold blue]Portfolio Risk Attribution[/bold blue]\n"
        "Who actually carries the risk in your portfolio",
        border_style="blue",
    ))

    # ------------------------------------------------------------------ Load data
    console.print("\n[bold]Loading data...[/bold]")
    try:
        portfolio = load_portfolio(args.weights, args.prices)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("run: failed to load data", error=str(exc))
        console.print(f"[red]Error loading data:[/red] {exc}")
        sys.exit(1)

    console.print(f"  Tickers: {', '.join(portfolio.tickers)}")
    console.print(f"  Observations: {portfolio.n_observations}")

    # ----------------------------------------------------------- Attribution
    console.print(f"\n[bold]Computing risk attribution (lookback {args.lookback})...[/bold]")
    try:
        policy = LookbackPolicy(minimum_sample=args.min_sample)
        attributor = RiskAttributor(
            portfolio,
            lookback=args.lookback,
            policy=policy,
            periods_per_year=args.periods_per_year or None,
        )
        attribution = attributor.compute_all()
    except RiskAttributionError as exc:
        logger.error("run: attribution failed", error=str(exc), error_type=type(exc).__name__)
        console.print(f"[red]Unable to compute risk attribution:[/red] {exc}")
        sys.exit(1)

    table = Table(title="Risk Attribution")
    table.add_column("Ticker", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Share of Risk", justify="right")
    table.add_column("Vol Contribution", justify="right")
    table.add_column("Asset Vol", justify="right")
    for i, ticker in enumerate(attribution.tickers):
        table.add_row(
            ticker,
            f"{attribution.weights[i] * 100:.1f}%",
            f"{attribution.percentages[i]:.1f}%",
            f"{attribution.absolute[i] * 100:.2f}%",
            f"{attribution.asset_volatilities[i] * 100:.2f}%",
        )
    console.print(table)
    console.print(f"  Portfolio volatility: {attribution.portfolio_volatility * 100:.2f}%")
    console.print(f"  Average correlation: {attribution.average_correlation:.2f}")
    if attribution.degenerate:
        console.print("[yellow]Portfolio volatility is zero; risk shares split evenly across held assets.[/yellow]")

    # ----------------------------------------------------------- Risk budgeting
    budget = None
    if args.optimize or args.budgets is not None or args.target_vol is not None:
        console.print("\n[bold]Optimizing risk-budget weights...[/bold]")
        try:
            budget = attributor.optimize(
                budgets=args.budgets,
                target_volatility=args.target_vol,
                risk_free_rate=args.risk_free_rate,
            )
        except RiskAttributionError as exc:
            logger.error("run: risk budgeting failed", error=str(exc))
            console.print(f"[red]Unable to compute risk-budget weights:[/red] {exc}")
            sys.exit(1)

        budget_table = Table(title="Risk Budget Weights")
        budget_table.add_column("Ticker", style="cyan")
        budget_table.add_column("Target", justify="right")
        budget_table.add_column("Weight", justify="right")
        budget_table.add_column("Share of Risk", justify="right")
        for i, ticker in enumerate(attribution.tickers):
            budget_table.add_row(
                ticker,
                f"{budget.budgets[i] * 100:.1f}%",
                f"{budget.scaled_weights[i] * 100:.1f}%",
                f"{budget.contributions.percentages[i]:.1f}%",
            )
        console.print(budget_table)

        metrics_table = Table(title="Risk Budget Metrics")
        metrics_table.add_column("Metric", style="cyan")
        metrics_table.add_column("Value", justify="right")
        metrics_table.add_row("Volatility", f"{budget.portfolio_volatility * 100:.2f}%")
        if budget.target_volatility is not None:
            metrics_table.add_row("Natural Volatility", f"{budget.natural_volatility * 100:.2f}%")
            metrics_table.add_row("Scaling Factor", f"{budget.scaling_factor:.3f}x")
            if budget.cash_weight >= 0:
                metrics_table.add_row("Cash", f"{budget.cash_weight * 100:.1f}%")
            else:
                metrics_table.add_row("Leverage", f"{-budget.cash_weight * 100:.1f}%")
        metrics_table.add_row("Expected Return", f"{budget.expected_return * 100:.2f}%")
        metrics_table.add_row("Sharpe Ratio", f"{budget.sharpe_ratio:.2f}")
        metrics_table.add_row("Max Drawdown", f"{budget.max_drawdown * 100:.2f}%")
        console.print(metrics_table)
        if not budget.converged:
            console.print(f"[yellow]Optimizer did not converge after {budget.iterations} iterations.[/yellow]")

    # ----------------------------------------------------------- Export reports
    output_dir = Path(args.output_dir)
    report_data = build_report_data(portfolio, attribution, budget)

    json_path = export_json(report_data, output_dir / "risk_attribution.json")
    console.print(f"\n[green]JSON report saved:[/green] {json_path}")

    if not args.json_only:
        if not args.no_charts:
            console.print("[bold]Generating charts...[/bold]")
            chart_paths = generate_dashboard(attributor, attribution, output_dir)
            for p in chart_paths:
                console.print(f"  [green]Saved:[/green] {p}")

        html_path = export_html(report_data, output_dir, output_dir / "risk_attribution.html")
        console.print(f"[green]HTML report saved:[/green] {html_path}")

    console.print("\n[bold green]Analysis complete.[/bold green]")


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    run(args)


if __name__ == "__main__":
    main()
