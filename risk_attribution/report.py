"""Generate risk attribution reports in JSON and HTML formats."""

from __future__ import annotations

import html as html_lib
import json
from datetime import datetime, timezone
from pathlib import Path

from risk_attribution.attribution import AttributionReport
from risk_attribution.budgeting import BudgetResult
from risk_attribution.portfolio import Portfolio


def _round_optional(value: float | None, digits: int) -> float | None:
    return None if value is None else round(float(value), digits)


def build_report_data(
    portfolio: Portfolio,
    attribution: AttributionReport,
    budget: BudgetResult | None = None,
) -> dict:
    """Assemble all analysis data into a single dictionary."""
    data = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "portfolio": portfolio.summary(),
        "risk_attribution": attribution.to_dict(),
    }
    if budget is not None:
        data["risk_budget"] = {
            "converged": budget.converged,
            "iterations": budget.iterations,
            "portfolio_volatility": round(budget.portfolio_volatility, 6),
            "natural_volatility": round(budget.natural_volatility, 6),
            "target_volatility": budget.target_volatility,
            "scaling_factor": round(budget.scaling_factor, 6),
            "cash_weight": round(budget.cash_weight, 6),
            "expected_return": _round_optional(budget.expected_return, 6),
            "sharpe_ratio": _round_optional(budget.sharpe_ratio, 4),
            "max_drawdown": _round_optional(budget.max_drawdown, 6),
            "assets": {
                ticker: {
                    "target_budget_pct": round(float(budget.budgets[i]) * 100, 4),
                    "weight": round(float(budget.scaled_weights[i]), 6),
                    "risk_contribution_pct": round(float(budget.contributions.percentages[i]), 4),
                }
                for i, ticker in enumerate(attribution.tickers)
            },
        }
    return data


def export_json(
    data: dict,
    output: str | Path = "output/risk_attribution.json",
) -> Path:
    """Write the report data to a JSON file."""
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))
    return path


def export_html(
    data: dict,
    chart_dir: str | Path = "output",
    output: str | Path = "output/risk_attribution.html",
) -> Path:
    """Generate a self-contained HTML risk attribution report."""
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    chart_dir = Path(chart_dir)

    portfolio = data["portfolio"]
    attribution = data["risk_attribution"]
    budget = data.get("risk_budget")

    def _pct(val: float) -> str:
        return f"{val * 100:.2f}%"

    def _row(*cells: str) -> str:
        return "<tr>" + "".join(f"<td>{c}</td>" for c in cells) + "</tr>"

    asset_rows = "\n".join(
        _row(
            html_lib.escape(ticker),
            _pct(a["weight"]),
            f"{a['risk_contribution_pct']:.2f}%",
            _pct(a["risk_contribution"]),
            _pct(a["volatility"]),
        )
        for ticker, a in attribution["assets"].items()
    )

    budget_html = ""
    if budget is not None:
        budget_rows = "\n".join(
            _row(
                html_lib.escape(ticker),
                f"{b['target_budget_pct']:.2f}%",
                _pct(b["weight"]),
                f"{b['risk_contribution_pct']:.2f}%",
            )
            for ticker, b in budget["assets"].items()
        )
        status = "converged" if budget["converged"] else "did not converge"

        cards = [("Volatility", _pct(budget["portfolio_volatility"]))]
        if budget["target_volatility"] is not None:
            cash = budget["cash_weight"]
            cards.append(("Scaling Factor", f"{budget['scaling_factor']:.3f}x"))
            cards.append(("Cash" if cash >= 0 else "Leverage", _pct(abs(cash))))
        if budget["expected_return"] is not None:
            cards.append(("Expected Return", _pct(budget["expected_return"])))
            cards.append(("Sharpe Ratio", f"{budget['sharpe_ratio']:.2f}"))
        if budget["max_drawdown"] is not None:
            cards.append(("Max Drawdown", _pct(budget["max_drawdown"])))
        budget_cards = "\n".join(
            f'<div class="card"><div class="label">{label}</div><div class="value">{value}</div></div>'
            for label, value in cards
        )

        budget_html = f"""
    <h2>Risk Budget Weights</h2>
    <p class="meta">Optimizer {status} after {budget['iterations']} iterations;
    natural volatility {_pct(budget['natural_volatility'])}.</p>
    <div class="summary-cards">{budget_cards}</div>
    <table>
        <thead><tr><th>Ticker</th><th>Target Budget</th><th>Weight</th><th>Risk Contribution</th></tr></thead>
        <tbody>{budget_rows}</tbody>
    </table>
"""

    # Chart image references (relative)
    charts_html = ""
    chart_files = [
        ("weight_vs_risk.png", "Capital Weight vs. Risk Contribution"),
        ("risk_contributions.png", "Volatility Contribution"),
        ("correlation.png", "Correlation Matrix"),
    ]
    for fname, title in chart_files:
        fpath = chart_dir / fname
        if fpath.exists():
            charts_html += f"""
            <div class="chart">
                <h3>{title}</h3>
                <img src="{fname}" alt="{title}">
            </div>
            """

    degenerate_note = ""
    if attribution["degenerate"]:
        degenerate_note = (
            '<p class="warning">Portfolio volatility is zero; '
            "risk shares are split evenly across held assets.</p>"
        )

    html = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Portfolio Risk Attribution</title>
    <style>
        * {{ margin: 0; padding: 0; box-sizing: border-box; }}
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            background: #f5f5f5; color: #333; line-height: 1.6;
        }}
        .container {{ max-width: 1100px; margin: 0 auto; padding: 2rem; }}
        h1 {{ font-size: 1.8rem; margin-bottom: 0.5rem; color: #1a73e8; }}
        h2 {{ font-size: 1.3rem; margin: 2rem 0 1rem; color: #202124; border-bottom: 2px solid #1a73e8; padding-bottom: 0.3rem; }}
        .meta {{ color: #5f6368; font-size: 0.9rem; margin-bottom: 1rem; }}
        .warning {{ color: #ea4335; margin-bottom: 1rem; }}
        .summary-cards {{
            display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr));
            gap: 1rem; margin-bottom: 2rem;
        }}
        .card {{
            background: white; border-radius: 8px; padding: 1.2rem;
            box-shadow: 0 1px 3px rgba(0,0,0,0.08);
        }}
        .card .label {{ font-size: 0.85rem; color: #5f6368; }}
        .card .value {{ font-size: 1.4rem; font-weight: 700; color: #202124; }}
        table {{ width: 100%; border-collapse: collapse; background: white; border-radius: 8px; overflow: hidden; box-shadow: 0 1px 3px rgba(0,0,0,0.08); margin-bottom: 1.5rem; }}
        th, td {{ text-align: left; padding: 0.75rem 1rem; border-bottom: 1px solid #e8eaed; }}
        th {{ background: #f8f9fa; font-size: 0.85rem; color: #5f6368; text-transform: uppercase; letter-spacing: 0.5px; }}
        .chart {{ background: white; border-radius: 8px; padding: 1rem; margin-bottom: 1.5rem; box-shadow: 0 1px 3px rgba(0,0,0,0.08); text-align: center; }}
        .chart img {{ max-width: 100%; height: auto; }}
        .chart h3 {{ margin-bottom: 0.5rem; font-size: 1rem; }}
        .footer {{ margin-top: 3rem; padding-top: 1rem; border-top: 1px solid #e8eaed; color: #5f6368; font-size: 0.8rem; text-align: center; }}
    </style>
</head>
<body>
<div class="container">
    <h1>Portfolio Risk Attribution</h1>
    <p class="meta">Generated: {data['generated_at']} &middot;
    {portfolio['start_date']} to {portfolio['end_date']}</p>
    {degenerate_note}

    <div class="summary-cards">
        <div class="card"><div class="label">Portfolio Volatility</div><div class="value">{_pct(attribution['portfolio_volatility'])}</div></div>
        <div class="card"><div class="label">Average Correlation</div><div class="value">{attribution['average_correlation']:.2f}</div></div>
        <div class="card"><div class="label">Observations</div><div class="value">{attribution['observations']}</div></div>
        <div class="card"><div class="label">Lookback</div><div class="value">{html_lib.escape(str(attribution['lookback']))}</div></div>
    </div>

    <h2>Risk Attribution</h2>
    <table>
        <thead><tr><th>Ticker</th><th>Weight</th><th>Share of Risk</th><th>Volatility Contribution</th><th>Asset Volatility</th></tr></thead>
        <tbody>{asset_rows}</tbody>
    </table>
{budget_html}
    <h2>Charts</h2>
    {charts_html}

    <div class="footer">
        Portfolio Risk Attribution &mdash; For educational and analytical purposes only. Not financial advice.
    </div>
</div>
</body>
</html>
"""
    path.write_text(html)
    return path
