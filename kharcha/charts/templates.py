from __future__ import annotations

import tempfile
from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from typing import Any

import numpy as np
import plotly.graph_objects as go
import plotly.io as pio

from kharcha.money import format_amount

# Fixed colours for the built-in categories so a category looks the same in
# every chart; anything else takes the next spare colour.
CATEGORY_COLORS: dict[str, str] = {
    "Food": "#F4A259",
    "Travel": "#5B8E7D",
    "Alcohol": "#BC4B51",
    "Miscellaneous": "#8E7DBE",
    "Other": "#A0A4A8",
}
SPARE_COLORS = ["#3D5A80", "#EE6C4D", "#98C1D9", "#E0C35A"]

STYLE: dict[str, Any] = {
    "bar": "#5B8E7D",
    "trend": "#BC4B51",
    "budget": "#F4A259",
    "grid": "#ECECEC",
    "paper": "#FFFFFF",
    "plot": "#FBFAF7",
    "ink": "#22313F",
    "font_family": "Noto Sans, Inter, sans-serif",
    "font_size": 14,
    "title_size": 18,
    "width": 900,
    "height": 540,
    "scale": 2,
    "margin": {"l": 70, "r": 30, "t": 70, "b": 60},
}

TREND_MIN_DAYS = 5

_template = go.layout.Template(pio.templates["plotly_white"])
_template.layout.font = {"family": STYLE["font_family"], "size": STYLE["font_size"], "color": STYLE["ink"]}
_template.layout.title = {"font": {"size": STYLE["title_size"]}, "x": 0.5, "xanchor": "center"}
_template.layout.paper_bgcolor = STYLE["paper"]
_template.layout.plot_bgcolor = STYLE["plot"]
_template.layout.xaxis = {"gridcolor": STYLE["grid"], "showgrid": False}
_template.layout.yaxis = {"gridcolor": STYLE["grid"], "zeroline": False}
pio.templates["kharcha"] = _template
pio.templates.default = "kharcha"


def _layout(title: str) -> dict[str, Any]:
    return {
        "title": title,
        "margin": STYLE["margin"],
        "width": STYLE["width"],
        "height": STYLE["height"],
    }


def _save(fig: go.Figure) -> str:
    tmp = tempfile.NamedTemporaryFile(prefix="kharcha-", suffix=".png", delete=False)  # noqa: SIM115
    tmp.close()
    fig.write_image(tmp.name, scale=STYLE["scale"])
    return tmp.name


def _colors(names: list[str]) -> list[str]:
    spare = 0
    colors = []
    for name in names:
        if name in CATEGORY_COLORS:
            colors.append(CATEGORY_COLORS[name])
        else:
            colors.append(SPARE_COLORS[spare % len(SPARE_COLORS)])
            spare += 1
    return colors

async def spending_by_category_chart(totals: Mapping[str, Decimal], currency: str = "₹") -> str | None:
    """Donut of period spending per category, total in the hole."""
    spent = {name: amount for name, amount in totals.items() if amount > 0}
    if not spent:
        return None

    names = list(spent)
    fig = go.Figure(
        go.Pie(
            labels=names,
            values=[float(amount) for amount in spent.values()],
            marker={"colors": _colors(names), "line": {"color": STYLE["paper"], "width": 2}},
            texttemplate="%{label}<br>%{percent:.0%}",
            hovertemplate="%{label}: " + currency + "%{value:,.2f}<extra></extra>",
            hole=0.45,
            sort=False,
            direction="clockwise",
        )
    )
    fig.update_layout(**_layout("Spending by Category"), showlegend=False)
    fig.add_annotation(
        text=format_amount(sum(spent.values(), Decimal(0)), currency),
        x=0.5,
        y=0.5,
        showarrow=False,
        font={"size": 20, "color": STYLE["ink"]},
    )
    return _save(fig)


async def daily_spending_chart(
    daily: Mapping[date, Decimal],
    currency: str = "₹",
    daily_budget: Decimal | None = None,
) -> str | None:
    """Bars per spending day, a linear trend once there are enough days, and the daily budget line."""
    if not daily:
        return None

    labels = [f"{day:%d %b}" for day in daily]
    amounts = [float(amount) for amount in daily.values()]

    fig = go.Figure(
        go.Bar(
            x=labels,
            y=amounts,
            name="Daily total",
            marker_color=STYLE["bar"],
            hovertemplate="%{x}: " + currency + "%{y:,.2f}<extra></extra>",
        )
    )

    if len(amounts) >= TREND_MIN_DAYS:
        positions = np.arange(len(amounts))
        slope, intercept = np.polyfit(positions, amounts, 1)
        fig.add_trace(
            go.Scatter(
                x=labels,
                y=(slope * positions + intercept).tolist(),
                name="Trend",
                mode="lines",
                line={"color": STYLE["trend"], "width": 2, "dash": "dash"},
                hoverinfo="skip",
            )
        )

    if daily_budget is not None and daily_budget > 0:
        fig.add_hline(
            y=float(daily_budget),
            line={"color": STYLE["budget"], "dash": "dot", "width": 2},
            annotation_text=f"Daily budget {format_amount(daily_budget, currency)}",
            annotation_position="top right",
        )

    fig.update_layout(
        **_layout("Daily Spending"),
        yaxis={"title": currency, "tickprefix": currency if len(currency) == 1 else ""},
        legend={"orientation": "h", "yanchor": "bottom", "y": 1.02, "xanchor": "left", "x": 0},
        bargap=0.25,
    )
    return _save(fig)
