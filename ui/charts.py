"""
Plotly chart builders for the scorecard dashboard.
All functions return plotly Figure objects.
"""
from __future__ import annotations

import plotly.graph_objects as go

from models import Category, PageReport, Severity, SiteAggregate, TrendDelta
from scoring.aggregator import score_color
from reporting.summary import direction

# Consistent colour palette
_COLORS = {
    Severity.CRITICAL: "#FF4B4B",
    Severity.HIGH:     "#FF8800",
    Severity.MEDIUM:   "#FFA500",
    Severity.LOW:      "#4B9EFF",
}

_BG = "#1A1D27"
_PAPER = "#0E1117"
_GRID = "#2A2D3A"
_TEXT = "#FAFAFA"


def _base_layout(**kwargs) -> dict:
    return {
        "paper_bgcolor": _PAPER,
        "plot_bgcolor":  _BG,
        "font": {"color": _TEXT, "family": "sans-serif"},
        "margin": {"l": 20, "r": 20, "t": 40, "b": 20},
        **kwargs,
    }


def _title(text: str) -> dict:
    return {"text": text, "x": 0.5, "xanchor": "center", "font": {"size": 14, "color": _TEXT}}


# ── Average score gauge ────────────────────────────────────────────────────────

def score_gauge(score: float, title: str = "Average Score") -> go.Figure:
    color = score_color(score)
    fig = go.Figure(go.Indicator(
        mode="gauge+number",
        value=score,
        domain={"x": [0, 1], "y": [0, 1]},
        number={"font": {"size": 48, "color": color}, "valueformat": ".2f"},
        gauge={
            "axis": {"range": [0, 100], "tickcolor": _TEXT, "tickfont": {"color": _TEXT}},
            "bar": {"color": color, "thickness": 0.25},
            "bgcolor": _BG,
            "borderwidth": 2,
            "bordercolor": _GRID,
            "steps": [
                {"range": [0, 50],  "color": "#3A1A1A"},
                {"range": [50, 70], "color": "#3A2E1A"},
                {"range": [70, 90], "color": "#2A3A1A"},
                {"range": [90, 100], "color": "#1A3A1A"},
            ],
        },
    ))
    fig.update_layout(**_base_layout(height=260), title=_title(title))
    return fig


# ── Category averages ──────────────────────────────────────────────────────────

def category_scores_bar(site: SiteAggregate) -> go.Figure:
    rows = [(name, s) for name, s in site.categories.items() if s.has_data]
    if not rows:
        return _empty_chart("No category data")

    labels = [Category.label(name) for name, _ in rows]
    values = [s.average for _, s in rows]
    fig = go.Figure(go.Bar(
        y=labels,
        x=values,
        orientation="h",
        marker_color=[score_color(v) for v in values],
        text=[f"{v:.2f} · {s.status}" for v, (_, s) in zip(values, rows)],
        textposition="auto",
        hovertemplate="<b>%{y}</b><br>Score: %{x:.2f}<extra></extra>",
    ))
    fig.update_layout(
        **_base_layout(height=max(260, len(rows) * 42 + 80)),
        title=_title("Average Score by Category"),
        xaxis={"range": [0, 100], "gridcolor": _GRID, "color": _TEXT},
        yaxis={"gridcolor": _GRID, "color": _TEXT, "automargin": True, "autorange": "reversed"},
        showlegend=False,
    )
    return fig


# ── Issues by severity donut ───────────────────────────────────────────────────

def issues_by_severity_donut(site: SiteAggregate) -> go.Figure:
    counts = {s: 0 for s in Severity.ALL}
    for summary in site.categories.values():
        for sev, n in summary.issues_by_severity.items():
            counts[sev] = counts.get(sev, 0) + n

    values = [counts[s] for s in Severity.ALL]
    total = sum(values)
    if not total:
        return _empty_chart("No issues found")

    fig = go.Figure(go.Pie(
        labels=Severity.ALL,
        values=values,
        hole=0.6,
        marker={"colors": [_COLORS[s] for s in Severity.ALL], "line": {"color": _BG, "width": 2}},
        hovertemplate="<b>%{label}</b>: %{value} issues<extra></extra>",
    ))
    fig.update_layout(
        **_base_layout(height=260),
        title=_title("Issues by Severity"),
        annotations=[{
            "text": f"<b>{total}</b><br>Total",
            "x": 0.5, "y": 0.5,
            "font_size": 18,
            "font_color": _TEXT,
            "showarrow": False,
        }],
        legend={"font": {"color": _TEXT}},
        showlegend=True,
    )
    return fig


# ── Per-page score distribution ────────────────────────────────────────────────

def page_score_histogram(pages: list[PageReport], category: str) -> go.Figure:
    scores = [p.score(category) for p in pages if p.score(category) is not None]
    if not scores:
        return _empty_chart(f"No {Category.label(category)} data")

    fig = go.Figure(go.Histogram(
        x=scores,
        xbins={"start": 0, "end": 100, "size": 5},
        marker_color="#6C63FF",
        hovertemplate="<b>%{x}</b><br>Pages: %{y}<extra></extra>",
    ))
    fig.update_layout(
        **_base_layout(height=260),
        title=_title(f"{Category.label(category)} Score Distribution"),
        xaxis={"title": "Score", "range": [0, 100], "gridcolor": _GRID, "color": _TEXT},
        yaxis={"title": "Pages", "gridcolor": _GRID, "color": _TEXT},
        showlegend=False,
    )
    return fig


# ── Trend deltas ───────────────────────────────────────────────────────────────

def trend_delta_bar(deltas: list[TrendDelta]) -> go.Figure:
    rows = [d for d in deltas if d.metric.endswith(".score")]
    if not rows:
        return _empty_chart("No comparable category scores")

    def _color(d: TrendDelta) -> str:
        trend = direction(d)
        if trend == "improved":
            return "#00C851"
        elif trend == "declined":
            return "#FF4B4B"
        return "#888888"

    fig = go.Figure(go.Bar(
        x=[Category.label(d.metric.split(".", 1)[0]) for d in rows],
        y=[d.delta for d in rows],
        marker_color=[_color(d) for d in rows],
        customdata=[d.percent_change for d in rows],
        hovertemplate="<b>%{x}</b><br>Δ %{y:+.2f} (%{customdata:+.2f}%)<extra></extra>",
    ))
    fig.update_layout(
        **_base_layout(height=280),
        title=_title("Score Change vs Previous Run"),
        xaxis={"gridcolor": _GRID, "color": _TEXT},
        yaxis={"title": "Δ score", "gridcolor": _GRID, "color": _TEXT, "zeroline": True,
               "zerolinecolor": _TEXT},
        showlegend=False,
    )
    return fig


# ── Helper ─────────────────────────────────────────────────────────────────────

def _empty_chart(message: str) -> go.Figure:
    fig = go.Figure()
    fig.add_annotation(text=message, x=0.5, y=0.5, showarrow=False, font={"color": _TEXT, "size": 14})
    fig.update_layout(**_base_layout(height=260))
    return fig
