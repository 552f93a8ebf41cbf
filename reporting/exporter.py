"""
Converts run data to Pandas DataFrames and CSV bytes for report writers.
Scores are rendered as fixed two-decimal strings, as downstream writers expect.
"""
from __future__ import annotations

import io

import pandas as pd

from models import (
    Category, Feedback, Issue, PageReport, Recommendation, Severity, SiteAggregate,
    TrendDelta, format_score,
)


# ── Issues DataFrame ───────────────────────────────────────────────────────────

def issues_to_df(issues: list[Issue]) -> pd.DataFrame:
    columns = ["Severity", "Category", "Issue", "URL", "Detail", "Message", "Recommendation", "Effort"]
    if not issues:
        return pd.DataFrame(columns=columns)

    rows = []
    for issue in issues:
        rows.append({
            "Severity":       issue.severity,
            "Category":       Category.label(issue.category),
            "Issue":          _humanize(issue.kind.value),
            "URL":            issue.url,
            "Detail":         issue.detail or "",
            "Message":        issue.message,
            "Recommendation": issue.recommendation,
            "Effort":         issue.effort,
        })

    df = pd.DataFrame(rows, columns=columns)
    df["_sev_order"] = df["Severity"].map(Severity.RANK).fillna(len(Severity.ALL))
    df = df.sort_values(["_sev_order", "Category", "URL"], kind="stable").drop(columns=["_sev_order"])
    return df.reset_index(drop=True)


def pages_to_df(pages: list[PageReport]) -> pd.DataFrame:
    """One row per page, one column per category score ("" when not applicable)."""
    if not pages:
        return pd.DataFrame()

    rows = []
    for page in pages:
        row = {"URL": page.url}
        for name in Category.ALL:
            score = page.score(name)
            row[Category.label(name)] = format_score(score) if score is not None else ""
        row["Issues"] = len(page.issues)
        row["Errors"] = "; ".join(page.errors)
        rows.append(row)

    return pd.DataFrame(rows)


# ── Summary tables ─────────────────────────────────────────────────────────────

def category_summary_df(site: SiteAggregate) -> pd.DataFrame:
    rows = []
    for name, s in site.categories.items():
        row = {
            "Category": Category.label(name),
            "Score":    format_score(s.average),
            "Status":   s.status,
            "Pages":    s.page_count,
        }
        for sev in Severity.ALL:
            row[sev] = s.issues_by_severity.get(sev, 0)
        rows.append(row)
    return pd.DataFrame(rows)


def recommendations_to_df(feedback: Feedback) -> pd.DataFrame:
    columns = ["Priority", "Effort", "Category", "Importance", "Issue", "Recommendation",
               "Affected Pages", "Reference"]
    recs: tuple[Recommendation, ...] = feedback.recommendations
    if not recs:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame([
        {
            "Priority":       r.priority,
            "Effort":         r.effort,
            "Category":       Category.label(r.category),
            "Importance":     _humanize(r.importance.value),
            "Issue":          r.message,
            "Recommendation": r.recommendation,
            "Affected Pages": r.affected_pages,
            "Reference":      r.source_reference,
        }
        for r in recs
    ], columns=columns)


def trend_to_df(deltas: list[TrendDelta]) -> pd.DataFrame:
    columns = ["Metric", "Previous", "Current", "Delta", "Change (%)"]
    if not deltas:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame([
        {
            "Metric":     d.metric,
            "Previous":   format_score(d.previous),
            "Current":    format_score(d.current),
            "Delta":      format_score(d.delta),
            "Change (%)": format_score(d.percent_change),
        }
        for d in deltas
    ], columns=columns)


# ── CSV export ─────────────────────────────────────────────────────────────────

def to_csv_bytes(df: pd.DataFrame) -> bytes:
    buf = io.StringIO()
    df.to_csv(buf, index=False)
    return buf.getvalue().encode("utf-8")


# ── Helpers ────────────────────────────────────────────────────────────────────

def _humanize(snake: str) -> str:
    """Convert snake_case to Title Case for display."""
    return snake.replace("_", " ").title()
