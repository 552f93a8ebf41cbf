"""
Executive summary builder.

Pure composition over the aggregate, the prioritized feedback and the
optional trend deltas; no scoring happens here.
"""
from __future__ import annotations

from typing import Iterable, Optional
from urllib.parse import urlparse

from models import (
    Category, CategoryBlock, Comparison, ExecutiveSummary, Feedback, Finding, PageReport,
    ScoringContext, Severity, SiteAggregate, TrendDelta, format_score,
)
from config import (
    DEFAULT_TOP_FINDINGS, HIGHER_IS_BETTER, LOWER_IS_BETTER, METRIC_POLARITY, NEUTRAL,
    SCHEMA_VERSION,
)


def build_summary(
    pages: Iterable[PageReport],
    site: SiteAggregate,
    feedback: Feedback,
    comparison: Optional[Iterable[TrendDelta]],
    context: ScoringContext,
    previous: Optional[SiteAggregate] = None,
    top_n: int = DEFAULT_TOP_FINDINGS,
) -> ExecutiveSummary:
    pages = list(pages)
    deltas = tuple(comparison) if comparison is not None else None
    by_metric = {d.metric: d for d in deltas or ()}

    host = urlparse(pages[0].url).netloc if pages else ""
    with_data = [s.average for s in site.categories.values() if s.has_data]
    overview = {
        "site": host,
        "pagesAnalyzed": site.page_count,
        "pagesWithErrors": site.pages_with_errors,
        "analysisDate": context.run_date.isoformat(),
        "schemaVersion": SCHEMA_VERSION,
        "averageScore": format_score(sum(with_data) / len(with_data) if with_data else 0.0),
    }

    blocks: dict[str, CategoryBlock] = {}
    for name, s in site.categories.items():
        trend = None
        delta = by_metric.get(f"{name}.score")
        if delta is not None:
            trend = {
                "delta": delta.delta,
                "percent_change": delta.percent_change,
                "direction": direction(delta),
            }
        blocks[name] = CategoryBlock(
            category=name,
            status=s.status,
            score=s.average,
            page_count=s.page_count,
            issues_by_severity=dict(s.issues_by_severity),
            trend=trend,
        )

    findings = tuple(
        Finding(
            category=r.category,
            severity=r.priority,
            finding=r.message,
            affected_pages=r.affected_pages,
        )
        for r in feedback.recommendations[:max(0, top_n)]
    )

    block = None
    if deltas is not None:
        block = _comparison_block(deltas, site, previous)

    context.logger.debug("Built executive summary for %s (%d pages)", host or "<no pages>", site.page_count)
    return ExecutiveSummary(
        generated_at=context.now,
        site=host,
        overview=overview,
        categories=blocks,
        key_findings=findings,
        recommendations=feedback.recommendations,
        comparison=block,
    )


# ── Polarity ──────────────────────────────────────────────────────────────────

def metric_polarity(metric: str) -> str:
    if metric in METRIC_POLARITY:
        return METRIC_POLARITY[metric]
    if metric.endswith(".issues"):
        return LOWER_IS_BETTER
    if metric.endswith("_count"):
        return NEUTRAL
    return HIGHER_IS_BETTER


def direction(delta: TrendDelta) -> str:
    if delta.delta == 0:
        return "unchanged"
    polarity = metric_polarity(delta.metric)
    if polarity == NEUTRAL:
        return "changed"
    better = delta.delta > 0 if polarity == HIGHER_IS_BETTER else delta.delta < 0
    return "improved" if better else "declined"


def metric_label(metric: str) -> str:
    category, _, sub = metric.partition(".")
    if not sub:
        return category.replace("_", " ").capitalize()
    return f"{Category.label(category)} {sub.replace('_', ' ')}"


def _comparison_block(
    deltas: tuple[TrendDelta, ...],
    site: SiteAggregate,
    previous: Optional[SiteAggregate],
) -> Comparison:
    improvements: list[str] = []
    regressions: list[str] = []
    for d in deltas:
        trend = direction(d)
        text = (
            f"{metric_label(d.metric)}: {format_score(d.previous)} → {format_score(d.current)} "
            f"({d.percent_change:+.2f}%)"
        )
        if trend == "improved":
            improvements.append(text)
        elif trend == "declined":
            regressions.append(text)

    if previous is not None:
        page_change = site.page_count - previous.page_count
    else:
        page_change = int(next((d.delta for d in deltas if d.metric == "page_count"), 0))

    return Comparison(
        deltas=deltas,
        improvements=tuple(improvements),
        regressions=tuple(regressions),
        page_count_change=page_change,
    )


# ── Markdown ──────────────────────────────────────────────────────────────────

def summary_to_markdown(summary: ExecutiveSummary) -> str:
    o = summary.overview
    lines = [
        f"# Executive Summary: {summary.site or 'site'}",
        "",
        f"- Analysis date: {o['analysisDate']}",
        f"- Pages analyzed: {o['pagesAnalyzed']}",
        f"- Pages with scoring errors: {o['pagesWithErrors']}",
        f"- Average category score: {o['averageScore']}",
        "",
        "## Category Summary",
        "",
        "| Category | Score | Status | Pages | Critical | High | Medium | Low | Trend |",
        "|---|---|---|---|---|---|---|---|---|",
    ]
    for block in summary.categories.values():
        counts = [str(block.issues_by_severity.get(sev, 0)) for sev in Severity.ALL]
        trend = ""
        if block.trend:
            trend = f"{block.trend['direction']} ({format_score(block.trend['delta'])})"
        lines.append(
            f"| {Category.label(block.category)} | {format_score(block.score)} | {block.status} "
            f"| {block.page_count} | {' | '.join(counts)} | {trend} |"
        )

    lines += ["", "## Key Findings", ""]
    if not summary.key_findings:
        lines.append("No issues found.")
    for f in summary.key_findings:
        icon = Severity.ICONS.get(f.severity, "")
        lines.append(
            f"- {icon} **{f.severity}** ({Category.label(f.category)}): {f.finding} "
            f"({f.affected_pages} page(s))"
        )

    lines += ["", "## Recommendations", ""]
    for i, r in enumerate(summary.recommendations, 1):
        ref = f" _(see: {r.source_reference})_" if r.source_reference else ""
        lines.append(f"{i}. [{r.priority} priority / {r.effort} effort] {r.recommendation}{ref}")

    if summary.comparison is not None:
        c = summary.comparison
        lines += ["", "## Comparison With Previous Run", "", f"- Page count change: {c.page_count_change:+d}"]
        if c.improvements:
            lines += ["", "### Improvements", ""] + [f"- {t}" for t in c.improvements]
        if c.regressions:
            lines += ["", "### Regressions", ""] + [f"- {t}" for t in c.regressions]

    return "\n".join(lines) + "\n"
