"""
Cross-page aggregator.

Folds every PageReport of a run into one SiteAggregate:
- per category, the arithmetic mean over the pages that produced that category
  (pages without it are excluded, never counted as zero);
- a status bucket from the category's own thresholds;
- issue totals by severity and averaged sub-scores.

A category no page contributed to reports score 0 with status "No data".
"""
from __future__ import annotations

from typing import Iterable, Optional

from models import CategoryScore, CategorySummary, PageReport, ScoringContext, Severity, SiteAggregate, Category
from config import DEFAULT_STATUS_THRESHOLDS, NO_DATA_STATUS, STATUS_THRESHOLDS


def aggregate(
    pages: Iterable[PageReport],
    categories: Optional[Iterable[str]] = None,
    context: Optional[ScoringContext] = None,
) -> SiteAggregate:
    pages = list(pages)
    names = list(categories) if categories is not None else list(Category.ALL)
    for page in pages:
        for name in page.categories:
            if name not in names:
                names.append(name)

    summaries: dict[str, CategorySummary] = {}
    for name in names:
        scores = [p.categories[name] for p in pages if name in p.categories]
        summaries[name] = _summarise(name, scores)
        if not scores and context is not None:
            context.logger.debug("No page contributed to %s", name)

    return SiteAggregate(
        page_count=len(pages),
        categories=summaries,
        pages_with_errors=sum(1 for p in pages if p.has_errors),
    )


def _summarise(name: str, scores: list[CategoryScore]) -> CategorySummary:
    by_severity = {sev: 0 for sev in Severity.ALL}
    if not scores:
        return CategorySummary(
            category=name,
            average=0.0,
            status=NO_DATA_STATUS,
            page_count=0,
            issues_by_severity=by_severity,
        )

    for s in scores:
        for issue in s.issues:
            by_severity[Severity.normalize(issue.severity)] += 1

    # sub-score names in first-seen order
    sub_values: dict[str, list[float]] = {}
    for s in scores:
        for sub, value in s.subscores.items():
            sub_values.setdefault(sub, []).append(float(value))

    average = sum(s.score for s in scores) / len(scores)
    return CategorySummary(
        category=name,
        average=average,
        status=status_label(name, average),
        page_count=len(scores),
        issues_by_severity=by_severity,
        subscores={sub: sum(v) / len(v) for sub, v in sub_values.items()},
    )


def status_label(category: str, score: float) -> str:
    """Bucket a score with the category's thresholds (default table otherwise)."""
    thresholds = STATUS_THRESHOLDS.get(category, DEFAULT_STATUS_THRESHOLDS)
    for minimum, label in thresholds:
        if score >= minimum:
            return label
    return thresholds[-1][1]


def score_color(score: float) -> str:
    if score >= 90:
        return "#00C851"
    elif score >= 70:
        return "#FFD700"
    elif score >= 50:
        return "#FF8800"
    else:
        return "#FF4444"
