"""
Runs every category scorer over every page, then folds the run into
aggregate, trend, feedback and executive summary.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from models import AuditRun, CategoryScore, PageReport, ScoringContext, SignalRecord, SiteAggregate
from scorers.base import BaseScorer
from scorers.accessibility import AccessibilityScorer
from scorers.content import ContentScorer
from scorers.seo import SEOScorer
from scorers.security import SecurityScorer
from scorers.agent import AgentSuitabilityScorer
from scorers.performance import PerformanceScorer
from scorers.tables import TableDataScorer
from scoring.aggregator import aggregate
from scoring.trends import compare
from reporting.feedback import prioritize
from reporting.summary import build_summary
from config import DEFAULT_MAX_WORKERS, DEFAULT_TOP_FINDINGS

logger = logging.getLogger(__name__)

# Order here is the category order of every PageReport
DEFAULT_SCORERS: list[BaseScorer] = [
    AccessibilityScorer(),
    ContentScorer(),
    SEOScorer(),
    SecurityScorer(),
    AgentSuitabilityScorer(),
    PerformanceScorer(),
    TableDataScorer(),
]


def score_page(
    record: SignalRecord,
    context: ScoringContext,
    scorers: Optional[list[BaseScorer]] = None,
) -> PageReport:
    """
    Score one page with every scorer. A scorer that raises is recorded on
    PageReport.errors and the remaining categories are still scored.
    """
    categories: dict[str, CategoryScore] = {}
    errors: list[str] = []
    for scorer in scorers or DEFAULT_SCORERS:
        try:
            result = scorer.score(record, context)
        except Exception as exc:
            context.logger.warning(
                "Scorer %s failed on %s", scorer.category, record.url, exc_info=True,
            )
            errors.append(f"{scorer.category}: {exc}")
            continue
        if result is not None:
            categories[scorer.category] = result
    return PageReport(url=record.url, categories=categories, errors=tuple(errors))


def score_pages(
    records: Iterable[SignalRecord],
    context: ScoringContext,
    max_workers: int = DEFAULT_MAX_WORKERS,
    scorers: Optional[list[BaseScorer]] = None,
    progress_callback: Optional[Callable[[dict], None]] = None,
) -> list[PageReport]:
    """Score all pages in parallel; the result keeps input order."""
    records = list(records)
    total = len(records)
    if not total:
        return []

    reports: list[Optional[PageReport]] = [None] * total
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        futures = [pool.submit(score_page, r, context, scorers) for r in records]
        for idx, future in enumerate(futures):
            reports[idx] = future.result()
            if idx % 20 == 0:
                _emit(progress_callback, f"Scoring pages… {idx + 1}/{total}", int((idx + 1) / total * 80))
    return [r for r in reports if r is not None]


def run_audit(
    records: Iterable[Union[SignalRecord, Mapping[str, Any]]],
    previous: Optional[SiteAggregate] = None,
    context: Optional[ScoringContext] = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
    top_n: int = DEFAULT_TOP_FINDINGS,
    progress_callback: Optional[Callable[[dict], None]] = None,
) -> AuditRun:
    """
    Full run: score pages, wait for all of them, aggregate, compare against
    the previous aggregate when one is given, prioritize and summarise.
    """
    context = context or ScoringContext.create(logger=logger)
    records = list(records)

    # records that cannot be built keep their slot as an error-only report
    signal_records: list[SignalRecord] = []
    unbuildable: dict[int, PageReport] = {}
    for idx, raw in enumerate(records):
        try:
            signal_records.append(raw if isinstance(raw, SignalRecord) else SignalRecord.from_dict(raw))
        except Exception as exc:
            url = str(raw.get("url") or "") if isinstance(raw, Mapping) else ""
            context.logger.warning(
                "Could not build signal record %d (%s)", idx, url or "no url", exc_info=True,
            )
            unbuildable[idx] = PageReport(url=url, errors=(f"record: {exc}",))

    context.logger.info("Scoring %d pages", len(signal_records))
    _emit(progress_callback, f"Scoring {len(signal_records)} pages…", 0)

    scored = iter(score_pages(signal_records, context, max_workers, progress_callback=progress_callback))
    pages = [unbuildable[i] if i in unbuildable else next(scored) for i in range(len(records))]

    _emit(progress_callback, "Aggregating…", 85)
    site = aggregate(pages, context=context)

    comparison = None
    if previous is not None:
        comparison = tuple(compare(site, previous))

    _emit(progress_callback, "Prioritizing feedback…", 92)
    feedback = prioritize(pages)
    summary = build_summary(pages, site, feedback, comparison, context, previous=previous, top_n=top_n)

    failed = sum(1 for p in pages if p.has_errors)
    if failed:
        context.logger.warning("%d of %d pages had scorer failures", failed, len(pages))
    _emit(progress_callback, "Audit complete.", 100)

    return AuditRun(
        pages=tuple(pages),
        aggregate=site,
        feedback=feedback,
        summary=summary,
        comparison=comparison,
    )


def _emit(callback, message: str, pct: int) -> None:
    if callback:
        try:
            callback({"message": message, "pct": pct})
        except Exception:
            logger.debug("Progress callback failed", exc_info=True)
