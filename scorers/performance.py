"""
Performance scorer: banded points for load time, LCP, FCP and CLS.
Measurements that were not taken are left out of the point budget.
"""
from __future__ import annotations

from typing import Optional

from models import Category, CategoryScore, Effort, IssueKind, ScoringContext, SignalRecord
from scorers.base import BaseScorer
from config import (
    PERFORMANCE_BANDS, PERFORMANCE_POINTS_PER_METRIC, POOR_CLS, SLOW_FCP_MS,
    SLOW_LCP_MS, SLOW_LOAD_TIME_MS,
)


class PerformanceScorer(BaseScorer):
    category = Category.PERFORMANCE

    def score(self, record: SignalRecord, context: ScoringContext) -> Optional[CategoryScore]:
        perf = record.performance
        if perf is None or perf.is_empty:
            return None

        url = record.url
        points = 0
        budget = 0
        for metric, bands in PERFORMANCE_BANDS.items():
            value = getattr(perf, metric)
            if value is None:
                continue
            budget += PERFORMANCE_POINTS_PER_METRIC
            points += band_points(value, bands)

        issues = []
        if perf.load_time is not None and perf.load_time > SLOW_LOAD_TIME_MS:
            issues.append(self.high(
                url, IssueKind.PAGE_SPEED,
                "Slow page load time.",
                "Optimize server response time and reduce render-blocking resources.",
                effort=Effort.MODERATE,
                detail=f"{perf.load_time:.0f} ms",
            ))
        if perf.lcp is not None and perf.lcp > SLOW_LCP_MS:
            issues.append(self.high(
                url, IssueKind.PAGE_SPEED,
                "Poor Largest Contentful Paint.",
                "Optimize the largest visible image or text block and preload key resources.",
                effort=Effort.MODERATE,
                detail=f"{perf.lcp:.0f} ms",
            ))
        if perf.cls is not None and perf.cls >= POOR_CLS:
            issues.append(self.medium(
                url, IssueKind.LAYOUT_SHIFT,
                "High Cumulative Layout Shift.",
                "Reserve space for images, ads and embeds so content does not jump.",
                detail=f"{perf.cls:.3f}",
            ))
        if perf.fcp is not None and perf.fcp >= SLOW_FCP_MS:
            issues.append(self.medium(
                url, IssueKind.PAGE_SPEED,
                "Slow First Contentful Paint.",
                "Inline critical CSS and defer non-critical scripts.",
                effort=Effort.MODERATE,
                detail=f"{perf.fcp:.0f} ms",
            ))

        # raw measurements so the trend comparator can track them
        subscores = {
            name: float(getattr(perf, name))
            for name in ("load_time", "lcp", "fcp", "cls", "ttfb")
            if getattr(perf, name) is not None
        }

        return CategoryScore(
            category=self.category,
            score=points / budget * 100 if budget else 0.0,
            subscores=subscores,
            issues=tuple(issues),
        )


def band_points(value: float, bands: list[tuple[float, int]]) -> int:
    for upper, points in bands:
        if value < upper:
            return points
    return 0
