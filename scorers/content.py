"""
Content scorer: heading structure, freshness, media richness and the
optional uniqueness / grammar collaborators.
"""
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional

from models import Category, CategoryScore, ContentSignals, Effort, IssueKind, ScoringContext, SignalRecord
from scorers.base import BaseScorer
from config import (
    CONTENT_WEIGHTS, FRESHNESS_DECAY_BASE, FRESHNESS_DECAY_DAYS_PER_POINT, FRESHNESS_STEPS,
    HEADING_EXCESS_LIMITS, HEADING_EXCESS_PENALTY, HEADING_MISSING_H1_PENALTY,
    HEADING_MULTIPLE_H1_PENALTY, HEADING_ORPHAN_PENALTIES, MEDIA_POINTS, THIN_CONTENT_WORD_COUNT,
)


class ContentScorer(BaseScorer):
    category = Category.CONTENT

    def score(self, record: SignalRecord, context: ScoringContext) -> Optional[CategoryScore]:
        c = record.content
        url = record.url
        issues = []

        headings = heading_score(c)
        counts = _heading_counts(c)
        if counts[1] == 0:
            issues.append(self.high(
                url, IssueKind.HEADING_STRUCTURE,
                "Page has no H1 heading.",
                "Add a single descriptive H1 that states the page topic.",
            ))
        elif counts[1] > 1:
            issues.append(self.medium(
                url, IssueKind.HEADING_STRUCTURE,
                "Page has more than one H1 heading.",
                "Keep one H1 per page and demote the others to H2.",
                detail=f"{counts[1]} H1 elements",
            ))
        for tier in HEADING_ORPHAN_PENALTIES:
            if counts[tier] > 0 and counts[tier - 1] == 0:
                issues.append(self.low(
                    url, IssueKind.HEADING_STRUCTURE,
                    f"H{tier} headings appear without any H{tier - 1}.",
                    "Nest headings in order without skipping levels.",
                ))

        days = days_since(c.last_modified, context.now)
        if days is None:
            freshness = 0.0
            context.logger.debug("No usable last-modified date for %s", url)
            issues.append(self.low(
                url, IssueKind.FRESHNESS,
                "Last-modified date is missing or unreadable.",
                "Expose a Last-Modified header or dateModified metadata.",
            ))
        else:
            freshness = freshness_score(days)
            if days > 365:
                issues.append(self.medium(
                    url, IssueKind.FRESHNESS,
                    "Content has not been updated in over a year.",
                    "Review and refresh the page content.",
                    effort=Effort.MODERATE,
                    detail=f"{days} days since last modification",
                ))

        media = media_score(c)
        if media == 0:
            issues.append(self.low(
                url, IssueKind.MEDIA,
                "Page has no images, video or interactive elements.",
                "Add supporting media where it helps explain the content.",
                effort=Effort.MODERATE,
            ))

        if c.word_count < THIN_CONTENT_WORD_COUNT:
            issues.append(self.medium(
                url, IssueKind.THIN_CONTENT,
                "Page content is thin.",
                f"Expand the main content to at least {THIN_CONTENT_WORD_COUNT} words.",
                effort=Effort.MODERATE,
                detail=f"{c.word_count} words",
            ))

        uniqueness = _collaborator(context.uniqueness, record)
        grammar = _collaborator(context.grammar, record)

        subscores = {
            "headings": headings,
            "freshness": freshness,
            "uniqueness": uniqueness,
            "grammar": grammar,
            "media": media,
        }
        total = sum(subscores[name] * weight for name, weight in CONTENT_WEIGHTS.items())
        subscores["word_count"] = float(c.word_count)

        return CategoryScore(
            category=self.category,
            score=total,
            subscores=subscores,
            issues=tuple(issues),
            details={"days_since_modified": days},
        )


def _heading_counts(c: ContentSignals) -> dict[int, int]:
    return {
        1: c.h1_count, 2: c.h2_count, 3: c.h3_count,
        4: c.h4_count, 5: c.h5_count, 6: c.h6_count,
    }


def heading_score(c: ContentSignals) -> float:
    counts = _heading_counts(c)
    score = 100.0
    if counts[1] == 0:
        score -= HEADING_MISSING_H1_PENALTY
    elif counts[1] > 1:
        score -= HEADING_MULTIPLE_H1_PENALTY
    for tier, penalty in HEADING_ORPHAN_PENALTIES.items():
        if counts[tier] > 0 and counts[tier - 1] == 0:
            score -= penalty
    for tier, limit in HEADING_EXCESS_LIMITS.items():
        if counts[tier] > limit:
            score -= HEADING_EXCESS_PENALTY
    return max(0.0, score)


def freshness_score(days: int) -> float:
    for max_days, score in FRESHNESS_STEPS:
        if days <= max_days:
            return score
    over = days - FRESHNESS_STEPS[-1][0]
    return max(0.0, FRESHNESS_DECAY_BASE - over / FRESHNESS_DECAY_DAYS_PER_POINT)


def days_since(value: Optional[str], now: datetime) -> Optional[int]:
    """Whole days between an ISO-8601 timestamp and `now`; None if unparseable."""
    if not value:
        return None
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return math.floor((now - parsed).total_seconds() / 86400)


def media_score(c: ContentSignals) -> float:
    counts = {
        "images": c.image_count,
        "videos": c.video_count,
        "interactive": c.interactive_count,
    }
    total = 0
    for kind, (per_item, cap) in MEDIA_POINTS.items():
        total += min(cap, max(0, counts[kind]) * per_item)
    return float(min(100, total))


def _collaborator(func, record: SignalRecord) -> float:
    if func is None:
        return 100.0
    return max(0.0, min(100.0, float(func(record))))
