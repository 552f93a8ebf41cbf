"""
SEO scorer: weighted on-page factors, each scored 0–1 then scaled to 0–100.
"""
from __future__ import annotations

import re
from collections import Counter
from typing import Optional
from urllib.parse import urlparse

from models import Category, CategoryScore, Effort, IssueKind, ScoringContext, SignalRecord
from scorers.base import BaseScorer, ratio
from config import (
    CONTENT_MAX_WORDS, CONTENT_MIN_WORDS, DESCRIPTION_MAX_CHARS, DESCRIPTION_MIN_CHARS,
    H1_MAX_LENGTH, INTERNAL_LINKS_MAX, INTERNAL_LINKS_MIN, PAGE_SPEED_FAST_MS,
    PAGE_SPEED_SLOW_MS, SEO_WEIGHTS, THIN_CONTENT_WORD_COUNT, TITLE_MAX_CHARS,
    TITLE_MIN_CHARS, URL_MAX_SEGMENTS, URL_SEGMENT_MAX_CHARS,
)

_WORD_RE = re.compile(r"\b\w+\b")
_URL_ALLOWED_RE = re.compile(r"^[a-z0-9\-./]+$")


class SEOScorer(BaseScorer):
    category = Category.SEO

    def score(self, record: SignalRecord, context: ScoringContext) -> Optional[CategoryScore]:
        c = record.content
        url = record.url
        issues = []

        load_time = record.performance.load_time if record.performance else None

        subs: dict[str, float] = {
            "title": score_range(len(c.title), TITLE_MIN_CHARS, TITLE_MAX_CHARS) if c.title else 0.0,
            "meta_description": (
                score_range(len(c.meta_description), DESCRIPTION_MIN_CHARS, DESCRIPTION_MAX_CHARS)
                if c.meta_description else 0.0
            ),
            "url_structure": url_structure_score(url),
            "h1": 1.0 if 0 < len(c.h1_text) <= H1_MAX_LENGTH else 0.5,
            "content_length": (
                score_range(c.word_count, CONTENT_MIN_WORDS, CONTENT_MAX_WORDS) if c.word_count else 0.0
            ),
            "content_quality": content_quality_score(record),
            "internal_linking": score_range(c.internal_link_count, INTERNAL_LINKS_MIN, INTERNAL_LINKS_MAX),
            "image_alt": ratio(c.images_with_alt, c.image_count),
            "mobile": 1.0 if c.has_viewport_meta else 0.0,
            "https": 1.0 if url.lower().startswith("https") else 0.0,
            "structured_data": 1.0 if record.metadata.structured_data_blocks else 0.0,
            "social_tags": 1.0 if (c.og_tag_count or c.twitter_tag_count) else 0.0,
        }
        if load_time is not None:
            subs["page_speed"] = score_range(load_time, PAGE_SPEED_FAST_MS, PAGE_SPEED_SLOW_MS, inverse=True)
        else:
            context.logger.debug("No load time for %s; page speed excluded from SEO score", url)

        weighted = sum(value * SEO_WEIGHTS[name] for name, value in subs.items())
        budget = sum(SEO_WEIGHTS[name] for name in subs)
        total = weighted / budget * 100 if budget else 0.0

        # ── Issues ─────────────────────────────────────────────────────────────
        if not c.title:
            issues.append(self.high(
                url, IssueKind.TITLE,
                "Page is missing a <title>.",
                f"Add a unique title of {TITLE_MIN_CHARS}–{TITLE_MAX_CHARS} characters.",
            ))
        elif not TITLE_MIN_CHARS <= len(c.title) <= TITLE_MAX_CHARS:
            issues.append(self.low(
                url, IssueKind.TITLE,
                "Title length is outside the recommended range.",
                f"Keep titles between {TITLE_MIN_CHARS} and {TITLE_MAX_CHARS} characters.",
                detail=f"{len(c.title)} chars",
            ))

        if not c.meta_description:
            issues.append(self.medium(
                url, IssueKind.META_DESCRIPTION,
                "Page is missing a meta description.",
                f"Write a meta description of {DESCRIPTION_MIN_CHARS}–{DESCRIPTION_MAX_CHARS} characters.",
            ))
        elif not DESCRIPTION_MIN_CHARS <= len(c.meta_description) <= DESCRIPTION_MAX_CHARS:
            issues.append(self.low(
                url, IssueKind.META_DESCRIPTION,
                "Meta description length is outside the recommended range.",
                f"Keep descriptions between {DESCRIPTION_MIN_CHARS} and {DESCRIPTION_MAX_CHARS} characters.",
                detail=f"{len(c.meta_description)} chars",
            ))

        if subs["url_structure"] < 0.7:
            issues.append(self.low(
                url, IssueKind.URL_STRUCTURE,
                "URL is not clean or readable.",
                "Use short, lowercase, hyphen-separated paths without query strings.",
                effort=Effort.HIGH,
            ))

        if c.internal_link_count < INTERNAL_LINKS_MIN:
            issues.append(self.low(
                url, IssueKind.INTERNAL_LINKS,
                "Page has too few internal links.",
                f"Link to at least {INTERNAL_LINKS_MIN} related pages on the site.",
                detail=f"{c.internal_link_count} internal links",
            ))

        missing_alt = c.image_count - c.images_with_alt
        if missing_alt > 0:
            issues.append(self.medium(
                url, IssueKind.IMAGE_ALT,
                "Images are missing alt text.",
                "Add descriptive alt attributes to all content images.",
                detail=f"{missing_alt}/{c.image_count} images without alt",
            ))

        if not c.has_viewport_meta:
            issues.append(self.high(
                url, IssueKind.MOBILE,
                "Page has no responsive viewport meta tag.",
                'Add <meta name="viewport" content="width=device-width, initial-scale=1">.',
            ))

        if not (c.og_tag_count or c.twitter_tag_count):
            issues.append(self.low(
                url, IssueKind.SOCIAL_TAGS,
                "No Open Graph or Twitter Card tags.",
                "Add og:title, og:description and og:image tags for link previews.",
            ))

        return CategoryScore(
            category=self.category,
            score=total,
            subscores=subs,
            issues=tuple(issues),
        )


def score_range(value: float, low: float, high: float, inverse: bool = False) -> float:
    """Linear 0–1 ramp between `low` and `high`; `inverse` makes lower values better."""
    if inverse:
        if value <= low:
            return 1.0
        if value >= high:
            return 0.0
        return (high - value) / (high - low)
    if value >= high:
        return 1.0
    if value <= low:
        return 0.0
    return (value - low) / (high - low)


def url_structure_score(url: str) -> float:
    if not url:
        return 0.0
    parsed = urlparse(url)
    segments = [s for s in parsed.path.split("/") if s]
    score = 1.0
    if "_" in url:
        score -= 0.2
    if url.lower() != url:
        score -= 0.2
    if any(ch.isdigit() for ch in url):
        score -= 0.1
    if any(len(s) > URL_SEGMENT_MAX_CHARS for s in segments):
        score -= 0.2
    if "?" in url or "&" in url:
        score -= 0.2
    if len(segments) > URL_MAX_SEGMENTS:
        score -= 0.1
    if not _URL_ALLOWED_RE.match((parsed.netloc + parsed.path) or "/"):
        score -= 0.2
    return max(0.0, round(score, 10))


def main_keyword(*texts: str) -> Optional[str]:
    words = _WORD_RE.findall(" ".join(t for t in texts if t).lower())
    if not words:
        return None
    # most_common keeps first-seen order on ties
    return Counter(words).most_common(1)[0][0]


def content_quality_score(record: SignalRecord) -> float:
    c = record.content
    score = 0.0
    keyword = main_keyword(c.title, c.meta_description, c.h1_text)
    if keyword:
        for text in (c.title, c.meta_description, c.h1_text):
            if text and keyword in text.lower():
                score += 0.2
    if c.h2_count > 0:
        score += 0.1
    if c.h3_count > 0:
        score += 0.1
    if c.image_count > 0:
        score += 0.1
    if c.external_link_count > 0:
        score += 0.1
    if c.word_count < THIN_CONTENT_WORD_COUNT:
        score -= 0.2
    return min(1.0, max(0.0, score))
