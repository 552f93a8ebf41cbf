"""
Feedback prioritizer: merges the issues of every page, deduplicates them by
(category, message) and ranks them into recommendations.
"""
from __future__ import annotations

from typing import Iterable

from models import Effort, Feedback, Importance, Issue, IssueKind, PageReport, Recommendation, Severity

IMPORTANCE_BY_KIND: dict[IssueKind, Importance] = {
    IssueKind.MISSING_LANDMARK:        Importance.ESSENTIAL,
    IssueKind.FORM_FIELDS:             Importance.ESSENTIAL,
    IssueKind.MISSING_STRUCTURED_DATA: Importance.ESSENTIAL,
    IssueKind.MISSING_AGENT_MANIFEST:  Importance.ESSENTIAL,
    IssueKind.CRAWLER_RESTRICTION:     Importance.ESSENTIAL,
    # Critical / High accessibility findings are promoted in importance_of()
    IssueKind.ACCESSIBILITY:           Importance.NICE_TO_HAVE,
    IssueKind.MISSING_AI_TXT:          Importance.NICE_TO_HAVE,
    IssueKind.RENDERED_STATE:          Importance.NICE_TO_HAVE,
    IssueKind.AGENT_VISIBILITY:        Importance.NICE_TO_HAVE,
    IssueKind.ERROR_PERSISTENCE:       Importance.NICE_TO_HAVE,
    IssueKind.BOT_PROTECTION:          Importance.NICE_TO_HAVE,
    IssueKind.API_DISCOVERY:           Importance.NICE_TO_HAVE,
    IssueKind.TABLE_SEMANTICS:         Importance.NICE_TO_HAVE,
    IssueKind.HEADING_STRUCTURE:       Importance.NICE_TO_HAVE,
    IssueKind.FRESHNESS:               Importance.NICE_TO_HAVE,
    IssueKind.MEDIA:                   Importance.NICE_TO_HAVE,
    IssueKind.THIN_CONTENT:            Importance.NICE_TO_HAVE,
    IssueKind.TITLE:                   Importance.NICE_TO_HAVE,
    IssueKind.META_DESCRIPTION:        Importance.NICE_TO_HAVE,
    IssueKind.URL_STRUCTURE:           Importance.NICE_TO_HAVE,
    IssueKind.INTERNAL_LINKS:          Importance.NICE_TO_HAVE,
    IssueKind.IMAGE_ALT:               Importance.NICE_TO_HAVE,
    IssueKind.MOBILE:                  Importance.NICE_TO_HAVE,
    IssueKind.SOCIAL_TAGS:             Importance.NICE_TO_HAVE,
    IssueKind.TRANSPORT:               Importance.NICE_TO_HAVE,
    IssueKind.SECURITY_HEADERS:        Importance.NICE_TO_HAVE,
    IssueKind.COOKIES:                 Importance.NICE_TO_HAVE,
    IssueKind.CSP:                     Importance.NICE_TO_HAVE,
    IssueKind.XSS:                     Importance.NICE_TO_HAVE,
    IssueKind.MIXED_CONTENT:           Importance.NICE_TO_HAVE,
    IssueKind.VULNERABLE_PATTERN:      Importance.NICE_TO_HAVE,
    IssueKind.PAGE_SPEED:              Importance.NICE_TO_HAVE,
    IssueKind.LAYOUT_SHIFT:            Importance.NICE_TO_HAVE,
}

_unmapped = [k.name for k in IssueKind if k not in IMPORTANCE_BY_KIND]
if _unmapped:
    raise RuntimeError(f"IssueKind members without an importance: {', '.join(_unmapped)}")


def importance_of(issue: Issue) -> Importance:
    if issue.kind is IssueKind.ACCESSIBILITY:
        if Severity.normalize(issue.severity) in (Severity.CRITICAL, Severity.HIGH):
            return Importance.ESSENTIAL
        return Importance.NICE_TO_HAVE
    return IMPORTANCE_BY_KIND[issue.kind]


def priority_key(severity: str, effort: str) -> tuple[int, int]:
    return (
        Severity.RANK.get(Severity.normalize(severity), len(Severity.ALL)),
        Effort.RANK.get(Effort.normalize(effort), len(Effort.ALL)),
    )


def prioritize(pages: Iterable[PageReport]) -> Feedback:
    """Collect the issues of every page report and rank them."""
    issues: list[Issue] = []
    for page in pages:
        issues.extend(page.issues)
    return prioritize_issues(issues)


def prioritize_issues(issues: Iterable[Issue]) -> Feedback:
    # (category, message) -> first issue seen, plus the set of URLs it hit
    first: dict[tuple[str, str], Issue] = {}
    urls: dict[tuple[str, str], set[str]] = {}
    for issue in issues:
        key = (issue.category, issue.message)
        if key not in first:
            first[key] = issue
            urls[key] = set()
        urls[key].add(issue.url)

    essential: list[Issue] = []
    nice: list[Issue] = []
    recs: list[Recommendation] = []
    for key, issue in first.items():
        importance = importance_of(issue)
        (essential if importance is Importance.ESSENTIAL else nice).append(issue)
        recs.append(Recommendation(
            category=issue.category,
            priority=Severity.normalize(issue.severity),
            effort=Effort.normalize(issue.effort),
            recommendation=issue.recommendation,
            message=issue.message,
            importance=importance,
            source_reference=issue.source_reference,
            affected_pages=len(urls[key]),
        ))

    # sorted() is stable, so ties keep first-seen order
    recs = sorted(recs, key=lambda r: priority_key(r.priority, r.effort))
    return Feedback(
        essential=tuple(essential),
        nice_to_have=tuple(nice),
        recommendations=tuple(recs),
    )
