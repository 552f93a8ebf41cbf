"""
Base class for all category scorers.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from models import CategoryScore, Effort, Issue, IssueKind, ScoringContext, Severity, SignalRecord


class BaseScorer(ABC):
    """All scorers inherit from this class.

    A scorer is a total function over a SignalRecord: absent fields mean
    "feature absent", never an error. Returning None means the category does
    not apply to this page (e.g. no tables) and the page is left out of that
    category's site average.
    """

    category: str = "uncategorized"

    @abstractmethod
    def score(self, record: SignalRecord, context: ScoringContext) -> Optional[CategoryScore]:
        """Score a single page."""
        ...

    # ── Convenience factory ───────────────────────────────────────────────────

    def _issue(
        self,
        url: str,
        kind: IssueKind,
        severity: str,
        message: str,
        recommendation: str,
        effort: str = Effort.LOW,
        source_reference: str = "",
        detail: str = "",
    ) -> Issue:
        return Issue(
            url=url,
            category=self.category,
            kind=kind,
            severity=severity,
            message=message,
            recommendation=recommendation,
            effort=effort,
            source_reference=source_reference,
            detail=detail,
        )

    def critical(self, url, kind, message, recommendation, effort=Effort.LOW, ref="", detail="") -> Issue:
        return self._issue(url, kind, Severity.CRITICAL, message, recommendation, effort, ref, detail)

    def high(self, url, kind, message, recommendation, effort=Effort.LOW, ref="", detail="") -> Issue:
        return self._issue(url, kind, Severity.HIGH, message, recommendation, effort, ref, detail)

    def medium(self, url, kind, message, recommendation, effort=Effort.LOW, ref="", detail="") -> Issue:
        return self._issue(url, kind, Severity.MEDIUM, message, recommendation, effort, ref, detail)

    def low(self, url, kind, message, recommendation, effort=Effort.LOW, ref="", detail="") -> Issue:
        return self._issue(url, kind, Severity.LOW, message, recommendation, effort, ref, detail)


def ratio(part: float, whole: float, default: float = 1.0) -> float:
    """part / whole, or `default` when there is nothing to measure against."""
    if not whole or whole <= 0:
        return default
    return max(0.0, min(1.0, part / whole))
