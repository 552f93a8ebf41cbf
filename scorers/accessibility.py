"""
Accessibility scorer: deduction model over accessibility-audit findings,
plus WCAG level / guideline tallies and the manual-check list.
"""
from __future__ import annotations

import re
from typing import Optional

from models import (
    AuditFinding, Category, CategoryScore, Effort, IssueKind, ScoringContext,
    Severity, SignalRecord,
)
from scorers.base import BaseScorer
from config import (
    ACCESSIBILITY_DEDUCTION_MULTIPLIER, ACCESSIBILITY_DEFAULT_WEIGHT,
    ACCESSIBILITY_SEVERITY_WEIGHTS, WCAG_GUIDELINES, WCAG_MANUAL_CHECKS,
)

_LEVEL_RE = re.compile(r"WCAG2(A{1,3})")
# Matches both "WCAG2AA.1.4.3" and "WCAG2AA.Principle1.Guideline1_4.1_4_3.G18"
_GUIDELINE_RE = re.compile(r"WCAG2[ABC]{1,3}\.(?:Principle\d\.Guideline)?(\d+)[._](\d+)")

_SPECIAL_COUNTERS = {
    "aria_issues":     "aria",
    "contrast_issues": "contrast",
    "keyboard_issues": "keyboard",
}


class AccessibilityScorer(BaseScorer):
    category = Category.ACCESSIBILITY

    def score(self, record: SignalRecord, context: ScoringContext) -> Optional[CategoryScore]:
        findings = record.accessibility_issues
        if findings is None:
            # audit never ran for this page
            return None

        url = record.url
        score = 100.0
        by_severity = {name.lower(): 0 for name in ACCESSIBILITY_SEVERITY_WEIGHTS}
        by_level = {"level_a": 0, "level_aa": 0, "level_aaa": 0}
        counters = {key: 0 for key in _SPECIAL_COUNTERS}
        by_guideline: dict[str, int] = {}
        manual_checks: list[str] = []
        remediation: list[str] = []
        issues = []

        for finding in findings:
            raw_severity = str(finding.severity or "").strip().capitalize()
            weight = ACCESSIBILITY_SEVERITY_WEIGHTS.get(raw_severity, ACCESSIBILITY_DEFAULT_WEIGHT)
            score -= weight * ACCESSIBILITY_DEDUCTION_MULTIPLIER
            if raw_severity.lower() in by_severity:
                by_severity[raw_severity.lower()] += 1

            code = finding.code or ""
            level = _LEVEL_RE.search(code)
            if level:
                by_level["level_" + level.group(1).lower()] += 1

            guideline = parse_guideline(code)
            if guideline:
                by_guideline[guideline] = by_guideline.get(guideline, 0) + 1
                for check in WCAG_MANUAL_CHECKS.get(guideline, []):
                    if check not in manual_checks:
                        manual_checks.append(check)

            lowered = code.lower()
            for key, needle in _SPECIAL_COUNTERS.items():
                if needle in lowered:
                    counters[key] += 1

            if finding.remediation and finding.remediation not in remediation:
                remediation.append(finding.remediation)

            issues.append(self._finding_issue(url, finding, guideline))

        tracked = len(WCAG_GUIDELINES)
        failing = sum(1 for g in by_guideline if g in WCAG_GUIDELINES)
        compliance = (tracked - failing) / tracked * 100 if tracked else 100.0

        subscores: dict[str, float] = {"total_issues": float(len(findings))}
        subscores.update({k: float(v) for k, v in by_severity.items()})
        subscores.update({k: float(v) for k, v in by_level.items()})
        subscores.update({k: float(v) for k, v in counters.items()})
        subscores["compliance"] = compliance

        return CategoryScore(
            category=self.category,
            score=max(0.0, score),
            subscores=subscores,
            issues=tuple(issues),
            details={
                "by_guideline": {
                    g: {"description": WCAG_GUIDELINES.get(g, "Unknown guideline"), "count": n}
                    for g, n in sorted(by_guideline.items())
                },
                "manual_checks": manual_checks,
                "remediation": remediation,
            },
        )

    def _finding_issue(self, url: str, finding: AuditFinding, guideline: Optional[str]):
        severity = Severity.normalize(finding.severity)
        if finding.remediation:
            recommendation = finding.remediation
        elif guideline:
            recommendation = (
                f"Review WCAG guideline {guideline} "
                f"({WCAG_GUIDELINES.get(guideline, 'Unknown guideline')})."
            )
        else:
            recommendation = "Review the flagged element against WCAG 2.1."
        effort = Effort.MODERATE if severity in (Severity.CRITICAL, Severity.HIGH) else Effort.LOW
        return self._issue(
            url, IssueKind.ACCESSIBILITY, severity,
            finding.message or finding.code or "Accessibility issue",
            recommendation,
            effort=effort,
            source_reference=finding.code,
            detail=finding.context,
        )


def parse_guideline(code: str) -> Optional[str]:
    """Return "<principle>.<guideline>" from a WCAG rule code, or None."""
    match = _GUIDELINE_RE.search(code or "")
    if not match:
        return None
    return f"{match.group(1)}.{match.group(2)}"
