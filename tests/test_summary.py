import pytest

from models import (
    CategoryBlock, CategoryScore, Effort, Issue, IssueKind, PageReport, Severity, SiteAggregate,
    TrendDelta,
)
from reporting.feedback import prioritize
from reporting.summary import build_summary, direction, metric_label, metric_polarity, summary_to_markdown
from scoring.aggregator import aggregate
from scoring.trends import compare


def _issue(url, message, severity):
    return Issue(url=url, category="seo", kind=IssueKind.TITLE, severity=severity,
                 message=message, recommendation="Fix it.", effort=Effort.LOW)


@pytest.fixture
def pages():
    return [
        PageReport(url="https://example.com/a", categories={
            "seo": CategoryScore(category="seo", score=80, issues=(
                _issue("https://example.com/a", "Title too short", Severity.LOW),
                _issue("https://example.com/a", "No viewport", Severity.HIGH),
            )),
        }),
        PageReport(url="https://example.com/b", categories={
            "seo": CategoryScore(category="seo", score=60, issues=(
                _issue("https://example.com/b", "No viewport", Severity.HIGH),
                _issue("https://example.com/b", "No description", Severity.MEDIUM),
            )),
            "accessibility": CategoryScore(category="accessibility", score=100),
        }),
    ]


def _build(pages, context, previous=None, top_n=10):
    site = aggregate(pages)
    comparison = compare(site, previous) if previous is not None else None
    return build_summary(pages, site, prioritize(pages), comparison, context,
                         previous=previous, top_n=top_n)


def test_overview(pages, context):
    summary = _build(pages, context)
    assert summary.site == "example.com"
    assert summary.overview["pagesAnalyzed"] == 2
    assert summary.overview["analysisDate"] == "2026-03-01"
    # mean of SEO 70 and accessibility 100
    assert summary.overview["averageScore"] == "85.00"
    assert summary.comparison is None
    assert summary.to_dict()["comparison"] is None


def test_key_findings_follow_priority(pages, context):
    summary = _build(pages, context, top_n=2)
    assert [f.finding for f in summary.key_findings] == ["No viewport", "No description"]
    assert summary.key_findings[0].affected_pages == 2
    assert len(summary.recommendations) == 3


def test_comparison_lists_improvements_and_regressions(pages, context):
    previous = SiteAggregate.from_dict({
        "pageCount": 1,
        "pagesWithErrors": 0,
        "categories": {
            "seo": {"average": 60.0, "status": "Fair", "pageCount": 1,
                    "issuesBySeverity": {"High": 1}, "subscores": {}},
        },
    })
    summary = _build(pages, context, previous=previous)
    c = summary.comparison
    assert c.page_count_change == 1
    assert "SEO score: 60.00 → 70.00 (+16.67%)" in c.improvements
    assert any(t.startswith("SEO issues") for t in c.regressions)
    assert summary.categories["seo"].trend["direction"] == "improved"
    assert summary.categories["accessibility"].trend is None


def test_scores_serialize_with_two_decimals():
    block = CategoryBlock(category="seo", status="Good", score=88)
    assert block.to_dict()["score"] == "88.00"
    assert block.to_dict()["category"] == "SEO"


def test_markdown(pages, context):
    text = summary_to_markdown(_build(pages, context))
    assert text.startswith("# Executive Summary: example.com\n")
    assert "| SEO | 70.00 | Good | 2 | 0 | 2 | 1 | 1 |  |" in text
    assert "No viewport (2 page(s))" in text


@pytest.mark.parametrize("metric,polarity", [
    ("seo.score", "higher_is_better"),
    ("seo.issues", "lower_is_better"),
    ("performance.lcp", "lower_is_better"),
    ("table_data.table_count", "neutral"),
    ("page_count", "neutral"),
    ("security.headers", "higher_is_better"),
])
def test_metric_polarity(metric, polarity):
    assert metric_polarity(metric) == polarity


def test_direction():
    assert direction(TrendDelta("performance.lcp", 3000, 2000, -1000, -33.3)) == "improved"
    assert direction(TrendDelta("seo.score", 80, 70, -10, -12.5)) == "declined"
    assert direction(TrendDelta("page_count", 3, 5, 2, 66.7)) == "changed"
    assert direction(TrendDelta("seo.score", 70, 70, 0, 0)) == "unchanged"


def test_metric_label():
    assert metric_label("agent_suitability.score") == "Agent Suitability score"
    assert metric_label("pages_with_errors") == "Pages with errors"
