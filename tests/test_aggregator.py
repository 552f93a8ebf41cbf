import json

import pytest

from models import Category, CategoryScore, Effort, Issue, IssueKind, PageReport, Severity
from scoring.aggregator import aggregate, score_color, status_label


def _page(url, issues=(), **scores):
    return PageReport(url=url, categories={
        name: CategoryScore(category=name, score=value, subscores={"sample": value},
                            issues=tuple(i for i in issues if i.category == name))
        for name, value in scores.items()
    })


def _issue(url, category, severity):
    return Issue(url=url, category=category, kind=IssueKind.TITLE, severity=severity,
                 message="m", recommendation="r", effort=Effort.LOW)


@pytest.fixture
def pages():
    return [
        _page("https://example.com/a", seo=80,
              issues=[_issue("https://example.com/a", "seo", Severity.HIGH)]),
        _page("https://example.com/b", seo=60, accessibility=100,
              issues=[_issue("https://example.com/b", "seo", Severity.LOW),
                      _issue("https://example.com/b", "seo", Severity.LOW)]),
    ]


def test_mean_excludes_pages_without_the_category(pages):
    site = aggregate(pages)
    assert site.page_count == 2
    assert site.categories["seo"].average == 70
    assert site.categories["seo"].status == "Good"
    assert site.categories["accessibility"].average == 100
    assert site.categories["accessibility"].page_count == 1
    assert site.categories["seo"].subscores == {"sample": 70}


def test_issue_totals_by_severity(pages):
    counts = aggregate(pages).categories["seo"].issues_by_severity
    assert counts == {Severity.CRITICAL: 0, Severity.HIGH: 1, Severity.MEDIUM: 0, Severity.LOW: 2}


def test_category_without_data(pages):
    content = aggregate(pages).categories["content"]
    assert content.average == 0
    assert content.status == "No data"
    assert not content.has_data
    assert content.issues_by_severity == {sev: 0 for sev in Severity.ALL}


def test_every_category_is_reported(pages):
    assert list(aggregate(pages).categories) == Category.ALL


def test_empty_run():
    site = aggregate([])
    assert site.page_count == 0
    assert all(s.status == "No data" for s in site.categories.values())


def test_aggregation_is_deterministic(pages):
    first = json.dumps(aggregate(pages).to_dict(), sort_keys=True)
    second = json.dumps(aggregate(list(pages)).to_dict(), sort_keys=True)
    assert first == second


def test_pages_with_errors_counted():
    pages = [PageReport(url="https://example.com/", errors=("seo: boom",)), _page("https://example.com/x", seo=50)]
    assert aggregate(pages).pages_with_errors == 1


@pytest.mark.parametrize("category,score,expected", [
    ("performance", 75, "Excellent"),
    ("performance", 74.99, "Good"),
    ("agent_suitability", 69.9, "Fair"),
    ("agent_suitability", 70, "Good"),
    ("accessibility", 10, "Critical"),
    ("seo", 85, "Very Good"),
    ("content", 95, "Excellent"),
    ("content", 49.99, "Needs Improvement"),
])
def test_status_label(category, score, expected):
    assert status_label(category, score) == expected


def test_score_color():
    assert score_color(95) == "#00C851"
    assert score_color(10) == "#FF4444"
