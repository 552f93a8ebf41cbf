import pytest

from models import Category, SiteAggregate
from scorers.base import BaseScorer
from scorers.content import ContentScorer
from scorers.orchestrator import DEFAULT_SCORERS, run_audit, score_page, score_pages


class _BrokenScorer(BaseScorer):
    category = Category.SEO

    def score(self, record, context):
        raise ValueError("boom")


def test_every_category_has_one_default_scorer():
    assert [s.category for s in DEFAULT_SCORERS] == Category.ALL


def test_results_keep_input_order(make_record, context):
    records = [make_record(url=f"https://example.com/p{n}") for n in range(45)]
    reports = score_pages(records, context, max_workers=4)
    assert [r.url for r in reports] == [r.url for r in records]


def test_failing_scorer_is_recorded(make_record, context):
    report = score_page(make_record(), context, scorers=[_BrokenScorer(), ContentScorer()])
    assert report.errors == ("seo: boom",)
    assert list(report.categories) == [Category.CONTENT]


def test_not_applicable_categories_are_absent(make_record, context):
    report = score_page(make_record(), context)
    assert Category.ACCESSIBILITY not in report.categories
    assert Category.PERFORMANCE not in report.categories
    assert Category.TABLE_DATA not in report.categories
    assert Category.AGENT in report.categories


def test_scores_stay_in_range(make_record, everything_true_record, context):
    for record in (make_record(), make_record(url=""), everything_true_record):
        report = score_page(record, context)
        assert not report.errors
        for score in report.categories.values():
            assert 0 <= score.score <= 100


def test_run_audit_accepts_plain_dicts(context):
    events = []
    run = run_audit(
        [{"url": "https://example.com/"}, {"url": "https://example.com/about"}],
        context=context,
        progress_callback=events.append,
    )
    assert [p.url for p in run.pages] == ["https://example.com/", "https://example.com/about"]
    assert run.aggregate.page_count == 2
    assert run.comparison is None
    assert run.summary.site == "example.com"
    assert run.failed_pages == []
    assert events[-1] == {"message": "Audit complete.", "pct": 100}


def test_run_audit_compares_with_previous(agent_ready_record, context):
    first = run_audit([agent_ready_record], context=context)
    previous = SiteAggregate.from_dict(first.aggregate.to_dict())
    second = run_audit([agent_ready_record], previous=previous, context=context)
    assert second.comparison
    assert all(d.delta == pytest.approx(0) for d in second.comparison)
    assert second.summary.comparison.improvements == ()
    assert second.summary.comparison.regressions == ()


def test_empty_run(context):
    run = run_audit([], context=context)
    assert run.pages == ()
    assert run.summary.overview["averageScore"] == "0.00"
    assert run.feedback.recommendations == ()


def test_malformed_sub_signal_only_loses_that_field(context):
    run = run_audit([
        {"url": "https://example.com/bad", "security": {"headers": [["x-frame-options", "DENY"]]}},
        {"url": "https://example.com/good"},
    ], context=context)
    assert [p.url for p in run.pages] == ["https://example.com/bad", "https://example.com/good"]
    assert run.failed_pages == []
    assert run.pages[0].categories[Category.SECURITY].subscores["headers"] == 0


def test_unbuildable_record_becomes_an_error_report(context):
    run = run_audit(["not a record", {"url": "https://example.com/good"}], context=context)
    assert len(run.pages) == 2
    broken, good = run.pages
    assert broken.url == ""
    assert broken.categories == {}
    assert broken.errors[0].startswith("record: ")
    assert not good.errors
    assert Category.CONTENT in good.categories
    assert run.aggregate.pages_with_errors == 1
    assert run.aggregate.categories[Category.CONTENT].page_count == 1
