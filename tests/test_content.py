from datetime import timedelta

import pytest

from models import ContentSignals, IssueKind, ScoringContext
from scorers.content import ContentScorer, days_since, freshness_score, heading_score, media_score

scorer = ContentScorer()


def test_no_h1_with_h2_scores_50():
    """100 - 30 (no H1) - 20 (H2 without H1)"""
    assert heading_score(ContentSignals(h2_count=1)) == 50


def test_heading_penalties_accumulate_and_floor():
    assert heading_score(ContentSignals(h1_count=1, h2_count=11)) == 90
    assert heading_score(ContentSignals(h1_count=2)) == 85
    assert heading_score(ContentSignals(h3_count=16, h4_count=1, h2_count=0)) == 100 - 30 - 15 - 10


def test_ten_days_old_is_90(make_record, context, now):
    record = make_record(content={"last_modified": (now - timedelta(days=10)).isoformat()})
    result = scorer.score(record, context)
    assert result.subscores["freshness"] == 90


@pytest.mark.parametrize("days,expected", [
    (0, 100), (7, 100), (8, 90), (30, 90), (90, 75), (180, 60), (365, 40),
    (465, 29), (10_000, 0),
])
def test_freshness_steps(days, expected):
    assert freshness_score(days) == pytest.approx(expected)


def test_missing_date_scores_zero_and_flags(make_record, context):
    result = scorer.score(make_record(), context)
    assert result.subscores["freshness"] == 0
    assert any(i.kind is IssueKind.FRESHNESS for i in result.issues)


def test_days_since_handles_formats(now):
    assert days_since("2026-02-19", now) == 10
    assert days_since("2026-02-19T12:00:00Z", now) == 10
    assert days_since("last tuesday", now) is None
    assert days_since(None, now) is None


def test_media_caps():
    assert media_score(ContentSignals(image_count=2)) == 10
    assert media_score(ContentSignals(image_count=10, video_count=5, interactive_count=10)) == 100
    assert media_score(ContentSignals(video_count=100)) == 40


def test_weighted_total(make_record, context, now):
    record = make_record(content={
        "h1_count": 1, "image_count": 6, "video_count": 4, "interactive_count": 6,
        "word_count": 800, "last_modified": now.isoformat(),
    })
    result = scorer.score(record, context)
    assert result.score == pytest.approx(100)
    assert result.subscores["uniqueness"] == 100
    assert result.subscores["grammar"] == 100


def test_collaborators_feed_uniqueness_and_grammar(make_record, context, now):
    ctx = ScoringContext.create(
        now=now, logger=context.logger,
        uniqueness=lambda r: 50, grammar=lambda r: 50,
    )
    record = make_record(content={
        "h1_count": 1, "image_count": 6, "video_count": 4, "interactive_count": 6,
        "word_count": 800, "last_modified": now.isoformat(),
    })
    assert scorer.score(record, ctx).score == pytest.approx(85)
