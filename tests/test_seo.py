import pytest

from models import IssueKind
from scorers.seo import SEOScorer, main_keyword, score_range, url_structure_score

scorer = SEOScorer()


def test_score_range():
    assert score_range(5, 0, 10) == 0.5
    assert score_range(10, 0, 10) == 1.0
    assert score_range(-1, 0, 10) == 0.0
    assert score_range(500, 1000, 5000, inverse=True) == 1.0
    assert score_range(3000, 1000, 5000, inverse=True) == 0.5
    assert score_range(9000, 1000, 5000, inverse=True) == 0.0


def test_clean_url_is_full_marks():
    assert url_structure_score("https://example.com/products/blue-widget") == 1.0


def test_messy_url_accumulates_penalties():
    """underscore, upper case, digits, query string and disallowed characters"""
    assert url_structure_score("https://example.com/Blog_Posts/2024?id=7") == pytest.approx(0.1)
    assert url_structure_score("") == 0.0


def test_main_keyword_is_most_frequent_word():
    assert main_keyword("Blue widgets", "Buy blue widgets today", "Blue widget") == "blue"
    assert main_keyword("", "") is None


def test_empty_page_excludes_page_speed(make_record, context):
    """url 7 + h1 half credit 3 + image alt default 6, over a budget without page speed"""
    result = scorer.score(make_record(url="http://example.com/products/blue-widget"), context)
    assert "page_speed" not in result.subscores
    assert result.subscores["image_alt"] == 1.0
    assert result.score == pytest.approx(1600 / 87)


def test_page_speed_included_when_measured(make_record, context):
    result = scorer.score(make_record(performance={"load_time": 3000}), context)
    assert result.subscores["page_speed"] == 0.5


def test_issues_for_missing_basics(make_record, context):
    result = scorer.score(make_record(content={"image_count": 4, "images_with_alt": 1}), context)
    kinds = {i.kind for i in result.issues}
    assert {
        IssueKind.TITLE, IssueKind.META_DESCRIPTION, IssueKind.INTERNAL_LINKS,
        IssueKind.IMAGE_ALT, IssueKind.MOBILE, IssueKind.SOCIAL_TAGS,
    } <= kinds
    assert IssueKind.URL_STRUCTURE not in kinds
    alt = next(i for i in result.issues if i.kind is IssueKind.IMAGE_ALT)
    assert alt.detail == "3/4 images without alt"
