import pytest

from models import CategorySummary, SiteAggregate
from scoring.trends import compare, percent_change


def _site(page_count, **averages):
    return SiteAggregate(page_count=page_count, categories={
        name: CategorySummary(category=name, average=avg, status="", page_count=page_count,
                              subscores={"title": avg / 100})
        for name, avg in averages.items()
    })


def test_rejects_non_aggregates():
    with pytest.raises(TypeError):
        compare(_site(1, seo=50), {"categories": {}})


@pytest.mark.parametrize("previous,current,expected", [
    (0, 0, 0),
    (0, 5, 100),
    (0, -5, -100),
    (50, 75, 50),
    (80, 60, -25),
])
def test_percent_change(previous, current, expected):
    assert percent_change(previous, current) == pytest.approx(expected)


def test_deltas_are_antisymmetric():
    a = _site(10, seo=70, content=40)
    b = _site(12, seo=55, content=65)
    forward = {d.metric: d.delta for d in compare(a, b)}
    backward = {d.metric: d.delta for d in compare(b, a)}
    assert forward.keys() == backward.keys()
    for metric, delta in forward.items():
        assert delta == pytest.approx(-backward[metric])


def test_only_shared_metrics_compared():
    current = _site(3, seo=80, security=60)
    previous = _site(2, seo=70)
    metrics = [d.metric for d in compare(current, previous)]
    assert metrics == ["page_count", "pages_with_errors", "seo.score", "seo.issues", "seo.title"]
    seo = next(d for d in compare(current, previous) if d.metric == "seo.score")
    assert seo.delta == 10
    assert seo.percent_change == pytest.approx(100 / 7)


def test_categories_without_data_are_skipped():
    empty = SiteAggregate(page_count=0, categories={
        "seo": CategorySummary(category="seo", average=0.0, status="No data"),
    })
    assert "seo.score" not in {d.metric for d in compare(_site(1, seo=50), empty)}


def test_serialized_aggregate_round_trips():
    site = _site(4, seo=72.5, performance=40)
    restored = SiteAggregate.from_dict(site.to_dict())
    assert restored.metrics() == site.metrics()
    assert all(d.delta == 0 for d in compare(site, restored))


def test_serialized_aggregate_requires_categories():
    with pytest.raises(ValueError):
        SiteAggregate.from_dict({"pageCount": 3})


@pytest.mark.parametrize("categories", [
    ["seo"],
    {"seo": 72.5},
    {"seo": {"average": 70, "subscores": [1, 2]}},
])
def test_serialized_aggregate_rejects_malformed_categories(categories):
    with pytest.raises(ValueError):
        SiteAggregate.from_dict({"pageCount": 1, "categories": categories})


def test_drop_from_zero_is_negative():
    previous = SiteAggregate.from_dict({"pageCount": 1, "categories": {
        "agent_suitability": {"average": 50, "pageCount": 1, "subscores": {"points_crawler_restriction": 0}},
    }})
    current = SiteAggregate.from_dict({"pageCount": 1, "categories": {
        "agent_suitability": {"average": 45, "pageCount": 1, "subscores": {"points_crawler_restriction": -5}},
    }})
    delta = next(d for d in compare(current, previous) if d.metric.endswith("points_crawler_restriction"))
    assert delta.delta == -5
    assert delta.percent_change == -100
