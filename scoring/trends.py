"""
Trend comparator: signed deltas between two site aggregates.

Polarity-agnostic: whether a delta is an improvement is decided by the
summary builder, not here.
"""
from __future__ import annotations

import math

from models import SiteAggregate, TrendDelta


def compare(current: SiteAggregate, previous: SiteAggregate) -> list[TrendDelta]:
    """
    One TrendDelta per metric present in both aggregates, in the current
    aggregate's metric order.
    """
    if not isinstance(current, SiteAggregate) or not isinstance(previous, SiteAggregate):
        raise TypeError("compare() expects two SiteAggregate instances")

    prev = previous.metrics()
    deltas: list[TrendDelta] = []
    for metric, now in current.metrics().items():
        if metric not in prev:
            continue
        before = prev[metric]
        deltas.append(TrendDelta(
            metric=metric,
            previous=before,
            current=now,
            delta=now - before,
            percent_change=percent_change(before, now),
        ))
    return deltas


def percent_change(previous: float, current: float) -> float:
    if previous == 0:
        # a change from zero is a full step, signed like the delta
        return 0.0 if current == 0 else math.copysign(100.0, current)
    return (current - previous) / previous * 100
