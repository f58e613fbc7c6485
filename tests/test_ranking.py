"""
Tests for report ranking strategies.
"""

import pytest

from abu.domain.models import DerivedRecord
from abu.domain.utils.ranking import RankStrategy, rank
from abu.domain.utils.units import ConversionRate

RATE = ConversionRate.fallback(1.0)


def _record(name, delta):
    return DerivedRecord(
        key=(name,),
        labels={"name": name},
        current=RATE.money(0.0),
        reference=RATE.money(0.0),
        delta=RATE.money(delta),
    )


def test_rank_by_metric_desc_truncates_with_stable_ties():
    """Largest first; equal metrics keep their input order."""
    records = [_record("a", 5.0), _record("b", -3.0), _record("c", 10.0), _record("d", 10.0)]

    ranked = rank(records, RankStrategy.BY_METRIC_DESC, limit=2)

    assert [r.name for r in ranked] == ["c", "d"]


def test_rank_limit_larger_than_input_returns_all():
    records = [_record("a", 1.0), _record("b", 3.0), _record("c", 2.0)]

    ranked = rank(records, limit=10)

    assert [r.name for r in ranked] == ["b", "c", "a"]


def test_rank_negative_deltas_sorted_last():
    records = [_record("drop", -50.0), _record("flat", 0.0), _record("rise", 20.0)]

    assert [r.name for r in rank(records)] == ["rise", "flat", "drop"]


def test_rank_by_name_never_truncates():
    """Name ordering keeps every record."""
    records = [_record("zeta", 1.0), _record("alpha", 9.0), _record("mid", 5.0)]

    ranked = rank(records, RankStrategy.BY_NAME_ASC, limit=1)

    assert [r.name for r in ranked] == ["alpha", "mid", "zeta"]


def test_rank_does_not_modify_input():
    records = [_record("a", 1.0), _record("b", 2.0)]

    rank(records)

    assert [r.name for r in records] == ["a", "b"]


def test_rank_custom_metric():
    assert rank([5.0, -3.0, 10.0, 10.0], limit=2, metric=lambda x: x) == [10.0, 10.0]


def test_rank_zero_limit_and_negative_limit():
    records = [_record("a", 1.0)]

    assert rank(records, limit=0) == []
    with pytest.raises(ValueError, match="limit"):
        rank(records, limit=-1)
