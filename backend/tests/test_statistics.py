import pytest

from kithu.services.statistics import percentile, summarize


def test_percentiles_interpolate_between_ranks():
    values = [10, 20, 30, 40]

    assert percentile(values, 25) == pytest.approx(17.5)
    assert percentile(values, 50) == pytest.approx(25)
    assert percentile(values, 75) == pytest.approx(32.5)


def test_percentile_edges():
    assert percentile([], 50) == 0.0
    assert percentile([42], 75) == 42.0
    assert percentile([1, 2, 3], 0) == 1.0
    assert percentile([1, 2, 3], -5) == 1.0
    assert percentile([1, 2, 3], 100) == 3.0
    assert percentile([1, 2, 3], 150) == 3.0


def test_summarize_sorts_input():
    stats = summarize([40, 10, 30, 20])

    assert stats == {
        "count": 4,
        "average": 25.0,
        "median": 25.0,
        "p25": 17.5,
        "p75": 32.5,
    }


def test_summarize_empty():
    assert summarize([]) == {"count": 0}
