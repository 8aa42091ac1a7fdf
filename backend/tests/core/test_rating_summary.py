"""Rating Summary: aggregate reputation over approved reviews.

Tests cover:
    - empty input yields zeros with a full 1..5 distribution
    - averages rounded half-up to one decimal
    - category averages fall back to the overall rating
"""

from types import SimpleNamespace

import pytest

from app.core.rating_summary import compute_rating_summary, round_half_up


def _review(rating, categories=None):
    return SimpleNamespace(rating=rating, categories=categories or {})


def test_no_reviews():
    summary = compute_rating_summary([])
    assert summary.average == 0.0
    assert summary.total_reviews == 0
    assert summary.distribution == {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}
    assert set(summary.categories.values()) == {0.0}


def test_single_five_star_review():
    summary = compute_rating_summary([_review(5)])
    assert summary.average == 5.0
    assert summary.distribution[5] == 1
    assert summary.categories["quality"] == 5.0


def test_distribution_sums_to_total():
    summary = compute_rating_summary([_review(r) for r in (5, 4, 4, 1)])
    assert summary.total_reviews == 4
    assert sum(summary.distribution.values()) == 4
    assert summary.distribution[4] == 2


def test_average_rounds_half_up():
    # (5 + 4 + 4 + 4) / 4 = 4.25 -> 4.3
    summary = compute_rating_summary([_review(r) for r in (5, 4, 4, 4)])
    assert summary.average == 4.3


def test_category_average_uses_explicit_scores():
    summary = compute_rating_summary([
        _review(5, {"timeliness": 3}),
        _review(4),
    ])
    assert summary.categories["timeliness"] == 3.5
    assert summary.categories["value"] == 4.5


@pytest.mark.parametrize("value,expected", [(2.25, 2.3), (2.35, 2.4), (4.04, 4.0)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected
