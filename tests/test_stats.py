"""Tests for merge, percentages and the summary label."""

import pytest

from review_service.app.models import ReviewItem, ReviewOrigin, ScoredItem, SentimentResult, Stats
from review_service.app.stats import compute_stats, derive_summary, merge_scores, sort_tmdb, sort_youtube


def _scored(*labels):
    return [ScoredItem(source=ReviewOrigin.TMDB, content="x", sentiment=label) for label in labels]


def _stats(pos, neg, neu):
    return compute_stats(_scored(*(["positive"] * pos + ["negative"] * neg + ["neutral"] * neu)))


def test_merge_lowercases_and_defaults_label():
    items = [ReviewItem(source=ReviewOrigin.TMDB, content="a"), ReviewItem(source=ReviewOrigin.YOUTUBE, content="b", like_count=4)]
    merged = merge_scores(items, [SentimentResult(label="POSITIVE", confidence=0.9), SentimentResult()])

    assert [m.sentiment for m in merged] == ["positive", "neutral"]
    assert merged[0].confidence == 0.9
    assert merged[1].like_count == 4


def test_merge_refuses_mismatch():
    with pytest.raises(ValueError):
        merge_scores([ReviewItem(source=ReviewOrigin.TMDB, content="a")], [])


def test_percentages_round_to_two_decimals_and_sum_to_100():
    stats = _stats(1, 1, 1)

    assert (stats.positive, stats.negative, stats.neutral) == (1, 1, 1)
    assert stats.positive_percent == 33.33
    assert abs(stats.positive_percent + stats.negative_percent + stats.neutral_percent - 100) <= 0.02


def test_unknown_labels_count_as_neutral():
    stats = compute_stats(_scored("positive", "label_2"))
    assert stats.neutral == 1


@pytest.mark.parametrize("counts,expected", [
    ((5, 3, 2), "positive"),       # majority, 50%
    ((3, 5, 2), "negative"),
    ((2, 3, 5), "neutral"),
    ((4, 4, 2), "mixed"),          # tie at the top
    ((3, 3, 3), "mixed"),
    ((6, 0, 4), "positive"),       # 60% threshold
    ((0, 6, 4), "negative"),
])
def test_summary(counts, expected):
    assert derive_summary(_stats(*counts)) == expected


def test_negative_threshold_wins_when_both_reach_sixty():
    stats = Stats(positive=1, negative=1, neutral=0, positive_percent=60.0, negative_percent=60.0, neutral_percent=0.0)
    assert derive_summary(stats) == "negative"


def test_sorted_views():
    tmdb = [ScoredItem(source=ReviewOrigin.TMDB, content=c, sentiment="neutral") for c in ("aa", "aaaa", "a")]
    yt = [
        ScoredItem(source=ReviewOrigin.YOUTUBE, content="short", sentiment="neutral", like_count=5),
        ScoredItem(source=ReviewOrigin.YOUTUBE, content="much longer", sentiment="neutral", like_count=5),
        ScoredItem(source=ReviewOrigin.YOUTUBE, content="top", sentiment="neutral", like_count=9),
    ]

    assert [r.content for r in sort_tmdb(tmdb)] == ["aaaa", "aa", "a"]
    assert [r.content for r in sort_youtube(yt)] == ["top", "much longer", "short"]
