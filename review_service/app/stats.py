"""
stats.py - counting and labelling only, no I/O.
"""
from .models import ReviewItem, ScoredItem, SentimentResult, Stats

POSITIVE_THRESHOLD_PCT = 60
NEGATIVE_THRESHOLD_PCT = 60


def merge_scores(items: list[ReviewItem], sentiments: list[SentimentResult]) -> list[ScoredItem]:
    """Attach each sentiment to the item at the same index."""
    if len(items) != len(sentiments):
        raise ValueError(f"{len(items)} items but {len(sentiments)} sentiments")
    return [
        ScoredItem(
            source=item.source,
            author=item.author,
            content=item.content,
            sentiment=(s.label or "neutral").lower(),
            confidence=s.confidence,
            like_count=item.like_count,
        )
        for item, s in zip(items, sentiments)
    ]


def compute_stats(scored: list[ScoredItem]) -> Stats:
    """
    Counts per label (anything not positive/negative counts as neutral) and
    percentages of the total rounded to 2 decimals.
    Input must be non-empty.
    """
    counts = {"positive": 0, "negative": 0, "neutral": 0}
    for item in scored:
        label = item.sentiment if item.sentiment in ("positive", "negative") else "neutral"
        counts[label] += 1

    total = len(scored)
    return Stats(
        positive=counts["positive"],
        negative=counts["negative"],
        neutral=counts["neutral"],
        positive_percent=round(counts["positive"] / total * 100, 2),
        negative_percent=round(counts["negative"] / total * 100, 2),
        neutral_percent=round(counts["neutral"] / total * 100, 2),
    )


def derive_summary(stats: Stats) -> str:
    # Strict majority first; ties fall through to "mixed"
    summary = "mixed"
    if stats.positive > stats.negative and stats.positive > stats.neutral:
        summary = "positive"
    if stats.negative > stats.positive and stats.negative > stats.neutral:
        summary = "negative"
    if stats.neutral > stats.positive and stats.neutral > stats.negative:
        summary = "neutral"

    # Threshold overrides, negative checked last
    if stats.positive_percent >= POSITIVE_THRESHOLD_PCT:
        summary = "positive"
    if stats.negative_percent >= NEGATIVE_THRESHOLD_PCT:
        summary = "negative"
    return summary


def sort_tmdb(scored: list[ScoredItem]) -> list[ScoredItem]:
    return sorted(scored, key=lambda r: len(r.content), reverse=True)


def sort_youtube(scored: list[ScoredItem]) -> list[ScoredItem]:
    return sorted(scored, key=lambda r: (r.like_count, len(r.content)), reverse=True)
