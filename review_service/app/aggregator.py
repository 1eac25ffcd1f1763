"""
aggregator.py: the analysis pipeline behind GET /analyze/{movie_id}.

Stages:
  1. Cache lookup
  2. TMDB reviews + YouTube comments, gathered concurrently
  3. Language / length / likes filtering, capped batch
  4. One scoring call
  5. Merge, stats, summary, sorted views
  6. Cache write (successful and "no data" outcomes only)
"""
import asyncio
import logging
import time
from typing import Callable, Optional
from .cache import AnalysisCache
from .config import Settings
from .errors import ConfigError
from .model_meta import ModelMetaClient
from .models import (
    AnalysisResult,
    CommentHarvest,
    RawComment,
    RawReview,
    ReviewItem,
    ReviewOrigin,
    SingleTestResult,
    SourceCounts,
)
from .sentiment import SentimentClient
from .sources.tmdb import TmdbClient
from .sources.youtube import YouTubeClient
from .stats import compute_stats, derive_summary, merge_scores, sort_tmdb, sort_youtube
from .text_filter import is_likely_english, trim_text

logger = logging.getLogger(__name__)

MIN_YT_LENGTH = 40
YT_MIN_LIKES = 1


def cache_key(movie_id: int | str) -> str:
    return f"movie:{movie_id}"


def no_data_result(source: str) -> AnalysisResult:
    return AnalysisResult(source=source, total_reviews=0, summary="no data", stats={}, reviews=[])


class Aggregator:
    def __init__(
        self,
        settings: Settings,
        tmdb: TmdbClient,
        youtube: YouTubeClient,
        scorer: SentimentClient,
        model_meta: ModelMetaClient,
        cache: AnalysisCache[AnalysisResult],
        timer: Callable[[], float] = time.perf_counter,
    ):
        self.settings = settings
        self.tmdb = tmdb
        self.youtube = youtube
        self.scorer = scorer
        self.model_meta = model_meta
        self.cache = cache
        self._timer = timer

    # ── Gathering ──────────────────────────────────────────────────────────

    async def _harvest_comments(self, movie_id: int | str) -> CommentHarvest:
        if not self.youtube.configured:
            return CommentHarvest.success([])
        try:
            title = await self.tmdb.fetch_title(movie_id)
            return await self.youtube.harvest(title)
        except Exception as e:
            return CommentHarvest.degraded_because(f"{type(e).__name__}: {e}")

    def _tmdb_items(self, reviews: list[RawReview]) -> list[ReviewItem]:
        max_chars = self.settings.analysis_max_chars
        items = [
            ReviewItem(source=ReviewOrigin.TMDB, author=r.author, content=trim_text(r.content, max_chars))
            for r in reviews
        ]
        return [i for i in items if is_likely_english(i.content)]

    def _youtube_items(self, comments: list[RawComment]) -> list[ReviewItem]:
        max_chars = self.settings.analysis_max_chars
        items = [
            ReviewItem(
                source=ReviewOrigin.YOUTUBE,
                author=c.author,
                content=trim_text(c.text, max_chars),
                like_count=max(c.like_count, 0),
            )
            for c in comments
        ]
        return [
            i for i in items
            if is_likely_english(i.content)
            and len(i.content) >= MIN_YT_LENGTH
            and i.like_count >= YT_MIN_LIKES
        ]

    # ── Pipeline ───────────────────────────────────────────────────────────

    async def analyze(self, movie_id: int | str) -> AnalysisResult:
        if not self.tmdb.configured:
            raise ConfigError("Missing TMDB_API_KEY")

        key = cache_key(movie_id)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info(f"[Aggregator] Cache hit for {key}")
            return cached

        # Review failures propagate (fail fast); comment failures come back degraded
        reviews, harvest = await asyncio.gather(
            self.tmdb.fetch_reviews(movie_id),
            self._harvest_comments(movie_id),
        )
        if not harvest.ok:
            logger.warning(f"[Aggregator] Comment enrichment degraded for {key}: {harvest.degraded}")

        comments = harvest.comments
        source = "TMDB+YouTube" if comments else "TMDB"

        if not reviews and not comments:
            result = no_data_result(source)
            self.cache.put(key, result)
            return result

        tmdb_items = self._tmdb_items(reviews)
        youtube_items = self._youtube_items(comments)
        batch = (tmdb_items + youtube_items)[: self.settings.analysis_max_items]

        if not batch:
            result = no_data_result(source)
            self.cache.put(key, result)
            return result

        logger.info(
            f"[Aggregator] {key}: scoring {len(batch)} items "
            f"({len(tmdb_items)} TMDB, {len(youtube_items)} YouTube before cap)"
        )
        sentiments = await self.scorer.score([item.content for item in batch])
        merged = merge_scores(batch, sentiments)
        stats = compute_stats(merged)

        result = AnalysisResult(
            source=source,
            total_reviews=len(merged),
            summary=derive_summary(stats),
            stats=stats,
            sources=SourceCounts(
                tmdb_count=len(tmdb_items),
                youtube_count=len(youtube_items),
                youtube_video_id=harvest.video_id,
                youtube_query=harvest.query,
            ),
            reviews=merged,
            tmdb_reviews=sort_tmdb([r for r in merged if r.source == ReviewOrigin.TMDB]),
            youtube_comments=sort_youtube([r for r in merged if r.source == ReviewOrigin.YOUTUBE]),
        )
        self.cache.put(key, result)
        logger.info(f"[Aggregator] {key}: {result.summary} over {result.total_reviews} items")
        return result

    # ── Model tester ───────────────────────────────────────────────────────

    async def score_text(self, text: str) -> SingleTestResult:
        """Score one free-form text, never cached."""
        started = self._timer()
        results = await self.scorer.score([trim_text(text, self.settings.analysis_max_chars)])
        latency_ms = max(int(round((self._timer() - started) * 1000)), 0)
        meta = await self.model_meta.get_meta()

        item = results[0]
        return SingleTestResult(
            text=text,
            label=item.label,
            probabilities=item.probabilities,
            confidence=item.confidence,
            latency_ms=latency_ms,
            model_version=meta.model_version,
            model_loaded=meta.model_loaded,
        )


def build_aggregator(settings: Settings, http, clock: Optional[Callable[[], float]] = None) -> Aggregator:
    """Wire every collaborator from one Settings object and one shared HTTP client."""
    clock = clock or time.monotonic
    return Aggregator(
        settings=settings,
        tmdb=TmdbClient(http, settings.tmdb_api_key, settings.upstream_timeout_seconds),
        youtube=YouTubeClient(http, settings.youtube_api_key, settings.upstream_timeout_seconds),
        scorer=SentimentClient(http, settings.sentiment_api_url, settings.sentiment_timeout_seconds),
        model_meta=ModelMetaClient(
            http,
            settings.sentiment_api_url,
            ttl_seconds=settings.model_meta_ttl_seconds,
            timeout=settings.health_timeout_seconds,
            clock=clock,
        ),
        cache=AnalysisCache(settings.analysis_ttl_seconds, clock=clock),
    )
