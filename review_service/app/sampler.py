"""
Random review sampler for the model-tester screen: one English TMDB review from
each of several popular movies, taken from random pages of the popular list.
"""
import logging
import random
from typing import Optional
from .errors import ConfigError, UpstreamError
from .models import RandomReview
from .sources.tmdb import MIN_TMDB_LENGTH, TmdbClient
from .text_filter import is_likely_english

logger = logging.getLogger(__name__)

MAX_POPULAR_PAGE = 50
DEFAULT_MAX_ATTEMPTS = 8


class RandomSampler:
    def __init__(self, tmdb: TmdbClient, rng: Optional[random.Random] = None):
        self.tmdb = tmdb
        self._rng = rng or random.Random()

    async def sample(self, target_count: int, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> list[RandomReview]:
        """Returns up to target_count reviews; a short list means the attempts ran out."""
        if not self.tmdb.configured:
            raise ConfigError("Missing TMDB_API_KEY")

        picked: list[RandomReview] = []
        seen: set[int] = set()
        attempts = 0

        while len(picked) < target_count and attempts < max_attempts:
            attempts += 1
            page = self._rng.randint(1, MAX_POPULAR_PAGE)
            try:
                movies = await self.tmdb.popular_page(page)
            except UpstreamError as e:
                logger.warning(f"[Sampler] Popular page {page} failed: {e}")
                continue

            for movie in movies:
                if len(picked) >= target_count:
                    break
                if movie.id in seen:
                    continue
                seen.add(movie.id)

                try:
                    reviews = await self.tmdb.fetch_reviews(movie.id)
                except UpstreamError as e:
                    logger.warning(f"[Sampler] Reviews for movie {movie.id} failed: {e}")
                    continue

                review = next(
                    (r for r in reviews if len(r.content) >= MIN_TMDB_LENGTH and is_likely_english(r.content)),
                    None,
                )
                if review is None:
                    continue
                picked.append(RandomReview(
                    movie_id=movie.id,
                    movie_title=movie.title,
                    author=review.author,
                    content=review.content,
                ))

        logger.info(f"[Sampler] {len(picked)}/{target_count} reviews after {attempts} attempts")
        return picked[:target_count]
