"""
TMDB catalog client: paginated movie reviews, movie titles, popular listings
and the pass-through movie search.
"""
import logging
from typing import Any
import httpx
from ..errors import ConfigError, UpstreamError
from ..models import MovieRef, RawReview

logger = logging.getLogger(__name__)

TMDB_API = "https://api.themoviedb.org/3"
POSTER_BASE = "https://image.tmdb.org/t/p/w500"
MIN_TMDB_LENGTH = 60


class TmdbClient:
    def __init__(self, http: httpx.AsyncClient, api_key: str, timeout: float = 30.0):
        self._http = http
        self._api_key = api_key
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def _get(self, path: str, **params: Any) -> dict:
        if not self._api_key:
            raise ConfigError("Missing TMDB_API_KEY")
        try:
            resp = await self._http.get(
                f"{TMDB_API}{path}",
                params={"api_key": self._api_key, **params},
                timeout=self._timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(f"TMDB {path} returned {e.response.status_code}", e.response.status_code) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"TMDB {path} failed: {e!r}") from e
        except ValueError as e:
            raise UpstreamError(f"TMDB {path} returned invalid JSON") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise UpstreamError(f"TMDB {path} returned {type(data).__name__}, expected an object")
        return data

    async def fetch_reviews(self, movie_id: int | str) -> list[RawReview]:
        """All review pages, fetched one after another, keeping reviews of at least 60 chars."""
        page = 1
        total_pages = 1
        reviews: list[RawReview] = []

        while page <= total_pages:
            data = await self._get(f"/movie/{movie_id}/reviews", language="en-US", page=page)
            for r in data.get("results") or []:
                reviews.append(RawReview(
                    author=r.get("author") or "",
                    content=r.get("content") or "",
                    id=r.get("id"),
                    url=r.get("url"),
                ))
            total_pages = int(data.get("total_pages") or 0)
            page += 1

        kept = [r for r in reviews if len(r.content) >= MIN_TMDB_LENGTH]
        logger.info(f"[TMDB] Movie {movie_id}: {len(reviews)} reviews over {page - 1} pages, {len(kept)} long enough")
        return kept

    async def fetch_title(self, movie_id: int | str) -> str:
        data = await self._get(f"/movie/{movie_id}", language="en-US")
        return data.get("title") or data.get("original_title") or ""

    async def popular_page(self, page: int) -> list[MovieRef]:
        data = await self._get("/movie/popular", language="en-US", page=page)
        return [
            MovieRef(id=m["id"], title=m.get("title") or m.get("original_title") or "")
            for m in data.get("results") or []
            if m and m.get("id")
        ]

    async def search_movies(self, query: str, page: int = 1) -> dict:
        data = await self._get("/search/movie", query=query, language="th-TH", page=page)
        return {
            "total": data.get("total_results"),
            "page": data.get("page"),
            "results": [
                {
                    "id": m.get("id"),
                    "title": m.get("title"),
                    "overview": m.get("overview"),
                    "release_date": m.get("release_date"),
                    "poster": f"{POSTER_BASE}{m['poster_path']}" if m.get("poster_path") else None,
                }
                for m in data.get("results") or []
            ],
        }
