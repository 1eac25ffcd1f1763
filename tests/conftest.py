import asyncio
import json
import re
from typing import Callable, Optional

import httpx
import pytest

from review_service.app.aggregator import build_aggregator
from review_service.app.config import Settings

SCORER_URL = "http://scorer.test/predict_batch"


def make_settings(**overrides) -> Settings:
    values = dict(
        sentiment_api_url=SCORER_URL,
        tmdb_api_key="tmdb-key",
        youtube_api_key="yt-key",
        log_level="WARNING",
    )
    values.update(overrides)
    return Settings(**values)


def english(n: int = 0, extra: str = "") -> str:
    """A review comfortably over the 60 character minimum."""
    return f"Review number {n}: the pacing, the cast and the score all worked for me. {extra}".strip()


def label_for(text: str) -> str:
    lowered = text.lower()
    if "awful" in lowered or "hated" in lowered:
        return "negative"
    if "great" in lowered or "loved" in lowered:
        return "positive"
    return "neutral"


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUpstreams:
    """Stands in for TMDB, YouTube and the scorer behind one MockTransport."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        # TMDB
        self.review_pages: dict[str, list[list[dict]]] = {}
        self.titles: dict[str, str] = {}
        self.popular: dict[int, list[dict]] = {}
        self.popular_default: list[dict] = []
        self.tmdb_status: dict[str, int] = {}
        self.tmdb_garbled: set[str] = set()     # path prefixes answered 200 with a non-JSON body
        # YouTube
        self.videos: list[str] = []
        self.comments: dict[str, list[dict]] = {}
        self.failing_videos: set[str] = set()
        self.garbled_videos: set[str] = set()
        self.search_status = 200
        # Scorer
        self.scorer_status = 200
        self.scorer_response: Optional[Callable[[dict], object]] = None
        self.health: Optional[dict] = {"version": "roberta-v3", "model_loaded": True}
        self.health_status = 200

    # ── helpers for tests ──────────────────────────────────────────────

    def add_reviews(self, movie_id, *pages: list[str], author: str = "critic") -> None:
        self.review_pages[str(movie_id)] = [
            [{"id": f"{movie_id}-{p}-{i}", "author": author, "content": c} for i, c in enumerate(page)]
            for p, page in enumerate(pages)
        ]

    def add_video(self, video_id: str, comments: list[tuple[str, str, int]]) -> None:
        self.videos.append(video_id)
        self.comments[video_id] = [
            {"id": cid, "text": text, "likes": likes} for cid, text, likes in comments
        ]

    def calls_to(self, host: str, path_re: str = "") -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == host and re.search(path_re, r.url.path)]

    @property
    def scorer_calls(self) -> list[httpx.Request]:
        return self.calls_to("scorer.test", r"/predict")

    # ── transport ──────────────────────────────────────────────────────

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host == "api.themoviedb.org":
            return self._tmdb(request)
        if host == "www.googleapis.com":
            return self._youtube(request)
        if host == "scorer.test":
            return self._scorer(request)
        return httpx.Response(404)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def _tmdb(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        params = request.url.params
        for prefix, status in self.tmdb_status.items():
            if path.startswith(prefix):
                return httpx.Response(status, json={"status_message": "fail"})
        if any(path.startswith(prefix) for prefix in self.tmdb_garbled):
            return httpx.Response(200, text="not json")

        if path == "/3/movie/popular":
            page = int(params.get("page", 1))
            return httpx.Response(200, json={"results": self.popular.get(page, self.popular_default)})

        if path == "/3/search/movie":
            return httpx.Response(200, json={
                "total_results": 1,
                "page": 1,
                "results": [{"id": 7, "title": params.get("query"), "overview": "", "release_date": "2020-01-01", "poster_path": "/p.jpg"}],
            })

        match = re.fullmatch(r"/3/movie/(\w+)/reviews", path)
        if match:
            pages = self.review_pages.get(match.group(1), [])
            page = int(params.get("page", 1))
            results = pages[page - 1] if 0 < page <= len(pages) else []
            return httpx.Response(200, json={"page": page, "total_pages": len(pages), "results": results})

        match = re.fullmatch(r"/3/movie/(\w+)", path)
        if match:
            return httpx.Response(200, json={"id": match.group(1), "title": self.titles.get(match.group(1), "")})

        return httpx.Response(404)

    def _youtube(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        params = request.url.params
        if path.endswith("/search"):
            if self.search_status != 200:
                return httpx.Response(self.search_status)
            limit = int(params.get("maxResults", 5))
            items = [{"id": {"videoId": v}, "snippet": {"title": v}} for v in self.videos[:limit]]
            return httpx.Response(200, json={"items": items})

        if path.endswith("/commentThreads"):
            video_id = params.get("videoId")
            if video_id in self.failing_videos:
                return httpx.Response(403)
            if video_id in self.garbled_videos:
                return httpx.Response(200, text="<html>quota page</html>")
            all_comments = self.comments.get(video_id, [])
            start = int(params.get("pageToken", 0))
            size = int(params.get("maxResults", 100))
            chunk = all_comments[start:start + size]
            body = {
                "items": [
                    {
                        "id": c["id"],
                        "snippet": {"topLevelComment": {"snippet": {
                            "authorDisplayName": f"viewer-{c['id']}",
                            "textOriginal": c["text"],
                            "likeCount": c["likes"],
                        }}},
                    }
                    for c in chunk
                ]
            }
            if start + size < len(all_comments):
                body["nextPageToken"] = str(start + size)
            return httpx.Response(200, json=body)

        return httpx.Response(404)

    def _scorer(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/health"):
            if self.health_status != 200:
                return httpx.Response(self.health_status)
            return httpx.Response(200, json=self.health)

        if self.scorer_status != 200:
            return httpx.Response(self.scorer_status, json={"detail": "down"})

        body = json.loads(request.content)
        if self.scorer_response is not None:
            return httpx.Response(200, json=self.scorer_response(body))

        if "texts" in body:
            return httpx.Response(200, json=[
                {"text": t, "label": label_for(t), "max_prob": 0.9, "probs": {label_for(t): 0.9}}
                for t in body["texts"]
            ])
        text = body["text"]
        return httpx.Response(200, json={"text": text, "sentiment": label_for(text), "confidence": 0.8})


@pytest.fixture
def upstreams() -> FakeUpstreams:
    return FakeUpstreams()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def run_aggregator(upstreams, clock):
    """Run `fn(aggregator)` on a fresh event loop against the fake upstreams."""

    def run(fn, settings: Optional[Settings] = None):
        async def go():
            async with httpx.AsyncClient(transport=upstreams.transport()) as http:
                aggregator = build_aggregator(settings or make_settings(), http, clock=clock)
                return await fn(aggregator)

        return asyncio.run(go())

    return run


@pytest.fixture
def run_http(upstreams):
    """Run `fn(http)` with a shared AsyncClient wired to the fake upstreams."""

    def run(fn):
        async def go():
            async with httpx.AsyncClient(transport=upstreams.transport()) as http:
                return await fn(http)

        return asyncio.run(go())

    return run
