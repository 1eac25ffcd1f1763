import logging
import math
import random
from contextlib import asynccontextmanager
from typing import Callable, Optional
import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from .aggregator import Aggregator, build_aggregator
from .config import Settings
from .errors import ConfigError, ScoringUnavailable, UpstreamError
from .logs import setup_logging
from .models import RandomReviewsResponse, SentimentTestRequest
from .sampler import RandomSampler

logger = logging.getLogger(__name__)

MIN_RANDOM_COUNT = 3
MAX_RANDOM_COUNT = 5


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message})


def clamp_count(raw: Optional[str]) -> int:
    try:
        count = float(raw) if raw is not None else 0.0
    except ValueError:
        count = 0.0
    if math.isnan(count) or count == 0:
        count = MAX_RANDOM_COUNT
    return int(min(max(count, MIN_RANDOM_COUNT), MAX_RANDOM_COUNT))


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    clock: Optional[Callable[[], float]] = None,
    rng: Optional[random.Random] = None,
) -> FastAPI:
    """
    Build the service. Settings are read from the environment at startup when
    not given; transport/clock/rng exist so tests can fake upstreams and time.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level)
        async with httpx.AsyncClient(transport=transport) as http:
            aggregator = build_aggregator(settings, http, clock=clock)
            app.state.settings = settings
            app.state.aggregator = aggregator
            app.state.sampler = RandomSampler(aggregator.tmdb, rng=rng)
            logger.info(f"[Main] Scorer at {settings.sentiment_api_url} ({'batch' if aggregator.scorer.is_batch else 'single'} mode)")
            yield

    app = FastAPI(title="Movie Review Sentiment Service", lifespan=lifespan)
    origins = list(settings.cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/analyze/{movie_id}")
    async def analyze(movie_id: str, request: Request):
        aggregator: Aggregator = request.app.state.aggregator
        try:
            result = await aggregator.analyze(movie_id)
        except ConfigError as e:
            return _error(400, str(e))
        except ScoringUnavailable as e:
            logger.error(f"[Analyze] Movie {movie_id}: {e}")
            return _error(502, "Sentiment service unavailable")
        except UpstreamError as e:
            logger.error(f"[Analyze] Movie {movie_id}: {e}")
            if e.is_gateway_failure:
                return _error(502, "Sentiment service unavailable")
            return _error(500, "Analyze failed")
        except Exception:
            logger.exception(f"[Analyze] Movie {movie_id} failed")
            return _error(500, "Analyze failed")
        return result.to_payload()

    @app.post("/sentiment/test")
    async def sentiment_test(request: Request, req: Optional[SentimentTestRequest] = None):
        text = ((req.text if req else None) or "").strip()
        if not text:
            return _error(400, "Missing text")

        aggregator: Aggregator = request.app.state.aggregator
        try:
            result = await aggregator.score_text(text)
        except ScoringUnavailable as e:
            logger.error(f"[SentimentTest] {e}")
            return _error(502, "Sentiment service unavailable")
        except Exception:
            logger.exception("[SentimentTest] failed")
            return _error(500, "Sentiment test failed")
        return result.model_dump(mode="json", by_alias=True)

    @app.get("/reviews/random")
    async def random_reviews(request: Request, count: Optional[str] = None):
        sampler: RandomSampler = request.app.state.sampler
        try:
            reviews = await sampler.sample(clamp_count(count))
        except ConfigError as e:
            return _error(500, str(e))
        except Exception:
            logger.exception("[RandomReviews] failed")
            return _error(500, "Random reviews failed")
        return RandomReviewsResponse(count=len(reviews), reviews=reviews).model_dump(mode="json", by_alias=True)

    @app.get("/search")
    async def search(request: Request, q: Optional[str] = None, page: int = 1):
        if not q:
            return _error(400, "missing query")
        aggregator: Aggregator = request.app.state.aggregator
        try:
            return await aggregator.tmdb.search_movies(q, page)
        except (ConfigError, UpstreamError) as e:
            logger.error(f"[Search] '{q}': {e}")
            return _error(500, "tmdb error")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
