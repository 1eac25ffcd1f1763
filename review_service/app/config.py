"""
config.py: process configuration, read from the environment once at startup.
The resulting Settings object is passed into every component constructor.
"""
import os
from pydantic import BaseModel, ConfigDict
from dotenv import load_dotenv

DEFAULT_SENTIMENT_URL = "http://127.0.0.1:8002/predict_batch"
DEFAULT_CORS_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
)


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    sentiment_api_url: str = DEFAULT_SENTIMENT_URL
    analysis_ttl_seconds: float = 30 * 60
    analysis_max_items: int = 200
    analysis_max_chars: int = 500
    model_meta_ttl_seconds: float = 5 * 60

    tmdb_api_key: str = ""
    youtube_api_key: str = ""

    upstream_timeout_seconds: float = 30.0
    sentiment_timeout_seconds: float = 60.0
    health_timeout_seconds: float = 8.0

    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        env = os.environ
        origins = env.get("CORS_ORIGINS")
        return cls(
            sentiment_api_url=env.get("SENTIMENT_API_URL", DEFAULT_SENTIMENT_URL),
            analysis_ttl_seconds=float(env.get("ANALYSIS_TTL_SECONDS", 30 * 60)),
            analysis_max_items=int(env.get("ANALYSIS_MAX_ITEMS", 200)),
            analysis_max_chars=int(env.get("ANALYSIS_MAX_CHARS", 500)),
            model_meta_ttl_seconds=float(env.get("MODEL_META_TTL_SECONDS", 5 * 60)),
            tmdb_api_key=env.get("TMDB_API_KEY", ""),
            youtube_api_key=env.get("YOUTUBE_API_KEY", ""),
            upstream_timeout_seconds=float(env.get("UPSTREAM_TIMEOUT_SECONDS", 30)),
            sentiment_timeout_seconds=float(env.get("SENTIMENT_TIMEOUT_SECONDS", 60)),
            health_timeout_seconds=float(env.get("HEALTH_TIMEOUT_SECONDS", 8)),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()) if origins else DEFAULT_CORS_ORIGINS,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )
