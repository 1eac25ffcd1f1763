from enum import Enum
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # The UI reads camelCase keys
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, protected_namespaces=()
    )


class ReviewOrigin(str, Enum):
    TMDB = "TMDB"
    YOUTUBE = "YouTube"


# ── Upstream payloads ──────────────────────────────────────────────────────

class RawReview(BaseModel):
    author: str = ""
    content: str = ""
    id: Optional[str] = None
    url: Optional[str] = None


class RawComment(BaseModel):
    comment_id: str
    author: str = ""
    text: str = ""
    like_count: int = 0


class VideoRef(BaseModel):
    video_id: str
    title: str = ""


class MovieRef(BaseModel):
    id: int
    title: str = ""


class CommentHarvest(BaseModel):
    """Outcome of comment enrichment. Degraded harvests carry the reason and no comments."""
    model_config = ConfigDict(frozen=True)

    comments: list[RawComment] = Field(default_factory=list)
    video_id: Optional[str] = None
    query: Optional[str] = None
    degraded: Optional[str] = None

    @classmethod
    def success(cls, comments: list[RawComment], video_id: Optional[str] = None, query: Optional[str] = None) -> "CommentHarvest":
        return cls(comments=comments, video_id=video_id, query=query)

    @classmethod
    def degraded_because(cls, reason: str, query: Optional[str] = None) -> "CommentHarvest":
        return cls(degraded=reason, query=query)

    @property
    def ok(self) -> bool:
        return self.degraded is None


# ── Pipeline items ─────────────────────────────────────────────────────────

class ReviewItem(CamelModel):
    source: ReviewOrigin
    author: str = ""
    content: str
    like_count: int = Field(default=0, ge=0)


class SentimentResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: Optional[str] = None
    confidence: Optional[float] = None
    probabilities: Optional[dict[str, float]] = None
    text: Optional[str] = None


class ScoredItem(CamelModel):
    source: ReviewOrigin
    author: str = ""
    content: str
    sentiment: str              # "positive" | "negative" | "neutral"
    confidence: Optional[float] = None
    like_count: int = 0


class Stats(CamelModel):
    positive: int
    negative: int
    neutral: int
    positive_percent: float
    negative_percent: float
    neutral_percent: float


class SourceCounts(CamelModel):
    tmdb_count: int
    youtube_count: int
    youtube_video_id: Optional[str] = None
    youtube_query: Optional[str] = None


class AnalysisResult(CamelModel):
    source: str                 # "TMDB" | "TMDB+YouTube"
    total_reviews: int
    summary: str                # "positive" | "negative" | "neutral" | "mixed" | "no data"
    stats: Union[Stats, dict] = Field(default_factory=dict)
    sources: Optional[SourceCounts] = None
    reviews: list[ScoredItem] = Field(default_factory=list)
    tmdb_reviews: Optional[list[ScoredItem]] = None
    youtube_comments: Optional[list[ScoredItem]] = None

    def to_payload(self) -> dict:
        # "no data" results carry no breakdown; everything else, nulls included, is sent as is
        absent = {name for name in ("sources", "tmdb_reviews", "youtube_comments") if getattr(self, name) is None}
        return self.model_dump(mode="json", by_alias=True, exclude=absent)


# ── Scorer metadata / tester ───────────────────────────────────────────────

class ModelMeta(CamelModel):
    model_version: str = "unknown"
    model_loaded: Optional[bool] = None


class SentimentTestRequest(BaseModel):
    text: Optional[str] = None


class SingleTestResult(CamelModel):
    text: str
    label: Optional[str] = None
    probabilities: Optional[dict[str, float]] = None
    confidence: Optional[float] = None
    latency_ms: int
    model_version: str
    model_loaded: Optional[bool] = None


# ── Random reviews ─────────────────────────────────────────────────────────

class RandomReview(CamelModel):
    movie_id: int
    movie_title: str
    author: str = ""
    content: str


class RandomReviewsResponse(CamelModel):
    count: int
    reviews: list[RandomReview]
