"""
sentiment.py: client for the external sentiment scorer.

Two protocols, picked from the configured URL:
  * batch  (…/predict_batch, …/predict/batch): one POST {"texts": [...]}, answered
    with either a bare list or {"results": [...]}
  * single (anything else): one POST {"text": ...} per text, issued concurrently

Both answers go through one adapter so callers only ever see SentimentResult.
Nothing here retries; every failure surfaces as ScoringUnavailable.
"""
import asyncio
import logging
import re
from typing import Optional, Union
import httpx
from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError
from .errors import ScoringUnavailable
from .models import SentimentResult

logger = logging.getLogger(__name__)

BATCH_ENDPOINT_RE = re.compile(r"predict_batch|/predict/batch$", re.IGNORECASE)


class RawPrediction(BaseModel):
    """One scorer answer, in any of the field spellings the scorer has used."""
    model_config = ConfigDict(extra="ignore")

    text: Optional[str] = None
    label: Optional[str] = None
    sentiment: Optional[str] = None
    confidence: Optional[float] = None
    max_prob: Optional[float] = None
    probabilities: Optional[dict[str, float]] = None
    probs: Optional[dict[str, float]] = None

    def to_result(self, text: Optional[str] = None) -> SentimentResult:
        return SentimentResult(
            text=self.text if self.text is not None else text,
            label=self.label if self.label is not None else self.sentiment,
            confidence=self.confidence if self.confidence is not None else self.max_prob,
            probabilities=self.probabilities if self.probabilities is not None else self.probs,
        )


class BatchEnvelope(BaseModel):
    results: list[RawPrediction]


BatchResponse = TypeAdapter(Union[list[RawPrediction], BatchEnvelope])


def normalize_batch(payload) -> list[SentimentResult]:
    try:
        parsed = BatchResponse.validate_python(payload)
    except ValidationError as e:
        raise ScoringUnavailable(f"Unrecognized batch response: {e.error_count()} validation errors") from e
    items = parsed.results if isinstance(parsed, BatchEnvelope) else parsed
    return [item.to_result() for item in items]


def normalize_single(payload, text: str) -> SentimentResult:
    try:
        raw = RawPrediction.model_validate(payload)
    except ValidationError as e:
        raise ScoringUnavailable("Unrecognized single-item response") from e
    result = raw.to_result(text)
    return result.model_copy(update={
        "label": result.label or "neutral",
        "confidence": result.confidence if result.confidence is not None else 0.0,
    })


def base_url(endpoint: str) -> str:
    """Scorer root, i.e. the endpoint without its predict suffix."""
    for suffix in (r"/predict_batch$", r"/predict/batch$", r"/predict$"):
        endpoint = re.sub(suffix, "", endpoint, flags=re.IGNORECASE)
    return endpoint


class SentimentClient:
    def __init__(self, http: httpx.AsyncClient, endpoint: str, timeout: float = 60.0):
        self._http = http
        self.endpoint = endpoint
        self._timeout = timeout

    @property
    def is_batch(self) -> bool:
        return bool(BATCH_ENDPOINT_RE.search(self.endpoint))

    async def _post(self, body: dict):
        try:
            resp = await self._http.post(self.endpoint, json=body, timeout=self._timeout)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            raise ScoringUnavailable(f"Scorer returned {e.response.status_code}", e.response.status_code) from e
        except httpx.HTTPError as e:
            raise ScoringUnavailable(f"Scorer request failed: {e!r}") from e
        except ValueError as e:
            raise ScoringUnavailable("Scorer returned invalid JSON") from e

    async def score(self, texts: list[str]) -> list[SentimentResult]:
        if not texts:
            return []

        if self.is_batch:
            results = normalize_batch(await self._post({"texts": texts}))
        else:
            payloads = await asyncio.gather(*(self._post({"text": t}) for t in texts))
            # gather preserves argument order, so index i answers texts[i]
            results = [normalize_single(p, texts[i]) for i, p in enumerate(payloads)]

        if not results:
            raise ScoringUnavailable("Sentiment service returned no results")
        if len(results) != len(texts):
            raise ScoringUnavailable(
                f"Sentiment results length mismatch: sent {len(texts)}, got {len(results)}"
            )
        logger.info(f"[Sentiment] Scored {len(results)} texts ({'batch' if self.is_batch else 'single'} mode)")
        return results
