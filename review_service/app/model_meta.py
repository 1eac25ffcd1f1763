"""
Scorer metadata (version, loaded flag) read from its /health endpoint.
Informational only: failures fall back to "unknown" and are never raised.
"""
import logging
import time
from typing import Callable, Optional
import httpx
from .models import ModelMeta
from .sentiment import base_url

logger = logging.getLogger(__name__)

UNKNOWN_META = ModelMeta(model_version="unknown", model_loaded=None)


class ModelMetaClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        endpoint: str,
        ttl_seconds: float = 5 * 60,
        timeout: float = 8.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._http = http
        self._health_url = f"{base_url(endpoint)}/health"
        self._ttl = ttl_seconds
        self._timeout = timeout
        self._clock = clock
        self._cached: Optional[ModelMeta] = None
        self._cached_at = 0.0

    async def get_meta(self) -> ModelMeta:
        if self._cached is not None and self._clock() - self._cached_at < self._ttl:
            return self._cached
        try:
            resp = await self._http.get(self._health_url, timeout=self._timeout)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"[ModelMeta] Health check failed: {e!r}")
            return UNKNOWN_META
        if not isinstance(data, dict):
            data = {}

        loaded = data.get("model_loaded")
        meta = ModelMeta(
            model_version=str(data.get("version") or data.get("model_source") or data.get("model_dir") or "unknown"),
            model_loaded=loaded if isinstance(loaded, bool) else None,
        )
        self._cached = meta
        self._cached_at = self._clock()
        return meta
