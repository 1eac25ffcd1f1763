"""
YouTube Data API v3 client used to enrich TMDB reviews with viewer comments.
Enrichment is best-effort: failures become a degraded CommentHarvest, never an exception.
"""
import logging
from typing import Optional
import httpx
from ..errors import UpstreamError
from ..models import CommentHarvest, RawComment, VideoRef

logger = logging.getLogger(__name__)

YOUTUBE_API = "https://www.googleapis.com/youtube/v3"
MAX_VIDEOS = 5
MAX_TOTAL_COMMENTS = 400
MAX_COMMENTS_PER_VIDEO = 200
PAGE_SIZE = 100  # API maximum for commentThreads


class YouTubeClient:
    def __init__(self, http: httpx.AsyncClient, api_key: str, timeout: float = 30.0):
        self._http = http
        self._api_key = api_key
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def _get(self, resource: str, **params) -> dict:
        try:
            resp = await self._http.get(
                f"{YOUTUBE_API}/{resource}",
                params={"key": self._api_key, **params},
                timeout=self._timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(f"YouTube {resource} returned {e.response.status_code}", e.response.status_code) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"YouTube {resource} failed: {e!r}") from e
        except ValueError as e:
            raise UpstreamError(f"YouTube {resource} returned invalid JSON") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise UpstreamError(f"YouTube {resource} returned {type(data).__name__}, expected an object")
        return data

    async def search_videos(self, query: str, max_results: int = MAX_VIDEOS) -> list[VideoRef]:
        data = await self._get(
            "search",
            part="snippet",
            q=query,
            type="video",
            order="relevance",
            maxResults=max_results,
        )
        videos = []
        for item in data.get("items", []):
            video_id = (item.get("id") or {}).get("videoId")
            if not video_id:
                continue
            videos.append(VideoRef(video_id=video_id, title=(item.get("snippet") or {}).get("title", "")))
        return videos

    async def fetch_comments(self, video_id: str, limit: int) -> list[RawComment]:
        """Top-level comments of one video, following page tokens until `limit`."""
        comments: list[RawComment] = []
        page_token: Optional[str] = None

        while len(comments) < limit:
            params = {
                "part": "snippet",
                "videoId": video_id,
                "maxResults": min(PAGE_SIZE, limit - len(comments)),
                "order": "relevance",
                "textFormat": "plainText",
            }
            if page_token:
                params["pageToken"] = page_token
            data = await self._get("commentThreads", **params)

            for item in data.get("items") or []:
                top = ((item.get("snippet") or {}).get("topLevelComment") or {}).get("snippet")
                if not item.get("id") or not top:
                    raise UpstreamError(f"YouTube commentThreads for {video_id} returned a malformed item")
                comments.append(RawComment(
                    comment_id=item["id"],
                    author=top.get("authorDisplayName", ""),
                    text=top.get("textOriginal") or top.get("textDisplay") or "",
                    like_count=top.get("likeCount") or 0,
                ))

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        return comments[:limit]

    async def harvest(self, title: str) -> CommentHarvest:
        """
        Search up to 5 videos for the title and pull comments video by video,
        at most 200 per video and 400 overall, de-duplicated by comment id.
        A failing video is skipped; a failing search degrades the whole harvest.
        """
        if not title or not self.configured:
            return CommentHarvest.success([])

        query = f"{title} movie"
        try:
            videos = await self.search_videos(query, MAX_VIDEOS)
        except UpstreamError as e:
            logger.warning(f"[YouTube] Search failed for '{query}': {e}")
            return CommentHarvest.degraded_because(str(e), query=query)

        seen: set[str] = set()
        collected: list[RawComment] = []
        first_video_id: Optional[str] = None

        for video in videos:
            if first_video_id is None:
                first_video_id = video.video_id
            remaining = MAX_TOTAL_COMMENTS - len(collected)
            if remaining <= 0:
                break
            try:
                batch = await self.fetch_comments(video.video_id, min(MAX_COMMENTS_PER_VIDEO, remaining))
            except UpstreamError as e:
                logger.warning(f"[YouTube] Skipping video {video.video_id}: {e}")
                continue
            for c in batch:
                if c.comment_id not in seen:
                    seen.add(c.comment_id)
                    collected.append(c)

        logger.info(f"[YouTube] '{query}': {len(collected)} unique comments from {len(videos)} videos")
        return CommentHarvest.success(collected, video_id=first_video_id, query=query)
