"""
YouTube Data API v3 client with quota accounting and transient-error retries.
"""

import logging
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential
)

from utils.rate_limit import IntervalGate

# Setup logging
logger = logging.getLogger(__name__)

YOUTUBE_API_BASE_URL = "https://www.googleapis.com/youtube/v3"
DAILY_QUOTA_UNITS = 10000

# Quota cost per endpoint, see the YouTube Data API quota calculator
QUOTA_COSTS = {
    "search": 100,
    "videos": 1,
}


# Custom exceptions
class YouTubeAPIError(Exception):
    """Base YouTube API error."""
    pass

class YouTubeQuotaExceededError(YouTubeAPIError):
    """YouTube API quota exceeded."""
    pass

class YouTubeNotFoundError(YouTubeAPIError):
    """Channel or video not found."""
    pass

class YouTubeTransientError(YouTubeAPIError):
    """Temporary failure worth retrying (5xx, 429, transport errors)."""
    pass

class YouTubeRateLimitError(YouTubeTransientError):
    """YouTube API rate limit exceeded."""
    pass


class YouTubeAPIClient:
    """Async YouTube Data API v3 client exposing the two catalog queries the sync needs."""

    def __init__(
        self,
        api_key: str,
        requests_per_minute: int = 50,
        retry_attempts: int = 3,
        timeout: float = 30.0,
        base_url: str = YOUTUBE_API_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_wait=None
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.retry_attempts = retry_attempts
        self.timeout = timeout
        self._transport = transport
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=30)
        self._gate = IntervalGate(60 / requests_per_minute)
        self.quota_used = 0
        self.request_count = 0

    async def _send(self, endpoint: str, params: Dict[str, Any], quota_cost: int) -> Dict[str, Any]:
        """Issue one GET and map the response onto the exception hierarchy."""
        await self._gate.wait()

        query = {k: v for k, v in params.items() if v is not None}
        query["key"] = self.api_key

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.get(f"{self.base_url}/{endpoint}", params=query)
            except httpx.RequestError as e:
                logger.warning(f"YouTube request to {endpoint} failed: {e}")
                raise YouTubeTransientError(f"Request failed: {e}") from e

        self.request_count += 1

        if response.status_code == 200:
            self.quota_used += quota_cost
            return response.json()

        if response.status_code == 403:
            error_reason = _error_reason(response)
            if "quotaExceeded" in error_reason or "dailyLimitExceeded" in error_reason:
                logger.error(f"YouTube API quota exceeded. Used this process: {self.quota_used}")
                raise YouTubeQuotaExceededError(f"Daily quota limit reached ({DAILY_QUOTA_UNITS:,} units)")
            if "rateLimitExceeded" in error_reason or "userRateLimitExceeded" in error_reason:
                logger.warning("YouTube API rate limit exceeded, backing off...")
                raise YouTubeRateLimitError(f"Rate limited: {error_reason}")
            raise YouTubeAPIError(f"API access forbidden: {error_reason or response.text}")

        if response.status_code == 404:
            raise YouTubeNotFoundError(f"{endpoint} resource not found")

        if response.status_code == 429 or response.status_code >= 500:
            logger.warning(f"YouTube API returned {response.status_code} for {endpoint}")
            raise YouTubeTransientError(f"HTTP {response.status_code} from {endpoint}")

        raise YouTubeAPIError(f"HTTP {response.status_code} from {endpoint}: {response.text}")

    async def _make_request(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Make an authenticated request, retrying transient failures with backoff."""
        quota_cost = QUOTA_COSTS.get(endpoint, 1)

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=self._retry_wait,
            retry=retry_if_exception_type(YouTubeTransientError),
            reraise=True
        ):
            with attempt:
                return await self._send(endpoint, params, quota_cost)
        raise YouTubeAPIError(f"No attempt made for {endpoint}")

    async def search_channel_videos(
        self,
        channel_id: str,
        page_token: Optional[str] = None,
        max_results: int = 50
    ) -> Dict[str, Any]:
        """
        Get one page of videos uploaded by a channel.

        Args:
            channel_id: YouTube channel ID
            page_token: Token from the previous page's ``nextPageToken``
            max_results: Page size (YouTube allows at most 50)

        Returns:
            Raw ``search.list`` response with ``items`` and optional ``nextPageToken``
        """
        params = {
            "part": "snippet",
            "channelId": channel_id,
            "type": "video",
            "videoType": "any",
            "maxResults": min(max_results, 50),
            "pageToken": page_token
        }
        return await self._make_request("search", params)

    async def get_video(self, video_id: str) -> Dict[str, Any]:
        """
        Look up a single video by ID.

        Returns:
            Raw ``videos.list`` response; ``items`` is empty for deleted or
            private videos
        """
        params = {
            "part": "snippet",
            "id": video_id
        }
        return await self._make_request("videos", params)

    def get_quota_usage(self) -> Dict[str, int]:
        """Get quota usage statistics for this client."""
        return {
            "quota_used": self.quota_used,
            "requests_made": self.request_count,
            "quota_remaining": DAILY_QUOTA_UNITS - self.quota_used
        }


def _error_reason(response: httpx.Response) -> str:
    try:
        error_data = response.json()
    except ValueError:
        return ""
    errors = error_data.get("error", {}).get("errors") or [{}]
    return errors[0].get("reason", "")
