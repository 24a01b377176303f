"""
Tests for the YouTube Data API client against a mocked transport.
"""

import httpx
import pytest
from tenacity import wait_none

from tools.youtube_tools import (
    YouTubeAPIClient,
    YouTubeAPIError,
    YouTubeQuotaExceededError,
    YouTubeRateLimitError,
    YouTubeTransientError
)


def make_client(handler, retry_attempts=3) -> YouTubeAPIClient:
    return YouTubeAPIClient(
        api_key="test-key",
        requests_per_minute=60000,
        retry_attempts=retry_attempts,
        transport=httpx.MockTransport(handler),
        retry_wait=wait_none()
    )


def forbidden(reason: str) -> httpx.Response:
    return httpx.Response(403, json={"error": {"errors": [{"reason": reason}]}})


class TestYouTubeAPIClient:
    """Request building, quota accounting and error mapping."""

    async def test_search_request_parameters(self):
        """Test the search.list request parameters."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"items": [], "nextPageToken": "NEXT"})

        client = make_client(handler)
        response = await client.search_channel_videos("UCchannel", page_token="TOKEN")

        assert response["nextPageToken"] == "NEXT"
        params = seen[0].url.params
        assert seen[0].url.path.endswith("/search")
        assert params["channelId"] == "UCchannel"
        assert params["pageToken"] == "TOKEN"
        assert params["type"] == "video"
        assert params["maxResults"] == "50"
        assert params["key"] == "test-key"
        assert client.get_quota_usage()["quota_used"] == 100

    async def test_first_page_has_no_token(self):
        """Test that the first search request has no page token."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"items": []})

        await make_client(handler).search_channel_videos("UCchannel")

        assert "pageToken" not in seen[0].url.params

    async def test_video_lookup(self):
        """Test a videos.list lookup."""
        def handler(request):
            assert request.url.params["id"] == "abc"
            return httpx.Response(200, json={"items": [{"id": "abc", "snippet": {}}]})

        client = make_client(handler)
        response = await client.get_video("abc")

        assert response["items"][0]["id"] == "abc"
        assert client.get_quota_usage()["quota_used"] == 1

    async def test_quota_exceeded_is_not_retried(self):
        """Test that quota errors are raised without retrying."""
        calls = []

        def handler(request):
            calls.append(request)
            return forbidden("quotaExceeded")

        with pytest.raises(YouTubeQuotaExceededError):
            await make_client(handler).get_video("abc")
        assert len(calls) == 1

    async def test_transient_errors_are_retried(self):
        """Test that transient errors are retried."""
        responses = [httpx.Response(503), httpx.Response(200, json={"items": []})]

        def handler(request):
            return responses.pop(0)

        client = make_client(handler)

        assert await client.get_video("abc") == {"items": []}
        assert client.request_count == 2

    async def test_rate_limit_gives_up_after_attempts(self):
        """Test that rate limiting gives up after the configured attempts."""
        calls = []

        def handler(request):
            calls.append(request)
            return forbidden("rateLimitExceeded")

        with pytest.raises(YouTubeRateLimitError):
            await make_client(handler, retry_attempts=2).get_video("abc")
        assert len(calls) == 2

    async def test_transport_error(self):
        """Test that transport failures are wrapped."""
        def handler(request):
            raise httpx.ConnectError("boom", request=request)

        with pytest.raises(YouTubeTransientError):
            await make_client(handler, retry_attempts=1).get_video("abc")

    async def test_other_client_errors(self):
        """Test that other client errors are raised as API errors."""
        def handler(request):
            return httpx.Response(400, json={"error": {"message": "bad"}})

        with pytest.raises(YouTubeAPIError):
            await make_client(handler).get_video("abc")
