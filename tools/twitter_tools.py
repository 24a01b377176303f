"""
Twitter API v1.1 client for reading the announcing account's timeline and posting statuses.
"""

import logging
from typing import Any, Dict, List, Optional, Union

import httpx
from authlib.integrations.httpx_client import AsyncOAuth1Client

# Setup logging
logger = logging.getLogger(__name__)

TWITTER_API_BASE_URL = "https://api.twitter.com/1.1"

# Error codes documented for the v1.1 API
DUPLICATE_STATUS_CODE = 187
RATE_LIMIT_CODE = 88


# Custom exceptions
class TwitterAPIError(Exception):
    """Base Twitter API error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

class TwitterRateLimitError(TwitterAPIError):
    """Twitter rate limit exceeded."""
    pass

class TwitterAuthError(TwitterAPIError):
    """Twitter rejected the credentials."""
    pass

class TwitterDuplicateStatusError(TwitterAPIError):
    """The exact same status text was already posted."""
    pass


class TwitterAPIClient:
    """Async Twitter client signing every request with OAuth 1.0a user credentials."""

    def __init__(
        self,
        consumer_key: str,
        consumer_secret: str,
        access_token_key: str,
        access_token_secret: str,
        timeout: float = 30.0,
        base_url: str = TWITTER_API_BASE_URL
    ):
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.access_token_key = access_token_key
        self.access_token_secret = access_token_secret
        self.timeout = timeout
        self.base_url = base_url
        self.request_count = 0
        self.statuses_posted = 0

    def _client(self) -> AsyncOAuth1Client:
        return AsyncOAuth1Client(
            self.consumer_key,
            self.consumer_secret,
            token=self.access_token_key,
            token_secret=self.access_token_secret,
            timeout=self.timeout
        )

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None
    ) -> Union[Dict[str, Any], List[Any]]:
        """Make a signed request and translate error responses."""
        url = f"{self.base_url}/{endpoint}.json"

        async with self._client() as client:
            try:
                response = await client.request(method, url, params=params, data=data)
            except httpx.RequestError as e:
                logger.error(f"Twitter request to {endpoint} failed: {e}")
                raise TwitterAPIError(f"Request failed: {e}") from e

        self.request_count += 1

        if response.status_code == 200:
            return response.json()

        code, message = _first_error(response)

        if response.status_code == 429 or code == RATE_LIMIT_CODE:
            reset = response.headers.get("x-rate-limit-reset")
            logger.warning(f"Twitter rate limit exceeded on {endpoint} (resets at {reset})")
            raise TwitterRateLimitError(f"Rate limit exceeded: {message}", response.status_code)

        if response.status_code == 401:
            raise TwitterAuthError(f"Authentication failed: {message}", response.status_code)

        if code == DUPLICATE_STATUS_CODE:
            raise TwitterDuplicateStatusError(f"Duplicate status: {message}", response.status_code)

        raise TwitterAPIError(
            f"HTTP {response.status_code} from {endpoint}: {message}",
            response.status_code
        )

    async def get_user_timeline(
        self,
        screen_name: str,
        max_id: Optional[Union[int, str]] = None,
        count: int = 200,
        exclude_replies: bool = True
    ) -> List[Dict[str, Any]]:
        """
        Get one page of an account's statuses, newest first.

        Args:
            screen_name: Account to read
            max_id: Only return statuses with an ID less than or equal to this
            count: Page size (the API returns at most 200)
            exclude_replies: Leave replies out of the page

        Returns:
            List of status objects with ``id`` and ``entities.urls``
        """
        params: Dict[str, Any] = {
            "screen_name": screen_name,
            "count": min(count, 200),
            "trim_user": "true",
            "exclude_replies": "true" if exclude_replies else "false"
        }
        if max_id is not None:
            params["max_id"] = max_id

        timeline = await self._request("GET", "statuses/user_timeline", params=params)
        if not isinstance(timeline, list):
            raise TwitterAPIError(f"Unexpected timeline payload: {type(timeline).__name__}")
        return timeline

    async def post_status(self, text: str) -> Dict[str, Any]:
        """
        Post a status update.

        Returns:
            The created status object
        """
        status = await self._request(
            "POST",
            "statuses/update",
            data={"status": text, "trim_user": "true"}
        )
        self.statuses_posted += 1
        return status

    def get_stats(self) -> Dict[str, int]:
        """Get request statistics for this client."""
        return {
            "requests_made": self.request_count,
            "statuses_posted": self.statuses_posted
        }


def _first_error(response: httpx.Response):
    try:
        payload = response.json()
    except ValueError:
        return None, response.text
    errors = payload.get("errors") if isinstance(payload, dict) else None
    if errors:
        return errors[0].get("code"), errors[0].get("message", "")
    return None, response.text
