"""
HTTP clients for the catalog (YouTube) and social feed (Twitter) services.
"""

from .youtube_tools import YouTubeAPIClient, YouTubeAPIError
from .twitter_tools import TwitterAPIClient, TwitterAPIError

__all__ = [
    "YouTubeAPIClient",
    "YouTubeAPIError",
    "TwitterAPIClient",
    "TwitterAPIError"
]
