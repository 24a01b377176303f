"""
Conversion between YouTube video locators and canonical video IDs.
"""

import re
from typing import Optional
from urllib.parse import parse_qs, urlparse

YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

_VIDEO_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
_SHORT_LINK_HOSTS = {"youtu.be", "www.youtu.be"}
_YOUTUBE_HOSTS = {"youtube.com", "www.youtube.com", "m.youtube.com", "music.youtube.com"}


def _clean(candidate: Optional[str]) -> Optional[str]:
    if candidate and _VIDEO_ID_PATTERN.match(candidate):
        return candidate
    return None


def extract_video_id(locator: Optional[str]) -> Optional[str]:
    """
    Extract the canonical video ID from a YouTube URL.
    
    Understands ``watch?v=<id>`` URLs (the ``v`` parameter may appear anywhere
    in the query string), ``youtu.be/<id>`` short links and ``/shorts/<id>``
    paths on YouTube hosts. Links to any other host yield None.
    
    Args:
        locator: URL found in a status or returned by the catalog
        
    Returns:
        The video ID, or None when the locator does not name a video
    """
    if not locator:
        return None
    
    parsed = urlparse(locator.strip())
    host = (parsed.hostname or "").lower()
    
    if host in _SHORT_LINK_HOSTS:
        return _clean(parsed.path.lstrip("/").split("/")[0])
    
    if host not in _YOUTUBE_HOSTS:
        return None
    
    if parsed.path.startswith("/shorts/"):
        return _clean(parsed.path[len("/shorts/"):].split("/")[0])
    
    values = parse_qs(parsed.query).get("v")
    if values:
        return _clean(values[0])
    
    return None


def build_video_url(video_id: str) -> str:
    """Build the canonical watch URL for a video ID."""
    return YOUTUBE_WATCH_URL.format(video_id=video_id)
