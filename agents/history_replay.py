"""
Recovery of already-announced video IDs from the announcing account's own timeline.
"""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol, Set

from utils.pagination import limit_pages
from utils.video_ids import extract_video_id

# Setup logging
logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 100
DEFAULT_PAGE_SIZE = 200


class TimelineSource(Protocol):
    """Paged read access to an account's statuses, newest first."""

    async def get_user_timeline(
        self,
        screen_name: str,
        max_id: Optional[Any] = None,
        count: int = 200,
        exclude_replies: bool = True
    ) -> List[Dict[str, Any]]:
        ...


async def iter_timeline_pages(
    timeline: TimelineSource,
    screen_name: str,
    page_size: int = DEFAULT_PAGE_SIZE
) -> AsyncIterator[List[Dict[str, Any]]]:
    """
    Walk the timeline with max-ID pagination, one page per request.

    The cursor for the next request is the ID of the oldest status on the
    current page. When a page ends on the status that was already the cursor
    the walk cannot advance: that status is dropped, the rest of the page is
    still yielded, and iteration stops.
    """
    max_id = None
    while True:
        page = await timeline.get_user_timeline(
            screen_name=screen_name,
            max_id=max_id,
            count=page_size,
            exclude_replies=True
        )
        if not page:
            return

        oldest_id = page[-1].get("id")
        if max_id is not None and oldest_id == max_id:
            logger.warning(
                f"Timeline cursor did not advance past status {max_id}, "
                f"assuming the end of the timeline was reached"
            )
            page = page[:-1]
            if page:
                yield page
            return

        max_id = oldest_id
        yield page


def extract_announced_ids(statuses: List[Dict[str, Any]]) -> Set[str]:
    """Collect every video ID linked from a list of statuses."""
    video_ids = set()
    for status in statuses:
        urls = (status.get("entities") or {}).get("urls") or []
        for url in urls:
            locator = url.get("expanded_url") or url.get("url")
            video_id = extract_video_id(locator)
            if video_id is None:
                logger.debug(f"Ignoring non-video link {locator} in status {status.get('id')}")
                continue
            video_ids.add(video_id)
    return video_ids


async def replay_history(
    timeline: TimelineSource,
    screen_name: str,
    max_pages: int = DEFAULT_MAX_PAGES,
    page_size: int = DEFAULT_PAGE_SIZE
) -> Set[str]:
    """
    Rebuild the set of video IDs the account has already announced.

    Args:
        timeline: Client able to page through the account's statuses
        screen_name: Announcing account
        max_pages: Hard ceiling on timeline requests
        page_size: Statuses requested per page

    Returns:
        Video IDs referenced by links in the account's statuses
    """
    logger.info(f"Replaying timeline of @{screen_name} (up to {max_pages} pages)")

    announced: Set[str] = set()
    pages_read = 0
    statuses_read = 0

    pages = iter_timeline_pages(timeline, screen_name, page_size)
    async for page in limit_pages(pages, max_pages, label=f"timeline of @{screen_name}"):
        pages_read += 1
        statuses_read += len(page)
        announced |= extract_announced_ids(page)

    logger.info(
        f"Timeline replay finished: {statuses_read} statuses in {pages_read} page(s), "
        f"{len(announced)} announced video(s)"
    )
    return announced
