"""
Discovery of candidate videos from the configured channel and single-video sources.
"""

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol, Sequence

from pydantic import ValidationError

from models.source import ChannelSource, SourceConfig, VideoSource
from models.sync import SourceFetchResult
from models.video import VideoRecord
from utils import describe_error, safe_log_text
from utils.pagination import limit_pages

# Setup logging
logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 50
DEFAULT_PAGE_SIZE = 50


class VideoCatalog(Protocol):
    """The two catalog queries the fetcher relies on."""

    async def search_channel_videos(
        self,
        channel_id: str,
        page_token: Optional[str] = None,
        max_results: int = 50
    ) -> Dict[str, Any]:
        ...

    async def get_video(self, video_id: str) -> Dict[str, Any]:
        ...


def _item_video_id(item: Dict[str, Any]) -> Optional[str]:
    # search.list nests the ID ({"kind": ..., "videoId": ...}); videos.list uses a plain string
    raw_id = item.get("id")
    if isinstance(raw_id, dict):
        return raw_id.get("videoId")
    return raw_id


def video_record_from_item(
    item: Dict[str, Any],
    mention_handle: Optional[str] = None,
    source: Optional[str] = None
) -> Optional[VideoRecord]:
    """
    Convert a catalog item into a VideoRecord.

    Returns:
        The record, or None when the item has no usable ID or snippet
    """
    video_id = _item_video_id(item)
    snippet = item.get("snippet") or {}
    if not video_id:
        logger.debug(f"Skipping catalog item without a video ID from {source}")
        return None

    try:
        return VideoRecord(
            video_id=video_id,
            title=snippet.get("title", ""),
            published_at=snippet.get("publishedAt"),
            mention_handle=mention_handle,
            source=source
        )
    except ValidationError as e:
        logger.warning(f"Skipping malformed catalog item {video_id} from {source}: {e}")
        return None


async def iter_search_pages(
    catalog: VideoCatalog,
    channel_id: str,
    page_size: int = DEFAULT_PAGE_SIZE
) -> AsyncIterator[Dict[str, Any]]:
    """Yield raw search pages for a channel until the server stops issuing page tokens."""
    page_token = None
    while True:
        response = await catalog.search_channel_videos(
            channel_id=channel_id,
            page_token=page_token,
            max_results=page_size
        )
        yield response
        page_token = response.get("nextPageToken")
        if not page_token:
            return


async def fetch_channel_videos(
    catalog: VideoCatalog,
    source: ChannelSource,
    max_pages: int = DEFAULT_MAX_PAGES,
    page_size: int = DEFAULT_PAGE_SIZE
) -> SourceFetchResult:
    """
    Collect every video the catalog lists for a channel.

    Args:
        catalog: YouTube client
        source: Channel source, its handle is attached to every record
        max_pages: Hard ceiling on search requests for this channel
        page_size: Results requested per page

    Returns:
        Fetch result with all accumulated records
    """
    logger.info(f"Fetching videos for channel {source.channel_id}")
    result = SourceFetchResult(source=source)

    pages = iter_search_pages(catalog, source.channel_id, page_size)
    async for page in limit_pages(pages, max_pages, label=f"search for channel {source.channel_id}"):
        result.pages_fetched += 1
        for item in page.get("items", []):
            record = video_record_from_item(item, source.mention_handle, source.label)
            if record is not None:
                result.videos.append(record)

    logger.info(
        f"Found {len(result.videos)} videos for channel {source.channel_id} "
        f"in {result.pages_fetched} page(s)"
    )
    return result


async def fetch_single_video(catalog: VideoCatalog, source: VideoSource) -> SourceFetchResult:
    """
    Look up one configured video.

    A video that no longer exists (deleted or private) is not an error; it is
    recorded in ``missing_video_ids`` and skipped.
    """
    result = SourceFetchResult(source=source)
    response = await catalog.get_video(source.video_id)
    result.pages_fetched = 1

    items = response.get("items", [])
    if not items:
        logger.warning(f"Video with id {source.video_id} not found")
        result.missing_video_ids.append(source.video_id)
        return result

    record = video_record_from_item(items[0], source.mention_handle, source.label)
    if record is not None:
        logger.info(f"Fetched video {record.video_id}: {safe_log_text(record.title)}")
        result.videos.append(record)
    return result


async def fetch_source(
    catalog: VideoCatalog,
    source: SourceConfig,
    max_pages: int = DEFAULT_MAX_PAGES,
    page_size: int = DEFAULT_PAGE_SIZE
) -> SourceFetchResult:
    """Dispatch to the channel or single-video fetch based on the source variant."""
    if isinstance(source, ChannelSource):
        return await fetch_channel_videos(catalog, source, max_pages, page_size)
    if isinstance(source, VideoSource):
        return await fetch_single_video(catalog, source)
    raise TypeError(f"Unsupported source type: {type(source).__name__}")


async def fetch_all_sources(
    catalog: VideoCatalog,
    sources: Sequence[SourceConfig],
    max_concurrent: int = 5,
    max_pages: int = DEFAULT_MAX_PAGES,
    page_size: int = DEFAULT_PAGE_SIZE
) -> List[SourceFetchResult]:
    """
    Fetch every source concurrently, isolating failures per source.

    Args:
        catalog: YouTube client
        sources: Configured sources
        max_concurrent: Maximum concurrent fetches
        max_pages: Page ceiling per channel
        page_size: Results per channel page

    Returns:
        One result per source, in the order given; failed sources carry an
        error message and no videos
    """
    logger.info(f"Fetching {len(sources)} source(s), {max_concurrent} at a time")

    # Create semaphore to limit concurrent fetches
    semaphore = asyncio.Semaphore(max_concurrent)

    async def _fetch_with_semaphore(source):
        async with semaphore:
            return await fetch_source(catalog, source, max_pages, page_size)

    results = await asyncio.gather(
        *(_fetch_with_semaphore(source) for source in sources),
        return_exceptions=True
    )

    # Process results and handle exceptions
    processed_results = []
    for source, result in zip(sources, results):
        if isinstance(result, BaseException) and not isinstance(result, Exception):
            raise result
        if isinstance(result, Exception):
            error_msg = describe_error(result)
            logger.error(f"Failed to fetch {source.label}: {error_msg}")
            processed_results.append(SourceFetchResult(source=source, error=error_msg))
        else:
            processed_results.append(result)

    failed = sum(1 for r in processed_results if not r.success)
    total_videos = sum(len(r.videos) for r in processed_results)
    logger.info(
        f"Source fetch complete: {total_videos} candidate(s) from "
        f"{len(sources) - failed}/{len(sources)} source(s)"
    )
    return processed_results
