"""
Sequential, throttled publication of announcements.
"""

import html
import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from models.sync import PublishReport
from models.video import VideoRecord
from utils import describe_error, safe_log_text
from utils.rate_limit import IntervalGate

# Setup logging
logger = logging.getLogger(__name__)

Emitter = Callable[[str], Awaitable[Any]]


class AnnouncementError(Exception):
    """Posting an announcement failed; later videos were not attempted."""

    def __init__(self, video: VideoRecord, posted: List[str], cause: BaseException):
        super().__init__(f"Failed to announce video {video.video_id}: {describe_error(cause)}")
        self.video = video
        self.posted = posted
        self.cause = cause


def compose_announcement(video: VideoRecord) -> str:
    """
    Build the status text for a video.

    Format: ``<title> [@handle] <url>`` with HTML entities in the title decoded.
    """
    parts = [html.unescape(video.title)]
    if video.mention_handle:
        parts.append(f"@{video.mention_handle}")
    parts.append(video.url)
    return " ".join(parts)


class AnnouncementPublisher:
    """Post queued videos one at a time, spaced by a cooldown gate."""

    def __init__(
        self,
        emit: Emitter,
        gate: Optional[IntervalGate] = None,
        max_posts: Optional[int] = None
    ):
        if max_posts is not None and max_posts < 1:
            raise ValueError("max_posts must be at least 1")
        self.emit = emit
        self.gate = gate or IntervalGate(1.0)
        self.max_posts = max_posts

    async def publish(self, videos: Sequence[VideoRecord]) -> PublishReport:
        """
        Announce videos in the given order.

        Stops early once ``max_posts`` announcements were made; the rest are
        reported as deferred to a later run.

        Raises:
            AnnouncementError: An emission failed. Nothing after it is attempted.
        """
        report = PublishReport()

        for index, video in enumerate(videos):
            if self.max_posts is not None and len(report.posted) >= self.max_posts:
                report.deferred = [v.video_id for v in videos[index:]]
                logger.info(
                    f"Reached {self.max_posts} announcement(s) for this run, "
                    f"deferring {len(report.deferred)} video(s)"
                )
                break

            text = compose_announcement(video)
            report.cooldown_seconds += await self.gate.wait()

            try:
                await self.emit(text)
            except Exception as e:
                logger.error(f"Failed to announce video {video.video_id}: {describe_error(e)}")
                raise AnnouncementError(video, list(report.posted), e) from e

            report.posted.append(video.video_id)
            logger.info(f"Posted video id {video.video_id}: {safe_log_text(html.unescape(video.title))}")

        logger.info(f"Published {len(report.posted)} of {len(videos)} queued announcement(s)")
        return report
