"""
Reconciliation of fetched candidates against the announced set.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import AbstractSet, Iterable, List

from models.video import VideoRecord

# Setup logging
logger = logging.getLogger(__name__)

# Gives the author time to settle on a meaningful title before it is announced
DEFAULT_MIN_AGE = timedelta(hours=1)


def dedupe_candidates(candidates: Iterable[VideoRecord]) -> List[VideoRecord]:
    """Keep the first record seen for each video ID, preserving input order."""
    seen = set()
    unique = []
    for video in candidates:
        if video.video_id in seen:
            continue
        seen.add(video.video_id)
        unique.append(video)
    return unique


def reconcile(
    candidates: Iterable[VideoRecord],
    announced: AbstractSet[str],
    now: datetime,
    min_age: timedelta = DEFAULT_MIN_AGE
) -> List[VideoRecord]:
    """
    Turn raw candidates into the ordered announcement queue.

    Drops videos already announced, drops videos whose age is at most
    ``min_age``, and sorts the rest oldest first. The sort is stable, so
    videos published at the same instant keep their input order.

    Args:
        candidates: Records from every source, in fetch order
        announced: Video IDs already present in the announcing timeline
        now: Reference time (timezone-aware)
        min_age: Minimum age a video must exceed to be announced

    Returns:
        Videos to announce, oldest publication first
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    unique = dedupe_candidates(candidates)
    not_announced = [v for v in unique if v.video_id not in announced]
    old_enough = [v for v in not_announced if now - v.published_at > min_age]
    queue = sorted(old_enough, key=lambda v: v.published_at)

    logger.info(
        f"Reconciled {len(unique)} unique candidate(s): "
        f"{len(unique) - len(not_announced)} already announced, "
        f"{len(not_announced) - len(old_enough)} too recent, "
        f"{len(queue)} queued"
    )
    return queue
