"""
Agent coordinating one full reconciliation run: replay, fetch, reconcile, publish.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Set

from config.settings import Settings, get_settings
from config.sources import load_sources
from models.source import SourcesConfig
from models.sync import RunStatus, SourceFetchResult, SyncRunResult
from models.video import VideoRecord
from agents.history_replay import replay_history
from agents.publisher import AnnouncementError, AnnouncementPublisher
from agents.reconciler import reconcile
from agents.source_fetcher import VideoCatalog, fetch_all_sources
from tools.twitter_tools import TwitterAPIClient
from tools.youtube_tools import YouTubeAPIClient
from utils import describe_error, handle_step_error, safe_log_text
from utils.rate_limit import IntervalGate
from chains.sync_chain import create_sync_chain

# Setup logging
logger = logging.getLogger(__name__)


class AnnouncementSyncAgent:
    """Announce every tracked video that the announcing account has not linked yet."""

    def __init__(
        self,
        settings: Settings,
        sources: SourcesConfig,
        catalog: VideoCatalog,
        twitter: TwitterAPIClient,
        gate: Optional[IntervalGate] = None
    ):
        self.settings = settings
        self.sources = sources
        self.catalog = catalog
        self.twitter = twitter
        self.gate = gate or IntervalGate(settings.announcement_cooldown_seconds)
        self.runs = 0
        self.successful_runs = 0
        self._chain = None

    @property
    def chain(self):
        if self._chain is None:
            self._chain = create_sync_chain(self)
        return self._chain

    async def replay_step(self, inputs: Dict[str, Any]) -> Set[str]:
        """Step 1a: Recover already announced video IDs."""
        return await replay_history(
            self.twitter,
            self.settings.twitter_account_name,
            max_pages=self.settings.history_max_pages,
            page_size=self.settings.history_page_size
        )

    async def fetch_step(self, inputs: Dict[str, Any]) -> List[SourceFetchResult]:
        """Step 1b: Fetch candidates from every configured source."""
        return await fetch_all_sources(
            self.catalog,
            self.sources.all_sources(),
            max_concurrent=self.settings.source_fetch_concurrency,
            max_pages=self.settings.channel_search_max_pages,
            page_size=self.settings.channel_search_page_size
        )

    def reconcile_step(self, inputs: Dict[str, Any]) -> List[VideoRecord]:
        """Step 2: Filter and order the candidates."""
        candidates = [video for result in inputs["fetch_results"] for video in result.videos]
        return reconcile(
            candidates,
            inputs["announced"],
            now=inputs["now"],
            min_age=timedelta(seconds=self.settings.min_video_age_seconds)
        )

    async def publish_step(self, inputs: Dict[str, Any]) -> SyncRunResult:
        """Step 3: Announce the queue and summarize the run."""
        fetch_results: List[SourceFetchResult] = inputs["fetch_results"]
        queue: List[VideoRecord] = inputs["queue"]
        dry_run = inputs.get("dry_run", False)

        result = SyncRunResult(
            dry_run=dry_run,
            started_at=inputs.get("started_at", inputs["now"]),
            history_size=len(inputs["announced"]),
            candidates_found=sum(len(r.videos) for r in fetch_results),
            queued=[video.video_id for video in queue]
        )

        for fetch_result in fetch_results:
            result.missing_videos.extend(fetch_result.missing_video_ids)
            if not fetch_result.success:
                result.failed_sources.append(fetch_result.source.label)
                result.errors.append(f"{fetch_result.source.label}: {fetch_result.error}")

        if dry_run:
            publisher = AnnouncementPublisher(self._log_announcement, IntervalGate(0), inputs.get("max_posts"))
        else:
            publisher = AnnouncementPublisher(self.twitter.post_status, self.gate, inputs.get("max_posts"))

        try:
            report = await publisher.publish(queue)
        except AnnouncementError as e:
            result.posted = e.posted
            result.status = RunStatus.FAILED
            handle_step_error(str(e), result.errors, logger)
            return result

        result.posted = report.posted
        result.deferred = report.deferred
        result.cooldown_seconds = report.cooldown_seconds
        if fetch_results and len(result.failed_sources) == len(fetch_results):
            result.status = RunStatus.FAILED
            handle_step_error(f"All {len(fetch_results)} source(s) failed", result.errors, logger)
        elif result.failed_sources:
            result.status = RunStatus.PARTIAL
        else:
            result.status = RunStatus.SUCCESS
        return result

    async def _log_announcement(self, text: str) -> None:
        logger.info(f"[dry run] Would post: {safe_log_text(text, max_length=None)}")

    async def run(
        self,
        dry_run: bool = False,
        max_posts: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> SyncRunResult:
        """
        Execute one reconciliation run.

        Args:
            dry_run: Log announcements instead of posting them
            max_posts: Override the configured per-run announcement cap
            now: Reference time for the age policy (defaults to the current time)

        Returns:
            Run summary; unexpected errors produce a failed result instead of raising
        """
        started_at = datetime.now(timezone.utc)
        now = now or started_at
        if max_posts is None:
            max_posts = self.settings.max_announcements_per_run

        logger.info(
            f"Starting {'dry ' if dry_run else ''}sync run for @{self.settings.twitter_account_name} "
            f"with {len(self.sources)} source(s)"
        )
        self.runs += 1

        try:
            result = await self.chain.ainvoke({
                "now": now,
                "started_at": started_at,
                "dry_run": dry_run,
                "max_posts": max_posts
            })
        except Exception as e:
            result = SyncRunResult(dry_run=dry_run, started_at=started_at, status=RunStatus.FAILED)
            handle_step_error(f"Sync run aborted: {describe_error(e)}", result.errors, logger)

        result.finished_at = datetime.now(timezone.utc)
        if result.success:
            self.successful_runs += 1

        logger.info(
            f"Sync run {result.status.value.upper()}: {len(result.posted)} posted, "
            f"{len(result.queued)} queued, {len(result.deferred)} deferred, "
            f"{len(result.failed_sources)} failed source(s) in {result.duration_seconds:.2f}s "
            f"({result.cooldown_seconds:.2f}s cooling down)"
        )
        return result

    async def get_announced_ids(self) -> Set[str]:
        """Replay the timeline on its own."""
        return await self.replay_step({})

    def get_stats(self) -> Dict[str, Any]:
        """Get run statistics."""
        return {
            "total_runs": self.runs,
            "successful_runs": self.successful_runs
        }


def create_sync_agent(settings: Optional[Settings] = None) -> AnnouncementSyncAgent:
    """Build an agent wired to the real YouTube and Twitter clients."""
    settings = settings or get_settings()
    sources = load_sources(settings.sources_file)

    catalog = YouTubeAPIClient(
        api_key=settings.youtube_api_key,
        requests_per_minute=settings.youtube_requests_per_minute,
        retry_attempts=settings.youtube_retry_attempts,
        timeout=settings.http_timeout_seconds
    )
    twitter = TwitterAPIClient(
        consumer_key=settings.twitter_consumer_key,
        consumer_secret=settings.twitter_consumer_secret,
        access_token_key=settings.twitter_access_token_key,
        access_token_secret=settings.twitter_access_token_secret,
        timeout=settings.http_timeout_seconds
    )
    return AnnouncementSyncAgent(settings, sources, catalog, twitter)
