"""
End-to-end tests of a reconciliation run through the runnable chain.
"""

import pytest

from agents.sync_agent import AnnouncementSyncAgent
from config.settings import Settings
from fakes import NOW, FakeCatalog, FakeTwitter, NoSleep, hours_ago, search_item, status, video_item
from models.source import ChannelSource, SourcesConfig, VideoSource
from models.sync import RunStatus
from schedulers.sync_scheduler import SyncScheduler
from tools.youtube_tools import YouTubeAPIError
from utils.rate_limit import IntervalGate


def make_settings(**overrides) -> Settings:
    values = dict(
        youtube_api_key="yt",
        twitter_consumer_key="ck",
        twitter_consumer_secret="cs",
        twitter_access_token_key="at",
        twitter_access_token_secret="ats",
        twitter_account_name="announcer",
        announcement_cooldown_seconds=1.0,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def sources():
    return SourcesConfig(
        channels=[ChannelSource(channel_id="UCacme", mention_handle="acme")],
        videos=[VideoSource(video_id="single"), VideoSource(video_id="deleted")]
    )


@pytest.fixture
def catalog():
    return FakeCatalog(
        channel_pages={"UCacme": [
            {"items": [
                search_item("old", "Old &amp; gold", hours_ago(10)),
                search_item("posted", "Already out", hours_ago(8)),
            ]},
            {"items": [
                search_item("fresh", "Too new", hours_ago(0.5)),
                search_item("mid", "Middle", hours_ago(4)),
            ]},
        ]},
        videos={"single": video_item("single", "Standalone", hours_ago(6))}
    )


def make_agent(settings, sources, catalog, twitter):
    gate = IntervalGate(settings.announcement_cooldown_seconds, sleep=NoSleep())
    return AnnouncementSyncAgent(settings, sources, catalog, twitter, gate=gate)


class TestAnnouncementSyncAgent:
    """Full run: replay, fetch, reconcile, publish."""

    async def test_announces_unannounced_videos_oldest_first(self, sources, catalog):
        """Test a full run announcing new videos oldest first."""
        twitter = FakeTwitter(pages=[[status(7, "https://www.youtube.com/watch?v=posted")], []])
        agent = make_agent(make_settings(), sources, catalog, twitter)

        result = await agent.run(now=NOW)

        assert result.status == RunStatus.SUCCESS
        assert result.queued == ["old", "single", "mid"]
        assert result.posted == ["old", "single", "mid"]
        assert twitter.posted == [
            "Old & gold @acme https://www.youtube.com/watch?v=old",
            "Standalone https://www.youtube.com/watch?v=single",
            "Middle @acme https://www.youtube.com/watch?v=mid",
        ]
        assert result.history_size == 1
        assert result.candidates_found == 5
        assert result.missing_videos == ["deleted"]
        assert result.finished_at is not None
        assert result.cooldown_seconds > 0
        assert agent.get_stats() == {"total_runs": 1, "successful_runs": 1}

    async def test_second_run_posts_nothing(self, sources, catalog):
        """Test that a rerun after a full run posts nothing."""
        twitter = FakeTwitter(pages=[[status(7, "https://www.youtube.com/watch?v=posted")], []])
        agent = make_agent(make_settings(), sources, catalog, twitter)
        await agent.run(now=NOW)

        # The timeline now holds every announcement made by the first run
        history = [status(100 + i, text.split()[-1]) for i, text in enumerate(reversed(twitter.posted))]
        rerun_twitter = FakeTwitter(pages=[history + [status(7, "https://www.youtube.com/watch?v=posted")], []])
        rerun = make_agent(make_settings(), sources, catalog, rerun_twitter)

        result = await rerun.run(now=NOW)

        assert result.status == RunStatus.SUCCESS
        assert result.posted == []
        assert rerun_twitter.posted == []

    async def test_emission_failure_fails_the_run(self, sources, catalog):
        """Test that a failed post marks the run as failed."""
        twitter = FakeTwitter(pages=[[]], fail_on_post=2)
        agent = make_agent(make_settings(), sources, catalog, twitter)

        result = await agent.run(now=NOW)

        assert result.status == RunStatus.FAILED
        assert result.posted == ["old"]
        assert twitter.post_attempts == 2
        assert len(twitter.posted) == 1
        assert any("posted" in error or "single" in error for error in result.errors)

    async def test_failed_source_makes_run_partial(self, sources):
        """Test that one failed source makes the run partial."""
        catalog = FakeCatalog(
            failing_channels={"UCacme": YouTubeAPIError("API access forbidden")},
            videos={"single": video_item("single", "Standalone", hours_ago(6))}
        )
        twitter = FakeTwitter(pages=[[]])
        agent = make_agent(make_settings(), sources, catalog, twitter)

        result = await agent.run(now=NOW)

        assert result.status == RunStatus.PARTIAL
        assert result.success
        assert result.failed_sources == ["channel:UCacme"]
        assert result.posted == ["single"]

    async def test_every_source_failing_fails_the_run(self):
        """Test that a run where no source could be fetched is reported as failed."""
        catalog = FakeCatalog(failing_channels={"UCacme": YouTubeAPIError("API access forbidden")})
        sources = SourcesConfig(channels=[ChannelSource(channel_id="UCacme")])
        agent = make_agent(make_settings(), sources, catalog, FakeTwitter(pages=[[]]))

        result = await agent.run(now=NOW)

        assert result.status == RunStatus.FAILED
        assert not result.success
        assert result.failed_sources == ["channel:UCacme"]
        assert any("All 1 source(s) failed" in error for error in result.errors)
        assert agent.get_stats() == {"total_runs": 1, "successful_runs": 0}

    async def test_history_failure_aborts_before_posting(self, sources, catalog):
        """Test that a timeline failure aborts before any post."""
        twitter = FakeTwitter()

        async def broken_timeline(*args, **kwargs):
            raise ConnectionError("timeline unavailable")

        twitter.get_user_timeline = broken_timeline
        agent = make_agent(make_settings(), sources, catalog, twitter)

        result = await agent.run(now=NOW)

        assert result.status == RunStatus.FAILED
        assert twitter.post_attempts == 0
        assert "timeline unavailable" in result.errors[0]

    async def test_max_posts_cap(self, sources, catalog):
        """Test that the configured cap defers the rest of the queue."""
        twitter = FakeTwitter(pages=[[]])
        agent = make_agent(make_settings(max_announcements_per_run=2), sources, catalog, twitter)

        result = await agent.run(now=NOW)

        assert result.posted == ["old", "posted"]
        assert result.deferred == ["single", "mid"]

    async def test_dry_run_does_not_post(self, sources, catalog):
        """Test that a dry run logs instead of posting."""
        twitter = FakeTwitter(pages=[[]])
        agent = make_agent(make_settings(), sources, catalog, twitter)

        result = await agent.run(dry_run=True, now=NOW)

        assert result.dry_run
        assert result.posted == ["old", "posted", "single", "mid"]
        assert twitter.post_attempts == 0
        assert result.cooldown_seconds == 0.0

    async def test_get_announced_ids(self, sources, catalog):
        """Test replaying the timeline on its own."""
        twitter = FakeTwitter(pages=[[status(3, "https://youtu.be/abc")], []])
        agent = make_agent(make_settings(), sources, catalog, twitter)

        assert await agent.get_announced_ids() == {"abc"}


class TestSyncScheduler:
    """Scheduled job body and bookkeeping."""

    async def test_execute_run_records_result(self, sources, catalog):
        """Test that the job body stores the last result."""
        agent = make_agent(make_settings(), sources, catalog, FakeTwitter(pages=[[]]))
        scheduler = SyncScheduler(agent, interval_seconds=900, dry_run=True)

        result = await scheduler.execute_run()

        assert scheduler.last_result is result
        assert result.dry_run

    async def test_failed_run_raises_for_listener(self, sources, catalog):
        """Test that a failed run raises so the error listener sees it."""
        agent = make_agent(make_settings(), sources, catalog, FakeTwitter(pages=[[]], fail_on_post=1))
        scheduler = SyncScheduler(agent, interval_seconds=900)

        with pytest.raises(RuntimeError):
            await scheduler.execute_run()
        assert scheduler.last_result.status == RunStatus.FAILED

    async def test_start_and_stop(self, sources, catalog):
        """Test starting and stopping the scheduler."""
        agent = make_agent(make_settings(), sources, catalog, FakeTwitter(pages=[[]]))
        scheduler = SyncScheduler(agent, interval_seconds=900)

        scheduler.start()
        stats = scheduler.get_stats()
        scheduler.stop()

        assert stats["is_running"]
        assert stats["next_run_time"] is not None
        assert not scheduler.is_running
