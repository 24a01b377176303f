"""
Tests for fetching candidate videos from channel and single-video sources.
"""

import logging
from datetime import datetime, timezone

import pytest

from agents.source_fetcher import (
    fetch_all_sources,
    fetch_channel_videos,
    fetch_single_video,
    video_record_from_item
)
from fakes import FakeCatalog, search_item, video_item
from models.source import ChannelSource, VideoSource
from tools.youtube_tools import YouTubeQuotaExceededError


class FetchInterrupted(BaseException):
    pass


@pytest.fixture
def channel():
    return ChannelSource(channel_id="UCchannel", mention_handle="acme")


class TestChannelFetch:
    """Paginated channel search."""

    async def test_accumulates_items_across_pages(self, channel):
        """Test that search results are collected across pages."""
        catalog = FakeCatalog(channel_pages={"UCchannel": [
            {"items": [search_item("v1"), search_item("v2")]},
            {"items": [search_item("v3"), search_item("v4")]},
            {"items": []},
        ]})

        result = await fetch_channel_videos(catalog, channel)

        assert len(catalog.search_calls) == 3
        assert [c["page_token"] for c in catalog.search_calls] == [None, "1", "2"]
        assert [v.video_id for v in result.videos] == ["v1", "v2", "v3", "v4"]
        assert result.pages_fetched == 3
        assert all(v.mention_handle == "acme" for v in result.videos)
        assert all(v.source == "channel:UCchannel" for v in result.videos)

    async def test_page_ceiling(self, channel):
        """Test that channel search stops at the page ceiling."""
        pages = [{"items": [search_item(f"v{i}")]} for i in range(10)]
        catalog = FakeCatalog(channel_pages={"UCchannel": pages})

        result = await fetch_channel_videos(catalog, channel, max_pages=4)

        assert len(catalog.search_calls) == 4
        assert len(result.videos) == 4

    async def test_skips_items_without_video_id(self, channel):
        """Test that search items without a video ID are skipped."""
        catalog = FakeCatalog(channel_pages={"UCchannel": [{"items": [
            search_item("v1"),
            {"id": {"kind": "youtube#playlist", "playlistId": "PL1"}, "snippet": {}},
        ]}]})

        result = await fetch_channel_videos(catalog, channel)

        assert [v.video_id for v in result.videos] == ["v1"]


class TestSingleVideoFetch:
    """Direct lookup of configured videos."""

    async def test_found(self):
        """Test fetching a single video that exists."""
        catalog = FakeCatalog(videos={"abc": video_item("abc", "Hello &amp; welcome")})
        source = VideoSource(video_id="abc")

        result = await fetch_single_video(catalog, source)

        assert [v.video_id for v in result.videos] == ["abc"]
        assert result.videos[0].title == "Hello &amp; welcome"
        assert result.videos[0].mention_handle is None
        assert result.missing_video_ids == []

    async def test_missing_video_is_a_warning(self, caplog):
        """Test that a missing video is logged and recorded."""
        catalog = FakeCatalog()
        source = VideoSource(video_id="gone", mention_handle="someone")

        with caplog.at_level(logging.WARNING):
            result = await fetch_single_video(catalog, source)

        assert result.success
        assert result.videos == []
        assert result.missing_video_ids == ["gone"]
        assert "gone not found" in caplog.text


class TestFetchAllSources:
    """Fan-out over every source with per-source failure isolation."""

    async def test_failure_in_one_source_keeps_others(self, channel):
        """Test that one failing source does not affect the others."""
        catalog = FakeCatalog(
            channel_pages={"UCchannel": [{"items": [search_item("v1")]}]},
            videos={"single": video_item("single")},
            failing_channels={"UCbroken": YouTubeQuotaExceededError("Daily quota limit reached")}
        )
        sources = [
            channel,
            ChannelSource(channel_id="UCbroken"),
            VideoSource(video_id="single", mention_handle="@solo"),
        ]

        results = await fetch_all_sources(catalog, sources, max_concurrent=2)

        assert [r.source for r in results] == sources
        assert results[0].success and [v.video_id for v in results[0].videos] == ["v1"]
        assert not results[1].success
        assert "YouTubeQuotaExceededError" in results[1].error
        assert results[1].videos == []
        assert results[2].videos[0].mention_handle == "solo"

    async def test_interrupts_are_not_swallowed(self, channel):
        """Test that a non-Exception interrupt escapes instead of becoming a failed source."""
        catalog = FakeCatalog(failing_channels={"UCchannel": FetchInterrupted()})

        with pytest.raises(FetchInterrupted):
            await fetch_all_sources(catalog, [channel, VideoSource(video_id="single")])

    async def test_no_sources(self):
        """Test fetching with no configured sources."""
        assert await fetch_all_sources(FakeCatalog(), []) == []


class TestVideoRecordFromItem:
    """Catalog item conversion."""

    def test_search_and_lookup_shapes(self):
        """Test conversion of search and lookup items."""
        from_search = video_record_from_item(search_item("s1", published_at="2024-01-01T00:00:00Z"))
        from_lookup = video_record_from_item(video_item("l1", published_at="2024-01-01T00:00:00Z"))

        assert from_search.video_id == "s1"
        assert from_lookup.video_id == "l1"
        assert from_search.published_at == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_missing_published_at(self):
        """Test that items without a publish time are dropped."""
        assert video_record_from_item({"id": "x", "snippet": {"title": "t"}}) is None
