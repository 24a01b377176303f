"""
Pydantic models for data validation and structure.
"""

from .video import VideoRecord
from .source import ChannelSource, VideoSource, SourceConfig, SourcesConfig
from .sync import (
    SourceFetchResult,
    PublishReport,
    SyncRunResult,
    RunStatus
)

__all__ = [
    "VideoRecord",
    "ChannelSource",
    "VideoSource",
    "SourceConfig",
    "SourcesConfig",
    "SourceFetchResult",
    "PublishReport",
    "SyncRunResult",
    "RunStatus"
]
