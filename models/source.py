"""
Configured video sources.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _normalize_handle(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    handle = v.strip().lstrip("@").strip()
    return handle or None


class ChannelSource(BaseModel):
    """A YouTube channel whose uploads are announced."""
    
    model_config = ConfigDict(frozen=True, populate_by_name=True)
    
    channel_id: str = Field(..., alias="id", description="YouTube channel ID")
    mention_handle: Optional[str] = Field(
        None, alias="twitter", description="Handle mentioned in announcements"
    )
    
    @field_validator('channel_id')
    @classmethod
    def validate_channel_id(cls, v):
        """Validate channel ID is present."""
        if not v.strip():
            raise ValueError('Channel ID cannot be empty')
        return v.strip()
    
    @field_validator('mention_handle')
    @classmethod
    def validate_mention_handle(cls, v):
        return _normalize_handle(v)
    
    @property
    def label(self) -> str:
        return f"channel:{self.channel_id}"


class VideoSource(BaseModel):
    """A single YouTube video to announce."""
    
    model_config = ConfigDict(frozen=True, populate_by_name=True)
    
    video_id: str = Field(..., alias="id", description="YouTube video ID")
    mention_handle: Optional[str] = Field(
        None, alias="twitter", description="Handle mentioned in announcements"
    )
    
    @field_validator('video_id')
    @classmethod
    def validate_video_id(cls, v):
        """Validate video ID is present."""
        if not v.strip():
            raise ValueError('Video ID cannot be empty')
        return v.strip()
    
    @field_validator('mention_handle')
    @classmethod
    def validate_mention_handle(cls, v):
        return _normalize_handle(v)
    
    @property
    def label(self) -> str:
        return f"video:{self.video_id}"


SourceConfig = Union[ChannelSource, VideoSource]


class SourcesConfig(BaseModel):
    """All sources tracked by one run."""
    
    model_config = ConfigDict(frozen=True)
    
    channels: List[ChannelSource] = Field(default_factory=list)
    videos: List[VideoSource] = Field(default_factory=list)
    
    def all_sources(self) -> List[SourceConfig]:
        """Channels first, then single videos, in file order."""
        return [*self.channels, *self.videos]
    
    def __len__(self) -> int:
        return len(self.channels) + len(self.videos)
