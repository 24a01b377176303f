"""
Candidate video model.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils.video_ids import build_video_url


class VideoRecord(BaseModel):
    """A video discovered from a configured source, waiting to be announced."""
    
    model_config = ConfigDict(frozen=True)
    
    video_id: str = Field(..., description="Canonical YouTube video ID")
    title: str = Field(..., description="Raw title, may contain HTML entities")
    published_at: datetime = Field(..., description="Publication timestamp from the catalog")
    mention_handle: Optional[str] = Field(
        None, description="Handle of the source that discovered the video"
    )
    source: Optional[str] = Field(None, description="Label of the source that produced the record")
    
    @field_validator('video_id')
    @classmethod
    def validate_video_id(cls, v):
        """Validate the video ID is present."""
        if not v or not v.strip():
            raise ValueError('Video ID cannot be empty')
        return v.strip()
    
    @field_validator('published_at')
    @classmethod
    def ensure_timezone(cls, v):
        """Treat naive timestamps as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v
    
    @property
    def url(self) -> str:
        """Get YouTube video URL."""
        return build_video_url(self.video_id)
