"""
Fetch, publish and run result models.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .source import SourceConfig
from .video import VideoRecord


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RunStatus(str, Enum):
    """Overall outcome of one reconciliation run."""
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


class SourceFetchResult(BaseModel):
    """Videos fetched for one source, or the error that prevented it."""
    
    source: SourceConfig
    videos: List[VideoRecord] = Field(default_factory=list)
    missing_video_ids: List[str] = Field(default_factory=list)
    pages_fetched: int = 0
    error: Optional[str] = None
    
    @property
    def success(self) -> bool:
        return self.error is None


class PublishReport(BaseModel):
    """What the publisher did with the queue it was given."""
    
    posted: List[str] = Field(default_factory=list)
    deferred: List[str] = Field(default_factory=list)
    cooldown_seconds: float = 0.0


class SyncRunResult(BaseModel):
    """Summary of one reconciliation run."""
    
    status: RunStatus = RunStatus.SUCCESS
    dry_run: bool = False
    started_at: datetime = Field(default_factory=_utcnow)
    finished_at: Optional[datetime] = None
    history_size: int = 0
    candidates_found: int = 0
    queued: List[str] = Field(default_factory=list)
    posted: List[str] = Field(default_factory=list)
    deferred: List[str] = Field(default_factory=list)
    cooldown_seconds: float = 0.0
    missing_videos: List[str] = Field(default_factory=list)
    failed_sources: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    
    @property
    def success(self) -> bool:
        return self.status != RunStatus.FAILED
    
    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()
