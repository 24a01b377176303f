"""
Loading of the tracked sources file.
"""

import json
import logging
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from config.settings import ConfigurationError
from models.source import SourcesConfig

# Setup logging
logger = logging.getLogger(__name__)


def parse_sources(data: dict) -> SourcesConfig:
    """
    Validate a decoded sources document.
    
    Repeated entries (same channel or video ID) are collapsed to the first one.
    """
    try:
        config = SourcesConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid sources file: {e}") from e
    
    channels, seen_channels = [], set()
    for channel in config.channels:
        if channel.channel_id in seen_channels:
            logger.warning(f"Duplicate channel source {channel.channel_id} ignored")
            continue
        seen_channels.add(channel.channel_id)
        channels.append(channel)
    
    videos, seen_videos = [], set()
    for video in config.videos:
        if video.video_id in seen_videos:
            logger.warning(f"Duplicate video source {video.video_id} ignored")
            continue
        seen_videos.add(video.video_id)
        videos.append(video)
    
    return SourcesConfig(channels=channels, videos=videos)


def load_sources(path: Union[str, Path]) -> SourcesConfig:
    """
    Load the sources file.
    
    Expected shape::
    
        {"channels": [{"id": "UC...", "twitter": "handle"}],
         "videos": [{"id": "dQw4w9WgXcQ"}]}
    
    Raises:
        ConfigurationError: The file is missing or malformed
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Sources file not found: {path}")
    
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        raise ConfigurationError(f"Failed to read sources file {path}: {e}") from e
    
    if not isinstance(data, dict):
        raise ConfigurationError(f"Sources file {path} must contain a JSON object")
    
    sources = parse_sources(data)
    logger.info(
        f"Loaded {len(sources.channels)} channel source(s) and "
        f"{len(sources.videos)} video source(s) from {path}"
    )
    return sources
