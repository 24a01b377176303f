"""
Configuration management using Pydantic Settings.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

REQUIRED_FIELDS = (
    'youtube_api_key',
    'twitter_consumer_key',
    'twitter_consumer_secret',
    'twitter_access_token_key',
    'twitter_access_token_secret',
    'twitter_account_name',
)


class ConfigurationError(Exception):
    """Required configuration is missing or invalid."""
    
    def __init__(self, message: str, missing_keys: Optional[List[str]] = None):
        super().__init__(message)
        self.missing_keys = missing_keys or []


class Settings(BaseSettings):
    """Application settings with validation."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    # YouTube Data API v3
    youtube_api_key: str = Field(..., min_length=1, description="YouTube Data API v3 key")
    
    # Twitter API v1.1 (OAuth 1.0a user context)
    twitter_consumer_key: str = Field(..., min_length=1, description="Twitter app consumer key")
    twitter_consumer_secret: str = Field(..., min_length=1, description="Twitter app consumer secret")
    twitter_access_token_key: str = Field(..., min_length=1, description="Twitter user access token")
    twitter_access_token_secret: str = Field(..., min_length=1, description="Twitter user access token secret")
    twitter_account_name: str = Field(..., min_length=1, description="Screen name whose timeline holds past announcements")
    
    # Sources
    sources_file: str = Field("sources.json", description="Path to the JSON list of tracked sources")
    
    # Reconciliation policy
    min_video_age_seconds: int = Field(3600, ge=0, description="Videos younger than this are held back")
    max_announcements_per_run: Optional[int] = Field(
        None, ge=1, description="Stop after this many announcements (None announces everything queued)"
    )
    
    # Pagination ceilings
    history_max_pages: int = Field(100, description="Maximum timeline pages read per run")
    history_page_size: int = Field(200, description="Statuses requested per timeline page")
    channel_search_max_pages: int = Field(50, description="Maximum search pages per channel")
    channel_search_page_size: int = Field(50, description="Results requested per search page")
    
    # Rate Limiting
    announcement_cooldown_seconds: float = Field(1.0, ge=0, description="Pause between two posts")
    youtube_requests_per_minute: int = Field(50, ge=1, description="YouTube API requests per minute")
    youtube_retry_attempts: int = Field(3, ge=1, description="Attempts for transient YouTube failures")
    source_fetch_concurrency: int = Field(5, ge=1, description="Sources fetched at the same time")
    http_timeout_seconds: float = Field(30.0, gt=0, description="Timeout for each HTTP request")
    
    # Scheduling
    sync_interval_seconds: int = Field(900, ge=60, description="Interval between scheduled runs")
    
    # Logging Configuration
    log_level: str = Field("INFO", description="Logging level")
    log_file: str = Field("./logs/video_announcer.log", description="Log file path")
    
    @field_validator(*REQUIRED_FIELDS, mode='before')
    @classmethod
    def strip_credentials(cls, v):
        """Blank credentials count as unset."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()
    
    @field_validator(
        'history_max_pages',
        'history_page_size',
        'channel_search_max_pages',
        'channel_search_page_size'
    )
    @classmethod
    def validate_positive(cls, v):
        """Page sizes and ceilings must be positive."""
        if v < 1:
            raise ValueError('must be at least 1')
        return v
    
    @field_validator('channel_search_page_size')
    @classmethod
    def validate_search_page_size(cls, v):
        """YouTube caps search.list at 50 results per page."""
        if v > 50:
            raise ValueError('channel_search_page_size must be at most 50')
        return v
    
    @field_validator('history_page_size')
    @classmethod
    def validate_history_page_size(cls, v):
        """Twitter caps user_timeline at 200 statuses per page."""
        if v > 200:
            raise ValueError('history_page_size must be at most 200')
        return v
    
    def setup_logging(self) -> None:
        """Setup logging configuration."""
        log_path = Path(self.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        
        logging.basicConfig(
            level=getattr(logging, self.log_level),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=[
                logging.FileHandler(self.log_file, encoding='utf-8'),
                logging.StreamHandler()
            ]
        )
        
        # Set specific logger levels
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        logging.getLogger("apscheduler").setLevel(logging.WARNING)


def _missing_keys(error: ValidationError) -> List[str]:
    keys = []
    for item in error.errors():
        if item.get("type") in ("missing", "string_too_short") and item.get("loc"):
            keys.append(str(item["loc"][0]).upper())
    return keys


def load_settings(**overrides) -> Settings:
    """
    Build settings from the environment, reporting missing keys together.
    
    Args:
        **overrides: Explicit values taking precedence over the environment
        
    Returns:
        Validated settings
        
    Raises:
        ConfigurationError: Required keys are missing or values are invalid
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        missing = _missing_keys(e)
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}",
                missing_keys=missing
            ) from e
        raise ConfigurationError(f"Invalid configuration: {e}") from e


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = load_settings()
    settings.setup_logging()
    return settings
