"""
Utility functions for the announcement sync system.
"""

from .logging_utils import safe_log_text
from .error_utils import handle_step_error, describe_error
from .video_ids import extract_video_id, build_video_url
from .rate_limit import IntervalGate
from .pagination import limit_pages

__all__ = [
    "safe_log_text",
    "handle_step_error",
    "describe_error",
    "extract_video_id",
    "build_video_url",
    "IntervalGate",
    "limit_pages"
]
