"""
Agents implementing the reconciliation pipeline stages.
"""

from .history_replay import replay_history
from .source_fetcher import fetch_all_sources
from .reconciler import reconcile
from .publisher import AnnouncementPublisher, AnnouncementError, compose_announcement
from .sync_agent import AnnouncementSyncAgent, create_sync_agent

__all__ = [
    "replay_history",
    "fetch_all_sources",
    "reconcile",
    "AnnouncementPublisher",
    "AnnouncementError",
    "compose_announcement",
    "AnnouncementSyncAgent",
    "create_sync_agent"
]
