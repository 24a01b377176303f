"""
LangChain runnable pipeline for one reconciliation run.
"""

import logging
from typing import TYPE_CHECKING

from langchain_core.runnables import RunnableLambda, RunnablePassthrough
from langchain_core.runnables.base import RunnableSequence

if TYPE_CHECKING:
    from agents.sync_agent import AnnouncementSyncAgent

# Setup logging
logger = logging.getLogger(__name__)


def create_sync_chain(agent: "AnnouncementSyncAgent") -> RunnableSequence:
    """
    Create the runnable pipeline driving a reconciliation run.

    Workflow: (History replay || Source fetch) → Reconcile → Publish

    The history replay and the source fetch have no dependency on each other
    and run concurrently; reconciliation needs both.

    Input is a dict with ``now``, ``dry_run`` and ``max_posts``; the output is
    a ``SyncRunResult``.

    Args:
        agent: Agent providing the step implementations

    Returns:
        RunnableSequence for the run
    """
    return (
        RunnablePassthrough.assign(
            announced=RunnableLambda(agent.replay_step),
            fetch_results=RunnableLambda(agent.fetch_step)
        )
        | RunnablePassthrough.assign(queue=RunnableLambda(agent.reconcile_step))
        | RunnableLambda(agent.publish_step)
    )
