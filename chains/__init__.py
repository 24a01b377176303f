"""
LangChain chains for workflow orchestration.
"""

from .sync_chain import create_sync_chain

__all__ = [
    "create_sync_chain"
]
