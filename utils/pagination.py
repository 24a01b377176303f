"""
Bounded consumption of lazily fetched result pages.
"""

import logging
from typing import AsyncIterator, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def limit_pages(
    pages: AsyncIterator[T],
    max_pages: int,
    label: str = "pages"
) -> AsyncIterator[T]:
    """
    Yield at most ``max_pages`` items from a lazy page iterator.
    
    The next page is only requested from ``pages`` once the consumer asks for
    it, so stopping at the ceiling never issues an extra API call. The
    underlying generator is closed on exit.
    
    Args:
        pages: Async iterator producing one page per API call
        max_pages: Hard ceiling on the number of pages consumed
        label: Name used in log messages
    """
    if max_pages < 1:
        raise ValueError("max_pages must be at least 1")
    
    count = 0
    try:
        async for page in pages:
            yield page
            count += 1
            if count >= max_pages:
                logger.info(f"Stopped {label} after reaching the ceiling of {max_pages} pages")
                break
    finally:
        aclose = getattr(pages, "aclose", None)
        if aclose is not None:
            await aclose()
