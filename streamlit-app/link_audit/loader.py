"""
Page loading interface used by the verifiers.

A PageLoader opens an isolated rendering context for one URL. The context
belongs to the caller that opened it and is torn down when the `async with`
block exits, on success, error or cancellation alike.
"""

import asyncio
from typing import AsyncContextManager, Optional, Protocol

from .schemas import PageSnapshot


class RenderingContext(Protocol):
    status_code: Optional[int]

    async def snapshot(self) -> PageSnapshot:
        """Capture the page as currently rendered."""
        ...


class PageLoader(Protocol):
    def open(self, url: str, timeout: float) -> AsyncContextManager[RenderingContext]:
        """Load `url` in a fresh context; `timeout` bounds navigation (seconds)."""
        ...


async def load_and_inspect(loader: PageLoader, url: str, timeout: float, settle_delay: float = 0.0) -> PageSnapshot:
    """Load a page, let it settle, and return one snapshot."""
    async with loader.open(url, timeout) as context:
        if settle_delay:
            await asyncio.sleep(settle_delay)
        return await context.snapshot()
