"""
Closable async streams.

An async generator's ``finally`` only runs once the generator has started,
so a generator closed before its first ``__anext__`` never releases what it
wraps. ClosingStream pairs an iterator with the resources behind it and
releases them on ``aclose()``, on exhaustion, or on error, whether or not
iteration ever began.
"""

import inspect
import logging
from typing import Any, AsyncIterator

logger = logging.getLogger("copilot.common.streams")


async def release(resource: Any) -> None:
    """Close a resource via aclose(), close() or cancel(), whichever it has."""
    if resource is None:
        return
    for name in ("aclose", "close", "cancel"):
        method = getattr(resource, name, None)
        if method is None:
            continue
        result = method()
        if inspect.isawaitable(result):
            await result
        return


class ClosingStream:
    """Async iterator over `source` that releases `resources` when closed."""

    def __init__(self, source: AsyncIterator, *resources: Any):
        self._source = source
        self._resources = resources
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "ClosingStream":
        return self

    async def __anext__(self):
        if self._closed:
            raise StopAsyncIteration
        try:
            return await self._source.__anext__()
        except Exception:
            # StopAsyncIteration included
            await self.aclose()
            raise

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await release(self._source)
        finally:
            for resource in self._resources:
                try:
                    await release(resource)
                except Exception as e:
                    logger.warning("Failed to release %s: %s", type(resource).__name__, e)
