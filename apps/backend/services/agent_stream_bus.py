import asyncio
import logging
from typing import Any, AsyncIterator, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

_CLOSED = object()


class EventStream:
    """Per-run async event queue between the agent task and the SSE response.

    The agent publishes ``(event, data)`` pairs; the response iterates them in
    publish order until the stream is closed.
    """

    def __init__(self, maxsize: int = 1000) -> None:
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    async def publish(self, event: str, data: Dict[str, Any]) -> None:
        if self._closed:
            logger.debug("[EventStream] dropped %s after close", event)
            return
        await self._queue.put((event, data))
        logger.debug("[EventStream] published event=%s keys=%s", event, list((data or {}).keys()))

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            await self._queue.put(_CLOSED)

    @property
    def closed(self) -> bool:
        return self._closed

    async def next_event(self) -> Optional[Tuple[str, Dict[str, Any]]]:
        """Wait for the next event; None once the stream is closed and drained."""
        item = await self._queue.get()
        if item is _CLOSED:
            return None
        return item

    async def __aiter__(self) -> AsyncIterator[Tuple[str, Dict[str, Any]]]:
        while True:
            item = await self.next_event()
            if item is None:
                return
            yield item
