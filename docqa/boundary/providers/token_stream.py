"""
Bounded token channel.

Wraps a provider's async fragment iterator in a producer task feeding a
bounded ``asyncio.Queue``. The stream is finite, ordered and single-use;
``aclose()`` cancels the producer, which releases the provider stream.

Dependencies: asyncio (stdlib)
System role: Backpressure and cancellation for streamed generation
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)

_END = object()


class _Failure:
    __slots__ = ("error",)

    def __init__(self, error: BaseException) -> None:
        self.error = error


class TokenStream:
    """Single-consumer async iterator over generated text fragments."""

    def __init__(self, source: AsyncIterator[str], maxsize: int = 64) -> None:
        self._source = source
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._task: asyncio.Task | None = None
        self._finished = False
        self._closed = False
        self.fragments_emitted = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_started(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._pump())

    async def _pump(self) -> None:
        try:
            async for fragment in self._source:
                await self._queue.put(fragment)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            await self._queue.put(_Failure(exc))
            return
        finally:
            aclose = getattr(self._source, "aclose", None)
            if aclose is not None:
                with contextlib.suppress(Exception):
                    await aclose()
        await self._queue.put(_END)

    def __aiter__(self) -> "TokenStream":
        return self

    async def __anext__(self) -> str:
        if self._finished or self._closed:
            raise StopAsyncIteration
        self._ensure_started()
        item = await self._queue.get()
        if item is _END:
            self._finished = True
            raise StopAsyncIteration
        if isinstance(item, _Failure):
            self._finished = True
            raise item.error
        self.fragments_emitted += 1
        return item

    async def aclose(self) -> None:
        """Stop the producer and drop buffered fragments."""
        if self._closed:
            return
        self._closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            logger.debug(f"{__name__}:aclose - producer cancelled after {self.fragments_emitted} fragments")
        elif self._task is None:
            aclose = getattr(self._source, "aclose", None)
            if aclose is not None:
                with contextlib.suppress(Exception):
                    await aclose()

    async def __aenter__(self) -> "TokenStream":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def collect(self) -> str:
        """Drain the stream into a single string."""
        return "".join([fragment async for fragment in self])
