"""
Service layer - Streaming primitives shared by the HTTP routes and the agent actions.

StreamableValue is a single-producer channel: the producer pushes values with
update(), and finishes exactly once with done() or error(). Consumers iterate
it asynchronously. cancel() stops the producer task, which is how a client
disconnect propagates upstream.
"""
from typing import Any, AsyncIterator, Awaitable, Callable, Optional
import asyncio
import json
import logging

from langchain_core.load import dumpd
from langchain_core.load.serializable import Serializable
from pydantic import BaseModel

logger = logging.getLogger(__name__)

_DONE = object()


class StreamClosedError(RuntimeError):
    """Raised when a value is pushed after the stream completed."""


class StreamableValue:
    """Write-once, read-many channel of partial results."""

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._task: Optional[asyncio.Task] = None

    @property
    def closed(self) -> bool:
        return self._closed

    def update(self, value: Any) -> None:
        if self._closed:
            raise StreamClosedError("Cannot update a stream that is already done")
        self._queue.put_nowait(value)

    def done(self) -> None:
        if self._closed:
            raise StreamClosedError("Stream is already done")
        self._closed = True
        self._queue.put_nowait(_DONE)

    def error(self, exc: BaseException) -> None:
        if self._closed:
            raise StreamClosedError("Stream is already done")
        self._closed = True
        self._queue.put_nowait(exc)

    def run(self, producer: Callable[["StreamableValue"], Awaitable[None]]) -> "StreamableValue":
        """Start the producer in the background. The producer must not call done()."""

        async def _drive():
            try:
                await producer(self)
            except asyncio.CancelledError:
                logger.info("Stream producer cancelled")
                if not self._closed:
                    self.done()
                raise
            except Exception as e:
                logger.error(f"Stream producer failed: {e}", exc_info=True)
                if not self._closed:
                    self.error(e)
                return
            if not self._closed:
                self.done()

        self._task = asyncio.create_task(_drive())
        return self

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def __aiter__(self) -> AsyncIterator[Any]:
        while True:
            item = await self._queue.get()
            if item is _DONE:
                return
            if isinstance(item, BaseException):
                raise item
            yield item


def to_jsonable(value: Any) -> Any:
    """Deep-copy a value into plain JSON data (dicts, lists, strings, numbers)."""

    def _default(obj: Any) -> Any:
        if isinstance(obj, Serializable):
            return dumpd(obj)
        if isinstance(obj, BaseModel):
            return obj.model_dump(mode="json")
        if isinstance(obj, bytes):
            return obj.decode("utf-8", errors="replace")
        return str(obj)

    return json.loads(json.dumps(value, default=_default))


async def ndjson_lines(stream: StreamableValue) -> AsyncIterator[str]:
    """Serialize each streamed value as one JSON line; cancel the producer on exit."""
    try:
        async for item in stream:
            yield json.dumps(item) + "\n"
    except Exception as e:
        yield json.dumps({"error": str(e)}) + "\n"
    finally:
        stream.cancel()


async def prime_stream(chunks: AsyncIterator[Any]) -> AsyncIterator[Any]:
    """
    Pull the first chunk eagerly so upstream failures surface before the
    HTTP response starts, then replay it followed by the rest.
    """
    iterator = chunks.__aiter__()
    try:
        first = await iterator.__anext__()
    except StopAsyncIteration:
        first = _DONE

    async def _replay():
        try:
            if first is _DONE:
                return
            yield first
            async for chunk in iterator:
                yield chunk
        except Exception as e:
            logger.error(f"Stream interrupted: {e}", exc_info=True)
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()

    return _replay()
