"""Turn lifecycle events and the channel that carries them to the caller.

The orchestrator emits into a TurnEventChannel; the caller consumes it with
``async for``. Emitting never blocks and events are snapshots, so what a
consumer sees does not depend on when it reads.

Per buffered turn: exactly one MessageReceived.
Per streamed turn: one zero-length MessageReceived, then one ChunkReceived
per fragment, then exactly one ChunkReceived with is_done=True.
"""

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass

from shared.models import Message


@dataclass(frozen=True)
class MessageReceived:
    """An assistant message was created (empty when streaming starts)."""

    message: Message


@dataclass(frozen=True)
class ChunkReceived:
    """A streamed fragment arrived, or the stream finished."""

    is_done: bool
    chunk: str | None = None

    def __post_init__(self) -> None:
        if self.is_done and self.chunk is not None:
            raise ValueError("The terminal chunk event carries no chunk")
        if not self.is_done and not self.chunk:
            raise ValueError("A chunk event needs a non-empty chunk")


TurnEvent = MessageReceived | ChunkReceived

_CLOSED = object()


class TurnEventChannel:
    """Unbounded single-consumer channel of turn events."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, event: TurnEvent) -> None:
        """Queue an event for the consumer.

        Raises:
            RuntimeError: If the channel has been closed
        """
        if self._closed:
            raise RuntimeError("Cannot emit on a closed event channel")
        self._queue.put_nowait(event)

    def message_received(self, message: Message) -> None:
        self.emit(MessageReceived(message=message.model_copy()))

    def chunk_received(self, is_done: bool, chunk: str | None = None) -> None:
        self.emit(ChunkReceived(is_done=is_done, chunk=chunk))

    def close(self) -> None:
        """End the stream of events; safe to call more than once."""
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    def drain(self) -> list[TurnEvent]:
        """Take every event queued so far without waiting."""
        events: list[TurnEvent] = []
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is _CLOSED:
                # Keep the close marker for any later async reader
                self._queue.put_nowait(_CLOSED)
                break
            events.append(item)
        return events

    async def __aiter__(self) -> AsyncIterator[TurnEvent]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                self._queue.put_nowait(_CLOSED)
                return
            yield item
